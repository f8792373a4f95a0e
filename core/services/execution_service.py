# =============================================================================
# core/services/execution_service.py - UDF Execution Business Logic
# =============================================================================
# Glue between the HTTP layer and the compute engine:
# - opens the local store for each request
# - runs the engine with a cancellation token registered in ActiveExecutions
# - commits the output as a derived curve when asked to
# - always saves the execution record, whatever the outcome
#
# Everything here is synchronous. Routers call it from a threadpool so a
# cancel request can arrive while an execution is still running.
# =============================================================================

import logging
from typing import Any
from uuid import UUID, uuid4

from app.config import Settings
from app.exceptions import ExecutionNotActiveError, ExecutionNotFoundError
from compute.engine import ExecutionEngine, ExecutionResult
from compute.output_writer import OutputWriter
from core.models.compute import (
    CurveDataPoint,
    CurveProvenance,
    ExecuteUdfRequest,
    ExecuteUdfResult,
    ExecutionProgress,
    ExecutionRecordResponse,
    ExecutionStatusResponse,
    ValidateParametersResponse,
    ValidationIssue,
)
from core.services.active_executions import ActiveExecutions
from lib.curve_store import SqliteCurveLoader
from lib.database import (
    get_connection,
    get_curve_provenance,
    get_execution_record,
    list_execution_records,
    save_execution_record,
)

logger = logging.getLogger(__name__)


class ExecutionService:
    """
    Runs UDFs against the local store and records their provenance.

    Usage:
        service = ExecutionService(engine, ActiveExecutions(), settings)
        result = service.execute_udf(ExecuteUdfRequest(...))
    """

    def __init__(
        self,
        engine: ExecutionEngine,
        active_executions: ActiveExecutions,
        settings: Settings,
    ):
        self.engine = engine
        self.active_executions = active_executions
        self.database_path = settings.database_path
        self.blobs_dir = settings.blobs_dir
        self.writer = OutputWriter(self.blobs_dir)

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    def execute_udf(self, request: ExecuteUdfRequest) -> ExecuteUdfResult:
        """
        Execute a UDF and persist the outcome.

        Args:
            request: UDF id, well, workspace, parameters and save_result flag

        Returns:
            ExecuteUdfResult. A failed or cancelled run is a normal result
            with success=False, not an exception.

        Raises:
            DatabaseError, StorageIOError, SerializationError: the output or
                the record could not be stored. The transaction is rolled
                back, so nothing of the run is kept.
        """
        execution_id = uuid4()
        token, progress = self.active_executions.register(execution_id, request.udf_id)
        logger.info(f"Starting execution {execution_id}: {request.udf_id} on well {request.well_id}")

        try:
            with get_connection(self.database_path) as conn:
                loader = SqliteCurveLoader(conn, self.blobs_dir)
                result = self.engine.execute(
                    request.udf_id,
                    request.well_id,
                    request.workspace_id,
                    request.parameters,
                    loader,
                    execution_id=execution_id,
                    cancel_token=token,
                    progress=progress,
                )

                if result.success and request.save_result:
                    self.writer.commit_execution(
                        conn, request.well_id, result.output.curve_data, result.record
                    )

                save_execution_record(conn, result.record)
        finally:
            self.active_executions.unregister(execution_id)

        return self._to_result(result)

    def _to_result(self, result: ExecutionResult) -> ExecuteUdfResult:
        record = result.record
        response = ExecuteUdfResult(
            execution_id=record.id,
            udf_id=record.udf_id,
            success=result.success,
            status=record.status,
            output_curve_id=record.output_curve_id,
            error=result.error,
            duration_ms=result.duration_ms,
        )

        if result.output is not None:
            curve = result.output.curve_data
            response.output_mnemonic = curve.mnemonic
            response.output_unit = curve.unit
            response.output_curve_type = curve.curve_type.value
            response.output_data = [
                CurveDataPoint(depth=float(depth), value=value)
                for depth, value in zip(curve.depths, curve.values_as_list())
            ]
            response.warnings = list(result.output.warnings)
            response.metadata = dict(result.output.metadata)

        return response

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate_parameters(self, udf_id: str, parameters: dict[str, Any]) -> ValidateParametersResponse:
        """Check parameters without loading data. Raises UdfNotFoundError."""
        errors = self.engine.validate_only(udf_id, parameters)
        return ValidateParametersResponse(
            udf_id=udf_id,
            valid=not errors,
            errors=[ValidationIssue(**error.to_dict()) for error in errors],
        )

    # -------------------------------------------------------------------------
    # Executions
    # -------------------------------------------------------------------------

    def list_executions(self) -> list[ExecutionProgress]:
        """Currently running executions."""
        return [ExecutionProgress(**entry) for entry in self.active_executions.list()]

    def list_recent_records(self, limit: int = 50, udf_id: str | None = None) -> list[ExecutionRecordResponse]:
        with get_connection(self.database_path) as conn:
            records = list_execution_records(conn, limit=limit, udf_id=udf_id)
        return [ExecutionRecordResponse(**record.to_dict()) for record in records]

    def get_execution(self, execution_id: UUID) -> ExecutionStatusResponse:
        """
        Progress of a running execution, or the stored record of a finished one.

        Raises:
            ExecutionNotFoundError: the id is neither running nor recorded
        """
        snapshot = self.active_executions.progress(execution_id)
        if snapshot is not None:
            return ExecutionStatusResponse(
                execution_id=execution_id,
                active=True,
                progress=ExecutionProgress(**snapshot),
            )

        with get_connection(self.database_path) as conn:
            record = get_execution_record(conn, execution_id)
        if record is None:
            raise ExecutionNotFoundError(str(execution_id))

        return ExecutionStatusResponse(
            execution_id=execution_id,
            active=False,
            record=ExecutionRecordResponse(**record.to_dict()),
        )

    def cancel_execution(self, execution_id: UUID) -> None:
        """Raises ExecutionNotActiveError if the execution is not running."""
        if not self.active_executions.cancel(execution_id):
            raise ExecutionNotActiveError(str(execution_id))

    # -------------------------------------------------------------------------
    # Provenance
    # -------------------------------------------------------------------------

    def get_curve_provenance(self, curve_id: UUID) -> CurveProvenance:
        """
        Provenance of a curve.

        Raises:
            CurveNotFoundError: no curve with this id
        """
        with get_connection(self.database_path) as conn:
            provenance = get_curve_provenance(conn, curve_id)

        if provenance is None:
            return CurveProvenance(curve_id=curve_id, is_derived=False)

        return CurveProvenance(
            curve_id=curve_id,
            is_derived=True,
            execution=ExecutionRecordResponse(**provenance),
        )
