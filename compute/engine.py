# =============================================================================
# compute/engine.py - Execution Engine
# =============================================================================
# Runs a single UDF through a strictly ordered, fail-fast pipeline:
#
#   1. resolve       - look up the UDF by composite id
#   2. parameters    - apply defaults, validate every parameter
#   3. curves        - load bound curves, check types and constraints
#   4. depths        - all curves must share one depth sampling
#   5. udf checks    - Udf.check_parameters()
#   6. pre-check     - Udf.can_execute() then Udf.prepare()
#   7. execute       - Udf.execute()
#   8. postprocess   - Udf.postprocess()
#
# execute() never raises. Every call produces exactly one ExecutionRecord
# with a terminal status; errors end up in record.error_message.
# =============================================================================

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Mapping
from uuid import UUID, uuid4

from compute.context import CancellationToken, ExecutionContext, ProgressState
from compute.errors import (
    CurveLoadError,
    CurveTypeMismatchError,
    ExecutionCancelledError,
    ExecutionFailedError,
    ParameterValidationError,
    PostProcessFailedError,
    PreCheckFailedError,
    UdfError,
    UdfNotFoundError,
    ValidationError,
)
from compute.parameters import CurveParameter, ParameterDefinition, ParameterValues
from compute.registry import UdfRegistry
from compute.types import (
    CurveData,
    CurveMetadataInfo,
    ExecutionRecord,
    ExecutionStatus,
    UdfOutput,
)
from compute.udf import Udf

logger = logging.getLogger(__name__)


# =============================================================================
# Curve Loader Interface
# =============================================================================

class CurveLoader(ABC):
    """
    Read access to the host application's curve storage.

    Implementations raise CurveLoadError when a curve is missing or its
    data cannot be decoded. A loader instance is used by one execution at a
    time; implementations may keep per-instance caches without locking.
    """

    @abstractmethod
    def load_curve(self, curve_id: UUID) -> CurveData:
        pass

    @abstractmethod
    def load_curve_metadata(self, curve_id: UUID) -> CurveMetadataInfo:
        pass


# =============================================================================
# Result
# =============================================================================

@dataclass
class ExecutionResult:
    """
    Outcome of ExecutionEngine.execute().

    output is set only when record.status is COMPLETED.
    """
    record: ExecutionRecord
    output: UdfOutput | None = None
    duration_ms: float = 0.0

    @property
    def success(self) -> bool:
        return self.record.status is ExecutionStatus.COMPLETED

    @property
    def error(self) -> str | None:
        return self.record.error_message


# =============================================================================
# Engine
# =============================================================================

class ExecutionEngine:
    """
    Executes UDFs from a frozen registry.

    Usage:
        engine = ExecutionEngine(registry, engine_version="0.1.0")
        result = engine.execute(
            "petro:vshale_linear",
            well_id,
            workspace_id,
            {"gr_curve": str(gr_id), "gr_min": 30.0, "gr_max": 120.0},
            loader,
        )

        if result.success:
            vsh = result.output.curve_data
        else:
            print(result.record.error_message)
    """

    def __init__(self, registry: UdfRegistry, engine_version: str = "0.1.0"):
        self.registry = registry
        self.engine_version = engine_version

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    def execute(
        self,
        udf_id: str,
        well_id: UUID,
        workspace_id: UUID,
        parameters: Mapping[str, Any],
        curve_loader: CurveLoader,
        execution_id: UUID | None = None,
        cancel_token: CancellationToken | None = None,
        progress: ProgressState | None = None,
    ) -> ExecutionResult:
        """
        Execute a UDF.

        Args:
            udf_id: Composite id, "provider:udf"
            well_id: Well the curves belong to
            workspace_id: Workspace the run is attributed to
            parameters: Raw JSON values or ParameterValue objects by name
            curve_loader: Source of input curves
            execution_id: Id for the ExecutionRecord (generated if omitted)
            cancel_token: Shared token to request cancellation out-of-band
            progress: Shared progress state for out-of-band polling

        Returns:
            ExecutionResult with the finished record and, on success, the output
        """
        start_time = time.time()

        raw_values = ParameterValues(parameters)
        token = cancel_token or CancellationToken()
        progress = progress or ProgressState()

        record = ExecutionRecord(
            id=execution_id or uuid4(),
            udf_id=udf_id,
            udf_version="",
            engine_version=self.engine_version,
            parameters=raw_values.to_json(),
        )

        context: ExecutionContext | None = None
        output: UdfOutput | None = None

        try:
            # Stage 1: resolve
            udf = self.get_udf(udf_id)
            record.udf_version = udf.metadata().version
            definitions = udf.parameter_definitions()

            # Stage 2: parameters
            progress.update(10, "Validating parameters")
            resolved, errors = self._validate_parameters(definitions, raw_values)
            record.parameters = resolved.to_json()
            if errors:
                raise ParameterValidationError(errors)
            token.check_cancelled()

            # Stage 3: curves
            progress.update(30, "Loading curves")
            context = ExecutionContext(
                well_id, workspace_id, resolved, cancel_token=token, progress=progress
            )
            self._load_curves(definitions, context, curve_loader)
            token.check_cancelled()

            # Stages 4-6: checks
            progress.update(50, "Checking inputs")
            context.validate_depth_compatibility()

            udf_errors = udf.check_parameters(context)
            if udf_errors:
                raise ParameterValidationError(udf_errors)

            if not udf.can_execute(context):
                raise PreCheckFailedError("UDF cannot execute in current context")
            if not udf.prepare(context):
                raise PreCheckFailedError("UDF declined to run during prepare")
            token.check_cancelled()

            # Stage 7: execute
            progress.update(60, "Executing")
            output = self._run_udf(udf, context)
            token.check_cancelled()

            # Stage 8: postprocess
            progress.update(90, "Post-processing")
            self._postprocess(udf, output, context)

        except ExecutionCancelledError as e:
            output = None
            record.finish(ExecutionStatus.CANCELLED, str(e))
            logger.info(f"Execution {record.id} ({udf_id}) cancelled")
        except UdfError as e:
            output = None
            record.finish(ExecutionStatus.FAILED, str(e))
            logger.warning(f"Execution {record.id} ({udf_id}) failed: {e}")
        except Exception as e:
            # Bugs in hooks like check_parameters or prepare
            output = None
            error = ExecutionFailedError(str(e))
            record.finish(ExecutionStatus.FAILED, str(error))
            logger.exception(f"Execution {record.id} ({udf_id}) raised unexpectedly")
        else:
            record.finish(ExecutionStatus.COMPLETED)
            progress.update(100, "Completed")
        finally:
            if context is not None:
                record.inputs = context.input_refs

        duration_ms = (time.time() - start_time) * 1000
        if record.status is ExecutionStatus.COMPLETED:
            logger.info(
                f"Execution {record.id} ({udf_id}) completed in {duration_ms:.1f}ms, "
                f"{len(output.curve_data)} samples"
            )

        return ExecutionResult(record=record, output=output, duration_ms=duration_ms)

    def validate_only(self, udf_id: str, parameters: Mapping[str, Any]) -> list[ValidationError]:
        """
        Run parameter validation alone, without loading any data.

        Raises:
            UdfNotFoundError: unknown udf_id
        """
        udf = self.get_udf(udf_id)
        _, errors = self._validate_parameters(
            udf.parameter_definitions(), ParameterValues(parameters)
        )
        return errors

    def get_parameter_definitions(self, udf_id: str) -> list[dict[str, Any]]:
        """UI descriptors for a UDF's parameters."""
        udf = self.get_udf(udf_id)
        return [d.to_dict() for d in udf.parameter_definitions()]

    def get_udf(self, udf_id: str) -> Udf:
        udf = self.registry.get_udf(udf_id)
        if udf is None:
            raise UdfNotFoundError(udf_id)
        return udf

    # -------------------------------------------------------------------------
    # Stages
    # -------------------------------------------------------------------------

    def _validate_parameters(
        self,
        definitions: list[ParameterDefinition],
        values: ParameterValues,
    ) -> tuple[ParameterValues, list[ValidationError]]:
        """
        Apply defaults and validate every declared parameter.

        All errors are collected. Undeclared values are passed through
        untouched.
        """
        resolved = dict(values)
        errors = []
        for definition in definitions:
            value = definition.resolve(values.get(definition.name))
            error = definition.validate(value)
            if error is not None:
                errors.append(error)
            resolved[definition.name] = value
        return ParameterValues(resolved), errors

    def _load_curves(
        self,
        definitions: list[ParameterDefinition],
        context: ExecutionContext,
        curve_loader: CurveLoader,
    ) -> None:
        """Load every bound curve parameter in declaration order."""
        for definition in definitions:
            if not isinstance(definition, CurveParameter):
                continue
            curve_id = context.parameters.get_curve(definition.name)
            if curve_id is None:
                continue

            try:
                curve = curve_loader.load_curve(curve_id)
            except UdfError:
                raise
            except Exception as e:
                raise CurveLoadError(f"{curve_id}: {e}") from e

            if not definition.is_type_allowed(curve.curve_type):
                raise CurveTypeMismatchError(
                    expected=definition.allowed_types_display(),
                    actual=curve.curve_type.display_name,
                    parameter=definition.name,
                )

            errors = definition.check_curve(curve)
            if errors:
                raise ParameterValidationError(errors)

            context.add_curve(definition.name, curve)

    def _run_udf(self, udf: Udf, context: ExecutionContext) -> UdfOutput:
        try:
            return udf.execute(context)
        except UdfError:
            raise
        except Exception as e:
            raise ExecutionFailedError(str(e)) from e

    def _postprocess(self, udf: Udf, output: UdfOutput, context: ExecutionContext) -> None:
        try:
            udf.postprocess(output, context)
        except ExecutionCancelledError:
            raise
        except Exception as e:
            raise PostProcessFailedError(str(e)) from e
