# =============================================================================
# tests/test_services.py - Service Layer Tests
# =============================================================================
# Tests for the running-execution table and ExecutionService against a
# temporary local store.
# =============================================================================

from uuid import uuid4

import pytest

from app.config import Settings
from app.exceptions import ExecutionNotActiveError, ExecutionNotFoundError
from compute.context import ExecutionContext
from compute.engine import ExecutionEngine
from compute.parameters import CurveParameter
from compute.providers import register_builtin_providers
from compute.registry import UdfRegistry
from compute.types import CurveDataType, ExecutionStatus, OutputCurveData, UdfMetadata, UdfOutput
from compute.udf import Udf, UdfProvider
from core.models.compute import ExecuteUdfRequest
from core.services import ActiveExecutions, ExecutionService
from lib.curve_store import import_curve
from lib.database import get_connection, init_schema


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def store_settings(tmp_path):
    settings = Settings(DATA_DIR=tmp_path / "data")
    with get_connection(settings.database_path) as conn:
        init_schema(conn)
    return settings


@pytest.fixture
def service(engine, store_settings):
    return ExecutionService(engine, ActiveExecutions(), store_settings)


@pytest.fixture
def gr_id(store_settings, well_id):
    with get_connection(store_settings.database_path) as conn:
        return import_curve(
            conn,
            store_settings.blobs_dir,
            well_id,
            "GR",
            [1000.0, 1000.5, 1001.0, 1001.5],
            [30.0, 75.0, None, 120.0],
            unit="gAPI",
        )


class SelfCancellingUdf(Udf):
    """Cancels every running execution from inside execute()."""

    def __init__(self, active: ActiveExecutions):
        self.active = active

    @property
    def id(self) -> str:
        return "self_cancel"

    def metadata(self) -> UdfMetadata:
        return UdfMetadata(name="Self Cancel", category="Test", description="", version="1.0.0")

    def parameter_definitions(self):
        return [CurveParameter.required_curve("input_curve", "Input")]

    def execute(self, context: ExecutionContext) -> UdfOutput:
        for entry in self.active.list():
            self.active.cancel(entry["execution_id"])
        curve = context.require_curve("input_curve")
        return UdfOutput(
            OutputCurveData("X", CurveDataType.COMPUTED, "", curve.depths, curve.values)
        )


class SelfCancellingProvider(UdfProvider):
    def __init__(self, active: ActiveExecutions):
        self.active = active

    @property
    def id(self) -> str:
        return "test"

    @property
    def name(self) -> str:
        return "Test"

    def load_udfs(self):
        return [SelfCancellingUdf(self.active)]


# =============================================================================
# ActiveExecutions Tests
# =============================================================================

class TestActiveExecutions:
    """Tests for the running-execution table."""

    def test_register_and_progress(self):
        active = ActiveExecutions()
        execution_id = uuid4()
        token, progress = active.register(execution_id, "core:moving_average")
        progress.update(30, "Loading curves")

        snapshot = active.progress(execution_id)
        assert snapshot["progress"] == 30
        assert snapshot["message"] == "Loading curves"
        assert snapshot["udf_id"] == "core:moving_average"
        assert snapshot["is_cancelled"] is False
        assert execution_id in active

    def test_cancel_sets_shared_token(self):
        active = ActiveExecutions()
        execution_id = uuid4()
        token, _ = active.register(execution_id, "core:moving_average")
        assert active.cancel(execution_id) is True
        assert token.is_cancelled()

    def test_cancel_unknown(self):
        assert ActiveExecutions().cancel(uuid4()) is False

    def test_unregister(self):
        active = ActiveExecutions()
        execution_id = uuid4()
        active.register(execution_id, "a:b")
        active.unregister(execution_id)
        assert active.progress(execution_id) is None
        assert len(active) == 0
        active.unregister(execution_id)

    def test_double_register_rejected(self):
        active = ActiveExecutions()
        execution_id = uuid4()
        active.register(execution_id, "a:b")
        with pytest.raises(ValueError):
            active.register(execution_id, "a:b")


# =============================================================================
# ExecutionService Tests
# =============================================================================

class TestExecutionService:
    """Tests for execute_udf and the read paths."""

    def test_execute_saves_curve_and_record(self, service, well_id, workspace_id, gr_id):
        result = service.execute_udf(ExecuteUdfRequest(
            udf_id="petro:vshale_linear",
            well_id=well_id,
            workspace_id=workspace_id,
            parameters={"gr_curve": str(gr_id), "gr_min": 30, "gr_max": 120},
        ))

        assert result.success
        assert result.status is ExecutionStatus.COMPLETED
        assert result.output_mnemonic == "VSH_LIN"
        assert result.output_curve_id is not None
        assert [p.value for p in result.output_data] == [0.0, 0.5, None, 1.0]
        assert len(service.active_executions) == 0

        status = service.get_execution(result.execution_id)
        assert status.active is False
        assert status.record.output_curve_id == result.output_curve_id
        assert status.record.inputs[0].curve_id == gr_id

    def test_execute_without_saving(self, service, well_id, workspace_id, gr_id):
        result = service.execute_udf(ExecuteUdfRequest(
            udf_id="core:moving_average",
            well_id=well_id,
            workspace_id=workspace_id,
            parameters={"input_curve": str(gr_id), "window_size": 3},
            save_result=False,
        ))
        assert result.success
        assert result.output_curve_id is None
        assert len(result.output_data) == 4

        record = service.get_execution(result.execution_id).record
        assert record.status is ExecutionStatus.COMPLETED
        assert record.output_curve_id is None

    def test_failed_execution_is_recorded(self, service, well_id, workspace_id, gr_id):
        result = service.execute_udf(ExecuteUdfRequest(
            udf_id="petro:vshale_linear",
            well_id=well_id,
            workspace_id=workspace_id,
            parameters={"gr_curve": str(gr_id), "gr_min": 120, "gr_max": 30},
        ))
        assert not result.success
        assert result.status is ExecutionStatus.FAILED
        assert result.output_data == []

        record = service.get_execution(result.execution_id).record
        assert record.status is ExecutionStatus.FAILED
        assert "GR Max must be greater than GR Min" in record.error_message

    def test_cancelled_execution_is_recorded(self, store_settings, well_id, workspace_id, gr_id):
        active = ActiveExecutions()
        registry = UdfRegistry()
        registry.register_provider(SelfCancellingProvider(active))
        service = ExecutionService(ExecutionEngine(registry.freeze()), active, store_settings)

        result = service.execute_udf(ExecuteUdfRequest(
            udf_id="test:self_cancel",
            well_id=well_id,
            workspace_id=workspace_id,
            parameters={"input_curve": str(gr_id)},
        ))
        assert result.status is ExecutionStatus.CANCELLED
        assert result.output_curve_id is None
        assert service.get_execution(result.execution_id).record.status is ExecutionStatus.CANCELLED

    def test_validate_parameters(self, service):
        response = service.validate_parameters("core:linear_scale", {"in_min": 0})
        assert not response.valid
        assert {e.field for e in response.errors} == {"input_curve", "in_max"}

    def test_unknown_execution(self, service):
        with pytest.raises(ExecutionNotFoundError):
            service.get_execution(uuid4())

    def test_cancel_not_running(self, service):
        with pytest.raises(ExecutionNotActiveError):
            service.cancel_execution(uuid4())

    def test_provenance_of_derived_curve(self, service, well_id, workspace_id, gr_id):
        result = service.execute_udf(ExecuteUdfRequest(
            udf_id="core:linear_scale",
            well_id=well_id,
            workspace_id=workspace_id,
            parameters={"input_curve": str(gr_id), "in_min": 0, "in_max": 150},
        ))
        provenance = service.get_curve_provenance(result.output_curve_id)
        assert provenance.is_derived
        assert provenance.execution.id == result.execution_id
        assert provenance.execution.inputs[0].mnemonic == "GR"

    def test_provenance_of_imported_curve(self, service, gr_id):
        provenance = service.get_curve_provenance(gr_id)
        assert provenance.is_derived is False
        assert provenance.execution is None

    def test_recent_records(self, service, well_id, workspace_id, gr_id):
        for window in (3, 5):
            service.execute_udf(ExecuteUdfRequest(
                udf_id="core:moving_average",
                well_id=well_id,
                workspace_id=workspace_id,
                parameters={"input_curve": str(gr_id), "window_size": window},
                save_result=False,
            ))
        records = service.list_recent_records(udf_id="core:moving_average")
        assert len(records) == 2
        assert {r.parameters["window_size"] for r in records} == {3, 5}
