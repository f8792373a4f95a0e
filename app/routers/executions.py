# =============================================================================
# app/routers/executions.py - Execution Tracking Endpoints
# =============================================================================
# - GET  /executions                running executions and their progress
# - GET  /executions/records        recently finished executions
# - GET  /executions/{id}           progress, or the stored record once done
# - POST /executions/{id}/cancel    request cancellation
# =============================================================================

from uuid import UUID

from fastapi import APIRouter, Query

from app.dependencies import ExecutionServiceDep
from core.models.compute import (
    CancelExecutionResponse,
    ExecutionProgress,
    ExecutionRecordResponse,
    ExecutionStatusResponse,
)

router = APIRouter()


@router.get("", response_model=list[ExecutionProgress])
async def list_active_executions(service: ExecutionServiceDep):
    """List executions that are currently running."""
    return service.list_executions()


@router.get("/records", response_model=list[ExecutionRecordResponse])
def list_execution_records(
    service: ExecutionServiceDep,
    limit: int = Query(default=50, ge=1, le=500),
    udf_id: str | None = Query(default=None),
):
    """Most recent execution records first."""
    return service.list_recent_records(limit=limit, udf_id=udf_id)


@router.get("/{execution_id}", response_model=ExecutionStatusResponse)
def get_execution(execution_id: UUID, service: ExecutionServiceDep):
    """
    Status of an execution.

    Raises 404 EXECUTION_NOT_FOUND if the id is neither running nor recorded.
    """
    return service.get_execution(execution_id)


@router.post("/{execution_id}/cancel", response_model=CancelExecutionResponse)
async def cancel_execution(execution_id: UUID, service: ExecutionServiceDep):
    """
    Request cancellation of a running execution.

    The engine stops at its next stage boundary and records the run as
    cancelled. Raises 404 EXECUTION_NOT_ACTIVE if it is not running.
    """
    service.cancel_execution(execution_id)
    return CancelExecutionResponse(execution_id=execution_id, cancelled=True)
