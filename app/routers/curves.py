# =============================================================================
# app/routers/curves.py - Curve Provenance Endpoints
# =============================================================================

from uuid import UUID

from fastapi import APIRouter

from app.dependencies import ExecutionServiceDep
from core.models.compute import CurveProvenance

router = APIRouter()


@router.get("/{curve_id}/provenance", response_model=CurveProvenance)
def get_curve_provenance(curve_id: UUID, service: ExecutionServiceDep):
    """
    How a curve was produced.

    Derived curves return the execution record, with each input curve's
    mnemonic. Imported curves return is_derived=false. Raises 404
    CURVE_NOT_FOUND for unknown ids.
    """
    return service.get_curve_provenance(curve_id)
