# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains Pydantic schemas for the compute API:
# - compute.py: execution, validation, catalogue and provenance schemas
#
# These models define the "contract" between API and clients.
# =============================================================================

# -----------------------------------------------------------------------------
# Execution Models
# -----------------------------------------------------------------------------
from .compute import (
    CancelExecutionResponse,
    CurveDataPoint,
    ExecuteUdfRequest,
    ExecuteUdfResult,
    ExecutionProgress,
    ExecutionRecordResponse,
    ExecutionStatusResponse,
    InputReferenceDetail,
)

# -----------------------------------------------------------------------------
# Validation Models
# -----------------------------------------------------------------------------
from .compute import (
    ValidateParametersRequest,
    ValidateParametersResponse,
    ValidationIssue,
)

# -----------------------------------------------------------------------------
# Catalogue and Provenance Models
# -----------------------------------------------------------------------------
from .compute import (
    CurveProvenance,
    ProviderSummary,
    UdfParameters,
    UdfSummary,
)

__all__ = [
    # Execution
    "CancelExecutionResponse",
    "CurveDataPoint",
    "ExecuteUdfRequest",
    "ExecuteUdfResult",
    "ExecutionProgress",
    "ExecutionRecordResponse",
    "ExecutionStatusResponse",
    "InputReferenceDetail",
    # Validation
    "ValidateParametersRequest",
    "ValidateParametersResponse",
    "ValidationIssue",
    # Catalogue / Provenance
    "CurveProvenance",
    "ProviderSummary",
    "UdfParameters",
    "UdfSummary",
]
