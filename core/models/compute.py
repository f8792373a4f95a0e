# =============================================================================
# core/models/compute.py - Compute API Schemas
# =============================================================================
# These models define the API contract for UDF operations:
# - ExecuteUdfRequest / ExecuteUdfResult: running a UDF
# - ExecutionProgress / ExecutionStatusResponse: observing a run
# - ValidationIssue: one parameter problem, for inline UI feedback
# - ProviderSummary / UdfSummary / UdfParameters: catalogue browsing
# - CurveProvenance: how a derived curve was produced
# =============================================================================

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from compute.types import ExecutionStatus


# =============================================================================
# Execution
# =============================================================================

class ExecuteUdfRequest(BaseModel):
    """
    Request to run a UDF.

    Example:
        {
            "udf_id": "petro:vshale_linear",
            "well_id": "550e8400-e29b-41d4-a716-446655440000",
            "workspace_id": "660e8400-e29b-41d4-a716-446655440001",
            "parameters": {"gr_curve": "770e8400-...", "gr_min": 30, "gr_max": 120},
            "save_result": true
        }
    """

    udf_id: str = Field(
        ...,
        min_length=3,
        description="Composite UDF id, 'provider:udf'"
    )

    well_id: UUID = Field(
        ...,
        description="Well whose curves are used"
    )

    workspace_id: UUID = Field(
        ...,
        description="Workspace the execution belongs to"
    )

    parameters: dict[str, Any] = Field(
        default_factory=dict,
        description="Parameter values by name. Curve parameters take curve UUIDs."
    )

    # When false the output is returned but not persisted
    save_result: bool = Field(
        default=True,
        description="Persist the output as a derived curve"
    )


class CurveDataPoint(BaseModel):
    """One output sample. value is null where the input was null."""
    depth: float
    value: float | None = None


class ExecuteUdfResult(BaseModel):
    """
    Result of a UDF execution.

    A failed run still returns 200 with success=false; the error is in
    `error` and the provenance record is stored either way.
    """

    execution_id: UUID = Field(..., description="Id of the execution record")
    udf_id: str = Field(..., description="UDF that was run")
    success: bool = Field(..., description="True when status is completed")
    status: ExecutionStatus = Field(..., description="Terminal execution status")

    output_curve_id: UUID | None = Field(
        default=None,
        description="Id of the saved derived curve (when save_result was true)"
    )
    output_mnemonic: str | None = None
    output_unit: str | None = None
    output_curve_type: str | None = None
    output_data: list[CurveDataPoint] = Field(
        default_factory=list,
        description="Output samples, for immediate display"
    )

    warnings: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    error: str | None = Field(default=None, description="Error message on failure")
    duration_ms: float = Field(default=0.0, description="Engine wall time")


class ExecutionProgress(BaseModel):
    """Live progress of a running execution."""
    execution_id: UUID
    udf_id: str | None = None
    progress: int = Field(..., ge=0, le=100, description="Percent complete")
    message: str | None = None
    is_cancelled: bool = False


class InputReferenceDetail(BaseModel):
    """Input curve used by an execution."""
    curve_id: UUID
    version: int
    content_hash: str
    mnemonic: str | None = Field(
        default=None,
        description="Input curve mnemonic (provenance lookups only)"
    )


class ExecutionRecordResponse(BaseModel):
    """Stored provenance record of one execution."""
    id: UUID
    udf_id: str
    udf_version: str
    inputs: list[InputReferenceDetail] = Field(default_factory=list)
    parameters: dict[str, Any] = Field(default_factory=dict)
    output_curve_id: UUID | None = None
    output_content_hash: str | None = None
    started_at: datetime
    completed_at: datetime | None = None
    engine_version: str
    status: ExecutionStatus | None = None
    error_message: str | None = None


class ExecutionStatusResponse(BaseModel):
    """
    Status of an execution id.

    While the execution runs, `progress` is set. Once it has finished,
    `record` holds the stored provenance record.
    """
    execution_id: UUID
    active: bool
    progress: ExecutionProgress | None = None
    record: ExecutionRecordResponse | None = None


class CancelExecutionResponse(BaseModel):
    """Acknowledgement of a cancellation request."""
    execution_id: UUID
    cancelled: bool


# =============================================================================
# Validation
# =============================================================================

class ValidationIssue(BaseModel):
    """One parameter problem, shown next to the offending field."""
    field: str
    message: str
    suggestion: str | None = None


class ValidateParametersRequest(BaseModel):
    """Parameters to validate without running the UDF."""
    parameters: dict[str, Any] = Field(default_factory=dict)


class ValidateParametersResponse(BaseModel):
    """Outcome of a validation-only request."""
    udf_id: str
    valid: bool
    errors: list[ValidationIssue] = Field(default_factory=list)


# =============================================================================
# Catalogue
# =============================================================================

class ProviderSummary(BaseModel):
    """Registered provider."""
    id: str
    name: str
    version: str
    description: str
    udf_count: int


class UdfSummary(BaseModel):
    """Registered UDF."""
    full_id: str = Field(..., description="Composite id, 'provider:udf'")
    provider_id: str
    name: str
    category: str
    description: str
    version: str
    tags: list[str] = Field(default_factory=list)


class UdfParameters(BaseModel):
    """Parameter descriptors for rendering a UDF's input form."""
    udf_id: str
    name: str
    documentation: str | None = None
    parameters: list[dict[str, Any]] = Field(
        default_factory=list,
        description="One descriptor per parameter (name, label, type, required, ...)"
    )


# =============================================================================
# Provenance
# =============================================================================

class CurveProvenance(BaseModel):
    """
    How a curve was produced.

    execution is null for curves that were imported rather than computed.
    """
    curve_id: UUID
    is_derived: bool
    execution: ExecutionRecordResponse | None = None
