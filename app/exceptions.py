# =============================================================================
# app/exceptions.py - Exception Handlers
# =============================================================================
# Centralized exception handling for the API.
# Errors tell the caller HOW to fix the problem, not just WHAT failed.
#
# Two sources of errors reach this layer:
# - UdfError subclasses raised by the compute engine and storage adapters
# - ComputeAPIException subclasses for HTTP-only conditions
# Both render as {detail, code, suggestion?, details?}.
# =============================================================================

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

from compute.errors import (
    CurveNotFoundError,
    CurveTypeMismatchError,
    ParameterValidationError,
    UdfError,
    UdfNotFoundError,
)


class ComputeAPIException(Exception):
    """
    Base exception for API-level errors that have no engine counterpart.

    Provides structured error responses with actionable suggestions.
    """

    def __init__(
        self,
        message: str,
        code: str = "COMPUTE_API_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result = {
            "detail": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Execution Exceptions
# =============================================================================

class ExecutionNotFoundError(ComputeAPIException):
    """Raised when an execution id is neither running nor recorded."""

    def __init__(self, execution_id: str):
        super().__init__(
            message=f"Execution not found: {execution_id}",
            code="EXECUTION_NOT_FOUND",
            status_code=404,
            suggestion="Use GET /api/v1/executions to list running executions",
            details={"execution_id": execution_id}
        )


class ExecutionNotActiveError(ComputeAPIException):
    """Raised when cancelling an execution that is not running."""

    def __init__(self, execution_id: str):
        super().__init__(
            message=f"Execution is not running: {execution_id}",
            code="EXECUTION_NOT_ACTIVE",
            status_code=404,
            suggestion="Only running executions can be cancelled",
            details={"execution_id": execution_id}
        )


# =============================================================================
# Status Mapping
# =============================================================================

NOT_FOUND_ERRORS = (UdfNotFoundError, CurveNotFoundError)
VALIDATION_ERRORS = (ParameterValidationError, CurveTypeMismatchError)


def status_code_for(exc: UdfError) -> int:
    """HTTP status for an engine error: 404 not found, 422 validation, else 500."""
    if isinstance(exc, NOT_FOUND_ERRORS):
        return 404
    if isinstance(exc, VALIDATION_ERRORS):
        return 422
    return 500


# =============================================================================
# Exception Handlers
# =============================================================================

async def compute_api_exception_handler(
    request: Request,
    exc: ComputeAPIException
) -> JSONResponse:
    """Convert ComputeAPIException to JSON response."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def udf_error_handler(
    request: Request,
    exc: UdfError
) -> JSONResponse:
    """
    Convert engine errors to JSON responses.

    Returns structured error with:
    - detail: Human-readable message
    - code: Machine-readable error code
    - suggestion: How to fix (if available)
    - details: Additional context (validation errors are listed here)
    """
    return JSONResponse(
        status_code=status_code_for(exc),
        content=exc.to_dict()
    )
