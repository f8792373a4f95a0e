# =============================================================================
# compute/errors.py - Error Taxonomy
# =============================================================================
# All errors raised by the compute engine derive from UdfError.
#
# Two families matter to callers:
# - Validation errors (ParameterValidationError, CurveTypeMismatchError) are
#   recoverable and carry structured detail for the UI to show next to the
#   offending field.
# - Execution errors abort only the current call. The engine captures them
#   into the ExecutionRecord instead of letting them escape.
#
# Errors follow the same shape as the API exceptions: a machine-readable
# code, a human message, and an optional suggestion telling the user HOW to
# fix the problem.
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


# =============================================================================
# Structured Validation Error
# =============================================================================

@dataclass
class ValidationError:
    """
    A single validation failure tied to a parameter or input.

    Returned by ParameterDefinition.validate() and Udf.check_parameters().
    These are data, not exceptions: the engine collects them into a list and
    raises ParameterValidationError once.

    Example:
        ValidationError("gr_max", "GR Max must be greater than GR Min")
        ValidationError("window_size", "Value must be >= 1").with_suggestion(
            "Enter a value of 1 or greater"
        )
    """
    field: str
    message: str
    suggestion: str | None = None

    def with_suggestion(self, suggestion: str) -> "ValidationError":
        """Attach a suggested fix and return self for chaining."""
        self.suggestion = suggestion
        return self

    def to_dict(self) -> dict[str, Any]:
        return {
            "field": self.field,
            "message": self.message,
            "suggestion": self.suggestion,
        }

    def __str__(self) -> str:
        text = f"{self.field}: {self.message}"
        if self.suggestion:
            text += f" (suggestion: {self.suggestion})"
        return text


# =============================================================================
# Base Error
# =============================================================================

class UdfError(Exception):
    """
    Base class for every compute engine error.

    Attributes:
        message: Human-readable error message
        code: Machine-readable error code
        suggestion: How to fix the problem (optional)
        details: Additional context for debugging and API responses
    """

    code = "UDF_ERROR"

    def __init__(
        self,
        message: str,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for API responses."""
        result: dict[str, Any] = {
            "detail": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Registry Errors
# =============================================================================

class ProviderNotAvailableError(UdfError):
    """Raised when a provider cannot be registered (missing dependencies)."""

    code = "PROVIDER_NOT_AVAILABLE"

    def __init__(self, reason: str, **kwargs: Any):
        super().__init__(f"Provider not available: {reason}", **kwargs)


class DuplicateProviderError(ProviderNotAvailableError):
    """Raised when a provider id is registered twice."""

    def __init__(self, provider_id: str):
        # Skips the "Provider not available" prefix of the parent message
        UdfError.__init__(
            self,
            f"Provider '{provider_id}' is already registered",
            suggestion="Give the provider a unique id",
            details={"provider_id": provider_id},
        )
        self.provider_id = provider_id


class DuplicateUdfError(ProviderNotAvailableError):
    """Raised when two UDFs resolve to the same composite id."""

    def __init__(self, full_id: str):
        UdfError.__init__(
            self,
            f"UDF '{full_id}' is already registered",
            suggestion="UDF ids must be unique within a provider",
            details={"udf_id": full_id},
        )
        self.full_id = full_id


class UdfNotFoundError(UdfError):
    """Raised when a composite UDF id is not in the registry."""

    code = "UDF_NOT_FOUND"

    def __init__(self, udf_id: str):
        super().__init__(
            f"UDF not found: {udf_id}",
            suggestion="Use the 'provider:udf_id' form, e.g. 'petro:vshale_linear'",
            details={"udf_id": udf_id},
        )
        self.udf_id = udf_id


# =============================================================================
# Validation Errors
# =============================================================================

class ParameterValidationError(UdfError):
    """
    Raised when one or more parameters fail validation.

    Carries the full list of ValidationError items so the UI can highlight
    every bad field at once.
    """

    code = "PARAMETER_VALIDATION"

    def __init__(self, errors: list[ValidationError] | str):
        if isinstance(errors, str):
            errors = [ValidationError("parameters", errors)]
        self.errors = list(errors)
        joined = "; ".join(str(e) for e in self.errors)
        super().__init__(
            f"Parameter validation failed: {joined}",
            details={"errors": [e.to_dict() for e in self.errors]},
        )


class CurveTypeMismatchError(UdfError):
    """Raised when a bound curve's classification is not allowed."""

    code = "CURVE_TYPE_MISMATCH"

    def __init__(self, expected: str, actual: str, parameter: str | None = None):
        super().__init__(
            f"Curve type mismatch: expected {expected}, got {actual}",
            suggestion=f"Select a curve of type: {expected}",
            details={"expected": expected, "actual": actual, "parameter": parameter},
        )
        self.expected = expected
        self.actual = actual
        self.parameter = parameter


class MissingCurveError(UdfError):
    """Raised when a UDF asks for a curve that was never bound."""

    code = "MISSING_CURVE"

    def __init__(self, param_name: str):
        super().__init__(
            f"Required curve not provided: {param_name}",
            details={"parameter": param_name},
        )
        self.param_name = param_name


# =============================================================================
# Data Errors
# =============================================================================

class CurveLoadError(UdfError):
    """Raised by a CurveLoader when curve data cannot be read."""

    code = "CURVE_LOAD_ERROR"

    def __init__(self, reason: str, **kwargs: Any):
        super().__init__(f"Failed to load curve data: {reason}", **kwargs)


class CurveNotFoundError(CurveLoadError):
    """Raised when a curve id does not exist in the store."""

    code = "CURVE_NOT_FOUND"

    def __init__(self, curve_id: Any):
        super().__init__(
            f"Curve not found: {curve_id}",
            suggestion="Check that the curve id belongs to a loaded well",
            details={"curve_id": str(curve_id)},
        )
        self.curve_id = curve_id


class IncompatibleDataError(UdfError):
    """Raised when input curves disagree on depth sampling."""

    code = "INCOMPATIBLE_DATA"

    def __init__(self, reason: str, **kwargs: Any):
        super().__init__(f"Incompatible curve data: {reason}", **kwargs)


class NumericError(UdfError):
    """Raised on overflow, underflow or NaN in a computation."""

    code = "NUMERIC_ERROR"

    def __init__(self, reason: str, **kwargs: Any):
        super().__init__(f"Numeric error: {reason}", **kwargs)


# =============================================================================
# Execution Errors
# =============================================================================

class ExecutionFailedError(UdfError):
    """Raised (or wrapped) when a UDF's execute() fails."""

    code = "EXECUTION_FAILED"

    def __init__(self, reason: str, **kwargs: Any):
        super().__init__(f"Execution failed: {reason}", **kwargs)


class PreCheckFailedError(UdfError):
    """Raised when can_execute() or prepare() refuses to run."""

    code = "PRE_CHECK_FAILED"

    def __init__(self, reason: str, **kwargs: Any):
        super().__init__(f"Pre-execution check failed: {reason}", **kwargs)


class PostProcessFailedError(UdfError):
    """Raised when postprocess() fails. The output is discarded."""

    code = "POST_PROCESS_FAILED"

    def __init__(self, reason: str, **kwargs: Any):
        super().__init__(f"Post-processing failed: {reason}", **kwargs)


class ExecutionCancelledError(UdfError):
    """Raised by CancellationToken.check_cancelled() once cancel() was called."""

    code = "CANCELLED"

    def __init__(self, reason: str = "Execution was cancelled"):
        super().__init__(reason)


# =============================================================================
# Storage Errors
# =============================================================================

class DatabaseError(UdfError):
    """Raised when the local database rejects a read or write."""

    code = "DATABASE_ERROR"

    def __init__(self, reason: str, **kwargs: Any):
        super().__init__(f"Database error: {reason}", **kwargs)


class StorageIOError(UdfError):
    """Raised when a blob cannot be written or read from disk."""

    code = "IO_ERROR"

    def __init__(self, reason: str, **kwargs: Any):
        super().__init__(f"I/O error: {reason}", **kwargs)


class SerializationError(UdfError):
    """Raised when data cannot be encoded to or decoded from storage format."""

    code = "SERIALIZATION_ERROR"

    def __init__(self, reason: str, **kwargs: Any):
        super().__init__(f"Serialization error: {reason}", **kwargs)
