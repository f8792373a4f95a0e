# =============================================================================
# compute - Well Log UDF Compute Engine
# =============================================================================
# A plugin host for petrophysical transforms over well-log curves.
#
# Key principles:
# - Providers register typed UDFs into a registry built once at startup
# - Every parameter is declared, validated and defaulted before any data loads
# - Input curves are immutable; depth arrays are shared between curves
# - Every run produces exactly one ExecutionRecord (provenance)
# - Outputs are persisted content-addressed, never overwritten
#
# Architecture:
#   Caller → ExecutionEngine → Udf (via UdfRegistry) → UdfOutput → OutputWriter
#
# Usage:
#   from compute import ExecutionEngine, UdfRegistry, register_builtin_providers
#
#   registry = register_builtin_providers(UdfRegistry()).freeze()
#   engine = ExecutionEngine(registry)
#   result = engine.execute("core:moving_average", well_id, workspace_id,
#                           {"input_curve": str(curve_id), "window_size": 5},
#                           loader)
# =============================================================================

from compute.context import (
    CancellationToken,
    ExecutionContext,
    ExecutionContextBuilder,
    ProgressState,
)
from compute.engine import CurveLoader, ExecutionEngine, ExecutionResult
from compute.errors import UdfError, ValidationError
from compute.output_writer import CurveStatistics, OutputWriter, RegisteredOutput
from compute.parameters import (
    BooleanParameter,
    ChoiceParameter,
    CurveParameter,
    IntegerParameter,
    NumericParameter,
    ParameterDefinition,
    ParameterValue,
    ParameterValues,
)
from compute.providers import register_builtin_providers
from compute.registry import ProviderInfo, UdfInfo, UdfRegistry
from compute.types import (
    CurveData,
    CurveDataType,
    CurveMetadataInfo,
    ExecutionRecord,
    ExecutionStatus,
    InputReference,
    OutputCurveData,
    UdfMetadata,
    UdfOutput,
)
from compute.udf import Udf, UdfProvider

__version__ = "0.1.0"

__all__ = [
    # Types
    "CurveData",
    "CurveDataType",
    "CurveMetadataInfo",
    "ExecutionRecord",
    "ExecutionStatus",
    "InputReference",
    "OutputCurveData",
    "UdfMetadata",
    "UdfOutput",
    # Parameters
    "ParameterValue",
    "ParameterValues",
    "ParameterDefinition",
    "CurveParameter",
    "NumericParameter",
    "IntegerParameter",
    "BooleanParameter",
    "ChoiceParameter",
    # Context
    "CancellationToken",
    "ProgressState",
    "ExecutionContext",
    "ExecutionContextBuilder",
    # Plugins
    "Udf",
    "UdfProvider",
    "UdfRegistry",
    "ProviderInfo",
    "UdfInfo",
    "register_builtin_providers",
    # Engine
    "CurveLoader",
    "ExecutionEngine",
    "ExecutionResult",
    # Output
    "OutputWriter",
    "CurveStatistics",
    "RegisteredOutput",
    # Errors
    "UdfError",
    "ValidationError",
]
