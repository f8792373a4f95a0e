# =============================================================================
# compute/udf.py - Plugin Contract
# =============================================================================
# A UdfProvider is a named bundle of UDFs (e.g. "core", "petro").
# A Udf is one computation with a typed parameter list and a lifecycle:
#
#   check_parameters -> can_execute -> prepare -> execute -> postprocess
#
# Only execute() is mandatory; the other hooks default to no-ops.
# =============================================================================

from __future__ import annotations

from abc import ABC, abstractmethod

from compute.context import ExecutionContext
from compute.errors import ValidationError
from compute.parameters import ParameterDefinition
from compute.types import UdfMetadata, UdfOutput


class Udf(ABC):
    """
    Abstract base class for all UDFs.

    Example:
        class Doubler(Udf):
            @property
            def id(self) -> str:
                return "doubler"

            def metadata(self) -> UdfMetadata:
                return UdfMetadata(name="Doubler", category="Transform", ...)

            def parameter_definitions(self) -> list[ParameterDefinition]:
                return [CurveParameter.required_curve("input_curve", "Input")]

            def execute(self, context: ExecutionContext) -> UdfOutput:
                curve = context.require_curve("input_curve")
                ...
    """

    @property
    @abstractmethod
    def id(self) -> str:
        """Identifier, unique within the provider."""
        pass

    @abstractmethod
    def metadata(self) -> UdfMetadata:
        pass

    @abstractmethod
    def parameter_definitions(self) -> list[ParameterDefinition]:
        pass

    @abstractmethod
    def execute(self, context: ExecutionContext) -> UdfOutput:
        """
        Run the computation.

        Args:
            context: Validated parameters and loaded curves (read-only)

        Returns:
            UdfOutput with the produced curve
        """
        pass

    def check_parameters(self, context: ExecutionContext) -> list[ValidationError]:
        """Cross-parameter or data-dependent checks, run after curves are loaded."""
        return []

    def can_execute(self, context: ExecutionContext) -> bool:
        return True

    def prepare(self, context: ExecutionContext) -> bool:
        return True

    def postprocess(self, output: UdfOutput, context: ExecutionContext) -> None:
        """Adjust the output in place. Raising here discards the output."""
        return None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id!r}>"


class UdfProvider(ABC):
    """
    A named, versioned bundle of UDFs.

    is_available() lets a provider refuse registration, e.g. when an
    optional dependency is missing. It should raise
    ProviderNotAvailableError with the reason.
    """

    @property
    @abstractmethod
    def id(self) -> str:
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @property
    def version(self) -> str:
        return "0.1.0"

    @property
    def description(self) -> str:
        return ""

    @abstractmethod
    def load_udfs(self) -> list[Udf]:
        pass

    def is_available(self) -> None:
        return None
