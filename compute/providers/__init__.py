# =============================================================================
# compute/providers/__init__.py - Built-in Providers
# =============================================================================

from compute.providers.core import CoreProvider
from compute.providers.petrophysics import PetrophysicsProvider
from compute.registry import UdfRegistry


def register_builtin_providers(registry: UdfRegistry) -> UdfRegistry:
    """Register the providers shipped with the engine. Returns the registry."""
    registry.register_provider(CoreProvider())
    registry.register_provider(PetrophysicsProvider())
    return registry


__all__ = ["CoreProvider", "PetrophysicsProvider", "register_builtin_providers"]
