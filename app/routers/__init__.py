# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# This package contains FastAPI routers organized by feature:
# - health.py: Health check endpoints
# - udfs.py: Provider/UDF catalogue, validation and execution endpoints
# - executions.py: Running execution progress and cancellation endpoints
# - curves.py: Derived curve provenance endpoints
#
# Each router is mounted in main.py with a URL prefix.
# =============================================================================

from . import health
from . import udfs
from . import executions
from . import curves

__all__ = [
    "health",
    "udfs",
    "executions",
    "curves",
]
