# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .active_executions import ActiveExecution, ActiveExecutions
from .execution_service import ExecutionService

__all__ = [
    "ActiveExecution",
    "ActiveExecutions",
    "ExecutionService",
]
