# =============================================================================
# app/dependencies.py - Shared Dependencies
# =============================================================================
# FastAPI dependency injection for shared resources.
# These are injected into route handlers using Depends().
#
# The registry, engine and running-execution table are built once by the
# lifespan handler in main.py and live on app.state.
# =============================================================================

from typing import Annotated

from fastapi import Depends, Request

from app.config import Settings
from compute.engine import ExecutionEngine
from compute.registry import UdfRegistry
from core.services import ActiveExecutions, ExecutionService


def get_app_settings(request: Request) -> Settings:
    """Settings the application was started with."""
    return request.app.state.settings


def get_registry(request: Request) -> UdfRegistry:
    """Frozen UDF registry."""
    return request.app.state.registry


def get_engine(request: Request) -> ExecutionEngine:
    return request.app.state.engine


def get_active_executions(request: Request) -> ActiveExecutions:
    return request.app.state.active_executions


def get_execution_service(request: Request) -> ExecutionService:
    """
    Execution service bound to the shared engine and execution table.

    The service is cheap to build; each call opens its own connection.
    """
    state = request.app.state
    return ExecutionService(state.engine, state.active_executions, state.settings)


# Type aliases for dependency injection
SettingsDep = Annotated[Settings, Depends(get_app_settings)]
RegistryDep = Annotated[UdfRegistry, Depends(get_registry)]
EngineDep = Annotated[ExecutionEngine, Depends(get_engine)]
ActiveExecutionsDep = Annotated[ActiveExecutions, Depends(get_active_executions)]
ExecutionServiceDep = Annotated[ExecutionService, Depends(get_execution_service)]
