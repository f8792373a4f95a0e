# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the Well Log Compute API.
# It configures the FastAPI application with middleware, routers, and handlers.
#
# Usage:
#   uvicorn app.main:app --reload
#   python -m app.main
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import get_settings, settings
from app.exceptions import (
    ComputeAPIException,
    compute_api_exception_handler,
    udf_error_handler,
)
from app.routers import curves, executions, health, udfs
from compute import __version__
from compute.engine import ExecutionEngine
from compute.errors import UdfError
from compute.providers import register_builtin_providers
from compute.registry import UdfRegistry
from core.services import ActiveExecutions
from lib.database import get_connection, init_schema

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Runs on startup and shutdown:
    - Startup: prepare the local store, build and freeze the registry,
      construct the engine
    - Shutdown: cancel anything still running
    """
    app_settings = get_settings()

    # Startup
    logger.info(f"Starting Well Log Compute API in {app_settings.ENVIRONMENT} mode")
    logger.info(f"CORS origins: {app_settings.cors_origins_list}")

    app_settings.blobs_dir.mkdir(parents=True, exist_ok=True)
    with get_connection(app_settings.database_path) as conn:
        init_schema(conn)
    logger.info(f"Local store ready at {app_settings.database_path}")

    registry = register_builtin_providers(UdfRegistry()).freeze()
    logger.info(
        f"Registry frozen with {registry.provider_count()} providers, "
        f"{registry.udf_count()} UDFs"
    )

    app.state.settings = app_settings
    app.state.registry = registry
    app.state.engine = ExecutionEngine(registry, engine_version=app_settings.ENGINE_VERSION)
    app.state.active_executions = ActiveExecutions()

    yield

    # Shutdown
    logger.info("Shutting down Well Log Compute API")
    for entry in app.state.active_executions.list():
        app.state.active_executions.cancel(entry["execution_id"])


# Create FastAPI application
app = FastAPI(
    title="Well Log Compute API",
    description="""
## User-Defined Functions over Well Log Curves

Run registered UDFs (moving average, resampling, shale volume, ...) over the
curves of a well. Every run is recorded with its exact inputs and parameters,
so any derived curve can be traced back to how it was produced.

### How It Works

1. **Browse** - List providers and UDFs, fetch a UDF's parameter form
2. **Validate** - Check parameter values before running
3. **Execute** - Run the UDF; the output is saved as a derived curve
4. **Trace** - Look up the provenance of any derived curve

### Quick Start

```bash
# 1. Find a UDF
curl http://localhost:8000/api/v1/udfs?q=shale

# 2. Run it
curl -X POST http://localhost:8000/api/v1/udfs/execute \\
  -H "Content-Type: application/json" \\
  -d '{"udf_id": "petro:vshale_linear", "well_id": "...", "workspace_id": "...",
       "parameters": {"gr_curve": "...", "gr_min": 30, "gr_max": 120}}'
```
""",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {
            "name": "UDFs",
            "description": "Browse, validate and execute user-defined functions",
        },
        {
            "name": "Executions",
            "description": "Track and cancel running executions",
        },
        {
            "name": "Curves",
            "description": "Provenance of derived curves",
        },
        {
            "name": "Health",
            "description": "API health and readiness checks",
        },
    ],
)


# =============================================================================
# Middleware
# =============================================================================

# CORS middleware - allows cross-origin requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list if settings.is_production else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers
# =============================================================================

@app.exception_handler(UdfError)
async def handle_udf_error(request: Request, exc: UdfError):
    """Handle errors raised by the compute engine and storage adapters."""
    return await udf_error_handler(request, exc)


@app.exception_handler(ComputeAPIException)
async def handle_compute_api_exception(request: Request, exc: ComputeAPIException):
    """Handle API-level exceptions."""
    return await compute_api_exception_handler(request, exc)


@app.exception_handler(Exception)
async def handle_general_exception(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
        }
    )


# =============================================================================
# Routers
# =============================================================================

# Health check endpoints
app.include_router(
    health.router,
    prefix="/api/v1",
    tags=["Health"]
)

# Provider and UDF endpoints
app.include_router(
    udfs.router,
    prefix="/api/v1",
    tags=["UDFs"]
)

# Running execution endpoints
app.include_router(
    executions.router,
    prefix="/api/v1/executions",
    tags=["Executions"]
)

# Curve provenance endpoints
app.include_router(
    curves.router,
    prefix="/api/v1/curves",
    tags=["Curves"]
)


# =============================================================================
# Root Endpoint
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint - returns API info.
    """
    return {
        "name": "Well Log Compute API",
        "version": __version__,
        "docs": "/docs",
        "health": "/api/v1/health",
    }


def run() -> None:
    """Serve the API with uvicorn on API_HOST:API_PORT."""
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.is_development,
    )


if __name__ == "__main__":
    run()
