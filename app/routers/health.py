# =============================================================================
# app/routers/health.py - Health Check Endpoints
# =============================================================================
# Provides health check endpoints for monitoring and load balancers.
# =============================================================================

import os
import sqlite3
from datetime import datetime

from fastapi import APIRouter
from pydantic import BaseModel

from app.dependencies import RegistryDep, SettingsDep
from compute import __version__
from lib.database import get_connection

router = APIRouter()


# =============================================================================
# Response Models
# =============================================================================

class HealthResponse(BaseModel):
    """Basic health check response."""
    status: str
    timestamp: str
    environment: str
    version: str
    udf_count: int


class ChecksResponse(BaseModel):
    """Individual service checks."""
    database: str
    storage: str


class ReadinessResponse(BaseModel):
    """Readiness check response."""
    status: str
    checks: ChecksResponse
    timestamp: str


class LivenessResponse(BaseModel):
    """Liveness check response."""
    status: str
    timestamp: str


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/health", response_model=HealthResponse)
async def health_check(app_settings: SettingsDep, registry: RegistryDep):
    """
    Health check endpoint.

    Returns basic health status for load balancers and monitoring.
    """
    return HealthResponse(
        status="healthy",
        timestamp=datetime.utcnow().isoformat(),
        environment=app_settings.ENVIRONMENT,
        version=__version__,
        udf_count=registry.udf_count(),
    )


@router.get("/health/ready", response_model=ReadinessResponse)
def readiness_check(app_settings: SettingsDep):
    """
    Readiness check endpoint.

    Returns whether the service is ready to accept requests.
    Checks the SQLite catalogue and the blob directory.
    """
    checks = ChecksResponse(database="unknown", storage="unknown")

    # Check database
    try:
        with get_connection(app_settings.database_path) as conn:
            conn.execute("SELECT id FROM execution_records LIMIT 1").fetchall()
        checks.database = "healthy"
    except sqlite3.Error as e:
        checks.database = f"unhealthy: {str(e)[:50]}"

    # Check storage
    blobs_dir = app_settings.blobs_dir
    if blobs_dir.is_dir() and os.access(blobs_dir, os.W_OK):
        checks.storage = "healthy"
    else:
        checks.storage = f"unhealthy: {blobs_dir} is not a writable directory"

    # Overall status
    all_healthy = checks.database == "healthy" and checks.storage == "healthy"

    return ReadinessResponse(
        status="ready" if all_healthy else "degraded",
        checks=checks,
        timestamp=datetime.utcnow().isoformat(),
    )


@router.get("/health/live", response_model=LivenessResponse)
async def liveness_check():
    """
    Liveness check endpoint.

    Returns whether the service process is alive.
    """
    return LivenessResponse(
        status="alive",
        timestamp=datetime.utcnow().isoformat(),
    )
