# =============================================================================
# app/routers/udfs.py - Provider and UDF Endpoints
# =============================================================================
# Catalogue browsing, parameter validation and execution:
# - GET  /providers
# - GET  /udfs?category=&q=&provider=
# - GET  /udfs/{udf_id}/parameters
# - POST /udfs/{udf_id}/validate
# - POST /udfs/execute
#
# UDF ids contain a colon ("petro:vshale_linear"); it is valid in a path
# segment and needs no escaping.
# =============================================================================

import logging

from fastapi import APIRouter, Query

from app.dependencies import EngineDep, ExecutionServiceDep, RegistryDep
from core.models.compute import (
    ExecuteUdfRequest,
    ExecuteUdfResult,
    ProviderSummary,
    UdfParameters,
    UdfSummary,
    ValidateParametersRequest,
    ValidateParametersResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# Catalogue
# =============================================================================

@router.get("/providers", response_model=list[ProviderSummary])
async def list_providers(registry: RegistryDep):
    """List registered providers with their UDF counts."""
    return [ProviderSummary(**info.to_dict()) for info in registry.list_providers()]


@router.get("/udfs", response_model=list[UdfSummary])
async def list_udfs(
    registry: RegistryDep,
    category: str | None = Query(default=None, description="Exact category, case-insensitive"),
    q: str | None = Query(default=None, description="Search in name, description and tags"),
    provider: str | None = Query(default=None, description="Only UDFs of this provider"),
):
    """
    List UDFs, optionally filtered.

    Filters combine: ?category=Petrophysics&q=shale returns petrophysics
    UDFs matching "shale".
    """
    if q:
        infos = registry.search_udfs(q)
    elif category:
        infos = registry.list_udfs_by_category(category)
    elif provider:
        infos = registry.list_provider_udfs(provider)
    else:
        infos = registry.list_udfs()

    if category:
        infos = [u for u in infos if u.category.casefold() == category.casefold()]
    if provider:
        infos = [u for u in infos if u.provider_id == provider]

    return [UdfSummary(**info.to_dict()) for info in infos]


@router.get("/udfs/{udf_id}/parameters", response_model=UdfParameters)
async def get_udf_parameters(udf_id: str, engine: EngineDep):
    """
    Parameter descriptors for a UDF's input form.

    Raises 404 UDF_NOT_FOUND for unknown ids.
    """
    udf = engine.get_udf(udf_id)
    metadata = udf.metadata()
    return UdfParameters(
        udf_id=udf_id,
        name=metadata.name,
        documentation=metadata.documentation,
        parameters=engine.get_parameter_definitions(udf_id),
    )


# =============================================================================
# Validation and Execution
# =============================================================================

@router.post("/udfs/{udf_id}/validate", response_model=ValidateParametersResponse)
async def validate_parameters(
    udf_id: str,
    request: ValidateParametersRequest,
    service: ExecutionServiceDep,
):
    """
    Validate parameter values without running the UDF.

    Always 200 for a known UDF; problems are listed in `errors`.
    """
    return service.validate_parameters(udf_id, request.parameters)


@router.post("/udfs/execute", response_model=ExecuteUdfResult)
def execute_udf(request: ExecuteUdfRequest, service: ExecutionServiceDep):
    """
    Execute a UDF on a well's curves.

    Runs in the threadpool so POST /executions/{id}/cancel can be served
    while the execution is in progress. A failed run returns 200 with
    success=false and the error message.
    """
    result = service.execute_udf(request)
    if not result.success:
        logger.info(f"Execution {result.execution_id} ended {result.status.value}: {result.error}")
    return result
