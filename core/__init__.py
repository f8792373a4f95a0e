# =============================================================================
# core/ - Business Logic Package
# =============================================================================
# This package contains the request-level logic around the compute engine:
# - models/: Pydantic schemas for request/response validation
# - services/: execution orchestration and the running-execution table
#
# Code in this package should NOT import from FastAPI.
# This keeps the logic testable and reusable.
# =============================================================================
