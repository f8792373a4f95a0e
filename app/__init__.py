# =============================================================================
# app/ - FastAPI Application Package
# =============================================================================
# This package contains the HTTP surface of the compute engine:
# - main.py: App entry point, lifespan, middleware setup, error handlers
# - config.py: Environment variable loading and settings
# - dependencies.py: Access to the registry, engine and services on app.state
# - routers/: API endpoint definitions organized by feature
#
# The app layer is thin - it handles HTTP concerns and delegates
# business logic to the core/ and compute/ packages.
# =============================================================================
