# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the Well Log Compute engine:
# - test_parameters.py / test_context.py / test_registry.py: engine building blocks
# - test_engine.py: the execution pipeline end to end with an in-memory loader
# - test_core_provider.py / test_petrophysics_provider.py: built-in UDFs
# - test_output_writer.py / test_database.py / test_curve_store.py: local store
# - test_api.py: HTTP endpoints through FastAPI's TestClient
#
# Run tests with: pytest
# =============================================================================
