# =============================================================================
# lib/ - Standalone Storage Modules
# =============================================================================
# This package contains the local store adapters:
# - database.py: SQLite connection, schema and provenance queries
# - curve_store.py: CurveLoader over the curves table and Parquet blobs
#
# These modules are self-contained and can be tested in isolation.
# =============================================================================

from lib.database import (
    connect,
    get_connection,
    init_schema,
    save_execution_record,
    get_execution_record,
    list_execution_records,
    get_curve_provenance,
)
from lib.curve_store import SqliteCurveLoader, detect_curve_type, import_curve

__all__ = [
    # Database
    "connect",
    "get_connection",
    "init_schema",
    "save_execution_record",
    "get_execution_record",
    "list_execution_records",
    "get_curve_provenance",
    # Curve store
    "SqliteCurveLoader",
    "detect_curve_type",
    "import_curve",
]
