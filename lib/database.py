# =============================================================================
# lib/database.py - Local SQLite Store
# =============================================================================
# Connection handling, schema, and provenance queries for the local store.
#
# Tables:
# - curves: host-compatible subset of the curve catalogue. Derived curves
#   carry is_derived=1 and source_execution_id.
# - execution_records: one row per UDF execution (provenance).
#
# Connections use sqlite3.Row so columns can be read by name. Callers open
# one connection per request; connections are not shared across threads.
# =============================================================================

from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Iterator
from uuid import UUID

from compute.errors import CurveNotFoundError, DatabaseError
from compute.types import ExecutionRecord, ExecutionStatus, InputReference

logger = logging.getLogger(__name__)


# =============================================================================
# Schema
# =============================================================================

CURVES_SCHEMA = """
CREATE TABLE IF NOT EXISTS curves (
    id TEXT PRIMARY KEY,
    well_id TEXT NOT NULL,
    mnemonic TEXT NOT NULL,
    unit TEXT,
    description TEXT,
    curve_type TEXT,                -- host code (GR, RHOB, ...) or type value
    min_depth REAL,
    max_depth REAL,
    row_count INTEGER,
    min_value REAL,
    max_value REAL,
    parquet_hash TEXT,
    version INTEGER NOT NULL DEFAULT 1,
    is_derived INTEGER DEFAULT 0,
    source_execution_id TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_curves_well ON curves(well_id);
"""

DERIVED_CURVES_INDEX = """
CREATE INDEX IF NOT EXISTS idx_curves_source_execution ON curves(source_execution_id);
"""

EXECUTION_RECORDS_SCHEMA = """
CREATE TABLE IF NOT EXISTS execution_records (
    id TEXT PRIMARY KEY,
    udf_id TEXT NOT NULL,
    udf_version TEXT NOT NULL,
    inputs TEXT NOT NULL,           -- JSON array of input references
    parameters TEXT NOT NULL,       -- JSON object of parameter values
    output_curve_id TEXT,
    output_content_hash TEXT,
    started_at TEXT NOT NULL,       -- ISO 8601
    completed_at TEXT,              -- ISO 8601
    engine_version TEXT NOT NULL,
    status TEXT NOT NULL,           -- completed / failed / cancelled
    error_message TEXT,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_execution_records_udf ON execution_records(udf_id);
CREATE INDEX IF NOT EXISTS idx_execution_records_output ON execution_records(output_curve_id);
CREATE INDEX IF NOT EXISTS idx_execution_records_status ON execution_records(status);
"""


# =============================================================================
# Connections
# =============================================================================

def connect(path: Path | str) -> sqlite3.Connection:
    """
    Open a connection with Row factory, WAL and foreign keys enabled.

    ":memory:" opens a private in-memory database.
    """
    target = str(path)
    if target != ":memory:":
        Path(target).parent.mkdir(parents=True, exist_ok=True)
    try:
        conn = sqlite3.connect(target, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA foreign_keys=ON")
    except sqlite3.Error as e:
        raise DatabaseError(f"Could not open {target}: {e}") from e
    return conn


@contextmanager
def get_connection(path: Path | str) -> Iterator[sqlite3.Connection]:
    """
    Connection scoped to a block. Commits on success, rolls back on error.

    Usage:
        with get_connection(settings.database_path) as conn:
            save_execution_record(conn, record)
    """
    conn = connect(path)
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_schema(conn: sqlite3.Connection) -> None:
    """Create tables and indexes if missing. Safe to call repeatedly."""
    try:
        conn.executescript(CURVES_SCHEMA)
        ensure_derived_curve_columns(conn)
        conn.executescript(DERIVED_CURVES_INDEX)
        conn.executescript(EXECUTION_RECORDS_SCHEMA)
    except sqlite3.Error as e:
        raise DatabaseError(f"Failed to initialize schema: {e}") from e


def ensure_derived_curve_columns(conn: sqlite3.Connection) -> None:
    """Add is_derived / source_execution_id to a curves table that lacks them."""
    columns = {row["name"] for row in conn.execute("PRAGMA table_info(curves)")}
    missing = [
        ddl
        for name, ddl in (
            ("is_derived", "ALTER TABLE curves ADD COLUMN is_derived INTEGER DEFAULT 0"),
            ("source_execution_id", "ALTER TABLE curves ADD COLUMN source_execution_id TEXT"),
        )
        if name not in columns
    ]
    try:
        for ddl in missing:
            conn.execute(ddl)
    except sqlite3.Error as e:
        raise DatabaseError(f"Failed to add derived curve columns: {e}") from e
    if missing:
        logger.info(f"Added {len(missing)} derived-curve column(s) to curves table")


# =============================================================================
# Execution Records
# =============================================================================

def save_execution_record(conn: sqlite3.Connection, record: ExecutionRecord) -> None:
    """Insert a finished execution record."""
    if not record.is_finished:
        raise DatabaseError(f"Execution {record.id} has not finished yet")

    row = record.to_dict()
    try:
        conn.execute(
            """
            INSERT INTO execution_records (
                id, udf_id, udf_version, inputs, parameters,
                output_curve_id, output_content_hash,
                started_at, completed_at, engine_version,
                status, error_message
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                row["id"],
                row["udf_id"],
                row["udf_version"],
                json.dumps(row["inputs"]),
                json.dumps(row["parameters"], default=str),
                row["output_curve_id"],
                row["output_content_hash"],
                row["started_at"],
                row["completed_at"],
                row["engine_version"],
                row["status"],
                row["error_message"],
            ),
        )
    except sqlite3.Error as e:
        raise DatabaseError(f"Failed to save execution record {record.id}: {e}") from e


def _row_to_record(row: sqlite3.Row) -> ExecutionRecord:
    completed_at = row["completed_at"]
    output_curve_id = row["output_curve_id"]
    return ExecutionRecord(
        id=UUID(row["id"]),
        udf_id=row["udf_id"],
        udf_version=row["udf_version"],
        engine_version=row["engine_version"],
        started_at=datetime.fromisoformat(row["started_at"]),
        inputs=[InputReference.from_dict(d) for d in json.loads(row["inputs"] or "[]")],
        parameters=json.loads(row["parameters"] or "{}"),
        output_curve_id=UUID(output_curve_id) if output_curve_id else None,
        output_content_hash=row["output_content_hash"],
        completed_at=datetime.fromisoformat(completed_at) if completed_at else None,
        status=ExecutionStatus(row["status"]),
        error_message=row["error_message"],
    )


def get_execution_record(conn: sqlite3.Connection, execution_id: UUID | str) -> ExecutionRecord | None:
    row = conn.execute(
        "SELECT * FROM execution_records WHERE id = ?", (str(execution_id),)
    ).fetchone()
    return _row_to_record(row) if row else None


def list_execution_records(
    conn: sqlite3.Connection,
    limit: int = 50,
    udf_id: str | None = None,
) -> list[ExecutionRecord]:
    """Most recent execution records first."""
    if udf_id:
        rows = conn.execute(
            "SELECT * FROM execution_records WHERE udf_id = ? ORDER BY started_at DESC LIMIT ?",
            (udf_id, limit),
        ).fetchall()
    else:
        rows = conn.execute(
            "SELECT * FROM execution_records ORDER BY started_at DESC LIMIT ?",
            (limit,),
        ).fetchall()
    return [_row_to_record(row) for row in rows]


# =============================================================================
# Provenance
# =============================================================================

def get_curve_provenance(conn: sqlite3.Connection, curve_id: UUID | str) -> dict[str, Any] | None:
    """
    Provenance of a derived curve.

    Returns:
        The execution record as a dict, with each input enriched with the
        input curve's mnemonic. None if the curve is not derived.

    Raises:
        CurveNotFoundError: no curve with this id
    """
    curve = conn.execute(
        "SELECT is_derived, source_execution_id FROM curves WHERE id = ?",
        (str(curve_id),),
    ).fetchone()
    if curve is None:
        raise CurveNotFoundError(curve_id)
    if not curve["is_derived"] or not curve["source_execution_id"]:
        return None

    record = get_execution_record(conn, curve["source_execution_id"])
    if record is None:
        logger.warning(
            f"Derived curve {curve_id} points at missing execution "
            f"{curve['source_execution_id']}"
        )
        return None

    provenance = record.to_dict()
    for ref in provenance["inputs"]:
        row = conn.execute(
            "SELECT mnemonic FROM curves WHERE id = ?", (ref["curve_id"],)
        ).fetchone()
        ref["mnemonic"] = row["mnemonic"] if row else None
    return provenance
