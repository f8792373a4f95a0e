# =============================================================================
# compute/output_writer.py - Derived Curve Persistence
# =============================================================================
# Writes UDF output curves to content-addressed Parquet blobs and registers
# them as derived curves.
#
# Blob layout:
#   blobs_dir/ab/cd/abcd...ef.parquet     (sha256 of the file bytes)
#
# Writes are atomic: bytes go to a temp sibling, are fsynced, then renamed
# into place. A blob that already exists is never rewritten; identical
# bytes always hash to the same path.
# =============================================================================

from __future__ import annotations

import hashlib
import io
import logging
import os
import sqlite3
import tempfile
from dataclasses import dataclass
from pathlib import Path
from uuid import UUID, uuid4

import numpy as np
import pandas as pd

from compute.errors import DatabaseError, SerializationError, StorageIOError
from compute.types import ExecutionRecord, OutputCurveData, utcnow

logger = logging.getLogger(__name__)


BLOB_EXTENSION = "parquet"


def blob_path(blobs_dir: Path, content_hash: str) -> Path:
    """Sharded location of a blob: blobs_dir/ab/cd/abcd....parquet"""
    return Path(blobs_dir) / content_hash[:2] / content_hash[2:4] / f"{content_hash}.{BLOB_EXTENSION}"


@dataclass
class CurveStatistics:
    """Summary statistics over an output curve. Null values are ignored."""
    row_count: int
    min_depth: float | None
    max_depth: float | None
    min_value: float | None
    max_value: float | None
    mean_value: float | None
    null_count: int


@dataclass
class RegisteredOutput:
    """A committed output: new curve id plus where its bytes live."""
    curve_id: UUID
    content_hash: str
    blob_path: Path


class OutputWriter:
    """
    Persists OutputCurveData as derived curves.

    Usage:
        writer = OutputWriter(settings.blobs_dir)
        registered = writer.commit_execution(conn, well_id, output.curve_data, record)
    """

    def __init__(self, blobs_dir: Path | str):
        self.blobs_dir = Path(blobs_dir)

    # -------------------------------------------------------------------------
    # Blobs
    # -------------------------------------------------------------------------

    def serialize(self, output: OutputCurveData) -> bytes:
        """Encode a curve as a two-column (depth, value) Parquet file."""
        df = pd.DataFrame({
            "depth": np.asarray(output.depths, dtype=np.float64),
            "value": np.asarray(output.values, dtype=np.float64),
        })
        buffer = io.BytesIO()
        try:
            df.to_parquet(buffer, engine="pyarrow", compression="snappy", index=False)
        except (ValueError, TypeError, ImportError) as e:
            raise SerializationError(f"Could not encode '{output.mnemonic}' as Parquet: {e}") from e
        return buffer.getvalue()

    def blob_path(self, content_hash: str) -> Path:
        return blob_path(self.blobs_dir, content_hash)

    def write_blob(self, output: OutputCurveData) -> tuple[str, Path]:
        """
        Write the curve's bytes to the blob store.

        Returns:
            (sha256 hex digest, blob path). If the blob already exists the
            write is skipped and the existing path is returned.

        Raises:
            StorageIOError: the blob could not be written
        """
        data = self.serialize(output)
        content_hash = hashlib.sha256(data).hexdigest()
        path = self.blob_path(content_hash)

        if path.exists():
            logger.debug(f"Blob {content_hash[:12]} already stored, skipping write")
            return content_hash, path

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageIOError(f"Failed to create blob directory {path.parent}: {e}") from e

        self._write_atomic(path, data)
        logger.info(f"Wrote blob {content_hash[:12]} ({len(data)} bytes) for '{output.mnemonic}'")
        return content_hash, path

    def _write_atomic(self, path: Path, data: bytes) -> None:
        fd, tmp_name = tempfile.mkstemp(
            prefix=f"{path.stem}.", suffix=f".{BLOB_EXTENSION}.tmp", dir=str(path.parent)
        )
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
        except OSError as e:
            raise StorageIOError(f"Failed to write blob {path.name}: {e}") from e
        finally:
            if tmp_path.exists():
                tmp_path.unlink()

    # -------------------------------------------------------------------------
    # Curve registration
    # -------------------------------------------------------------------------

    def compute_statistics(self, output: OutputCurveData) -> CurveStatistics:
        values = np.asarray(output.values, dtype=np.float64)
        depths = np.asarray(output.depths, dtype=np.float64)
        valid = values[~np.isnan(values)]

        has_depths = depths.size > 0
        has_values = valid.size > 0
        return CurveStatistics(
            row_count=int(depths.size),
            min_depth=float(np.nanmin(depths)) if has_depths else None,
            max_depth=float(np.nanmax(depths)) if has_depths else None,
            min_value=float(valid.min()) if has_values else None,
            max_value=float(valid.max()) if has_values else None,
            mean_value=float(valid.mean()) if has_values else None,
            null_count=int(values.size - valid.size),
        )

    def register_curve(
        self,
        conn: sqlite3.Connection,
        well_id: UUID,
        output: OutputCurveData,
        content_hash: str,
        record: ExecutionRecord,
    ) -> UUID:
        """
        Insert a derived curve row pointing back at the execution.

        Returns:
            The new curve id
        """
        curve_id = uuid4()
        stats = self.compute_statistics(output)
        now = utcnow().isoformat()

        try:
            conn.execute(
                """
                INSERT INTO curves (
                    id, well_id, mnemonic, unit, description, curve_type,
                    min_depth, max_depth, row_count, min_value, max_value,
                    parquet_hash, version, is_derived, source_execution_id,
                    created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    str(curve_id),
                    str(well_id),
                    output.mnemonic,
                    output.unit,
                    output.description,
                    output.curve_type.value,
                    stats.min_depth,
                    stats.max_depth,
                    stats.row_count,
                    stats.min_value,
                    stats.max_value,
                    content_hash,
                    1,
                    1,
                    str(record.id),
                    now,
                    now,
                ),
            )
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to register curve '{output.mnemonic}': {e}") from e

        return curve_id

    def commit_execution(
        self,
        conn: sqlite3.Connection,
        well_id: UUID,
        output: OutputCurveData,
        record: ExecutionRecord,
    ) -> RegisteredOutput:
        """
        Write the blob, register the curve, and stamp the record.

        The blob write is idempotent, so a failed registration can simply
        be retried.
        """
        content_hash, path = self.write_blob(output)
        curve_id = self.register_curve(conn, well_id, output, content_hash, record)
        record.stamp_output(curve_id, content_hash)

        logger.info(f"Registered derived curve {curve_id} ('{output.mnemonic}') from {record.id}")
        return RegisteredOutput(curve_id=curve_id, content_hash=content_hash, blob_path=path)
