# =============================================================================
# lib/curve_store.py - SQLite + Parquet Curve Loader
# =============================================================================
# Reads curves from the local store:
# - catalogue rows from the `curves` table
# - samples from content-addressed Parquet blobs (depth + value columns)
#
# The loader keeps a per-well depth cache. Curves of the same well whose
# depth samples are equal get the very same depth array, which lets the
# engine's depth-compatibility check short-circuit on identity.
#
# One loader is created per execution. The cache is not locked and must
# not be shared between threads.
# =============================================================================

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Sequence
from uuid import UUID, uuid4

import numpy as np
import pandas as pd

from compute.engine import CurveLoader
from compute.errors import CurveLoadError, CurveNotFoundError, DatabaseError
from compute.output_writer import OutputWriter, blob_path
from compute.types import (
    CurveData,
    CurveDataType,
    CurveMetadataInfo,
    OutputCurveData,
    utcnow,
)

logger = logging.getLogger(__name__)


DEPTH_COLUMNS = ("depth", "DEPTH", "DEPTH_INDEX")

# Mnemonic fragments checked in order; first match wins
_MNEMONIC_HINTS: list[tuple[tuple[str, ...], CurveDataType]] = [
    (("GR", "GAMMA"), CurveDataType.GAMMA_RAY),
    (("RHOB", "DENSITY"), CurveDataType.DENSITY),
    (("NPHI", "NEUTRON"), CurveDataType.NEUTRON_POROSITY),
    (("RT", "RES", "ILD"), CurveDataType.RESISTIVITY),
    (("CALI", "CALIPER"), CurveDataType.CALIPER),
    (("DT", "SONIC"), CurveDataType.SONIC),
    (("SP",), CurveDataType.SPONTANEOUS_POTENTIAL),
    (("PE", "PHOTO"), CurveDataType.PHOTOELECTRIC_FACTOR),
    (("DEPTH",), CurveDataType.DEPTH),
    (("VSH", "PHI", "SW"), CurveDataType.COMPUTED),
]

# Host property ids mapped to main curve type codes
PROPERTY_CURVE_CODES = {
    "gamma_ray": "GR",
    "bulk_density": "RHOB",
    "neutron_porosity": "NPHI",
    "deep_resistivity": "RT",
    "medium_resistivity": "RT",
    "shallow_resistivity": "RT",
    "caliper": "CALI",
    "compressional_slowness": "DT",
    "shear_slowness": "DT",
    "spontaneous_potential": "SP",
    "photoelectric": "PE",
    "depth": "DEPTH",
}


def detect_curve_type(mnemonic: str, stored_type: str | None = None) -> CurveDataType:
    """
    Classify a curve.

    A stored type wins when present. It may be a CurveDataType value
    ("gamma_ray"), a host property id ("bulk_density") or a main curve type
    code ("GR"). Without one, the mnemonic is matched against known
    fragments.
    """
    if stored_type:
        key = stored_type.strip()
        try:
            return CurveDataType(key.lower())
        except ValueError:
            pass
        code = PROPERTY_CURVE_CODES.get(key.lower(), key)
        return CurveDataType.from_main_curve_type(code)

    upper = mnemonic.upper()
    for fragments, curve_type in _MNEMONIC_HINTS:
        if any(fragment in upper for fragment in fragments):
            return curve_type
    return CurveDataType.UNKNOWN


class SqliteCurveLoader(CurveLoader):
    """
    CurveLoader backed by the local SQLite catalogue and Parquet blobs.

    Usage:
        with get_connection(settings.database_path) as conn:
            loader = SqliteCurveLoader(conn, settings.blobs_dir)
            result = engine.execute(udf_id, well_id, workspace_id, params, loader)
    """

    def __init__(self, conn: sqlite3.Connection, blobs_dir: Path | str):
        self.conn = conn
        self.blobs_dir = Path(blobs_dir)
        self._depth_cache: dict[str, np.ndarray] = {}

    def _fetch_row(self, curve_id: UUID, columns: str) -> sqlite3.Row:
        try:
            row = self.conn.execute(
                f"SELECT {columns} FROM curves WHERE id = ?", (str(curve_id),)
            ).fetchone()
        except sqlite3.Error as e:
            raise CurveLoadError(f"Curve lookup failed for {curve_id}: {e}") from e
        if row is None:
            raise CurveNotFoundError(curve_id)
        return row

    def load_curve(self, curve_id: UUID) -> CurveData:
        row = self._fetch_row(
            curve_id, "well_id, mnemonic, unit, curve_type, parquet_hash, version"
        )
        mnemonic = row["mnemonic"]
        content_hash = row["parquet_hash"]
        if not content_hash:
            raise CurveLoadError(f"Curve '{mnemonic}' has no data")

        path = blob_path(self.blobs_dir, content_hash)
        if not path.exists():
            raise CurveLoadError(f"Parquet blob not found at {path}")

        depths, values = self._read_samples(path, mnemonic)
        depths = self._share_depths(row["well_id"], depths)

        return CurveData(
            curve_id=curve_id,
            mnemonic=mnemonic,
            curve_type=detect_curve_type(mnemonic, row["curve_type"]),
            unit=row["unit"] or "",
            depths=depths,
            values=values,
            content_hash=content_hash,
            version=row["version"] or 1,
        )

    def load_curve_metadata(self, curve_id: UUID) -> CurveMetadataInfo:
        row = self._fetch_row(curve_id, "mnemonic, unit, curve_type, row_count")
        return CurveMetadataInfo(
            curve_id=curve_id,
            mnemonic=row["mnemonic"],
            curve_type=detect_curve_type(row["mnemonic"], row["curve_type"]),
            unit=row["unit"] or "",
            row_count=row["row_count"] or 0,
        )

    def _read_samples(self, path: Path, mnemonic: str) -> tuple[np.ndarray, np.ndarray]:
        """Read (depths, values) sorted by depth. Nulls come back as NaN."""
        try:
            df = pd.read_parquet(path, engine="pyarrow")
        except (OSError, ValueError) as e:
            raise CurveLoadError(f"Could not read {path.name}: {e}") from e

        depth_col = next((c for c in DEPTH_COLUMNS if c in df.columns), None)
        if depth_col is None:
            raise CurveLoadError(
                f"{path.name} has no depth column",
                suggestion=f"Expected one of: {', '.join(DEPTH_COLUMNS)}",
            )
        value_col = "value" if "value" in df.columns else mnemonic
        if value_col not in df.columns:
            raise CurveLoadError(f"{path.name} has no 'value' or '{mnemonic}' column")

        df = df.sort_values(depth_col, kind="stable")
        depths = df[depth_col].to_numpy(dtype=np.float64, copy=True)
        values = (
            pd.to_numeric(df[value_col], errors="coerce")
            .to_numpy(dtype=np.float64, na_value=np.nan)
            .copy()
        )
        return depths, values

    def _share_depths(self, well_id: str, depths: np.ndarray) -> np.ndarray:
        cached = self._depth_cache.get(well_id)
        if cached is not None and np.array_equal(cached, depths):
            return cached
        self._depth_cache[well_id] = depths
        return depths


def import_curve(
    conn: sqlite3.Connection,
    blobs_dir: Path | str,
    well_id: UUID,
    mnemonic: str,
    depths: Sequence[float] | np.ndarray,
    values: Sequence[float | None] | np.ndarray,
    unit: str = "",
    curve_type: str | None = None,
    description: str | None = None,
    curve_id: UUID | None = None,
) -> UUID:
    """
    Store a raw (non-derived) curve: write its blob and insert its row.

    curve_type is stored as given; when omitted, the type detected from the
    mnemonic is stored instead.

    Returns:
        The curve id
    """
    curve_id = curve_id or uuid4()
    resolved_type = detect_curve_type(mnemonic, curve_type)
    output = OutputCurveData(
        mnemonic=mnemonic,
        curve_type=resolved_type,
        unit=unit,
        depths=depths,
        values=values,
        description=description,
    )

    writer = OutputWriter(blobs_dir)
    content_hash, _ = writer.write_blob(output)
    stats = writer.compute_statistics(output)
    now = utcnow().isoformat()

    try:
        conn.execute(
            """
            INSERT INTO curves (
                id, well_id, mnemonic, unit, description, curve_type,
                min_depth, max_depth, row_count, min_value, max_value,
                parquet_hash, version, is_derived, source_execution_id,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 1, 0, NULL, ?, ?)
            """,
            (
                str(curve_id),
                str(well_id),
                mnemonic,
                unit,
                description,
                curve_type or resolved_type.value,
                stats.min_depth,
                stats.max_depth,
                stats.row_count,
                stats.min_value,
                stats.max_value,
                content_hash,
                now,
                now,
            ),
        )
    except sqlite3.Error as e:
        raise DatabaseError(f"Failed to import curve '{mnemonic}': {e}") from e

    logger.info(f"Imported curve {curve_id} ('{mnemonic}', {stats.row_count} samples)")
    return curve_id
