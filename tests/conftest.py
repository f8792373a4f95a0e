# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up environment variables before any imports
# - Points the local store at a throwaway data directory
# - Provides an in-memory CurveLoader and curve factories
# =============================================================================

import os
import tempfile

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("DATA_DIR", tempfile.mkdtemp(prefix="wellcompute-tests-"))

from uuid import UUID, uuid4

import numpy as np
import pytest

from compute.engine import CurveLoader, ExecutionEngine
from compute.errors import CurveNotFoundError
from compute.providers import register_builtin_providers
from compute.registry import UdfRegistry
from compute.types import CurveData, CurveDataType, CurveMetadataInfo
from lib.database import connect, init_schema


# =============================================================================
# Helpers
# =============================================================================

def make_curve(
    mnemonic: str,
    values,
    depths=None,
    curve_type: CurveDataType = CurveDataType.GAMMA_RAY,
    unit: str = "gAPI",
    curve_id: UUID | None = None,
) -> CurveData:
    """Build a CurveData. Depths default to 1000.0, 1000.5, ..."""
    if depths is None:
        depths = 1000.0 + np.arange(len(values), dtype=np.float64) * 0.5
    return CurveData(
        curve_id=curve_id or uuid4(),
        mnemonic=mnemonic,
        curve_type=curve_type,
        unit=unit,
        depths=depths,
        values=values,
        content_hash=f"hash-{mnemonic.lower()}",
    )


class InMemoryCurveLoader(CurveLoader):
    """CurveLoader over a dict, with a load counter per curve."""

    def __init__(self, *curves: CurveData):
        self.curves = {curve.curve_id: curve for curve in curves}
        self.loads: list[UUID] = []

    def add(self, curve: CurveData) -> CurveData:
        self.curves[curve.curve_id] = curve
        return curve

    def load_curve(self, curve_id: UUID) -> CurveData:
        self.loads.append(curve_id)
        curve = self.curves.get(curve_id)
        if curve is None:
            raise CurveNotFoundError(curve_id)
        return curve

    def load_curve_metadata(self, curve_id: UUID) -> CurveMetadataInfo:
        curve = self.load_curve(curve_id)
        return CurveMetadataInfo(
            curve_id=curve.curve_id,
            mnemonic=curve.mnemonic,
            curve_type=curve.curve_type,
            unit=curve.unit,
            row_count=len(curve),
        )


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def well_id():
    return uuid4()


@pytest.fixture
def workspace_id():
    return uuid4()


@pytest.fixture
def gr_curve():
    """Gamma ray curve with one null sample."""
    return make_curve("GR", [30.0, 45.0, 75.0, None, 120.0, 90.0])


@pytest.fixture
def rhob_curve():
    return make_curve(
        "RHOB",
        [2.45, 2.50, 2.55, 2.60, 2.40, 2.35],
        curve_type=CurveDataType.DENSITY,
        unit="g/cm3",
    )


@pytest.fixture
def loader(gr_curve, rhob_curve):
    return InMemoryCurveLoader(gr_curve, rhob_curve)


@pytest.fixture
def registry():
    """Frozen registry with the built-in providers."""
    return register_builtin_providers(UdfRegistry()).freeze()


@pytest.fixture
def engine(registry):
    return ExecutionEngine(registry, engine_version="9.9.9")


@pytest.fixture
def db_conn():
    """In-memory SQLite database with the schema applied."""
    conn = connect(":memory:")
    init_schema(conn)
    yield conn
    conn.close()


@pytest.fixture
def blobs_dir(tmp_path):
    return tmp_path / "blobs"
