# =============================================================================
# compute/types.py - Core Types
# =============================================================================
# Defines the value objects that flow through the compute engine:
# - CurveDataType: domain classification of a well-log curve
# - CurveData: an immutable loaded input curve
# - OutputCurveData / UdfOutput: what a UDF produces
# - InputReference / ExecutionRecord: provenance
#
# Curve samples are stored as read-only float64 numpy arrays. A null reading
# is NaN. Depth arrays are shared by reference between curves of the same
# well so compatibility checks can short-circuit on identity.
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterator
from uuid import UUID

import numpy as np


# =============================================================================
# Enums
# =============================================================================

class CurveDataType(str, Enum):
    """Curve data type classification. UDFs declare which types they accept."""
    GAMMA_RAY = "gamma_ray"
    DENSITY = "density"
    NEUTRON_POROSITY = "neutron_porosity"
    RESISTIVITY = "resistivity"
    CALIPER = "caliper"
    SONIC = "sonic"
    SPONTANEOUS_POTENTIAL = "spontaneous_potential"
    PHOTOELECTRIC_FACTOR = "photoelectric_factor"
    DEPTH = "depth"
    COMPUTED = "computed"     # Output of a UDF
    UNKNOWN = "unknown"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def standard_unit(self) -> str:
        return _STANDARD_UNITS[self]

    @classmethod
    def from_main_curve_type(cls, code: str) -> "CurveDataType":
        """
        Convert a host "main curve type" code (GR, RHOB, ...) to a type.

        Unrecognized codes map to UNKNOWN.
        """
        return _MAIN_CURVE_TYPES.get(code.strip().upper(), cls.UNKNOWN)


_DISPLAY_NAMES = {
    CurveDataType.GAMMA_RAY: "Gamma Ray",
    CurveDataType.DENSITY: "Bulk Density",
    CurveDataType.NEUTRON_POROSITY: "Neutron Porosity",
    CurveDataType.RESISTIVITY: "Resistivity",
    CurveDataType.CALIPER: "Caliper",
    CurveDataType.SONIC: "Sonic",
    CurveDataType.SPONTANEOUS_POTENTIAL: "Spontaneous Potential",
    CurveDataType.PHOTOELECTRIC_FACTOR: "Photo-electric Factor",
    CurveDataType.DEPTH: "Depth",
    CurveDataType.COMPUTED: "Computed",
    CurveDataType.UNKNOWN: "Unknown",
}

_STANDARD_UNITS = {
    CurveDataType.GAMMA_RAY: "gAPI",
    CurveDataType.DENSITY: "g/cm³",
    CurveDataType.NEUTRON_POROSITY: "v/v",
    CurveDataType.RESISTIVITY: "ohm-m",
    CurveDataType.CALIPER: "in",
    CurveDataType.SONIC: "μs/ft",
    CurveDataType.SPONTANEOUS_POTENTIAL: "mV",
    CurveDataType.PHOTOELECTRIC_FACTOR: "b/e",
    CurveDataType.DEPTH: "m",
    CurveDataType.COMPUTED: "",
    CurveDataType.UNKNOWN: "",
}

_MAIN_CURVE_TYPES = {
    "GR": CurveDataType.GAMMA_RAY,
    "RHOB": CurveDataType.DENSITY,
    "NPHI": CurveDataType.NEUTRON_POROSITY,
    "RT": CurveDataType.RESISTIVITY,
    "CALI": CurveDataType.CALIPER,
    "DT": CurveDataType.SONIC,
    "SP": CurveDataType.SPONTANEOUS_POTENTIAL,
    "PE": CurveDataType.PHOTOELECTRIC_FACTOR,
    "DEPTH": CurveDataType.DEPTH,
}


class ExecutionStatus(str, Enum):
    """Terminal status of a UDF execution."""
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


# =============================================================================
# Array helpers
# =============================================================================

def to_float_array(data: Any) -> np.ndarray:
    """Copy a sequence into a new float64 array. None becomes NaN."""
    if isinstance(data, np.ndarray):
        return data.astype(np.float64, copy=True)
    return np.array([np.nan if v is None else v for v in data], dtype=np.float64)


def as_readonly_array(data: Any) -> np.ndarray:
    """
    Coerce a sequence to a read-only float64 array. None becomes NaN.

    An existing float64 ndarray is reused rather than copied, which is what
    lets a loader share one depth array across many curves.
    """
    if isinstance(data, np.ndarray) and data.dtype == np.float64:
        arr = data
    else:
        arr = to_float_array(data)
    if arr.ndim != 1:
        raise ValueError(f"Curve arrays must be one-dimensional, got shape {arr.shape}")
    arr.flags.writeable = False
    return arr


def _optional(value: float) -> float | None:
    return None if np.isnan(value) else float(value)


# =============================================================================
# Input Curves
# =============================================================================

@dataclass(frozen=True, eq=False)
class CurveData:
    """
    Immutable curve data for UDF inputs.

    Created by a CurveLoader, shared read-only with the executing UDF, and
    dropped with the ExecutionContext that holds it.
    """
    curve_id: UUID
    mnemonic: str
    curve_type: CurveDataType
    unit: str
    depths: np.ndarray
    values: np.ndarray
    content_hash: str
    version: int = 1

    def __post_init__(self):
        depths = as_readonly_array(self.depths)
        values = as_readonly_array(self.values)
        if len(depths) != len(values):
            raise ValueError(
                f"Curve '{self.mnemonic}' has {len(depths)} depths but {len(values)} values"
            )
        object.__setattr__(self, "depths", depths)
        object.__setattr__(self, "values", values)

    def __len__(self) -> int:
        return len(self.values)

    @property
    def is_empty(self) -> bool:
        return len(self.values) == 0

    @property
    def null_count(self) -> int:
        return int(np.isnan(self.values).sum())

    def depth_range(self) -> tuple[float, float] | None:
        """Return (min, max) depth, or None for an empty curve."""
        if self.is_empty:
            return None
        return float(self.depths.min()), float(self.depths.max())

    def value_at(self, index: int) -> float | None:
        """Value at an index, None when null or out of range."""
        if index < 0 or index >= len(self.values):
            return None
        return _optional(self.values[index])

    def iter_samples(self) -> Iterator[tuple[float, float | None]]:
        """Iterate over (depth, value) pairs. Nulls come back as None."""
        for depth, value in zip(self.depths, self.values):
            yield float(depth), _optional(value)

    def valid_values(self) -> Iterator[tuple[float, float]]:
        """Iterate over (depth, value) pairs, skipping nulls."""
        mask = ~np.isnan(self.values)
        for depth, value in zip(self.depths[mask], self.values[mask]):
            yield float(depth), float(value)

    def shares_depths_with(self, other: "CurveData") -> bool:
        """True when both curves point at the very same depth array."""
        return self.depths is other.depths


@dataclass(frozen=True)
class CurveMetadataInfo:
    """Minimal curve metadata for validation without loading values."""
    curve_id: UUID
    mnemonic: str
    curve_type: CurveDataType
    unit: str
    row_count: int


# =============================================================================
# UDF Metadata
# =============================================================================

@dataclass
class UdfMetadata:
    """UDF metadata for display and documentation."""
    name: str
    category: str
    description: str
    version: str
    tags: list[str] = field(default_factory=list)
    documentation: str | None = None    # Markdown

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "category": self.category,
            "description": self.description,
            "version": self.version,
            "tags": list(self.tags),
            "documentation": self.documentation,
        }


# =============================================================================
# Outputs
# =============================================================================

@dataclass
class OutputCurveData:
    """Curve produced by a UDF. Not persisted by the engine."""
    mnemonic: str
    curve_type: CurveDataType
    unit: str
    depths: np.ndarray
    values: np.ndarray
    description: str | None = None

    def __post_init__(self):
        self.depths = to_float_array(self.depths)
        self.values = to_float_array(self.values)
        if len(self.depths) != len(self.values):
            raise ValueError(
                f"Output '{self.mnemonic}' has {len(self.depths)} depths "
                f"but {len(self.values)} values"
            )

    def __len__(self) -> int:
        return len(self.values)

    def values_as_list(self) -> list[float | None]:
        """Values with nulls as None, ready for JSON."""
        return [_optional(v) for v in self.values]


@dataclass
class UdfOutput:
    """
    Result of a UDF's execute().

    Contains the output curve plus free-form metadata and warnings that are
    shown to the user but do not fail the run.
    """
    curve_data: OutputCurveData
    metadata: dict[str, Any] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)

    def add_warning(self, warning: str) -> None:
        self.warnings.append(warning)

    def add_metadata(self, key: str, value: Any) -> None:
        self.metadata[key] = value


# =============================================================================
# Provenance
# =============================================================================

@dataclass(frozen=True)
class InputReference:
    """Reference to an input curve used in an execution."""
    curve_id: UUID
    version: int
    content_hash: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "curve_id": str(self.curve_id),
            "version": self.version,
            "content_hash": self.content_hash,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "InputReference":
        return cls(
            curve_id=UUID(str(d["curve_id"])),
            version=int(d.get("version", 1)),
            content_hash=d.get("content_hash") or d.get("parquet_hash", ""),
        )


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ExecutionRecord:
    """
    Provenance entry for one UDF execution.

    status and completed_at are written exactly once, by finish(). The only
    mutation allowed afterwards is stamp_output(), done when the caller
    persists the output.
    """
    id: UUID
    udf_id: str
    udf_version: str
    engine_version: str
    started_at: datetime = field(default_factory=utcnow)
    inputs: list[InputReference] = field(default_factory=list)
    parameters: dict[str, Any] = field(default_factory=dict)
    output_curve_id: UUID | None = None
    output_content_hash: str | None = None
    completed_at: datetime | None = None
    status: ExecutionStatus | None = None
    error_message: str | None = None

    @property
    def is_finished(self) -> bool:
        return self.status is not None

    def finish(self, status: ExecutionStatus, error_message: str | None = None) -> None:
        """Set the terminal status. Raises RuntimeError if already finished."""
        if self.is_finished:
            raise RuntimeError(
                f"Execution record {self.id} already finished as {self.status.value}"
            )
        self.status = status
        self.error_message = error_message
        self.completed_at = utcnow()

    def stamp_output(self, curve_id: UUID, content_hash: str) -> None:
        """Attach the persisted output curve to a completed record."""
        if self.status is not ExecutionStatus.COMPLETED:
            raise RuntimeError("Only completed executions can carry an output curve")
        self.output_curve_id = curve_id
        self.output_content_hash = content_hash

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the provenance store schema."""
        return {
            "id": str(self.id),
            "udf_id": self.udf_id,
            "udf_version": self.udf_version,
            "inputs": [ref.to_dict() for ref in self.inputs],
            "parameters": self.parameters,
            "output_curve_id": str(self.output_curve_id) if self.output_curve_id else None,
            "output_content_hash": self.output_content_hash,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "engine_version": self.engine_version,
            "status": self.status.value if self.status else None,
            "error_message": self.error_message,
        }
