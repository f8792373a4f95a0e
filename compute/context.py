# =============================================================================
# compute/context.py - Execution Context
# =============================================================================
# Per-call sandbox handed to a UDF. Holds:
# - validated parameters
# - loaded input curves, bound by parameter name
# - input references for provenance
# - well/workspace ids and free-form metadata
# - a CancellationToken and a ProgressState
#
# The token and progress objects are created by the caller and shared by
# reference, so another thread can poll progress or request cancellation
# while the synchronous execution runs.
# =============================================================================

from __future__ import annotations

import threading
from typing import Mapping
from uuid import UUID

import numpy as np

from compute.errors import ExecutionCancelledError, IncompatibleDataError, MissingCurveError
from compute.parameters import ParameterValues
from compute.types import CurveData, CurveDataType, InputReference


# Depth samples closer than this are considered the same depth
DEPTH_TOLERANCE = 1e-6


# =============================================================================
# Cancellation & Progress
# =============================================================================

class CancellationToken:
    """
    Cooperative cancellation flag.

    Cancellation is never preemptive: a UDF that never calls
    check_cancelled() runs to completion.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def check_cancelled(self) -> None:
        """Raise ExecutionCancelledError if cancel() has been called."""
        if self._event.is_set():
            raise ExecutionCancelledError()


class ProgressState:
    """
    Progress percentage (0-100) plus an optional status message.

    The percentage is a single int attribute write and needs no lock; the
    message has its own lock so readers never see a torn update.
    """

    def __init__(self):
        self._percentage = 0
        self._message: str | None = None
        self._message_lock = threading.Lock()

    def set_progress(self, percentage: int) -> None:
        self._percentage = max(0, min(100, int(percentage)))

    def get_progress(self) -> int:
        return self._percentage

    def set_message(self, message: str | None) -> None:
        with self._message_lock:
            self._message = message

    def get_message(self) -> str | None:
        with self._message_lock:
            return self._message

    def update(self, percentage: int, message: str | None = None) -> None:
        self.set_progress(percentage)
        if message is not None:
            self.set_message(message)

    def snapshot(self) -> tuple[int, str | None]:
        return self.get_progress(), self.get_message()


# =============================================================================
# Execution Context
# =============================================================================

class ExecutionContext:
    """
    Everything a UDF may read during execute().

    Mutated only by the engine (add_curve, set_metadata). UDFs read from it
    and may report progress or check for cancellation.
    """

    def __init__(
        self,
        well_id: UUID,
        workspace_id: UUID,
        parameters: ParameterValues | None = None,
        cancel_token: CancellationToken | None = None,
        progress: ProgressState | None = None,
    ):
        self.well_id = well_id
        self.workspace_id = workspace_id
        self._parameters = parameters if parameters is not None else ParameterValues()
        self._curves: dict[str, CurveData] = {}
        self._input_refs: list[InputReference] = []
        self._metadata: dict[str, str] = {}
        self.cancel_token = cancel_token or CancellationToken()
        self.progress = progress or ProgressState()

    def __repr__(self) -> str:
        return (
            f"ExecutionContext(well_id={self.well_id}, "
            f"curves={list(self._curves)}, parameters={self._parameters!r})"
        )

    # -------------------------------------------------------------------------
    # Parameters & curves
    # -------------------------------------------------------------------------

    @property
    def parameters(self) -> ParameterValues:
        return self._parameters

    @property
    def curves(self) -> Mapping[str, CurveData]:
        """Bound curves in binding order. Read-only view."""
        return dict(self._curves)

    @property
    def input_refs(self) -> list[InputReference]:
        return list(self._input_refs)

    def get_curve(self, param_name: str) -> CurveData | None:
        return self._curves.get(param_name)

    def require_curve(self, param_name: str) -> CurveData:
        """Get a bound curve or raise MissingCurveError."""
        curve = self._curves.get(param_name)
        if curve is None:
            raise MissingCurveError(param_name)
        return curve

    def add_curve(self, param_name: str, curve: CurveData) -> None:
        """
        Bind a curve to a parameter name and record its input reference.

        Each name can be bound once. Rebinding raises ValueError so the
        provenance list never disagrees with the curves actually used.
        """
        if param_name in self._curves:
            raise ValueError(f"Curve parameter '{param_name}' is already bound")
        self._curves[param_name] = curve
        self._input_refs.append(
            InputReference(
                curve_id=curve.curve_id,
                version=curve.version,
                content_hash=curve.content_hash,
            )
        )

    # -------------------------------------------------------------------------
    # Metadata
    # -------------------------------------------------------------------------

    def set_metadata(self, key: str, value: str) -> None:
        self._metadata[key] = str(value)

    def get_metadata(self, key: str) -> str | None:
        return self._metadata.get(key)

    # -------------------------------------------------------------------------
    # Checks
    # -------------------------------------------------------------------------

    def validate_depth_compatibility(self) -> None:
        """
        Ensure all bound curves share the same depth sampling.

        The first bound curve is the reference. Curves sharing its depth
        array object pass immediately; others must match in length and
        agree at every index within DEPTH_TOLERANCE.

        Raises:
            IncompatibleDataError: naming the curve and, for a value
                mismatch, the first offending index
        """
        reference: np.ndarray | None = None
        for name, curve in self._curves.items():
            if reference is None:
                reference = curve.depths
                continue
            if curve.depths is reference:
                continue
            if len(curve.depths) != len(reference):
                raise IncompatibleDataError(
                    f"Curve '{name}' has {len(curve.depths)} samples, "
                    f"expected {len(reference)}"
                )
            diff = np.abs(reference - curve.depths)
            bad = np.flatnonzero(~(diff <= DEPTH_TOLERANCE))
            if bad.size:
                i = int(bad[0])
                raise IncompatibleDataError(
                    f"Depth mismatch at index {i} for curve '{name}': "
                    f"{reference[i]} vs {curve.depths[i]}",
                    details={"curve": name, "index": i},
                )

    def get_depths(self) -> np.ndarray | None:
        """Depth array of the first bound curve."""
        for curve in self._curves.values():
            return curve.depths
        return None

    def has_curve_type(self, curve_type: CurveDataType) -> bool:
        return any(c.curve_type == curve_type for c in self._curves.values())

    # -------------------------------------------------------------------------
    # Progress & cancellation
    # -------------------------------------------------------------------------

    def report_progress(self, percentage: int, message: str | None = None) -> None:
        self.progress.update(percentage, message)

    def is_cancelled(self) -> bool:
        return self.cancel_token.is_cancelled()

    def check_cancelled(self) -> None:
        self.cancel_token.check_cancelled()


class ExecutionContextBuilder:
    """
    Fluent builder for ExecutionContext. Mostly used by tests.

    Example:
        ctx = (
            ExecutionContextBuilder(well_id, workspace_id)
            .with_parameters(ParameterValues({"window_size": 5}))
            .with_curve("input_curve", curve)
            .build()
        )
    """

    def __init__(self, well_id: UUID, workspace_id: UUID):
        self._well_id = well_id
        self._workspace_id = workspace_id
        self._parameters = ParameterValues()
        self._curves: list[tuple[str, CurveData]] = []
        self._metadata: dict[str, str] = {}
        self._cancel_token: CancellationToken | None = None
        self._progress: ProgressState | None = None

    def with_parameters(self, parameters: ParameterValues) -> "ExecutionContextBuilder":
        self._parameters = parameters
        return self

    def with_curve(self, param_name: str, curve: CurveData) -> "ExecutionContextBuilder":
        self._curves.append((param_name, curve))
        return self

    def with_metadata(self, key: str, value: str) -> "ExecutionContextBuilder":
        self._metadata[key] = value
        return self

    def with_cancel_token(self, token: CancellationToken) -> "ExecutionContextBuilder":
        self._cancel_token = token
        return self

    def with_progress(self, progress: ProgressState) -> "ExecutionContextBuilder":
        self._progress = progress
        return self

    def build(self) -> ExecutionContext:
        ctx = ExecutionContext(
            self._well_id,
            self._workspace_id,
            self._parameters,
            cancel_token=self._cancel_token,
            progress=self._progress,
        )
        for name, curve in self._curves:
            ctx.add_curve(name, curve)
        for key, value in self._metadata.items():
            ctx.set_metadata(key, value)
        return ctx
