# =============================================================================
# compute/providers/core.py - Core Processing UDFs
# =============================================================================
# General-purpose curve processing:
# - moving_average: centered smoothing window
# - linear_scale: map one value range onto another
# - depth_resample: regular depth grid with linear interpolation
# =============================================================================

from __future__ import annotations

import numpy as np
import pandas as pd

from compute.context import ExecutionContext
from compute.errors import ExecutionFailedError, NumericError, ValidationError
from compute.parameters import (
    BooleanParameter,
    CurveParameter,
    IntegerParameter,
    NumericParameter,
    ParameterDefinition,
)
from compute.types import CurveDataType, OutputCurveData, UdfMetadata, UdfOutput
from compute.udf import Udf, UdfProvider


# Two depths closer than this are the same grid point
GRID_EPSILON = 1e-10


class CoreProvider(UdfProvider):
    """Fundamental data processing tools for well log curves."""

    @property
    def id(self) -> str:
        return "core"

    @property
    def name(self) -> str:
        return "Core Processing"

    @property
    def description(self) -> str:
        return "Fundamental data processing tools for well log curves"

    def load_udfs(self) -> list[Udf]:
        return [MovingAverageUdf(), LinearScaleUdf(), DepthResampleUdf()]


# =============================================================================
# Moving Average
# =============================================================================

class MovingAverageUdf(Udf):
    """
    Centered moving average.

    Windows shrink at the ends of the curve. Nulls are skipped inside a
    window; a window with no valid samples yields null.
    """

    DEFAULT_WINDOW = 5

    @property
    def id(self) -> str:
        return "moving_average"

    def metadata(self) -> UdfMetadata:
        return UdfMetadata(
            name="Moving Average",
            category="Smoothing",
            description="Apply a centered moving average filter to smooth curve data",
            version="1.0.0",
            tags=["smooth", "filter", "average", "noise"],
            documentation=(
                "# Moving Average\n\n"
                "Replaces each sample with the mean of the samples in a centered\n"
                "window of `window_size` samples.\n\n"
                "- Null samples are left out of the mean.\n"
                "- Near the top and bottom of the curve the window is truncated.\n"
                "- The output has the same depths as the input.\n"
            ),
        )

    def parameter_definitions(self) -> list[ParameterDefinition]:
        return [
            CurveParameter.required_curve("input_curve", "Input Curve")
            .with_description("Curve to apply moving average smoothing"),
            IntegerParameter.optional_number("window_size", "Window Size", self.DEFAULT_WINDOW)
            .with_description("Number of samples in the averaging window (odd)")
            .with_range(1, 101),
        ]

    def check_parameters(self, context: ExecutionContext) -> list[ValidationError]:
        window = context.parameters.get_int_or("window_size", self.DEFAULT_WINDOW)
        if window % 2 == 0:
            return [
                ValidationError(
                    "window_size", "Window size should be odd for symmetric averaging"
                ).with_suggestion("Use an odd number like 3, 5, 7, etc.")
            ]
        return []

    def execute(self, context: ExecutionContext) -> UdfOutput:
        curve = context.require_curve("input_curve")
        window = context.parameters.get_int_or("window_size", self.DEFAULT_WINDOW)

        smoothed = (
            pd.Series(curve.values)
            .rolling(window=window, center=True, min_periods=1)
            .mean()
            .to_numpy(dtype=np.float64)
        )

        output = UdfOutput(
            OutputCurveData(
                mnemonic=f"{curve.mnemonic}_MA{window}",
                curve_type=curve.curve_type,
                unit=curve.unit,
                depths=curve.depths,
                values=smoothed,
                description=f"Moving average (window={window}) of {curve.mnemonic}",
            )
        )
        output.add_metadata("window_size", window)
        output.add_metadata("input_curve", curve.mnemonic)
        return output


# =============================================================================
# Linear Scale
# =============================================================================

class LinearScaleUdf(Udf):
    """out = (in - in_min) / (in_max - in_min) * (out_max - out_min) + out_min"""

    @property
    def id(self) -> str:
        return "linear_scale"

    def metadata(self) -> UdfMetadata:
        return UdfMetadata(
            name="Linear Scale",
            category="Transform",
            description="Apply linear scaling/normalization to curve data",
            version="1.0.0",
            tags=["scale", "normalize", "transform", "linear"],
            documentation=(
                "# Linear Scale\n\n"
                "```\n"
                "output = (input - in_min) / (in_max - in_min) * (out_max - out_min) + out_min\n"
                "```\n\n"
                "Typical uses: normalizing to 0-1, linear unit conversion, rescaling\n"
                "for display. Enable `clip` to keep results inside the output range.\n"
            ),
        )

    def parameter_definitions(self) -> list[ParameterDefinition]:
        return [
            CurveParameter.required_curve("input_curve", "Input Curve")
            .with_description("Curve to scale"),
            NumericParameter.required_number("in_min", "Input Min")
            .with_description("Minimum value of input range"),
            NumericParameter.required_number("in_max", "Input Max")
            .with_description("Maximum value of input range"),
            NumericParameter.optional_number("out_min", "Output Min", 0.0)
            .with_description("Minimum value of output range"),
            NumericParameter.optional_number("out_max", "Output Max", 1.0)
            .with_description("Maximum value of output range"),
            BooleanParameter.flag("clip", "Clip Output", default=False)
            .with_description("Clamp scaled values to the output range"),
        ]

    def check_parameters(self, context: ExecutionContext) -> list[ValidationError]:
        params = context.parameters
        in_min = params.get_float_or("in_min", 0.0)
        in_max = params.get_float_or("in_max", 1.0)
        if abs(in_max - in_min) < 1e-10:
            return [
                ValidationError("in_max", "Input range cannot be zero (in_min == in_max)")
                .with_suggestion("Choose different values for Input Min and Input Max")
            ]
        return []

    def execute(self, context: ExecutionContext) -> UdfOutput:
        curve = context.require_curve("input_curve")
        params = context.parameters
        in_min = params.get_float("in_min")
        in_max = params.get_float("in_max")
        out_min = params.get_float_or("out_min", 0.0)
        out_max = params.get_float_or("out_max", 1.0)
        clip = params.get_bool_or("clip", False)

        with np.errstate(over="ignore", invalid="ignore"):
            scaled = (curve.values - in_min) / (in_max - in_min) * (out_max - out_min) + out_min

        if np.isinf(scaled).any():
            raise NumericError(f"Scaling {curve.mnemonic} overflowed")

        if clip:
            scaled = np.clip(scaled, min(out_min, out_max), max(out_min, out_max))

        output = UdfOutput(
            OutputCurveData(
                mnemonic=f"{curve.mnemonic}_SCALED",
                curve_type=CurveDataType.COMPUTED,
                unit="",
                depths=curve.depths,
                values=scaled,
                description=(
                    f"Linear scale of {curve.mnemonic} from [{in_min:.2f}, {in_max:.2f}] "
                    f"to [{out_min:.2f}, {out_max:.2f}]"
                ),
            )
        )
        output.add_metadata("in_min", in_min)
        output.add_metadata("in_max", in_max)
        output.add_metadata("out_min", out_min)
        output.add_metadata("out_max", out_max)
        output.add_metadata("clip", clip)
        return output


# =============================================================================
# Depth Resample
# =============================================================================

def interpolate_on_grid(targets: np.ndarray, depths: np.ndarray, values: np.ndarray) -> np.ndarray:
    """
    Linearly interpolate values at every target depth. depths must be ascending.

    Targets outside [depths[0], depths[-1]] are NaN. A target on a sample
    (within GRID_EPSILON) takes that sample's value. When one of the two
    bracketing samples is null, the other one is used as is.
    """
    targets = np.asarray(targets, dtype=np.float64)
    result = np.full(targets.shape, np.nan)
    if depths.size == 0:
        return result

    inside = (targets >= depths[0]) & (targets <= depths[-1])
    if depths.size == 1:
        result[inside] = values[0]
        return result

    raw = np.searchsorted(depths, targets, side="left")
    hi = np.clip(raw, 1, depths.size - 1)
    lo = hi - 1
    d0, d1 = depths[lo], depths[hi]
    v0, v1 = values[lo], values[hi]

    with np.errstate(invalid="ignore", divide="ignore"):
        interpolated = v0 + (targets - d0) / (d1 - d0) * (v1 - v0)
    interpolated = np.where(np.isnan(v0), v1, interpolated)
    interpolated = np.where(np.isnan(v1), v0, interpolated)
    interpolated = np.where(np.abs(d1 - targets) < GRID_EPSILON, v1, interpolated)
    interpolated = np.where(raw == 0, v0, interpolated)

    result[inside] = interpolated[inside]
    return result


def interpolate_at_depth(target: float, depths: np.ndarray, values: np.ndarray) -> float:
    """Interpolate a single depth. See interpolate_on_grid."""
    return float(interpolate_on_grid(np.array([target]), depths, values)[0])


def build_depth_grid(start: float, end: float, step: float) -> np.ndarray:
    """Regular grid from start to end (inclusive within GRID_EPSILON)."""
    count = int(np.floor((end - start + GRID_EPSILON) / step)) + 1
    grid = start + np.arange(count, dtype=np.float64) * step
    return grid[grid <= end + GRID_EPSILON]


class DepthResampleUdf(Udf):
    """Resample a curve onto a regular depth grid. No extrapolation."""

    @property
    def id(self) -> str:
        return "depth_resample"

    def metadata(self) -> UdfMetadata:
        return UdfMetadata(
            name="Depth Resample",
            category="Transform",
            description="Resample curve data to a new depth interval",
            version="1.0.0",
            tags=["resample", "depth", "interpolate", "spacing"],
            documentation=(
                "# Depth Resample\n\n"
                "Builds a regular depth grid from `start_depth` to `end_depth` at\n"
                "`new_step` and linearly interpolates the input onto it.\n\n"
                "- Start and end default to the first and last input depths.\n"
                "- Grid depths outside the input range are null.\n"
                "- If one neighbour is null, the other neighbour's value is used.\n"
            ),
        )

    def parameter_definitions(self) -> list[ParameterDefinition]:
        return [
            CurveParameter.required_curve("input_curve", "Input Curve")
            .with_description("Curve to resample"),
            NumericParameter.required_number("new_step", "New Step")
            .with_description("New depth interval (same units as input)")
            .with_min(0.001),
            NumericParameter.optional_number("start_depth", "Start Depth")
            .with_description("Start depth (leave empty to use first sample)"),
            NumericParameter.optional_number("end_depth", "End Depth")
            .with_description("End depth (leave empty to use last sample)"),
        ]

    def _depth_bounds(self, context: ExecutionContext) -> tuple[float, float] | None:
        curve = context.require_curve("input_curve")
        if curve.is_empty:
            return None
        params = context.parameters
        start = params.get_float("start_depth")
        end = params.get_float("end_depth")
        if start is None:
            start = float(curve.depths[0])
        if end is None:
            end = float(curve.depths[-1])
        return start, end

    def check_parameters(self, context: ExecutionContext) -> list[ValidationError]:
        errors = []
        if context.parameters.get_float_or("new_step", 0.0) <= 0.0:
            errors.append(ValidationError("new_step", "Step size must be positive"))

        bounds = self._depth_bounds(context)
        if bounds is not None and bounds[1] <= bounds[0]:
            errors.append(
                ValidationError(
                    "end_depth", "End depth must be greater than start depth"
                ).with_suggestion(f"Enter an end depth greater than {bounds[0]:g}")
            )
        return errors

    def execute(self, context: ExecutionContext) -> UdfOutput:
        curve = context.require_curve("input_curve")
        bounds = self._depth_bounds(context)
        if bounds is None:
            raise ExecutionFailedError("Input curve has no data")
        start, end = bounds
        step = context.parameters.get_float("new_step")

        grid = build_depth_grid(start, end, step)
        values = interpolate_on_grid(grid, curve.depths, curve.values)

        output = UdfOutput(
            OutputCurveData(
                mnemonic=f"{curve.mnemonic}_RS",
                curve_type=curve.curve_type,
                unit=curve.unit,
                depths=grid,
                values=values,
                description=(
                    f"Resampled {curve.mnemonic} at {step:.3f} step "
                    f"from {start:.2f} to {end:.2f}"
                ),
            )
        )
        output.add_metadata("new_step", step)
        output.add_metadata("start_depth", start)
        output.add_metadata("end_depth", end)
        output.add_metadata("sample_count", int(grid.size))
        return output
