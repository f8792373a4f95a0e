# =============================================================================
# compute/providers/petrophysics.py - Petrophysics UDFs
# =============================================================================
# Shale volume (VShale) from a gamma ray log. All three methods start from
# the gamma ray index:
#
#   IGR = (GR - GR_min) / (GR_max - GR_min)
#
# and differ only in how IGR is turned into Vsh:
# - linear:   Vsh = IGR
# - clavier:  Vsh = 1.7 - sqrt(3.38 - (IGR + 0.7)^2), clamped to [0, 1]
# - steiber:  Vsh = IGR / (3 - 2 * IGR), IGR clamped to [0, 1] first
#
# Null GR samples stay null in the output.
# =============================================================================

from __future__ import annotations

from abc import abstractmethod

import numpy as np

from compute.context import ExecutionContext
from compute.errors import ValidationError
from compute.parameters import CurveParameter, NumericParameter, ParameterDefinition
from compute.types import CurveDataType, OutputCurveData, UdfMetadata, UdfOutput
from compute.udf import Udf, UdfProvider


# Linear VShale warns when more than this share of samples falls outside 0-1
OUT_OF_RANGE_WARN_PCT = 5.0


class PetrophysicsProvider(UdfProvider):
    """Fundamental petrophysical calculations for well log analysis."""

    @property
    def id(self) -> str:
        return "petro"

    @property
    def name(self) -> str:
        return "Petrophysics"

    @property
    def description(self) -> str:
        return "Fundamental petrophysical calculations for well log analysis"

    def load_udfs(self) -> list[Udf]:
        return [VShaleLinearUdf(), VShaleClavierUdf(), VShaleSteiberUdf()]


class VShaleUdf(Udf):
    """
    Shared parameters, checks and output shape for the VShale family.

    Subclasses set the class attributes and implement vshale_from_igr().
    """

    method: str = ""
    method_label: str = ""
    output_mnemonic: str = ""
    summary: str = ""
    documentation: str = ""
    extra_tags: tuple[str, ...] = ()

    @property
    def id(self) -> str:
        return f"vshale_{self.method}"

    def metadata(self) -> UdfMetadata:
        return UdfMetadata(
            name=f"VShale ({self.method_label})",
            category="Petrophysics",
            description=self.summary,
            version="1.0.0",
            tags=["shale", "gamma ray", "vshale", *self.extra_tags],
            documentation=self.documentation,
        )

    def parameter_definitions(self) -> list[ParameterDefinition]:
        return [
            CurveParameter.required_curve("gr_curve", "Gamma Ray Curve")
            .with_description("Input gamma ray log for VShale calculation")
            .with_allowed_types([CurveDataType.GAMMA_RAY]),
            NumericParameter.required_number("gr_min", "GR Clean (Min)")
            .with_description("Gamma ray reading in clean sand zone (API units)")
            .with_min(0.0)
            .with_unit("gAPI"),
            NumericParameter.required_number("gr_max", "GR Shale (Max)")
            .with_description("Gamma ray reading in shale zone (API units)")
            .with_min(0.0)
            .with_unit("gAPI"),
        ]

    def check_parameters(self, context: ExecutionContext) -> list[ValidationError]:
        params = context.parameters
        gr_min = params.get_float_or("gr_min", 0.0)
        gr_max = params.get_float_or("gr_max", 0.0)
        if gr_max <= gr_min:
            return [
                ValidationError("gr_max", "GR Max must be greater than GR Min")
                .with_suggestion("Pick GR Max from a shale interval and GR Min from a clean sand")
            ]
        return []

    @abstractmethod
    def vshale_from_igr(self, igr: np.ndarray) -> np.ndarray:
        """Map gamma ray index to shale volume. NaN in, NaN out."""
        pass

    def execute(self, context: ExecutionContext) -> UdfOutput:
        gr = context.require_curve("gr_curve")
        gr_min = context.parameters.get_float("gr_min")
        gr_max = context.parameters.get_float("gr_max")

        igr = (gr.values - gr_min) / (gr_max - gr_min)
        vsh = np.where(np.isnan(igr), np.nan, self.vshale_from_igr(igr))

        output = UdfOutput(
            OutputCurveData(
                mnemonic=self.output_mnemonic,
                curve_type=CurveDataType.COMPUTED,
                unit="v/v",
                depths=gr.depths,
                values=vsh,
                description=(
                    f"VShale ({self.method_label}) from {gr.mnemonic}, "
                    f"GR range: {gr_min:.1f}-{gr_max:.1f} gAPI"
                ),
            )
        )
        output.add_metadata("method", self.method)
        output.add_metadata("gr_min", gr_min)
        output.add_metadata("gr_max", gr_max)
        output.add_metadata("input_curve", gr.mnemonic)
        return output


class VShaleLinearUdf(VShaleUdf):
    method = "linear"
    method_label = "Linear"
    output_mnemonic = "VSH_LIN"
    summary = "Calculate shale volume from Gamma Ray using linear method"
    extra_tags = ("linear",)
    documentation = (
        "# VShale Linear\n\n"
        "```\nVsh = IGR\n```\n\n"
        "The simplest method. Tends to overestimate shale in consolidated\n"
        "formations; values can fall outside 0-1 when GR leaves the min/max range.\n"
    )

    def vshale_from_igr(self, igr: np.ndarray) -> np.ndarray:
        return igr.copy()

    def execute(self, context: ExecutionContext) -> UdfOutput:
        output = super().execute(context)

        values = output.curve_data.values
        with np.errstate(invalid="ignore"):
            out_of_range = int(((values < 0.0) | (values > 1.0)).sum())
        if out_of_range and len(values):
            pct = out_of_range / len(values) * 100.0
            if pct > OUT_OF_RANGE_WARN_PCT:
                output.add_warning(
                    f"{pct:.1f}% of values are outside 0-1 range. "
                    "Consider adjusting GR min/max."
                )
        return output


class VShaleClavierUdf(VShaleUdf):
    method = "clavier"
    method_label = "Clavier"
    output_mnemonic = "VSH_CLAV"
    summary = "Calculate shale volume from Gamma Ray using the Clavier method"
    extra_tags = ("clavier", "nonlinear", "consolidated")
    documentation = (
        "# VShale Clavier\n\n"
        "```\nVsh = 1.7 - sqrt(3.38 - (IGR + 0.7)^2)\n```\n\n"
        "Non-linear correction for older, consolidated rocks where the\n"
        "linear method overestimates shale. Result is clamped to 0-1.\n"
    )

    def vshale_from_igr(self, igr: np.ndarray) -> np.ndarray:
        radicand = 3.38 - (igr + 0.7) ** 2
        with np.errstate(invalid="ignore"):
            vsh = np.clip(1.7 - np.sqrt(radicand), 0.0, 1.0)
        return np.where(radicand < 0.0, 1.0, vsh)


class VShaleSteiberUdf(VShaleUdf):
    method = "steiber"
    method_label = "Steiber"
    output_mnemonic = "VSH_STEI"
    summary = "Calculate shale volume from Gamma Ray using the Steiber method"
    extra_tags = ("steiber", "nonlinear", "tertiary")
    documentation = (
        "# VShale Steiber\n\n"
        "```\nVsh = IGR / (3 - 2 * IGR)\n```\n\n"
        "Alternative to Clavier for consolidated formations. IGR is clamped\n"
        "to 0-1 before the formula is applied.\n"
    )

    def vshale_from_igr(self, igr: np.ndarray) -> np.ndarray:
        clamped = np.clip(igr, 0.0, 1.0)
        return clamped / (3.0 - 2.0 * clamped)
