# =============================================================================
# tests/test_petrophysics_provider.py - VShale UDF Tests
# =============================================================================
# Tests for the linear, Clavier and Steiber shale volume methods.
# =============================================================================

import math

import numpy as np
import pytest

from compute.context import ExecutionContextBuilder
from compute.parameters import ParameterValues
from compute.providers.petrophysics import (
    VShaleClavierUdf,
    VShaleLinearUdf,
    VShaleSteiberUdf,
)
from compute.types import CurveDataType, ExecutionStatus
from tests.conftest import make_curve


def run_vshale(udf, well_id, workspace_id, values, gr_min=30.0, gr_max=120.0):
    curve = make_curve("GR", values)
    context = (
        ExecutionContextBuilder(well_id, workspace_id)
        .with_parameters(ParameterValues({
            "gr_curve": str(curve.curve_id), "gr_min": gr_min, "gr_max": gr_max,
        }))
        .with_curve("gr_curve", curve)
        .build()
    )
    return udf.execute(context)


# =============================================================================
# Method Tests
# =============================================================================

class TestVShaleLinear:
    """Tests for Vsh = IGR."""

    def test_values(self, well_id, workspace_id):
        output = run_vshale(VShaleLinearUdf(), well_id, workspace_id, [30.0, 75.0, 120.0, None])
        values = output.curve_data.values
        np.testing.assert_allclose(values[:3], [0.0, 0.5, 1.0])
        assert np.isnan(values[3])

    def test_output_shape(self, well_id, workspace_id):
        output = run_vshale(VShaleLinearUdf(), well_id, workspace_id, [30.0, 75.0])
        curve = output.curve_data
        assert curve.mnemonic == "VSH_LIN"
        assert curve.unit == "v/v"
        assert curve.curve_type is CurveDataType.COMPUTED
        assert output.metadata["method"] == "linear"
        assert output.metadata["input_curve"] == "GR"

    def test_out_of_range_warning(self, well_id, workspace_id):
        output = run_vshale(VShaleLinearUdf(), well_id, workspace_id, [30.0, 75.0, 210.0])
        assert output.warnings == [
            "33.3% of values are outside 0-1 range. Consider adjusting GR min/max."
        ]

    def test_no_warning_in_range(self, well_id, workspace_id):
        output = run_vshale(VShaleLinearUdf(), well_id, workspace_id, [30.0, 75.0, 120.0])
        assert output.warnings == []


class TestVShaleClavier:
    """Tests for Vsh = 1.7 - sqrt(3.38 - (IGR + 0.7)^2)."""

    def test_end_points(self, well_id, workspace_id):
        output = run_vshale(VShaleClavierUdf(), well_id, workspace_id, [30.0, 120.0])
        np.testing.assert_allclose(output.curve_data.values, [0.0, 1.0], atol=1e-12)

    def test_midpoint(self, well_id, workspace_id):
        output = run_vshale(VShaleClavierUdf(), well_id, workspace_id, [75.0])
        expected = 1.7 - math.sqrt(3.38 - 1.2 ** 2)
        assert output.curve_data.values[0] == pytest.approx(expected)

    def test_negative_radicand_is_full_shale(self, well_id, workspace_id):
        # IGR = 2.0
        output = run_vshale(VShaleClavierUdf(), well_id, workspace_id, [210.0])
        assert output.curve_data.values[0] == 1.0

    def test_clamped_at_zero(self, well_id, workspace_id):
        # IGR = -1.0
        output = run_vshale(VShaleClavierUdf(), well_id, workspace_id, [-60.0], gr_min=30.0)
        assert output.curve_data.values[0] == 0.0

    def test_null_preserved(self, well_id, workspace_id):
        output = run_vshale(VShaleClavierUdf(), well_id, workspace_id, [None, 75.0])
        assert np.isnan(output.curve_data.values[0])
        assert output.curve_data.mnemonic == "VSH_CLAV"


class TestVShaleSteiber:
    """Tests for Vsh = IGR / (3 - 2 * IGR)."""

    def test_values(self, well_id, workspace_id):
        output = run_vshale(VShaleSteiberUdf(), well_id, workspace_id, [30.0, 75.0, 120.0])
        np.testing.assert_allclose(output.curve_data.values, [0.0, 0.25, 1.0])

    def test_igr_clamped_first(self, well_id, workspace_id):
        output = run_vshale(VShaleSteiberUdf(), well_id, workspace_id, [0.0, 210.0])
        np.testing.assert_allclose(output.curve_data.values, [0.0, 1.0])

    def test_null_preserved(self, well_id, workspace_id):
        output = run_vshale(VShaleSteiberUdf(), well_id, workspace_id, [None])
        assert np.isnan(output.curve_data.values[0])
        assert output.curve_data.mnemonic == "VSH_STEI"


# =============================================================================
# Shared Checks
# =============================================================================

class TestVShaleChecks:
    """Tests for the checks every method shares."""

    @pytest.mark.parametrize("udf_id", ["petro:vshale_linear", "petro:vshale_clavier", "petro:vshale_steiber"])
    def test_gr_max_must_exceed_gr_min(self, engine, well_id, workspace_id, gr_curve, loader, udf_id):
        result = engine.execute(
            udf_id,
            well_id,
            workspace_id,
            {"gr_curve": str(gr_curve.curve_id), "gr_min": 120.0, "gr_max": 30.0},
            loader,
        )
        assert result.record.status is ExecutionStatus.FAILED
        assert "GR Max must be greater than GR Min" in result.error

    def test_infinite_gr_max_rejected(self, engine, well_id, workspace_id, gr_curve, loader):
        result = engine.execute(
            "petro:vshale_linear",
            well_id,
            workspace_id,
            {"gr_curve": str(gr_curve.curve_id), "gr_min": 30.0, "gr_max": math.inf},
            loader,
        )
        assert result.record.status is ExecutionStatus.FAILED
        assert "gr_max: Value must be a finite number" in result.error
        assert result.output is None
        assert loader.loads == []

    def test_only_gamma_ray_accepted(self, engine):
        definitions = engine.get_parameter_definitions("petro:vshale_steiber")
        gr = next(d for d in definitions if d["name"] == "gr_curve")
        assert gr["allowed_types"] == ["Gamma Ray"]

    def test_metadata(self, registry):
        meta = registry.get_udf("petro:vshale_clavier").metadata()
        assert meta.name == "VShale (Clavier)"
        assert meta.category == "Petrophysics"
        assert "shale" in meta.tags
        assert meta.documentation.startswith("# VShale Clavier")
