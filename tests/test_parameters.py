# =============================================================================
# tests/test_parameters.py - Parameter System Tests
# =============================================================================
# Tests for ParameterValue conversion, ParameterValues getters, and the
# validation rules of each ParameterDefinition variant.
# =============================================================================

import math
from uuid import uuid4

import pytest

from compute.parameters import (
    BooleanParameter,
    ChoiceParameter,
    CurveParameter,
    IntegerParameter,
    NumericParameter,
    ParameterKind,
    ParameterValue,
    ParameterValues,
)
from compute.types import CurveDataType
from tests.conftest import make_curve


# =============================================================================
# ParameterValue Tests
# =============================================================================

class TestParameterValueFromJson:
    """Tests for building values from decoded JSON."""

    def test_none_is_null(self):
        assert ParameterValue.from_json(None).is_null()

    def test_bool_is_boolean_not_integer(self):
        value = ParameterValue.from_json(True)
        assert value.kind is ParameterKind.BOOLEAN
        assert value.as_bool() is True
        assert value.as_float() is None

    def test_int_is_integer(self):
        value = ParameterValue.from_json(5)
        assert value.kind is ParameterKind.INTEGER
        assert value.as_int() == 5
        assert value.as_float() == 5.0

    def test_float_is_number(self):
        value = ParameterValue.from_json(2.5)
        assert value.kind is ParameterKind.NUMBER
        assert value.as_float() == 2.5
        assert value.as_int() == 2

    def test_uuid_string_is_curve(self):
        curve_id = uuid4()
        value = ParameterValue.from_json(str(curve_id))
        assert value.kind is ParameterKind.CURVE
        assert value.as_curve() == curve_id

    def test_plain_string_is_text(self):
        value = ParameterValue.from_json("linear")
        assert value.kind is ParameterKind.TEXT
        assert value.as_str() == "linear"
        assert value.as_curve() is None

    def test_non_scalar_is_null(self):
        assert ParameterValue.from_json([1, 2]).is_null()
        assert ParameterValue.from_json({"a": 1}).is_null()

    def test_existing_value_passes_through(self):
        original = ParameterValue.number(3.0)
        assert ParameterValue.from_json(original) is original


class TestParameterValueToJson:
    """Tests for serializing values back to JSON."""

    def test_curve_becomes_string(self):
        curve_id = uuid4()
        assert ParameterValue.curve(curve_id).to_json() == str(curve_id)

    def test_non_finite_number_becomes_none(self):
        assert ParameterValue.number(math.inf).to_json() is None
        assert ParameterValue.number(math.nan).to_json() is None

    def test_infinite_number_has_no_int(self):
        assert ParameterValue.number(math.inf).as_int() is None


class TestParameterValues:
    """Tests for the typed getters."""

    def test_getters(self):
        curve_id = uuid4()
        values = ParameterValues({
            "curve": str(curve_id),
            "window": 7,
            "ratio": 0.25,
            "clip": True,
            "method": "steiber",
            "nothing": None,
        })

        assert values.get_curve("curve") == curve_id
        assert values.get_int("window") == 7
        assert values.get_float("ratio") == 0.25
        assert values.get_bool("clip") is True
        assert values.get_str("method") == "steiber"
        assert values.get_float("missing") is None

    def test_or_defaults(self):
        values = ParameterValues({"window": None})
        assert values.get_int_or("window", 5) == 5
        assert values.get_float_or("ratio", 1.5) == 1.5
        assert values.get_bool_or("clip", False) is False

    def test_has_ignores_null(self):
        values = ParameterValues({"a": 1, "b": None})
        assert values.has("a")
        assert not values.has("b")
        assert not values.has("c")

    def test_is_a_mapping(self):
        values = ParameterValues({"a": 1, "b": 2.0})
        assert set(values) == {"a", "b"}
        assert len(values) == 2
        assert values.to_json() == {"a": 1, "b": 2.0}


# =============================================================================
# Definition Tests
# =============================================================================

class TestRequiredAndDefaults:
    """Tests for the shared required/default handling."""

    def test_required_missing_is_error(self):
        definition = NumericParameter.required_number("gr_min", "GR Min")
        error = definition.validate(definition.resolve(None))
        assert error is not None
        assert error.field == "gr_min"
        assert error.message == "'GR Min' is required"

    def test_default_applied_to_null(self):
        definition = NumericParameter.optional_number("out_max", "Output Max", 1.0)
        resolved = definition.resolve(ParameterValue.null())
        assert resolved.as_float() == 1.0
        assert definition.validate(resolved) is None

    def test_default_not_applied_to_present_value(self):
        definition = NumericParameter.optional_number("out_max", "Output Max", 1.0)
        resolved = definition.resolve(ParameterValue.number(10.0))
        assert resolved.as_float() == 10.0

    def test_optional_without_default_stays_null(self):
        definition = NumericParameter.optional_number("start_depth", "Start Depth")
        resolved = definition.resolve(None)
        assert resolved.is_null()
        assert definition.validate(resolved) is None

    def test_integer_default_is_integer(self):
        definition = IntegerParameter.optional_number("window_size", "Window Size", 5)
        assert definition.resolve(None).kind is ParameterKind.INTEGER


class TestNumericParameter:
    """Tests for numeric range checks."""

    def test_below_min(self):
        definition = NumericParameter.required_number("gr_min", "GR Min").with_min(0.0)
        error = definition.validate(ParameterValue.number(-1.0))
        assert error.message == "Value must be >= 0"
        assert error.suggestion == "Enter a value of 0 or greater"

    def test_above_max(self):
        definition = NumericParameter.required_number("p", "P").with_range(1, 101)
        error = definition.validate(ParameterValue.integer(102))
        assert error.message == "Value must be <= 101"

    def test_bounds_are_inclusive(self):
        definition = NumericParameter.required_number("p", "P").with_range(1, 101)
        assert definition.validate(ParameterValue.integer(1)) is None
        assert definition.validate(ParameterValue.integer(101)) is None

    def test_integer_accepted_as_number(self):
        definition = NumericParameter.required_number("p", "P")
        assert definition.validate(ParameterValue.integer(3)) is None

    def test_text_rejected(self):
        definition = NumericParameter.required_number("p", "P")
        error = definition.validate(ParameterValue.text("abc"))
        assert error.message == "Value must be a number"

    def test_nan_rejected(self):
        definition = NumericParameter.required_number("p", "P")
        error = definition.validate(ParameterValue.number(math.nan))
        assert error.message == "Value must be a number"

    @pytest.mark.parametrize("number", [math.inf, -math.inf])
    def test_infinity_rejected(self, number):
        definition = NumericParameter.required_number("p", "P")
        error = definition.validate(ParameterValue.number(number))
        assert error.field == "p"
        assert error.message == "Value must be a finite number"

    def test_infinity_rejected_before_bounds(self):
        definition = NumericParameter.required_number("p", "P").with_min(0.0)
        error = definition.validate(ParameterValue.number(math.inf))
        assert error.message == "Value must be a finite number"

    def test_to_dict(self):
        definition = (
            NumericParameter.required_number("gr_min", "GR Min")
            .with_min(0.0)
            .with_unit("gAPI")
            .with_description("Clean sand GR")
        )
        d = definition.to_dict()
        assert d["type"] == "number"
        assert d["required"] is True
        assert d["min"] == 0.0
        assert d["max"] is None
        assert d["unit"] == "gAPI"
        assert d["description"] == "Clean sand GR"


class TestIntegerParameter:
    """Tests for whole-number checks."""

    def test_integral_number_accepted(self):
        definition = IntegerParameter.required_number("w", "W")
        assert definition.validate(ParameterValue.number(5.0)) is None

    def test_fraction_rejected(self):
        definition = IntegerParameter.required_number("w", "W")
        error = definition.validate(ParameterValue.number(5.5))
        assert error.message == "Value must be a whole number"

    def test_infinity_rejected(self):
        definition = IntegerParameter.required_number("w", "W")
        error = definition.validate(ParameterValue.number(math.inf))
        assert error.message == "Value must be an integer"

    def test_kind(self):
        assert IntegerParameter.required_number("w", "W").to_dict()["type"] == "integer"


class TestCurveParameter:
    """Tests for curve references and loaded-curve constraints."""

    def test_uuid_accepted(self):
        definition = CurveParameter.required_curve("gr_curve", "GR")
        assert definition.validate(ParameterValue.curve(uuid4())) is None

    def test_non_uuid_rejected(self):
        definition = CurveParameter.required_curve("gr_curve", "GR")
        error = definition.validate(ParameterValue.text("not-a-uuid"))
        assert error.message == "Value must be a valid curve UUID"

    def test_number_rejected(self):
        definition = CurveParameter.required_curve("gr_curve", "GR")
        assert definition.validate(ParameterValue.number(1.0)) is not None

    def test_type_allowed(self):
        definition = CurveParameter.required_curve("gr_curve", "GR").with_allowed_types(
            [CurveDataType.GAMMA_RAY]
        )
        assert definition.is_type_allowed(CurveDataType.GAMMA_RAY)
        assert not definition.is_type_allowed(CurveDataType.DENSITY)
        assert definition.allowed_types_display() == "Gamma Ray"

    def test_no_restriction_allows_any(self):
        definition = CurveParameter.required_curve("input_curve", "Input")
        assert definition.is_type_allowed(CurveDataType.UNKNOWN)
        assert definition.allowed_types_display() == "Any"

    def test_check_curve_min_length(self):
        definition = CurveParameter.required_curve("c", "C").with_min_length(10)
        errors = definition.check_curve(make_curve("GR", [1.0, 2.0, 3.0]))
        assert len(errors) == 1
        assert "at least 10 required" in errors[0].message

    def test_check_curve_nulls(self):
        definition = CurveParameter.required_curve("c", "C").require_no_nulls()
        errors = definition.check_curve(make_curve("GR", [1.0, None, 3.0]))
        assert len(errors) == 1
        assert "1 null values" in errors[0].message

    def test_check_curve_passes(self):
        definition = CurveParameter.required_curve("c", "C").with_min_length(2).require_no_nulls()
        assert definition.check_curve(make_curve("GR", [1.0, 2.0, 3.0])) == []

    def test_to_dict(self):
        d = (
            CurveParameter.required_curve("gr_curve", "Gamma Ray Curve")
            .with_allowed_types([CurveDataType.GAMMA_RAY])
            .to_dict()
        )
        assert d["type"] == "curve"
        assert d["allowed_types"] == ["Gamma Ray"]
        assert d["allow_nulls"] is True


class TestBooleanAndChoice:
    """Tests for the boolean and choice variants."""

    def test_flag_defaults_false(self):
        definition = BooleanParameter.flag("clip", "Clip")
        assert definition.required is False
        assert definition.resolve(None).as_bool() is False

    def test_flag_rejects_number(self):
        definition = BooleanParameter.flag("clip", "Clip")
        assert definition.validate(ParameterValue.integer(1)).message == "Value must be true or false"

    def test_choice_accepts_member(self):
        definition = ChoiceParameter.one_of("method", "Method", ["linear", "clavier"])
        assert definition.validate(ParameterValue.text("clavier")) is None

    def test_choice_rejects_other(self):
        definition = ChoiceParameter.one_of("method", "Method", ["linear", "clavier"])
        error = definition.validate(ParameterValue.text("larionov"))
        assert error.message == "Value must be one of: linear, clavier"

    def test_choice_with_default_is_optional(self):
        definition = ChoiceParameter.one_of("method", "Method", ["linear"], default="linear")
        assert definition.required is False
        assert definition.resolve(None).as_str() == "linear"

    @pytest.mark.parametrize("choices", [["a"], ["a", "b", "c"]])
    def test_choice_to_dict(self, choices):
        d = ChoiceParameter.one_of("m", "M", choices).to_dict()
        assert d["type"] == "choice"
        assert d["choices"] == choices
