# =============================================================================
# compute/parameters.py - Typed Parameter System
# =============================================================================
# UDFs declare their inputs as a list of ParameterDefinition objects.
# The engine uses these to:
# - apply defaults (only when the supplied value is null)
# - validate values before any data is loaded
# - describe the parameter to the UI (to_dict)
#
# Definitions are an explicit class hierarchy (CurveParameter,
# NumericParameter, ...) so the engine can isinstance() on the concrete
# variant to recover curve-type constraints.
#
# Values arrive as ParameterValue, a small tagged union built from JSON.
# =============================================================================

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar
from uuid import UUID

import numpy as np

from compute.errors import ValidationError
from compute.types import CurveData, CurveDataType


# =============================================================================
# Parameter Values
# =============================================================================

class ParameterKind(str, Enum):
    """Tag of a ParameterValue."""
    CURVE = "curve"
    NUMBER = "number"
    INTEGER = "integer"
    TEXT = "text"
    BOOLEAN = "boolean"
    NULL = "null"


def _parse_uuid(text: str) -> UUID | None:
    try:
        return UUID(text)
    except (ValueError, AttributeError, TypeError):
        return None


@dataclass(frozen=True)
class ParameterValue:
    """
    Dynamic parameter value.

    Examples:
        ParameterValue.curve("3f2b...")
        ParameterValue.number(30.0)
        ParameterValue.from_json(5)        # -> integer
        ParameterValue.from_json(None)     # -> null
    """
    kind: ParameterKind
    value: Any = None

    # -------------------------------------------------------------------------
    # Constructors
    # -------------------------------------------------------------------------

    @classmethod
    def curve(cls, curve_id: UUID | str) -> "ParameterValue":
        return cls(ParameterKind.CURVE, curve_id if isinstance(curve_id, UUID) else UUID(curve_id))

    @classmethod
    def number(cls, value: float) -> "ParameterValue":
        return cls(ParameterKind.NUMBER, float(value))

    @classmethod
    def integer(cls, value: int) -> "ParameterValue":
        return cls(ParameterKind.INTEGER, int(value))

    @classmethod
    def text(cls, value: str) -> "ParameterValue":
        return cls(ParameterKind.TEXT, str(value))

    @classmethod
    def boolean(cls, value: bool) -> "ParameterValue":
        return cls(ParameterKind.BOOLEAN, bool(value))

    @classmethod
    def null(cls) -> "ParameterValue":
        return cls(ParameterKind.NULL)

    @classmethod
    def from_json(cls, value: Any) -> "ParameterValue":
        """
        Build a value from a decoded JSON scalar.

        Strings that parse as a UUID become curve references; everything
        that is not a scalar becomes null.
        """
        if isinstance(value, ParameterValue):
            return value
        if value is None:
            return cls.null()
        # bool first: bool is a subclass of int
        if isinstance(value, bool):
            return cls.boolean(value)
        if isinstance(value, int):
            return cls.integer(value)
        if isinstance(value, float):
            return cls.number(value)
        if isinstance(value, UUID):
            return cls.curve(value)
        if isinstance(value, str):
            parsed = _parse_uuid(value)
            return cls.curve(parsed) if parsed else cls.text(value)
        return cls.null()

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    def is_null(self) -> bool:
        return self.kind is ParameterKind.NULL

    def as_curve(self) -> UUID | None:
        if self.kind is ParameterKind.CURVE:
            return self.value
        if self.kind is ParameterKind.TEXT:
            return _parse_uuid(self.value)
        return None

    def as_float(self) -> float | None:
        if self.kind in (ParameterKind.NUMBER, ParameterKind.INTEGER):
            return float(self.value)
        return None

    def as_int(self) -> int | None:
        if self.kind is ParameterKind.INTEGER:
            return self.value
        if self.kind is ParameterKind.NUMBER and math.isfinite(self.value):
            return int(self.value)
        return None

    def as_str(self) -> str | None:
        return self.value if self.kind is ParameterKind.TEXT else None

    def as_bool(self) -> bool | None:
        return self.value if self.kind is ParameterKind.BOOLEAN else None

    def to_json(self) -> Any:
        if self.kind is ParameterKind.CURVE:
            return str(self.value)
        if self.kind is ParameterKind.NUMBER and not math.isfinite(self.value):
            return None
        return self.value


class ParameterValues(Mapping[str, ParameterValue]):
    """
    Read-only parameter collection with typed getters.

    Accepts raw JSON scalars or ParameterValue objects.
    """

    def __init__(self, values: Mapping[str, Any] | None = None):
        self._values: dict[str, ParameterValue] = {
            name: ParameterValue.from_json(value)
            for name, value in (values or {}).items()
        }

    def __getitem__(self, name: str) -> ParameterValue:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"ParameterValues({self.to_json()!r})"

    def get_curve(self, name: str) -> UUID | None:
        value = self._values.get(name)
        return value.as_curve() if value else None

    def get_float(self, name: str) -> float | None:
        value = self._values.get(name)
        return value.as_float() if value else None

    def get_float_or(self, name: str, default: float) -> float:
        result = self.get_float(name)
        return default if result is None else result

    def get_int(self, name: str) -> int | None:
        value = self._values.get(name)
        return value.as_int() if value else None

    def get_int_or(self, name: str, default: int) -> int:
        result = self.get_int(name)
        return default if result is None else result

    def get_str(self, name: str) -> str | None:
        value = self._values.get(name)
        return value.as_str() if value else None

    def get_bool(self, name: str) -> bool | None:
        value = self._values.get(name)
        return value.as_bool() if value else None

    def get_bool_or(self, name: str, default: bool) -> bool:
        result = self.get_bool(name)
        return default if result is None else result

    def has(self, name: str) -> bool:
        """True if the parameter exists and is not null."""
        value = self._values.get(name)
        return value is not None and not value.is_null()

    def to_json(self) -> dict[str, Any]:
        return {name: value.to_json() for name, value in self._values.items()}


# =============================================================================
# Parameter Definitions
# =============================================================================

@dataclass
class ParameterDefinition(ABC):
    """
    Base class for parameter definitions.

    Subclasses implement _validate_present() for non-null values; the
    required/default handling is shared here.
    """
    name: str
    label: str
    description: str = ""
    required: bool = True

    kind: ClassVar[str] = ""

    def default_value(self) -> ParameterValue | None:
        """Default used when the supplied value is null. None = no default."""
        return None

    def resolve(self, value: ParameterValue | None) -> ParameterValue:
        """Apply the default to a missing or null value. Other values pass through."""
        if value is None or value.is_null():
            default = self.default_value()
            return default if default is not None else ParameterValue.null()
        return value

    def validate(self, value: ParameterValue) -> ValidationError | None:
        """Validate a value. Returns None on success."""
        if value.is_null():
            if self.required and self.default_value() is None:
                return ValidationError(self.name, f"'{self.label}' is required")
            return None
        return self._validate_present(value)

    @abstractmethod
    def _validate_present(self, value: ParameterValue) -> ValidationError | None:
        ...

    def with_description(self, description: str):
        self.description = description
        return self

    def to_dict(self) -> dict[str, Any]:
        """Describe this parameter for UI rendering."""
        return {
            "name": self.name,
            "label": self.label,
            "description": self.description,
            "type": self.kind,
            "required": self.required,
        }


@dataclass
class CurveParameter(ParameterDefinition):
    """
    Curve input parameter with type constraints.

    This is the mechanism that keeps a VShale UDF from being handed a
    density log. The type itself is checked by the engine after loading,
    since only the loaded curve knows its classification.
    """
    allowed_types: list[CurveDataType] = field(default_factory=list)   # empty = any
    min_length: int | None = None
    allow_nulls: bool = True

    kind: ClassVar[str] = "curve"

    @classmethod
    def required_curve(cls, name: str, label: str) -> "CurveParameter":
        return cls(name=name, label=label, required=True)

    @classmethod
    def optional_curve(cls, name: str, label: str) -> "CurveParameter":
        return cls(name=name, label=label, required=False)

    def with_allowed_types(self, types: list[CurveDataType]) -> "CurveParameter":
        self.allowed_types = list(types)
        return self

    def with_min_length(self, min_length: int) -> "CurveParameter":
        self.min_length = min_length
        return self

    def require_no_nulls(self) -> "CurveParameter":
        self.allow_nulls = False
        return self

    def is_type_allowed(self, curve_type: CurveDataType) -> bool:
        return not self.allowed_types or curve_type in self.allowed_types

    def allowed_types_display(self) -> str:
        if not self.allowed_types:
            return "Any"
        return ", ".join(t.display_name for t in self.allowed_types)

    def _validate_present(self, value: ParameterValue) -> ValidationError | None:
        if value.as_curve() is None:
            return ValidationError(self.name, "Value must be a valid curve UUID")
        return None

    def check_curve(self, curve: CurveData) -> list[ValidationError]:
        """Check length and null constraints against a loaded curve."""
        errors = []
        if self.min_length is not None and len(curve) < self.min_length:
            errors.append(
                ValidationError(
                    self.name,
                    f"Curve '{curve.mnemonic}' has {len(curve)} samples, "
                    f"at least {self.min_length} required",
                )
            )
        if not self.allow_nulls and bool(np.isnan(curve.values).any()):
            errors.append(
                ValidationError(
                    self.name,
                    f"Curve '{curve.mnemonic}' contains {curve.null_count} null values",
                ).with_suggestion("Fill or remove null samples before running this tool")
            )
        return errors

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result.update({
            "allowed_types": [t.display_name for t in self.allowed_types],
            "min_length": self.min_length,
            "allow_nulls": self.allow_nulls,
        })
        return result


@dataclass
class NumericParameter(ParameterDefinition):
    """Numeric parameter with optional inclusive range constraints."""
    default: float | None = None
    min: float | None = None
    max: float | None = None
    unit: str | None = None

    kind: ClassVar[str] = "number"

    @classmethod
    def required_number(cls, name: str, label: str) -> "NumericParameter":
        return cls(name=name, label=label, required=True)

    @classmethod
    def optional_number(
        cls, name: str, label: str, default: float | None = None
    ) -> "NumericParameter":
        return cls(name=name, label=label, required=False, default=default)

    def with_range(self, min_value: float, max_value: float) -> "NumericParameter":
        self.min = min_value
        self.max = max_value
        return self

    def with_min(self, min_value: float) -> "NumericParameter":
        self.min = min_value
        return self

    def with_max(self, max_value: float) -> "NumericParameter":
        self.max = max_value
        return self

    def with_unit(self, unit: str) -> "NumericParameter":
        self.unit = unit
        return self

    def default_value(self) -> ParameterValue | None:
        if self.default is None:
            return None
        return ParameterValue.number(self.default)

    def _validate_present(self, value: ParameterValue) -> ValidationError | None:
        number = value.as_float()
        if number is None or math.isnan(number):
            return ValidationError(self.name, "Value must be a number")
        if not math.isfinite(number):
            return ValidationError(
                self.name, "Value must be a finite number"
            ).with_suggestion("Enter a finite value")
        return self._check_bounds(number)

    def _check_bounds(self, number: float) -> ValidationError | None:
        if self.min is not None and number < self.min:
            return ValidationError(
                self.name, f"Value must be >= {self.min:g}"
            ).with_suggestion(f"Enter a value of {self.min:g} or greater")
        if self.max is not None and number > self.max:
            return ValidationError(
                self.name, f"Value must be <= {self.max:g}"
            ).with_suggestion(f"Enter a value of {self.max:g} or less")
        return None

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result.update({
            "default": self.default,
            "min": self.min,
            "max": self.max,
            "unit": self.unit,
        })
        return result


@dataclass
class IntegerParameter(NumericParameter):
    """Whole-number parameter. A number with an integral value is accepted."""

    kind: ClassVar[str] = "integer"

    def default_value(self) -> ParameterValue | None:
        if self.default is None:
            return None
        return ParameterValue.integer(int(self.default))

    def _validate_present(self, value: ParameterValue) -> ValidationError | None:
        number = value.as_float()
        if number is None or not math.isfinite(number):
            return ValidationError(self.name, "Value must be an integer")
        if not number.is_integer():
            return ValidationError(
                self.name, "Value must be a whole number"
            ).with_suggestion(f"Try {round(number)}")
        return self._check_bounds(number)


@dataclass
class BooleanParameter(ParameterDefinition):
    """On/off switch."""
    default: bool | None = None

    kind: ClassVar[str] = "boolean"

    @classmethod
    def flag(cls, name: str, label: str, default: bool = False) -> "BooleanParameter":
        return cls(name=name, label=label, required=False, default=default)

    def default_value(self) -> ParameterValue | None:
        if self.default is None:
            return None
        return ParameterValue.boolean(self.default)

    def _validate_present(self, value: ParameterValue) -> ValidationError | None:
        if value.as_bool() is None:
            return ValidationError(self.name, "Value must be true or false")
        return None

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["default"] = self.default
        return result


@dataclass
class ChoiceParameter(ParameterDefinition):
    """Text parameter restricted to a fixed set of options."""
    choices: list[str] = field(default_factory=list)
    default: str | None = None

    kind: ClassVar[str] = "choice"

    @classmethod
    def one_of(
        cls, name: str, label: str, choices: list[str], default: str | None = None
    ) -> "ChoiceParameter":
        return cls(
            name=name,
            label=label,
            required=default is None,
            choices=list(choices),
            default=default,
        )

    def default_value(self) -> ParameterValue | None:
        if self.default is None:
            return None
        return ParameterValue.text(self.default)

    def _validate_present(self, value: ParameterValue) -> ValidationError | None:
        text = value.as_str()
        if text is None or text not in self.choices:
            return ValidationError(
                self.name, f"Value must be one of: {', '.join(self.choices)}"
            ).with_suggestion(f"Pick one of {self.choices}")
        return None

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result.update({"choices": list(self.choices), "default": self.default})
        return result
