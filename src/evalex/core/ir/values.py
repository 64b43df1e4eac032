"""
Runtime values for evalex.

Every evaluation produces one of a closed set of immutable value kinds:
Int (signed 64-bit), Float, Boolean, String, Tuple and Empty. Values are
frozen pydantic models so they compare by kind and content, hash, and
cannot be mutated after construction.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictFloat, StrictStr, field_validator

from evalex.core.errors import ExpressionArithmeticError, ExpressionTypeError

INT_MIN = -(2**63)
INT_MAX = 2**63 - 1


class ValueKind(StrEnum):
    """Kinds a runtime value can have."""

    INT = "int"
    FLOAT = "float"
    BOOLEAN = "boolean"
    STRING = "string"
    TUPLE = "tuple"
    EMPTY = "empty"


def check_int_range(value: int) -> int:
    """Return *value* unchanged, or raise if it does not fit in 64 bits."""
    if value < INT_MIN or value > INT_MAX:
        raise ExpressionArithmeticError(f"Integer overflow: {value} is outside the 64-bit range")
    return value


class IntValue(BaseModel):
    """A signed 64-bit integer."""

    kind: ClassVar[ValueKind] = ValueKind.INT
    value: int = Field(strict=True, description="Integer payload")

    model_config = ConfigDict(frozen=True)

    @field_validator("value")
    @classmethod
    def _in_range(cls, v: int) -> int:
        if v < INT_MIN or v > INT_MAX:
            raise ValueError(f"{v} is outside the signed 64-bit range")
        return v

    def __str__(self) -> str:
        return str(self.value)

    def to_python(self) -> int:
        return self.value


class FloatValue(BaseModel):
    """A 64-bit float."""

    kind: ClassVar[ValueKind] = ValueKind.FLOAT
    value: StrictFloat

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return repr(self.value)

    def to_python(self) -> float:
        return self.value


class BooleanValue(BaseModel):
    """A boolean."""

    kind: ClassVar[ValueKind] = ValueKind.BOOLEAN
    value: StrictBool

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return "true" if self.value else "false"

    def to_python(self) -> bool:
        return self.value


class StringValue(BaseModel):
    """A string."""

    kind: ClassVar[ValueKind] = ValueKind.STRING
    value: StrictStr

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        escaped = self.value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'

    def to_python(self) -> str:
        return self.value


class TupleValue(BaseModel):
    """An ordered sequence of values."""

    kind: ClassVar[ValueKind] = ValueKind.TUPLE
    items: tuple[Value, ...] = Field(default=(), description="Tuple elements in order")

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return "(" + ", ".join(str(item) for item in self.items) + ")"

    def to_python(self) -> tuple[Any, ...]:
        return tuple(item.to_python() for item in self.items)


class EmptyValue(BaseModel):
    """The unit value, written `()`."""

    kind: ClassVar[ValueKind] = ValueKind.EMPTY

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return "()"

    def to_python(self) -> None:
        return None


# ---------------------------------------------------------------------------
# Union type
# ---------------------------------------------------------------------------

Value = IntValue | FloatValue | BooleanValue | StringValue | TupleValue | EmptyValue

TupleValue.model_rebuild()

EMPTY = EmptyValue()
TRUE = BooleanValue(value=True)
FALSE = BooleanValue(value=False)


def boolean(flag: bool) -> BooleanValue:
    """Return the shared Boolean value for *flag*."""
    return TRUE if flag else FALSE


def to_value(obj: Any) -> Value:
    """Convert native Python data into a Value.

    Accepts existing values, ``bool``, ``int``, ``float``, ``str``, ``None``
    (Empty) and tuples or lists of any of these.

    Raises:
        ExpressionArithmeticError: If an ``int`` does not fit in 64 bits.
        ExpressionTypeError: If the object has no value representation.
    """
    if isinstance(obj, (IntValue, FloatValue, BooleanValue, StringValue, TupleValue, EmptyValue)):
        return obj
    # bool first: it is a subclass of int
    if isinstance(obj, bool):
        return boolean(obj)
    if isinstance(obj, int):
        return IntValue(value=check_int_range(obj))
    if isinstance(obj, float):
        return FloatValue(value=obj)
    if isinstance(obj, str):
        return StringValue(value=obj)
    if obj is None:
        return EMPTY
    if isinstance(obj, (tuple, list)):
        return TupleValue(items=tuple(to_value(item) for item in obj))
    raise ExpressionTypeError(
        f"Cannot convert {type(obj).__name__} to a value",
        actual=type(obj).__name__,
    )


# ---------------------------------------------------------------------------
# Typed extraction
# ---------------------------------------------------------------------------


def expect_int(value: Value) -> int:
    if isinstance(value, IntValue):
        return value.value
    raise ExpressionTypeError.mismatch(ValueKind.INT, value.kind)


def expect_float(value: Value) -> float:
    if isinstance(value, FloatValue):
        return value.value
    raise ExpressionTypeError.mismatch(ValueKind.FLOAT, value.kind)


def expect_number(value: Value) -> float:
    """Extract an Int or Float, promoted to ``float``."""
    if isinstance(value, FloatValue):
        return value.value
    if isinstance(value, IntValue):
        return float(value.value)
    raise ExpressionTypeError.mismatch("number", value.kind)


def expect_boolean(value: Value) -> bool:
    if isinstance(value, BooleanValue):
        return value.value
    raise ExpressionTypeError.mismatch(ValueKind.BOOLEAN, value.kind)


def expect_string(value: Value) -> str:
    if isinstance(value, StringValue):
        return value.value
    raise ExpressionTypeError.mismatch(ValueKind.STRING, value.kind)


def expect_tuple(value: Value) -> tuple[Value, ...]:
    if isinstance(value, TupleValue):
        return value.items
    raise ExpressionTypeError.mismatch(ValueKind.TUPLE, value.kind)


def expect_empty(value: Value) -> None:
    if not isinstance(value, EmptyValue):
        raise ExpressionTypeError.mismatch(ValueKind.EMPTY, value.kind)
