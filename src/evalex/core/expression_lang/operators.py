"""
Operator semantics over runtime values.

Pure functions applying unary and binary operators to already-evaluated
operands. Short-circuiting of ``&&`` and ``||`` is the evaluator's job; the
functions here only see both operands.

Rules:
- Int with Float promotes the Int to Float; Int with Int stays Int.
- Int results must fit in 64 bits; ``/`` truncates toward zero and ``%``
  takes the sign of the dividend. A zero divisor is an error, and so is
  ``INT_MIN / -1`` or ``INT_MIN % -1``.
- Float arithmetic follows IEEE-754 and never raises.
- ``+`` on two Strings concatenates.
- Comparisons only work within a kind (numbers count as one kind).
"""

from __future__ import annotations

import math

from evalex.core.errors import ExpressionArithmeticError, ExpressionTypeError
from evalex.core.ir.expressions import BinaryOp, UnaryOp
from evalex.core.ir.values import (
    BooleanValue,
    EmptyValue,
    FloatValue,
    IntValue,
    StringValue,
    TupleValue,
    Value,
    ValueKind,
    boolean,
    check_int_range,
)

_ARITHMETIC = frozenset({BinaryOp.ADD, BinaryOp.SUB, BinaryOp.MUL, BinaryOp.DIV, BinaryOp.MOD, BinaryOp.POW})
_ORDERING = frozenset({BinaryOp.LT, BinaryOp.LE, BinaryOp.GT, BinaryOp.GE})


def _is_number(value: Value) -> bool:
    return isinstance(value, (IntValue, FloatValue))


def _operand_error(op: BinaryOp | UnaryOp, left: Value, right: Value | None = None) -> ExpressionTypeError:
    """Type error naming the operator and the offending kinds."""
    if right is None:
        return ExpressionTypeError(
            f"Operator '{op.value}' cannot be applied to {left.kind}",
            actual=left.kind,
        )
    return ExpressionTypeError(
        f"Operator '{op.value}' cannot be applied to {left.kind} and {right.kind}",
        expected=left.kind,
        actual=right.kind,
    )


# ---------------------------------------------------------------------------
# Unary
# ---------------------------------------------------------------------------


def apply_unary(op: UnaryOp, operand: Value) -> Value:
    """Apply a prefix operator."""
    if op == UnaryOp.NOT:
        if isinstance(operand, BooleanValue):
            return boolean(not operand.value)
        raise ExpressionTypeError(
            f"Operator '!' expected {ValueKind.BOOLEAN}, got {operand.kind}",
            expected=ValueKind.BOOLEAN,
            actual=operand.kind,
        )

    if isinstance(operand, IntValue):
        if op == UnaryOp.NEG:
            return IntValue(value=check_int_range(-operand.value))
        return operand
    if isinstance(operand, FloatValue):
        if op == UnaryOp.NEG:
            return FloatValue(value=-operand.value)
        return operand
    raise _operand_error(op, operand)


# ---------------------------------------------------------------------------
# Binary
# ---------------------------------------------------------------------------


def apply_binary(op: BinaryOp, left: Value, right: Value) -> Value:
    """Apply a binary operator to two evaluated operands."""
    if op in _ARITHMETIC:
        return _arithmetic(op, left, right)
    if op == BinaryOp.EQ:
        return boolean(values_equal(left, right))
    if op == BinaryOp.NE:
        return boolean(not values_equal(left, right))
    if op in _ORDERING:
        return boolean(compare(op, left, right))
    if op in (BinaryOp.AND, BinaryOp.OR):
        if isinstance(left, BooleanValue) and isinstance(right, BooleanValue):
            if op == BinaryOp.AND:
                return boolean(left.value and right.value)
            return boolean(left.value or right.value)
        raise _operand_error(op, left, right)
    raise AssertionError(f"Unhandled binary operator: {op!r}")


def _arithmetic(op: BinaryOp, left: Value, right: Value) -> Value:
    if isinstance(left, IntValue) and isinstance(right, IntValue):
        return IntValue(value=_int_arithmetic(op, left.value, right.value))
    if _is_number(left) and _is_number(right):
        return FloatValue(value=_float_arithmetic(op, float(left.value), float(right.value)))  # type: ignore[union-attr]
    if op == BinaryOp.ADD and isinstance(left, StringValue) and isinstance(right, StringValue):
        return StringValue(value=left.value + right.value)
    raise _operand_error(op, left, right)


def _int_arithmetic(op: BinaryOp, a: int, b: int) -> int:
    if op == BinaryOp.ADD:
        return check_int_range(a + b)
    if op == BinaryOp.SUB:
        return check_int_range(a - b)
    if op == BinaryOp.MUL:
        return check_int_range(a * b)
    if op == BinaryOp.DIV:
        if b == 0:
            raise ExpressionArithmeticError("Division by zero")
        return check_int_range(_trunc_div(a, b))
    if op == BinaryOp.MOD:
        if b == 0:
            raise ExpressionArithmeticError("Modulo by zero")
        # INT_MIN % -1 overflows like INT_MIN / -1 does
        return a - b * check_int_range(_trunc_div(a, b))
    if op == BinaryOp.POW:
        return _int_pow(a, b)
    raise AssertionError(f"Unhandled arithmetic operator: {op!r}")


def _trunc_div(a: int, b: int) -> int:
    """Integer division rounding toward zero."""
    q = abs(a) // abs(b)
    return q if (a < 0) == (b < 0) else -q


def _int_pow(base: int, exponent: int) -> int:
    if exponent < 0:
        raise ExpressionArithmeticError(f"Negative exponent {exponent} for integer power")
    if base in (0, 1, -1):
        return base**exponent
    # |base| >= 2, so 2**64 and up cannot fit
    if exponent >= 64:
        raise ExpressionArithmeticError(f"Integer overflow: {base} ^ {exponent}")
    return check_int_range(base**exponent)


def _float_arithmetic(op: BinaryOp, a: float, b: float) -> float:
    if op == BinaryOp.ADD:
        return a + b
    if op == BinaryOp.SUB:
        return a - b
    if op == BinaryOp.MUL:
        return a * b
    if op == BinaryOp.DIV:
        if b == 0.0:
            if a == 0.0 or math.isnan(a):
                return math.nan
            return math.copysign(math.inf, a) * math.copysign(1.0, b)
        return a / b
    if op == BinaryOp.MOD:
        if b == 0.0 or math.isinf(a):
            return math.nan
        return math.fmod(a, b)
    if op == BinaryOp.POW:
        return _float_pow(a, b)
    raise AssertionError(f"Unhandled arithmetic operator: {op!r}")


def _float_pow(base: float, exponent: float) -> float:
    try:
        return math.pow(base, exponent)
    except ValueError:
        # 0 to a negative power, or a negative base with a fractional exponent
        if base == 0.0:
            return math.inf
        return math.nan
    except OverflowError:
        negative = base < 0 and exponent.is_integer() and exponent % 2 == 1
        return -math.inf if negative else math.inf


# ---------------------------------------------------------------------------
# Comparison
# ---------------------------------------------------------------------------


def _promote(left: Value, right: Value) -> tuple[int | float, int | float]:
    """Numeric payloads of two number values, promoted to float if either is a Float."""
    a = left.value  # type: ignore[union-attr]
    b = right.value  # type: ignore[union-attr]
    if isinstance(left, FloatValue) or isinstance(right, FloatValue):
        return float(a), float(b)
    return a, b


def values_equal(left: Value, right: Value) -> bool:
    """Equality under the promotion rules.

    Tuples of different length are unequal; any other cross-kind pair is
    a type error.
    """
    if _is_number(left) and _is_number(right):
        a, b = _promote(left, right)
        return a == b
    if isinstance(left, TupleValue) and isinstance(right, TupleValue):
        if len(left.items) != len(right.items):
            return False
        return all(values_equal(a, b) for a, b in zip(left.items, right.items, strict=True))
    if left.kind != right.kind:
        raise _operand_error(BinaryOp.EQ, left, right)
    if isinstance(left, EmptyValue):
        return True
    return left.value == right.value  # type: ignore[union-attr]


def compare(op: BinaryOp, left: Value, right: Value) -> bool:
    """Ordering comparison (``< <= > >=``).

    Numbers, strings and booleans order naturally. Tuples order element by
    element and must have the same length.
    """
    if isinstance(left, TupleValue) and isinstance(right, TupleValue):
        if len(left.items) != len(right.items):
            raise ExpressionTypeError(
                f"Operator '{op.value}' requires tuples of equal length, "
                f"got {len(left.items)} and {len(right.items)}",
                expected=ValueKind.TUPLE,
                actual=ValueKind.TUPLE,
            )
        for a, b in zip(left.items, right.items, strict=True):
            if not values_equal(a, b):
                return compare(op, a, b)
        return op in (BinaryOp.LE, BinaryOp.GE)

    comparable = (_is_number(left) and _is_number(right)) or (
        left.kind == right.kind and isinstance(left, (StringValue, BooleanValue))
    )
    if not comparable:
        raise _operand_error(op, left, right)

    if _is_number(left):
        a, b = _promote(left, right)
    else:
        a = left.value  # type: ignore[union-attr]
        b = right.value  # type: ignore[union-attr]
    if op == BinaryOp.LT:
        return a < b
    if op == BinaryOp.LE:
        return a <= b
    if op == BinaryOp.GT:
        return a > b
    return a >= b
