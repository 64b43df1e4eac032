"""
Expression evaluator for the evalex expression language.

Evaluates operator tree nodes against a configuration that resolves
variables and functions. Pure evaluation: the tree and the configuration
are only read, so one tree can be evaluated repeatedly, against different
configurations, from several threads at once. Does NOT use Python's eval().

The walk runs on an explicit work stack rather than the interpreter stack,
so long operator chains such as ``1 + 1 + ... + 1`` evaluate at any length.
Depth is counted the way the builder counts nesting: prefix operators, the
right operand of ``^`` and function arguments each open one level. A tree
the builder accepted under ``max_nesting`` therefore never exceeds a
``max_depth`` at least as large.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any

from evalex.core.configuration import EMPTY_CONFIGURATION, Configuration
from evalex.core.errors import ExpressionDepthError, ExpressionLookupError, ExpressionTypeError
from evalex.core.expression_lang.operators import apply_binary, apply_unary
from evalex.core.ir.expressions import (
    BinaryExpr,
    BinaryOp,
    Expr,
    FuncCall,
    Literal,
    TupleExpr,
    UnaryExpr,
    VariableRef,
)
from evalex.core.ir.values import BooleanValue, TupleValue, Value, ValueKind
from evalex.core.settings import get_settings

_LOGICAL = (BinaryOp.AND, BinaryOp.OR)


class _Step(Enum):
    """Work item kinds on the evaluation stack."""

    EVAL = auto()  # (EVAL, expr, depth)
    UNARY = auto()  # (UNARY, op)
    BINARY = auto()  # (BINARY, op)
    LOGIC_LEFT = auto()  # (LOGIC_LEFT, expr, depth)
    LOGIC_RIGHT = auto()  # (LOGIC_RIGHT, op)
    CALL = auto()  # (CALL, name, argc)
    TUPLE = auto()  # (TUPLE, size)


@dataclass(frozen=True)
class _Context:
    """Per-call evaluation state; never shared between calls."""

    configuration: Configuration
    max_depth: int


def evaluate(
    expr: Expr,
    configuration: Configuration | None = None,
    *,
    max_depth: int | None = None,
) -> Value:
    """Evaluate an operator tree against a configuration.

    This is a safe tree-walking interpreter; it does NOT use Python's
    eval(). Only the closed set of node types is handled.

    Args:
        expr: Root of a tree built by the parser.
        configuration: Variable and function bindings. Defaults to the empty
            configuration.
        max_depth: Deepest nesting to walk; defaults to the current
            settings.

    Returns:
        The computed value.

    Raises:
        ExpressionLookupError: If a variable or function is not bound.
        ExpressionTypeError: If an operator receives the wrong kinds.
        ExpressionArithmeticError: On integer overflow or a zero divisor.
        ExpressionDepthError: If the tree nests deeper than ``max_depth``.
    """
    ctx = _Context(
        configuration=configuration if configuration is not None else EMPTY_CONFIGURATION,
        max_depth=max_depth if max_depth is not None else get_settings().max_depth,
    )
    return _run(expr, ctx)


def _run(root: Expr, ctx: _Context) -> Value:
    """Drive the work stack until the root value is computed."""
    work: list[tuple[Any, ...]] = [(_Step.EVAL, root, 0)]
    values: list[Value] = []

    while work:
        step = work.pop()
        kind = step[0]

        if kind is _Step.EVAL:
            _schedule(step[1], step[2], ctx, work, values)

        elif kind is _Step.UNARY:
            values.append(apply_unary(step[1], values.pop()))

        elif kind is _Step.BINARY:
            right = values.pop()
            left = values.pop()
            values.append(apply_binary(step[1], left, right))

        elif kind is _Step.LOGIC_LEFT:
            expr, depth = step[1], step[2]
            left = _expect_logical(expr.op, values.pop())
            # false && ... and true || ... never look at the right side
            if left.value == (expr.op == BinaryOp.OR):
                values.append(left)
            else:
                work.append((_Step.LOGIC_RIGHT, expr.op))
                work.append((_Step.EVAL, expr.right, depth))

        elif kind is _Step.LOGIC_RIGHT:
            values.append(_expect_logical(step[1], values.pop()))

        elif kind is _Step.CALL:
            args = _pop_many(values, step[2])
            values.append(ctx.configuration.call_function(step[1], TupleValue(items=args)))

        elif kind is _Step.TUPLE:
            values.append(TupleValue(items=_pop_many(values, step[1])))

    return values.pop()


def _schedule(expr: Expr, depth: int, ctx: _Context, work: list[tuple[Any, ...]], values: list[Value]) -> None:
    """Evaluate a leaf directly, or push the work items for an inner node."""
    if depth > ctx.max_depth:
        raise ExpressionDepthError(f"Expression too deep: nesting exceeds {ctx.max_depth} levels")

    if isinstance(expr, Literal):
        values.append(expr.value)

    elif isinstance(expr, VariableRef):
        value = ctx.configuration.resolve_variable(expr.name)
        if value is None:
            raise ExpressionLookupError(expr.name, "variable")
        values.append(value)

    elif isinstance(expr, BinaryExpr):
        if expr.op in _LOGICAL:
            work.append((_Step.LOGIC_LEFT, expr, depth))
        else:
            right_depth = depth + 1 if expr.op == BinaryOp.POW else depth
            work.append((_Step.BINARY, expr.op))
            work.append((_Step.EVAL, expr.right, right_depth))
        work.append((_Step.EVAL, expr.left, depth))

    elif isinstance(expr, UnaryExpr):
        work.append((_Step.UNARY, expr.op))
        work.append((_Step.EVAL, expr.operand, depth + 1))

    elif isinstance(expr, FuncCall):
        work.append((_Step.CALL, expr.name, len(expr.args)))
        work.extend((_Step.EVAL, arg, depth + 1) for arg in reversed(expr.args))

    elif isinstance(expr, TupleExpr):
        work.append((_Step.TUPLE, len(expr.items)))
        work.extend((_Step.EVAL, item, depth) for item in reversed(expr.items))

    else:
        raise AssertionError(f"Unknown expression type: {type(expr).__name__}")


def _pop_many(values: list[Value], count: int) -> tuple[Value, ...]:
    """Remove the top *count* values, oldest first."""
    start = len(values) - count
    items = tuple(values[start:])
    del values[start:]
    return items


def _expect_logical(op: BinaryOp, value: Value) -> BooleanValue:
    if isinstance(value, BooleanValue):
        return value
    raise ExpressionTypeError(
        f"Operator '{op.value}' expected {ValueKind.BOOLEAN}, got {value.kind}",
        expected=ValueKind.BOOLEAN,
        actual=value.kind,
    )
