"""
Convenience entry points: parse and evaluate in one call.

Usage:
    from evalex import build_operator_tree, eval_int, MappingConfiguration

    eval_int("1 + 2 * 3")                      # 7

    tree = build_operator_tree("one + two")    # parse once ...
    config = MappingConfiguration({"one": 1, "two": 2})
    tree.eval(config)                          # ... evaluate many times

The typed helpers narrow the result with the ``expect_*`` extractors, so a
result of the wrong kind raises the same ``ExpressionTypeError`` as any
other kind mismatch.
"""

from __future__ import annotations

import logging
from typing import Any

from evalex.core.configuration import Configuration
from evalex.core.expression_lang.evaluator import evaluate
from evalex.core.expression_lang.parser import parse_expr
from evalex.core.ir.expressions import Expr
from evalex.core.ir.values import (
    Value,
    expect_boolean,
    expect_float,
    expect_int,
    expect_string,
    expect_tuple,
)

logger = logging.getLogger(__name__)


def build_operator_tree(source: str) -> Expr:
    """Parse *source* into a reusable operator tree."""
    return parse_expr(source)


def evaluate_source(source: str, configuration: Configuration | None = None) -> Value:
    """Parse *source* and evaluate it against *configuration*."""
    tree = parse_expr(source)
    value = evaluate(tree, configuration)
    logger.debug("Evaluated %r to %s", source, value)
    return value


def eval_int(source: str, configuration: Configuration | None = None) -> int:
    return expect_int(evaluate_source(source, configuration))


def eval_float(source: str, configuration: Configuration | None = None) -> float:
    return expect_float(evaluate_source(source, configuration))


def eval_boolean(source: str, configuration: Configuration | None = None) -> bool:
    return expect_boolean(evaluate_source(source, configuration))


def eval_string(source: str, configuration: Configuration | None = None) -> str:
    return expect_string(evaluate_source(source, configuration))


def eval_tuple(source: str, configuration: Configuration | None = None) -> tuple[Any, ...]:
    """Evaluate to a tuple, returned as native Python data."""
    return tuple(item.to_python() for item in expect_tuple(evaluate_source(source, configuration)))
