"""
evalex - a small expression language.

Parses arithmetic, logical and string expressions into reusable operator
trees and evaluates them against pluggable variable and function bindings.
"""

from __future__ import annotations

from ._version import get_version
from .core import ir
from .core.configuration import (
    Configuration,
    EmptyConfiguration,
    Function,
    MappingConfiguration,
)
from .core.errors import (
    ExpressionArithmeticError,
    ExpressionArityError,
    ExpressionDepthError,
    ExpressionError,
    ExpressionEvalError,
    ExpressionLookupError,
    ExpressionParseError,
    ExpressionTokenError,
    ExpressionTypeError,
)
from .core.expression_lang import build, evaluate, parse_expr, tokenize
from .core.interface import (
    build_operator_tree,
    eval_boolean,
    eval_float,
    eval_int,
    eval_string,
    eval_tuple,
    evaluate_source,
)
from .core.ir.values import Value, to_value

__version__ = get_version()

__all__ = [
    "__version__",
    "ir",
    # Pipeline
    "tokenize",
    "build",
    "parse_expr",
    "evaluate",
    # Convenience
    "build_operator_tree",
    "evaluate_source",
    "eval_int",
    "eval_float",
    "eval_boolean",
    "eval_string",
    "eval_tuple",
    # Values
    "Value",
    "to_value",
    # Configurations
    "Configuration",
    "EmptyConfiguration",
    "MappingConfiguration",
    "Function",
    # Errors
    "ExpressionError",
    "ExpressionTokenError",
    "ExpressionParseError",
    "ExpressionDepthError",
    "ExpressionEvalError",
    "ExpressionLookupError",
    "ExpressionTypeError",
    "ExpressionArityError",
    "ExpressionArithmeticError",
]
