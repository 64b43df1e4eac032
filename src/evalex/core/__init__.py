"""Core evalex functionality: IR, tokenizer, builder, evaluator, configurations."""

from . import ir
from .configuration import (
    EMPTY_CONFIGURATION,
    Configuration,
    EmptyConfiguration,
    Function,
    MappingConfiguration,
)
from .errors import (
    ErrorContext,
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
from .settings import EvalSettings, get_settings

__all__ = [
    "ir",
    "EMPTY_CONFIGURATION",
    "Configuration",
    "EmptyConfiguration",
    "Function",
    "MappingConfiguration",
    "ErrorContext",
    "ExpressionArithmeticError",
    "ExpressionArityError",
    "ExpressionDepthError",
    "ExpressionError",
    "ExpressionEvalError",
    "ExpressionLookupError",
    "ExpressionParseError",
    "ExpressionTokenError",
    "ExpressionTypeError",
    "EvalSettings",
    "get_settings",
]
