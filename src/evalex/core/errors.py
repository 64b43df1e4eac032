"""
Error types for evalex tokenizing, tree building and evaluation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from evalex.core.ir.values import ValueKind


class ExpressionError(Exception):
    """Base exception for all evalex errors."""

    def __init__(
        self,
        message: str,
        context: Optional["ErrorContext"] = None,
        pos: int | None = None,
    ):
        self.message = message
        self.context = context
        self.pos = context.pos if context else pos
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            return f"{self.context.format()}\n{self.message}"
        return self.message


class ExpressionTokenError(ExpressionError):
    """
    Raised when the source text cannot be split into tokens.

    Examples:
    - Unknown character
    - Malformed numeric literal
    - Unterminated string or invalid escape sequence
    """


class ExpressionParseError(ExpressionError):
    """
    Raised when a token sequence does not form an expression.

    Examples:
    - Empty expression
    - Operator with a missing operand
    - Unmatched parenthesis
    - Trailing tokens after a complete expression
    """


class ExpressionDepthError(ExpressionError):
    """Raised when an expression nests deeper than the configured limit."""


class ExpressionEvalError(ExpressionError):
    """Base class for errors raised while evaluating an operator tree."""


class ExpressionLookupError(ExpressionEvalError, LookupError):
    """Raised when a variable or function name has no binding."""

    def __init__(self, name: str, namespace: str = "variable"):
        self.name = name
        self.namespace = namespace
        super().__init__(f"Unknown {namespace}: {name}")


class ExpressionTypeError(ExpressionEvalError, TypeError):
    """Raised when an operand or result has the wrong kind."""

    def __init__(
        self,
        message: str,
        expected: ValueKind | str | None = None,
        actual: ValueKind | str | None = None,
    ):
        self.expected = expected
        self.actual = actual
        super().__init__(message)

    @classmethod
    def mismatch(cls, expected: ValueKind | str, actual: ValueKind | str) -> ExpressionTypeError:
        """Create the standard "expected X, got Y" error."""
        return cls(f"Expected {expected}, got {actual}", expected=expected, actual=actual)


class ExpressionArityError(ExpressionTypeError):
    """Raised when a function receives the wrong number of arguments."""

    def __init__(self, name: str, expected: int, actual: int):
        self.name = name
        self.expected_count = expected
        self.actual_count = actual
        super().__init__(f"Function {name}() takes {expected} argument(s), got {actual}")


class ExpressionArithmeticError(ExpressionEvalError, ArithmeticError):
    """
    Raised for integer arithmetic failures.

    Examples:
    - Division or modulo by zero
    - Result outside the signed 64-bit range
    - Negative integer exponent
    """


@dataclass
class ErrorContext:
    """
    Location of an error inside an expression source.

    Attributes:
        source: The full expression text
        pos: Character offset (0-indexed)
    """

    source: str
    pos: int

    @property
    def line(self) -> int:
        """Line number (1-indexed)."""
        return self.source.count("\n", 0, self.pos) + 1

    @property
    def column(self) -> int:
        """Column number (1-indexed)."""
        return self.pos - (self.source.rfind("\n", 0, self.pos) + 1) + 1

    def format(self) -> str:
        """
        Format the context as a snippet with a marker under the offending character.

        Returns:
            Formatted string like:
               1 | 1 + * 2
                       ^
        """
        lines = self.source.split("\n")
        text = lines[self.line - 1] if lines else ""
        prefix = f"{self.line:4d} | "
        marker = " " * (len(prefix) + self.column - 1) + "^"
        return f"{prefix}{text}\n{marker}"


def make_token_error(message: str, source: str, pos: int) -> ExpressionTokenError:
    """Helper to create an ExpressionTokenError with context attached."""
    return ExpressionTokenError(message, ErrorContext(source=source, pos=pos))


def make_parse_error(message: str, source: str | None, pos: int) -> ExpressionParseError:
    """
    Helper to create an ExpressionParseError.

    Context is only attached when the original source text is known; trees
    built from a bare token list report the message alone.
    """
    if source is None:
        return ExpressionParseError(f"{message} (at position {pos})", pos=pos)
    return ExpressionParseError(message, ErrorContext(source=source, pos=pos))
