"""
Tokenizer for the evalex expression language.

Converts an expression string into a sequence of typed tokens.
"""

from __future__ import annotations

import re
from enum import StrEnum, auto

from evalex.core.errors import make_token_error
from evalex.core.ir.values import INT_MAX


class TokenKind(StrEnum):
    """Token types for the expression language."""

    # Literals
    INT = auto()
    FLOAT = auto()
    STRING = auto()
    TRUE = auto()
    FALSE = auto()

    # Identifiers
    IDENT = auto()

    # Binary operators
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    PERCENT = auto()
    CARET = auto()
    EQ = auto()
    NE = auto()
    LT = auto()
    LE = auto()
    GT = auto()
    GE = auto()
    AND = auto()
    OR = auto()

    # Prefix operators
    NOT = auto()
    NEG = auto()  # unary -
    POS = auto()  # unary +

    # Assignment (only accepted by parse_assignment)
    ASSIGN = auto()

    # Punctuation
    LPAREN = auto()
    RPAREN = auto()
    COMMA = auto()

    # End of input
    EOF = auto()


class Token:
    """A single token from the expression tokenizer."""

    __slots__ = ("kind", "value", "pos")

    def __init__(self, kind: TokenKind, value: str, pos: int) -> None:
        self.kind = kind
        self.value = value
        self.pos = pos

    def __repr__(self) -> str:
        return f"Token({self.kind}, {self.value!r}, pos={self.pos})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Token):
            return NotImplemented
        return (self.kind, self.value, self.pos) == (other.kind, other.value, other.pos)

    def __hash__(self) -> int:
        return hash((self.kind, self.value, self.pos))

    @property
    def ends_operand(self) -> bool:
        """True if an operand can end with this token."""
        return self.kind in _OPERAND_END


_OPERAND_END = frozenset(
    {
        TokenKind.INT,
        TokenKind.FLOAT,
        TokenKind.STRING,
        TokenKind.TRUE,
        TokenKind.FALSE,
        TokenKind.IDENT,
        TokenKind.RPAREN,
    }
)

_KEYWORDS: dict[str, TokenKind] = {
    "true": TokenKind.TRUE,
    "false": TokenKind.FALSE,
}

_TWO_CHAR: dict[str, TokenKind] = {
    "==": TokenKind.EQ,
    "!=": TokenKind.NE,
    "<=": TokenKind.LE,
    ">=": TokenKind.GE,
    "&&": TokenKind.AND,
    "||": TokenKind.OR,
}

_SINGLE_CHAR: dict[str, TokenKind] = {
    "*": TokenKind.STAR,
    "/": TokenKind.SLASH,
    "%": TokenKind.PERCENT,
    "^": TokenKind.CARET,
    "<": TokenKind.LT,
    ">": TokenKind.GT,
    "!": TokenKind.NOT,
    "=": TokenKind.ASSIGN,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    ",": TokenKind.COMMA,
}

_ESCAPES: dict[str, str] = {
    "\\": "\\",
    '"': '"',
    "'": "'",
    "n": "\n",
    "t": "\t",
    "r": "\r",
}

# Number: digits, optional fraction, optional exponent
_NUMBER_RE = re.compile(r"[0-9]+(?P<frac>\.[0-9]*)?(?P<exp>[eE][+-]?[0-9]+)?")
# Identifier: letter or underscore followed by alphanumerics/underscores
_IDENT_RE = re.compile(r"[a-zA-Z_][a-zA-Z0-9_]*")


def tokenize(source: str) -> list[Token]:
    """Tokenize an expression string into a list of tokens.

    The returned list always ends with an ``EOF`` token.

    Raises:
        ExpressionTokenError: On an unknown character, a malformed number or
            a malformed string literal.
    """
    tokens: list[Token] = []
    i = 0
    n = len(source)

    while i < n:
        c = source[i]

        # Skip whitespace
        if c in " \t\n\r":
            i += 1
            continue

        # String literals
        if c in ('"', "'"):
            i, tok = _read_string(source, i)
            tokens.append(tok)
            continue

        # Numbers
        if c in "0123456789":
            i, tok = _read_number(source, i)
            tokens.append(tok)
            continue

        # Identifiers and keywords
        if c.isalpha() or c == "_":
            m = _IDENT_RE.match(source, i)
            if m is None:
                raise make_token_error(f"Unexpected character: {c!r}", source, i)
            word = m.group(0)
            kind = _KEYWORDS.get(word, TokenKind.IDENT)
            tokens.append(Token(kind, word, i))
            i = m.end()
            continue

        # Two-character operators
        two = source[i : i + 2]
        if two in _TWO_CHAR:
            tokens.append(Token(_TWO_CHAR[two], two, i))
            i += 2
            continue

        # Plus and minus are unary unless they follow a complete operand
        if c in "+-":
            after_operand = bool(tokens) and tokens[-1].ends_operand
            if c == "+":
                kind = TokenKind.PLUS if after_operand else TokenKind.POS
            else:
                kind = TokenKind.MINUS if after_operand else TokenKind.NEG
            tokens.append(Token(kind, c, i))
            i += 1
            continue

        # Single-character operators and punctuation
        if c in _SINGLE_CHAR:
            tokens.append(Token(_SINGLE_CHAR[c], c, i))
            i += 1
            continue

        raise make_token_error(f"Unexpected character: {c!r}", source, i)

    tokens.append(Token(TokenKind.EOF, "", n))
    return tokens


def _read_number(source: str, start: int) -> tuple[int, Token]:
    """Read an integer or float literal."""
    m = _NUMBER_RE.match(source, start)
    if m is None:
        raise make_token_error("Invalid number", source, start)
    text = m.group(0)
    end = m.end()

    if end < len(source):
        nxt = source[end]
        if nxt == ".":
            raise make_token_error(f"Invalid number {text + nxt!r}: more than one decimal point", source, start)
        if nxt in "eE":
            raise make_token_error(f"Invalid number {source[start : end + 1]!r}: malformed exponent", source, start)
        if nxt.isalnum() or nxt == "_":
            raise make_token_error(f"Invalid number {source[start : end + 1]!r}", source, start)

    if m.group("frac") is None and m.group("exp") is None and _fits_int64(text):
        return end, Token(TokenKind.INT, text, start)
    # Integer literals too large for 64 bits are read as floats
    return end, Token(TokenKind.FLOAT, text, start)


def _fits_int64(digits: str) -> bool:
    """True if a string of decimal digits is within the signed 64-bit range."""
    digits = digits.lstrip("0") or "0"
    limit = str(INT_MAX)
    return len(digits) < len(limit) or (len(digits) == len(limit) and digits <= limit)


def _read_string(source: str, start: int) -> tuple[int, Token]:
    """Read a quoted string literal."""
    quote = source[start]
    i = start + 1
    n = len(source)
    chars: list[str] = []

    while i < n:
        c = source[i]
        if c == "\\":
            if i + 1 >= n:
                raise make_token_error("Unterminated escape sequence", source, i)
            escaped = _ESCAPES.get(source[i + 1])
            if escaped is None:
                raise make_token_error(f"Invalid escape sequence: \\{source[i + 1]}", source, i)
            chars.append(escaped)
            i += 2
            continue
        if c == quote:
            return i + 1, Token(TokenKind.STRING, "".join(chars), start)
        chars.append(c)
        i += 1

    raise make_token_error("Unterminated string literal", source, start)
