"""
Operator-precedence parser for the evalex expression language.

Precedence (low to high):
    1   ,                   tuple / argument separator    left
    2   ||                                                left
    3   &&                                                left
    4   == !=                                             left
    5   < <= > >=                                         left
    6   + -                                               left
    7   * / %                                             left
    8   ^                                                 right
    9   - + !               prefix
    10  literal | identifier | "(" expr ")" | func_call

Grammar:
    expr        → binary ("," binary)*
    binary      → unary (binop binary)*           (precedence climbing)
    unary       → ("-" | "+" | "!") unary | primary
    primary     → INT | FLOAT | STRING | "true" | "false"
                | IDENT "(" (binary ("," binary)*)? ")"
                | IDENT
                | "(" ")"
                | "(" expr ")"
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager

from evalex.core.errors import (
    ErrorContext,
    ExpressionDepthError,
    ExpressionParseError,
    make_parse_error,
)
from evalex.core.expression_lang.tokenizer import Token, TokenKind, tokenize
from evalex.core.ir.expressions import (
    BinaryExpr,
    BinaryOp,
    Expr,
    FuncCall,
    Literal,
    TupleExpr,
    UnaryExpr,
    UnaryOp,
    VariableRef,
)
from evalex.core.ir.values import EMPTY, FALSE, TRUE, FloatValue, IntValue, StringValue
from evalex.core.settings import clamp_nesting, get_settings

logger = logging.getLogger(__name__)

# Binary operator table: token kind -> (precedence, operator)
_BINARY_OPS: dict[TokenKind, tuple[int, BinaryOp]] = {
    TokenKind.OR: (2, BinaryOp.OR),
    TokenKind.AND: (3, BinaryOp.AND),
    TokenKind.EQ: (4, BinaryOp.EQ),
    TokenKind.NE: (4, BinaryOp.NE),
    TokenKind.LT: (5, BinaryOp.LT),
    TokenKind.LE: (5, BinaryOp.LE),
    TokenKind.GT: (5, BinaryOp.GT),
    TokenKind.GE: (5, BinaryOp.GE),
    TokenKind.PLUS: (6, BinaryOp.ADD),
    TokenKind.MINUS: (6, BinaryOp.SUB),
    TokenKind.STAR: (7, BinaryOp.MUL),
    TokenKind.SLASH: (7, BinaryOp.DIV),
    TokenKind.PERCENT: (7, BinaryOp.MOD),
    TokenKind.CARET: (8, BinaryOp.POW),
}

_RIGHT_ASSOCIATIVE = frozenset({BinaryOp.POW})

_UNARY_OPS: dict[TokenKind, UnaryOp] = {
    TokenKind.NEG: UnaryOp.NEG,
    TokenKind.POS: UnaryOp.POS,
    TokenKind.NOT: UnaryOp.NOT,
}

# Lowest precedence that still binds inside a tuple element or argument
_ELEMENT_PRECEDENCE = 2


class _Parser:
    """Precedence-climbing parser over a token list."""

    def __init__(self, tokens: Sequence[Token], source: str | None, max_nesting: int) -> None:
        if not tokens or tokens[-1].kind != TokenKind.EOF:
            end = tokens[-1].pos + len(tokens[-1].value) if tokens else 0
            tokens = [*tokens, Token(TokenKind.EOF, "", end)]
        self.tokens = tokens
        self.source = source
        self.max_nesting = max_nesting
        self.pos = 0
        self.depth = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.pos]

    def peek(self, offset: int = 0) -> Token:
        idx = self.pos + offset
        if idx < len(self.tokens):
            return self.tokens[idx]
        return self.tokens[-1]  # EOF

    def advance(self) -> Token:
        tok = self.tokens[self.pos]
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        return tok

    def match(self, *kinds: TokenKind) -> Token | None:
        if self.current.kind in kinds:
            return self.advance()
        return None

    def error(self, message: str, tok: Token | None = None) -> ExpressionParseError:
        tok = tok or self.current
        return make_parse_error(message, self.source, tok.pos)

    @contextmanager
    def nested(self, tok: Token) -> Iterator[None]:
        """Track one level of recursive nesting opened by *tok*."""
        self.depth += 1
        try:
            if self.depth > self.max_nesting:
                message = f"Expression too deep: nesting exceeds {self.max_nesting} levels"
                if self.source is None:
                    raise ExpressionDepthError(message, pos=tok.pos)
                raise ExpressionDepthError(message, ErrorContext(source=self.source, pos=tok.pos))
            yield
        finally:
            self.depth -= 1

    # -- Grammar rules --

    def parse_expr(self) -> Expr:
        """binary ("," binary)*; a comma sequence builds a tuple."""
        first = self.parse_binary(_ELEMENT_PRECEDENCE)
        if self.current.kind != TokenKind.COMMA:
            return first

        items = [first]
        while self.match(TokenKind.COMMA):
            items.append(self.parse_binary(_ELEMENT_PRECEDENCE))
        return TupleExpr(items=tuple(items))

    def parse_binary(self, min_precedence: int) -> Expr:
        """Precedence climbing over the binary operator table."""
        left = self.parse_unary()
        while True:
            entry = _BINARY_OPS.get(self.current.kind)
            if entry is None or entry[0] < min_precedence:
                return left
            precedence, op = entry
            op_tok = self.advance()
            if op in _RIGHT_ASSOCIATIVE:
                with self.nested(op_tok):
                    right = self.parse_binary(precedence)
            else:
                right = self.parse_binary(precedence + 1)
            left = BinaryExpr(op=op, left=left, right=right)

    def parse_unary(self) -> Expr:
        """("-" | "+" | "!") unary | primary"""
        op = _UNARY_OPS.get(self.current.kind)
        if op is None:
            return self.parse_primary()
        op_tok = self.advance()
        with self.nested(op_tok):
            operand = self.parse_unary()
        return UnaryExpr(op=op, operand=operand)

    def parse_primary(self) -> Expr:
        """literal | func_call | variable | "(" ")" | "(" expr ")" """
        tok = self.current

        if tok.kind == TokenKind.LPAREN:
            return self._parse_group()

        if tok.kind == TokenKind.INT:
            self.advance()
            return Literal(value=IntValue(value=int(tok.value)))
        if tok.kind == TokenKind.FLOAT:
            self.advance()
            return Literal(value=FloatValue(value=float(tok.value)))
        if tok.kind == TokenKind.STRING:
            self.advance()
            return Literal(value=StringValue(value=tok.value))
        if tok.kind == TokenKind.TRUE:
            self.advance()
            return Literal(value=TRUE)
        if tok.kind == TokenKind.FALSE:
            self.advance()
            return Literal(value=FALSE)

        if tok.kind == TokenKind.IDENT:
            if self.peek(1).kind == TokenKind.LPAREN:
                return self._parse_func_call()
            self.advance()
            return VariableRef(name=tok.value)

        raise self._unexpected(tok)

    def _parse_group(self) -> Expr:
        """ "(" ")" | "(" expr ")" """
        open_tok = self.advance()
        if self.match(TokenKind.RPAREN):
            return Literal(value=EMPTY)
        with self.nested(open_tok):
            expr = self.parse_expr()
        if self.current.kind != TokenKind.RPAREN:
            if self.current.kind == TokenKind.EOF:
                raise self.error("Unmatched '('", open_tok)
            raise self._unexpected(self.current)
        self.advance()
        return expr

    def _parse_func_call(self) -> FuncCall:
        """IDENT "(" (binary ("," binary)*)? ")" """
        name_tok = self.advance()
        open_tok = self.advance()

        args: list[Expr] = []
        with self.nested(open_tok):
            if self.current.kind != TokenKind.RPAREN:
                args.append(self.parse_binary(_ELEMENT_PRECEDENCE))
                while self.match(TokenKind.COMMA):
                    args.append(self.parse_binary(_ELEMENT_PRECEDENCE))

        if self.current.kind != TokenKind.RPAREN:
            if self.current.kind == TokenKind.EOF:
                raise self.error(f"Unmatched '(' in call to {name_tok.value}()", open_tok)
            raise self._unexpected(self.current)
        self.advance()
        return FuncCall(name=name_tok.value, args=tuple(args))

    def _unexpected(self, tok: Token) -> ExpressionParseError:
        """Build the error for a token that cannot start or continue an operand."""
        prev = self.peek(-1) if self.pos > 0 else None
        if tok.kind in (TokenKind.EOF, TokenKind.RPAREN) and prev is not None:
            if prev.kind in _BINARY_OPS or prev.kind in _UNARY_OPS or prev.kind == TokenKind.COMMA:
                return self.error(f"Missing operand after {prev.value!r}", tok)
        if tok.kind == TokenKind.EOF:
            return self.error("Unexpected end of expression", tok)
        if tok.kind == TokenKind.RPAREN:
            return self.error("Unmatched ')'", tok)
        if tok.kind == TokenKind.ASSIGN:
            return self.error("Assignment '=' is not allowed inside an expression", tok)
        if tok.kind in _BINARY_OPS or tok.kind == TokenKind.COMMA:
            return self.error(f"Missing operand before {tok.value!r}", tok)
        return self.error(f"Unexpected token: {tok.kind} ({tok.value!r})", tok)

    def finish(self) -> None:
        """Ensure all tokens were consumed."""
        tok = self.current
        if tok.kind == TokenKind.EOF:
            return
        if tok.kind == TokenKind.RPAREN:
            raise self.error("Unmatched ')'", tok)
        if tok.kind == TokenKind.ASSIGN:
            raise self.error("Assignment '=' is not allowed inside an expression", tok)
        raise self.error(f"Unexpected token after expression: {tok.value!r}", tok)


def build(
    tokens: Sequence[Token],
    *,
    source: str | None = None,
    max_nesting: int | None = None,
) -> Expr:
    """Build an operator tree from a token list.

    Args:
        tokens: Output of :func:`tokenize`. A trailing ``EOF`` is added if
            missing.
        source: The text the tokens came from, used for error snippets.
        max_nesting: Nesting limit; defaults to the current settings and is
            capped at what the recursion limit allows.

    Returns:
        The root node of the tree.

    Raises:
        ExpressionParseError: If the tokens do not form exactly one expression.
        ExpressionDepthError: If nesting exceeds the limit.
    """
    limit = clamp_nesting(max_nesting) if max_nesting is not None else get_settings().max_nesting
    parser = _Parser(tokens, source, limit)
    if parser.current.kind == TokenKind.EOF:
        raise parser.error("Empty expression")

    expr = parser.parse_expr()
    parser.finish()
    return expr


def parse_expr(source: str, *, max_nesting: int | None = None) -> Expr:
    """Parse an expression string into an operator tree.

    Args:
        source: Expression string (e.g., "a + b * 1.2")

    Returns:
        Parsed expression tree.

    Raises:
        ExpressionTokenError: If tokenization fails.
        ExpressionParseError: If the expression is invalid.
        ExpressionDepthError: If nesting exceeds the limit.
    """
    tree = build(tokenize(source), source=source, max_nesting=max_nesting)
    logger.debug("Parsed %r into a %s tree", source, type(tree).__name__)
    return tree


def parse_assignment(source: str, *, max_nesting: int | None = None) -> tuple[str, Expr]:
    """Parse ``name = expr`` into the target name and the value tree.

    This is the only place the ``=`` token is accepted; it is used by
    configurations that support assignment.

    Raises:
        ExpressionParseError: If the statement is not ``IDENT = expr``.
    """
    tokens = tokenize(source)
    if len(tokens) < 2 or tokens[0].kind != TokenKind.IDENT or tokens[1].kind != TokenKind.ASSIGN:
        pos = tokens[1].pos if len(tokens) > 1 and tokens[0].kind == TokenKind.IDENT else tokens[0].pos
        raise make_parse_error("Expected an assignment of the form 'name = expression'", source, pos)
    value_tokens = tokens[2:]
    if value_tokens[0].kind == TokenKind.EOF:
        raise make_parse_error("Missing value after '='", source, tokens[1].pos)
    tree = build(value_tokens, source=source, max_nesting=max_nesting)
    return tokens[0].value, tree
