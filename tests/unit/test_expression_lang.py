"""Tests for the evalex expression language.

Covers:
- Tokenizer: all token types, unary disambiguation, edge cases
- Parser: precedence, associativity, all node types, error handling
- Evaluator: arithmetic, comparison, logic, tuples, functions, errors
"""

from __future__ import annotations

import math
from concurrent.futures import ThreadPoolExecutor

import pytest

from evalex.core.configuration import EmptyConfiguration, MappingConfiguration
from evalex.core.errors import (
    ExpressionArithmeticError,
    ExpressionDepthError,
    ExpressionLookupError,
    ExpressionParseError,
    ExpressionTokenError,
    ExpressionTypeError,
)
from evalex.core.expression_lang.evaluator import evaluate
from evalex.core.expression_lang.parser import build, parse_assignment, parse_expr
from evalex.core.expression_lang.tokenizer import Token, TokenKind, tokenize
from evalex.core.ir.expressions import (
    BinaryExpr,
    BinaryOp,
    FuncCall,
    Literal,
    TupleExpr,
    UnaryExpr,
    UnaryOp,
    VariableRef,
)
from evalex.core.ir.values import (
    EMPTY,
    BooleanValue,
    FloatValue,
    IntValue,
    StringValue,
    TupleValue,
)


def _eval(source: str, configuration=None):
    return evaluate(parse_expr(source), configuration)


# ============================================================================
# Tokenizer tests
# ============================================================================


class TestTokenizer:
    """Tokenizer produces correct token sequences."""

    def test_integer(self) -> None:
        tokens = tokenize("42")
        assert tokens[0].kind == TokenKind.INT
        assert tokens[0].value == "42"

    def test_float(self) -> None:
        tokens = tokenize("3.14")
        assert tokens[0].kind == TokenKind.FLOAT
        assert tokens[0].value == "3.14"

    def test_float_exponent(self) -> None:
        for src in ("1e3", "2.5E-2", "7e+1", "1."):
            tokens = tokenize(src)
            assert tokens[0].kind == TokenKind.FLOAT, src
            assert tokens[0].value == src

    def test_oversized_integer_reads_as_float(self) -> None:
        tokens = tokenize("9223372036854775808")
        assert tokens[0].kind == TokenKind.FLOAT

    def test_max_integer_stays_int(self) -> None:
        tokens = tokenize("9223372036854775807")
        assert tokens[0].kind == TokenKind.INT

    def test_string_double_quotes(self) -> None:
        tokens = tokenize('"hello"')
        assert tokens[0].kind == TokenKind.STRING
        assert tokens[0].value == "hello"

    def test_string_single_quotes(self) -> None:
        tokens = tokenize("'world'")
        assert tokens[0].kind == TokenKind.STRING
        assert tokens[0].value == "world"

    def test_string_escapes(self) -> None:
        tokens = tokenize('"he\\"llo\\n\\t\\\\"')
        assert tokens[0].value == 'he"llo\n\t\\'

    def test_booleans(self) -> None:
        tokens = tokenize("true false")
        assert [t.kind for t in tokens] == [TokenKind.TRUE, TokenKind.FALSE, TokenKind.EOF]

    def test_operators(self) -> None:
        source = "1 + 1 - 1 * 1 / 1 % 1 ^ 1 == 1 != 1 < 1 <= 1 > 1 >= 1 && 1 || 1"
        kinds = [t.kind for t in tokenize(source) if t.kind != TokenKind.INT]
        assert kinds == [
            TokenKind.PLUS,
            TokenKind.MINUS,
            TokenKind.STAR,
            TokenKind.SLASH,
            TokenKind.PERCENT,
            TokenKind.CARET,
            TokenKind.EQ,
            TokenKind.NE,
            TokenKind.LT,
            TokenKind.LE,
            TokenKind.GT,
            TokenKind.GE,
            TokenKind.AND,
            TokenKind.OR,
            TokenKind.EOF,
        ]

    def test_punctuation(self) -> None:
        tokens = tokenize("(a, b) = !c")
        assert [t.kind for t in tokens] == [
            TokenKind.LPAREN,
            TokenKind.IDENT,
            TokenKind.COMMA,
            TokenKind.IDENT,
            TokenKind.RPAREN,
            TokenKind.ASSIGN,
            TokenKind.NOT,
            TokenKind.IDENT,
            TokenKind.EOF,
        ]

    def test_identifier(self) -> None:
        tokens = tokenize("_my_field2")
        assert tokens[0].kind == TokenKind.IDENT
        assert tokens[0].value == "_my_field2"

    def test_positions(self) -> None:
        tokens = tokenize("ab + 12")
        assert [t.pos for t in tokens] == [0, 3, 5, 7]

    def test_ends_with_eof(self) -> None:
        assert tokenize("") == [Token(TokenKind.EOF, "", 0)]

    def test_whitespace_handling(self) -> None:
        tokens = tokenize("  a  +\n\tb  ")
        kinds = [t.kind for t in tokens if t.kind != TokenKind.EOF]
        assert kinds == [TokenKind.IDENT, TokenKind.PLUS, TokenKind.IDENT]


class TestTokenizerUnary:
    """Plus and minus are unary unless they follow a complete operand."""

    def test_leading_minus(self) -> None:
        assert tokenize("-1")[0].kind == TokenKind.NEG

    def test_leading_plus(self) -> None:
        assert tokenize("+1")[0].kind == TokenKind.POS

    def test_binary_after_literal(self) -> None:
        assert tokenize("1 - 2")[1].kind == TokenKind.MINUS

    def test_binary_after_identifier(self) -> None:
        assert tokenize("x-2")[1].kind == TokenKind.MINUS

    def test_binary_after_paren(self) -> None:
        assert tokenize("(1) - 2")[3].kind == TokenKind.MINUS

    def test_unary_after_operator(self) -> None:
        kinds = [t.kind for t in tokenize("1 - -2")]
        assert kinds == [TokenKind.INT, TokenKind.MINUS, TokenKind.NEG, TokenKind.INT, TokenKind.EOF]

    def test_unary_after_open_paren_and_comma(self) -> None:
        kinds = [t.kind for t in tokenize("(-1, +2)")]
        assert kinds[1] == TokenKind.NEG
        assert kinds[4] == TokenKind.POS


class TestTokenizerErrors:
    """Tokenizer rejects malformed input with positions."""

    def test_unterminated_string(self) -> None:
        with pytest.raises(ExpressionTokenError, match="Unterminated"):
            tokenize('"hello')

    def test_invalid_escape(self) -> None:
        with pytest.raises(ExpressionTokenError, match="Invalid escape"):
            tokenize('"a\\qb"')

    def test_unexpected_character(self) -> None:
        with pytest.raises(ExpressionTokenError, match="Unexpected") as exc_info:
            tokenize("1 + @")
        assert exc_info.value.pos == 4

    def test_single_ampersand(self) -> None:
        with pytest.raises(ExpressionTokenError):
            tokenize("a & b")

    def test_two_decimal_points(self) -> None:
        with pytest.raises(ExpressionTokenError, match="decimal point"):
            tokenize("1.2.3")

    def test_malformed_exponent(self) -> None:
        with pytest.raises(ExpressionTokenError, match="exponent"):
            tokenize("1e+")

    def test_letters_glued_to_number(self) -> None:
        with pytest.raises(ExpressionTokenError, match="Invalid number"):
            tokenize("12abc")

    def test_error_snippet(self) -> None:
        with pytest.raises(ExpressionTokenError) as exc_info:
            tokenize("1 + $")
        text = str(exc_info.value)
        assert "1 + $" in text
        assert "^" in text


# ============================================================================
# Parser tests
# ============================================================================


class TestParserLiterals:
    """Parser handles all literal types."""

    def test_integer(self) -> None:
        expr = parse_expr("42")
        assert isinstance(expr, Literal)
        assert expr.value == IntValue(value=42)

    def test_float(self) -> None:
        expr = parse_expr("3.14")
        assert isinstance(expr, Literal)
        assert expr.value == FloatValue(value=3.14)

    def test_string(self) -> None:
        expr = parse_expr('"hello"')
        assert isinstance(expr, Literal)
        assert expr.value == StringValue(value="hello")

    def test_true(self) -> None:
        expr = parse_expr("true")
        assert isinstance(expr, Literal)
        assert expr.value == BooleanValue(value=True)

    def test_false(self) -> None:
        expr = parse_expr("false")
        assert isinstance(expr, Literal)
        assert expr.value == BooleanValue(value=False)

    def test_empty_parens(self) -> None:
        expr = parse_expr("()")
        assert isinstance(expr, Literal)
        assert expr.value == EMPTY


class TestParserArithmetic:
    """Parser handles arithmetic with correct precedence."""

    def test_mul_before_add(self) -> None:
        # a + b * c should be a + (b * c)
        expr = parse_expr("a + b * c")
        assert isinstance(expr, BinaryExpr)
        assert expr.op == BinaryOp.ADD
        assert isinstance(expr.right, BinaryExpr)
        assert expr.right.op == BinaryOp.MUL

    def test_parentheses_override_precedence(self) -> None:
        expr = parse_expr("(a + b) * c")
        assert isinstance(expr, BinaryExpr)
        assert expr.op == BinaryOp.MUL
        assert isinstance(expr.left, BinaryExpr)
        assert expr.left.op == BinaryOp.ADD

    def test_chained_subtraction_is_left_associative(self) -> None:
        expr = parse_expr("a - b - c")
        assert isinstance(expr, BinaryExpr)
        assert isinstance(expr.left, BinaryExpr)
        assert isinstance(expr.right, VariableRef)

    def test_power_is_right_associative(self) -> None:
        expr = parse_expr("a ^ b ^ c")
        assert isinstance(expr, BinaryExpr)
        assert expr.op == BinaryOp.POW
        assert isinstance(expr.left, VariableRef)
        assert isinstance(expr.right, BinaryExpr)
        assert expr.right.op == BinaryOp.POW

    def test_power_before_mul(self) -> None:
        expr = parse_expr("a * b ^ c")
        assert expr.op == BinaryOp.MUL
        assert expr.right.op == BinaryOp.POW

    def test_unary_minus(self) -> None:
        expr = parse_expr("-x")
        assert isinstance(expr, UnaryExpr)
        assert expr.op == UnaryOp.NEG

    def test_unary_binds_tighter_than_power(self) -> None:
        expr = parse_expr("-a ^ b")
        assert isinstance(expr, BinaryExpr)
        assert isinstance(expr.left, UnaryExpr)

    def test_nested_unary(self) -> None:
        expr = parse_expr("!!x")
        assert isinstance(expr, UnaryExpr)
        assert isinstance(expr.operand, UnaryExpr)
        assert expr.operand.op == UnaryOp.NOT


class TestParserLogic:
    """Parser handles comparison and logical operators with correct precedence."""

    def test_and_before_or(self) -> None:
        expr = parse_expr("a || b && c")
        assert expr.op == BinaryOp.OR
        assert expr.right.op == BinaryOp.AND

    def test_equality_before_and(self) -> None:
        expr = parse_expr("a == b && c != d")
        assert expr.op == BinaryOp.AND
        assert expr.left.op == BinaryOp.EQ
        assert expr.right.op == BinaryOp.NE

    def test_ordering_before_equality(self) -> None:
        expr = parse_expr("a < b == c >= d")
        assert expr.op == BinaryOp.EQ
        assert expr.left.op == BinaryOp.LT
        assert expr.right.op == BinaryOp.GE

    def test_addition_before_ordering(self) -> None:
        expr = parse_expr("a + 1 <= b")
        assert expr.op == BinaryOp.LE
        assert expr.left.op == BinaryOp.ADD


class TestParserTuplesAndCalls:
    """Parser handles tuples and function calls."""

    def test_top_level_tuple(self) -> None:
        expr = parse_expr("1, 2, 3")
        assert isinstance(expr, TupleExpr)
        assert len(expr.items) == 3

    def test_parenthesized_tuple(self) -> None:
        expr = parse_expr("(1, a + 2)")
        assert isinstance(expr, TupleExpr)
        assert isinstance(expr.items[1], BinaryExpr)

    def test_single_element_is_not_a_tuple(self) -> None:
        expr = parse_expr("(1)")
        assert isinstance(expr, Literal)

    def test_comma_binds_loosest(self) -> None:
        expr = parse_expr("a || b, c")
        assert isinstance(expr, TupleExpr)
        assert isinstance(expr.items[0], BinaryExpr)

    def test_no_args(self) -> None:
        expr = parse_expr("now()")
        assert isinstance(expr, FuncCall)
        assert expr.name == "now"
        assert expr.args == ()

    def test_multiple_args(self) -> None:
        expr = parse_expr('concat(first, " ", last)')
        assert isinstance(expr, FuncCall)
        assert len(expr.args) == 3

    def test_tuple_argument(self) -> None:
        expr = parse_expr("f((1, 2), 3)")
        assert isinstance(expr, FuncCall)
        assert len(expr.args) == 2
        assert isinstance(expr.args[0], TupleExpr)

    def test_nested_call(self) -> None:
        expr = parse_expr("abs(x - max(y, 1))")
        assert isinstance(expr, FuncCall)
        assert isinstance(expr.args[0], BinaryExpr)
        assert isinstance(expr.args[0].right, FuncCall)

    def test_variable_named_like_function(self) -> None:
        expr = parse_expr("f + f(1)")
        assert isinstance(expr.left, VariableRef)
        assert isinstance(expr.right, FuncCall)

    def test_tuple_node_needs_two_items(self) -> None:
        with pytest.raises(ValueError):
            TupleExpr(items=(Literal(value=IntValue(value=1)),))


class TestParserStr:
    """Nodes render back to source-like text."""

    def test_roundtrip(self) -> None:
        expr = parse_expr('f(a, -b) + (1, "x") == c ^ 2')
        assert str(expr) == '((f(a, -b) + (1, "x")) == (c ^ 2))'
        assert parse_expr(str(expr)) == expr


class TestParserErrors:
    """Parser raises on invalid input."""

    def test_empty_expression(self) -> None:
        with pytest.raises(ExpressionParseError, match="Empty expression"):
            parse_expr("   ")

    def test_missing_right_operand(self) -> None:
        with pytest.raises(ExpressionParseError, match="Missing operand after '\\+'"):
            parse_expr("1 +")

    def test_missing_left_operand(self) -> None:
        with pytest.raises(ExpressionParseError, match="Missing operand before '\\*'"):
            parse_expr("* 2")

    def test_missing_operand_before_paren(self) -> None:
        with pytest.raises(ExpressionParseError, match="Missing operand"):
            parse_expr("(1 -)")

    def test_trailing_comma(self) -> None:
        with pytest.raises(ExpressionParseError, match="Missing operand after ','"):
            parse_expr("f(1,)")

    def test_unmatched_open_paren(self) -> None:
        with pytest.raises(ExpressionParseError, match="Unmatched '\\('"):
            parse_expr("(1 + 2")

    def test_unmatched_close_paren(self) -> None:
        with pytest.raises(ExpressionParseError, match="Unmatched '\\)'"):
            parse_expr("1 + 2)")

    def test_unclosed_call(self) -> None:
        with pytest.raises(ExpressionParseError, match="Unmatched"):
            parse_expr("f(1, 2")

    def test_trailing_tokens(self) -> None:
        with pytest.raises(ExpressionParseError, match="after expression") as exc_info:
            parse_expr("1 2")
        assert exc_info.value.pos == 2

    def test_assignment_rejected(self) -> None:
        with pytest.raises(ExpressionParseError, match="Assignment"):
            parse_expr("x = 1")

    def test_tokenizer_error_propagates(self) -> None:
        with pytest.raises(ExpressionTokenError):
            parse_expr("1 # 2")

    def test_nesting_limit(self) -> None:
        with pytest.raises(ExpressionDepthError):
            parse_expr("(" * 20 + "1" + ")" * 20, max_nesting=10)

    def test_unary_chain_limit(self) -> None:
        with pytest.raises(ExpressionDepthError):
            parse_expr("-" * 11 + "1", max_nesting=10)

    def test_within_nesting_limit(self) -> None:
        expr = parse_expr("(" * 10 + "1" + ")" * 10, max_nesting=10)
        assert isinstance(expr, Literal)


class TestBuild:
    """build() works from a bare token list."""

    def test_build_from_tokens(self) -> None:
        expr = build(tokenize("1 + 2"))
        assert isinstance(expr, BinaryExpr)

    def test_missing_eof_is_tolerated(self) -> None:
        tokens = tokenize("a * 2")[:-1]
        expr = build(tokens)
        assert expr.op == BinaryOp.MUL

    def test_error_without_source_reports_position(self) -> None:
        with pytest.raises(ExpressionParseError, match="at position 4") as exc_info:
            build(tokenize("1 + "))
        assert exc_info.value.context is None


class TestParseAssignment:
    """The assignment form NAME = EXPR."""

    def test_assignment(self) -> None:
        name, expr = parse_assignment("total = a + 1")
        assert name == "total"
        assert isinstance(expr, BinaryExpr)

    def test_missing_target(self) -> None:
        with pytest.raises(ExpressionParseError, match="assignment"):
            parse_assignment("= 1")

    def test_missing_value(self) -> None:
        with pytest.raises(ExpressionParseError, match="Missing value"):
            parse_assignment("x =")

    def test_not_an_assignment(self) -> None:
        with pytest.raises(ExpressionParseError):
            parse_assignment("x + 1")

    def test_double_assignment(self) -> None:
        with pytest.raises(ExpressionParseError, match="Assignment"):
            parse_assignment("x = y = 1")


# ============================================================================
# Evaluator tests
# ============================================================================


class TestEvalArithmetic:
    """Evaluator computes arithmetic correctly."""

    def test_precedence(self) -> None:
        assert _eval("1 + 2 * 3") == IntValue(value=7)
        assert _eval("(1 + 2) * 3") == IntValue(value=9)

    def test_power_right_associative(self) -> None:
        assert _eval("2 ^ 3 ^ 2") == IntValue(value=512)

    def test_unary_before_power(self) -> None:
        assert _eval("-2 ^ 2") == IntValue(value=4)

    def test_int_division_truncates(self) -> None:
        assert _eval("7 / 2") == IntValue(value=3)
        assert _eval("-7 / 2") == IntValue(value=-3)

    def test_int_modulo_sign_of_dividend(self) -> None:
        assert _eval("7 % 3") == IntValue(value=1)
        assert _eval("-7 % 3") == IntValue(value=-1)
        assert _eval("7 % -3") == IntValue(value=1)

    def test_promotion(self) -> None:
        assert _eval("1 + 0.5") == FloatValue(value=1.5)
        assert _eval("0.5 * 4") == FloatValue(value=2.0)
        assert _eval("7 / 2.0") == FloatValue(value=3.5)
        assert _eval("2 ^ 2.0") == FloatValue(value=4.0)

    def test_unary(self) -> None:
        assert _eval("-3") == IntValue(value=-3)
        assert _eval("+3") == IntValue(value=3)
        assert _eval("1 - -3") == IntValue(value=4)
        assert _eval("-1.5") == FloatValue(value=-1.5)

    def test_string_concatenation(self) -> None:
        assert _eval('"foo" + "bar"') == StringValue(value="foobar")

    def test_float_division_by_zero_is_infinite(self) -> None:
        assert _eval("1.0 / 0") == FloatValue(value=math.inf)
        assert _eval("-1 / 0.0") == FloatValue(value=-math.inf)

    def test_float_zero_over_zero_is_nan(self) -> None:
        result = _eval("0.0 / 0.0")
        assert isinstance(result, FloatValue)
        assert math.isnan(result.value)


class TestEvalArithmeticErrors:
    """Integer arithmetic failures raise ExpressionArithmeticError."""

    def test_division_by_zero(self) -> None:
        with pytest.raises(ExpressionArithmeticError, match="Division by zero"):
            _eval("1 / 0")

    def test_modulo_by_zero(self) -> None:
        with pytest.raises(ExpressionArithmeticError, match="Modulo by zero"):
            _eval("1 % 0")

    def test_addition_overflow(self) -> None:
        with pytest.raises(ExpressionArithmeticError, match="overflow"):
            _eval("9223372036854775807 + 1")

    def test_multiplication_overflow(self) -> None:
        with pytest.raises(ExpressionArithmeticError):
            _eval("4294967296 * 4294967296")

    def test_power_overflow(self) -> None:
        with pytest.raises(ExpressionArithmeticError):
            _eval("2 ^ 63")
        with pytest.raises(ExpressionArithmeticError):
            _eval("10 ^ 1000000000")

    def test_largest_power_fits(self) -> None:
        assert _eval("2 ^ 62") == IntValue(value=2**62)
        assert _eval("(-2) ^ 63") == IntValue(value=-(2**63))

    def test_negative_exponent(self) -> None:
        with pytest.raises(ExpressionArithmeticError, match="Negative exponent"):
            _eval("2 ^ -1")

    def test_minimum_division_overflow(self) -> None:
        config = MappingConfiguration({"min": -(2**63)})
        with pytest.raises(ExpressionArithmeticError):
            _eval("min / -1", config)

    def test_negating_minimum_overflows(self) -> None:
        config = MappingConfiguration({"min": -(2**63)})
        with pytest.raises(ExpressionArithmeticError):
            _eval("-min", config)

    def test_minimum_modulo_overflow(self) -> None:
        config = MappingConfiguration({"min": -(2**63)})
        with pytest.raises(ExpressionArithmeticError, match="overflow"):
            _eval("min % -1", config)
        assert _eval("min % 2", config) == IntValue(value=0)


class TestEvalComparison:
    """Evaluator computes comparisons correctly."""

    def test_numeric(self) -> None:
        assert _eval("1 < 2") == BooleanValue(value=True)
        assert _eval("2 <= 2") == BooleanValue(value=True)
        assert _eval("3 > 4") == BooleanValue(value=False)
        assert _eval("1 == 1.0") == BooleanValue(value=True)
        assert _eval("1 != 1.5") == BooleanValue(value=True)
        assert _eval("2 >= 1.5") == BooleanValue(value=True)

    def test_strings_by_code_point(self) -> None:
        assert _eval('"abc" < "abd"') == BooleanValue(value=True)
        assert _eval('"Z" < "a"') == BooleanValue(value=True)
        assert _eval('"a" == "a"') == BooleanValue(value=True)

    def test_booleans(self) -> None:
        assert _eval("false < true") == BooleanValue(value=True)
        assert _eval("true == true") == BooleanValue(value=True)

    def test_tuple_equality(self) -> None:
        assert _eval("(1, 2) == (1, 2)") == BooleanValue(value=True)
        assert _eval("(1, 2) == (1, 3)") == BooleanValue(value=False)
        assert _eval("(1, 2) == (1, 2, 3)") == BooleanValue(value=False)
        assert _eval("(1, 2) != (1, 2, 3)") == BooleanValue(value=True)

    def test_tuple_ordering(self) -> None:
        assert _eval("(1, 2) < (1, 3)") == BooleanValue(value=True)
        assert _eval("(2, 0) > (1, 9)") == BooleanValue(value=True)
        assert _eval("(1, 2) <= (1, 2)") == BooleanValue(value=True)
        assert _eval("(1, 2) < (1, 2)") == BooleanValue(value=False)

    def test_tuple_ordering_requires_equal_length(self) -> None:
        with pytest.raises(ExpressionTypeError, match="equal length"):
            _eval("(1, 2) < (1, 2, 3)")

    def test_empty_equality(self) -> None:
        assert _eval("() == ()") == BooleanValue(value=True)

    def test_empty_has_no_ordering(self) -> None:
        with pytest.raises(ExpressionTypeError):
            _eval("() < ()")

    def test_cross_kind_equality_is_type_error(self) -> None:
        with pytest.raises(ExpressionTypeError):
            _eval('1 == "1"')

    def test_cross_kind_ordering_is_type_error(self) -> None:
        with pytest.raises(ExpressionTypeError):
            _eval("true < 1")


class TestEvalLogic:
    """Evaluator computes logical operators with short-circuiting."""

    def test_and_or_not(self) -> None:
        assert _eval("true && false") == BooleanValue(value=False)
        assert _eval("false || true") == BooleanValue(value=True)
        assert _eval("!false") == BooleanValue(value=True)

    def test_and_short_circuits(self) -> None:
        assert _eval("false && (1 / 0 == 0)") == BooleanValue(value=False)

    def test_or_short_circuits(self) -> None:
        assert _eval("true || undefined_name") == BooleanValue(value=True)

    def test_right_side_evaluated_when_needed(self) -> None:
        with pytest.raises(ExpressionArithmeticError):
            _eval("true && (1 / 0 == 0)")

    def test_no_truthiness(self) -> None:
        with pytest.raises(ExpressionTypeError, match="boolean"):
            _eval("1 && true")
        with pytest.raises(ExpressionTypeError, match="boolean"):
            _eval("true && 1")
        with pytest.raises(ExpressionTypeError):
            _eval("!0")


class TestEvalTypeErrors:
    """Operand kind mismatches raise ExpressionTypeError."""

    def test_int_plus_string(self) -> None:
        with pytest.raises(ExpressionTypeError, match="int and string") as exc_info:
            _eval('1 + "a"')
        assert exc_info.value.expected == "int"
        assert exc_info.value.actual == "string"

    def test_string_minus_string(self) -> None:
        with pytest.raises(ExpressionTypeError):
            _eval('"a" - "b"')

    def test_negate_string(self) -> None:
        with pytest.raises(ExpressionTypeError):
            _eval('-"a"')

    def test_add_tuples(self) -> None:
        with pytest.raises(ExpressionTypeError):
            _eval("(1, 2) + (3, 4)")


class TestEvalTuples:
    """Evaluator builds tuples in order."""

    def test_tuple(self) -> None:
        assert _eval("1, 2.5, \"x\"") == TupleValue(
            items=(IntValue(value=1), FloatValue(value=2.5), StringValue(value="x"))
        )

    def test_nested_tuple(self) -> None:
        result = _eval("(1, (2, 3))")
        assert isinstance(result, TupleValue)
        assert result.items[1] == TupleValue(items=(IntValue(value=2), IntValue(value=3)))

    def test_empty(self) -> None:
        assert _eval("()") == EMPTY


class TestEvalBindings:
    """Evaluator resolves variables and functions through the configuration."""

    def test_variable(self) -> None:
        config = MappingConfiguration({"a": 2, "b": 3})
        assert _eval("a * b", config) == IntValue(value=6)

    def test_unknown_variable(self) -> None:
        with pytest.raises(ExpressionLookupError, match="Unknown variable: x") as exc_info:
            _eval("x", EmptyConfiguration())
        assert exc_info.value.name == "x"

    def test_unknown_function(self) -> None:
        with pytest.raises(ExpressionLookupError, match="Unknown function: f"):
            _eval("f(1)")

    def test_default_configuration_is_empty(self) -> None:
        with pytest.raises(ExpressionLookupError):
            evaluate(parse_expr("x"))

    def test_function_receives_tuple_of_arguments(self) -> None:
        seen = []

        def record(args):
            seen.append(args)
            return len(args.items)

        config = MappingConfiguration(functions={"count": record})
        assert _eval("count(1, 1 + 1, \"x\")", config) == IntValue(value=3)
        assert seen == [TupleValue(items=(IntValue(value=1), IntValue(value=2), StringValue(value="x")))]

    def test_arguments_evaluated_left_to_right(self) -> None:
        order = []

        def tick(args):
            order.append(args.items[0].value)
            return args.items[0]

        config = MappingConfiguration(functions={"tick": tick})
        _eval("(tick(1), tick(2)) == (tick(3), tick(4))", config)
        assert order == [1, 2, 3, 4]

    def test_function_errors_propagate(self) -> None:
        def boom(args):
            raise ExpressionArithmeticError("boom")

        config = MappingConfiguration(functions={"boom": boom})
        with pytest.raises(ExpressionArithmeticError, match="boom"):
            _eval("boom()", config)

    def test_separate_namespaces(self) -> None:
        config = MappingConfiguration({"f": 10}, {"f": lambda args: 1})
        assert _eval("f + f()", config) == IntValue(value=11)

    def test_variable_only_is_not_callable(self) -> None:
        config = MappingConfiguration({"f": 10})
        with pytest.raises(ExpressionLookupError, match="function"):
            _eval("f()", config)


class TestEvalReuse:
    """A built tree is reusable and evaluation is deterministic."""

    def test_idempotent(self) -> None:
        tree = parse_expr("a * 2 + 1")
        config = MappingConfiguration({"a": 5})
        assert evaluate(tree, config) == evaluate(tree, config) == IntValue(value=11)

    def test_different_configurations(self) -> None:
        tree = parse_expr("a + b")
        first = MappingConfiguration({"a": 1, "b": 2})
        second = MappingConfiguration({"a": 10, "b": 20})
        assert tree.eval(first) == IntValue(value=3)
        assert tree.eval(second) == IntValue(value=30)

    def test_configuration_updates_between_evaluations(self) -> None:
        tree = parse_expr("one + two + three")
        config = MappingConfiguration({"one": 1, "two": 2, "three": 3})
        assert tree.eval(config) == IntValue(value=6)
        config.set_variable("three", 5)
        assert tree.eval(config) == IntValue(value=8)

    def test_evaluation_does_not_mutate(self) -> None:
        tree = parse_expr("a + 1")
        config = MappingConfiguration({"a": 1})
        before = (tree.model_copy(deep=True), dict(config.variables))
        tree.eval(config)
        assert (tree, config.variables) == before

    def test_shared_tree_across_threads(self) -> None:
        tree = parse_expr("a * b + 1")

        def run(n: int):
            return tree.eval(MappingConfiguration({"a": n, "b": 3}))

        with ThreadPoolExecutor(max_workers=16) as pool:
            results = list(pool.map(run, range(200)))
        assert results == [IntValue(value=n * 3 + 1) for n in range(200)]


class TestEvalDepth:
    """Evaluation depth counts nesting, not the length of operator chains."""

    def test_flat_chain_beyond_depth_limit(self) -> None:
        tree = parse_expr(" + ".join(["1"] * 300))
        assert evaluate(tree) == IntValue(value=300)

    def test_long_flat_chain(self) -> None:
        tree = parse_expr(" + ".join(["1"] * 5000))
        assert evaluate(tree, max_depth=1) == IntValue(value=5000)

    def test_long_logical_chain(self) -> None:
        assert evaluate(parse_expr(" && ".join(["true"] * 2000))) == BooleanValue(value=True)
        assert evaluate(parse_expr(" || ".join(["false"] * 2000))) == BooleanValue(value=False)

    def test_unary_depth_limit(self) -> None:
        tree = parse_expr("-" * 12 + "1")
        with pytest.raises(ExpressionDepthError, match="exceeds 10"):
            evaluate(tree, max_depth=10)
        assert evaluate(tree, max_depth=12) == IntValue(value=1)

    def test_call_depth_limit(self) -> None:
        config = MappingConfiguration(functions={"id": lambda args: args.items[0]})
        tree = parse_expr("id(id(id(1)))")
        with pytest.raises(ExpressionDepthError):
            evaluate(tree, config, max_depth=2)
        assert evaluate(tree, config, max_depth=3) == IntValue(value=1)

    def test_power_chain_depth(self) -> None:
        tree = parse_expr("2 ^ 2 ^ 2 ^ 2")
        with pytest.raises(ExpressionDepthError):
            evaluate(tree, max_depth=2)
        assert evaluate(tree, max_depth=3) == IntValue(value=65536)

    def test_builder_limit_is_enough_to_evaluate(self) -> None:
        config = MappingConfiguration({"x": 2}, {"id": lambda args: args.items[0]})
        sources = [
            "-" * 6 + "x",
            "((((((x))))))",
            "id(-(x ^ id(2)) + 1 == -3 || true, 3)",
            "2 ^ +(x ^ 2) * (x + (x - (x * (x / (x % 3)))))",
        ]
        for source in sources:
            tree = parse_expr(source, max_nesting=6)
            evaluate(tree, config, max_depth=6)
