"""
Expression commands.

- eval:   evaluate an expression, optionally with variable bindings
- tree:   show the operator tree an expression builds
- tokens: show the token stream of an expression
"""

from __future__ import annotations

from enum import StrEnum

import typer
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from evalex.cli.utils import console, fail
from evalex.core.configuration import MappingConfiguration
from evalex.core.errors import ExpressionError
from evalex.core.expression_lang.evaluator import evaluate
from evalex.core.expression_lang.parser import parse_expr
from evalex.core.expression_lang.tokenizer import tokenize
from evalex.core.ir.expressions import (
    BinaryExpr,
    Expr,
    FuncCall,
    Literal,
    TupleExpr,
    UnaryExpr,
    VariableRef,
)
from evalex.core.ir.values import (
    Value,
    expect_boolean,
    expect_float,
    expect_int,
    expect_string,
    expect_tuple,
)


class ResultKind(StrEnum):
    """Kinds the eval command can narrow its result to."""

    INT = "int"
    FLOAT = "float"
    BOOLEAN = "boolean"
    STRING = "string"
    TUPLE = "tuple"


_NARROW = {
    ResultKind.INT: expect_int,
    ResultKind.FLOAT: expect_float,
    ResultKind.BOOLEAN: expect_boolean,
    ResultKind.STRING: expect_string,
    ResultKind.TUPLE: expect_tuple,
}


def eval_command(
    expression: str = typer.Argument(..., help="Expression to evaluate"),
    var: list[str] = typer.Option(  # noqa: B008
        [],
        "--var",
        "-D",
        help="Variable binding NAME=EXPR; may be repeated, later bindings see earlier ones",
    ),
    as_kind: ResultKind | None = typer.Option(
        None,
        "--as",
        help="Require the result to be of this kind",
    ),
) -> None:
    """Evaluate an expression and print the result."""
    configuration = MappingConfiguration()
    try:
        for binding in var:
            configuration.assign(binding)
        value = evaluate(parse_expr(expression), configuration)
        if as_kind is not None:
            _NARROW[as_kind](value)
    except ExpressionError as e:
        raise fail(e)

    console.print(escape(str(value)), highlight=False)


def tree_command(
    expression: str = typer.Argument(..., help="Expression to parse"),
) -> None:
    """Show the operator tree built for an expression."""
    try:
        expr = parse_expr(expression)
    except ExpressionError as e:
        raise fail(e)

    root = Tree(escape(_label(expr)))
    _add_children(root, expr)
    console.print(root)


def tokens_command(
    expression: str = typer.Argument(..., help="Expression to tokenize"),
) -> None:
    """Show the tokens of an expression."""
    try:
        tokens = tokenize(expression)
    except ExpressionError as e:
        raise fail(e)

    table = Table(title="Tokens")
    table.add_column("Pos", justify="right")
    table.add_column("Kind")
    table.add_column("Text")
    for tok in tokens:
        table.add_row(str(tok.pos), str(tok.kind), escape(repr(tok.value)))
    console.print(table)


def _label(expr: Expr) -> str:
    if isinstance(expr, Literal):
        return f"literal {_describe(expr.value)}"
    if isinstance(expr, VariableRef):
        return f"variable {expr.name}"
    if isinstance(expr, FuncCall):
        return f"call {expr.name}/{len(expr.args)}"
    if isinstance(expr, UnaryExpr):
        return f"unary {expr.op.value}"
    if isinstance(expr, BinaryExpr):
        return f"binary {expr.op.value}"
    if isinstance(expr, TupleExpr):
        return f"tuple/{len(expr.items)}"
    raise AssertionError(f"Unknown expression type: {type(expr).__name__}")


def _describe(value: Value) -> str:
    return f"{value.kind} {value}"


def _add_children(branch: Tree, expr: Expr) -> None:
    # Explicit stack: flat operator chains nest one node per term
    pending = [(branch, expr)]
    while pending:
        parent, node = pending.pop()
        for child in node.children:
            pending.append((parent.add(escape(_label(child))), child))
