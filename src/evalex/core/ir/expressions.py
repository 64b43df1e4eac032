"""
Operator tree for evalex expressions.

The builder produces an immutable tree of these nodes. Each node kind fixes
its own arity through its fields:

- Literal, VariableRef: no children
- UnaryExpr: one child
- BinaryExpr: two children
- FuncCall, TupleExpr: N children (TupleExpr at least two)

so a node whose child count disagrees with its operator cannot be built.
A tree holds no reference to any configuration and can be evaluated any
number of times, from any number of threads.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from evalex.core.ir.values import Value

if TYPE_CHECKING:
    from evalex.core.configuration import Configuration

# ---------------------------------------------------------------------------
# Operators
# ---------------------------------------------------------------------------


class BinaryOp(StrEnum):
    """Binary operators for expressions."""

    # Arithmetic
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    MOD = "%"
    POW = "^"
    # Comparison
    EQ = "=="
    NE = "!="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="
    # Logical
    AND = "&&"
    OR = "||"


class UnaryOp(StrEnum):
    """Unary prefix operators for expressions."""

    NEG = "-"
    POS = "+"
    NOT = "!"


# ---------------------------------------------------------------------------
# AST node types
# ---------------------------------------------------------------------------


class Node(BaseModel):
    """Common base of all operator tree nodes."""

    model_config = ConfigDict(frozen=True)

    def eval(self, configuration: Configuration | None = None) -> Value:
        """Evaluate this tree against *configuration* (empty if omitted)."""
        from evalex.core.expression_lang.evaluator import evaluate

        return evaluate(self, configuration)  # type: ignore[arg-type]

    @property
    def children(self) -> tuple[Expr, ...]:
        """Child nodes in evaluation order."""
        return ()


class Literal(Node):
    """A constant value."""

    value: Value = Field(description="The literal value")

    def __str__(self) -> str:
        return str(self.value)


class VariableRef(Node):
    """Reference to a variable resolved through the configuration."""

    name: str = Field(description="Variable name")

    def __str__(self) -> str:
        return self.name


class UnaryExpr(Node):
    """Unary operation: op operand."""

    op: UnaryOp
    operand: Expr

    @property
    def children(self) -> tuple[Expr, ...]:
        return (self.operand,)

    def __str__(self) -> str:
        return f"{self.op.value}{self.operand}"


class BinaryExpr(Node):
    """Binary operation: left op right."""

    op: BinaryOp
    left: Expr
    right: Expr

    @property
    def children(self) -> tuple[Expr, ...]:
        return (self.left, self.right)

    def __str__(self) -> str:
        return f"({self.left} {self.op.value} {self.right})"


class FuncCall(Node):
    """
    Function call: name(arg1, arg2, ...).

    Functions are resolved through the configuration, separately from
    variables, so a name may be bound as both.
    """

    name: str = Field(description="Function name")
    args: tuple[Expr, ...] = Field(default=(), description="Arguments")

    @property
    def children(self) -> tuple[Expr, ...]:
        return self.args

    def __str__(self) -> str:
        args_str = ", ".join(str(a) for a in self.args)
        return f"{self.name}({args_str})"


class TupleExpr(Node):
    """Tuple construction: (a, b, c)."""

    items: tuple[Expr, ...] = Field(min_length=2, description="Tuple elements")

    @property
    def children(self) -> tuple[Expr, ...]:
        return self.items

    def __str__(self) -> str:
        items_str = ", ".join(str(i) for i in self.items)
        return f"({items_str})"


# ---------------------------------------------------------------------------
# Union type
# ---------------------------------------------------------------------------

Expr = Literal | VariableRef | UnaryExpr | BinaryExpr | FuncCall | TupleExpr

# Rebuild models for recursive forward references
UnaryExpr.model_rebuild()
BinaryExpr.model_rebuild()
FuncCall.model_rebuild()
TupleExpr.model_rebuild()
