"""
evalex Intermediate Representation (IR) types.

Operator tree nodes and the runtime values they evaluate to.
"""

from .expressions import (
    BinaryExpr,
    BinaryOp,
    Expr,
    FuncCall,
    Literal,
    Node,
    TupleExpr,
    UnaryExpr,
    UnaryOp,
    VariableRef,
)
from .values import (
    EMPTY,
    FALSE,
    INT_MAX,
    INT_MIN,
    TRUE,
    BooleanValue,
    EmptyValue,
    FloatValue,
    IntValue,
    StringValue,
    TupleValue,
    Value,
    ValueKind,
    expect_boolean,
    expect_empty,
    expect_float,
    expect_int,
    expect_number,
    expect_string,
    expect_tuple,
    to_value,
)

__all__ = [
    # Operator tree
    "BinaryExpr",
    "BinaryOp",
    "Expr",
    "FuncCall",
    "Literal",
    "Node",
    "TupleExpr",
    "UnaryExpr",
    "UnaryOp",
    "VariableRef",
    # Values
    "EMPTY",
    "FALSE",
    "INT_MAX",
    "INT_MIN",
    "TRUE",
    "BooleanValue",
    "EmptyValue",
    "FloatValue",
    "IntValue",
    "StringValue",
    "TupleValue",
    "Value",
    "ValueKind",
    "expect_boolean",
    "expect_empty",
    "expect_float",
    "expect_int",
    "expect_number",
    "expect_string",
    "expect_tuple",
    "to_value",
]
