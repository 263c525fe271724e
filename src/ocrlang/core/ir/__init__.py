"""
Intermediate representation for ocrlang: positions, AST nodes and runtime values.
"""

from .nodes import (
    Arg,
    ArithmeticOp,
    Assign,
    BinaryExpr,
    Block,
    ComparisonOp,
    Conditional,
    Expr,
    FuncCall,
    If,
    NumberLiteral,
    RootExpr,
    Statement,
    StringLiteral,
    VarRef,
    While,
)
from .positions import SourcePosition
from .values import FALSE, TRUE, Boolean, Number, Text, Value, from_value, is_value, to_value

__all__ = [
    "Arg",
    "ArithmeticOp",
    "Assign",
    "BinaryExpr",
    "Block",
    "Boolean",
    "ComparisonOp",
    "Conditional",
    "Expr",
    "FALSE",
    "FuncCall",
    "If",
    "Number",
    "NumberLiteral",
    "RootExpr",
    "SourcePosition",
    "Statement",
    "StringLiteral",
    "TRUE",
    "Text",
    "Value",
    "VarRef",
    "While",
    "from_value",
    "is_value",
    "to_value",
]
