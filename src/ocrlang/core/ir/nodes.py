"""
Abstract syntax tree for ocrlang programs.

Statements:
- Assignment: x = 1 + 2
- Function call: print("hello", x)
- If: if x > 5 then ... else ... endif
- While: while i < 3 ... endwhile

Expressions:
- Arithmetic: +, -, * and / (right-associative, see parser)
- Conditionals: >, >=, <, <=
- Number literals, variable references, nested function calls
- String literals (function-call arguments only)
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from .positions import START, SourcePosition

# ---------------------------------------------------------------------------
# Operators
# ---------------------------------------------------------------------------


class ArithmeticOp(StrEnum):
    """Binary arithmetic operators."""

    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"


class ComparisonOp(StrEnum):
    """Comparison operators allowed in a conditional."""

    GT = ">"
    GE = ">="
    LT = "<"
    LE = "<="


# ---------------------------------------------------------------------------
# Expression nodes
# ---------------------------------------------------------------------------


class NumberLiteral(BaseModel):
    """A decimal number literal."""

    value: float
    position: SourcePosition = START

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        if self.value.is_integer():
            return str(int(self.value))
        return str(self.value)


class StringLiteral(BaseModel):
    """A quoted string. Only valid as a function-call argument."""

    value: str
    position: SourcePosition = START

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f'"{self.value}"'


class VarRef(BaseModel):
    """Reference to a variable in the environment."""

    name: str
    position: SourcePosition = START

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return self.name


class BinaryExpr(BaseModel):
    """Arithmetic operation: left op right."""

    op: ArithmeticOp
    left: Expr
    right: Expr
    position: SourcePosition = START

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"({self.left} {self.op.value} {self.right})"


class FuncCall(BaseModel):
    """
    Call into the host function registry: name(arg1, arg2, ...).

    Used both as a statement (result discarded) and as a factor inside
    an expression (result feeds the enclosing expression).
    """

    name: str = Field(description="Function name")
    args: list[Arg] = Field(default_factory=list, description="Arguments")
    position: SourcePosition = START

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        args_str = ", ".join(str(a) for a in self.args)
        return f"{self.name}({args_str})"


class Conditional(BaseModel):
    """Numeric comparison: left op right, yielding a boolean."""

    op: ComparisonOp
    left: Expr
    right: Expr
    position: SourcePosition = START

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"({self.left} {self.op.value} {self.right})"


# ---------------------------------------------------------------------------
# Statement nodes
# ---------------------------------------------------------------------------


class Block(BaseModel):
    """An ordered sequence of statements."""

    statements: list[Statement] = Field(default_factory=list)
    position: SourcePosition = START

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return "\n".join(str(s) for s in self.statements)


class Assign(BaseModel):
    """Assignment: target = value."""

    target: str = Field(description="Variable name")
    value: RootExpr
    position: SourcePosition = START

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"{self.target} = {self.value}"


class If(BaseModel):
    """if cond then ... [else ...] endif"""

    cond: Conditional
    then_block: Block
    else_block: Block | None = None
    position: SourcePosition = START

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        parts = [f"if {self.cond} then", _indent(self.then_block)]
        if self.else_block is not None:
            parts.extend(["else", _indent(self.else_block)])
        parts.append("endif")
        return "\n".join(p for p in parts if p)


class While(BaseModel):
    """while cond ... endwhile"""

    cond: Conditional
    body: Block
    position: SourcePosition = START

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        parts = [f"while {self.cond}", _indent(self.body), "endwhile"]
        return "\n".join(p for p in parts if p)


def _indent(block: Block) -> str:
    return "\n".join("    " + line for line in str(block).splitlines())


# ---------------------------------------------------------------------------
# Union types
# ---------------------------------------------------------------------------

Expr = NumberLiteral | VarRef | BinaryExpr | FuncCall
RootExpr = Expr | Conditional
Arg = RootExpr | StringLiteral
Statement = Assign | FuncCall | If | While

# Rebuild models for recursive forward references
BinaryExpr.model_rebuild()
FuncCall.model_rebuild()
Conditional.model_rebuild()
Block.model_rebuild()
Assign.model_rebuild()
If.model_rebuild()
While.model_rebuild()
