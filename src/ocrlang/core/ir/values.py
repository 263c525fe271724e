"""
Runtime values for the ocrlang evaluator.

The value space is closed: numbers, text and booleans. Every site that
consumes a value matches on the concrete model, and no value is ever
coerced into another kind implicitly.
"""

from __future__ import annotations

from typing import Literal as TypingLiteral

from pydantic import BaseModel, ConfigDict, Field


class Number(BaseModel):
    """A numeric value. All arithmetic is carried out on floats."""

    kind: TypingLiteral["number"] = "number"
    value: float = Field(description="The numeric value")

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        if self.value.is_integer():
            return str(int(self.value))
        return str(self.value)


class Text(BaseModel):
    """A text value. Only produced by string literals in call arguments or by host functions."""

    kind: TypingLiteral["text"] = "text"
    value: str = Field(description="The text content")

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return self.value


class Boolean(BaseModel):
    """A truth value, the result of a conditional."""

    kind: TypingLiteral["boolean"] = "boolean"
    value: bool = Field(description="The truth value")

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return "true" if self.value else "false"


Value = Number | Text | Boolean

VALUE_TYPES: tuple[type[BaseModel], ...] = (Number, Text, Boolean)

TRUE = Boolean(value=True)
FALSE = Boolean(value=False)


def is_value(obj: object) -> bool:
    """True if ``obj`` is one of the runtime value models."""
    return isinstance(obj, VALUE_TYPES)


def to_value(obj: int | float | str | bool) -> Value:
    """Convert a plain Python scalar into a runtime value.

    Raises:
        TypeError: If ``obj`` has no runtime counterpart.
    """
    # bool is a subclass of int, so it has to be checked first
    if isinstance(obj, bool):
        return Boolean(value=obj)
    if isinstance(obj, (int, float)):
        return Number(value=float(obj))
    if isinstance(obj, str):
        return Text(value=obj)
    raise TypeError(f"Cannot convert {type(obj).__name__} to a runtime value")


def from_value(value: Value) -> float | str | bool:
    """Unwrap a runtime value into the matching Python scalar."""
    return value.value


def type_name(value: object) -> str:
    """Human-readable tag used in error messages."""
    if isinstance(value, (Number, Text, Boolean)):
        return value.kind
    return type(value).__name__
