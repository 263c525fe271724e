"""Shared pytest fixtures for ocrlang tests."""

from __future__ import annotations

import pytest

from ocrlang.core.ir.values import Number, Value
from ocrlang.core.registry import FunctionRegistry, expect_number


class RecordingRegistry(FunctionRegistry):
    """FunctionRegistry that remembers every invocation it serves."""

    def __init__(self) -> None:
        super().__init__()
        self.calls: list[tuple[str, list[Value]]] = []

    def invoke(self, name: str, args: list[Value]) -> Value | None:
        self.calls.append((name, list(args)))
        return super().invoke(name, args)


@pytest.fixture
def registry() -> RecordingRegistry:
    """Registry with a handful of host functions used across tests."""
    reg = RecordingRegistry()
    printed: list[str] = []

    def print_(args: list[Value]) -> None:
        printed.append(" ".join(str(a) for a in args))

    def double(args: list[Value]) -> Value:
        return Number(value=expect_number(args, 0, "double") * 2)

    reg.register("print", print_)
    reg.register("double", double, arity=1)
    reg.register("answer", lambda args: 42, arity=0)
    reg.printed = printed  # type: ignore[attr-defined]
    return reg
