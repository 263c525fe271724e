"""
Host function registry boundary.

The evaluator never owns a function table. Every call in a program is
dispatched by name to a registry supplied by the embedding, which either
returns a value or raises an InvocationError.

Usage:
    from ocrlang.core.registry import FunctionRegistry, expect_number

    registry = FunctionRegistry()

    @registry.function(arity=1)
    def double(args):
        return expect_number(args, 0, "double") * 2
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Protocol, runtime_checkable

from .errors import (
    InvocationError,
    InvocationErrorKind,
    argument_type_mismatch,
    arity_mismatch,
    unknown_function,
)
from .ir.values import Number, Value, is_value, to_value, type_name

logger = logging.getLogger(__name__)

HostResult = Value | int | float | str | bool | None
HostFunction = Callable[[list[Value]], HostResult]


@runtime_checkable
class HostFunctionRegistry(Protocol):
    """
    Protocol for the collaborator that serves function calls.

    Implementations raise InvocationError for unknown names, arity
    mismatches and argument type mismatches. Returning None means the
    function produced no value.
    """

    def invoke(self, name: str, args: list[Value]) -> Value | None: ...


class FunctionRegistry:
    """
    Dict-backed registry of host callables.

    Ships empty: the embedding registers whatever functions its programs
    may call. Callables receive the evaluated argument list and may return
    a Value, a plain Python scalar, or None.
    """

    def __init__(self) -> None:
        self._functions: dict[str, tuple[HostFunction, int | None]] = {}

    def register(self, name: str, func: HostFunction, *, arity: int | None = None) -> None:
        """Register ``func`` under ``name``; a declared arity is enforced on every call."""
        if arity is not None and arity < 0:
            raise ValueError(f"arity must be non-negative, got {arity}")
        if name in self._functions:
            logger.debug("Replacing host function %s()", name)
        self._functions[name] = (func, arity)

    def function(
        self, name: str | None = None, *, arity: int | None = None
    ) -> Callable[[HostFunction], HostFunction]:
        """Decorator form of register(); defaults to the function's own name."""

        def decorator(func: HostFunction) -> HostFunction:
            self.register(name or func.__name__, func, arity=arity)
            return func

        return decorator

    def unregister(self, name: str) -> None:
        self._functions.pop(name, None)

    def names(self) -> list[str]:
        return sorted(self._functions)

    def __contains__(self, name: object) -> bool:
        return name in self._functions

    def invoke(self, name: str, args: list[Value]) -> Value | None:
        """Call the function registered under ``name``.

        Raises:
            InvocationError: Unknown name, wrong argument count, or a
                result that is not a runtime value.
        """
        entry = self._functions.get(name)
        if entry is None:
            raise unknown_function(name)

        func, arity = entry
        if arity is not None and len(args) != arity:
            raise arity_mismatch(name, arity, len(args))

        result = func(list(args))
        if result is None or is_value(result):
            return result
        if isinstance(result, (bool, int, float, str)):
            return to_value(result)
        raise InvocationError(
            InvocationErrorKind.TYPE_MISMATCH,
            name,
            f"{name}() returned unsupported type {type(result).__name__}",
        )


def expect_number(args: Sequence[Value], index: int, function: str) -> float:
    """Return argument ``index`` as a float, or raise a TYPE_MISMATCH InvocationError."""
    value = args[index]
    if not isinstance(value, Number):
        raise argument_type_mismatch(function, index, "number", type_name(value))
    return value.value
