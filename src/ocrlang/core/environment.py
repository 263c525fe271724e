"""
Variable environment for an evaluation session.

A program has a single flat scope: one mapping from variable name to
value, created for a session and discarded with it. Assignment
overwrites; reading a name that was never assigned is an error.

Usage:
    from ocrlang.core.environment import Environment

    env = Environment()
    env.assign("x", Number(value=7))
    env.lookup("x")      # Number(value=7.0)
    env.snapshot()       # {"x": Number(value=7.0)}
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping

from .errors import UndefinedVariable
from .ir.positions import SourcePosition
from .ir.values import Value, is_value


class Environment:
    """Mutable name -> Value mapping owned by one evaluation session."""

    def __init__(self, initial: Mapping[str, Value] | None = None) -> None:
        self._bindings: dict[str, Value] = {}
        if initial:
            for name, value in initial.items():
                self.assign(name, value)

    def assign(self, name: str, value: Value) -> None:
        """Bind ``name`` to ``value``, replacing any previous binding."""
        if not is_value(value):
            raise TypeError(f"Environment values must be runtime values, got {type(value).__name__}")
        self._bindings[name] = value

    def lookup(self, name: str, position: SourcePosition | None = None) -> Value:
        """Return the value bound to ``name``.

        Raises:
            UndefinedVariable: If ``name`` has never been assigned.
        """
        try:
            return self._bindings[name]
        except KeyError:
            raise UndefinedVariable(name, position) from None

    def get(self, name: str) -> Value | None:
        return self._bindings.get(name)

    def snapshot(self) -> dict[str, Value]:
        """Copy of the current bindings, unaffected by later assignments."""
        return dict(self._bindings)

    def __contains__(self, name: object) -> bool:
        return name in self._bindings

    def __iter__(self) -> Iterator[str]:
        return iter(self._bindings)

    def __len__(self) -> int:
        return len(self._bindings)

    def __repr__(self) -> str:
        inner = ", ".join(f"{k}={v}" for k, v in self._bindings.items())
        return f"Environment({inner})"
