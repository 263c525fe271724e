"""
ocrlang - a small imperative scripting language.

Assignments, arithmetic and comparison expressions, if/while control
flow, and calls into functions supplied by the embedding application.

Usage:
    from ocrlang import FunctionRegistry, run_source

    registry = FunctionRegistry()
    registry.register("print", lambda args: print(*args))

    env = run_source('x = 7 print("hello", x)', registry)
    env.lookup("x")   # Number(value=7.0)
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version
from typing import Any

from .core import ir
from .core.environment import Environment
from .core.errors import (
    CancelledError,
    DivisionByZero,
    ExecutionError,
    InvocationError,
    InvocationErrorKind,
    LexError,
    OcrLangError,
    ParseError,
    TypeMismatch,
    UndefinedVariable,
)
from .core.ir.values import Boolean, Number, Text, Value
from .core.lang import Interpreter, evaluate, execute, parse_program, tokenize
from .core.registry import FunctionRegistry, HostFunctionRegistry, expect_number

try:
    __version__ = version("ocrlang")
except PackageNotFoundError:
    # Running from a source checkout without an install
    __version__ = "0.0.0"


def run_source(
    source: str,
    registry: HostFunctionRegistry | None = None,
    **kwargs: Any,
) -> Environment:
    """Parse and run ``source`` in a fresh session.

    Keyword arguments are passed to Interpreter (``should_cancel``,
    ``settings``). An empty FunctionRegistry is used when none is given.
    """
    interpreter = Interpreter(registry if registry is not None else FunctionRegistry(), **kwargs)
    return interpreter.run(source)


__all__ = [
    "Boolean",
    "CancelledError",
    "DivisionByZero",
    "Environment",
    "ExecutionError",
    "FunctionRegistry",
    "HostFunctionRegistry",
    "Interpreter",
    "InvocationError",
    "InvocationErrorKind",
    "LexError",
    "Number",
    "OcrLangError",
    "ParseError",
    "Text",
    "TypeMismatch",
    "UndefinedVariable",
    "Value",
    "__version__",
    "evaluate",
    "execute",
    "expect_number",
    "ir",
    "parse_program",
    "run_source",
    "tokenize",
]
