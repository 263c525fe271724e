"""
Error types for ocrlang lexing, parsing and execution.

Compile-time errors (LexError, ParseError) abort before any statement runs.
Execution errors are terminal for the evaluation session that raised them.
"""

from __future__ import annotations

from enum import StrEnum

from .ir.positions import SourcePosition


class OcrLangError(Exception):
    """Base exception for all ocrlang errors."""

    def __init__(self, message: str, position: SourcePosition | None = None):
        self.message = message
        self.position = position
        super().__init__(message)

    def __str__(self) -> str:
        """Format error message with its location if available."""
        if self.position is not None:
            return f"{self.position}: {self.message}"
        return self.message


class LexError(OcrLangError):
    """
    Raised when source text cannot be split into tokens.

    Examples:
    - A character that starts no token
    - A string literal with no closing quote
    """

    def __init__(self, reason: str, position: SourcePosition):
        self.reason = reason
        super().__init__(reason, position)


class ParseError(OcrLangError):
    """
    Raised when the token sequence does not match the grammar.

    Examples:
    - Unexpected token at the start of a statement
    - Missing endif / endwhile
    - Missing comparison operator in an if/while header
    """

    def __init__(self, expected: str, found: str, position: SourcePosition):
        self.expected = expected
        self.found = found
        super().__init__(f"Expected {expected}, found {found}", position)


class ExecutionError(OcrLangError):
    """Base class for errors raised while evaluating a program."""


class UndefinedVariable(ExecutionError):
    """Raised when a variable is read before it has been assigned."""

    def __init__(self, name: str, position: SourcePosition | None = None):
        self.name = name
        super().__init__(f"Undefined variable {name!r}", position)


class TypeMismatch(ExecutionError):
    """
    Raised when an operation receives a value of the wrong kind.

    Examples:
    - Boolean operand in arithmetic
    - Text operand in a comparison
    - Function returning no value inside an expression
    """


class DivisionByZero(TypeMismatch):
    """Raised when the right operand of '/' is zero."""

    def __init__(self, position: SourcePosition | None = None):
        super().__init__("Division by zero", position)


class InvocationErrorKind(StrEnum):
    """Failure categories reported by a host function registry."""

    UNKNOWN_FUNCTION = "unknown_function"
    ARITY_MISMATCH = "arity_mismatch"
    TYPE_MISMATCH = "type_mismatch"


class InvocationError(ExecutionError):
    """
    Raised by a host function registry when a call cannot be served.

    The evaluator re-raises it unchanged, attaching the call site's
    position when the registry did not supply one.
    """

    def __init__(
        self,
        kind: InvocationErrorKind,
        function: str,
        message: str,
        position: SourcePosition | None = None,
    ):
        self.kind = kind
        self.function = function
        super().__init__(message, position)


class CancelledError(ExecutionError):
    """Raised when the embedding's cancellation hook signals during evaluation."""


def unknown_function(name: str) -> InvocationError:
    """Helper to create an InvocationError for an unregistered function."""
    return InvocationError(
        InvocationErrorKind.UNKNOWN_FUNCTION, name, f"Unknown function: {name}()"
    )


def arity_mismatch(name: str, expected: int, got: int) -> InvocationError:
    """Helper to create an InvocationError for a wrong argument count."""
    plural = "argument" if expected == 1 else "arguments"
    return InvocationError(
        InvocationErrorKind.ARITY_MISMATCH,
        name,
        f"{name}() takes exactly {expected} {plural} ({got} given)",
    )


def argument_type_mismatch(name: str, index: int, expected: str, got: str) -> InvocationError:
    """Helper to create an InvocationError for an argument of the wrong kind."""
    return InvocationError(
        InvocationErrorKind.TYPE_MISMATCH,
        name,
        f"{name}() argument {index + 1} must be {expected}, got {got}",
    )
