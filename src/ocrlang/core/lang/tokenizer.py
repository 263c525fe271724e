"""
Tokenizer for the ocrlang scripting language.

Converts program text into a sequence of typed tokens with source
positions. Whitespace, including newlines, only separates tokens.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from enum import StrEnum, auto

from ..errors import LexError
from ..ir.positions import SourcePosition

logger = logging.getLogger(__name__)


class TokenKind(StrEnum):
    """Token types for the scripting language."""

    # Literals
    NUMBER = auto()
    STRING = auto()

    # Identifiers and keywords
    IDENT = auto()
    IF = auto()
    THEN = auto()
    ELSE = auto()
    ENDIF = auto()
    WHILE = auto()
    ENDWHILE = auto()

    # Operators
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    ASSIGN = auto()
    GT = auto()
    GE = auto()
    LT = auto()
    LE = auto()

    # Punctuation
    LPAREN = auto()
    RPAREN = auto()
    COMMA = auto()

    # End of input
    EOF = auto()


class Token:
    """A single token from the tokenizer."""

    __slots__ = ("kind", "value", "pos")

    def __init__(self, kind: TokenKind, value: str, pos: SourcePosition) -> None:
        self.kind = kind
        self.value = value
        self.pos = pos

    def __repr__(self) -> str:
        return f"Token({self.kind}, {self.value!r}, pos={self.pos})"

    def describe(self) -> str:
        """Short description used in parse errors."""
        if self.kind == TokenKind.EOF:
            return "end of input"
        if self.kind == TokenKind.STRING:
            return f"string {self.value!r}"
        return f"{self.kind} ({self.value!r})"


KEYWORDS: dict[str, TokenKind] = {
    "if": TokenKind.IF,
    "then": TokenKind.THEN,
    "else": TokenKind.ELSE,
    "endif": TokenKind.ENDIF,
    "while": TokenKind.WHILE,
    "endwhile": TokenKind.ENDWHILE,
}

_TWO_CHAR: dict[str, TokenKind] = {
    ">=": TokenKind.GE,
    "<=": TokenKind.LE,
}

_SINGLE_CHAR: dict[str, TokenKind] = {
    "+": TokenKind.PLUS,
    "-": TokenKind.MINUS,
    "*": TokenKind.STAR,
    "/": TokenKind.SLASH,
    "=": TokenKind.ASSIGN,
    ">": TokenKind.GT,
    "<": TokenKind.LT,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    ",": TokenKind.COMMA,
}

# Number pattern: integer part with an optional fraction
_NUMBER_RE = re.compile(r"[0-9]+(\.[0-9]+)?")
# Identifiers and keywords share one character class: letters only
_WORD_RE = re.compile(r"[^\W\d_]+")

_WHITESPACE = " \t\n\r\f\v"


def iter_tokens(source: str) -> Iterator[Token]:
    """Lazily tokenize ``source``, ending with an EOF token.

    Each call starts again from the beginning of the text.

    Raises:
        LexError: At the first character that starts no token, or on an
            unterminated string literal.
    """
    i = 0
    n = len(source)
    line = 1
    line_start = 0

    while i < n:
        c = source[i]

        # Skip whitespace
        if c in _WHITESPACE:
            if c == "\n":
                line += 1
                line_start = i + 1
            i += 1
            continue

        pos = SourcePosition(offset=i, line=line, column=i - line_start + 1)

        # String literals: opaque content up to the matching quote
        if c in ('"', "'"):
            end = source.find(c, i + 1)
            if end == -1:
                raise LexError("Unterminated string literal", pos)
            content = source[i + 1 : end]
            newlines = content.count("\n")
            if newlines:
                line += newlines
                line_start = i + 1 + content.rindex("\n") + 1
            yield Token(TokenKind.STRING, content, pos)
            i = end + 1
            continue

        # Numbers
        if "0" <= c <= "9":
            m = _NUMBER_RE.match(source, i)
            assert m is not None
            yield Token(TokenKind.NUMBER, m.group(0), pos)
            i = m.end()
            continue

        # Identifiers and keywords
        m = _WORD_RE.match(source, i)
        if m is not None:
            word = m.group(0)
            yield Token(KEYWORDS.get(word, TokenKind.IDENT), word, pos)
            i = m.end()
            continue

        # Two-character operators
        two = source[i : i + 2]
        if two in _TWO_CHAR:
            yield Token(_TWO_CHAR[two], two, pos)
            i += 2
            continue

        # Single-character operators and punctuation
        if c in _SINGLE_CHAR:
            yield Token(_SINGLE_CHAR[c], c, pos)
            i += 1
            continue

        raise LexError(f"Unexpected character: {c!r}", pos)

    yield Token(TokenKind.EOF, "", SourcePosition(offset=n, line=line, column=n - line_start + 1))


def tokenize(source: str) -> list[Token]:
    """Tokenize a program into a list of tokens (EOF last)."""
    tokens = list(iter_tokens(source))
    logger.debug("Tokenized %d characters into %d tokens", len(source), len(tokens))
    return tokens
