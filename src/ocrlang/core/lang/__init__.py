"""
ocrlang front end and execution engine.

Tokenizer, parser and evaluator for the scripting language.

Usage:
    from ocrlang.core.lang import parse_program, execute

    program = parse_program("x = 1 + 2 * 3")
    env = execute(program, registry)
    # env.lookup("x") == Number(value=7)
"""

from .evaluator import Interpreter, evaluate, execute
from .parser import parse_program, parse_tokens
from .tokenizer import Token, TokenKind, iter_tokens, tokenize

__all__ = [
    "Interpreter",
    "Token",
    "TokenKind",
    "evaluate",
    "execute",
    "iter_tokens",
    "parse_program",
    "parse_tokens",
    "tokenize",
]
