"""
Recursive descent parser for the ocrlang scripting language.

Grammar:
    block        → (assign | func_call | if_statement | while_stmt)*
    assign       → IDENT "=" root_expr
    if_statement → "if" conditional "then" block ("else" block)? "endif"
    while_stmt   → "while" conditional block "endwhile"
    root_expr    → expr | conditional
    conditional  → expr ("<" | "<=" | ">" | ">=") expr
    expr         → term (("+" | "-") expr)?
    term         → factor (("*" | "/") term)?
    factor       → NUMBER | IDENT | "(" expr ")" | func_call
    func_call    → IDENT "(" (arg ("," arg)*)? ")"
    arg          → STRING | root_expr

expr and term are right-recursive, so chains of the same precedence
associate right-to-left: 10 - 3 - 2 parses as 10 - (3 - 2). Chains are
read in a loop and folded from the right, so their length is not bounded
by the Python recursion limit; parenthesis nesting still is.

A root_expr is resolved without backtracking: parse an expr, then a
comparison operator as the next token turns it into a conditional.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable

from ..errors import ParseError
from ..ir.nodes import (
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
from .tokenizer import Token, TokenKind, tokenize

logger = logging.getLogger(__name__)

_ADDITIVE: dict[TokenKind, ArithmeticOp] = {
    TokenKind.PLUS: ArithmeticOp.ADD,
    TokenKind.MINUS: ArithmeticOp.SUB,
}

_MULTIPLICATIVE: dict[TokenKind, ArithmeticOp] = {
    TokenKind.STAR: ArithmeticOp.MUL,
    TokenKind.SLASH: ArithmeticOp.DIV,
}

_COMPARISON: dict[TokenKind, ComparisonOp] = {
    TokenKind.GT: ComparisonOp.GT,
    TokenKind.GE: ComparisonOp.GE,
    TokenKind.LT: ComparisonOp.LT,
    TokenKind.LE: ComparisonOp.LE,
}

# Tokens that end a block without being consumed by it
_BLOCK_CLOSERS = frozenset({TokenKind.EOF, TokenKind.ELSE, TokenKind.ENDIF, TokenKind.ENDWHILE})


class _Parser:
    """Recursive descent parser over a token list."""

    def __init__(self, tokens: list[Token]) -> None:
        self.tokens = tokens
        self.pos = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.pos]

    def peek(self, offset: int = 0) -> Token:
        idx = self.pos + offset
        if idx < len(self.tokens):
            return self.tokens[idx]
        return self.tokens[-1]  # EOF

    def advance(self) -> Token:
        tok = self.tokens[self.pos]
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        return tok

    def expect(self, kind: TokenKind, expected: str | None = None) -> Token:
        tok = self.current
        if tok.kind != kind:
            raise ParseError(expected or _describe_kind(kind), tok.describe(), tok.pos)
        return self.advance()

    def match(self, *kinds: TokenKind) -> Token | None:
        if self.current.kind in kinds:
            return self.advance()
        return None

    # -- Statements --

    def parse_program(self) -> Block:
        """Top level: a block that must run to end of input."""
        block = self.parse_block()
        self.expect(TokenKind.EOF, "a statement or end of input")
        return block

    def parse_block(self) -> Block:
        """Statements up to end of input or an enclosing construct's closer."""
        start = self.current.pos
        statements: list[Statement] = []
        while self.current.kind not in _BLOCK_CLOSERS:
            statements.append(self.parse_statement())
        return Block(statements=statements, position=start)

    def parse_statement(self) -> Statement:
        tok = self.current

        if tok.kind == TokenKind.IF:
            return self.parse_if()
        if tok.kind == TokenKind.WHILE:
            return self.parse_while()

        if tok.kind == TokenKind.IDENT:
            following = self.peek(1)
            if following.kind == TokenKind.ASSIGN:
                return self.parse_assign()
            if following.kind == TokenKind.LPAREN:
                return self.parse_func_call()
            raise ParseError("'=' or '(' after identifier", following.describe(), following.pos)

        raise ParseError("a statement", tok.describe(), tok.pos)

    def parse_assign(self) -> Assign:
        """IDENT '=' root_expr"""
        target = self.expect(TokenKind.IDENT)
        self.expect(TokenKind.ASSIGN)
        value = self.parse_root_expr()
        return Assign(target=target.value, value=value, position=target.pos)

    def parse_if(self) -> If:
        """'if' conditional 'then' block ('else' block)? 'endif'"""
        start = self.expect(TokenKind.IF)
        cond = self.parse_conditional()
        self.expect(TokenKind.THEN)
        then_block = self.parse_block()

        else_block: Block | None = None
        if self.match(TokenKind.ELSE):
            else_block = self.parse_block()

        self.expect(TokenKind.ENDIF)
        return If(cond=cond, then_block=then_block, else_block=else_block, position=start.pos)

    def parse_while(self) -> While:
        """'while' conditional block 'endwhile'"""
        start = self.expect(TokenKind.WHILE)
        cond = self.parse_conditional()
        body = self.parse_block()
        self.expect(TokenKind.ENDWHILE)
        return While(cond=cond, body=body, position=start.pos)

    # -- Expressions --

    def parse_root_expr(self) -> RootExpr:
        """expr, promoted to a conditional when a comparison operator follows."""
        left = self.parse_expr()
        if self.current.kind in _COMPARISON:
            return self._finish_conditional(left)
        return left

    def parse_conditional(self) -> Conditional:
        """expr comp_op expr"""
        left = self.parse_expr()
        if self.current.kind not in _COMPARISON:
            raise ParseError(
                "comparison operator ('<', '<=', '>', '>=')",
                self.current.describe(),
                self.current.pos,
            )
        return self._finish_conditional(left)

    def _finish_conditional(self, left: Expr) -> Conditional:
        op_tok = self.advance()
        right = self.parse_expr()
        return Conditional(
            op=_COMPARISON[op_tok.kind], left=left, right=right, position=op_tok.pos
        )

    def parse_expr(self) -> Expr:
        """term (('+' | '-') term)*, grouped right-to-left"""
        return self._parse_chain(self.parse_term, _ADDITIVE)

    def parse_term(self) -> Expr:
        """factor (('*' | '/') factor)*, grouped right-to-left"""
        return self._parse_chain(self.parse_factor, _MULTIPLICATIVE)

    def _parse_chain(
        self, operand: Callable[[], Expr], ops: dict[TokenKind, ArithmeticOp]
    ) -> Expr:
        """Collect a same-precedence chain iteratively, then fold it from the right.

        Equivalent to the right-recursive rule, without one Python frame
        per operator.
        """
        operands = [operand()]
        op_tokens: list[Token] = []
        while self.current.kind in ops:
            op_tokens.append(self.advance())
            operands.append(operand())

        result = operands.pop()
        while op_tokens:
            op_tok = op_tokens.pop()
            result = BinaryExpr(
                op=ops[op_tok.kind], left=operands.pop(), right=result, position=op_tok.pos
            )
        return result

    def parse_factor(self) -> Expr:
        """NUMBER | func_call | IDENT | '(' expr ')'"""
        tok = self.current

        if tok.kind == TokenKind.NUMBER:
            self.advance()
            value = float(tok.value)
            if not math.isfinite(value):
                raise ParseError(
                    "a number within floating-point range",
                    f"{len(tok.value)}-digit number",
                    tok.pos,
                )
            return NumberLiteral(value=value, position=tok.pos)

        if tok.kind == TokenKind.IDENT:
            # Look ahead for function call
            if self.peek(1).kind == TokenKind.LPAREN:
                return self.parse_func_call()
            self.advance()
            return VarRef(name=tok.value, position=tok.pos)

        if tok.kind == TokenKind.LPAREN:
            self.advance()
            expr = self.parse_expr()
            self.expect(TokenKind.RPAREN)
            return expr

        raise ParseError("number, identifier, function call or '('", tok.describe(), tok.pos)

    def parse_func_call(self) -> FuncCall:
        """IDENT '(' (arg (',' arg)*)? ')'"""
        name_tok = self.expect(TokenKind.IDENT)
        self.expect(TokenKind.LPAREN)

        args: list[Arg] = []
        if self.current.kind != TokenKind.RPAREN:
            args.append(self.parse_arg())
            while self.match(TokenKind.COMMA):
                args.append(self.parse_arg())

        self.expect(TokenKind.RPAREN, "',' or ')'")
        return FuncCall(name=name_tok.value, args=args, position=name_tok.pos)

    def parse_arg(self) -> Arg:
        """STRING | root_expr"""
        tok = self.current
        if tok.kind == TokenKind.STRING:
            self.advance()
            return StringLiteral(value=tok.value, position=tok.pos)
        return self.parse_root_expr()


def _describe_kind(kind: TokenKind) -> str:
    symbols = {
        TokenKind.ASSIGN: "'='",
        TokenKind.LPAREN: "'('",
        TokenKind.RPAREN: "')'",
        TokenKind.COMMA: "','",
        TokenKind.IDENT: "identifier",
        TokenKind.EOF: "end of input",
    }
    if kind in symbols:
        return symbols[kind]
    return f"'{kind.value}'"


def parse_tokens(tokens: list[Token]) -> Block:
    """Parse an already tokenized program (EOF-terminated) into a Block.

    Raises:
        ParseError: At the first token that does not fit the grammar.
    """
    if not tokens or tokens[-1].kind != TokenKind.EOF:
        raise ValueError("Token list must end with an EOF token")
    parser = _Parser(tokens)
    try:
        return parser.parse_program()
    except RecursionError:
        raise ParseError(
            "shallower nesting of parentheses and calls",
            "nesting too deep",
            parser.current.pos,
        ) from None


def parse_program(source: str) -> Block:
    """Parse program text into an AST.

    Args:
        source: Program text (e.g., "x = 1 + 2 * 3")

    Returns:
        The root Block.

    Raises:
        LexError: If tokenization fails.
        ParseError: If the program is not well formed.
    """
    block = parse_tokens(tokenize(source))
    logger.debug("Parsed program with %d top-level statements", len(block.statements))
    return block
