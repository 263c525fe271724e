"""
Tree-walking evaluator for ocrlang programs.

Executes a parsed Block against a caller-owned Environment, dispatching
every function call to a host function registry. Evaluation is strictly
sequential; the only state is the Environment and the Python call stack.

Values are never coerced: arithmetic and comparison accept Numbers only,
if/while headers must produce a Boolean.
"""

from __future__ import annotations

import logging
import math

from ..environment import Environment
from ..errors import (
    CancelledError,
    DivisionByZero,
    ExecutionError,
    InvocationError,
    TypeMismatch,
)
from ..ir.nodes import (
    Arg,
    ArithmeticOp,
    Assign,
    BinaryExpr,
    Block,
    ComparisonOp,
    Conditional,
    FuncCall,
    If,
    NumberLiteral,
    RootExpr,
    Statement,
    StringLiteral,
    VarRef,
    While,
)
from ..ir.positions import SourcePosition
from ..ir.values import FALSE, TRUE, Boolean, Number, Text, Value, is_value, type_name
from ..registry import HostFunctionRegistry
from ..settings import CancelHook, EvaluationSettings, combine_hooks, load_settings
from .parser import parse_program

logger = logging.getLogger(__name__)


class _Session:
    """State for one evaluation: environment, registry and cancellation."""

    def __init__(
        self,
        env: Environment,
        registry: HostFunctionRegistry,
        should_cancel: CancelHook | None = None,
        max_loop_iterations: int | None = None,
    ) -> None:
        self.env = env
        self.registry = registry
        self.should_cancel = should_cancel
        self.max_loop_iterations = max_loop_iterations
        self.loop_iterations = 0

    # -- Cancellation --

    def checkpoint(self, what: str, position: SourcePosition) -> None:
        if self.should_cancel is not None and self.should_cancel():
            logger.debug("Evaluation cancelled before %s at %s", what, position)
            raise CancelledError(f"Evaluation cancelled before {what}", position)

    def count_iteration(self, position: SourcePosition) -> None:
        self.loop_iterations += 1
        limit = self.max_loop_iterations
        if limit is not None and self.loop_iterations > limit:
            logger.debug("Loop iteration limit %d reached at %s", limit, position)
            raise CancelledError(f"Loop iteration limit of {limit} exceeded", position)

    # -- Statements --

    def run_block(self, block: Block) -> None:
        for statement in block.statements:
            self.run_statement(statement)

    def run_statement(self, stmt: Statement) -> None:
        """Dispatch a statement to its handler."""
        if isinstance(stmt, Assign):
            self.env.assign(stmt.target, self.eval_root(stmt.value))
            return

        if isinstance(stmt, FuncCall):
            # Result, if any, is discarded
            self.call(stmt)
            return

        if isinstance(stmt, If):
            if self.eval_condition(stmt.cond):
                self.run_block(stmt.then_block)
            elif stmt.else_block is not None:
                self.run_block(stmt.else_block)
            return

        if isinstance(stmt, While):
            self.run_while(stmt)
            return

        raise ExecutionError(f"Unknown statement type: {type(stmt).__name__}")

    def run_while(self, stmt: While) -> None:
        iterations = 0
        while True:
            self.checkpoint("loop iteration", stmt.position)
            if not self.eval_condition(stmt.cond):
                break
            self.count_iteration(stmt.position)
            iterations += 1
            self.run_block(stmt.body)
        logger.debug("Loop at %s finished after %d iterations", stmt.position, iterations)

    # -- Expressions --

    def eval_root(self, expr: RootExpr) -> Value:
        """Evaluate a root expression: Number for an expr, Boolean for a conditional."""
        if isinstance(expr, Conditional):
            return TRUE if self.eval_condition(expr) else FALSE
        return self.eval_expr(expr)

    def eval_expr(self, expr: RootExpr) -> Value:
        """Dispatch evaluation to the appropriate handler."""
        if isinstance(expr, NumberLiteral):
            return Number(value=expr.value)

        if isinstance(expr, VarRef):
            return self.env.lookup(expr.name, expr.position)

        if isinstance(expr, BinaryExpr):
            return self.eval_binary(expr)

        if isinstance(expr, FuncCall):
            result = self.call(expr)
            if result is None:
                raise TypeMismatch(f"{expr.name}() returned no value", expr.position)
            return result

        if isinstance(expr, Conditional):
            return TRUE if self.eval_condition(expr) else FALSE

        raise ExecutionError(f"Unknown expression type: {type(expr).__name__}")

    def eval_binary(self, expr: BinaryExpr) -> Number:
        """Evaluate a right-leaning operator chain without recursing per operator.

        Left operands are evaluated in source order down the right spine,
        then results are combined from the innermost operator outwards.
        """
        pending: list[tuple[BinaryExpr, Value]] = []
        node: RootExpr = expr
        while isinstance(node, BinaryExpr):
            pending.append((node, self.eval_expr(node.left)))
            node = node.right

        result = self.eval_expr(node)
        while pending:
            outer, left_val = pending.pop()
            result = _apply(outer, left_val, result)
        assert isinstance(result, Number)
        return result

    def eval_condition(self, cond: Conditional) -> bool:
        left_val = self.eval_expr(cond.left)
        right_val = self.eval_expr(cond.right)
        left = _require_number(left_val, cond.op, cond.position)
        right = _require_number(right_val, cond.op, cond.position)

        if cond.op == ComparisonOp.GT:
            return left > right
        if cond.op == ComparisonOp.GE:
            return left >= right
        if cond.op == ComparisonOp.LT:
            return left < right
        if cond.op == ComparisonOp.LE:
            return left <= right

        raise ExecutionError(f"Unknown comparison op: {cond.op}")

    def eval_arg(self, arg: Arg) -> Value:
        if isinstance(arg, StringLiteral):
            return Text(value=arg.value)
        return self.eval_root(arg)

    def call(self, call: FuncCall) -> Value | None:
        """Evaluate arguments left to right, then invoke the host registry."""
        args = [self.eval_arg(a) for a in call.args]
        self.checkpoint(f"call to {call.name}()", call.position)
        logger.debug("Invoking %s() with %d argument(s)", call.name, len(args))
        try:
            result = self.registry.invoke(call.name, args)
        except InvocationError as e:
            if e.position is None:
                e.position = call.position
            raise
        if result is not None and not is_value(result):
            raise TypeMismatch(
                f"{call.name}() returned {type(result).__name__}, not a value", call.position
            )
        return result


def _apply(expr: BinaryExpr, left_val: Value, right_val: Value) -> Number:
    left = _require_number(left_val, expr.op, expr.position)
    right = _require_number(right_val, expr.op, expr.position)

    if expr.op == ArithmeticOp.ADD:
        result = left + right
    elif expr.op == ArithmeticOp.SUB:
        result = left - right
    elif expr.op == ArithmeticOp.MUL:
        result = left * right
    elif expr.op == ArithmeticOp.DIV:
        if right == 0:
            raise DivisionByZero(expr.position)
        result = left / right
    else:
        raise ExecutionError(f"Unknown arithmetic op: {expr.op}")

    if not math.isfinite(result):
        raise TypeMismatch(f"Result of '{expr.op.value}' is out of numeric range", expr.position)
    return Number(value=result)


def _require_number(
    value: Value, op: ArithmeticOp | ComparisonOp, position: SourcePosition
) -> float:
    if isinstance(value, Number):
        return value.value
    if isinstance(value, (Text, Boolean)):
        raise TypeMismatch(
            f"Operator '{op.value}' requires numbers, got {type_name(value)}", position
        )
    raise ExecutionError(f"Unknown value type: {type(value).__name__}")


def execute(
    program: Block,
    registry: HostFunctionRegistry,
    environment: Environment | None = None,
    *,
    should_cancel: CancelHook | None = None,
    max_loop_iterations: int | None = None,
) -> Environment:
    """Run a parsed program.

    Args:
        program: Root Block from the parser.
        registry: Serves every function call in the program.
        environment: Variables to run against; a fresh one if omitted.
        should_cancel: Consulted before each loop iteration and each
            function call; returning True aborts with CancelledError.
        max_loop_iterations: Total loop iterations allowed before
            aborting with CancelledError.

    Returns:
        The environment after execution.

    Raises:
        ExecutionError: UndefinedVariable, TypeMismatch, InvocationError
            or CancelledError, carrying the failing node's position.
    """
    env = environment if environment is not None else Environment()
    session = _Session(env, registry, should_cancel, max_loop_iterations)
    try:
        session.run_block(program)
    except RecursionError:
        raise ExecutionError(
            "Expression nested too deeply to evaluate", program.position
        ) from None
    return env


def evaluate(
    expr: RootExpr,
    registry: HostFunctionRegistry,
    environment: Environment | None = None,
) -> Value:
    """Evaluate a single root expression against an environment."""
    env = environment if environment is not None else Environment()
    return _Session(env, registry).eval_root(expr)


class Interpreter:
    """
    Reusable entry point binding a registry and session limits.

    Every run gets its own Environment unless one is passed in, so an
    Interpreter per thread (with a thread-safe or private registry) can
    run programs concurrently.
    """

    def __init__(
        self,
        registry: HostFunctionRegistry,
        *,
        should_cancel: CancelHook | None = None,
        settings: EvaluationSettings | None = None,
    ) -> None:
        self.registry = registry
        self.should_cancel = should_cancel
        self.settings = settings if settings is not None else load_settings()

    def execute(self, program: Block, environment: Environment | None = None) -> Environment:
        hook = combine_hooks(self.should_cancel, self.settings.build_cancel_hook())
        return execute(
            program,
            self.registry,
            environment,
            should_cancel=hook,
            max_loop_iterations=self.settings.max_loop_iterations,
        )

    def run(self, source: str, environment: Environment | None = None) -> Environment:
        """Parse and execute ``source``. Nothing runs if parsing fails."""
        return self.execute(parse_program(source), environment)

