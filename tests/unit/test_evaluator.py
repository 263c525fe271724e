"""Tests for the ocrlang evaluator.

Covers:
- Arithmetic, precedence and right-to-left associativity
- Conditionals, if/else, while
- Host function calls (statement and expression position)
- Strict value kinds: no coercion between numbers, text and booleans
- Runtime errors and their positions
- Cancellation and loop limits
- Session isolation across threads
"""

from __future__ import annotations

import threading

import pytest

from ocrlang import run_source
from ocrlang.core.environment import Environment
from ocrlang.core.errors import (
    CancelledError,
    DivisionByZero,
    ExecutionError,
    InvocationError,
    InvocationErrorKind,
    LexError,
    ParseError,
    TypeMismatch,
    UndefinedVariable,
)
from ocrlang.core.ir.nodes import (
    ArithmeticOp,
    Assign,
    BinaryExpr,
    Block,
    ComparisonOp,
    Conditional,
    NumberLiteral,
)
from ocrlang.core.ir.values import FALSE, TRUE, Boolean, Number, Text
from ocrlang.core.lang.evaluator import Interpreter, evaluate, execute
from ocrlang.core.lang.parser import parse_program
from ocrlang.core.registry import FunctionRegistry
from ocrlang.core.settings import EvaluationSettings

UNBOUNDED = EvaluationSettings()


def _run(source: str, registry: FunctionRegistry | None = None) -> dict:
    interpreter = Interpreter(registry or FunctionRegistry(), settings=UNBOUNDED)
    return interpreter.run(source).snapshot()


class TestArithmetic:
    """Numeric evaluation follows the parse tree."""

    def test_multiplication_binds_tighter(self) -> None:
        assert _run("x = 1 + 2 * 3")["x"] == Number(value=7)

    def test_subtraction_is_right_to_left(self) -> None:
        # 10 - (3 - 2), not (10 - 3) - 2
        assert _run("y = 10 - 3 - 2")["y"] == Number(value=9)

    def test_division_is_right_to_left(self) -> None:
        assert _run("y = 8 / 4 / 2")["y"] == Number(value=4)

    def test_parentheses(self) -> None:
        assert _run("y = (10 - 3) - 2")["y"] == Number(value=5)

    def test_fractional_results(self) -> None:
        assert _run("y = 7 / 2")["y"] == Number(value=3.5)

    def test_negative_results(self) -> None:
        assert _run("y = 2 - 5")["y"] == Number(value=-3)

    def test_variables(self) -> None:
        env = _run("a = 4 b = a * a c = b - a")
        assert env["c"] == Number(value=12)

    def test_reassignment_overwrites(self) -> None:
        env = _run("x = 1 x = x + 10")
        assert env["x"] == Number(value=11)
        assert len(env) == 1


class TestConditionals:
    """Comparisons yield booleans and drive control flow."""

    def test_assign_conditional(self) -> None:
        env = _run("x = 7 b = x > 3")
        assert env["b"] == Boolean(value=True)

    def test_comparison_operators(self) -> None:
        env = _run("a = 2 < 2 b = 2 <= 2 c = 3 > 2 d = 2 >= 3")
        assert [env[k].value for k in "abcd"] == [False, True, True, False]

    def test_if_then_branch(self) -> None:
        env = _run("x = 7 if x > 5 then y = 1 else y = 0 endif")
        assert env["y"] == Number(value=1)

    def test_if_else_branch(self) -> None:
        env = _run("x = 3 if x > 5 then y = 1 else y = 0 endif")
        assert env["y"] == Number(value=0)

    def test_if_without_else_is_noop(self) -> None:
        env = _run("x = 3 if x > 5 then y = 1 endif")
        assert "y" not in env

    def test_while_runs_exactly_three_times(self, registry) -> None:
        env = _run('i = 0 while i < 3 tick(i) i = i + 1 endwhile', _with_tick(registry))
        assert env["i"] == Number(value=3)
        ticks = [args for name, args in registry.calls if name == "tick"]
        assert ticks == [[Number(value=0)], [Number(value=1)], [Number(value=2)]]

    def test_while_false_at_start(self) -> None:
        env = _run("i = 5 while i < 3 i = i + 1 endwhile")
        assert env["i"] == Number(value=5)

    def test_nested_loops(self) -> None:
        source = """
        total = 0
        i = 0
        while i < 3
            j = 0
            while j < 4
                total = total + 1
                j = j + 1
            endwhile
            i = i + 1
        endwhile
        """
        assert _run(source)["total"] == Number(value=12)


class TestFunctionCalls:
    """Calls are dispatched to the host registry."""

    def test_print_receives_text_and_number(self, registry) -> None:
        env = _run('x = 7 print("hello", x)', registry)
        assert registry.calls == [("print", [Text(value="hello"), Number(value=7)])]
        assert registry.printed == ["hello 7"]
        assert env == {"x": Number(value=7)}

    def test_statement_result_is_discarded(self, registry) -> None:
        env = _run("answer()", registry)
        assert env == {}
        assert registry.calls == [("answer", [])]

    def test_call_in_expression(self, registry) -> None:
        env = _run("x = double(3) + 1", registry)
        assert env["x"] == Number(value=7)

    def test_host_scalar_is_converted(self, registry) -> None:
        env = _run("x = answer()", registry)
        assert env["x"] == Number(value=42)

    def test_boolean_argument_is_passed_through(self, registry) -> None:
        _run("print(1 > 0)", registry)
        assert registry.calls == [("print", [Boolean(value=True)])]

    def test_arguments_evaluated_left_to_right(self, registry) -> None:
        order: list[str] = []

        def mark(label: str):
            def fn(args):
                order.append(label)
                return 1

            return fn

        registry.register("a", mark("a"))
        registry.register("b", mark("b"))
        registry.register("c", mark("c"))
        _run("print(a(), b() + c())", registry)
        assert order == ["a", "b", "c"]

    def test_no_value_in_expression_position(self, registry) -> None:
        with pytest.raises(TypeMismatch, match="returned no value"):
            _run('x = print("hi") + 1', registry)

    def test_text_result_can_be_stored_but_not_added(self) -> None:
        reg = FunctionRegistry()
        reg.register("name", lambda args: "Ada", arity=0)
        assert _run("n = name()", reg)["n"] == Text(value="Ada")
        with pytest.raises(TypeMismatch):
            _run("n = name() + 1", reg)

    def test_unknown_function(self, registry) -> None:
        with pytest.raises(InvocationError) as exc_info:
            _run("x = 1\nnope(x)", registry)
        err = exc_info.value
        assert err.kind == InvocationErrorKind.UNKNOWN_FUNCTION
        assert err.function == "nope"
        assert err.position is not None
        assert (err.position.line, err.position.column) == (2, 1)

    def test_arity_mismatch(self, registry) -> None:
        with pytest.raises(InvocationError) as exc_info:
            _run("x = double(1, 2)", registry)
        assert exc_info.value.kind == InvocationErrorKind.ARITY_MISMATCH

    def test_argument_type_mismatch(self, registry) -> None:
        with pytest.raises(InvocationError) as exc_info:
            _run('x = double("two")', registry)
        assert exc_info.value.kind == InvocationErrorKind.TYPE_MISMATCH

    def test_invocation_error_propagates_unchanged(self) -> None:
        original = InvocationError(InvocationErrorKind.TYPE_MISMATCH, "f", "bad input")

        class Failing:
            def invoke(self, name, args):
                raise original

        with pytest.raises(InvocationError) as exc_info:
            execute(parse_program("f()"), Failing())
        assert exc_info.value is original
        assert exc_info.value.position is not None

    def test_custom_registry_object(self) -> None:
        class Echo:
            def invoke(self, name, args):
                return Number(value=len(args))

        env = execute(parse_program("n = anything(1, 2, 3)"), Echo())
        assert env.lookup("n") == Number(value=3)

    def test_registry_returning_non_value(self) -> None:
        class Broken:
            def invoke(self, name, args):
                return [1, 2]

        with pytest.raises(TypeMismatch, match="not a value"):
            execute(parse_program("x = f()"), Broken())


class TestNoCoercion:
    """Values never change kind implicitly."""

    def test_boolean_plus_number(self) -> None:
        with pytest.raises(TypeMismatch, match="boolean"):
            _run("x = 7 b = x > 3 z = b + 1")

    def test_boolean_in_comparison(self) -> None:
        with pytest.raises(TypeMismatch):
            _run("b = 1 < 2 c = b > 0")

    def test_boolean_in_if_header(self) -> None:
        with pytest.raises(TypeMismatch):
            _run("b = 1 < 2 if b > 0 then x = 1 endif")

    def test_text_argument_in_arithmetic_argument(self) -> None:
        reg = FunctionRegistry()
        reg.register("label", lambda args: "x", arity=0)
        reg.register("show", lambda args: None)
        with pytest.raises(TypeMismatch, match="text"):
            _run("show(label() * 2)", reg)

    def test_failed_assignment_leaves_environment_untouched(self) -> None:
        env = Environment()
        with pytest.raises(TypeMismatch):
            execute(parse_program("a = 1 b = a < 2 c = b + 1"), FunctionRegistry(), env)
        assert env.snapshot() == {"a": Number(value=1), "b": Boolean(value=True)}


class TestRuntimeErrors:
    """Runtime errors are terminal and carry positions."""

    def test_division_by_zero(self) -> None:
        with pytest.raises(DivisionByZero) as exc_info:
            _run("z = 5 / 0")
        err = exc_info.value
        assert isinstance(err, TypeMismatch)
        assert err.position is not None
        assert err.position.column == 7

    def test_division_by_computed_zero(self) -> None:
        with pytest.raises(DivisionByZero):
            _run("a = 2 z = 1 / (a - 2)")

    def test_undefined_variable(self) -> None:
        with pytest.raises(UndefinedVariable) as exc_info:
            _run("z = undefinedVar + 1")
        err = exc_info.value
        assert err.name == "undefinedVar"
        assert err.position is not None
        assert err.position.column == 5

    def test_undefined_variable_before_type_check(self) -> None:
        with pytest.raises(UndefinedVariable):
            _run("b = 1 < 2 z = b + missing")

    def test_execution_stops_at_failing_statement(self, registry) -> None:
        env = Environment()
        with pytest.raises(UndefinedVariable):
            execute(parse_program("print(1) x = y print(2)"), registry, env)
        assert [name for name, _ in registry.calls] == ["print"]
        assert "x" not in env

    def test_all_runtime_errors_are_execution_errors(self) -> None:
        for source in ("x = y", "x = 1 / 0", "f()"):
            with pytest.raises(ExecutionError):
                _run(source)


class TestCompileTimeErrors:
    """Nothing runs when lexing or parsing fails."""

    def test_parse_error_runs_nothing(self, registry) -> None:
        with pytest.raises(ParseError):
            _run("print(1) if x then endif", registry)
        assert registry.calls == []

    def test_lex_error_runs_nothing(self, registry) -> None:
        with pytest.raises(LexError):
            _run("print(1) x = @", registry)
        assert registry.calls == []


class TestCancellation:
    """Embeddings can bound runaway programs."""

    def test_hook_cancels_infinite_loop(self) -> None:
        checks = {"n": 0}

        def should_cancel() -> bool:
            checks["n"] += 1
            return checks["n"] > 100

        interpreter = Interpreter(
            FunctionRegistry(), should_cancel=should_cancel, settings=UNBOUNDED
        )
        with pytest.raises(CancelledError):
            interpreter.run("x = 0 while x < 1 endwhile")
        assert checks["n"] == 101

    def test_hook_checked_per_call(self, registry) -> None:
        seen: list[int] = []

        def should_cancel() -> bool:
            seen.append(len(registry.calls))
            return len(registry.calls) >= 2

        interpreter = Interpreter(registry, should_cancel=should_cancel, settings=UNBOUNDED)
        with pytest.raises(CancelledError, match="print"):
            interpreter.run("print(1) print(2) print(3)")
        assert len(registry.calls) == 2

    def test_hook_not_signalling_runs_to_completion(self) -> None:
        env = execute(
            parse_program("i = 0 while i < 50 i = i + 1 endwhile"),
            FunctionRegistry(),
            should_cancel=lambda: False,
        )
        assert env.lookup("i") == Number(value=50)

    def test_loop_iteration_limit(self) -> None:
        interpreter = Interpreter(
            FunctionRegistry(), settings=EvaluationSettings(max_loop_iterations=10)
        )
        with pytest.raises(CancelledError, match="limit of 10"):
            interpreter.run("x = 0 while x < 1 endwhile")

    def test_loop_limit_counts_across_loops(self) -> None:
        interpreter = Interpreter(
            FunctionRegistry(), settings=EvaluationSettings(max_loop_iterations=5)
        )
        env = interpreter.run("i = 0 while i < 5 i = i + 1 endwhile")
        assert env.lookup("i") == Number(value=5)
        with pytest.raises(CancelledError):
            interpreter.run(
                "i = 0 while i < 3 i = i + 1 endwhile j = 0 while j < 3 j = j + 1 endwhile"
            )

    def test_timeout(self) -> None:
        interpreter = Interpreter(
            FunctionRegistry(), settings=EvaluationSettings(timeout_seconds=0.05)
        )
        with pytest.raises(CancelledError):
            interpreter.run("x = 0 while x < 1 endwhile")


class TestSessions:
    """Each run owns its environment."""

    def test_fresh_environment_per_run(self) -> None:
        interpreter = Interpreter(FunctionRegistry(), settings=UNBOUNDED)
        interpreter.run("x = 1")
        with pytest.raises(UndefinedVariable):
            interpreter.run("y = x")

    def test_caller_supplied_environment(self) -> None:
        env = Environment({"x": Number(value=4)})
        execute(parse_program("y = x * 2"), FunctionRegistry(), env)
        assert env.lookup("y") == Number(value=8)

    def test_run_source_default_registry(self) -> None:
        env = run_source("x = 2 * 3", settings=UNBOUNDED)
        assert env.lookup("x") == Number(value=6)

    def test_evaluate_single_expression(self) -> None:
        cond = Conditional(
            op=ComparisonOp.GE, left=NumberLiteral(value=2), right=NumberLiteral(value=2)
        )
        assert evaluate(cond, FunctionRegistry()) == Boolean(value=True)

    def test_concurrent_sessions_are_isolated(self) -> None:
        results: dict[int, Number] = {}
        errors: list[BaseException] = []

        def worker(n: int) -> None:
            try:
                interpreter = Interpreter(FunctionRegistry(), settings=UNBOUNDED)
                env = interpreter.run(
                    f"i = 0 total = 0 while i < {n} total = total + i i = i + 1 endwhile"
                )
                results[n] = env.lookup("total")
            except BaseException as e:  # pragma: no cover - surfaced below
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(1, 9)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert results == {n: Number(value=n * (n - 1) / 2) for n in range(1, 9)}


def _with_tick(registry: FunctionRegistry) -> FunctionRegistry:
    registry.register("tick", lambda args: None, arity=1)
    return registry


class TestEvaluatorLimits:
    """Long chains evaluate; overflow and deep nesting raise language errors."""

    def test_long_subtraction_chain(self) -> None:
        assert _run("x = " + " - ".join(["1"] * 2000))["x"] == Number(value=0)
        assert _run("x = " + " - ".join(["1"] * 2001))["x"] == Number(value=1)

    def test_long_addition_chain(self) -> None:
        assert _run("x = " + " + ".join(["1"] * 2000))["x"] == Number(value=2000)

    def test_long_chain_keeps_right_grouping(self) -> None:
        # 64 / (2 / (2 / 2)) == 64 / 2 == 32
        assert _run("x = 64 / 2 / 2 / 2")["x"] == Number(value=32)

    def test_long_chain_type_error_has_position(self) -> None:
        source = "b = 1 < 2 x = " + " + ".join(["1"] * 1000) + " + b"
        with pytest.raises(TypeMismatch) as exc_info:
            _run(source)
        assert exc_info.value.position is not None

    def test_arithmetic_overflow(self) -> None:
        with pytest.raises(TypeMismatch, match="out of numeric range"):
            _run("x = " + " * ".join(["10"] * 400))

    def test_overflow_from_variables(self) -> None:
        with pytest.raises(TypeMismatch, match="out of numeric range"):
            _run("x = " + "9" * 300 + " y = x * x")

    def test_deeply_nested_tree_is_execution_error(self) -> None:
        expr: BinaryExpr | NumberLiteral = NumberLiteral(value=1)
        for _ in range(5000):
            expr = BinaryExpr(op=ArithmeticOp.ADD, left=expr, right=NumberLiteral(value=1))
        program = Block(statements=[Assign(target="x", value=expr)])
        with pytest.raises(ExecutionError, match="nested too deeply"):
            execute(program, FunctionRegistry())

    def test_conditionals_share_boolean_constants(self) -> None:
        env = _run("a = 1 < 2 b = 2 < 1")
        assert env["a"] is TRUE
        assert env["b"] is FALSE
