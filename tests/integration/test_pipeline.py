"""
End-to-end tests: source text through the compiler and the runtime.
"""

import io

import pytest

from stacklang.bytecode.serialization import dumps
from stacklang.runtime.vm import VirtualMachine
from stacklang.shared.errors import ArithmeticFaultError, InputExhaustedError, StepLimitExceededError
from stacklang.shared.types import TypeTag

pytestmark = pytest.mark.integration


class TestScenarios:
    def test_assignment_and_write(self, compile_and_execute):
        outcome = compile_and_execute("int x; x = 3; write x;")
        assert outcome.success
        assert outcome.output == "3\n"

    def test_int_variable_widened_into_float_variable(self, compile_and_execute):
        outcome = compile_and_execute("int x; float y; x = 2; y = x;")
        assert outcome.success
        assert outcome.errors == frozenset()
        assert outcome.variables["y"].tag is TypeTag.FLOAT
        assert outcome.rendered("y") == "2.0"
        assert outcome.rendered("x") == "2"

    def test_if_else_on_bool_variable(self, compile_and_execute):
        outcome = compile_and_execute('bool b; b = true; if (b) { write "yes"; } else { write "no"; }')
        assert outcome.success
        assert outcome.lines == ["yes"]

    def test_while_loop(self, compile_and_execute):
        outcome = compile_and_execute("int i; i = 0; while (i < 3) { write i; i = i + 1; }")
        assert outcome.success
        assert outcome.lines == ["0", "1", "2"]
        assert outcome.rendered("i") == "3"

    def test_widening_into_float_variable(self, compile_and_execute):
        outcome = compile_and_execute("float y; y = 1 + 1;")
        assert outcome.success
        assert outcome.rendered("y") == "2.0"

    def test_if_else(self, compile_and_execute):
        outcome = compile_and_execute('int a; a = 5; if (a > 2) write "yes"; else write "no";')
        assert outcome.lines == ["yes"]

    def test_for_loop(self, compile_and_execute):
        outcome = compile_and_execute("int i; for (i = 0; i < 3; i = i + 1) write i;")
        assert outcome.lines == ["0", "1", "2"]

    def test_concatenation(self, compile_and_execute):
        outcome = compile_and_execute('string s; s = "a" . "b"; write s;')
        assert outcome.output == "ab\n"

    def test_rejected_program_produces_no_instructions(self, compile_and_execute):
        outcome = compile_and_execute("int x; x = 2.5;")
        assert not outcome.compiled
        assert outcome.instructions == []
        assert outcome.errors == {"Attempt to assign a variable of type FLOAT to a variable of type INT"}


class TestLanguage:
    def test_while_with_nested_blocks(self, compile_and_execute):
        outcome = compile_and_execute("""
            int i, total;
            while (i < 5) {
                if (i % 2 == 0) { total = total + i; }
                i = i + 1;
            }
            write total;
        """)
        assert outcome.lines == ["6"]

    def test_dangling_else(self, compile_and_execute):
        outcome = compile_and_execute("""
            bool a, b;
            a = true; b = false;
            if (a) if (b) write "inner"; else write "else-of-inner";
        """)
        assert outcome.lines == ["else-of-inner"]

    def test_else_if_chain(self, compile_and_execute):
        source = """
            int n; read n;
            if (n < 0) write "negative";
            else if (n == 0) write "zero";
            else write "positive";
        """
        assert compile_and_execute(source, stdin="-4\n").lines[-1] == "negative"
        assert compile_and_execute(source, stdin="0\n").lines[-1] == "zero"
        assert compile_and_execute(source, stdin="9\n").lines[-1] == "positive"

    def test_mixed_arithmetic(self, compile_and_execute):
        outcome = compile_and_execute("float f; f = 7 / 2 + 0.5; write f, \" \", 7 / 2.0;")
        assert outcome.lines == ["3.5 3.5"]

    def test_integer_division_truncates(self, compile_and_execute):
        outcome = compile_and_execute('write -7 / 2, " ", -7 % 2, " ", 7 % -2;')
        assert outcome.lines == ["-3 -1 1"]

    def test_comparisons_and_logic(self, compile_and_execute):
        outcome = compile_and_execute("""
            write 1 <= 1, " ", 2 >= 3, " ", 1 != 1.0, " ", !(1 < 2) || true;
        """)
        assert outcome.lines == ["true false false true"]

    def test_string_equality(self, compile_and_execute):
        outcome = compile_and_execute('string a; a = "x"; write a == "x", a != "x";')
        assert outcome.lines == ["truefalse"]

    def test_chained_assignment_value(self, compile_and_execute):
        outcome = compile_and_execute("int a, b; write a = b = 4; write a + b;")
        assert outcome.lines == ["4", "8"]

    def test_sibling_blocks_reuse_names(self, compile_and_execute):
        outcome = compile_and_execute('{ int t; t = 1; write t; } { string t; t = "s"; write t; }')
        assert outcome.lines == ["1", "s"]

    def test_sibling_blocks_reuse_names_with_other_types(self, compile_and_execute):
        outcome = compile_and_execute("{ int x; x = 1; write x; } { float x; x = 2.5; write x; }")
        assert outcome.success
        assert outcome.lines == ["1", "2.5"]
        assert outcome.rendered("x") == "2.5"

    def test_sibling_blocks_string_then_bool(self, compile_and_execute):
        outcome = compile_and_execute('{ string s; s = "a"; write s; } { bool s; s = true; write s; }')
        assert outcome.success
        assert outcome.lines == ["a", "true"]

    def test_float_overflow_renders_non_finite(self, compile_and_execute):
        outcome = compile_and_execute("""
            float big, f;
            big = 100000000000000000000.0;
            f = big * big;
            write f; write -f; write f - f;
        """)
        assert outcome.success
        assert outcome.lines == ["inf", "-inf", "nan"]

    def test_default_values(self, compile_and_execute):
        outcome = compile_and_execute('int i; float f; string s; bool b; write i, "|", f, "|", s, "|", b;')
        assert outcome.lines == ["0|0.0||false"]


class TestInput:
    def test_read_values(self, compile_and_execute):
        outcome = compile_and_execute(
            "int a; float f; string s; bool b; read a, f, s, b; write a, \",\", f, \",\", s, \",\", b;",
            stdin="12\n2.5\nhello there\nTrue\n",
        )
        assert outcome.success
        assert outcome.lines == [
            "Provide a value of type INT",
            "Provide a value of type FLOAT",
            "Provide a value of type STRING",
            "Provide a value of type BOOL",
            "12,2.5,hello there,true",
        ]

    def test_invalid_input_is_retried(self, compile_and_execute):
        outcome = compile_and_execute("int a; read a; write a * 2;", stdin="ten\n10\n")
        assert outcome.lines == ["Provide a value of type INT", "Provided wrong value!!!", "20"]

    def test_missing_input_is_a_runtime_error(self, compile_and_execute):
        outcome = compile_and_execute("int a; read a;", stdin="")
        assert outcome.compiled
        assert isinstance(outcome.error, InputExhaustedError)


class TestRuntimeErrors:
    def test_division_by_zero_keeps_partial_output(self, compile_and_execute):
        outcome = compile_and_execute("int z; write 1; write 1 / z; write 2;")
        assert outcome.compiled
        assert isinstance(outcome.error, ArithmeticFaultError)
        assert outcome.lines == ["1"]
        assert outcome.rendered("z") == "0"

    def test_infinite_loop_hits_step_limit(self, compile_and_execute):
        outcome = compile_and_execute("while (true) ;")
        assert isinstance(outcome.error, StepLimitExceededError)


class TestInvariants:
    @pytest.mark.parametrize("source", [
        "int a, b; a = b = 1; a + b; (a); -a;",
        "int i; for (i = 0; i < 4; i = i + 1) { i * 2; }",
        "bool b; while (b) b; if (!b) b = true; else ;",
        'string s; s = s . "x"; s == "x";',
    ])
    def test_stack_is_empty_after_run(self, compiler, source):
        result = compiler.compile(source, "<test>")
        assert result.success
        vm = VirtualMachine(stdin=io.StringIO(), stdout=io.StringIO(), max_steps=10_000)
        vm.run(result.instructions)
        assert vm.stack == []

    def test_runs_are_deterministic(self, compiler, runtime):
        source = "int i; float f; for (i = 1; i <= 5; i = i + 1) { f = f + 1.0 / i; write f; }"
        first = compiler.compile(source, "<test>")
        second = compiler.compile(source, "<test>")
        assert dumps(first.instructions) == dumps(second.instructions)
        run_a = runtime.execute(first.instructions, stdin=io.StringIO())
        run_b = runtime.execute(second.instructions, stdin=io.StringIO())
        assert run_a.output == run_b.output
        assert run_a.variables == run_b.variables

    def test_artifact_text_runs_the_same(self, compiler, runtime):
        result = compiler.compile('string s; s = "a b"; write s . "!", 1.5;', "<test>")
        direct = runtime.execute(result.instructions, stdin=io.StringIO())
        from_text = runtime.execute(dumps(result.instructions), stdin=io.StringIO())
        assert direct.output == from_text.output == "a b!1.5\n"

    def test_runtime_forwards_output(self, compiler, runtime):
        result = compiler.compile("write 1; write 2;", "<test>")
        sink = io.StringIO()
        execution = runtime.execute(result.instructions, stdin=io.StringIO(), stdout=sink)
        assert sink.getvalue() == execution.output == "1\n2\n"
        assert execution.steps == len(result.instructions)

    def test_malformed_artifact_text(self, runtime):
        execution = runtime.execute("push I 1\nteleport\n")
        assert not execution.success
        assert "teleport" in execution.get_errors()[0]
