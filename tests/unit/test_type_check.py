"""
Tests for the type checker: annotations, scope rules and the exact
diagnostic messages.
"""

import logging

import pytest

from stacklang.frontend.parser import Parser
from stacklang.passes.type_check import TypeAnnotations, TypeAnnotator
from stacklang.shared import Expression, Identifier, Literal, Type
from stacklang.shared.errors import StackLangImplementationError


@pytest.fixture(scope="module")
def parser():
    return Parser()


def check(parser, source, trace_rules=False):
    tree = parser.parse(source, "<test>")
    result = TypeAnnotator(trace_rules=trace_rules).check(tree)
    return tree, result


def expr_type(parser, declarations, expression):
    """Type of `expression` evaluated after `declarations`."""
    tree, result = check(parser, f"{declarations} {expression};")
    return result.annotations.type_of(tree.statements[-1].expr), result


class TestWellTyped:
    def test_no_errors(self, parser):
        _, result = check(parser, """
            int i; float f; string s; bool b;
            i = 1; f = 2.5; s = "x"; b = true;
            f = i;
            write i, f, s, b;
            if (i < f) write "lt"; else write "ge";
            while (b) b = false;
            for (i = 0; i < 3; i = i + 1) { int tmp; tmp = i * 2; }
            read i, s;
        """)
        assert not result.has_error
        assert result.errors == frozenset()

    @pytest.mark.parametrize("decls,expr,expected", [
        ("int a, b;", "a + b", Type.INT),
        ("int a; float b;", "a + b", Type.FLOAT),
        ("float a; int b;", "a / b", Type.FLOAT),
        ("int a, b;", "a / b", Type.INT),
        ("int a, b;", "a % b", Type.INT),
        ("int a; float b;", "a < b", Type.BOOL),
        ("int a; float b;", "a == b", Type.BOOL),
        ("string a, b;", "a == b", Type.BOOL),
        ("string a, b;", "a != b", Type.BOOL),
        ("string a, b;", "a . b", Type.STRING),
        ("bool a, b;", "a && b || a", Type.BOOL),
        ("float a;", "-a", Type.FLOAT),
        ("int a;", "-a", Type.INT),
        ("bool a;", "!a", Type.BOOL),
        ("int a;", "(a)", Type.INT),
    ])
    def test_expression_types(self, parser, decls, expr, expected):
        result_type, result = expr_type(parser, decls, expr)
        assert not result.has_error
        assert result_type is expected

    def test_assignment_type_is_target_type(self, parser):
        result_type, result = expr_type(parser, "float f;", "f = 1")
        assert not result.has_error
        assert result_type is Type.FLOAT

    def test_chained_assignment(self, parser):
        result_type, result = expr_type(parser, "int a, b;", "a = b = 3")
        assert not result.has_error
        assert result_type is Type.INT

    def test_every_expression_is_annotated(self, parser):
        tree, result = check(parser, "int a; a = 1 + 2 * a;")
        # assignment, add, literal 1, mul, literal 2, identifier a
        assert len(result.annotations) == 6

    def test_annotation_covers_whole_tree(self, parser):
        tree, result = check(parser, """
            int i; float f; string s;
            for (i = 0; i < 2; i = i + 1) { f = f + i; if (!(f > 1.5)) write s . "x"; }
        """)
        pending = [tree]
        expressions = 0
        while pending:
            node = pending.pop()
            if isinstance(node, Expression):
                expressions += 1
                assert node in result.annotations, node.text
            pending.extend(node.children())
        assert expressions == len(result.annotations)

    def test_annotations_are_keyed_by_identity(self, parser):
        tree, result = check(parser, "write 1, 1;")
        first, second = tree.statements[0].expressions
        assert first is not second
        assert first in result.annotations
        assert second in result.annotations
        assert result.annotations.type_of(first) is Type.INT


class TestScopes:
    def test_duplicate_in_same_scope(self, parser):
        _, result = check(parser, "int x; float x;")
        assert result.errors == {'Variable with the identifier "x" has already been declared'}

    def test_duplicate_in_same_declaration(self, parser):
        _, result = check(parser, "int x, x;")
        assert 'Variable with the identifier "x" has already been declared' in result.errors

    def test_nested_block_cannot_redeclare(self, parser):
        _, result = check(parser, "int x; { int x; }")
        assert result.errors == {'Variable with the identifier "x" has already been declared'}

    def test_sibling_blocks_may_reuse_a_name(self, parser):
        _, result = check(parser, "{ int t; t = 1; } { string t; t = \"a\"; }")
        assert not result.has_error

    def test_name_is_gone_after_block(self, parser):
        _, result = check(parser, "{ int t; } t = 1;")
        assert result.errors == {'Attempt to assign value to an undeclared variable "t"'}

    def test_redeclaration_keeps_first_type(self, parser):
        _, result = check(parser, "int x; float x; x = 2.5;")
        assert result.errors == {
            'Variable with the identifier "x" has already been declared',
            "Attempt to assign a variable of type FLOAT to a variable of type INT",
        }

    def test_inner_declaration_visible_in_nested_blocks(self, parser):
        _, result = check(parser, "{ int a; { a = 2; } }")
        assert not result.has_error


class TestUndeclared:
    def test_identifier(self, parser):
        tree, result = check(parser, "write y;")
        assert result.errors == {'Variable "y" has not been declared'}
        assert result.annotations.type_of(tree.statements[0].expressions[0]) is Type.UNKNOWN

    def test_unknown_does_not_cascade(self, parser):
        _, result = check(parser, "int x; x = y + 1;")
        assert result.errors == {'Variable "y" has not been declared'}

    def test_unknown_operand_of_unary(self, parser):
        _, result = check(parser, "bool b; b = !y;")
        assert result.errors == {'Variable "y" has not been declared'}

    def test_same_message_counts_once(self, parser):
        _, result = check(parser, "y; y;")
        assert result.errors == {'Variable "y" has not been declared'}
        assert len(result.diagnostics) == 2

    def test_read_target(self, parser):
        _, result = check(parser, "int a; read a, b;")
        assert result.errors == {'Variable "b" has not been declared'}

    def test_assignment_target(self, parser):
        tree, result = check(parser, "z = 1;")
        assert result.errors == {'Attempt to assign value to an undeclared variable "z"'}
        assert result.annotations.type_of(tree.statements[0].expr) is Type.UNKNOWN


class TestOperatorErrors:
    def test_invalid_binary_operands(self, parser):
        _, result = check(parser, 'int i; string s; write i + s;')
        assert result.errors == {'Cannot use operator "+" with variables of type INT and STRING'}

    def test_string_compared_with_number(self, parser):
        _, result = check(parser, 'string s; write s == 1;')
        assert result.errors == {'Cannot use operator "==" with variables of type STRING and INT'}

    def test_modulo_needs_ints(self, parser):
        _, result = check(parser, 'float f; write f % 2;')
        assert result.errors == {'Cannot use operator "%" with variables of type FLOAT and INT'}

    def test_concat_needs_strings(self, parser):
        _, result = check(parser, 'string s; write s . 1;')
        assert result.errors == {'Cannot use operator "." with variables of type STRING and INT'}

    def test_logical_needs_bools(self, parser):
        _, result = check(parser, 'bool b; write b && 1;')
        assert result.errors == {'Cannot use operator "&&" with variables of type BOOL and INT'}

    def test_relational_rejects_bools(self, parser):
        _, result = check(parser, 'bool a, b; write a < b;')
        assert result.errors == {'Cannot use operator "<" with variables of type BOOL and BOOL'}

    def test_invalid_result_is_unknown(self, parser):
        _, result = check(parser, 'int i; string s; write (i + s) * 2;')
        assert len(result.errors) == 1

    def test_not_on_int(self, parser):
        _, result = check(parser, "write !1;")
        assert result.errors == {'Cannot use operator "!" with variable of type INT'}

    def test_negate_bool(self, parser):
        _, result = check(parser, "write -true;")
        assert result.errors == {'Cannot use operator "-" with variable of type BOOL'}


class TestAssignments:
    def test_float_into_int(self, parser):
        _, result = check(parser, "int x; x = 2.5;")
        assert result.errors == {"Attempt to assign a variable of type FLOAT to a variable of type INT"}

    def test_string_into_bool(self, parser):
        _, result = check(parser, 'bool b; b = "x";')
        assert result.errors == {"Attempt to assign a variable of type STRING to a variable of type BOOL"}

    def test_int_widens_into_float(self, parser):
        _, result = check(parser, "float f; f = 3;")
        assert not result.has_error

    def test_error_location_is_the_assignment(self, parser):
        _, result = check(parser, "int x;\nx = 2.5;")
        (diagnostic,) = result.diagnostics
        assert diagnostic.location.line == 2
        assert diagnostic.code == "E0308"


class TestConditions:
    def test_if_condition(self, parser):
        _, result = check(parser, "if (1) ;")
        assert result.errors == {"Condition must be of type BOOL"}

    def test_while_condition(self, parser):
        _, result = check(parser, 'while ("x") ;')
        assert result.errors == {"Condition must be of type BOOL"}

    def test_unknown_condition_is_reported(self, parser):
        _, result = check(parser, "if (y) ;")
        assert result.errors == {'Variable "y" has not been declared', "Condition must be of type BOOL"}

    def test_for_expressions(self, parser):
        _, result = check(parser, "for (y; 1; z) ;")
        assert result.errors == {
            'Variable "y" has not been declared',
            "The first expression in a for statement must have a type but has type UNKNOWN",
            "The second expression in a for statement must be of type BOOL",
            'Variable "z" has not been declared',
            "The third expression in a for statement must have a type but has type UNKNOWN",
        }

    def test_for_init_and_update_may_be_any_type(self, parser):
        _, result = check(parser, 'int i; for ("start"; i < 3; i = i + 1) ;')
        assert not result.has_error


class TestRuleTracing:
    def test_trace_logs_every_visited_node(self, parser, caplog):
        with caplog.at_level(logging.INFO, logger="stacklang.rules"):
            check(parser, "int x; x = 1;", trace_rules=True)
        lines = [r.getMessage() for r in caplog.records if r.name == "stacklang.rules"]
        assert lines[0].startswith("program")
        assert any(line.startswith("assignment") and line.endswith("x = 1") for line in lines)
        assert any(line.startswith("literal") and line.endswith("1") for line in lines)

    def test_no_trace_by_default(self, parser, caplog):
        with caplog.at_level(logging.INFO, logger="stacklang.rules"):
            check(parser, "int x; x = 1;")
        assert not [r for r in caplog.records if r.name == "stacklang.rules"]


class TestTypeAnnotations:
    def test_double_record_rejected(self):
        table = TypeAnnotations()
        node = Literal(1, Type.INT, text="1")
        table.record(node, Type.INT)
        with pytest.raises(StackLangImplementationError) as exc_info:
            table.record(node, Type.INT)
        assert "annotated twice" in exc_info.value.message

    def test_missing_node(self):
        table = TypeAnnotations()
        node = Identifier("a", text="a")
        assert table.get(node) is None
        with pytest.raises(KeyError):
            table.type_of(node)
