"""
Code Generation Pass

Lowers a type-checked tree into flat stack-machine instructions. Numeric
widening (`itof`) is inserted where INT meets FLOAT, `!=`, `<=` and `>=` are
synthesized from `eq`/`gt`/`lt` plus `not`, and every expression statement
leaves the stack at its pre-statement depth.
"""

import logging
from typing import List

from .base import BasePass, CompilationContext
from .type_check import TypeAnnotations, TypeCheckPass, TypeCheckResult
from ..bytecode.instructions import Instruction, Opcode, op, push
from ..shared.ast_visitor import ScopedASTVisitor
from ..shared.errors import StackLangImplementationError
from ..shared.nodes import (
    Expression, Program, VariableDeclaration, ExpressionStatement,
    EmptyStatement, ReadStatement, WriteStatement, IfStatement, WhileStatement,
    ForStatement, Literal, Identifier, BinaryExpression, UnaryExpression,
    ParenthesizedExpression, AssignmentExpression,
)
from ..shared.types import ARITHMETIC_OPS, BinaryOp, Type, UnaryOp
from ..utils.config import BOOLEAN_FALSE_LITERAL, BOOLEAN_TRUE_LITERAL, STRING_QUOTE_CHAR

logger = logging.getLogger("stacklang.passes.codegen")

# Operators with a native opcode
_BINARY_OPCODES = {
    BinaryOp.ADD: Opcode.ADD,
    BinaryOp.SUB: Opcode.SUB,
    BinaryOp.MUL: Opcode.MUL,
    BinaryOp.DIV: Opcode.DIV,
    BinaryOp.MOD: Opcode.MOD,
    BinaryOp.CONCAT: Opcode.CONCAT,
    BinaryOp.AND: Opcode.AND,
    BinaryOp.OR: Opcode.OR,
    BinaryOp.GT: Opcode.GT,
    BinaryOp.LT: Opcode.LT,
    BinaryOp.EQ: Opcode.EQ,
}

# Operators emitted as the complementary comparison followed by `not`
_NEGATED_OPCODES = {
    BinaryOp.NE: Opcode.EQ,
    BinaryOp.LE: Opcode.GT,
    BinaryOp.GE: Opcode.LT,
}

_ZERO_LITERALS = {
    Type.INT: "0",
    Type.FLOAT: "0.0",
    Type.STRING: STRING_QUOTE_CHAR * 2,
    Type.BOOL: BOOLEAN_FALSE_LITERAL,
}


class CodeGenerator(ScopedASTVisitor[None]):
    """
    Instruction emitter.

    Runs only on trees the type checker accepted and reports nothing; an
    UNKNOWN or missing annotation is an internal error. The label counter
    belongs to the instance, so use one generator per compilation.
    """

    def __init__(self) -> None:
        super().__init__()
        self.code: List[Instruction] = []
        self.annotations: TypeAnnotations = TypeAnnotations()
        self._next_label = 0

    def generate(self, tree: Program, annotations: TypeAnnotations) -> List[Instruction]:
        self.annotations = annotations
        self.code = []
        tree.accept(self)
        logger.debug(f"Generated {len(self.code)} instructions, {self._next_label} labels")
        return self.code

    def emit(self, instruction: Instruction) -> None:
        self.code.append(instruction)

    def _new_label(self) -> int:
        label = self._next_label
        self._next_label += 1
        return label

    def _type_of(self, node: Expression) -> Type:
        node_type = self.annotations.get(node)
        if node_type is None:
            raise StackLangImplementationError(f"Expression {node.text!r} reached codegen without a type")
        if node_type is Type.UNKNOWN:
            raise StackLangImplementationError(f"Expression {node.text!r} reached codegen with type UNKNOWN")
        return node_type

    def _declared_type(self, name: str) -> Type:
        declared = self.scopes.lookup(name)
        if declared is None:
            raise StackLangImplementationError(f"Variable {name!r} reached codegen undeclared")
        return declared

    # =========================================================================
    # STATEMENTS
    # =========================================================================

    def visit_variable_declaration(self, node: VariableDeclaration) -> None:
        for name in node.names:
            self.scopes.define(name, node.declared_type)
            self.emit(push(node.declared_type.tag, _ZERO_LITERALS[node.declared_type]))
            self.emit(op(Opcode.SAVE, name))

    def visit_expression_statement(self, node: ExpressionStatement) -> None:
        node.expr.accept(self)
        self.emit(op(Opcode.POP))

    def visit_empty_statement(self, node: EmptyStatement) -> None:
        pass

    def visit_read_statement(self, node: ReadStatement) -> None:
        for name in node.names:
            self.emit(op(Opcode.READ, self._declared_type(name).tag))
            self.emit(op(Opcode.SAVE, name))

    def visit_write_statement(self, node: WriteStatement) -> None:
        for expr in node.expressions:
            expr.accept(self)
        self.emit(op(Opcode.PRINT, len(node.expressions)))

    def visit_if_statement(self, node: IfStatement) -> None:
        else_label = self._new_label()
        end_label = self._new_label()
        node.condition.accept(self)
        self.emit(op(Opcode.FJMP, else_label))
        node.then_branch.accept(self)
        self.emit(op(Opcode.JMP, end_label))
        self.emit(op(Opcode.LABEL, else_label))
        if node.else_branch is not None:
            node.else_branch.accept(self)
        self.emit(op(Opcode.LABEL, end_label))

    def visit_while_statement(self, node: WhileStatement) -> None:
        start_label = self._new_label()
        end_label = self._new_label()
        self.emit(op(Opcode.LABEL, start_label))
        node.condition.accept(self)
        self.emit(op(Opcode.FJMP, end_label))
        node.body.accept(self)
        self.emit(op(Opcode.JMP, start_label))
        self.emit(op(Opcode.LABEL, end_label))

    def visit_for_statement(self, node: ForStatement) -> None:
        start_label = self._new_label()
        end_label = self._new_label()
        node.init.accept(self)
        self.emit(op(Opcode.POP))
        self.emit(op(Opcode.LABEL, start_label))
        node.condition.accept(self)
        self.emit(op(Opcode.FJMP, end_label))
        node.body.accept(self)
        node.update.accept(self)
        self.emit(op(Opcode.POP))
        self.emit(op(Opcode.JMP, start_label))
        self.emit(op(Opcode.LABEL, end_label))

    # =========================================================================
    # EXPRESSIONS
    # =========================================================================

    def visit_literal(self, node: Literal) -> None:
        literal_type = self._type_of(node)
        if literal_type is Type.STRING:
            text = f"{STRING_QUOTE_CHAR}{node.value}{STRING_QUOTE_CHAR}"
        elif literal_type is Type.BOOL:
            text = BOOLEAN_TRUE_LITERAL if node.value else BOOLEAN_FALSE_LITERAL
        elif literal_type is Type.FLOAT:
            # Keep the source spelling, it always has a decimal point
            text = node.text or repr(float(node.value))
        else:
            text = str(node.value)
        self.emit(push(literal_type.tag, text))

    def visit_identifier(self, node: Identifier) -> None:
        self._type_of(node)
        self.emit(op(Opcode.LOAD, node.name))

    def visit_parenthesized_expression(self, node: ParenthesizedExpression) -> None:
        node.inner.accept(self)

    def visit_unary_expression(self, node: UnaryExpression) -> None:
        self._type_of(node)
        node.operand.accept(self)
        self.emit(op(Opcode.NOT if node.operator is UnaryOp.NOT else Opcode.UMINUS))

    def visit_binary_expression(self, node: BinaryExpression) -> None:
        result = self._type_of(node)
        left = self._type_of(node.left)
        right = self._type_of(node.right)
        widen = {left, right} == {Type.INT, Type.FLOAT}

        node.left.accept(self)
        if widen and left is Type.INT:
            self.emit(op(Opcode.ITOF))
        node.right.accept(self)
        if widen and right is Type.INT:
            self.emit(op(Opcode.ITOF))

        if node.operator in _NEGATED_OPCODES:
            self.emit(op(_NEGATED_OPCODES[node.operator]))
            self.emit(op(Opcode.NOT))
        elif node.operator in ARITHMETIC_OPS:
            self.emit(op(_BINARY_OPCODES[node.operator], result.tag))
        else:
            self.emit(op(_BINARY_OPCODES[node.operator]))

    def visit_assignment_expression(self, node: AssignmentExpression) -> None:
        self._type_of(node)
        target = self._declared_type(node.target)
        node.value.accept(self)
        if target is Type.FLOAT and self._type_of(node.value) is Type.INT:
            self.emit(op(Opcode.ITOF))
        self.emit(op(Opcode.SAVE, node.target))
        self.emit(op(Opcode.LOAD, node.target))


class CodeGenPass(BasePass):
    """
    Code generation pass.

    Needs the type check result; stores the instruction list as its analysis.
    """
    requires = [TypeCheckPass]

    def run(self, tree: Program, ctx: CompilationContext) -> Program:
        check: TypeCheckResult = ctx.get_analysis(TypeCheckPass)
        if check.has_error:
            raise StackLangImplementationError("Code generation requested for a program with type errors")
        instructions = CodeGenerator().generate(tree, check.annotations)
        ctx.set_analysis(CodeGenPass, instructions)
        return tree
