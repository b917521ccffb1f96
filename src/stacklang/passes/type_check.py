"""
Type Check Pass

Scope-aware static type annotation. Every expression node gets a Type in the
annotation table; semantic errors are collected, never raised, and UNKNOWN is
the recovery value that keeps one mistake from cascading.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Tuple

from .base import BasePass, CompilationContext
from ..shared.ast_visitor import ScopedASTVisitor
from ..shared.errors import (
    Error, ErrorReporter,
    E_DUPLICATE, E_INVALID_OPERANDS, E_INVALID_UNARY, E_TYPE_MISMATCH, E_UNDECLARED,
    StackLangImplementationError,
)
from ..shared.nodes import (
    ASTNode, Expression, Program, Block, VariableDeclaration, ExpressionStatement,
    EmptyStatement, ReadStatement, WriteStatement, IfStatement, WhileStatement,
    ForStatement, Literal, Identifier, BinaryExpression, UnaryExpression,
    ParenthesizedExpression, AssignmentExpression,
)
from ..shared.scope import ScopeKind, ScopeRedefinitionError
from ..shared.source_location import SourceLocation
from ..shared.types import Type, binary_result_type, unary_result_type

logger = logging.getLogger("stacklang.passes.type_check")
rule_logger = logging.getLogger("stacklang.rules")


class TypeAnnotations:
    """
    Expression node -> Type, keyed by node identity.

    Written once per node by the annotator; read-only for later passes.
    """

    def __init__(self) -> None:
        self._types: Dict[int, Tuple[Expression, Type]] = {}

    def record(self, node: Expression, node_type: Type) -> None:
        key = id(node)
        if key in self._types:
            raise StackLangImplementationError(f"Expression {node.text!r} annotated twice")
        # Keep the node alive so its id cannot be reused while the table exists
        self._types[key] = (node, node_type)

    def get(self, node: Expression) -> Optional[Type]:
        entry = self._types.get(id(node))
        return entry[1] if entry is not None else None

    def type_of(self, node: Expression) -> Type:
        entry = self._types.get(id(node))
        if entry is None:
            raise KeyError(f"No type recorded for expression {node.text!r}")
        return entry[1]

    def __contains__(self, node: Expression) -> bool:
        return id(node) in self._types

    def __len__(self) -> int:
        return len(self._types)


@dataclass
class TypeCheckResult:
    """Outcome of one annotation run."""
    annotations: TypeAnnotations
    errors: FrozenSet[str]
    has_error: bool
    diagnostics: List[Error] = field(default_factory=list)


class TypeAnnotator(ScopedASTVisitor[Type]):
    """
    Type annotator.

    Statements return None, expressions return their Type. All recursion goes
    through visit() so rule tracing sees every node.
    """

    def __init__(self, reporter: Optional[ErrorReporter] = None, trace_rules: bool = False) -> None:
        super().__init__()
        self.reporter = reporter if reporter is not None else ErrorReporter()
        self.trace_rules = trace_rules
        self.annotations = TypeAnnotations()

    def check(self, tree: Program) -> TypeCheckResult:
        self.visit(tree)
        logger.debug(f"Annotated {len(self.annotations)} expressions, {len(self.reporter.messages)} error(s)")
        return TypeCheckResult(
            annotations=self.annotations,
            errors=self.reporter.messages,
            has_error=self.reporter.has_errors(),
            diagnostics=list(self.reporter.errors),
        )

    def visit(self, node: ASTNode):
        if self.trace_rules:
            rule_logger.info(f"{node.kind.value:<12}\t{node.text}")
        return node.accept(self)

    def _error(self, message: str, location: Optional[SourceLocation], code: str, help: Optional[str] = None) -> None:
        self.reporter.report_error(message, location, code=code, help=help)

    def _annotate(self, node: Expression, node_type: Type) -> Type:
        self.annotations.record(node, node_type)
        return node_type

    # =========================================================================
    # STATEMENTS
    # =========================================================================

    def visit_program(self, node: Program) -> None:
        with self.scopes.scope(ScopeKind.PROGRAM):
            for stmt in node.statements:
                self.visit(stmt)

    def visit_block(self, node: Block) -> None:
        with self.scopes.scope(ScopeKind.BLOCK):
            for stmt in node.statements:
                self.visit(stmt)

    def visit_variable_declaration(self, node: VariableDeclaration) -> None:
        for name in node.names:
            try:
                self.scopes.define(name, node.declared_type)
            except ScopeRedefinitionError:
                self._error(
                    f'Variable with the identifier "{name}" has already been declared',
                    node.location, E_DUPLICATE,
                    help="a name can be declared once among the enclosing blocks",
                )

    def visit_expression_statement(self, node: ExpressionStatement) -> None:
        self.visit(node.expr)

    def visit_empty_statement(self, node: EmptyStatement) -> None:
        pass

    def visit_read_statement(self, node: ReadStatement) -> None:
        for name in node.names:
            if self.scopes.lookup(name) is None:
                self._undeclared(name, node.location)

    def visit_write_statement(self, node: WriteStatement) -> None:
        for expr in node.expressions:
            self.visit(expr)

    def visit_if_statement(self, node: IfStatement) -> None:
        self._check_condition(node.condition)
        self.visit(node.then_branch)
        if node.else_branch is not None:
            self.visit(node.else_branch)

    def visit_while_statement(self, node: WhileStatement) -> None:
        self._check_condition(node.condition)
        self.visit(node.body)

    def visit_for_statement(self, node: ForStatement) -> None:
        if self.visit(node.init) is Type.UNKNOWN:
            self._error("The first expression in a for statement must have a type but has type UNKNOWN",
                        node.init.location, E_TYPE_MISMATCH)
        if self.visit(node.condition) is not Type.BOOL:
            self._error("The second expression in a for statement must be of type BOOL",
                        node.condition.location, E_TYPE_MISMATCH)
        if self.visit(node.update) is Type.UNKNOWN:
            self._error("The third expression in a for statement must have a type but has type UNKNOWN",
                        node.update.location, E_TYPE_MISMATCH)
        self.visit(node.body)

    def _check_condition(self, condition: Expression) -> None:
        if self.visit(condition) is not Type.BOOL:
            self._error("Condition must be of type BOOL", condition.location, E_TYPE_MISMATCH)

    def _undeclared(self, name: str, location: Optional[SourceLocation]) -> None:
        self._error(f'Variable "{name}" has not been declared', location, E_UNDECLARED,
                    help=f"declare it first, e.g. `int {name};`")

    # =========================================================================
    # EXPRESSIONS
    # =========================================================================

    def visit_literal(self, node: Literal) -> Type:
        return self._annotate(node, node.literal_type)

    def visit_identifier(self, node: Identifier) -> Type:
        declared = self.scopes.lookup(node.name)
        if declared is None:
            self._undeclared(node.name, node.location)
            return self._annotate(node, Type.UNKNOWN)
        return self._annotate(node, declared)

    def visit_parenthesized_expression(self, node: ParenthesizedExpression) -> Type:
        return self._annotate(node, self.visit(node.inner))

    def visit_unary_expression(self, node: UnaryExpression) -> Type:
        operand = self.visit(node.operand)
        if operand is Type.UNKNOWN:
            return self._annotate(node, Type.UNKNOWN)
        result = unary_result_type(node.operator, operand)
        if result is Type.UNKNOWN:
            self._error(f'Cannot use operator "{node.operator}" with variable of type {operand}',
                        node.location, E_INVALID_UNARY)
        return self._annotate(node, result)

    def visit_binary_expression(self, node: BinaryExpression) -> Type:
        left = self.visit(node.left)
        right = self.visit(node.right)
        if Type.UNKNOWN in (left, right):
            return self._annotate(node, Type.UNKNOWN)
        result = binary_result_type(node.operator, left, right)
        if result is Type.UNKNOWN:
            self._error(f'Cannot use operator "{node.operator}" with variables of type {left} and {right}',
                        node.location, E_INVALID_OPERANDS)
        return self._annotate(node, result)

    def visit_assignment_expression(self, node: AssignmentExpression) -> Type:
        target = self.scopes.lookup(node.target)
        value = self.visit(node.value)
        if target is None:
            self._error(f'Attempt to assign value to an undeclared variable "{node.target}"',
                        node.location, E_UNDECLARED)
            return self._annotate(node, Type.UNKNOWN)
        if value is Type.UNKNOWN:
            return self._annotate(node, Type.UNKNOWN)
        if value is target:
            return self._annotate(node, target)
        if target is Type.FLOAT and value is Type.INT:
            return self._annotate(node, Type.FLOAT)
        self._error(f"Attempt to assign a variable of type {value} to a variable of type {target}",
                    node.location, E_TYPE_MISMATCH)
        return self._annotate(node, value)


class TypeCheckPass(BasePass):
    """
    Type check pass.

    Annotates the tree and reports semantic errors into the context reporter.
    Stores its TypeCheckResult as the pass analysis.
    """
    requires = []

    def run(self, tree: Program, ctx: CompilationContext) -> Program:
        annotator = TypeAnnotator(reporter=ctx.reporter, trace_rules=ctx.trace_rules)
        result = annotator.check(tree)
        ctx.set_analysis(TypeCheckPass, result)
        return tree
