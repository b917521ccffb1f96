"""
AST Visitor Pattern and Scope Management

This module provides:
1. ASTVisitor (abstract visitor with default traversal)
2. ScopedASTVisitor (visitor + compile-time scope stack)

Design:
- Abstract base class with visit_* methods for each AST node type
- Leaf nodes (Literal, Identifier) must be implemented by every visitor
- Scope is TEMPORARY (only during one pass), results live in side tables
"""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar, TYPE_CHECKING

from .scope import ScopeKind, ScopeStack

if TYPE_CHECKING:
    from .nodes import (
        Program, Block, VariableDeclaration, ExpressionStatement, EmptyStatement,
        ReadStatement, WriteStatement, IfStatement, WhileStatement, ForStatement,
        Literal, Identifier, BinaryExpression, UnaryExpression,
        ParenthesizedExpression, AssignmentExpression,
    )

T = TypeVar('T')


class ASTVisitor(ABC, Generic[T]):
    """
    Base AST visitor with default traversal for all nodes.

    Leaf nodes that MUST be implemented:
    - visit_literal, visit_identifier

    All other nodes have default traversal. Override to add custom behavior.

    Usage:
        class MyAnalyzer(ASTVisitor[Result]):
            def visit_binary_expression(self, node) -> Result:
                left = node.left.accept(self)
                right = node.right.accept(self)
                return combine(left, right)

            def visit_literal(self, node) -> Result:
                return Result(node.value)

            def visit_identifier(self, node) -> Result:
                return self.lookup(node.name)
    """

    @abstractmethod
    def visit_literal(self, node: 'Literal') -> T:
        raise NotImplementedError(f"{self.__class__.__name__} must implement visit_literal()")

    @abstractmethod
    def visit_identifier(self, node: 'Identifier') -> T:
        raise NotImplementedError(f"{self.__class__.__name__} must implement visit_identifier()")

    # Expressions with children
    def visit_binary_expression(self, node: 'BinaryExpression') -> T:
        node.left.accept(self)
        node.right.accept(self)

    def visit_unary_expression(self, node: 'UnaryExpression') -> T:
        node.operand.accept(self)

    def visit_parenthesized_expression(self, node: 'ParenthesizedExpression') -> T:
        return node.inner.accept(self)

    def visit_assignment_expression(self, node: 'AssignmentExpression') -> T:
        node.value.accept(self)

    # Statements
    def visit_program(self, node: 'Program') -> T:
        for stmt in node.statements:
            stmt.accept(self)

    def visit_block(self, node: 'Block') -> T:
        for stmt in node.statements:
            stmt.accept(self)

    def visit_variable_declaration(self, node: 'VariableDeclaration') -> T:
        pass

    def visit_expression_statement(self, node: 'ExpressionStatement') -> T:
        node.expr.accept(self)

    def visit_empty_statement(self, node: 'EmptyStatement') -> T:
        pass

    def visit_read_statement(self, node: 'ReadStatement') -> T:
        pass

    def visit_write_statement(self, node: 'WriteStatement') -> T:
        for expr in node.expressions:
            expr.accept(self)

    def visit_if_statement(self, node: 'IfStatement') -> T:
        node.condition.accept(self)
        node.then_branch.accept(self)
        if node.else_branch is not None:
            node.else_branch.accept(self)

    def visit_while_statement(self, node: 'WhileStatement') -> T:
        node.condition.accept(self)
        node.body.accept(self)

    def visit_for_statement(self, node: 'ForStatement') -> T:
        node.init.accept(self)
        node.condition.accept(self)
        node.update.accept(self)
        node.body.accept(self)


class ScopedASTVisitor(ASTVisitor[T]):
    """
    Visitor that opens a scope for the program and for every block.

    Subclasses declare and resolve names through self.scopes; the stack is
    pushed and popped around the default program/block traversal.
    """

    def __init__(self) -> None:
        self.scopes = ScopeStack()

    def visit_program(self, node: 'Program') -> T:
        with self.scopes.scope(ScopeKind.PROGRAM):
            for stmt in node.statements:
                stmt.accept(self)

    def visit_block(self, node: 'Block') -> T:
        with self.scopes.scope(ScopeKind.BLOCK):
            for stmt in node.statements:
                stmt.accept(self)
