"""
Shared components: syntax tree, types, scopes and errors.
"""

from .source_location import SourceLocation
from .errors import (
    Error, ErrorReporter, StackLangError, StackLangSourceError, StackLangImplementationError,
    ExecutionError, MalformedInstructionError, UnresolvedLabelError, StackUnderflowError,
    ArithmeticFaultError, StepLimitExceededError, InputExhaustedError,
)
from .types import Type, TypeTag, BinaryOp, UnaryOp, binary_result_type, unary_result_type
from .nodes import (
    ASTNode, Expression, Statement, Program, NodeType,
    Block, VariableDeclaration, ExpressionStatement, EmptyStatement,
    ReadStatement, WriteStatement, IfStatement, WhileStatement, ForStatement,
    Literal, Identifier, BinaryExpression, UnaryExpression,
    ParenthesizedExpression, AssignmentExpression,
)
from .scope import Scope, ScopeKind, ScopeStack, ScopeRedefinitionError
from .ast_visitor import ASTVisitor, ScopedASTVisitor
