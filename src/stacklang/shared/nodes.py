"""
stacklang AST (Abstract Syntax Tree) Definitions

Typed syntax-tree nodes produced by the frontend and consumed read-only by the
type checker and the code generator.

Visitor Pattern Support:
- All AST nodes have accept() methods for polymorphic dispatch
- Every node exposes its kind (node_type), its children and its source text

Nodes compare and hash by identity (eq=False): the type annotation table is
keyed by node, and two expressions with the same text are different keys.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple, Union, TYPE_CHECKING, TypeVar

from .source_location import SourceLocation
from .types import BinaryOp, Type, UnaryOp

if TYPE_CHECKING:
    from .ast_visitor import ASTVisitor

T = TypeVar('T')


class NodeType(Enum):
    """AST node types"""
    PROGRAM = "program"
    BLOCK = "block"
    VARIABLE_DECL = "var_decl"
    EXPR_STMT = "expr_stmt"
    EMPTY_STMT = "empty_stmt"
    READ_STMT = "read_stmt"
    WRITE_STMT = "write_stmt"
    IF_STMT = "if_stmt"
    WHILE_STMT = "while_stmt"
    FOR_STMT = "for_stmt"
    LITERAL = "literal"
    IDENTIFIER = "identifier"
    BINARY_OP = "binary_op"
    UNARY_OP = "unary_op"
    PAREN_EXPR = "paren_expr"
    ASSIGNMENT = "assignment"


class ASTNode:
    """
    Base class for all AST nodes

    Subclasses must implement accept() to call the matching visit_* method
    and children() to list their direct sub-nodes in source order.
    """
    __slots__ = ('node_type', 'location', 'text')

    def __init__(self, node_type: NodeType, location: Optional[SourceLocation], text: str = ""):
        self.node_type = node_type
        self.location = location
        self.text = text

    @property
    def kind(self) -> NodeType:
        return self.node_type

    def children(self) -> Tuple[ASTNode, ...]:
        return ()

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        raise NotImplementedError(f"accept() not implemented for {self.__class__.__name__}")


class Expression(ASTNode):
    """Base class for expressions"""
    __slots__ = ()


class Statement(ASTNode):
    """Base class for statements"""
    __slots__ = ()


@dataclass(eq=False)
class Program(ASTNode):
    """Program root node"""
    statements: List[Statement]

    def __init__(self, statements: List[Statement], location: SourceLocation = None, text: str = ""):
        super().__init__(NodeType.PROGRAM, location, text)
        self.statements = statements

    def children(self) -> Tuple[ASTNode, ...]:
        return tuple(self.statements)

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_program(self)


@dataclass(eq=False)
class Block(Statement):
    """`{ ... }` - opens a new lexical scope"""
    statements: List[Statement]

    def __init__(self, statements: List[Statement], location: SourceLocation = None, text: str = ""):
        super().__init__(NodeType.BLOCK, location, text)
        self.statements = statements

    def children(self) -> Tuple[ASTNode, ...]:
        return tuple(self.statements)

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_block(self)


@dataclass(eq=False)
class VariableDeclaration(Statement):
    """`int a, b;` - declares one or more variables of one type"""
    declared_type: Type
    names: List[str]

    def __init__(self, declared_type: Type, names: List[str], location: SourceLocation = None, text: str = ""):
        super().__init__(NodeType.VARIABLE_DECL, location, text)
        self.declared_type = declared_type
        self.names = names

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_variable_declaration(self)


@dataclass(eq=False)
class ExpressionStatement(Statement):
    """
    Expression used as a statement (evaluates expression, discards result).

    Examples:
        x = 5;
        a = b = 0;
    """
    expr: Expression

    def __init__(self, expr: Expression, location: SourceLocation = None, text: str = ""):
        super().__init__(NodeType.EXPR_STMT, location or (expr.location if expr else None), text)
        self.expr = expr

    def children(self) -> Tuple[ASTNode, ...]:
        return (self.expr,)

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_expression_statement(self)


@dataclass(eq=False)
class EmptyStatement(Statement):
    """Lone `;`"""

    def __init__(self, location: SourceLocation = None, text: str = ";"):
        super().__init__(NodeType.EMPTY_STMT, location, text)

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_empty_statement(self)


@dataclass(eq=False)
class ReadStatement(Statement):
    """`read a, b;`"""
    names: List[str]

    def __init__(self, names: List[str], location: SourceLocation = None, text: str = ""):
        super().__init__(NodeType.READ_STMT, location, text)
        self.names = names

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_read_statement(self)


@dataclass(eq=False)
class WriteStatement(Statement):
    """`write e1, e2;` - prints all values on one line"""
    expressions: List[Expression]

    def __init__(self, expressions: List[Expression], location: SourceLocation = None, text: str = ""):
        super().__init__(NodeType.WRITE_STMT, location, text)
        self.expressions = expressions

    def children(self) -> Tuple[ASTNode, ...]:
        return tuple(self.expressions)

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_write_statement(self)


@dataclass(eq=False)
class IfStatement(Statement):
    condition: Expression
    then_branch: Statement
    else_branch: Optional[Statement]

    def __init__(self, condition: Expression, then_branch: Statement, else_branch: Optional[Statement] = None,
                 location: SourceLocation = None, text: str = ""):
        super().__init__(NodeType.IF_STMT, location, text)
        self.condition = condition
        self.then_branch = then_branch
        self.else_branch = else_branch

    def children(self) -> Tuple[ASTNode, ...]:
        if self.else_branch is None:
            return (self.condition, self.then_branch)
        return (self.condition, self.then_branch, self.else_branch)

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_if_statement(self)


@dataclass(eq=False)
class WhileStatement(Statement):
    condition: Expression
    body: Statement

    def __init__(self, condition: Expression, body: Statement, location: SourceLocation = None, text: str = ""):
        super().__init__(NodeType.WHILE_STMT, location, text)
        self.condition = condition
        self.body = body

    def children(self) -> Tuple[ASTNode, ...]:
        return (self.condition, self.body)

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_while_statement(self)


@dataclass(eq=False)
class ForStatement(Statement):
    """`for (init; condition; update) body`"""
    init: Expression
    condition: Expression
    update: Expression
    body: Statement

    def __init__(self, init: Expression, condition: Expression, update: Expression, body: Statement,
                 location: SourceLocation = None, text: str = ""):
        super().__init__(NodeType.FOR_STMT, location, text)
        self.init = init
        self.condition = condition
        self.update = update
        self.body = body

    def children(self) -> Tuple[ASTNode, ...]:
        return (self.init, self.condition, self.update, self.body)

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_for_statement(self)


@dataclass(eq=False)
class Literal(Expression):
    """Literal value (number, string, boolean); `text` keeps the spelling"""
    value: Union[int, float, str, bool]
    literal_type: Type

    def __init__(self, value: Union[int, float, str, bool], literal_type: Type,
                 location: SourceLocation = None, text: str = ""):
        super().__init__(NodeType.LITERAL, location, text)
        self.value = value
        self.literal_type = literal_type

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_literal(self)


@dataclass(eq=False)
class Identifier(Expression):
    name: str

    def __init__(self, name: str, location: SourceLocation = None, text: str = ""):
        super().__init__(NodeType.IDENTIFIER, location, text or name)
        self.name = name

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_identifier(self)


@dataclass(eq=False)
class BinaryExpression(Expression):
    left: Expression
    operator: BinaryOp
    right: Expression

    def __init__(self, left: Expression, operator: BinaryOp, right: Expression,
                 location: SourceLocation = None, text: str = ""):
        super().__init__(NodeType.BINARY_OP, location, text)
        self.left = left
        self.operator = operator
        self.right = right

    def children(self) -> Tuple[ASTNode, ...]:
        return (self.left, self.right)

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_binary_expression(self)


@dataclass(eq=False)
class UnaryExpression(Expression):
    operator: UnaryOp
    operand: Expression

    def __init__(self, operator: UnaryOp, operand: Expression, location: SourceLocation = None, text: str = ""):
        super().__init__(NodeType.UNARY_OP, location, text)
        self.operator = operator
        self.operand = operand

    def children(self) -> Tuple[ASTNode, ...]:
        return (self.operand,)

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_unary_expression(self)


@dataclass(eq=False)
class ParenthesizedExpression(Expression):
    inner: Expression

    def __init__(self, inner: Expression, location: SourceLocation = None, text: str = ""):
        super().__init__(NodeType.PAREN_EXPR, location, text)
        self.inner = inner

    def children(self) -> Tuple[ASTNode, ...]:
        return (self.inner,)

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_parenthesized_expression(self)


@dataclass(eq=False)
class AssignmentExpression(Expression):
    """`target = value` - an expression whose value is the stored value"""
    target: str
    value: Expression

    def __init__(self, target: str, value: Expression, location: SourceLocation = None, text: str = ""):
        super().__init__(NodeType.ASSIGNMENT, location, text)
        self.target = target
        self.value = value

    def children(self) -> Tuple[ASTNode, ...]:
        return (self.value,)

    def accept(self, visitor: 'ASTVisitor[T]') -> 'T':
        return visitor.visit_assignment_expression(self)
