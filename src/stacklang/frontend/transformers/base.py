"""
StackLang AST Transformer
Converts the Lark parse tree to StackLang AST nodes
"""

from lark import Transformer, v_args
from lark.lexer import Token
from typing import Any, Optional
from typing_extensions import TypeAlias
import logging

from ...shared import (
    SourceLocation, StackLangSourceError, Type,
    Program, Block, Statement, Expression,
    VariableDeclaration, ExpressionStatement, EmptyStatement,
    ReadStatement, WriteStatement, IfStatement, WhileStatement, ForStatement,
    Identifier, Literal, ParenthesizedExpression, AssignmentExpression,
    BinaryExpression, UnaryExpression,
)
from .literals import LiteralParser
from .expressions import ExpressionParser

# Lark Meta object contains location information
LarkMeta: TypeAlias = Any

logger: logging.Logger = logging.getLogger(__name__)


@v_args(inline=True, meta=True)
class StackLangTransformer(Transformer):
    """
    StackLang AST Transformer

    Every grammar rule that survives tree shaping has a callback here; a rule
    without one is reported instead of leaking a raw lark Tree into the AST.
    """

    def __init__(self) -> None:
        super().__init__()
        self.expression_parser: ExpressionParser = ExpressionParser(self._extract_location, self._extract_text)
        self.current_file: str = ""  # Must be set by parser before use
        self.current_source: str = ""

    def __default__(self, data, children, meta):
        raise StackLangSourceError(
            f"Missing transformer method for grammar rule '{data}'",
            self._extract_location(meta),
        )

    def _extract_location(self, meta: LarkMeta) -> SourceLocation:
        """Extract location from Lark meta object"""
        # Fast fail: current_file must be set by parser
        if not self.current_file:
            raise RuntimeError(
                "Parser bug: current_file not set. "
                "Parser must set current_file before transforming."
            )
        if meta is None or getattr(meta, 'empty', True):
            return SourceLocation(file=self.current_file, line=0, column=0)
        return SourceLocation(
            file=self.current_file,
            line=meta.line,
            column=meta.column,
            start=meta.start_pos,
            end=meta.end_pos,
            end_line=meta.end_line,
            end_column=meta.end_column,
        )

    def _extract_text(self, meta: LarkMeta) -> str:
        if meta is None or getattr(meta, 'empty', True):
            return ""
        return self.current_source[meta.start_pos:meta.end_pos]

    def _token_location(self, token: Token) -> SourceLocation:
        return SourceLocation(
            file=self.current_file,
            line=token.line,
            column=token.column,
            start=token.start_pos,
            end=token.end_pos,
            end_line=token.end_line,
            end_column=token.end_column,
        )

    # =========================================================================
    # PROGRAM STRUCTURE
    # =========================================================================

    def program(self, meta: LarkMeta, *statements: Statement) -> Program:
        return Program(statements=list(statements), location=self._extract_location(meta))

    def block(self, meta: LarkMeta, *statements: Statement) -> Block:
        """Grammar: '{' statement* '}' - braces filtered"""
        return Block(statements=list(statements), location=self._extract_location(meta),
                     text=self._extract_text(meta))

    # =========================================================================
    # SIMPLE STATEMENTS
    # =========================================================================

    def empty_stmt(self, meta: LarkMeta) -> EmptyStatement:
        return EmptyStatement(location=self._extract_location(meta), text=self._extract_text(meta))

    def type_name(self, meta: LarkMeta, keyword: Token) -> Type:
        """Grammar: !type_name keeps the keyword token"""
        return Type.from_keyword(str(keyword))

    def var_decl(self, meta: LarkMeta, declared_type: Type, *names: Token) -> VariableDeclaration:
        """Grammar: type_name IDENTIFIER (',' IDENTIFIER)* ';'"""
        return VariableDeclaration(
            declared_type=declared_type,
            names=[str(name) for name in names],
            location=self._extract_location(meta),
            text=self._extract_text(meta),
        )

    def expr_stmt(self, meta: LarkMeta, expr: Expression) -> ExpressionStatement:
        """Grammar: expr ';'"""
        return ExpressionStatement(expr=expr, location=self._extract_location(meta),
                                   text=self._extract_text(meta))

    def read_stmt(self, meta: LarkMeta, *names: Token) -> ReadStatement:
        """Grammar: 'read' IDENTIFIER (',' IDENTIFIER)* ';'"""
        return ReadStatement(
            names=[str(name) for name in names],
            location=self._extract_location(meta),
            text=self._extract_text(meta),
        )

    def write_stmt(self, meta: LarkMeta, *expressions: Expression) -> WriteStatement:
        """Grammar: 'write' expr (',' expr)* ';'"""
        return WriteStatement(
            expressions=list(expressions),
            location=self._extract_location(meta),
            text=self._extract_text(meta),
        )

    # =========================================================================
    # CONTROL FLOW
    # =========================================================================

    def if_stmt(self, meta: LarkMeta, condition: Expression, then_branch: Statement,
                else_branch: Optional[Statement] = None) -> IfStatement:
        """Grammar: 'if' '(' expr ')' statement ('else' statement)?"""
        return IfStatement(
            condition=condition,
            then_branch=then_branch,
            else_branch=else_branch,
            location=self._extract_location(meta),
            text=self._extract_text(meta),
        )

    def while_stmt(self, meta: LarkMeta, condition: Expression, body: Statement) -> WhileStatement:
        return WhileStatement(condition=condition, body=body, location=self._extract_location(meta),
                              text=self._extract_text(meta))

    def for_stmt(self, meta: LarkMeta, init: Expression, condition: Expression,
                 update: Expression, body: Statement) -> ForStatement:
        """Grammar: 'for' '(' expr ';' expr ';' expr ')' statement"""
        return ForStatement(
            init=init,
            condition=condition,
            update=update,
            body=body,
            location=self._extract_location(meta),
            text=self._extract_text(meta),
        )

    # =========================================================================
    # EXPRESSIONS
    # =========================================================================

    def assign_expr(self, meta: LarkMeta, target: Token, value: Expression) -> AssignmentExpression:
        """Grammar: IDENTIFIER '=' assignment (right associative)"""
        return AssignmentExpression(
            target=str(target),
            value=value,
            location=self._extract_location(meta),
            text=self._extract_text(meta),
        )

    def binary_expr(self, meta: LarkMeta, left: Expression, operator: Token, right: Expression) -> BinaryExpression:
        return self.expression_parser.parse_binary(meta, left, operator, right)

    def unary_expr(self, meta: LarkMeta, operator: Token, operand: Expression) -> UnaryExpression:
        return self.expression_parser.parse_unary(meta, operator, operand)

    def paren_expr(self, meta: LarkMeta, inner: Expression) -> ParenthesizedExpression:
        return ParenthesizedExpression(inner=inner, location=self._extract_location(meta),
                                       text=self._extract_text(meta))

    def identifier(self, meta: LarkMeta, name: Token) -> Identifier:
        return Identifier(name=str(name), location=self._token_location(name), text=str(name))

    def literal(self, meta: LarkMeta, token: Token) -> Literal:
        return LiteralParser.parse(token, self._token_location(token))
