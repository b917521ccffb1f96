"""
Expression Parser - Extracted from StackLangTransformer
Handles parsing of binary and unary expressions and operators
"""

from typing import Any, Callable

from typing_extensions import TypeAlias
from lark.lexer import Token

from ...shared import BinaryExpression, UnaryExpression, Expression, BinaryOp, UnaryOp, SourceLocation

# Type aliases for better clarity
LarkMeta: TypeAlias = Any  # Lark's internal Meta object
LocationExtractor: TypeAlias = Callable[[LarkMeta], SourceLocation]
TextExtractor: TypeAlias = Callable[[LarkMeta], str]


class ExpressionParser:
    """Dedicated parser for operator expressions"""

    def __init__(self, location_extractor: LocationExtractor, text_extractor: TextExtractor) -> None:
        self.extract_location = location_extractor
        self.extract_text = text_extractor

    def parse_binary(self, meta: LarkMeta, left: Expression, operator: Token, right: Expression) -> BinaryExpression:
        """Create a binary expression located at its operator"""
        location = self._operator_location(meta, operator)
        # Parser converts token to enum directly
        return BinaryExpression(
            left=left,
            operator=BinaryOp(str(operator)),
            right=right,
            location=location,
            text=self.extract_text(meta),
        )

    def parse_unary(self, meta: LarkMeta, operator: Token, operand: Expression) -> UnaryExpression:
        return UnaryExpression(
            operator=UnaryOp(str(operator)),
            operand=operand,
            location=self.extract_location(meta),
            text=self.extract_text(meta),
        )

    def _operator_location(self, meta: LarkMeta, operator: Token) -> SourceLocation:
        location = self.extract_location(meta)
        # Trust: Lark Token has line/column attributes
        return SourceLocation(
            file=location.file,
            line=operator.line,
            column=operator.column,
            start=location.start,
            end=location.end,
            end_line=operator.end_line or operator.line,
            end_column=operator.end_column or operator.column + len(operator),
        )
