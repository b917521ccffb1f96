"""
Literal Parser - Extracted from StackLangTransformer
Handles parsing of all literal tokens (integers, floats, strings, booleans)
"""

from lark.lexer import Token

from ...shared import Literal, SourceLocation, Type, StackLangSourceError
from ...utils.config import STRING_QUOTE_CHAR, BOOLEAN_TRUE_LITERAL, BOOLEAN_FALSE_LITERAL


class LiteralParser:
    """Dedicated parser for literal values, dispatching on the token type"""

    @staticmethod
    def parse(token: Token, location: SourceLocation) -> Literal:
        """Parse literal token into a typed Literal node (text keeps the spelling)"""
        text = str(token)
        if token.type == 'INT_LIT':
            return Literal(value=int(text), literal_type=Type.INT, location=location, text=text)
        if token.type == 'FLOAT_LIT':
            return Literal(value=float(text), literal_type=Type.FLOAT, location=location, text=text)
        if token.type == 'STRING_LIT':
            return Literal(value=LiteralParser._unquote(text), literal_type=Type.STRING, location=location, text=text)
        if token.type in ('TRUE', 'FALSE'):
            value = text == BOOLEAN_TRUE_LITERAL
            if not value and text != BOOLEAN_FALSE_LITERAL:
                raise StackLangSourceError(f"Invalid boolean literal {text!r}", location)
            return Literal(value=value, literal_type=Type.BOOL, location=location, text=text)
        raise StackLangSourceError(f"Unexpected literal token {token.type} {text!r}", location)

    @staticmethod
    def _unquote(quoted: str) -> str:
        if len(quoted) >= 2 and quoted.startswith(STRING_QUOTE_CHAR) and quoted.endswith(STRING_QUOTE_CHAR):
            return quoted[1:-1]
        return quoted
