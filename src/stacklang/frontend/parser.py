"""
Parser

Source text to AST: a cached LALR parser over grammar.lark followed by
StackLangTransformer.
"""

from typing import Optional
from pathlib import Path
from lark import Lark
from lark.exceptions import UnexpectedCharacters, UnexpectedEOF, UnexpectedInput, UnexpectedToken, VisitError
import logging

from ..shared.nodes import Program
from ..shared.errors import StackLangSourceError, E_PARSE
from ..shared.source_location import SourceLocation
from .transformers.base import StackLangTransformer
from ..utils.config import DEFAULT_PARSER_CACHE_FILE

logger = logging.getLogger("stacklang.frontend.parser")

GRAMMAR_PATH = Path(__file__).parent / "grammar.lark"


class Parser:
    """
    Parser.

    Takes source code and returns the AST, preserving source locations.
    Lark errors are converted to ParseError carrying the offending position.
    """

    def __init__(self, cache_file: Optional[str] = DEFAULT_PARSER_CACHE_FILE):
        # Use Lark native caching for performance
        self.parser = Lark.open(
            str(GRAMMAR_PATH),
            start='program',
            parser='lalr',              # Required for caching
            lexer='basic',              # Keywords stay reserved in identifier positions
            cache=cache_file or False,
            propagate_positions=True,   # Enable position tracking for error reporting
            maybe_placeholders=False,
        )
        self.transformer = StackLangTransformer()

    def parse(self, source: str, source_file: str = "main.sl") -> Program:
        """Parse source code to AST (a Program node)."""
        # Update transformer filename for source location tracking
        self.transformer.current_file = source_file
        self.transformer.current_source = source
        try:
            tree = self.parser.parse(source)
        except UnexpectedInput as e:
            location = SourceLocation(file=source_file, line=e.line, column=e.column,
                                      start=e.pos_in_stream or 0, end=e.pos_in_stream or 0)
            raise ParseError(_describe(e), source_file, location, source) from e

        try:
            ast = self.transformer.transform(tree)
        except VisitError as e:
            if isinstance(e.orig_exc, StackLangSourceError):
                raise ParseError(e.orig_exc.message, source_file, e.orig_exc.location, source) from e.orig_exc
            raise
        logger.debug(f"Parsed {source_file}: {len(ast.statements)} top-level statements")
        return ast


def _describe(error: UnexpectedInput) -> str:
    if isinstance(error, UnexpectedToken):
        if error.token.type == '$END':
            return "Unexpected end of input"
        expected = ", ".join(sorted(error.expected)) if error.expected else "nothing"
        return f"Unexpected token {str(error.token)!r}, expected one of: {expected}"
    if isinstance(error, UnexpectedCharacters):
        return f"Unexpected character {error.char!r}"
    if isinstance(error, UnexpectedEOF):
        return "Unexpected end of input"
    return f"Parse error: {error}"


class ParseError(StackLangSourceError):
    """Parse error with source location"""
    def __init__(self, message: str, source_file: str,
                 location: Optional[SourceLocation] = None, source_code: Optional[str] = None):
        super().__init__(message, location, error_code=E_PARSE, source_code=source_code)
        self.source_file = source_file
