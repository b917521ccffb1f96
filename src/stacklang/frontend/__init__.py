"""
Frontend: grammar, parser and parse-tree transformers.
"""

from .parser import Parser, ParseError

__all__ = ['Parser', 'ParseError']
