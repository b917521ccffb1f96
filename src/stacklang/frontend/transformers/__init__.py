"""
StackLang AST Transformers
==========================

Specialized transformers for different AST node types.
"""

from .base import StackLangTransformer
from .literals import LiteralParser
from .expressions import ExpressionParser

__all__ = [
    'StackLangTransformer',
    'LiteralParser',
    'ExpressionParser',
]
