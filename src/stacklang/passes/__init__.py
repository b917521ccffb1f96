"""
Compiler passes: type checking and code generation over the syntax tree.
"""

from .base import BasePass, CompilationContext, PassManager
from .type_check import TypeAnnotations, TypeAnnotator, TypeCheckPass, TypeCheckResult
from .codegen import CodeGenerator, CodeGenPass

__all__ = [
    'BasePass', 'CompilationContext', 'PassManager',
    'TypeAnnotations', 'TypeAnnotator', 'TypeCheckPass', 'TypeCheckResult',
    'CodeGenerator', 'CodeGenPass',
]
