"""
Compiler driver: source text to instructions.
"""

from .driver import CompilationResult, CompilerDriver

__all__ = ['CompilationResult', 'CompilerDriver']
