"""
stacklang: a small typed imperative language compiled to stack-machine bytecode.
"""

from .compiler.driver import CompilationResult, CompilerDriver
from .runtime.runtime import ExecutionResult, StackLangRuntime

__version__ = "0.1.0"

__all__ = ['CompilationResult', 'CompilerDriver', 'ExecutionResult', 'StackLangRuntime', '__version__']
