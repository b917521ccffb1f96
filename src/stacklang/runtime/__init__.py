"""
Runtime: tagged values, variable store, virtual machine and the execution facade.
"""

from .values import TaggedValue, format_float
from .environment import Cell, VariableStore, VariableStoreError
from .vm import LoadedProgram, VirtualMachine
from .runtime import ExecutionResult, StackLangRuntime

__all__ = [
    'TaggedValue', 'format_float',
    'Cell', 'VariableStore', 'VariableStoreError',
    'LoadedProgram', 'VirtualMachine',
    'ExecutionResult', 'StackLangRuntime',
]
