"""
Bytecode: instruction model and the textual artifact format.
"""

from .instructions import Instruction, Opcode, OperandKind, push, op
from .serialization import dumps, loads, save_bytecode, load_bytecode

__all__ = [
    'Instruction', 'Opcode', 'OperandKind', 'push', 'op',
    'dumps', 'loads', 'save_bytecode', 'load_bytecode',
]
