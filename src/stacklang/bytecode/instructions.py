"""
Instruction Model

One stack-machine instruction: an opcode and its textual operands. The text
form `<opcode>[ <operand>[ <operand>]]` is the interchange contract between
the code generator and the virtual machine.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from ..shared.errors import MalformedInstructionError
from ..shared.types import TypeTag

_IDENTIFIER_RE = re.compile(r"[a-zA-Z_][a-zA-Z0-9_]*\Z")
_NUMBER_RE = re.compile(r"[0-9]+\Z")


class OperandKind(Enum):
    """Shape of an operand list."""
    NONE = "none"
    TAG = "tag"                   # I | F | S | B
    ARITH_TAG = "arith_tag"       # I | F
    TAG_LITERAL = "tag_literal"   # tag, then the rest of the line
    NAME = "name"                 # variable identifier
    NUMBER = "number"             # label id or value count


class Opcode(Enum):
    """Opcodes and the operand shape each one takes."""
    PUSH = ("push", OperandKind.TAG_LITERAL)
    POP = ("pop", OperandKind.NONE)
    LOAD = ("load", OperandKind.NAME)
    SAVE = ("save", OperandKind.NAME)

    ADD = ("add", OperandKind.ARITH_TAG)
    SUB = ("sub", OperandKind.ARITH_TAG)
    MUL = ("mul", OperandKind.ARITH_TAG)
    DIV = ("div", OperandKind.ARITH_TAG)
    MOD = ("mod", OperandKind.NONE)
    UMINUS = ("uminus", OperandKind.NONE)
    CONCAT = ("concat", OperandKind.NONE)

    AND = ("and", OperandKind.NONE)
    OR = ("or", OperandKind.NONE)
    NOT = ("not", OperandKind.NONE)
    GT = ("gt", OperandKind.NONE)
    LT = ("lt", OperandKind.NONE)
    EQ = ("eq", OperandKind.NONE)

    ITOF = ("itof", OperandKind.NONE)

    LABEL = ("label", OperandKind.NUMBER)
    JMP = ("jmp", OperandKind.NUMBER)
    FJMP = ("fjmp", OperandKind.NUMBER)

    PRINT = ("print", OperandKind.NUMBER)
    READ = ("read", OperandKind.TAG)

    def __init__(self, mnemonic: str, operand_kind: OperandKind):
        self.mnemonic = mnemonic
        self.operand_kind = operand_kind

    def __str__(self) -> str:
        return self.mnemonic

    @classmethod
    def from_mnemonic(cls, mnemonic: str) -> Optional["Opcode"]:
        return _BY_MNEMONIC.get(mnemonic)


_BY_MNEMONIC = {op.mnemonic: op for op in Opcode}

_OPERAND_COUNT = {
    OperandKind.NONE: 0,
    OperandKind.TAG: 1,
    OperandKind.ARITH_TAG: 1,
    OperandKind.TAG_LITERAL: 2,
    OperandKind.NAME: 1,
    OperandKind.NUMBER: 1,
}


@dataclass(frozen=True)
class Instruction:
    """Immutable instruction; operands are kept in their text form."""
    opcode: Opcode
    operands: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "operands", tuple(self.operands))

    def __str__(self) -> str:
        return self.format()

    def format(self) -> str:
        return " ".join((self.opcode.mnemonic,) + self.operands)

    # Typed operand accessors (valid after validate())

    @property
    def tag(self) -> TypeTag:
        return TypeTag(self.operands[0])

    @property
    def literal(self) -> str:
        return self.operands[1]

    @property
    def name(self) -> str:
        return self.operands[0]

    @property
    def number(self) -> int:
        return int(self.operands[0])

    def validate(self, pc: Optional[int] = None) -> "Instruction":
        """Check operand count and shape; returns self so calls can chain."""
        kind = self.opcode.operand_kind
        expected = _OPERAND_COUNT[kind]
        if len(self.operands) != expected:
            raise MalformedInstructionError(
                f"'{self.opcode}' takes {expected} operand(s), got {len(self.operands)}",
                pc, self.format())
        if kind in (OperandKind.TAG, OperandKind.TAG_LITERAL):
            if TypeTag.parse(self.operands[0]) is None:
                raise MalformedInstructionError(f"Unknown type tag {self.operands[0]!r}", pc, self.format())
        elif kind is OperandKind.ARITH_TAG:
            if self.operands[0] not in (TypeTag.INT.value, TypeTag.FLOAT.value):
                raise MalformedInstructionError(
                    f"'{self.opcode}' needs tag I or F, got {self.operands[0]!r}", pc, self.format())
        elif kind is OperandKind.NAME:
            if not _IDENTIFIER_RE.match(self.operands[0]):
                raise MalformedInstructionError(f"Invalid variable name {self.operands[0]!r}", pc, self.format())
        elif kind is OperandKind.NUMBER:
            if not _NUMBER_RE.match(self.operands[0]):
                raise MalformedInstructionError(
                    f"'{self.opcode}' needs a non-negative integer, got {self.operands[0]!r}", pc, self.format())
        return self

    @classmethod
    def parse(cls, text: str, pc: Optional[int] = None) -> "Instruction":
        """Parse one instruction line; raises MalformedInstructionError."""
        head, _, rest = text.partition(" ")
        opcode = Opcode.from_mnemonic(head)
        if opcode is None:
            raise MalformedInstructionError(f"Unknown opcode {head!r}", pc, text)
        if opcode.operand_kind is OperandKind.TAG_LITERAL:
            # The literal is the rest of the line and may contain spaces
            tag, sep, literal = rest.partition(" ")
            operands = (tag, literal) if sep else ((tag,) if tag else ())
        else:
            operands = tuple(rest.split(" ")) if rest else ()
        return cls(opcode, operands).validate(pc)


# Convenience constructors used by the code generator

def push(tag: TypeTag, literal: str) -> Instruction:
    return Instruction(Opcode.PUSH, (tag.value, literal))


def op(opcode: Opcode, *operands: object) -> Instruction:
    return Instruction(opcode, tuple(str(o) for o in operands))
