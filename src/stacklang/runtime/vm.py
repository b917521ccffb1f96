"""
Virtual Machine

Interprets an instruction sequence with a tagged-value operand stack and a
flat variable store. A pre-pass validates every instruction, decodes push
literals and resolves labels, so execution never re-parses text and every
jump is a dictionary lookup.
"""

import logging
import sys
from typing import Callable, Dict, List, Optional, Sequence, TextIO, Type as PyType

import numpy as np

from ..bytecode.instructions import Instruction, Opcode
from ..shared.errors import (
    ArithmeticFaultError, ExecutionError, InputExhaustedError, MalformedInstructionError,
    StackUnderflowError, StepLimitExceededError, UnresolvedLabelError,
)
from ..shared.types import Type, TypeTag
from ..utils.config import max_steps_from_env, read_attempts_from_env
from .environment import VariableStore, VariableStoreError
from .values import TaggedValue

logger = logging.getLogger("stacklang.runtime.vm")

READ_PROMPT = "Provide a value of type {type_name}"
READ_RETRY = "Provided wrong value!!!"

_NUMERIC_TAGS = (TypeTag.INT, TypeTag.FLOAT)


def _trunc_div(a: int, b: int) -> int:
    """Integer division rounding toward zero."""
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b > 0) else -q


class LoadedProgram:
    """Validated instructions with their label map and decoded push constants."""

    def __init__(self, instructions: Sequence[Instruction]):
        self.instructions: List[Instruction] = list(instructions)
        self.labels: Dict[int, int] = {}
        self.constants: Dict[int, TaggedValue] = {}
        self._prepare()

    def __len__(self) -> int:
        return len(self.instructions)

    def _prepare(self) -> None:
        jumps = []
        for pc, instr in enumerate(self.instructions):
            instr.validate(pc)
            if instr.opcode is Opcode.LABEL:
                if instr.number in self.labels:
                    raise MalformedInstructionError(
                        f"Label {instr.number} is defined more than once", pc, instr.format())
                self.labels[instr.number] = pc
            elif instr.opcode in (Opcode.JMP, Opcode.FJMP):
                jumps.append((pc, instr))
            elif instr.opcode is Opcode.PUSH:
                value = TaggedValue.from_literal(instr.tag, instr.literal)
                if value is None:
                    raise MalformedInstructionError(
                        f"Literal {instr.literal!r} is not a valid {instr.tag} value", pc, instr.format())
                self.constants[pc] = value
        for pc, instr in jumps:
            if instr.number not in self.labels:
                raise UnresolvedLabelError(f"No label {instr.number}", pc, instr.format())


class VirtualMachine:
    """
    Stack virtual machine.

    One instance runs one program: the operand stack and variable store are
    created fresh and are inspectable after run() returns or raises.
    """

    def __init__(
        self,
        stdin: Optional[TextIO] = None,
        stdout: Optional[TextIO] = None,
        max_steps: Optional[int] = None,
        read_attempts: Optional[int] = None,
    ):
        self.stdin = stdin if stdin is not None else sys.stdin
        self.stdout = stdout if stdout is not None else sys.stdout
        # 0 disables the guard
        self.max_steps = max_steps if max_steps is not None else max_steps_from_env()
        self.read_attempts = read_attempts if read_attempts is not None else read_attempts_from_env()

        self.stack: List[TaggedValue] = []
        self.variables = VariableStore()
        self.pc = 0
        self.steps = 0
        self._next_pc = 0
        self._program: Optional[LoadedProgram] = None
        self._current: Optional[Instruction] = None

        self._handlers: Dict[Opcode, Callable[[Instruction], None]] = {
            Opcode.PUSH: self._push,
            Opcode.POP: self._pop_instr,
            Opcode.LOAD: self._load,
            Opcode.SAVE: self._save,
            Opcode.ADD: self._arithmetic,
            Opcode.SUB: self._arithmetic,
            Opcode.MUL: self._arithmetic,
            Opcode.DIV: self._arithmetic,
            Opcode.MOD: self._mod,
            Opcode.UMINUS: self._uminus,
            Opcode.CONCAT: self._concat,
            Opcode.AND: self._logical,
            Opcode.OR: self._logical,
            Opcode.NOT: self._not,
            Opcode.GT: self._compare,
            Opcode.LT: self._compare,
            Opcode.EQ: self._eq,
            Opcode.ITOF: self._itof,
            Opcode.LABEL: self._label,
            Opcode.JMP: self._jmp,
            Opcode.FJMP: self._fjmp,
            Opcode.PRINT: self._print,
            Opcode.READ: self._read,
        }

    def load(self, instructions: Sequence[Instruction]) -> LoadedProgram:
        """Validate and index a program without running it."""
        return LoadedProgram(instructions)

    def run(self, instructions: Sequence[Instruction]) -> VariableStore:
        program = instructions if isinstance(instructions, LoadedProgram) else self.load(instructions)
        self._program = program
        code = program.instructions
        logger.debug(f"Running {len(code)} instructions ({len(program.labels)} labels)")

        self.pc = 0
        while self.pc < len(code):
            if self.max_steps and self.steps >= self.max_steps:
                raise StepLimitExceededError(
                    f"Program did not finish within {self.max_steps} steps", self.pc, code[self.pc].format())
            instr = code[self.pc]
            self._current = instr
            self._next_pc = self.pc + 1
            self._handlers[instr.opcode](instr)
            self.steps += 1
            self.pc = self._next_pc

        logger.debug(f"Finished after {self.steps} steps, stack depth {len(self.stack)}")
        return self.variables

    # =========================================================================
    # Helpers
    # =========================================================================

    def _fault(self, error_class: PyType[ExecutionError], message: str) -> ExecutionError:
        text = self._current.format() if self._current is not None else None
        return error_class(message, self.pc, text)

    def _pop(self, *tags: TypeTag) -> TaggedValue:
        """Pop one value, optionally requiring one of the given tags."""
        if not self.stack:
            raise self._fault(StackUnderflowError, "Operand stack is empty")
        value = self.stack.pop()
        if tags and value.tag not in tags:
            expected = "/".join(t.value for t in tags)
            raise self._fault(MalformedInstructionError, f"Expected a {expected} operand, got {value}")
        return value

    def _pop_pair(self, *tags: TypeTag):
        """Pop right then left operand; returns (left, right)."""
        right = self._pop(*tags)
        left = self._pop(*tags)
        return left, right

    # =========================================================================
    # Stack and variables
    # =========================================================================

    def _push(self, instr: Instruction) -> None:
        self.stack.append(self._program.constants[self.pc])

    def _pop_instr(self, instr: Instruction) -> None:
        self._pop()

    def _load(self, instr: Instruction) -> None:
        try:
            self.stack.append(self.variables.load(instr.name))
        except VariableStoreError as e:
            raise self._fault(MalformedInstructionError, str(e)) from e

    def _save(self, instr: Instruction) -> None:
        self.variables.store(instr.name, self._pop())

    # =========================================================================
    # Arithmetic
    # =========================================================================

    def _arithmetic(self, instr: Instruction) -> None:
        tag = instr.tag
        left, right = self._pop_pair(tag)
        a, b = left.payload, right.payload
        opcode = instr.opcode
        if opcode is Opcode.DIV and b == 0:
            raise self._fault(ArithmeticFaultError, "Division by zero")
        if tag is TypeTag.INT:
            if opcode is Opcode.ADD:
                result = a + b
            elif opcode is Opcode.SUB:
                result = a - b
            elif opcode is Opcode.MUL:
                result = a * b
            else:
                result = _trunc_div(a, b)
            self.stack.append(TaggedValue.of_int(result))
            return
        with np.errstate(over='ignore', invalid='ignore'):
            if opcode is Opcode.ADD:
                result = a + b
            elif opcode is Opcode.SUB:
                result = a - b
            elif opcode is Opcode.MUL:
                result = a * b
            else:
                result = a / b
        self.stack.append(TaggedValue.of_float(result))

    def _mod(self, instr: Instruction) -> None:
        left, right = self._pop_pair(TypeTag.INT)
        if right.payload == 0:
            raise self._fault(ArithmeticFaultError, "Modulo by zero")
        a, b = left.payload, right.payload
        self.stack.append(TaggedValue.of_int(a - b * _trunc_div(a, b)))

    def _uminus(self, instr: Instruction) -> None:
        value = self._pop(*_NUMERIC_TAGS)
        if value.tag is TypeTag.INT:
            self.stack.append(TaggedValue.of_int(-value.payload))
        else:
            self.stack.append(TaggedValue.of_float(-value.payload))

    def _itof(self, instr: Instruction) -> None:
        value = self._pop(TypeTag.INT)
        self.stack.append(TaggedValue.of_float(value.payload))

    def _concat(self, instr: Instruction) -> None:
        left, right = self._pop_pair(TypeTag.STRING)
        self.stack.append(TaggedValue.of_string(left.payload + right.payload))

    # =========================================================================
    # Logic and comparison
    # =========================================================================

    def _logical(self, instr: Instruction) -> None:
        left, right = self._pop_pair(TypeTag.BOOL)
        if instr.opcode is Opcode.AND:
            self.stack.append(TaggedValue.of_bool(left.payload and right.payload))
        else:
            self.stack.append(TaggedValue.of_bool(left.payload or right.payload))

    def _not(self, instr: Instruction) -> None:
        value = self._pop(TypeTag.BOOL)
        self.stack.append(TaggedValue.of_bool(not value.payload))

    def _compare(self, instr: Instruction) -> None:
        left, right = self._pop_pair(*_NUMERIC_TAGS)
        if instr.opcode is Opcode.GT:
            result = left.payload > right.payload
        else:
            result = left.payload < right.payload
        self.stack.append(TaggedValue.of_bool(result))

    def _eq(self, instr: Instruction) -> None:
        right = self._pop()
        left = self._pop()
        numeric = left.tag in _NUMERIC_TAGS and right.tag in _NUMERIC_TAGS
        if not numeric and left.tag is not right.tag:
            raise self._fault(MalformedInstructionError, f"Cannot compare {left} with {right}")
        self.stack.append(TaggedValue.of_bool(left.payload == right.payload))

    # =========================================================================
    # Control flow
    # =========================================================================

    def _label(self, instr: Instruction) -> None:
        pass

    def _jmp(self, instr: Instruction) -> None:
        self._next_pc = self._program.labels[instr.number]

    def _fjmp(self, instr: Instruction) -> None:
        if not self._pop(TypeTag.BOOL).payload:
            self._next_pc = self._program.labels[instr.number]

    # =========================================================================
    # I/O
    # =========================================================================

    def _print(self, instr: Instruction) -> None:
        count = instr.number
        if count > len(self.stack):
            raise self._fault(StackUnderflowError, f"print {count} with only {len(self.stack)} value(s) on the stack")
        values = self.stack[len(self.stack) - count:]
        del self.stack[len(self.stack) - count:]
        self.stdout.write("".join(v.render() for v in values) + "\n")

    def _read(self, instr: Instruction) -> None:
        tag = instr.tag
        type_name = str(Type.from_tag(tag))
        self.stdout.write(READ_PROMPT.format(type_name=type_name) + "\n")
        attempts = 0
        while True:
            line = self.stdin.readline()
            if not line:
                raise self._fault(InputExhaustedError, f"End of input while reading a value of type {type_name}")
            value = TaggedValue.parse_input(tag, line.rstrip("\r\n"))
            if value is not None:
                self.stack.append(value)
                return
            attempts += 1
            # 0 or less means unbounded retries
            if 0 < self.read_attempts <= attempts:
                raise self._fault(InputExhaustedError,
                                  f"No valid {type_name} value after {attempts} attempt(s)")
            self.stdout.write(READ_RETRY + "\n")
