"""
Test utilities for the stacklang test suite.

Provides the compile-then-execute helper and small assertions on
instruction listings.
"""

import io
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
from stacklang.bytecode.instructions import Instruction
from stacklang.compiler.driver import CompilationResult, CompilerDriver
from stacklang.runtime.runtime import StackLangRuntime
from stacklang.runtime.values import TaggedValue


@dataclass
class RunOutcome:
    """Unified compile + execute result for tests."""
    compiled: bool
    errors: FrozenSet[str] = frozenset()
    output: str = ""
    variables: Dict[str, TaggedValue] = field(default_factory=dict)
    error: Optional[Exception] = None
    instructions: List[Instruction] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.compiled and self.error is None

    @property
    def lines(self) -> List[str]:
        return self.output.splitlines()

    def rendered(self, name: str) -> str:
        """Variable value as `print` would render it."""
        return self.variables[name].render()


def compile_source(source: str, compiler: Optional[CompilerDriver] = None,
                   source_file: str = "<test>") -> CompilationResult:
    compiler = compiler if compiler is not None else CompilerDriver()
    return compiler.compile(source, source_file)


def compile_and_execute(source: str, compiler: Optional[CompilerDriver] = None,
                        runtime: Optional[StackLangRuntime] = None, stdin: str = "",
                        source_file: str = "<test>") -> RunOutcome:
    result = compile_source(source, compiler, source_file)
    if not result.success:
        return RunOutcome(compiled=False, errors=result.errors)
    runtime = runtime if runtime is not None else StackLangRuntime()
    execution = runtime.execute(result.instructions, stdin=io.StringIO(stdin))
    return RunOutcome(
        compiled=True,
        output=execution.output,
        variables=execution.variables,
        error=execution.error,
        instructions=result.instructions,
    )


def listing(instructions: List[Instruction]) -> List[str]:
    """Instruction texts, for readable assertions."""
    return [instr.format() for instr in instructions]


def stack_delta(instructions: List[Instruction]) -> int:
    """Net stack effect of a straight-line instruction sequence (no jumps taken)."""
    from stacklang.bytecode.instructions import Opcode
    effects = {
        Opcode.PUSH: 1, Opcode.LOAD: 1, Opcode.READ: 1,
        Opcode.POP: -1, Opcode.SAVE: -1, Opcode.FJMP: -1,
        Opcode.ADD: -1, Opcode.SUB: -1, Opcode.MUL: -1, Opcode.DIV: -1, Opcode.MOD: -1,
        Opcode.CONCAT: -1, Opcode.AND: -1, Opcode.OR: -1,
        Opcode.GT: -1, Opcode.LT: -1, Opcode.EQ: -1,
    }
    total = 0
    for instr in instructions:
        if instr.opcode is Opcode.PRINT:
            total -= instr.number
        else:
            total += effects.get(instr.opcode, 0)
    return total


def exit_depth(instructions: List[Instruction]) -> int:
    """
    Stack depth on leaving a self-contained instruction sequence, following
    both edges of every conditional jump.

    Fails when the depth goes negative or when two paths reach the same
    instruction with different depths.
    """
    from stacklang.bytecode.instructions import Opcode
    labels = {instr.number: pc for pc, instr in enumerate(instructions) if instr.opcode is Opcode.LABEL}
    depths: Dict[int, int] = {0: 0}
    pending = [0]
    while pending:
        pc = pending.pop()
        if pc == len(instructions):
            continue
        instr = instructions[pc]
        after = depths[pc] + stack_delta([instr])
        assert after >= 0, f"stack underflow at {pc}: {instr.format()}"
        if instr.opcode is Opcode.JMP:
            successors = [labels[instr.number]]
        elif instr.opcode is Opcode.FJMP:
            successors = [pc + 1, labels[instr.number]]
        else:
            successors = [pc + 1]
        for target in successors:
            if target in depths:
                assert depths[target] == after, f"inconsistent depth at {target}: {depths[target]} vs {after}"
            else:
                depths[target] = after
                pending.append(target)
    assert len(instructions) in depths, "end of sequence is unreachable"
    return depths[len(instructions)]
