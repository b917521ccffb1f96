"""
Bytecode Serialization

Newline-separated instruction texts. Blank lines are ignored on load; every
line carries its position so a malformed artifact points at the bad line.
"""

import logging
from pathlib import Path
from typing import Iterable, List, Union

from .instructions import Instruction
from ..utils.io_utils import read_source_file, write_text_file

logger = logging.getLogger("stacklang.bytecode.serialization")


def dumps(instructions: Iterable[Instruction]) -> str:
    """Instruction sequence to artifact text (one instruction per line)."""
    lines = [instr.format() for instr in instructions]
    return "\n".join(lines) + "\n" if lines else ""


def loads(text: str) -> List[Instruction]:
    """Artifact text to instructions; raises MalformedInstructionError."""
    instructions: List[Instruction] = []
    for line in text.splitlines():
        if not line.strip():
            continue
        instructions.append(Instruction.parse(line, pc=len(instructions)))
    return instructions


def save_bytecode(path: Union[str, Path], instructions: Iterable[Instruction]) -> Path:
    instructions = list(instructions)
    written = write_text_file(path, dumps(instructions))
    logger.debug(f"Wrote {len(instructions)} instructions to {written}")
    return written


def load_bytecode(path: Union[str, Path]) -> List[Instruction]:
    instructions = loads(read_source_file(path))
    logger.debug(f"Loaded {len(instructions)} instructions from {path}")
    return instructions
