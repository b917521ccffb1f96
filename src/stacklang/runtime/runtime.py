"""
Runtime

Thin facade over the virtual machine: one fresh VM per execution, output
captured alongside the real stream, execution errors returned instead of
raised.
"""

import io
import logging
import sys
from typing import Dict, List, Optional, Sequence, TextIO, Union

from ..bytecode.instructions import Instruction
from ..bytecode.serialization import loads
from ..shared.errors import ExecutionError
from ..utils.config import max_steps_from_env, read_attempts_from_env
from .values import TaggedValue
from .vm import VirtualMachine

logger = logging.getLogger("stacklang.runtime")


class ExecutionResult:
    """
    Execution result.

    `variables` and `output` reflect the state reached even when `error` is
    set, so a failed run can still be inspected.
    """
    def __init__(
        self,
        variables: Optional[Dict[str, TaggedValue]] = None,
        output: str = "",
        error: Optional[ExecutionError] = None,
        steps: int = 0,
    ):
        self.variables = variables if variables is not None else {}
        self.output = output
        self.error = error
        self.steps = steps

    @property
    def success(self) -> bool:
        """Whether execution succeeded (no error)"""
        return self.error is None

    def get_errors(self) -> List[str]:
        if self.error:
            return [str(self.error)]
        return []


class _Tee(io.TextIOBase):
    """Writes to a capture buffer and, optionally, a second stream."""

    def __init__(self, target: Optional[TextIO]):
        self.buffer = io.StringIO()
        self.target = target

    def write(self, text: str) -> int:
        self.buffer.write(text)
        if self.target is not None:
            self.target.write(text)
        return len(text)

    def flush(self) -> None:
        if self.target is not None:
            self.target.flush()


class StackLangRuntime:
    """
    Runtime layer.

    - Fresh VM per execute: no state leaks between programs
    - VM limits are resolved once per runtime (None means environment, then default)
    - ExecutionError never propagates past execute()
    """

    def __init__(self, max_steps: Optional[int] = None, read_attempts: Optional[int] = None):
        self.max_steps = max_steps if max_steps is not None else max_steps_from_env()
        self.read_attempts = read_attempts if read_attempts is not None else read_attempts_from_env()

    def execute(
        self,
        instructions: Union[str, Sequence[Instruction]],
        stdin: Optional[TextIO] = None,
        stdout: Optional[TextIO] = None,
    ) -> ExecutionResult:
        """
        Run a program (instruction list or artifact text).

        Input defaults to sys.stdin. Output is always captured in the result
        and is also written to `stdout` as it happens when one is given.
        """
        if isinstance(instructions, str):
            try:
                instructions = loads(instructions)
            except ExecutionError as e:
                return ExecutionResult(error=e)

        tee = _Tee(stdout)
        vm = VirtualMachine(
            stdin=stdin if stdin is not None else sys.stdin,
            stdout=tee,
            max_steps=self.max_steps,
            read_attempts=self.read_attempts,
        )
        error: Optional[ExecutionError] = None
        try:
            vm.run(instructions)
        except ExecutionError as e:
            logger.debug(f"Execution stopped: {e}")
            error = e
        return ExecutionResult(
            variables=vm.variables.snapshot(),
            output=tee.buffer.getvalue(),
            error=error,
            steps=vm.steps,
        )
