"""
Error Reporting

Compile-time diagnostics (collected, de-duplicated, rendered rustc-style) and
the exception hierarchy for parse, internal and execution errors.
"""

import os
import sys
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Set, Tuple

from .source_location import SourceLocation


# ---------------------------------------------------------------------------
# Error codes
# ---------------------------------------------------------------------------

E_PARSE = "E0001"
E_TYPE_MISMATCH = "E0308"
E_INVALID_OPERANDS = "E0369"
E_UNDECLARED = "E0425"
E_DUPLICATE = "E0428"
E_INVALID_UNARY = "E0600"


# ---------------------------------------------------------------------------
# ANSI color helpers (disabled when NO_COLOR is set or STACKLANG_COLOR=never)
# ---------------------------------------------------------------------------

def _use_color() -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    explicit = os.environ.get("STACKLANG_COLOR", "").lower()
    if explicit in ("0", "false", "no", "never"):
        return False
    return sys.stderr.isatty()

_BOLD   = "\033[1m"
_RED    = "\033[31m"
_BLUE   = "\033[34m"
_CYAN   = "\033[36m"
_RESET  = "\033[0m"

def _style(text: str, *codes: str, color: bool = True) -> str:
    if not color:
        return text
    prefix = "".join(codes)
    return f"{prefix}{text}{_RESET}" if prefix else text


# ---------------------------------------------------------------------------
# Error dataclass
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Error:
    """Compile-time diagnostic."""
    message: str
    location: Optional[SourceLocation]
    code: Optional[str] = None
    help: Optional[str] = None


# ---------------------------------------------------------------------------
# Formatting engine
# ---------------------------------------------------------------------------

def _format_diagnostic(
    error: Error,
    source_files: Dict[str, str],
    color: bool = False,
) -> str:
    """
    Render a single diagnostic in rustc style.

    Example output (plain, no color)::

        error[E0308]: Attempt to assign a variable of type FLOAT to a variable of type INT
         --> main.sl:3:1
          |
        3 | x = 2.5;
          | ^^^^^^^
    """
    out: List[str] = []

    code_str = f"[{error.code}]" if error.code else ""
    out.append(
        _style(f"error{code_str}", _BOLD, _RED, color=color)
        + _style(f": {error.message}", _BOLD, color=color)
    )

    loc = error.location
    if loc is None:
        out.append(_style(" --> ", _BOLD, _BLUE, color=color) + "<unknown location>")
        _append_help(out, error, 1, color)
        return "\n".join(out)

    source = source_files.get(loc.file)
    src_lines = source.split("\n") if source is not None else []
    if not 0 < loc.line <= len(src_lines):
        out.append(_style(" --> ", _BOLD, _BLUE, color=color) + str(loc))
        _append_help(out, error, 1, color)
        return "\n".join(out)

    gw = len(str(loc.line))
    code_line = src_lines[loc.line - 1]
    col_start = max(loc.column, 1) - 1
    if loc.end_line == loc.line and loc.end_column > loc.column:
        span_len = loc.end_column - loc.column
    else:
        span_len = len(code_line.rstrip()) - col_start
    carets = " " * col_start + "^" * max(1, span_len)

    out.append(_style(" " * gw + "--> ", _BOLD, _BLUE, color=color) + str(loc))
    out.append(_style(" " * (gw + 1) + "|", _BOLD, _BLUE, color=color))
    out.append(_style(f"{loc.line} | ", _BOLD, _BLUE, color=color) + code_line)
    out.append(_style(" " * (gw + 1) + "| ", _BOLD, _BLUE, color=color) + _style(carets, _BOLD, _RED, color=color))
    _append_help(out, error, gw, color)
    return "\n".join(out)


def _append_help(out: List[str], error: Error, gw: int, color: bool) -> None:
    if not error.help:
        return
    out.append(
        _style(" " * (gw + 1) + "= ", _BOLD, _CYAN, color=color)
        + _style("help: ", _BOLD, color=color)
        + error.help
    )


# ---------------------------------------------------------------------------
# ErrorReporter
# ---------------------------------------------------------------------------

class ErrorReporter:
    """
    Collects compile-time diagnostics.

    Messages form a de-duplicated set (the same message reported at two places
    counts once); the located diagnostics are kept once per (message, location)
    for rendering.
    """

    def __init__(self, source_files: Optional[Dict[str, str]] = None):
        self.source_files: Dict[str, str] = source_files if source_files is not None else {}
        self.errors: List[Error] = []
        self._seen: Set[Tuple[str, Optional[SourceLocation]]] = set()
        self._messages: Set[str] = set()

    def report_error(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        code: Optional[str] = None,
        help: Optional[str] = None,
    ) -> None:
        self._messages.add(message)
        key = (message, location)
        if key in self._seen:
            return
        self._seen.add(key)
        self.errors.append(Error(message=message, location=location, code=code, help=help))

    @property
    def messages(self) -> FrozenSet[str]:
        return frozenset(self._messages)

    def has_errors(self) -> bool:
        return bool(self._messages)

    def format_error(self, error: Error, color: Optional[bool] = None) -> str:
        use_color = color if color is not None else _use_color()
        return _format_diagnostic(error, self.source_files, color=use_color)

    def format_all_errors(self, color: Optional[bool] = None) -> str:
        parts = [self.format_error(e, color=color) for e in self.errors]
        use_color = color if color is not None else _use_color()
        count = len(self.errors)
        summary = f"aborting due to {count} previous error{'s' if count != 1 else ''}"
        parts.append(
            _style("error", _BOLD, _RED, color=use_color)
            + _style(f": {summary}", _BOLD, color=use_color)
        )
        return "\n\n".join(parts)


# ============================================================================
# Exception Classes
# ============================================================================

class StackLangError(Exception):
    """Base exception for all stacklang errors"""
    def __init__(self, message: str, location: Optional[SourceLocation] = None):
        super().__init__(message)
        self.message = message
        self.location = location

    def __str__(self):
        if self.location:
            return f"{self.message} ({self.location})"
        return self.message


class StackLangSourceError(StackLangError):
    """Error in user source code, rendered like a compile diagnostic."""
    def __init__(self,
                 message: str,
                 location: Optional[SourceLocation] = None,
                 error_code: str = E_PARSE,
                 source_code: Optional[str] = None,
                 help: Optional[str] = None):
        super().__init__(message, location)
        self.error_code = error_code
        self.source_code = source_code
        self.help_text = help

    def __str__(self):
        source_files: Dict[str, str] = {}
        if self.source_code and self.location:
            source_files[self.location.file] = self.source_code
        err = Error(message=self.message, location=self.location, code=self.error_code, help=self.help_text)
        return _format_diagnostic(err, source_files, color=False)


class StackLangImplementationError(Exception):
    """
    Error in Python implementation code (not the user's program).

    Raised when an internal invariant breaks, e.g. an UNKNOWN type reaching
    the code generator.
    """
    def __init__(self, message: str, error_code: str = "E9999"):
        super().__init__(message)
        self.message = message
        self.error_code = error_code

    def __str__(self):
        return f"[{self.error_code}] {self.message}"


# ----------------------------------------------------------------------------
# Execution errors (fatal for the current program only)
# ----------------------------------------------------------------------------

class ExecutionError(StackLangError):
    """Fatal error while the virtual machine runs a program."""
    kind = "execution error"

    def __init__(self, message: str, pc: Optional[int] = None, instruction: Optional[str] = None):
        super().__init__(message)
        self.pc = pc
        self.instruction = instruction

    def __str__(self):
        where = ""
        if self.pc is not None:
            where = f" at instruction {self.pc}"
            if self.instruction:
                where += f" ({self.instruction})"
        return f"{self.kind}{where}: {self.message}"


class MalformedInstructionError(ExecutionError):
    """Unknown opcode, wrong operands, operand of the wrong tag or unknown variable."""
    kind = "malformed instruction"


class UnresolvedLabelError(ExecutionError):
    kind = "unresolved label"


class StackUnderflowError(ExecutionError):
    kind = "stack underflow"


class ArithmeticFaultError(ExecutionError):
    """Division or modulo by zero."""
    kind = "arithmetic error"


class StepLimitExceededError(ExecutionError):
    kind = "step limit exceeded"


class InputExhaustedError(ExecutionError):
    """End of input or too many invalid answers to a `read`."""
    kind = "input error"
