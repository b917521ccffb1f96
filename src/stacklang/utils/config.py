"""
Configuration constants to replace magic numbers throughout stacklang
"""

import os
import tempfile

# Parser configuration constants (cache under temp dir to avoid cluttering project root)
DEFAULT_PARSER_CACHE_FILE = os.path.join(tempfile.gettempdir(), "stacklang_parser.cache")

# File extensions
BYTECODE_FILE_EXTENSION = ".slc"

# File encoding constants
DEFAULT_FILE_ENCODING = "utf-8"

# String literal constants
STRING_QUOTE_CHAR = '"'
BOOLEAN_TRUE_LITERAL = "true"
BOOLEAN_FALSE_LITERAL = "false"

# Virtual machine limits (0 disables the step guard)
DEFAULT_MAX_STEPS = 10_000_000
DEFAULT_READ_ATTEMPTS = 5

MAX_STEPS_ENV_VAR = "STACKLANG_MAX_STEPS"
READ_ATTEMPTS_ENV_VAR = "STACKLANG_READ_ATTEMPTS"


def _int_from_env(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def max_steps_from_env() -> int:
    """Step guard for the VM, overridable with STACKLANG_MAX_STEPS."""
    return _int_from_env(MAX_STEPS_ENV_VAR, DEFAULT_MAX_STEPS)


def read_attempts_from_env() -> int:
    """Attempts allowed per `read` instruction, overridable with STACKLANG_READ_ATTEMPTS."""
    return _int_from_env(READ_ATTEMPTS_ENV_VAR, DEFAULT_READ_ATTEMPTS)
