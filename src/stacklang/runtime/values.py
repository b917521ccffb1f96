"""
Tagged Values

Runtime values of the virtual machine: a type tag plus a strongly typed
payload (int, numpy.float32, str, bool).
"""

import re
from dataclasses import dataclass
from typing import Optional, Union

import numpy as np

from ..shared.types import TypeTag
from ..utils.config import BOOLEAN_FALSE_LITERAL, BOOLEAN_TRUE_LITERAL, STRING_QUOTE_CHAR

Payload = Union[int, np.float32, str, bool]

_INT_RE = re.compile(r"[+-]?[0-9]+\Z")
_FLOAT_RE = re.compile(r"[+-]?([0-9]+(\.[0-9]*)?|\.[0-9]+)([eE][+-]?[0-9]+)?\Z")


def format_float(value: np.float32) -> str:
    """
    Shortest round-trip text, always positional with a decimal point (3.0, 0.1).
    Non-finite values render as inf, -inf and nan.
    """
    if not np.isfinite(value):
        return str(value)
    return np.format_float_positional(value, unique=True, trim='0')


def parse_int(text: str) -> Optional[int]:
    text = text.strip()
    return int(text) if _INT_RE.match(text) else None


def parse_float(text: str) -> Optional[np.float32]:
    text = text.strip()
    return np.float32(text) if _FLOAT_RE.match(text) else None


def parse_bool(text: str) -> Optional[bool]:
    lowered = text.strip().lower()
    if lowered == BOOLEAN_TRUE_LITERAL:
        return True
    if lowered == BOOLEAN_FALSE_LITERAL:
        return False
    return None


@dataclass(frozen=True)
class TaggedValue:
    tag: TypeTag
    payload: Payload

    @classmethod
    def of_int(cls, value: int) -> "TaggedValue":
        return cls(TypeTag.INT, int(value))

    @classmethod
    def of_float(cls, value) -> "TaggedValue":
        return cls(TypeTag.FLOAT, np.float32(value))

    @classmethod
    def of_string(cls, value: str) -> "TaggedValue":
        return cls(TypeTag.STRING, value)

    @classmethod
    def of_bool(cls, value: bool) -> "TaggedValue":
        return cls(TypeTag.BOOL, bool(value))

    @classmethod
    def from_literal(cls, tag: TypeTag, text: str) -> Optional["TaggedValue"]:
        """Decode a `push` literal; None when it does not fit the tag."""
        if tag is TypeTag.STRING:
            if len(text) >= 2 and text.startswith(STRING_QUOTE_CHAR) and text.endswith(STRING_QUOTE_CHAR):
                return cls.of_string(text[1:-1])
            return None
        if tag is TypeTag.BOOL:
            # Literals are spelled exactly; only `read` input is case-insensitive
            if text not in (BOOLEAN_TRUE_LITERAL, BOOLEAN_FALSE_LITERAL):
                return None
            return cls.of_bool(text == BOOLEAN_TRUE_LITERAL)
        return cls.parse_input(tag, text)

    @classmethod
    def parse_input(cls, tag: TypeTag, line: str) -> Optional["TaggedValue"]:
        """Strictly parse one line of user input; strings are taken verbatim."""
        if tag is TypeTag.STRING:
            return cls.of_string(line)
        if tag is TypeTag.INT:
            value = parse_int(line)
            return cls.of_int(value) if value is not None else None
        if tag is TypeTag.FLOAT:
            value = parse_float(line)
            return cls.of_float(value) if value is not None else None
        value = parse_bool(line)
        return cls.of_bool(value) if value is not None else None

    def render(self) -> str:
        """Text written by `print`: strings unquoted, floats with a decimal point."""
        if self.tag is TypeTag.STRING:
            return self.payload
        if self.tag is TypeTag.FLOAT:
            return format_float(self.payload)
        if self.tag is TypeTag.BOOL:
            return BOOLEAN_TRUE_LITERAL if self.payload else BOOLEAN_FALSE_LITERAL
        return str(self.payload)

    def literal(self) -> str:
        """Instruction literal form (strings quoted)."""
        if self.tag is TypeTag.STRING:
            return f"{STRING_QUOTE_CHAR}{self.payload}{STRING_QUOTE_CHAR}"
        return self.render()

    def __str__(self) -> str:
        return f"{self.tag} {self.literal()}"
