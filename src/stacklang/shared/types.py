"""
Type System

Static types of the language and the runtime type tags that mirror them.

Convention: UNKNOWN is only ever produced by the type checker as a recovery
value after an error has been reported. It is never declarable and never
reaches code generation.
"""

from enum import Enum
from typing import Optional


class TypeTag(Enum):
    """Runtime type tag carried by instructions and tagged values."""
    INT = "I"
    FLOAT = "F"
    STRING = "S"
    BOOL = "B"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, text: str) -> Optional["TypeTag"]:
        """Tag for its one-letter spelling, or None."""
        for tag in cls:
            if tag.value == text:
                return tag
        return None


class Type(Enum):
    """
    Static type of an expression or declared variable.

    Declarable types map one-to-one onto runtime tags; UNKNOWN has no tag.
    """
    INT = "int"
    FLOAT = "float"
    STRING = "string"
    BOOL = "bool"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.name

    @property
    def is_numeric(self) -> bool:
        return self in (Type.INT, Type.FLOAT)

    @property
    def tag(self) -> TypeTag:
        if self is Type.UNKNOWN:
            raise ValueError("UNKNOWN has no runtime type tag")
        return _TYPE_TO_TAG[self]

    @classmethod
    def from_keyword(cls, keyword: str) -> "Type":
        """Declared type for a type keyword (`int`, `float`, `string`, `bool`)."""
        for t in (cls.INT, cls.FLOAT, cls.STRING, cls.BOOL):
            if t.value == keyword:
                return t
        raise ValueError(f"Unknown type keyword: {keyword!r}")

    @classmethod
    def from_tag(cls, tag: TypeTag) -> "Type":
        return _TAG_TO_TYPE[tag]


_TYPE_TO_TAG = {
    Type.INT: TypeTag.INT,
    Type.FLOAT: TypeTag.FLOAT,
    Type.STRING: TypeTag.STRING,
    Type.BOOL: TypeTag.BOOL,
}
_TAG_TO_TYPE = {tag: t for t, tag in _TYPE_TO_TAG.items()}


class BinaryOp(Enum):
    """Binary operators - compile-time checked enum"""
    # Arithmetic
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    MOD = "%"

    # String
    CONCAT = "."

    # Comparison
    EQ = "=="
    NE = "!="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="

    # Logical
    AND = "&&"
    OR = "||"

    def __str__(self) -> str:
        return self.value


class UnaryOp(Enum):
    """Unary operators - compile-time checked enum"""
    NOT = "!"
    NEG = "-"

    def __str__(self) -> str:
        return self.value


ARITHMETIC_OPS = frozenset({BinaryOp.ADD, BinaryOp.SUB, BinaryOp.MUL, BinaryOp.DIV})
RELATIONAL_OPS = frozenset({BinaryOp.LT, BinaryOp.GT, BinaryOp.LE, BinaryOp.GE})
EQUALITY_OPS = frozenset({BinaryOp.EQ, BinaryOp.NE})
LOGICAL_OPS = frozenset({BinaryOp.AND, BinaryOp.OR})


def binary_result_type(op: BinaryOp, left: Type, right: Type) -> Type:
    """
    Result type of `left op right`, or UNKNOWN when the combination is invalid.

    Operand order only matters for reporting; every rule is symmetric.
    """
    if op in ARITHMETIC_OPS:
        if left is Type.INT and right is Type.INT:
            return Type.INT
        if left.is_numeric and right.is_numeric:
            return Type.FLOAT
        return Type.UNKNOWN
    if op is BinaryOp.MOD:
        return Type.INT if left is Type.INT and right is Type.INT else Type.UNKNOWN
    if op in RELATIONAL_OPS:
        return Type.BOOL if left.is_numeric and right.is_numeric else Type.UNKNOWN
    if op in EQUALITY_OPS:
        if left.is_numeric and right.is_numeric:
            return Type.BOOL
        if left is Type.STRING and right is Type.STRING:
            return Type.BOOL
        return Type.UNKNOWN
    if op in LOGICAL_OPS:
        return Type.BOOL if left is Type.BOOL and right is Type.BOOL else Type.UNKNOWN
    if op is BinaryOp.CONCAT:
        return Type.STRING if left is Type.STRING and right is Type.STRING else Type.UNKNOWN
    return Type.UNKNOWN


def unary_result_type(op: UnaryOp, operand: Type) -> Type:
    """Result type of a unary operator application, or UNKNOWN."""
    if op is UnaryOp.NOT:
        return Type.BOOL if operand is Type.BOOL else Type.UNKNOWN
    if op is UnaryOp.NEG:
        return operand if operand.is_numeric else Type.UNKNOWN
    return Type.UNKNOWN
