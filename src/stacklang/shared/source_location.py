"""
Source Location (Span)

Line/column span of a syntax-tree node, used by diagnostics.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class SourceLocation:
    """
    Source location of a node or token.

    - File, line, column (1-based), optional end line/column
    - Character offsets into the source so the node's text can be sliced back out
    - Immutable (frozen) for hashability
    """
    file: str
    line: int
    column: int
    start: int = 0
    end: int = 0
    end_line: int = 0
    end_column: int = 0

    def __str__(self) -> str:
        """Format as file:line:column"""
        return f"{self.file}:{self.line}:{self.column}"
