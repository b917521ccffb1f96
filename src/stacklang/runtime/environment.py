"""
Variable Store

One flat namespace per execution: identifier -> cell holding the variable's
type tag and current value. A cell is created by the first store and
overwritten in place afterwards. Scoping is resolved at compile time, so
sibling blocks may save a value of another tag under the same name.
"""

from dataclasses import dataclass
from typing import Dict, Iterator, Optional

from ..shared.types import TypeTag
from .values import TaggedValue


@dataclass
class Cell:
    """Storage of one variable (tag of the last stored value)."""
    tag: TypeTag
    value: TaggedValue


class VariableStoreError(LookupError):
    """Load of a variable that was never stored."""


class VariableStore:
    """
    Flat variable store.
    - store(name, value): create the cell on first use, else overwrite its tag and value
    - load(name): current value, raises VariableStoreError when absent
    """

    def __init__(self):
        self._cells: Dict[str, Cell] = {}

    def store(self, name: str, value: TaggedValue) -> None:
        cell = self._cells.get(name)
        if cell is None:
            self._cells[name] = Cell(tag=value.tag, value=value)
            return
        cell.tag = value.tag
        cell.value = value

    def load(self, name: str) -> TaggedValue:
        cell = self._cells.get(name)
        if cell is None:
            raise VariableStoreError(f"Variable '{name}' has no value")
        return cell.value

    def get(self, name: str) -> Optional[TaggedValue]:
        cell = self._cells.get(name)
        return cell.value if cell is not None else None

    def __contains__(self, name: str) -> bool:
        return name in self._cells

    def __iter__(self) -> Iterator[str]:
        return iter(self._cells)

    def __len__(self) -> int:
        return len(self._cells)

    def snapshot(self) -> Dict[str, TaggedValue]:
        """Current values by name, detached from the store."""
        return {name: cell.value for name, cell in self._cells.items()}
