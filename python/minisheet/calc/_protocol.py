"""SheetEngine protocol and change-record dataclass."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from minisheet.calc._values import CellValue


@dataclass(frozen=True)
class CellDelta:
    """A single cell's change from one ``set`` call."""

    cell_id: str
    old_value: CellValue
    new_value: CellValue
    error: str | None = None  # diagnostic attached to new_value, if any


@runtime_checkable
class SheetEngine(Protocol):
    """The read/write surface a presentation layer drives."""

    def set(self, cell_id: str, raw: str) -> None:
        """Store raw input for a cell and bring every dependent up to date."""
        ...

    def get(self, cell_id: str) -> CellValue:
        """Cached value of a cell, or None if it does not exist."""
        ...
