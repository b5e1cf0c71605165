"""Cell: one addressable unit of spreadsheet state."""

from __future__ import annotations

from minisheet.calc._values import CellValue


class Cell:
    """Raw input, computed value, error and dependency edges of one cell.

    Only the owning Spreadsheet mutates a cell. A text literal such as
    ``"#ERR"`` compares equal to the matching sentinel, so check
    ``has_error`` rather than the value to tell a failed evaluation apart.
    """

    __slots__ = ("_id", "raw", "value", "error", "dependencies", "dependents")

    def __init__(self, cell_id: str) -> None:
        self._id = cell_id
        self.raw = ""
        self.value: CellValue = ""
        self.error: str | None = None
        # ids this cell's formula reads from
        self.dependencies: set[str] = set()
        # ids whose formulas read from this cell (reverse edges)
        self.dependents: set[str] = set()

    @property
    def id(self) -> str:
        return self._id

    @property
    def has_error(self) -> bool:
        return self.error is not None

    def __repr__(self) -> str:
        return f"<Cell {self._id} raw={self.raw!r} value={self.value!r}>"
