"""Grid construction parameters."""

from __future__ import annotations

from dataclasses import dataclass

# Characters the arithmetic evaluator gives meaning to; a marker must not be one.
_ARITHMETIC_CHARS = frozenset("+-*/().")


@dataclass(frozen=True)
class GridConfig:
    """Size of the grid and the character that marks a formula."""

    cols: int = 5
    rows: int = 5
    formula_marker: str = "="

    def __post_init__(self) -> None:
        if isinstance(self.cols, bool) or not isinstance(self.cols, int) or self.cols < 1:
            raise ValueError(f"cols must be a positive integer, got {self.cols!r}")
        if isinstance(self.rows, bool) or not isinstance(self.rows, int) or self.rows < 1:
            raise ValueError(f"rows must be a positive integer, got {self.rows!r}")
        marker = self.formula_marker
        if (
            not isinstance(marker, str)
            or len(marker) != 1
            or marker.isalnum()
            or marker.isspace()
            or marker in _ARITHMETIC_CHARS
        ):
            raise ValueError(f"Invalid formula marker: {marker!r}")
