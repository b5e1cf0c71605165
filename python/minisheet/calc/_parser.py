"""Formula reference extraction and substitution.

A reference is a column name followed by a row number, e.g. ``B3``. Only ids
that name a cell inside the grid bounds count as references; anything else
stays in the formula text and is rejected when the expression is checked.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable

# Greedy token: all uppercase letters then a row number without leading zero.
# Matching the full token first keeps ``AB1`` from being read as ``B1`` and
# ``A12`` from being read as ``A1``.
_TOKEN_RE = re.compile(r"([A-Z]+)([1-9]\d*)")


class ReferencePattern:
    """Recognises cell references within a fixed set of columns and rows.

    Built once per grid from its actual column names and row count.
    """

    __slots__ = ("_columns", "_rows")

    def __init__(self, columns: Iterable[str], rows: int) -> None:
        self._columns = frozenset(columns)
        self._rows = rows

    def is_reference(self, column: str, row: str) -> bool:
        return column in self._columns and int(row) <= self._rows

    def references(self, body: str) -> list[str]:
        """Distinct in-range references in *body*, in order of first appearance."""
        refs: list[str] = []
        seen: set[str] = set()
        for m in _TOKEN_RE.finditer(body):
            if not self.is_reference(m.group(1), m.group(2)):
                continue
            ref = m.group(0)
            if ref not in seen:
                refs.append(ref)
                seen.add(ref)
        return refs

    def substitute(self, body: str, lookup: Callable[[str], str]) -> str:
        """Replace every in-range reference token in *body* with ``lookup(ref)``."""

        def _replace(m: re.Match[str]) -> str:
            if self.is_reference(m.group(1), m.group(2)):
                return lookup(m.group(0))
            return m.group(0)

        return _TOKEN_RE.sub(_replace, body)

    def __repr__(self) -> str:
        cols = sorted(self._columns, key=lambda c: (len(c), c))
        span = f"{cols[0]}..{cols[-1]}" if cols else "-"
        return f"<ReferencePattern columns={span} rows=1..{self._rows}>"


def strip_marker(formula: str, marker: str = "=") -> str | None:
    """Formula body without its leading marker, or None if *formula* is a literal."""
    text = formula.strip()
    if not text.startswith(marker):
        return None
    return text[len(marker):]
