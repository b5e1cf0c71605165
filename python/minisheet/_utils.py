"""Cell id helpers: column letters and ``(row, col)`` -> ``"B3"``."""

from __future__ import annotations


def column_letter(col: int) -> str:
    """1-based column index -> letters (1 -> ``A``, 27 -> ``AA``)."""
    if col < 1:
        raise ValueError(f"Column index must be >= 1, got {col}")
    letters = ""
    while col:
        col, rem = divmod(col - 1, 26)
        letters = chr(65 + rem) + letters
    return letters


def rowcol_to_a1(row: int, col: int) -> str:
    """``(3, 2)`` -> ``"B3"``."""
    if row < 1:
        raise ValueError(f"Row must be >= 1, got {row}")
    return f"{column_letter(col)}{row}"
