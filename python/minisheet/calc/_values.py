"""Cell value types: error sentinels, literal number parsing, formula coercion."""

from __future__ import annotations

import math
import re
from decimal import Decimal
from typing import Any, Union

# ---------------------------------------------------------------------------
# CellError: sentinel values stored in place of a computed result
# ---------------------------------------------------------------------------


class CellError:
    """Error sentinel held in ``Cell.value`` when evaluation fails.

    Use ``CellError.of(code)`` to get a cached singleton for each code.
    Sentinels compare equal to their exact code string
    (``CellError.CIRC == "#CIRC"``).
    """

    __slots__ = ("code",)
    _cache: dict[str, CellError] = {}

    CIRC: CellError
    ERROR: CellError

    def __init__(self, code: str) -> None:
        self.code = code

    @classmethod
    def of(cls, code: str) -> CellError:
        canon = code.upper()
        if canon not in cls._cache:
            cls._cache[canon] = cls(canon)
        return cls._cache[canon]

    def __repr__(self) -> str:
        return self.code

    def __str__(self) -> str:
        return self.code

    def __eq__(self, other: object) -> bool:
        if isinstance(other, CellError):
            return self.code == other.code
        if isinstance(other, str):
            return self.code == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.code)


CellError.CIRC = CellError.of("#CIRC")
CellError.ERROR = CellError.of("#ERR")

CellValue = Union[int, float, str, CellError, None]


def is_error(value: Any) -> bool:
    return isinstance(value, CellError)


# ---------------------------------------------------------------------------
# Number parsing
# ---------------------------------------------------------------------------

# Signed decimal with optional fraction and exponent: 42, -1.5, .5, 5., 1e3
_DECIMAL_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_INFINITY_RE = re.compile(r"([+-]?)Infinity")
_PREFIXED_RE = re.compile(r"0([xXoObB])([0-9A-Fa-f]+)")
_PREFIX_BASES = {"x": 16, "o": 8, "b": 2}


def normalize_number(value: float | int) -> float | int:
    """Collapse finite integral floats to ``int`` (``17.0`` -> ``17``)."""
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    return value


def parse_number(text: str) -> float | int | None:
    """Parse *text* as a number, or return None if it is not one.

    Accepts surrounding whitespace, signed decimals with optional exponent,
    ``Infinity``, and ``0x``/``0o``/``0b`` prefixed integers. Python-only
    spellings such as ``inf``, ``nan`` or ``1_000`` are not numbers here.
    """
    s = text.strip()
    if not s:
        return None
    if _DECIMAL_RE.fullmatch(s):
        return normalize_number(float(s))
    m = _INFINITY_RE.fullmatch(s)
    if m:
        return -math.inf if m.group(1) == "-" else math.inf
    m = _PREFIXED_RE.fullmatch(s)
    if m:
        try:
            return int(m.group(2), _PREFIX_BASES[m.group(1).lower()])
        except ValueError:
            return None
    return None


# ---------------------------------------------------------------------------
# Coercion for formula substitution
# ---------------------------------------------------------------------------


def as_operand(value: Any) -> float | int:
    """Numeric value a reference contributes to a formula.

    Numbers pass through; empty, missing, text and error values count as 0.
    """
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    return 0


def format_operand(value: float | int) -> str:
    """Render a number for substitution into formula text.

    Finite floats are written in plain positional notation so the result
    stays inside the arithmetic alphabet (``1e-07`` -> ``0.0000001``).
    Non-finite values keep their Python spelling and are rejected later.
    """
    if isinstance(value, int):
        return str(value)
    if not math.isfinite(value):
        return repr(value)
    return format(Decimal(repr(value)), "f")
