"""minisheet.calc - Formula machinery: references, arithmetic, dependency graph."""

from minisheet.calc._evaluator import FormulaError, check_alphabet, evaluate
from minisheet.calc._graph import DependencyGraph
from minisheet.calc._parser import ReferencePattern, strip_marker
from minisheet.calc._protocol import CellDelta, SheetEngine
from minisheet.calc._values import CellError, CellValue, is_error, parse_number

__all__ = [
    "CellDelta",
    "CellError",
    "CellValue",
    "DependencyGraph",
    "FormulaError",
    "ReferencePattern",
    "SheetEngine",
    "check_alphabet",
    "evaluate",
    "is_error",
    "parse_number",
    "strip_marker",
]
