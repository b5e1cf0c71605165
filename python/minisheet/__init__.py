"""minisheet - a small reactive spreadsheet engine.

Usage::

    from minisheet import Spreadsheet

    sheet = Spreadsheet(cols=5, rows=5)
    sheet.set("A1", "1")
    sheet.set("B1", "=A1+1")
    sheet.set("A1", "10")
    print(sheet.get("B1"))  # 11

    sheet["B1"].raw    # "=A1+1", shown while editing
    sheet["B1"].error  # None, or a diagnostic for an error value
"""

from minisheet._cell import Cell
from minisheet._config import GridConfig
from minisheet._spreadsheet import Spreadsheet
from minisheet.calc import CellDelta, CellError, SheetEngine

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "Cell",
    "CellDelta",
    "CellError",
    "GridConfig",
    "SheetEngine",
    "Spreadsheet",
]
