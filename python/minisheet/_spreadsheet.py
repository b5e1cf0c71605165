"""Spreadsheet: a fixed grid of cells kept consistent under edits.

Writing a cell re-evaluates it, first evaluating any out-of-date cells its
formula references, then sweeps forward through its dependents so every
cell that reads from it, directly or transitively, is recomputed before
``set`` returns. Reads never evaluate.

Usage::

    sheet = Spreadsheet(cols=5, rows=5)
    sheet.set("A1", "5")
    sheet.set("B1", "3")
    sheet.set("C1", "=A1*B1+2")
    sheet.get("C1")  # 17
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable, Iterator, Mapping
from typing import Any

from minisheet._cell import Cell
from minisheet._config import GridConfig
from minisheet._utils import column_letter, rowcol_to_a1
from minisheet.calc._evaluator import FormulaError, evaluate
from minisheet.calc._graph import DependencyGraph
from minisheet.calc._parser import ReferencePattern, strip_marker
from minisheet.calc._protocol import CellDelta
from minisheet.calc._values import (
    CellError,
    CellValue,
    as_operand,
    format_operand,
    parse_number,
)

logger = logging.getLogger(__name__)

Listener = Callable[[tuple[CellDelta, ...]], None]


class _EvalPass:
    """Bookkeeping for one top-level evaluation.

    ``path`` is the chain of cells currently being evaluated; revisiting one
    of them is a circular reference. ``circular`` maps every cell found on a
    cycle to its diagnostic. ``stale`` is shared by every pass of one ``set``
    call: the cells that may still need evaluating. A cell leaves it once it
    has been evaluated without meeting a cycle.
    """

    __slots__ = ("path", "on_path", "circular", "stale", "detections")

    def __init__(self, stale: set[str]) -> None:
        self.path: list[str] = []
        self.on_path: set[str] = set()
        self.circular: dict[str, str] = {}
        self.stale = stale
        self.detections = 0


class _Frame:
    """A formula cell waiting on its references."""

    __slots__ = ("cell", "body", "refs", "next_ref", "detections")

    def __init__(self, cell: Cell, body: str, refs: list[str], detections: int) -> None:
        self.cell = cell
        self.body = body
        self.refs = refs
        self.next_ref = 0
        # cycle detections in the pass when this frame was opened
        self.detections = detections


class Spreadsheet:
    """Reactive grid of ``cols`` x ``rows`` cells addressed as ``A1``, ``B2``, ..."""

    def __init__(self, cols: int = 5, rows: int = 5, formula_marker: str = "=") -> None:
        config = GridConfig(cols=cols, rows=rows, formula_marker=formula_marker)
        self._config = config
        self._column_names = [column_letter(c) for c in range(1, config.cols + 1)]
        self._cells: dict[str, Cell] = {}
        for col in range(1, config.cols + 1):
            for row in range(1, config.rows + 1):
                cell_id = rowcol_to_a1(row, col)
                self._cells[cell_id] = Cell(cell_id)
        self._pattern = ReferencePattern(self._column_names, config.rows)
        self._graph = DependencyGraph(self._cells)
        self._listeners: list[Listener] = []
        # cell id -> (value, error) before the current set() touched it
        self._before: dict[str, tuple[CellValue, str | None]] = {}

    @classmethod
    def from_config(cls, config: GridConfig) -> Spreadsheet:
        return cls(config.cols, config.rows, config.formula_marker)

    # ------------------------------------------------------------------
    # Grid access
    # ------------------------------------------------------------------

    @property
    def cols(self) -> int:
        return self._config.cols

    @property
    def rows(self) -> int:
        return self._config.rows

    @property
    def formula_marker(self) -> str:
        return self._config.formula_marker

    @property
    def column_names(self) -> list[str]:
        return list(self._column_names)

    def cell(self, cell_id: str) -> Cell | None:
        """The Cell for *cell_id*, or None if the grid has no such cell."""
        return self._cells.get(cell_id)

    def __getitem__(self, cell_id: str) -> Cell:
        if cell_id not in self._cells:
            raise KeyError(f"Cell '{cell_id}' does not exist")
        return self._cells[cell_id]

    def __contains__(self, cell_id: object) -> bool:
        return cell_id in self._cells

    def __iter__(self) -> Iterator[str]:
        return iter(self._cells)

    def __len__(self) -> int:
        return len(self._cells)

    # ------------------------------------------------------------------
    # Read / write
    # ------------------------------------------------------------------

    def get(self, cell_id: str) -> CellValue:
        """Cached value of *cell_id*, or None if the grid has no such cell."""
        cell = self._cells.get(cell_id)
        if cell is None:
            return None
        return cell.value

    def set(self, cell_id: str, raw: Any) -> None:
        """Store raw input for *cell_id* and bring every dependent up to date.

        Unknown ids are ignored. Evaluation problems are recorded on the
        offending cell as an error value, never raised.
        """
        cell = self._cells.get(cell_id)
        if cell is None:
            logger.debug("Ignoring write to unknown cell %r", cell_id)
            return
        raw = "" if raw is None else str(raw)

        self._before = {}
        self._remember(cell)
        cell.raw = raw
        cell.error = None
        # Stale edges go before the formula is read again
        self._graph.unlink_all(cell_id)

        # Only this cell and what reads from it can change; every other
        # cell already matches its raw input.
        stale = {cell_id, *self._graph.affected_cells([cell_id])}
        self._evaluate(cell_id, _EvalPass(stale))
        self._propagate(cell_id, stale)
        self._notify()

    def update(self, values: Mapping[str, Any]) -> None:
        """``set`` each ``cell_id -> raw`` pair in *values*, in order."""
        for cell_id, raw in values.items():
            self.set(cell_id, raw)

    # ------------------------------------------------------------------
    # Change listeners
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call *listener* with the changed cells after every ``set``.

        Returns a function that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _remember(self, cell: Cell) -> None:
        if cell.id not in self._before:
            self._before[cell.id] = (cell.value, cell.error)

    def _notify(self) -> None:
        deltas: list[CellDelta] = []
        for cell_id, (old_value, old_error) in self._before.items():
            cell = self._cells[cell_id]
            if _same_value(old_value, cell.value) and old_error == cell.error:
                continue
            deltas.append(CellDelta(cell_id, old_value, cell.value, cell.error))
        self._before = {}
        if not deltas:
            return
        changes = tuple(deltas)
        failure: Exception | None = None
        for listener in list(self._listeners):
            try:
                listener(changes)
            except Exception as exc:
                logger.debug("Change listener %r raised %r", listener, exc)
                if failure is None:
                    failure = exc
        if failure is not None:
            raise failure

    # ------------------------------------------------------------------
    # Graph queries
    # ------------------------------------------------------------------

    def dependents_of(self, cell_id: str) -> list[str]:
        """Every cell that reads from *cell_id*, directly or transitively."""
        return self._graph.affected_cells([cell_id])

    def precedents_of(self, cell_id: str) -> list[str]:
        """Every cell *cell_id* reads from, directly or transitively."""
        return self._graph.precedent_cells([cell_id])

    def chain_depth(self, cell_id: str) -> int:
        """Length of the longest dependents chain starting at *cell_id*."""
        return self._graph.max_depth({cell_id})

    def check_consistency(self) -> list[tuple[str, str]]:
        """Dependency edges missing their reverse edge; empty when healthy."""
        return self._graph.broken_edges()

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def _store(self, cell: Cell, value: CellValue, error: str | None) -> None:
        self._remember(cell)
        cell.value = value
        cell.error = error

    def _evaluate(self, cell_id: str, ctx: _EvalPass) -> None:
        """Evaluate *cell_id* and every stale cell it reads from.

        Depth-first over formula references with an explicit stack, so the
        length of a reference chain is not limited by Python's call depth.
        """
        root = self._enter(cell_id, ctx)
        if root is None:
            return
        stack = [root]
        while stack:
            frame = stack[-1]
            if frame.next_ref < len(frame.refs):
                ref = frame.refs[frame.next_ref]
                frame.next_ref += 1
                self._graph.link(frame.cell.id, ref)
                child = self._enter(ref, ctx)
                if child is not None:
                    stack.append(child)
                continue
            stack.pop()
            self._finish(frame, ctx)

    def _enter(self, cell_id: str, ctx: _EvalPass) -> _Frame | None:
        """Start evaluating *cell_id*; a frame is returned only for stale formulas."""
        cell = self._cells.get(cell_id)
        if cell is None:
            return None

        if cell_id in ctx.on_path:
            cycle = ctx.path[ctx.path.index(cell_id):]
            message = "Circular reference: " + " -> ".join([*cycle, cell_id])
            for member in cycle:
                ctx.circular.setdefault(member, message)
            ctx.detections += 1
            logger.debug("%s", message)
            self._store(cell, CellError.CIRC, ctx.circular[cell_id])
            return None

        if cell_id not in ctx.stale:
            return None

        body = strip_marker(cell.raw, self._config.formula_marker)
        if body is None:
            self._store(cell, _literal_value(cell.raw), None)
            ctx.stale.discard(cell_id)
            return None

        ctx.path.append(cell_id)
        ctx.on_path.add(cell_id)
        return _Frame(cell, body, self._pattern.references(body), ctx.detections)

    def _finish(self, frame: _Frame, ctx: _EvalPass) -> None:
        """Compute a formula cell once all of its references are evaluated."""
        cell = frame.cell
        ctx.path.pop()
        ctx.on_path.discard(cell.id)
        if ctx.detections == frame.detections:
            ctx.stale.discard(cell.id)

        if cell.id in ctx.circular:
            self._store(cell, CellError.CIRC, ctx.circular[cell.id])
            return

        operands = {ref: self._operand(cell.id, ref) for ref in frame.refs}
        try:
            expr = self._pattern.substitute(frame.body, operands.__getitem__)
            value = evaluate(expr)
        except FormulaError as exc:
            logger.debug("Formula error in %s (%r): %s", cell.id, cell.raw, exc)
            self._store(cell, CellError.ERROR, str(exc))
        except RecursionError:
            logger.debug("Formula nesting too deep in %s", cell.id)
            self._store(cell, CellError.ERROR, "Formula nesting too deep")
        else:
            self._store(cell, value, None)

    def _operand(self, cell_id: str, ref: str) -> str:
        value = self._cells[ref].value
        number = as_operand(value)
        if value != "" and not isinstance(value, (int, float)):
            logger.debug("%s: non-numeric %s=%r counts as 0", cell_id, ref, value)
        return f"({format_operand(number)})"

    def _propagate(self, cell_id: str, stale: set[str]) -> None:
        """Re-evaluate everything downstream of *cell_id*, breadth first.

        Each dependent gets a fresh evaluation pass; the propagated set spans
        the whole sweep so diamonds and cycles are walked once. Dependents
        already brought up to date earlier in the sweep are left as they are.
        """
        propagated = {cell_id}
        queue: deque[str] = deque([cell_id])
        while queue:
            current = queue.popleft()
            for dep in sorted(self._cells[current].dependents):
                self._evaluate(dep, _EvalPass(stale))
                if dep not in propagated:
                    propagated.add(dep)
                    queue.append(dep)

    def __repr__(self) -> str:
        return (
            f"<Spreadsheet {self._config.cols}x{self._config.rows} "
            f"columns={self._column_names[0]}..{self._column_names[-1]}>"
        )


def _literal_value(raw: str) -> CellValue:
    """Value of non-formula input: ``""``, a number, or the trimmed text."""
    text = raw.strip()
    if not text:
        return ""
    number = parse_number(text)
    if number is None:
        return text
    return number


def _same_value(a: CellValue, b: CellValue) -> bool:
    if type(a) is not type(b) and not (
        isinstance(a, (int, float)) and isinstance(b, (int, float))
    ):
        return False
    if a != a and b != b:  # both nan
        return True
    return a == b
