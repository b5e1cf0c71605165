"""Dependency graph over a grid's cells.

Edges live on the cells themselves (``Cell.dependencies`` and
``Cell.dependents``); this class keeps the two sides in step and answers
traversal queries over them.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from minisheet._cell import Cell


class DependencyGraph:
    """Maintains mutual dependency/dependent edges between cells."""

    __slots__ = ("_cells",)

    def __init__(self, cells: Mapping[str, Cell]) -> None:
        self._cells = cells

    def link(self, cell_id: str, ref: str) -> None:
        """Record that *cell_id* reads from *ref* (both directions)."""
        self._cells[cell_id].dependencies.add(ref)
        target = self._cells.get(ref)
        if target is not None:
            target.dependents.add(cell_id)

    def unlink_all(self, cell_id: str) -> None:
        """Drop every outgoing dependency edge of *cell_id* and its reverse edges."""
        cell = self._cells[cell_id]
        for dep in cell.dependencies:
            target = self._cells.get(dep)
            if target is not None:
                target.dependents.discard(cell_id)
        cell.dependencies.clear()

    def affected_cells(self, changed: Iterable[str]) -> list[str]:
        """All cells reachable through dependents edges, in BFS order.

        The starting cells are not included unless another changed cell
        (or a cycle) reaches them.
        """
        return self._walk(changed, "dependents")

    def precedent_cells(self, cell_ids: Iterable[str]) -> list[str]:
        """All cells reachable through dependencies edges, in BFS order."""
        return self._walk(cell_ids, "dependencies")

    def _walk(self, roots: Iterable[str], edge: str) -> list[str]:
        roots = [r for r in roots if r in self._cells]
        order: list[str] = []
        visited: set[str] = set()
        queue: deque[str] = deque(roots)

        while queue:
            cell_id = queue.popleft()
            for nxt in sorted(getattr(self._cells[cell_id], edge)):
                if nxt not in visited and nxt in self._cells:
                    visited.add(nxt)
                    order.append(nxt)
                    queue.append(nxt)

        return order

    def max_depth(self, roots: set[str]) -> int:
        """Longest dependents chain from *roots*, counting each cell once per path.

        Cycles are cut at the first revisit so the result is always finite.
        """
        best = 0
        stack: list[tuple[str, int, frozenset[str]]] = [
            (r, 0, frozenset((r,))) for r in roots if r in self._cells
        ]
        while stack:
            cell_id, depth, path = stack.pop()
            best = max(best, depth)
            for dep in self._cells[cell_id].dependents:
                if dep in path or dep not in self._cells:
                    continue
                stack.append((dep, depth + 1, path | {dep}))
        return best

    def broken_edges(self) -> list[tuple[str, str]]:
        """Edges ``(a, b)`` present on one side only; empty when consistent.

        ``(a, b)`` means *a* lists *b* as a dependency, or *b* lists *a* as a
        dependent, without the matching entry on the other cell.
        """
        broken: set[tuple[str, str]] = set()
        for cell_id, cell in self._cells.items():
            for dep in cell.dependencies:
                target = self._cells.get(dep)
                if target is not None and cell_id not in target.dependents:
                    broken.add((cell_id, dep))
            for dependent in cell.dependents:
                source = self._cells.get(dependent)
                if source is None or cell_id not in source.dependencies:
                    broken.add((dependent, cell_id))
        return sorted(broken)
