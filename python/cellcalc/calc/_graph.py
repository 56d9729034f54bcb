"""Dependency graph over table cells with per-target cycle detection."""

from __future__ import annotations

import logging
from collections.abc import Container, Mapping

from cellcalc._utils import describe
from cellcalc.calc._errors import CalcError, DanglingReference, InvalidReference
from cellcalc.calc._parser import extract_references

logger = logging.getLogger(__name__)

_IN_PROGRESS = 1
_DONE = 2


class DependencyGraph:
    """Directed graph with an edge from each cell to every cell it references.

    Cells whose references cannot be resolved keep their error in
    :attr:`errors` instead of failing the whole build.
    """

    __slots__ = ("nodes", "dependencies", "errors", "_acyclic")

    def __init__(self) -> None:
        self.nodes: set[tuple[int, int]] = set()
        # cell -> cells it reads from, in first-reference order
        self.dependencies: dict[tuple[int, int], list[tuple[int, int]]] = {}
        # cell -> why its references could not be resolved
        self.errors: dict[tuple[int, int], CalcError] = {}
        # cells whose reachable subgraph is known to be cycle-free
        self._acyclic: set[tuple[int, int]] = set()

    def add_cell(self, index: tuple[int, int]) -> None:
        self.nodes.add(index)
        self.dependencies.setdefault(index, [])

    def add_expression(self, index: tuple[int, int], expression: str) -> None:
        """Register edges from *index* to each cell its expression references.

        Every referenced cell must already be a node.
        """
        self.nodes.add(index)
        self.dependencies[index] = []
        self.errors.pop(index, None)
        self._acyclic.clear()
        try:
            refs = extract_references(expression)
        except InvalidReference as e:
            e.index = index
            self.errors[index] = e
            logger.debug("%s: %s", describe(index), e)
            return

        edges = self.dependencies[index]
        for ref in refs:
            if ref.index not in self.nodes:
                if index not in self.errors:
                    self.errors[index] = DanglingReference(
                        f"{describe(index)} references {ref.text}, which is not in the table",
                        index=index,
                    )
                    logger.debug("%s", self.errors[index])
                continue
            if ref.index not in edges:
                edges.append(ref.index)

    def evaluation_order(
        self,
        target: tuple[int, int],
        done: Container[tuple[int, int]] = (),
    ) -> list[tuple[int, int]]:
        """Cells reachable from *target* (inclusive), each after the cells it reads.

        Cells in *done* are neither returned nor descended into. Only
        meaningful when :meth:`has_cycle` is false for *target*.
        """
        order: list[tuple[int, int]] = []
        seen: set[tuple[int, int]] = {target}
        stack = [(target, iter(self.dependencies.get(target, ())))]
        while stack:
            cell, children = stack[-1]
            for child in children:
                if child not in seen and child not in done:
                    seen.add(child)
                    stack.append((child, iter(self.dependencies.get(child, ()))))
                    break
            else:
                stack.pop()
                order.append(cell)
        return order

    def has_cycle(self, target: tuple[int, int]) -> bool:
        """True when evaluating *target* would recurse forever.

        Only the subgraph reachable from *target* is searched, so a cycle
        elsewhere in the table does not count. A cell referencing itself is
        a cycle of length one.
        """
        if target in self._acyclic:
            return False

        state: dict[tuple[int, int], int] = {target: _IN_PROGRESS}
        stack = [(target, iter(self.dependencies.get(target, ())))]
        found = False
        while stack and not found:
            cell, children = stack[-1]
            for child in children:
                if child in self._acyclic:
                    continue
                seen = state.get(child)
                if seen == _IN_PROGRESS:
                    found = True
                    break
                if seen is None:
                    state[child] = _IN_PROGRESS
                    stack.append((child, iter(self.dependencies.get(child, ()))))
                    break
            else:
                stack.pop()
                state[cell] = _DONE

        # Finished cells had their whole subgraph searched without a back edge
        self._acyclic.update(c for c, s in state.items() if s == _DONE)
        return found

    @classmethod
    def from_table(cls, table: Mapping[tuple[int, int], str]) -> DependencyGraph:
        """Build the graph for a whole table.

        All cells become nodes first so references may point forward.
        """
        graph = cls()
        for index in table:
            graph.add_cell(index)
        for index, expression in table.items():
            graph.add_expression(index, expression)
        return graph
