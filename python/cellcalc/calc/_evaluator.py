"""TableEvaluator: memoized bottom-up evaluation of a cell table.

Each cell is checked for circular references first, then resolved
recursively: referenced cells are evaluated (once each, via the shared
solved table), their values are spliced into the expression text, and the
resulting plain arithmetic goes to the arithmetic evaluator.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping

from cellcalc._utils import describe
from cellcalc.calc._arithmetic import evaluate_arithmetic, format_number
from cellcalc.calc._errors import (
    CalcError,
    CycleDetected,
    EvaluationFailure,
    ExpressionError,
    UnknownCell,
)
from cellcalc.calc._graph import DependencyGraph
from cellcalc.calc._parser import Reference, substitute_references
from cellcalc.calc._protocol import CellFailure, SolveResult

logger = logging.getLogger(__name__)

ERROR_MARKER = "#ERR"
EMPTY_VALUE = "0"


class TableEvaluator:
    """Evaluates every cell of a coordinate-indexed table.

    Usage::

        evaluator = TableEvaluator()
        evaluator.load({(0, 0): "3", (0, 1): "a1+2"})
        solved = evaluator.calculate()  # {(0, 0): "3", (0, 1): "5"}

    *arithmetic* evaluates a reference-free expression to a float and raises
    :class:`ExpressionError` when it cannot.
    """

    def __init__(
        self, arithmetic: Callable[[str], float] = evaluate_arithmetic
    ) -> None:
        self._arithmetic = arithmetic
        self._table: dict[tuple[int, int], str] = {}
        self._graph = DependencyGraph()
        self._solved: dict[tuple[int, int], str] = {}
        self._failures: dict[tuple[int, int], CalcError] = {}
        self._in_progress: set[tuple[int, int]] = set()
        self._loaded = False

    @property
    def graph(self) -> DependencyGraph:
        return self._graph

    def load(self, table: Mapping[tuple[int, int], str]) -> None:
        """Store the table in row-major order and build its dependency graph."""
        self._table = {index: table[index] for index in sorted(table)}
        self._graph = DependencyGraph.from_table(self._table)
        self._solved.clear()
        self._failures.clear()
        self._in_progress.clear()
        self._loaded = True

    def calculate(self) -> dict[tuple[int, int], str]:
        """Evaluate all cells in row-major order, dependencies first.

        Returns the solved table: every loaded cell maps to its numeric text
        or ``"#ERR"``. Failures are logged and kept for :meth:`result`.
        """
        if not self._loaded:
            raise RuntimeError("Call load() before calculate()")

        for index in self._table:
            if index in self._solved:
                continue
            if self._graph.has_cycle(index):
                self._fail(index, CycleDetected(
                    f"{describe(index)} is part of a circular reference chain",
                    index=index,
                ))
                continue
            # Dependencies first, so evaluate_cell only ever recurses into the memo
            for cell in self._graph.evaluation_order(index, done=self._solved):
                self._evaluate_contained(cell)

        return {index: self._solved[index] for index in self._table}

    def result(self) -> SolveResult:
        """Solved table plus the failures collected by :meth:`calculate`."""
        solved = self.calculate()
        failures = {
            index: CellFailure(
                index=index,
                reference=describe(index),
                kind=type(err).__name__,
                message=str(err),
            )
            for index, err in sorted(self._failures.items())
        }
        return SolveResult(
            solved=solved,
            failures=failures,
            total_cells=len(solved),
        )

    # ------------------------------------------------------------------
    # Recursive evaluation
    # ------------------------------------------------------------------

    def evaluate_cell(self, index: tuple[int, int]) -> str:
        """Evaluate one cell, resolving its references first.

        The caller must already have ruled out a cycle through *index*.
        Returns the value text; on failure ``"#ERR"`` is recorded for the
        cell before the :class:`CalcError` propagates.
        """
        cached = self._solved.get(index)
        if cached == ERROR_MARKER:
            raise self._failures.get(index) or EvaluationFailure(
                f"{describe(index)} failed", index=index,
            )
        if cached is not None:
            return cached

        expression = self._table.get(index)
        if expression is None:
            raise UnknownCell(f"{describe(index)} is not in the table", index=index)

        build_error = self._graph.errors.get(index)
        if build_error is not None:
            self._fail(index, build_error)
            raise build_error

        if not expression.strip():
            self._solved[index] = EMPTY_VALUE
            return EMPTY_VALUE

        if index in self._in_progress:
            raise RuntimeError(
                f"Circular reference through {describe(index)} escaped cycle detection"
            )
        self._in_progress.add(index)
        try:
            value = self._evaluate_expression(index, expression)
        finally:
            self._in_progress.discard(index)

        self._solved[index] = value
        logger.debug("%s = %s", describe(index), value)
        return value

    def _evaluate_expression(self, index: tuple[int, int], expression: str) -> str:
        def resolve(ref: Reference) -> str:
            try:
                return self.evaluate_cell(ref.index)
            except CalcError as e:
                err = EvaluationFailure(
                    f"{describe(index)} depends on {ref.text}, which failed",
                    index=index,
                    expression=expression,
                )
                self._fail(index, err)
                raise err from e

        dereferenced = substitute_references(expression, resolve)
        try:
            result = self._arithmetic(dereferenced)
        except ExpressionError as e:
            err = EvaluationFailure(
                f"{describe(index)}: cannot evaluate {dereferenced!r} ({e})",
                index=index,
                expression=dereferenced,
            )
            self._fail(index, err)
            raise err from e
        return format_number(result)

    def _evaluate_contained(self, index: tuple[int, int]) -> None:
        if index in self._solved:
            return
        try:
            self.evaluate_cell(index)
        except CalcError:
            # Already recorded as #ERR by evaluate_cell
            pass
        except RecursionError:
            self._fail(index, EvaluationFailure(
                f"{describe(index)} is nested too deeply to evaluate",
                index=index,
            ))

    def _fail(self, index: tuple[int, int], err: CalcError) -> None:
        self._solved[index] = ERROR_MARKER
        self._failures[index] = err
        logger.warning("%s", err)
