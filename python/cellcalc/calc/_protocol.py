"""CalcEngine protocol and result dataclasses."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class CellFailure:
    """Why a single cell evaluated to ``#ERR``."""

    index: tuple[int, int]
    reference: str  # "b3", or "(row, col)" past column z
    kind: str  # error class name, e.g. "CycleDetected"
    message: str


@dataclass(frozen=True)
class SolveResult:
    """Outcome of evaluating a whole table."""

    solved: dict[tuple[int, int], str]  # row-major, one entry per input cell
    failures: dict[tuple[int, int], CellFailure] = field(default_factory=dict)
    total_cells: int = 0

    @property
    def error_cells(self) -> int:
        return len(self.failures)


@runtime_checkable
class CalcEngine(Protocol):
    """Protocol for table evaluation engines."""

    def load(self, table: Mapping[tuple[int, int], str]) -> None:
        """Take a coordinate-indexed table and build its dependency graph."""
        ...

    def calculate(self) -> dict[tuple[int, int], str]:
        """Evaluate every cell.

        Returns a dict of (row, col) -> result text for all loaded cells.
        """
        ...
