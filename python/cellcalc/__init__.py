"""cellcalc: evaluate tables of cells that reference each other.

Usage::

    from cellcalc import read_table, solve, write_table

    table = read_table("sheet.csv")  # {(0, 0): "3", (0, 1): "a1+2"}
    solved = solve(table)  # {(0, 0): "3", (0, 1): "5"}
    write_table(solved, sys.stdout)  # 3,5

Cells reference each other as ``a1``..``z<n>``: one column letter and a
1-based row number. Cells that cannot be evaluated come out as ``#ERR``.
"""

from __future__ import annotations

from collections.abc import Mapping

from cellcalc._table import format_table, parse_table, read_table, table_from_rows, write_table
from cellcalc._utils import index_to_reference, reference_to_index
from cellcalc.calc import ERROR_MARKER, SolveResult, TableEvaluator

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "ERROR_MARKER",
    "SolveResult",
    "TableEvaluator",
    "format_table",
    "index_to_reference",
    "parse_table",
    "read_table",
    "reference_to_index",
    "solve",
    "table_from_rows",
    "write_table",
]


def solve(table: Mapping[tuple[int, int], str]) -> dict[tuple[int, int], str]:
    """Evaluate every cell of *table* and return the solved table."""
    evaluator = TableEvaluator()
    evaluator.load(table)
    return evaluator.calculate()
