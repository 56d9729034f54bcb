"""cellcalc.calc - Dependency-ordered evaluation engine for cell tables."""

from cellcalc.calc._arithmetic import evaluate_arithmetic, format_number
from cellcalc.calc._errors import (
    CalcError,
    CycleDetected,
    DanglingReference,
    EvaluationFailure,
    ExpressionError,
    IndexOutOfRange,
    InvalidReference,
    TableError,
    UnknownCell,
)
from cellcalc.calc._evaluator import EMPTY_VALUE, ERROR_MARKER, TableEvaluator
from cellcalc.calc._graph import DependencyGraph
from cellcalc.calc._parser import Reference, extract_references, substitute_references
from cellcalc.calc._protocol import CalcEngine, CellFailure, SolveResult

__all__ = [
    "CalcEngine",
    "CalcError",
    "CellFailure",
    "CycleDetected",
    "DanglingReference",
    "DependencyGraph",
    "EMPTY_VALUE",
    "ERROR_MARKER",
    "EvaluationFailure",
    "ExpressionError",
    "IndexOutOfRange",
    "InvalidReference",
    "Reference",
    "SolveResult",
    "TableError",
    "TableEvaluator",
    "UnknownCell",
    "evaluate_arithmetic",
    "extract_references",
    "format_number",
    "substitute_references",
]
