"""Error kinds raised by the calc engine.

Every per-cell failure derives from :class:`CalcError` so the table engine
can contain it to the cell that raised it. :class:`TableError` is the only
error meant to stop a whole run.
"""

from __future__ import annotations


class CalcError(ValueError):
    """Base class for failures scoped to a single cell."""

    def __init__(self, message: str, index: tuple[int, int] | None = None) -> None:
        super().__init__(message)
        self.index = index


class IndexOutOfRange(CalcError):
    """A coordinate's column cannot be written as a reference letter."""


class InvalidReference(CalcError):
    """Reference text cannot be decoded to a coordinate."""


class DanglingReference(CalcError):
    """A cell references a coordinate that is not in the table."""


class UnknownCell(CalcError):
    """The evaluator was asked for a coordinate with no table entry."""


class CycleDetected(CalcError):
    """The cell lies on, or depends on, a circular reference chain."""


class EvaluationFailure(CalcError):
    """The dereferenced expression could not be computed."""

    def __init__(
        self,
        message: str,
        index: tuple[int, int] | None = None,
        expression: str | None = None,
    ) -> None:
        super().__init__(message, index=index)
        self.expression = expression


class ExpressionError(ValueError):
    """Raised by the arithmetic evaluator for malformed or unevaluable input."""


class TableError(Exception):
    """The input table could not be read."""
