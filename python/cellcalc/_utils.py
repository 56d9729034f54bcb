"""Coordinate helpers: zero-based ``(row, col)`` <-> ``"a1"`` references."""

from __future__ import annotations

from cellcalc.calc._errors import IndexOutOfRange, InvalidReference

_COLUMN_LETTERS = "abcdefghijklmnopqrstuvwxyz"


def index_to_reference(index: tuple[int, int]) -> str:
    """Convert a table index to a cell reference, e.g. ``(3, 5) -> "f4"``."""
    row, col = index
    if not 0 <= col < len(_COLUMN_LETTERS) or row < 0:
        raise IndexOutOfRange("Index out of bounds", index=index)
    return f"{_COLUMN_LETTERS[col]}{row + 1}"


def reference_to_index(reference: str) -> tuple[int, int]:
    """Convert a cell reference to a table index, e.g. ``"e7" -> (6, 4)``.

    The column letter is case-insensitive. Rows are 1-based in text, so
    ``"a0"`` is rejected along with anything that is not one letter
    followed by decimal digits.
    """
    letter = reference[:1].lower()
    digits = reference[1:]
    col = _COLUMN_LETTERS.find(letter) if letter else -1
    if col < 0 or not digits.isascii() or not digits.isdigit():
        raise InvalidReference(f"Unable to parse cell reference: {reference}")
    row = int(digits)
    if row == 0:
        raise InvalidReference(f"Unable to parse cell reference: {reference}")
    return (row - 1, col)


def describe(index: tuple[int, int]) -> str:
    """Label for log and error messages; falls back to ``(row, col)``."""
    try:
        return index_to_reference(index)
    except IndexOutOfRange:
        return f"({index[0]}, {index[1]})"
