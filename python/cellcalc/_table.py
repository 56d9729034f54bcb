"""Table I/O: delimited text <-> coordinate-indexed tables.

A table maps zero-based ``(row, col)`` to raw cell text and is kept in
row-major order, which :func:`format_table` relies on to group rows.
"""

from __future__ import annotations

import csv
import io
import logging
import os
from collections.abc import Iterable, Mapping
from itertools import groupby
from typing import TextIO

from cellcalc.calc._errors import TableError

logger = logging.getLogger(__name__)


def table_from_rows(rows: Iterable[Iterable[str]]) -> dict[tuple[int, int], str]:
    """Index rows of fields by ``(row, col)``.

    Rows may have different lengths. Empty records are skipped without
    taking a row number, the same way blank lines are skipped on read.
    """
    table: dict[tuple[int, int], str] = {}
    row = 0
    for record in rows:
        fields = list(record)
        if not fields:
            continue
        for col, value in enumerate(fields):
            table[(row, col)] = value
        row += 1
    return table


def parse_table(text: str, delimiter: str = ",") -> dict[tuple[int, int], str]:
    """Parse delimited text into a table."""
    try:
        return table_from_rows(csv.reader(io.StringIO(text), delimiter=delimiter))
    except csv.Error as e:
        raise TableError(f"Malformed table: {e}") from e


def read_table(
    path: str | os.PathLike[str], delimiter: str = ","
) -> dict[tuple[int, int], str]:
    """Read a delimited text file into a table.

    Raises :class:`~cellcalc.calc.TableError` if the file cannot be read or
    parsed.
    """
    try:
        with open(path, newline="", encoding="utf-8") as f:
            table = table_from_rows(csv.reader(f, delimiter=delimiter))
    except OSError as e:
        raise TableError(f"Cannot read {os.fspath(path)}: {e.strerror or e}") from e
    except (csv.Error, UnicodeDecodeError) as e:
        raise TableError(f"Malformed table in {os.fspath(path)}: {e}") from e
    logger.debug("Loaded %d cells from %s", len(table), os.fspath(path))
    return table


def format_table(solved: Mapping[tuple[int, int], str], delimiter: str = ",") -> str:
    """Render a solved table, one line per row, fields in column order."""
    lines = []
    for _, cells in groupby(sorted(solved.items()), key=lambda item: item[0][0]):
        lines.append(delimiter.join(value for _, value in cells))
    return "\n".join(lines)


def write_table(
    solved: Mapping[tuple[int, int], str], stream: TextIO, delimiter: str = ","
) -> None:
    """Write :func:`format_table` output plus a trailing newline to *stream*."""
    text = format_table(solved, delimiter)
    if text:
        stream.write(text + "\n")
