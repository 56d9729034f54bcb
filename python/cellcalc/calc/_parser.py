"""Reference extraction and substitution for cell expressions."""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import NamedTuple

from cellcalc._utils import reference_to_index

# ---------------------------------------------------------------------------
# Regex pattern for cell references
# ---------------------------------------------------------------------------

# One ASCII letter followed by one or more ASCII digits: a4, H2, u14
_REFERENCE_RE = re.compile(r"[a-z][0-9]+", re.IGNORECASE)


class Reference(NamedTuple):
    """A reference found in an expression: its text and resolved index."""

    text: str
    index: tuple[int, int]


def extract_references(expression: str) -> list[Reference]:
    """Extract every cell reference from an expression, left to right.

    Duplicates are kept, so ``"a1 + a1"`` yields two entries. Raises
    :class:`~cellcalc.calc.InvalidReference` if a match does not decode,
    e.g. ``"a0"``.
    """
    return [
        Reference(m.group(0), reference_to_index(m.group(0)))
        for m in _REFERENCE_RE.finditer(expression)
    ]


def substitute_references(
    expression: str, resolve: Callable[[Reference], str]
) -> str:
    """Replace each reference in *expression* with ``resolve(reference)``.

    Every match is rewritten at its own position exactly once, so a shorter
    reference never clobbers a longer one (``a1`` inside ``a10``).
    """

    def _replace(m: re.Match[str]) -> str:
        text = m.group(0)
        return resolve(Reference(text, reference_to_index(text)))

    return _REFERENCE_RE.sub(_replace, expression)
