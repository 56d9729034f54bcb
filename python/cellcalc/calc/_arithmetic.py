"""Arithmetic evaluator for fully-dereferenced cell expressions.

Input holds only numeric literals, ``+ - * /``, parentheses and whitespace.
Evaluation is recursive descent: split at every lowest-precedence operator
outside parentheses, evaluate the operands, fold them left to right.
Anything that does not reduce to a finite number raises :class:`ExpressionError`.
"""

from __future__ import annotations

import math
import re

from cellcalc.calc._errors import ExpressionError

_NUMBER_RE = re.compile(r"(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def _find_matching_paren(expr: str, start: int) -> int:
    """Index of the ``')'`` matching the ``'('`` at *expr[start]*, or -1."""
    depth = 1
    for i in range(start + 1, len(expr)):
        ch = expr[i]
        if ch == '(':
            depth += 1
        elif ch == ')':
            depth -= 1
            if depth == 0:
                return i
    return -1


def _is_binary(expr: str, i: int) -> bool:
    """True when the operator at *expr[i]* joins two operands."""
    # Preceding non-space character decides binary vs unary
    j = i - 1
    while j >= 0 and expr[j] == ' ':
        j -= 1
    if j < 0 or expr[j] in ('(', '+', '-', '*', '/'):
        return False
    # 2.5e-1: sign belongs to the exponent
    if expr[i] in ('+', '-') and j >= 1 and expr[j] in ('e', 'E') and expr[j - 1].isdigit():
        return False
    return True


def _split_terms(expr: str, ops: tuple[str, ...]) -> list[tuple[str, str]] | None:
    """Split *expr* at every binary operator in *ops* at paren depth 0.

    Returns ``[('', first), (op, operand), ...]`` in source order, or
    ``None`` when there is no such operator.
    """
    terms: list[tuple[str, str]] = []
    depth = 0
    start = 0
    pending = ''
    for i, ch in enumerate(expr):
        if ch == '(':
            depth += 1
        elif ch == ')':
            depth -= 1
        elif depth == 0 and i > 0 and ch in ops and _is_binary(expr, i):
            terms.append((pending, expr[start:i]))
            pending = ch
            start = i + 1
    if not terms:
        return None
    terms.append((pending, expr[start:]))
    return terms


def _apply(left: float, op: str, right: float) -> float:
    if op == '+':
        return left + right
    if op == '-':
        return left - right
    if op == '*':
        return left * right
    if right == 0:
        raise ExpressionError("division by zero")
    return left / right


def _eval(expr: str) -> float:
    expr = expr.strip()
    if not expr:
        raise ExpressionError("missing operand")

    for ops in (('+', '-'), ('*', '/')):
        terms = _split_terms(expr, ops)
        if terms:
            result = _eval(terms[0][1])
            for op, operand in terms[1:]:
                result = _apply(result, op, _eval(operand))
            return result

    if expr.startswith('('):
        close = _find_matching_paren(expr, 0)
        if close == len(expr) - 1:
            return _eval(expr[1:close])
        raise ExpressionError(f"unbalanced parentheses in {expr!r}")

    if expr.startswith('-'):
        return -_eval(expr[1:])
    if expr.startswith('+'):
        return _eval(expr[1:])

    if _NUMBER_RE.fullmatch(expr):
        return float(expr)
    raise ExpressionError(f"cannot evaluate {expr!r}")


def evaluate_arithmetic(expression: str) -> float:
    """Evaluate an arithmetic expression, e.g. ``"3 + 4 * (2 - 1)" -> 7.0``.

    Raises :class:`ExpressionError` for malformed input, division by zero,
    or a result that is not finite.
    """
    try:
        result = _eval(expression)
    except RecursionError as e:
        raise ExpressionError(f"expression nested too deeply: {expression[:40]!r}") from e
    if not math.isfinite(result):
        raise ExpressionError(f"non-finite result for {expression!r}")
    return result


def format_number(value: float) -> str:
    """Render a result as cell text: ``5.0 -> "5"``, ``2.5 -> "2.5"``."""
    if value == int(value):
        return str(int(value))
    return repr(value)
