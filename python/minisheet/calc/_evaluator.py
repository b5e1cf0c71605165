"""Arithmetic expression evaluator for substituted formula bodies.

Once every reference has been replaced by a parenthesised number, a formula
body is plain arithmetic: numbers, parentheses, unary ``+``/``-`` and the
binary operators ``+ - * /``. Evaluation is recursive descent over that text:
split at the rightmost lowest-precedence operator at paren depth 0, recurse
on both sides, bottom out at parenthesised groups, unary signs and numbers.

Division by zero follows IEEE-754 instead of raising, so ``1/0`` is ``inf``
and ``0/0`` is ``nan``.
"""

from __future__ import annotations

import math
import re

from minisheet.calc._values import normalize_number

# Everything a substituted body may contain.
_ALPHABET_RE = re.compile(r"[-+*/().\d\s]+")
_NUMBER_RE = re.compile(r"\d+\.?\d*|\.\d+")

_OPERATORS = ("+", "-", "*", "/")


class FormulaError(ValueError):
    """A formula body could not be evaluated to a number."""


def check_alphabet(expr: str) -> None:
    """Raise FormulaError unless *expr* is made only of arithmetic characters."""
    if not _ALPHABET_RE.fullmatch(expr):
        raise FormulaError("Invalid formula")


# ---------------------------------------------------------------------------
# Expression parsing helpers
# ---------------------------------------------------------------------------


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


def _check_balanced(expr: str) -> None:
    depth = 0
    for ch in expr:
        if ch == '(':
            depth += 1
        elif ch == ')':
            depth -= 1
            if depth < 0:
                raise FormulaError("Unbalanced parentheses: unexpected ')'")
    if depth:
        raise FormulaError("Unbalanced parentheses: missing ')'")


def _find_top_level_split(expr: str) -> tuple[str, str, str] | None:
    """Find the rightmost lowest-precedence binary operator at paren depth 0.

    Additive operators are tried before multiplicative ones, and the
    right-to-left scan gives left-to-right associativity. An operator whose
    nearest non-space left neighbour is another operator, ``(`` or the start
    of the text is a unary sign, not a split point.

    Returns ``(left, op, right)`` or ``None``.
    """
    for ops in (('+', '-'), ('*', '/')):
        depth = 0
        for i in range(len(expr) - 1, 0, -1):
            ch = expr[i]
            if ch == ')':
                depth += 1
                continue
            if ch == '(':
                depth -= 1
                continue
            if depth != 0 or ch not in ops:
                continue

            j = i - 1
            while j >= 0 and expr[j].isspace():
                j -= 1
            if j < 0 or expr[j] in _OPERATORS or expr[j] == '(':
                continue

            left = expr[:i].strip()
            right = expr[i + 1:].strip()
            if not right:
                raise FormulaError(f"Missing operand after '{ch}'")
            return (left, ch, right)

    return None


def _divide(left: float, right: float) -> float:
    if right != 0:
        return left / right
    if left == 0 or math.isnan(left):
        return math.nan
    return math.copysign(math.inf, left) * math.copysign(1.0, right)


def _binary_op(left: float, op: str, right: float) -> float:
    if op == '+':
        return left + right
    if op == '-':
        return left - right
    if op == '*':
        return left * right
    return _divide(left, right)


def _eval_expr(expr: str) -> float:
    """Recursively evaluate an arithmetic expression.

    Dispatch order (first match wins):

    1. Binary split at top level (additive, then multiplicative)
    2. Parenthesised sub-expression ``(...)``
    3. Unary minus / plus
    4. Numeric literal
    """
    expr = expr.strip()
    if not expr:
        raise FormulaError("Missing operand")

    # 1. Binary split
    split = _find_top_level_split(expr)
    if split:
        left_str, op, right_str = split
        return _binary_op(_eval_expr(left_str), op, _eval_expr(right_str))

    # 2. Parenthesised sub-expression: (expr)
    if expr.startswith('('):
        close = _find_matching_paren(expr, 0)
        if close == len(expr) - 1:
            return _eval_expr(expr[1:close])
        raise FormulaError(f"Unexpected text after ')': {expr[close + 1:].strip()!r}")

    # 3. Unary minus / plus
    if expr[0] == '-':
        return -_eval_expr(expr[1:])
    if expr[0] == '+':
        return _eval_expr(expr[1:])

    # 4. Numeric literal
    if _NUMBER_RE.fullmatch(expr):
        return float(expr)

    raise FormulaError(f"Malformed expression: {expr!r}")


def evaluate(expr: str) -> float | int:
    """Evaluate a substituted formula body.

    Raises FormulaError for characters outside the arithmetic alphabet and
    for malformed expressions. The result is an ``int`` when it is finite
    and integral, else a ``float`` (possibly ``inf`` or ``nan``).
    """
    check_alphabet(expr)
    _check_balanced(expr)
    return normalize_number(_eval_expr(expr))
