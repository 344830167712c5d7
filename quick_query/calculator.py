"""
Arithmetic interpreter — a tiny recursive-descent evaluator.

Nothing is ever handed to eval(). The grammar knows numbers, parentheses and
five operators, so there is no way to reach program state from the search box.

Grammar (lowest to highest precedence):
    expr    := term (('+' | '-') term)*
    term    := unary (('*' | '/') unary)*
    unary   := ('+' | '-') unary | power
    power   := primary ('^' unary)?          right-associative
    primary := NUMBER | '(' expr ')'

Like Python's **, '^' binds tighter than a unary minus on its left:
"-2^2" is -4.
"""

from __future__ import annotations

import math
import re

from .exceptions import ExpressionError
from .normalizer import format_grouped

_ALLOWED = re.compile(r"^[\d.+\-*/^()]+$")
_OPERATORS = frozenset("+-*/^")
_NUMBER = re.compile(r"\d+(?:\.\d*)?|\.\d+")


# ─── Public API ──────────────────────────────────────────────────────


def evaluate_expression(expr: str) -> str | None:
    """Evaluate an arithmetic query and format it for display.

    Returns:
        The de-DE grouped result ("1.234,5"), or None when the input is not
        an arithmetic expression or has no finite value.

    Example:
        evaluate_expression("2+2")      → "4"
        evaluate_expression("10/3")     → "3,3333333333"
        evaluate_expression("alert(1)") → None
    """
    cleaned = re.sub(r"\s", "", expr)
    if not cleaned or not _ALLOWED.match(cleaned):
        return None

    # A bare (or signed) number belongs to the unit/currency interpreters
    if not any(ch in _OPERATORS for ch in cleaned.lstrip("+-(")):
        return None

    try:
        value = _Parser(cleaned).parse()
    except (ExpressionError, ZeroDivisionError, OverflowError, ValueError, RecursionError):
        return None

    if not math.isfinite(value):
        return None

    return format_grouped(value, max_fraction_digits=10)


# ─── Parser ──────────────────────────────────────────────────────────


class _Parser:
    """Single-use parser over a whitespace-free expression string."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def parse(self) -> float:
        value = self._expr()
        if self.pos != len(self.text):
            raise ExpressionError(
                f"Unexpected {self.text[self.pos]!r} at position {self.pos}",
                {"expression": self.text, "position": self.pos},
            )
        return value

    def _peek(self) -> str | None:
        return self.text[self.pos] if self.pos < len(self.text) else None

    def _expr(self) -> float:
        value = self._term()
        while self._peek() in ("+", "-"):
            op = self.text[self.pos]
            self.pos += 1
            rhs = self._term()
            value = value + rhs if op == "+" else value - rhs
        return value

    def _term(self) -> float:
        value = self._unary()
        while self._peek() in ("*", "/"):
            op = self.text[self.pos]
            self.pos += 1
            rhs = self._unary()
            value = value * rhs if op == "*" else value / rhs
        return value

    def _unary(self) -> float:
        ch = self._peek()
        if ch in ("+", "-"):
            self.pos += 1
            operand = self._unary()
            return -operand if ch == "-" else operand
        return self._power()

    def _power(self) -> float:
        base = self._primary()
        if self._peek() == "^":
            self.pos += 1
            # math.pow raises instead of returning complex or inf
            return math.pow(base, self._unary())
        return base

    def _primary(self) -> float:
        if self._peek() == "(":
            self.pos += 1
            value = self._expr()
            if self._peek() != ")":
                raise ExpressionError("Unbalanced parenthesis", {"expression": self.text})
            self.pos += 1
            return value

        match = _NUMBER.match(self.text, self.pos)
        if match is None:
            raise ExpressionError(
                f"Expected a number at position {self.pos}",
                {"expression": self.text, "position": self.pos},
            )
        self.pos = match.end()
        return float(match.group())
