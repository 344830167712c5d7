"""
Lexical normalization and number formatting shared by every interpreter.

Two number formats exist and only two:
  - plain decimal ("1234.5") for suggested queries and clipboard values
  - grouped decimal, de-DE convention ("1.234,5") for display
"""

from __future__ import annotations

import math


def normalize(raw: str) -> str:
    """Lowercase and trim. Internal whitespace is left alone."""
    if not raw:
        return ""
    return raw.strip().lower()


def parse_amount(text: str) -> float | None:
    """Parse the leading amount of a query.

    A single decimal comma is accepted ("2,5" → 2.5). Anything float() cannot
    read, such as "1.2.3", is rejected rather than truncated.
    """
    try:
        value = float(text.replace(",", ".", 1))
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def format_number(value: float) -> str:
    """Plain decimal rendering: integral values drop the fractional part."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def format_grouped(
    value: float, max_fraction_digits: int = 10, min_fraction_digits: int = 0
) -> str:
    """Render with '.' thousands grouping and ',' as decimal separator.

    Example:
        format_grouped(1234567.891)   → "1.234.567,891"
        format_grouped(4.0)           → "4"
        format_grouped(3.5, 2, 2)     → "3,50"
    """
    rounded = round(value, max_fraction_digits)
    if rounded == 0:
        rounded = 0.0  # No "-0"

    text = f"{rounded:,.{max_fraction_digits}f}"
    integer, _, fraction = text.partition(".")
    fraction = fraction.rstrip("0").ljust(min_fraction_digits, "0")
    integer = integer.replace(",", ".")

    return f"{integer},{fraction}" if fraction else integer


def ungroup(display: str) -> str:
    """Inverse of format_grouped: '1.234,5' → '1234.5'."""
    return display.replace(".", "").replace(",", ".")
