"""
Unit interpreter — exact conversions and partial-query completion.

Exact:   "10 feet to meters"  → 3.048
Partial: "10 fahr"            → "10 fahrenheit to celsius"

Both tokens of an exact query must resolve inside the SAME category; a
length-to-weight query is not an error, it is simply not a unit query.
"""

from __future__ import annotations

import math
import re

from .models import PartialUnitSuggestion, UnitConversion
from .normalizer import format_number, parse_amount
from .vocabulary import (
    DEFAULT_UNIT_TARGETS,
    UNIT_CATEGORIES,
    all_unit_names,
    canonical_unit,
)

_EXACT = re.compile(r"^([\d.,]+)\s*([a-z°]+)\s+(?:in|to)\s+([a-z°]+)$")
_PARTIAL = re.compile(r"^([\d.,]+)\s*([a-z°]+)$")

# Shortest fragment worth guessing from
MIN_FRAGMENT_LENGTH = 2


# ─── Temperature ─────────────────────────────────────────────────────


def convert_temperature(amount: float, from_unit: str, to_unit: str) -> float:
    """Pairwise formulas: the three scales share no common zero."""
    if from_unit == to_unit:
        return amount
    if from_unit == "celsius" and to_unit == "fahrenheit":
        return amount * 9 / 5 + 32
    if from_unit == "fahrenheit" and to_unit == "celsius":
        return (amount - 32) * 5 / 9
    if from_unit == "celsius" and to_unit == "kelvin":
        return amount + 273.15
    if from_unit == "kelvin" and to_unit == "celsius":
        return amount - 273.15
    if from_unit == "fahrenheit" and to_unit == "kelvin":
        return (amount - 32) * 5 / 9 + 273.15
    if from_unit == "kelvin" and to_unit == "fahrenheit":
        return (amount - 273.15) * 9 / 5 + 32
    raise ValueError(f"Not a temperature pair: {from_unit!r} → {to_unit!r}")


# ─── Public API ──────────────────────────────────────────────────────


def parse_unit_query(query: str) -> UnitConversion | None:
    """Parse and compute '<amount> <unit> (to|in) <unit>'.

    Returns:
        UnitConversion with the computed result, or None if the query is not
        a same-category unit conversion.
    """
    match = _EXACT.match(query.strip().lower())
    if match is None:
        return None

    amount = parse_amount(match.group(1))
    if amount is None:
        return None

    from_input, to_input = match.group(2), match.group(3)

    for category in UNIT_CATEGORIES:
        from_unit = category.resolve(from_input)
        to_unit = category.resolve(to_input)
        if from_unit is None or to_unit is None:
            continue

        if category.name == "temperature":
            result = convert_temperature(amount, from_unit, to_unit)
        else:
            result = amount * category.units[from_unit] / category.units[to_unit]

        if not math.isfinite(result):
            return None

        return UnitConversion(
            amount=amount,
            from_unit=from_unit,
            to_unit=to_unit,
            result=result,
            category=category.name,
        )

    return None


def parse_partial_unit_query(query: str) -> PartialUnitSuggestion | None:
    """Guess the completion of '<amount> <fragment>'.

    Candidates are unit names and aliases that start with the fragment and
    are longer than it. The shortest candidate wins, so "10 me" picks
    "meter" over "meters"; ties keep table order. No registered default
    target means no suggestion.
    """
    match = _PARTIAL.match(query.strip().lower())
    if match is None:
        return None

    amount = parse_amount(match.group(1))
    if amount is None or amount <= 0:
        return None

    fragment = match.group(2)
    if len(fragment) < MIN_FRAGMENT_LENGTH:
        return None

    candidates = [
        name for name in all_unit_names()
        if name.startswith(fragment) and name != fragment
    ]
    if not candidates:
        return None

    best = min(candidates, key=len)  # min() keeps the first of equal lengths

    from_unit = canonical_unit(best)
    if from_unit is None:
        return None

    to_unit = DEFAULT_UNIT_TARGETS.get(from_unit)
    if to_unit is None:
        return None

    return PartialUnitSuggestion(
        amount=amount,
        from_unit=from_unit,
        to_unit=to_unit,
        suggested_query=f"{format_number(amount)} {from_unit} to {to_unit}",
    )
