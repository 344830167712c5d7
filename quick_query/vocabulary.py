"""
Static vocabulary tables: units, currency aliases, default completions.

The tables are read-only (MappingProxyType) and validated once at import.
A broken alias is a data bug, so it fails the import instead of surfacing as
a wrong answer under the search box.

Namespaces:
  - unit names and aliases must be unique ACROSS all unit categories
  - currency aliases are a separate namespace ("pound" is both a weight and
    a currency, and that is fine)
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from .exceptions import VocabularyIntegrityError


# ─── Data Structures ────────────────────────────────────────────────


@dataclass(frozen=True)
class UnitCategory:
    """One dimension of measurement.

    `units` maps canonical name → multiplier to the category's base unit.
    Temperature ignores the multipliers and uses pairwise formulas instead.
    """

    name: str
    units: Mapping[str, float]
    aliases: Mapping[str, str]

    def resolve(self, token: str) -> str | None:
        """Canonical unit for an alias or canonical name in this category."""
        if token in self.units:
            return token
        return self.aliases.get(token)


def _category(name: str, units: dict[str, float], aliases: dict[str, str]) -> UnitCategory:
    return UnitCategory(name, MappingProxyType(units), MappingProxyType(aliases))


# ─── Unit Categories ────────────────────────────────────────────────

UNIT_CATEGORIES: tuple[UnitCategory, ...] = (
    _category(
        "length",
        {
            "meters": 1,
            "kilometers": 1000,
            "centimeters": 0.01,
            "millimeters": 0.001,
            "miles": 1609.344,
            "yards": 0.9144,
            "feet": 0.3048,
            "inches": 0.0254,
        },
        {
            "m": "meters", "meter": "meters", "metre": "meters", "metres": "meters",
            "km": "kilometers", "kilometer": "kilometers",
            "kilometre": "kilometers", "kilometres": "kilometers",
            "cm": "centimeters", "centimeter": "centimeters",
            "mm": "millimeters", "millimeter": "millimeters",
            "mi": "miles", "mile": "miles",
            "yd": "yards", "yard": "yards",
            "ft": "feet", "foot": "feet",
            "in": "inches", "inch": "inches",
        },
    ),
    _category(
        "weight",
        {
            "kilograms": 1,
            "grams": 0.001,
            "milligrams": 0.000001,
            "pounds": 0.453592,
            "ounces": 0.0283495,
            "tons": 1000,
        },
        {
            "kg": "kilograms", "kilogram": "kilograms", "kilo": "kilograms", "kilos": "kilograms",
            "g": "grams", "gram": "grams",
            "mg": "milligrams", "milligram": "milligrams",
            "lb": "pounds", "lbs": "pounds", "pound": "pounds",
            "oz": "ounces", "ounce": "ounces",
            "ton": "tons", "t": "tons",
        },
    ),
    _category(
        "temperature",
        {"celsius": 1, "fahrenheit": 1, "kelvin": 1},
        {
            "c": "celsius", "°c": "celsius",
            "f": "fahrenheit", "°f": "fahrenheit",
            "k": "kelvin",
        },
    ),
    _category(
        "volume",
        {
            "liters": 1,
            "milliliters": 0.001,
            "gallons": 3.78541,
            "quarts": 0.946353,
            "pints": 0.473176,
            "cups": 0.236588,
        },
        {
            "l": "liters", "liter": "liters", "litre": "liters", "litres": "liters",
            "ml": "milliliters", "milliliter": "milliliters",
            "gal": "gallons", "gallon": "gallons",
            "qt": "quarts", "quart": "quarts",
            "pt": "pints", "pint": "pints",
            "cup": "cups",
        },
    ),
    _category(
        "time",
        {
            "seconds": 1,
            "minutes": 60,
            "hours": 3600,
            "days": 86400,
            "weeks": 604800,
        },
        {
            "s": "seconds", "sec": "seconds", "second": "seconds",
            "min": "minutes", "minute": "minutes", "mins": "minutes",
            "h": "hours", "hr": "hours", "hour": "hours", "hrs": "hours",
            "d": "days", "day": "days",
            "w": "weeks", "week": "weeks", "wk": "weeks",
        },
    ),
)

# Most natural conversion target for a bare quantity ("10 fahr" → celsius)
DEFAULT_UNIT_TARGETS: Mapping[str, str] = MappingProxyType({
    # Length: metric ↔ imperial
    "meters": "feet", "feet": "meters", "kilometers": "miles", "miles": "kilometers",
    "centimeters": "inches", "inches": "centimeters", "millimeters": "inches",
    "yards": "meters",
    # Weight
    "kilograms": "pounds", "pounds": "kilograms", "grams": "ounces", "ounces": "grams",
    "milligrams": "grams", "tons": "pounds",
    # Temperature
    "fahrenheit": "celsius", "celsius": "fahrenheit", "kelvin": "celsius",
    # Volume
    "liters": "gallons", "gallons": "liters", "milliliters": "cups",
    "cups": "milliliters", "quarts": "liters", "pints": "liters",
    # Time
    "seconds": "minutes", "minutes": "hours", "hours": "minutes",
    "days": "hours", "weeks": "days",
})


# ─── Currencies ─────────────────────────────────────────────────────

CURRENCY_ALIASES: Mapping[str, str] = MappingProxyType({
    # Names to codes
    "dollar": "USD", "dollars": "USD", "usd": "USD",
    "euro": "EUR", "euros": "EUR", "eur": "EUR",
    "pound": "GBP", "pounds": "GBP", "gbp": "GBP", "sterling": "GBP",
    "yen": "JPY", "jpy": "JPY",
    "yuan": "CNY", "cny": "CNY", "rmb": "CNY", "renminbi": "CNY",
    "won": "KRW", "krw": "KRW",
    "rupee": "INR", "rupees": "INR", "inr": "INR",
    "franc": "CHF", "francs": "CHF", "chf": "CHF",
    "real": "BRL", "reais": "BRL", "brl": "BRL",
    "peso": "MXN", "pesos": "MXN", "mxn": "MXN",
    "ruble": "RUB", "rubles": "RUB", "rub": "RUB",
    "lira": "TRY", "try": "TRY",
    "rand": "ZAR", "zar": "ZAR",
    "krona": "SEK", "kronor": "SEK", "sek": "SEK",
    "krone": "NOK", "kroner": "NOK", "nok": "NOK",
    # Direct codes
    "aud": "AUD", "cad": "CAD", "nzd": "NZD", "sgd": "SGD", "hkd": "HKD",
    "dkk": "DKK", "pln": "PLN", "czk": "CZK", "huf": "HUF", "ils": "ILS",
    "thb": "THB", "myr": "MYR", "php": "PHP", "idr": "IDR",
})

_ISO_CODE = re.compile(r"^[A-Z]{3}$")


# ─── Lookups ─────────────────────────────────────────────────────────


def all_unit_names() -> list[str]:
    """Every canonical unit name and alias, in table order, without duplicates."""
    names: list[str] = []
    for category in UNIT_CATEGORIES:
        names.extend(category.units)
        names.extend(category.aliases)
    return list(dict.fromkeys(names))


def canonical_unit(token: str) -> str | None:
    for category in UNIT_CATEGORIES:
        unit = category.resolve(token)
        if unit is not None:
            return unit
    return None


def category_of(unit: str) -> UnitCategory | None:
    for category in UNIT_CATEGORIES:
        if unit in category.units:
            return category
    return None


def is_iso_code(code: str) -> bool:
    return bool(_ISO_CODE.match(code))


# ─── Integrity Check ─────────────────────────────────────────────────


def validate_vocabulary() -> None:
    """Check every table invariant.

    Raises:
        VocabularyIntegrityError: On the first broken invariant found.
    """
    owner: dict[str, str] = {}

    for category in UNIT_CATEGORIES:
        for alias, unit in category.aliases.items():
            if unit not in category.units:
                raise VocabularyIntegrityError(
                    f"Alias {alias!r} in {category.name!r} points at unknown unit {unit!r}",
                    {"category": category.name, "alias": alias, "unit": unit},
                )

        for name in list(category.units) + list(category.aliases):
            previous = owner.setdefault(name, category.name)
            if previous != category.name:
                raise VocabularyIntegrityError(
                    f"Unit name {name!r} is claimed by both {previous!r} and {category.name!r}",
                    {"name": name, "categories": [previous, category.name]},
                )

    for source, target in DEFAULT_UNIT_TARGETS.items():
        source_category = category_of(source)
        if source_category is None or target not in source_category.units:
            raise VocabularyIntegrityError(
                f"Default target {source!r} → {target!r} crosses categories or names an unknown unit",
                {"source": source, "target": target},
            )

    for alias, code in CURRENCY_ALIASES.items():
        if not is_iso_code(code):
            raise VocabularyIntegrityError(
                f"Currency alias {alias!r} maps to non-ISO code {code!r}",
                {"alias": alias, "code": code},
            )


validate_vocabulary()
