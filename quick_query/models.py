"""
Pydantic models for query results — the contract between engine and UI.

Interpreters return these (or None). Nothing here is persisted; every model
lives for one keystroke at most.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# ─── Enumerations ───────────────────────────────────────────────────


class ResultKind(str, Enum):
    """Which interpreter produced a QuickResult."""

    CALCULATOR = "calculator"
    UNIT = "unit"
    CURRENCY = "currency"
    COLOR = "color"


class ColorFormat(str, Enum):
    """Supported color notations. RGB is also the conversion pivot."""

    HEX = "hex"
    RGB = "rgb"
    HSL = "hsl"
    HSV = "hsv"
    OKLCH = "oklch"
    CMYK = "cmyk"
    LAB = "lab"
    XYZ = "xyz"


# ─── Engine Output ──────────────────────────────────────────────────


class QuickResult(BaseModel):
    """The single answer rendered under the search box.

    `is_preview` is True only when a partial interpreter guessed the rest of
    the query; the UI must render those differently from exact answers.
    """

    model_config = ConfigDict(frozen=True)

    kind: ResultKind
    display_query: str
    display_value: str
    copy_value: str  # Plain, parseable form for the clipboard
    is_preview: bool = False
    color_swatch: Optional[str] = None  # "#RRGGBB", color results only


# ─── Unit Interpreter ───────────────────────────────────────────────


class UnitConversion(BaseModel):
    """A fully specified unit conversion, already computed."""

    amount: float
    from_unit: str
    to_unit: str
    result: float
    category: str


class PartialUnitSuggestion(BaseModel):
    """A guessed completion for '<amount> <fragment>'."""

    amount: float
    from_unit: str
    to_unit: str
    suggested_query: str


# ─── Currency Interpreter ───────────────────────────────────────────


class CurrencyQuery(BaseModel):
    """A fully specified currency conversion, waiting on a rate."""

    model_config = ConfigDict(frozen=True)

    amount: float
    from_code: str = Field(min_length=3, max_length=3)
    to_code: str = Field(min_length=3, max_length=3)


class PartialCurrencySuggestion(BaseModel):
    """A guessed completion for '<amount> <currency fragment>'."""

    amount: float
    from_code: str
    to_code: str
    suggested_query: str


class CurrencyResult(BaseModel):
    """What the external rate service answers."""

    amount: float
    from_code: str
    to_code: str
    result: float
    rate: float  # Value of one unit of from_code in to_code


# ─── Color Interpreter ──────────────────────────────────────────────


class RGB(BaseModel):
    """The pivot value every color conversion passes through."""

    model_config = ConfigDict(frozen=True)

    r: int = Field(ge=0, le=255)
    g: int = Field(ge=0, le=255)
    b: int = Field(ge=0, le=255)

    def as_tuple(self) -> tuple[int, int, int]:
        return self.r, self.g, self.b


class ColorConversion(BaseModel):
    """Result of '<color> to <format>'."""

    from_format: ColorFormat
    to_format: ColorFormat
    rgb: RGB
    value: str  # Target notation, e.g. "hsl(0, 100%, 50%)"
    swatch: str  # Uppercase "#RRGGBB" of the pivot
