"""
Color interpreter — eight notations, one pivot.

Every notation converts to and from RGB and never directly to another
notation, so adding a format costs two functions instead of eight.

Numeric converters return unrounded floats. Rounding happens only when a
value is rendered to a string, which keeps round trips within ±1 per channel.

Supported literals (channel values out of range are clamped, not rejected):
    #rgb  #rrggbb
    rgb(r, g, b)      rgba(r, g, b, a)
    hsl(h, s%, l%)    hsla(h, s%, l%, a)
    hsv(h, s%, v%)    hsb(h, s%, b%)
    oklch(L% C H)
    cmyk(c%, m%, y%, k%)
    lab(L% a b)
    xyz(x%, y%, z%)
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Callable

from .models import RGB, ColorConversion, ColorFormat

# ─── Constants ───────────────────────────────────────────────────────

# D65 reference white, XYZ scaled ×100
_WHITE_X = 95.047
_WHITE_Y = 100.0
_WHITE_Z = 108.883

_LAB_EPSILON = 0.008856
_LAB_KAPPA = 7.787

FORMAT_ALIASES: dict[str, ColorFormat] = {
    "hex": ColorFormat.HEX,
    "hexadecimal": ColorFormat.HEX,
    "rgb": ColorFormat.RGB,
    "rgba": ColorFormat.RGB,
    "hsl": ColorFormat.HSL,
    "hsla": ColorFormat.HSL,
    "hsv": ColorFormat.HSV,
    "hsb": ColorFormat.HSV,
    "oklch": ColorFormat.OKLCH,
    "cmyk": ColorFormat.CMYK,
    "lab": ColorFormat.LAB,
    "cielab": ColorFormat.LAB,
    "xyz": ColorFormat.XYZ,
    "ciexyz": ColorFormat.XYZ,
}

_HEX_LITERAL = re.compile(r"^#([0-9a-f]{3}|[0-9a-f]{6})$", re.IGNORECASE)
_FUNCTIONAL = re.compile(r"^([a-z]+)\(\s*([^()]*?)\s*\)$", re.IGNORECASE)
_ARGUMENT = re.compile(r"^(-?(?:\d+(?:\.\d*)?|\.\d+))(%?)$")
_QUERY = re.compile(r"^(.+?)\s+(?:to|in)\s+([a-z]+)$")


@dataclass
class ParsedColor:
    """A recognized color literal."""

    format: ColorFormat
    rgb: RGB


# ─── Small Helpers ───────────────────────────────────────────────────


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _to_rgb(r: float, g: float, b: float) -> RGB:
    """Round and clamp float channels into the pivot."""
    return RGB(
        r=int(round(_clamp(r, 0, 255))),
        g=int(round(_clamp(g, 0, 255))),
        b=int(round(_clamp(b, 0, 255))),
    )


def _linearize(channel: float) -> float:
    """sRGB gamma expansion of a 0-255 channel to 0-1 linear light."""
    c = channel / 255
    return c / 12.92 if c <= 0.04045 else ((c + 0.055) / 1.055) ** 2.4


def _delinearize(linear: float) -> float:
    """Inverse of _linearize, back to a 0-255 channel (unclamped)."""
    linear = max(linear, 0.0)
    c = linear * 12.92 if linear <= 0.0031308 else 1.055 * linear ** (1 / 2.4) - 0.055
    return c * 255


def _hue_degrees(r: float, g: float, b: float, max_c: float, delta: float) -> float:
    """Shared hue formula for HSL and HSV, in degrees."""
    if delta == 0:
        return 0.0
    if max_c == r:
        sector = (g - b) / delta + (6 if g < b else 0)
    elif max_c == g:
        sector = (b - r) / delta + 2
    else:
        sector = (r - g) / delta + 4
    return sector * 60


# ─── RGB → Format ────────────────────────────────────────────────────


def rgb_to_hsl(rgb: RGB) -> tuple[float, float, float]:
    """Hue in degrees, saturation and lightness in percent."""
    r, g, b = (c / 255 for c in rgb.as_tuple())
    max_c, min_c = max(r, g, b), min(r, g, b)
    lightness = (max_c + min_c) / 2
    delta = max_c - min_c

    saturation = 0.0
    if delta != 0:
        saturation = delta / (2 - max_c - min_c) if lightness > 0.5 else delta / (max_c + min_c)

    hue = _hue_degrees(r, g, b, max_c, delta)
    return hue, saturation * 100, lightness * 100


def rgb_to_hsv(rgb: RGB) -> tuple[float, float, float]:
    r, g, b = (c / 255 for c in rgb.as_tuple())
    max_c, min_c = max(r, g, b), min(r, g, b)
    delta = max_c - min_c
    saturation = 0.0 if max_c == 0 else delta / max_c
    hue = _hue_degrees(r, g, b, max_c, delta)
    return hue, saturation * 100, max_c * 100


def rgb_to_xyz(rgb: RGB) -> tuple[float, float, float]:
    """sRGB → CIE XYZ (D65), scaled ×100."""
    lr, lg, lb = (_linearize(c) * 100 for c in rgb.as_tuple())
    return (
        lr * 0.4124 + lg * 0.3576 + lb * 0.1805,
        lr * 0.2126 + lg * 0.7152 + lb * 0.0722,
        lr * 0.0193 + lg * 0.1192 + lb * 0.9505,
    )


def _lab_f(t: float) -> float:
    return t ** (1 / 3) if t > _LAB_EPSILON else _LAB_KAPPA * t + 16 / 116


def _xyz_to_lab(x: float, y: float, z: float) -> tuple[float, float, float]:
    fx = _lab_f(x / _WHITE_X)
    fy = _lab_f(y / _WHITE_Y)
    fz = _lab_f(z / _WHITE_Z)
    return 116 * fy - 16, 500 * (fx - fy), 200 * (fy - fz)


def rgb_to_lab(rgb: RGB) -> tuple[float, float, float]:
    return _xyz_to_lab(*rgb_to_xyz(rgb))


def rgb_to_cmyk(rgb: RGB) -> tuple[float, float, float, float]:
    """Percentages. Pure black is special-cased to avoid dividing by zero."""
    if rgb.as_tuple() == (0, 0, 0):
        return 0.0, 0.0, 0.0, 100.0

    r, g, b = (c / 255 for c in rgb.as_tuple())
    k = 1 - max(r, g, b)
    c = (1 - r - k) / (1 - k)
    m = (1 - g - k) / (1 - k)
    y = (1 - b - k) / (1 - k)
    return c * 100, m * 100, y * 100, k * 100


def rgb_to_oklch(rgb: RGB) -> tuple[float, float, float]:
    """Lightness 0-1, chroma, hue in degrees 0-360."""
    lr, lg, lb = (_linearize(c) for c in rgb.as_tuple())

    l_ = 0.4122214708 * lr + 0.5363325363 * lg + 0.0514459929 * lb
    m_ = 0.2119034982 * lr + 0.6806995451 * lg + 0.1073969566 * lb
    s_ = 0.0883024619 * lr + 0.2817188376 * lg + 0.6299787005 * lb

    l_, m_, s_ = (math.copysign(abs(v) ** (1 / 3), v) for v in (l_, m_, s_))

    lightness = 0.2104542553 * l_ + 0.7936177850 * m_ - 0.0040720468 * s_
    a = 1.9779984951 * l_ - 2.4285922050 * m_ + 0.4505937099 * s_
    b = 0.0259040371 * l_ + 0.7827717662 * m_ - 0.8086757660 * s_

    chroma = math.hypot(a, b)
    hue = math.degrees(math.atan2(b, a))
    if hue < 0:
        hue += 360
    return lightness, chroma, hue


# ─── Format → RGB ────────────────────────────────────────────────────


def hex_to_rgb(value: str) -> RGB:
    digits = value.lstrip("#")
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return RGB(r=int(digits[0:2], 16), g=int(digits[2:4], 16), b=int(digits[4:6], 16))


def _hue_to_rgb(h: float, c: float, m: float) -> RGB:
    """Chroma/hue/offset → RGB, shared by the HSL and HSV inverses."""
    h = (h % 360) / 60
    x = c * (1 - abs(h % 2 - 1))
    sector = int(h) % 6
    r, g, b = (
        (c, x, 0), (x, c, 0), (0, c, x), (0, x, c), (x, 0, c), (c, 0, x)
    )[sector]
    return _to_rgb((r + m) * 255, (g + m) * 255, (b + m) * 255)


def hsl_to_rgb(h: float, s: float, lightness: float) -> RGB:
    s, lightness = s / 100, lightness / 100
    c = (1 - abs(2 * lightness - 1)) * s
    return _hue_to_rgb(h, c, lightness - c / 2)


def hsv_to_rgb(h: float, s: float, v: float) -> RGB:
    s, v = s / 100, v / 100
    c = v * s
    return _hue_to_rgb(h, c, v - c)


def _xyz_to_linear(x: float, y: float, z: float) -> tuple[float, float, float]:
    x, y, z = x / 100, y / 100, z / 100
    return (
        x * 3.2404542 + y * -1.5371385 + z * -0.4985314,
        x * -0.9692660 + y * 1.8760108 + z * 0.0415560,
        x * 0.0556434 + y * -0.2040259 + z * 1.0572252,
    )


def xyz_to_rgb(x: float, y: float, z: float) -> RGB:
    return _to_rgb(*(_delinearize(c) for c in _xyz_to_linear(x, y, z)))


def _lab_f_inverse(t: float) -> float:
    cubed = t ** 3
    return cubed if cubed > _LAB_EPSILON else (t - 16 / 116) / _LAB_KAPPA


def lab_to_rgb(lightness: float, a: float, b: float) -> RGB:
    fy = (lightness + 16) / 116
    fx = fy + a / 500
    fz = fy - b / 200
    return xyz_to_rgb(
        _lab_f_inverse(fx) * _WHITE_X,
        _lab_f_inverse(fy) * _WHITE_Y,
        _lab_f_inverse(fz) * _WHITE_Z,
    )


def cmyk_to_rgb(c: float, m: float, y: float, k: float) -> RGB:
    c, m, y, k = c / 100, m / 100, y / 100, k / 100
    return _to_rgb(255 * (1 - c) * (1 - k), 255 * (1 - m) * (1 - k), 255 * (1 - y) * (1 - k))


def oklch_to_rgb(lightness: float, chroma: float, hue: float) -> RGB:
    a = chroma * math.cos(math.radians(hue))
    b = chroma * math.sin(math.radians(hue))

    l_ = lightness + 0.3963377774 * a + 0.2158037573 * b
    m_ = lightness - 0.1055613458 * a - 0.0638541728 * b
    s_ = lightness - 0.0894841775 * a - 1.2914855480 * b

    l_, m_, s_ = l_ ** 3, m_ ** 3, s_ ** 3

    lr = 4.0767416621 * l_ - 3.3077115913 * m_ + 0.2309699292 * s_
    lg = -1.2684380046 * l_ + 2.6097574011 * m_ - 0.3413193965 * s_
    lb = -0.0041960863 * l_ - 0.7034186147 * m_ + 1.7076147010 * s_
    return _to_rgb(_delinearize(lr), _delinearize(lg), _delinearize(lb))


# ─── String Rendering ────────────────────────────────────────────────


def _r(value: float) -> int:
    """Round half away from zero, the way the display has always rounded."""
    return int(math.floor(value + 0.5))


def format_color(rgb: RGB, fmt: ColorFormat) -> str:
    """Render the pivot in the requested notation."""
    if fmt is ColorFormat.HEX:
        return "#{:02X}{:02X}{:02X}".format(*rgb.as_tuple())
    if fmt is ColorFormat.RGB:
        return f"rgb({rgb.r}, {rgb.g}, {rgb.b})"
    if fmt is ColorFormat.HSL:
        h, s, lightness = rgb_to_hsl(rgb)
        return f"hsl({_r(h) % 360}, {_r(s)}%, {_r(lightness)}%)"
    if fmt is ColorFormat.HSV:
        h, s, v = rgb_to_hsv(rgb)
        return f"hsv({_r(h) % 360}, {_r(s)}%, {_r(v)}%)"
    if fmt is ColorFormat.OKLCH:
        lightness, chroma, hue = rgb_to_oklch(rgb)
        return f"oklch({_r(lightness * 100)}% {chroma:.2f} {_r(hue) % 360})"
    if fmt is ColorFormat.CMYK:
        c, m, y, k = rgb_to_cmyk(rgb)
        return f"cmyk({_r(c)}%, {_r(m)}%, {_r(y)}%, {_r(k)}%)"
    if fmt is ColorFormat.LAB:
        # The displayed L*a*b* is derived from the displayed (whole-percent) XYZ
        lightness, a, b = _xyz_to_lab(*(_r(v) for v in rgb_to_xyz(rgb)))
        return f"lab({_r(lightness)}% {_r(a)} {_r(b)})"
    x, y, z = rgb_to_xyz(rgb)
    return f"xyz({_r(x)}%, {_r(y)}%, {_r(z)}%)"


def convert_to_all_formats(rgb: RGB) -> dict[str, str]:
    """Every notation for one color, keyed by format name."""
    return {fmt.value: format_color(rgb, fmt) for fmt in ColorFormat}


# ─── Literal Matchers ────────────────────────────────────────────────


def _arguments(text: str) -> tuple[list[float], list[bool]] | None:
    """Split '255, 0 0 / 0.5' style argument lists into numbers.

    Returns the values and, per value, whether it carried a '%'. Most
    notations ignore the flags since they already know which channels are
    percentages.
    """
    parts = [p for p in re.split(r"[\s,/]+", text) if p]
    values: list[float] = []
    percents: list[bool] = []
    for part in parts:
        match = _ARGUMENT.match(part)
        if match is None:
            return None
        values.append(float(match.group(1)))
        percents.append(bool(match.group(2)))
    return values, percents


def _match_rgb(args: list[float]) -> RGB | None:
    if len(args) not in (3, 4):
        return None
    return _to_rgb(*args[:3])


def _match_hsl(args: list[float]) -> RGB | None:
    if len(args) not in (3, 4):
        return None
    h, s, lightness = args[:3]
    return hsl_to_rgb(_clamp(h, 0, 360), _clamp(s, 0, 100), _clamp(lightness, 0, 100))


def _match_hsv(args: list[float]) -> RGB | None:
    if len(args) != 3:
        return None
    h, s, v = args
    return hsv_to_rgb(_clamp(h, 0, 360), _clamp(s, 0, 100), _clamp(v, 0, 100))


def _match_oklch(args: list[float]) -> RGB | None:
    """Lightness arrives as a 0-1 fraction; "63%" was already divided."""
    if len(args) != 3:
        return None
    lightness, chroma, hue = args
    if lightness > 1:
        lightness /= 100
    return oklch_to_rgb(_clamp(lightness, 0, 1), _clamp(chroma, 0, 0.5), _clamp(hue, 0, 360))


def _match_cmyk(args: list[float]) -> RGB | None:
    if len(args) != 4:
        return None
    return cmyk_to_rgb(*(_clamp(v, 0, 100) for v in args))


def _match_lab(args: list[float]) -> RGB | None:
    if len(args) != 3:
        return None
    lightness, a, b = args
    return lab_to_rgb(_clamp(lightness, 0, 100), _clamp(a, -128, 127), _clamp(b, -128, 127))


def _match_xyz(args: list[float]) -> RGB | None:
    if len(args) != 3:
        return None
    x, y, z = args
    return xyz_to_rgb(_clamp(x, 0, _WHITE_X), _clamp(y, 0, _WHITE_Y), _clamp(z, 0, _WHITE_Z))


_FUNCTION_MATCHERS: dict[str, tuple[ColorFormat, Callable[[list[float]], RGB | None]]] = {
    "rgb": (ColorFormat.RGB, _match_rgb),
    "rgba": (ColorFormat.RGB, _match_rgb),
    "hsl": (ColorFormat.HSL, _match_hsl),
    "hsla": (ColorFormat.HSL, _match_hsl),
    "hsv": (ColorFormat.HSV, _match_hsv),
    "hsb": (ColorFormat.HSV, _match_hsv),
    "oklch": (ColorFormat.OKLCH, _match_oklch),
    "cmyk": (ColorFormat.CMYK, _match_cmyk),
    "lab": (ColorFormat.LAB, _match_lab),
    "xyz": (ColorFormat.XYZ, _match_xyz),
}


# ─── Public API ──────────────────────────────────────────────────────


def parse_any_color(text: str) -> ParsedColor | None:
    """Recognize a color literal in any supported notation.

    Returns:
        ParsedColor with the source notation and its RGB pivot, or None.
    """
    text = text.strip()

    hex_match = _HEX_LITERAL.match(text)
    if hex_match:
        return ParsedColor(ColorFormat.HEX, hex_to_rgb(hex_match.group(1)))

    func_match = _FUNCTIONAL.match(text)
    if func_match is None:
        return None

    entry = _FUNCTION_MATCHERS.get(func_match.group(1).lower())
    if entry is None:
        return None

    parsed = _arguments(func_match.group(2))
    if parsed is None:
        return None

    args, percents = parsed
    fmt, matcher = entry
    if fmt is ColorFormat.OKLCH and args and percents[0]:
        args[0] /= 100

    rgb = matcher(args)
    return ParsedColor(fmt, rgb) if rgb is not None else None


def parse_color_query(query: str) -> ColorConversion | None:
    """Parse and convert '<color literal> (to|in) <format name>'.

    Converting a color to its own notation is not an answer and returns None.

    Example:
        parse_color_query("#ff0000 to hsl").value → "hsl(0, 100%, 50%)"
    """
    match = _QUERY.match(query.strip().lower())
    if match is None:
        return None

    target = FORMAT_ALIASES.get(match.group(2))
    if target is None:
        return None

    parsed = parse_any_color(match.group(1))
    if parsed is None or parsed.format is target:
        return None

    return ColorConversion(
        from_format=parsed.format,
        to_format=target,
        rgb=parsed.rgb,
        value=format_color(parsed.rgb, target),
        swatch=format_color(parsed.rgb, ColorFormat.HEX),
    )
