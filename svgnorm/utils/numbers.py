"""Numeric token helpers: parsing, compact formatting, precision rounding. No engine imports."""

from __future__ import annotations

import math
import re

# A bare SVG/CSS number: optional sign, digits with optional fraction, optional exponent.
NUMBER_RE = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")

# Longest first so "ms" wins over "s" and "vmin" over "vw".
UNITS = (
    "vmin", "vmax", "grad", "turn", "rem", "deg", "rad",
    "px", "pt", "pc", "mm", "cm", "in", "em", "ex", "ch", "vw", "vh", "ms", "Q", "s", "%",
)
_UNIT_SET = frozenset(UNITS)

# Identifier-like words are consumed whole so digits inside them ("#1a2b3c",
# "grad1", "url(#c2)") are never mistaken for numbers.
_TOKEN_RE = re.compile(
    r"(?P<word>[A-Za-z_#][\w#\-]*)"
    r"|(?P<number>[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)(?P<unit>%|[A-Za-z]+)?"
)

NUMBER_WITH_UNIT_RE = re.compile(
    r"^\s*(?P<number>[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)(?P<unit>%|[A-Za-z]*)\s*$"
)


def format_number(value: float) -> str:
    """Shortest text that reads back as ``value``; integers without a point, never "-0"."""
    if value == 0:
        return "0"
    if math.isfinite(value) and value == int(value) and abs(value) < 1e15:
        return str(int(value))
    text = repr(float(value))
    if "e" in text:
        mantissa, exponent = text.split("e")
        if mantissa.endswith(".0"):
            mantissa = mantissa[:-2]
        text = f"{mantissa}e{int(exponent)}"
    return text


def round_number(value: float, precision: int) -> float:
    """Round to ``precision`` decimals; zero or negative precision rounds to 10**-precision."""
    rounded = round(value, precision)
    return 0.0 if rounded == 0 else float(rounded)


def format_rounded(value: float, precision: int) -> str:
    """Round and format: trailing zeros trimmed above zero precision, no point at or below it."""
    rounded = round_number(value, precision)
    if precision <= 0:
        return str(int(rounded))
    text = f"{rounded:.{precision}f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


def parse_length(text: str | None, default: float | None = None) -> float | None:
    """Read a plain or px length; other units and percentages give ``None``."""
    if text is None:
        return default
    match = NUMBER_WITH_UNIT_RE.match(text)
    if match is None or match.group("unit") not in ("", "px"):
        return None
    return float(match.group("number"))


def round_tokens(text: str, precision: int) -> str:
    """Round every numeric token in ``text``, keeping unit suffixes and other text as is."""

    def _replace(match: re.Match[str]) -> str:
        if match.group("word") is not None:
            return match.group(0)
        unit = match.group("unit") or ""
        if unit and unit not in _UNIT_SET:
            return match.group(0)
        return format_rounded(float(match.group("number")), precision) + unit

    return _TOKEN_RE.sub(_replace, text)
