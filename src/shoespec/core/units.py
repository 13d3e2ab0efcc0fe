"""Numeric coercion and unit conversion helpers.

Everything here is pure: no logging, no I/O. Values that cannot be coerced
come back as ``None`` rather than raising.
"""

from __future__ import annotations

import math
import re
from typing import Any

OZ_TO_GRAMS = 28.35

# Coarse average FX rates, amount in currency * rate = USD.
USD_RATES: dict[str, float] = {
    "USD": 1.0,
    "EUR": 1.08,
    "GBP": 1.26,
    "CAD": 0.74,
    "AUD": 0.67,
    "JPY": 0.0068,
    "CHF": 1.10,
    "SEK": 0.095,
    "NOK": 0.095,
    "DKK": 0.145,
    "PLN": 0.25,
}

_CURRENCY_SYMBOLS: dict[str, str] = {
    "$": "USD",
    "US$": "USD",
    "€": "EUR",
    "£": "GBP",
    "¥": "JPY",
}

_NON_NUMERIC_RE = re.compile(r"[^\d.\-]")

_CURRENCY_DETECTORS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"\$\s*\d|\bUSD\b"), "USD"),
    (re.compile(r"€\s*\d|\bEUR\b"), "EUR"),
    (re.compile(r"£\s*\d|\bGBP\b"), "GBP"),
    (re.compile(r"¥\s*\d|\bJPY\b"), "JPY"),
] + [(re.compile(rf"\b{code}\b"), code) for code in ("CAD", "AUD", "CHF", "SEK", "NOK", "DKK", "PLN")]


def norm_str(value: Any) -> str | None:
    """Strip *value*; empty strings and ``None`` become ``None``."""
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def to_num(value: Any) -> float | None:
    """Coerce loosely formatted numbers (``"$145"``, ``"32 mm"``) to float."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    s = _NON_NUMERIC_RE.sub("", str(value))
    if not s or s in ("-", "."):
        return None
    try:
        n = float(s)
    except ValueError:
        return None
    return n if math.isfinite(n) else None


def round2(n: float) -> float:
    """Round half-up to two decimals (``round()`` would bank-round)."""
    return math.floor(n * 100 + 0.5) / 100


def oz_to_grams(oz: float) -> int:
    return int(math.floor(oz * OZ_TO_GRAMS + 0.5))


def normalize_currency(value: Any) -> str | None:
    """Map a symbol or ISO code to a supported ISO code, else ``None``."""
    s = norm_str(value)
    if s is None:
        return None
    if s in _CURRENCY_SYMBOLS:
        return _CURRENCY_SYMBOLS[s]
    code = s.upper()
    return code if code in USD_RATES else None


def detect_currency(text: str) -> str | None:
    """Detect the first currency hint in free text (symbol or ISO code)."""
    upper = text.upper()
    for pattern, code in _CURRENCY_DETECTORS:
        if pattern.search(upper):
            return code
    return None


def convert_to_usd(amount: float, currency: str | None) -> float | None:
    """Convert *amount* to USD; unknown currencies give ``None``."""
    code = normalize_currency(currency) if currency else "USD"
    if code is None:
        return None
    return amount * USD_RATES[code]
