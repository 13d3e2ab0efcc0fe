"""Categorical and boolean coercion for loosely typed field values.

Shared by the LLM response parser and the normalization stage so that
both accept the same vocabulary.
"""

from __future__ import annotations

import re
from typing import Any

BREATHABILITY = ("low", "medium", "high")
CUSHIONING = ("firm", "balanced", "max")
SURFACES = ("road", "trail")
WIDTHS = ("narrow", "standard", "wide")

_TRUE = re.compile(r"\b(?:true|yes|y)\b")
_FALSE = re.compile(r"\b(?:false|no|n|none)\b")


def _lower(value: Any) -> str:
    return str(value).strip().lower() if value is not None else ""


def coerce_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value) if value in (0, 1) else None
    s = _lower(value)
    if _TRUE.search(s):
        return True
    if _FALSE.search(s):
        return False
    return None


def coerce_breathability(value: Any) -> str | None:
    s = _lower(value)
    if not s:
        return None
    if any(k in s for k in ("high", "excellent", "great")):
        return "high"
    if any(k in s for k in ("low", "poor")):
        return "low"
    if any(k in s for k in ("medium", "moderate", "average")):
        return "medium"
    return None


def coerce_cushioning(value: Any) -> str | None:
    s = _lower(value)
    if not s:
        return None
    if re.search(r"max|plush|high", s):
        return "max"
    if re.search(r"firm|stiff", s):
        return "firm"
    if re.search(r"balanced|moderate|middle|medium", s):
        return "balanced"
    return None


def coerce_surface(value: Any) -> str | None:
    s = _lower(value)
    if "trail" in s:
        return "trail"
    if re.search(r"road|asphalt|pavement", s):
        return "road"
    return None


def coerce_width(value: Any) -> str | None:
    s = _lower(value)
    if not s:
        return None
    if re.search(r"narrow|slim", s):
        return "narrow"
    if re.search(r"wide|2e|4e", s):
        return "wide"
    if re.search(r"standard|regular|d width|medium", s):
        return "standard"
    return None


def coerce_primary_use(value: Any) -> str | None:
    s = _lower(value)
    if not s:
        return None
    if "daily" in s or "trainer" in s:
        return "daily trainer"
    if "tempo" in s:
        return "tempo"
    if "race" in s or "racing" in s:
        return "race"
    if "trail" in s:
        return "trail running"
    return str(value).strip()
