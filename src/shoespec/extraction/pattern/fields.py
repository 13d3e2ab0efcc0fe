"""Field-level pattern rules applied to one model's description block.

Each extractor is independent and returns ``None`` when nothing matches.
Rules are tried in order; the first hit wins unless noted otherwise.
"""

from __future__ import annotations

import re

from shoespec.core.units import oz_to_grams, round2
from shoespec.core.validation import (
    is_valid_drop,
    is_valid_height,
    is_valid_price,
    is_valid_weight,
)

_NUM = r"(\d+(?:\.\d+)?)"
_MM = r"(?:millimeters?|millimetres?|mm)"

# -- price ------------------------------------------------------------------

PRICE_PATTERNS = [
    re.compile(r"\(\s*\$?\s*(\d{2,4})(?:\.\d{2})?\s*\)"),
    re.compile(r"(?<![\w$])\$\s*(\d{2,4})(?:\.\d{2})?\b"),
    re.compile(r"\b(?:retail\s+)?price[:\s]+\$?\s*(\d{2,4})\b", re.IGNORECASE),
    re.compile(r"\bcosts?\s+\$?\s*(\d{2,4})\b", re.IGNORECASE),
]

# -- weight -----------------------------------------------------------------

WEIGHT_GRAM_PATTERNS = [
    re.compile(r"offiziell[:\s]+(\d{2,4})\s*g\b", re.IGNORECASE),
    re.compile(r"gewicht[:\s]+(\d{2,4})\s*g\b", re.IGNORECASE),
    re.compile(r"\d+(?:\.\d+)?\s*(?:ounces?|oz)\.?\s*\(\s*(\d{2,4})\s*(?:grams?|g)\s*\)", re.IGNORECASE),
    re.compile(r"weight[:\s]+(\d{2,4})\s*g\b", re.IGNORECASE),
    re.compile(r"\b(\d{2,4})\s*(?:grams?|g)\b", re.IGNORECASE),
]
WEIGHT_OZ_PATTERN = re.compile(r"\b(\d+(?:\.\d+)?)\s*(?:ounces?|oz)\b", re.IGNORECASE)

# -- heights ----------------------------------------------------------------

# Patterns yielding (heel, forefoot) in group order.
HEIGHT_PAIR_PATTERNS = [
    re.compile(
        rf"stack\s+height\s*/?\s*drop[^0-9]*{_NUM}\s*{_MM}\s+in\s+(?:the\s+)?heel"
        rf"[^0-9]+{_NUM}\s*{_MM}\s+in\s+(?:the\s+)?forefoot",
        re.IGNORECASE,
    ),
    re.compile(rf"{_NUM}\s*[–-]\s*{_NUM}\s*{_MM}(?!\s*(?:heel[- ]to[- ]toe\s+)?(?:drop|offset))", re.IGNORECASE),
    re.compile(
        rf"{_NUM}\s*{_MM}\s+in\s+(?:the\s+)?heel[^0-9]+{_NUM}\s*{_MM}\s+in\s+(?:the\s+)?forefoot",
        re.IGNORECASE,
    ),
    re.compile(
        rf"{_NUM}\s*-?\s*{_MM}\s*(?:of\s+)?(?:stack\s+)?(?:height\s+)?(?:at\s+the\s+)?heel"
        rf"[^0-9]+{_NUM}\s*-?\s*{_MM}\s*(?:of\s+)?(?:stack\s+)?(?:height\s+)?(?:at\s+the\s+|in\s+the\s+)?forefoot",
        re.IGNORECASE,
    ),
    re.compile(
        rf"heel(?:\s+stack)?(?:\s+height)?(?:\s+of|:)?\s*{_NUM}\s*{_MM}[^0-9]+"
        rf"forefoot(?:\s+stack)?(?:\s+height)?(?:\s+of|:)?\s*{_NUM}\s*{_MM}",
        re.IGNORECASE,
    ),
]
# German spec tables list forefoot first.
GERMAN_FOREFOOT_HEEL = re.compile(rf"{_NUM}\s*mm\s+vorfu(?:ß|ss|s)?[^0-9]+{_NUM}\s*mm\s*ferse", re.IGNORECASE)
GERMAN_HEEL_FOREFOOT = re.compile(rf"{_NUM}\s*mm\s*ferse[^0-9]+{_NUM}\s*mm\s+vorfu(?:ß|ss|s)?", re.IGNORECASE)

HEEL_PATTERNS = [
    re.compile(rf"{_NUM}[^0-9]*?{_MM}\s*stack\s*height\s*at\s*the\s*heel", re.IGNORECASE),
    re.compile(rf"{_NUM}\s*-?\s*{_MM}\s+(?:of\s+)?(?:stack\s+)?(?:at\s+the\s+)?heel", re.IGNORECASE),
    re.compile(rf"heel(?:\s+stack)?(?:\s+height)?(?:\s+(?:of|is|at))?:?\s*{_NUM}\s*{_MM}", re.IGNORECASE),
]
FOREFOOT_PATTERNS = [
    re.compile(rf"{_NUM}\s*-?\s*{_MM}\s+(?:of\s+)?(?:stack\s+)?(?:in\s+|at\s+)?(?:the\s+)?forefoot", re.IGNORECASE),
    re.compile(rf"forefoot(?:\s+stack)?(?:\s+height)?(?:\s+(?:of|is|at))?:?\s*{_NUM}\s*{_MM}", re.IGNORECASE),
]
GENERIC_STACK_PATTERNS = [
    re.compile(rf"{_NUM}\s*-?\s*{_MM}\s+(?:of\s+)?(?:stack|height)(?!\s*drop)", re.IGNORECASE),
    re.compile(rf"stack(?:\s+height)?(?:\s+(?:of|is))?:?\s*{_NUM}\s*{_MM}", re.IGNORECASE),
]
# Single heel mentions below this are usually drops.
MIN_HEEL_MENTION = 15.0

# -- drop -------------------------------------------------------------------

DROP_PATTERNS = [
    re.compile(rf"{_NUM}\s*-?\s*{_MM}\s*(?:heel[- ]to[- ]toe\s+)?(?:drop|offset)", re.IGNORECASE),
    re.compile(rf"drop\s+is\s+{_NUM}\s*{_MM}", re.IGNORECASE),
    re.compile(rf"drop[:\s]+{_NUM}\s*{_MM}", re.IGNORECASE),
    re.compile(rf"sprengung[:\s]+{_NUM}\s*mm", re.IGNORECASE),
]
ZERO_DROP_PATTERN = re.compile(r"\bzero[\s-]*drop\b|\b0\s*-?\s*(?:mm\s*)?drop\b", re.IGNORECASE)

# -- use / surface ----------------------------------------------------------

TRAIL_PATTERN = re.compile(r"\btrails?\b", re.IGNORECASE)
ROAD_PATTERN = re.compile(r"\b(?:road|pavement|asphalt)\b", re.IGNORECASE)
VERSATILE_PATTERN = re.compile(r"\b(?:versatile|door[- ]to[- ]trail)\b", re.IGNORECASE)
USE_BUCKETS = [
    (re.compile(r"\b(?:tempo|speed|racing|racer|race\s+day)\b", re.IGNORECASE), "tempo"),
    (re.compile(r"\b(?:daily|training|trainer)\b", re.IGNORECASE), "daily trainer"),
    (re.compile(r"\brecovery\b", re.IGNORECASE), "recovery"),
]

# -- booleans ---------------------------------------------------------------

_WATERPROOF = r"(?:gore[\s-]?tex|gtx|waterproof(?:ing)?|water[\s-]?resistant)"
WATERPROOF_NEGATED = re.compile(rf"\b(?:not|no|non)\b[\s-]*{_WATERPROOF}", re.IGNORECASE)
WATERPROOF_PATTERN = re.compile(rf"\b{_WATERPROOF}\b", re.IGNORECASE)
CARBON_PLATE_PATTERN = re.compile(r"carbon[^.]*?plate|carbon[\s-]+fib(?:er|re)", re.IGNORECASE)


def extract_price(text: str) -> float | None:
    """First in-range USD price mention in *text*."""
    for pattern in PRICE_PATTERNS:
        for m in pattern.finditer(text):
            value = float(m.group(1))
            if is_valid_price(value):
                return value
    return None


def extract_weight(text: str) -> float | None:
    """Weight in grams; gram figures are preferred over ounces."""
    for pattern in WEIGHT_GRAM_PATTERNS:
        for m in pattern.finditer(text):
            value = float(m.group(1))
            if is_valid_weight(value):
                return value
    for m in WEIGHT_OZ_PATTERN.finditer(text):
        grams = float(oz_to_grams(float(m.group(1))))
        if is_valid_weight(grams):
            return grams
    return None


def _pair(heel: str, forefoot: str) -> tuple[float | None, float | None] | None:
    h, f = float(heel), float(forefoot)
    if not (is_valid_height(h) and is_valid_height(f)) or f > h:
        return None
    return h, f


def _first_value(patterns: list[re.Pattern[str]], text: str, minimum: float = 0.0) -> float | None:
    for pattern in patterns:
        for m in pattern.finditer(text):
            value = float(m.group(1))
            if value > minimum and is_valid_height(value):
                return value
    return None


def extract_heights(text: str) -> tuple[float | None, float | None]:
    """Return ``(heel_height, forefoot_height)`` in millimeters."""
    for pattern in HEIGHT_PAIR_PATTERNS:
        for m in pattern.finditer(text):
            pair = _pair(m.group(1), m.group(2))
            if pair:
                return pair

    m = GERMAN_FOREFOOT_HEEL.search(text)
    if m:
        pair = _pair(m.group(2), m.group(1))
        if pair:
            return pair
    m = GERMAN_HEEL_FOREFOOT.search(text)
    if m:
        pair = _pair(m.group(1), m.group(2))
        if pair:
            return pair

    heel = _first_value(HEEL_PATTERNS, text, minimum=MIN_HEEL_MENTION)
    forefoot = _first_value(FOREFOOT_PATTERNS, text)
    if heel is not None and forefoot is not None and forefoot > heel:
        forefoot = None
    if heel is None and forefoot is None:
        heel = _first_value(GENERIC_STACK_PATTERNS, text, minimum=MIN_HEEL_MENTION)
    return heel, forefoot


def derived_drop(heel_height: float | None, forefoot_height: float | None) -> float | None:
    """Heel minus forefoot, when both are known and the result is in range."""
    if heel_height is None or forefoot_height is None:
        return None
    computed = round2(heel_height - forefoot_height)
    return computed if is_valid_drop(computed) else None


def extract_drop(
    text: str,
    heel_height: float | None = None,
    forefoot_height: float | None = None,
) -> float | None:
    """Stated drop, zero-drop phrasing, or heel minus forefoot."""
    for pattern in DROP_PATTERNS:
        for m in pattern.finditer(text):
            value = float(m.group(1))
            if is_valid_drop(value):
                return value
    if ZERO_DROP_PATTERN.search(text):
        return 0.0
    return derived_drop(heel_height, forefoot_height)


def extract_use_and_surface(heading: str, block: str) -> tuple[str | None, str | None]:
    """Return ``(primary_use, surface_type)`` from keyword buckets."""
    combined = f"{heading} {block}"
    primary_use: str | None = None
    surface: str | None = None

    if TRAIL_PATTERN.search(combined):
        surface, primary_use = "trail", "trail running"
    elif ROAD_PATTERN.search(combined) or VERSATILE_PATTERN.search(combined):
        surface, primary_use = "road", "road"

    for pattern, use in USE_BUCKETS:
        if pattern.search(combined):
            primary_use = use
            break
    return primary_use, surface


def extract_waterproof(text: str) -> bool | None:
    if WATERPROOF_NEGATED.search(text):
        return False
    if WATERPROOF_PATTERN.search(text):
        return True
    return None


def extract_carbon_plate(text: str) -> bool | None:
    # presence only; "no carbon plate" still reads as True
    return True if CARBON_PLATE_PATTERN.search(text) else None
