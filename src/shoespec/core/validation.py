"""Range validation for physical specification fields."""

from __future__ import annotations

from typing import Any

from .units import to_num

PRICE_RANGE = (40.0, 500.0)
HEIGHT_RANGE = (10.0, 60.0)
WEIGHT_RANGE = (100.0, 600.0)
DROP_RANGE = (0.0, 20.0)

BRAND_LENGTH = (2, 30)
MODEL_LENGTH = (2, 50)


def _in_range(value: Any, bounds: tuple[float, float]) -> bool:
    n = to_num(value)
    if n is None:
        return False
    lo, hi = bounds
    return lo <= n <= hi


def is_valid_price(value: Any) -> bool:
    return _in_range(value, PRICE_RANGE)


def is_valid_height(value: Any) -> bool:
    return _in_range(value, HEIGHT_RANGE)


def is_valid_weight(value: Any) -> bool:
    return _in_range(value, WEIGHT_RANGE)


def is_valid_drop(value: Any) -> bool:
    return _in_range(value, DROP_RANGE)


def valid_or_none(value: Any, check) -> float | None:
    """Return *value* as float when *check* accepts it, otherwise ``None``."""
    if value is None or not check(value):
        return None
    return to_num(value)


def has_valid_length(text: str | None, bounds: tuple[int, int]) -> bool:
    if not text:
        return False
    lo, hi = bounds
    return lo <= len(text.strip()) <= hi
