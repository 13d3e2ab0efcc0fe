"""Turn raw LLM items into validated :class:`SpecRecord` objects.

The model is told to return clean numbers, but in practice it sends
strings with units, ounces instead of grams, and prices in whatever
currency the article quoted. Everything is normalized here and values
outside the plausible ranges are dropped field by field.
"""

from __future__ import annotations

import re
from typing import Any

from shoespec.core.coerce import (
    coerce_bool,
    coerce_breathability,
    coerce_cushioning,
    coerce_primary_use,
    coerce_surface,
    coerce_width,
)
from shoespec.core.taxonomy import Taxonomy
from shoespec.core.types import COVERAGE_FIELDS, SpecRecord
from shoespec.core.units import (
    convert_to_usd,
    detect_currency,
    norm_str,
    oz_to_grams,
    round2,
    to_num,
)
from shoespec.core.validation import (
    BRAND_LENGTH,
    MODEL_LENGTH,
    has_valid_length,
    is_valid_drop,
    is_valid_height,
    is_valid_price,
    is_valid_weight,
    valid_or_none,
)

# Weights under this are assumed to be ounces.
OUNCE_CUTOFF = 20.0


def _strip_model_noise(model: str, taxonomy: Taxonomy) -> str:
    words = "|".join(re.escape(w) for w in taxonomy.model_noise_words)
    if not words:
        return model
    cleaned = re.sub(rf"(?:\s+(?:{words}))+\s*$", "", model, flags=re.IGNORECASE)
    return cleaned.strip() or model


def _weight(raw: Any) -> float | None:
    n = to_num(raw)
    if n is None or n <= 0:
        return None
    if n < OUNCE_CUTOFF:
        n = float(oz_to_grams(n))
    return n if is_valid_weight(n) else None


def _price(raw: dict[str, Any]) -> float | None:
    usd = to_num(raw.get("price_usd"))
    if usd is not None:
        return round2(usd) if is_valid_price(usd) else None

    amount_raw = raw.get("price")
    amount = to_num(amount_raw)
    if amount is None:
        return None
    currency = norm_str(raw.get("price_currency"))
    if currency is None and isinstance(amount_raw, str):
        currency = detect_currency(amount_raw)
    converted = convert_to_usd(amount, currency)
    if converted is None or not is_valid_price(converted):
        return None
    return round2(converted)


def _discarded(raw: Any, kept: Any) -> bool:
    """A numeric value was sent but did not survive normalization."""
    return kept is None and to_num(raw) is not None


def normalize_item(
    raw: dict[str, Any],
    taxonomy: Taxonomy,
    warnings: list[str] | None = None,
) -> SpecRecord:
    """Map one raw item dict onto a :class:`SpecRecord`.

    Numeric values outside their plausible range become ``None``; when
    *warnings* is given, one line per discarded value is appended to it.
    """
    brand = taxonomy.canonical_brand(norm_str(raw.get("brand_name") or raw.get("brand")))
    model = norm_str(raw.get("model") or raw.get("model_name") or raw.get("shoe_model"))
    if model:
        model = _strip_model_noise(model, taxonomy)

    heel = valid_or_none(raw.get("heel_height"), is_valid_height)
    forefoot = valid_or_none(raw.get("forefoot_height"), is_valid_height)
    drop = valid_or_none(raw.get("drop"), is_valid_drop)
    stated_drop = drop is not None
    if drop is None and heel is not None and forefoot is not None:
        computed = round2(heel - forefoot)
        drop = computed if is_valid_drop(computed) else None

    weight = _weight(raw.get("weight"))
    price = _price(raw)

    if warnings is not None:
        label = " ".join(part for part in (brand, model) if part) or "unnamed item"
        sent_price = raw.get("price_usd")
        if sent_price is None:
            sent_price = raw.get("price")
        sent = {
            "heel_height": (raw.get("heel_height"), heel),
            "forefoot_height": (raw.get("forefoot_height"), forefoot),
            "drop": (raw.get("drop"), drop if stated_drop else None),
            "weight": (raw.get("weight"), weight),
            "price": (sent_price, price),
        }
        for name, (value, kept) in sent.items():
            if _discarded(value, kept):
                warnings.append(f"{label}: {name} out of range ({value})")

    return SpecRecord(
        brand_name=brand,
        model=model,
        heel_height=heel,
        forefoot_height=forefoot,
        drop=drop,
        weight=weight,
        price=price,
        upper_breathability=coerce_breathability(raw.get("upper_breathability")),
        carbon_plate=coerce_bool(raw.get("carbon_plate")),
        waterproof=coerce_bool(raw.get("waterproof")),
        primary_use=coerce_primary_use(raw.get("primary_use")),
        cushioning_type=coerce_cushioning(raw.get("cushioning_type")),
        surface_type=coerce_surface(raw.get("surface_type")),
        foot_width=coerce_width(raw.get("foot_width")),
        additional_features=norm_str(raw.get("additional_features")),
    )


def item_rejection_reason(record: SpecRecord, taxonomy: Taxonomy) -> str | None:
    """Why *record* is not a usable item, or ``None`` when it is.

    A usable item has brand and model within length bounds, a real model
    name, and at least one characteristic besides the identity.
    """
    if not has_valid_length(record.brand_name, BRAND_LENGTH):
        return "invalid brand"
    if not has_valid_length(record.model, MODEL_LENGTH):
        return "invalid model"
    if record.model.strip().lower() in taxonomy.invalid_models:
        return "generic model name"
    if not any(getattr(record, name) is not None for name in COVERAGE_FIELDS):
        return "no characteristics"
    return None
