"""Field-level normalization applied before records reach the sink.

Every adjustment is recorded as a :class:`FieldChange`; values that had
to be discarded also produce a warning string so the run log explains
why a field is empty.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable

from shoespec.core.coerce import (
    BREATHABILITY,
    CUSHIONING,
    SURFACES,
    WIDTHS,
    coerce_bool,
)
from shoespec.core.taxonomy import Taxonomy, get_taxonomy
from shoespec.core.types import BOOLEAN_FIELDS, SpecRecord
from shoespec.core.units import convert_to_usd, norm_str, oz_to_grams, round2, to_num
from shoespec.core.validation import (
    is_valid_drop,
    is_valid_height,
    is_valid_price,
    is_valid_weight,
)

OUNCE_CUTOFF = 20.0

ENUM_FIELDS: dict[str, tuple[str, ...]] = {
    "upper_breathability": BREATHABILITY,
    "cushioning_type": CUSHIONING,
    "surface_type": SURFACES,
    "foot_width": WIDTHS,
}

RANGE_FIELDS: dict[str, Callable[[Any], bool]] = {
    "heel_height": is_valid_height,
    "forefoot_height": is_valid_height,
    "drop": is_valid_drop,
}


@dataclass(frozen=True)
class FieldChange:
    field: str
    before: Any
    after: Any
    reason: str


@dataclass
class NormalizeResult:
    record: SpecRecord
    changes: list[FieldChange] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def _clean_model(model: str | None, brand: str | None, taxonomy: Taxonomy) -> str | None:
    if model is None:
        return None
    cleaned = " ".join(model.split())
    if brand and cleaned.lower().startswith(brand.lower() + " "):
        cleaned = cleaned[len(brand) + 1:]
    noise = "|".join(re.escape(w) for w in taxonomy.model_noise_words)
    if noise:
        cleaned = re.sub(rf"\b(?:{noise})\b", " ", cleaned, flags=re.IGNORECASE)
    cleaned = " ".join(cleaned.split())
    return cleaned or None


class _Normalizer:
    def __init__(self, record: SpecRecord, currency: str | None, taxonomy: Taxonomy) -> None:
        self.values = record.to_dict()
        self.currency = currency
        self.taxonomy = taxonomy
        self.changes: list[FieldChange] = []
        self.warnings: list[str] = []

    def _set(self, name: str, value: Any, reason: str, warn: bool = False) -> None:
        before = self.values[name]
        if before == value:
            return
        self.values[name] = value
        self.changes.append(FieldChange(name, before, value, reason))
        if warn:
            self.warnings.append(f"{name}: {reason} ({before!r})")

    def identity(self) -> None:
        brand = self.taxonomy.canonical_brand(norm_str(self.values["brand_name"]))
        self._set("brand_name", brand, "canonical brand")
        model = _clean_model(norm_str(self.values["model"]), brand, self.taxonomy)
        self._set("model", model, "model cleanup")

    def ranges(self) -> None:
        for name, check in RANGE_FIELDS.items():
            raw = self.values[name]
            if raw is None:
                continue
            n = to_num(raw)
            if n is None or not check(n):
                self._set(name, None, "out of range", warn=True)
            else:
                self._set(name, n, "numeric")

    def weight(self) -> None:
        raw = self.values["weight"]
        if raw is None:
            return
        n = to_num(raw)
        if n is not None and 0 < n < OUNCE_CUTOFF:
            self._set("weight", float(oz_to_grams(n)), "ounces to grams")
            n = self.values["weight"]
        if n is None or not is_valid_weight(n):
            self._set("weight", None, "out of range", warn=True)
        else:
            self._set("weight", n, "numeric")

    def price(self) -> None:
        raw = self.values["price"]
        if raw is None:
            return
        n = to_num(raw)
        if n is not None and self.currency:
            converted = convert_to_usd(n, self.currency)
            if converted is None:
                self._set("price", None, f"unknown currency {self.currency}", warn=True)
                return
            n = round2(converted)
            self._set("price", n, f"converted from {self.currency.upper()}")
        if n is None or not is_valid_price(n):
            self._set("price", None, "out of range", warn=True)
        else:
            self._set("price", n, "numeric")

    def enums(self) -> None:
        for name, allowed in ENUM_FIELDS.items():
            raw = self.values[name]
            if raw is None:
                continue
            value = str(raw).strip().lower()
            if value in allowed:
                self._set(name, value, "lowercase")
            else:
                self._set(name, None, "not an allowed value", warn=True)

    def booleans(self) -> None:
        for name in BOOLEAN_FIELDS:
            raw = self.values[name]
            if raw is None or isinstance(raw, bool):
                continue
            value = coerce_bool(raw)
            self._set(name, value, "boolean", warn=value is None)

    def text(self) -> None:
        for name in ("primary_use", "additional_features"):
            raw = self.values[name]
            if raw is not None:
                self._set(name, norm_str(raw), "whitespace")


def normalize_record(
    record: SpecRecord,
    currency: str | None = None,
    taxonomy: Taxonomy | None = None,
) -> NormalizeResult:
    """Normalize one record.

    Args:
        record: Record to normalize; not modified.
        currency: Currency ``record.price`` is quoted in. ``None`` means USD.
        taxonomy: Brand alias table, defaults to the bundled one.

    Returns:
        The normalized copy with the list of changes and warnings.
    """
    n = _Normalizer(record, currency, taxonomy or get_taxonomy())
    n.identity()
    n.ranges()
    n.weight()
    n.price()
    n.enums()
    n.booleans()
    n.text()
    return NormalizeResult(
        record=SpecRecord.from_dict(n.values),
        changes=n.changes,
        warnings=n.warnings,
    )
