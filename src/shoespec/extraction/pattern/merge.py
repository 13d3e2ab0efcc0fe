"""Collapse near-duplicate pattern candidates ("Pegasus" vs "Pegasus 41")."""

from __future__ import annotations

from dataclasses import fields

from shoespec.core.types import SpecRecord

MAX_SUFFIX_DIFF = 5


def are_similar_models(a: SpecRecord, b: SpecRecord) -> bool:
    """Same brand, and one model name is a short prefix-extension of the other."""
    if (a.brand_name or "").lower() != (b.brand_name or "").lower():
        return False
    name_a = (a.model or "").lower()
    name_b = (b.model or "").lower()
    shorter, longer = sorted((name_a, name_b), key=len)
    return longer.startswith(shorter) and len(longer) - len(shorter) <= MAX_SUFFIX_DIFF


def merge_models(existing: SpecRecord, incoming: SpecRecord) -> SpecRecord:
    """Keep the longer model name; fill null fields from *incoming*.

    Field-by-field filling can pair heights from different mentions, so
    callers derive ``drop`` from heights only after merging.
    """
    merged = {}
    for f in fields(SpecRecord):
        current = getattr(existing, f.name)
        merged[f.name] = current if current is not None else getattr(incoming, f.name)
    if len(incoming.model or "") > len(existing.model or ""):
        merged["model"] = incoming.model
    return SpecRecord(**merged)


def merge_similar(records: list[SpecRecord]) -> list[SpecRecord]:
    """Fold *records* in order; first occurrence keeps its position."""
    merged: list[SpecRecord] = []
    for record in records:
        for i, existing in enumerate(merged):
            if are_similar_models(existing, record):
                merged[i] = merge_models(existing, record)
                break
        else:
            merged.append(record)
    return merged
