"""Merge pattern results with LLM results for the same shoes."""

from __future__ import annotations

from shoespec.core.types import Candidate, SpecRecord

# Categoricals the pattern extractor rarely finds; these are taken from the
# LLM record when the pattern record has nothing.
FILL_FIELDS = (
    "upper_breathability",
    "cushioning_type",
    "foot_width",
    "waterproof",
    "primary_use",
    "surface_type",
    "additional_features",
)


def hybrid_merge(primary: list[SpecRecord], secondary: list[SpecRecord]) -> list[SpecRecord]:
    """Fill null categoricals of *primary* from matching *secondary* records.

    Records match on case-insensitive brand and model. When several
    *secondary* records share an identity, the richest one is used and the
    earliest wins a tie. Numeric and boolean values already present in
    *primary* always win. Unmatched primary records come back unchanged;
    unmatched secondary records are dropped. Inputs are not modified.
    """
    by_identity: dict[str, Candidate] = {}
    for record in secondary:
        key = record.identity
        if not key:
            continue
        candidate = Candidate(record, source="llm")
        best = by_identity.get(key)
        if best is None or candidate.richness() > best.richness():
            by_identity[key] = candidate

    merged: list[SpecRecord] = []
    for record in primary:
        best = by_identity.get(record.identity) if record.identity else None
        if best is None:
            merged.append(record.replace())
            continue
        match = best.record
        fills = {
            name: getattr(match, name)
            for name in FILL_FIELDS
            if getattr(record, name) is None and getattr(match, name) is not None
        }
        merged.append(record.replace(**fills))
    return merged
