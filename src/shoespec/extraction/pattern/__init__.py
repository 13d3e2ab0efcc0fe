"""Deterministic pattern extraction of shoe specs from article bodies."""

from __future__ import annotations

import logging

from shoespec.core.taxonomy import Taxonomy, get_taxonomy
from shoespec.core.types import Candidate, Rejection, SpecRecord

from .detection import (
    ModelMention,
    detect_inline_models,
    detect_model_headings,
    heading_block,
    inline_block,
    is_high_quality_model,
    is_valid_model_part,
    parse_brand_model,
)
from .fields import (
    derived_drop,
    extract_carbon_plate,
    extract_drop,
    extract_heights,
    extract_price,
    extract_use_and_surface,
    extract_waterproof,
    extract_weight,
)
from .merge import are_similar_models, merge_models, merge_similar

logger = logging.getLogger(__name__)


def extract_specs(block: str, mention: ModelMention, taxonomy: Taxonomy) -> SpecRecord:
    """Apply every field rule to one (mention, block) pair."""
    brand, model = parse_brand_model(mention.brand_model, taxonomy)
    heel, forefoot = extract_heights(block)
    primary_use, surface = extract_use_and_surface(mention.heading, block)
    return SpecRecord(
        brand_name=brand,
        model=model,
        price=mention.price if mention.price is not None else extract_price(block),
        weight=extract_weight(block),
        heel_height=heel,
        forefoot_height=forefoot,
        # Only a stated drop here; derived drops are filled in after merging
        drop=extract_drop(block),
        primary_use=primary_use,
        surface_type=surface,
        waterproof=extract_waterproof(block),
        carbon_plate=extract_carbon_plate(block),
    )


def gate_failure(record: SpecRecord, taxonomy: Taxonomy) -> str | None:
    """Why *record* fails the acceptance gates, or ``None`` if it passes."""
    if not record.brand_name or not record.model:
        return "missing brand or model"
    if record.heel_height is None and record.drop is None:
        return "no stack data"
    if not record.primary_use and not record.surface_type:
        return "no use or surface"
    if not is_high_quality_model(record.brand_name, record.model, taxonomy):
        return "model does not look like a product name"
    return None


def extract_with_patterns(
    content: str,
    taxonomy: Taxonomy | None = None,
    rejected: list[Rejection] | None = None,
) -> list[Candidate]:
    """Extract candidates from *content*.

    Heading-delimited listicles are tried first; inline brand mentions are
    only scanned when no headings are found. Candidates failing a gate are
    appended to *rejected* when a list is given.
    """
    taxonomy = taxonomy or get_taxonomy()
    if not content or not content.strip():
        return []

    mentions = detect_model_headings(content)
    block_for = heading_block
    if not mentions:
        mentions = detect_inline_models(content, taxonomy)
        block_for = inline_block
    if not mentions:
        logger.debug("No model mentions found")
        return []

    records: list[SpecRecord] = []
    for i, mention in enumerate(mentions):
        following = mentions[i + 1] if i + 1 < len(mentions) else None
        block = block_for(content, mention, following)
        record = extract_specs(block, mention, taxonomy)
        reason = gate_failure(record, taxonomy)
        if reason is None:
            records.append(record)
            continue
        logger.debug("Skipping %s %s: %s", record.brand_name, record.model, reason)
        if rejected is not None:
            rejected.append(Rejection.of(record, reason, stage="pattern"))

    merged = [
        r if r.drop is not None else r.replace(drop=derived_drop(r.heel_height, r.forefoot_height))
        for r in merge_similar(records)
    ]
    logger.debug(
        "Pattern extraction: %d mentions, %d accepted, %d after merge",
        len(mentions), len(records), len(merged),
    )
    return [Candidate(record=r, source="regex") for r in merged]


__all__ = [
    "ModelMention",
    "are_similar_models",
    "detect_inline_models",
    "detect_model_headings",
    "extract_specs",
    "extract_with_patterns",
    "gate_failure",
    "is_high_quality_model",
    "is_valid_model_part",
    "merge_models",
    "merge_similar",
    "parse_brand_model",
]
