"""Final passes over extracted records: derive, validate, dedupe, score."""

from __future__ import annotations

import logging

from shoespec.core.types import (
    COVERAGE_FIELDS,
    IDENTITY_FIELDS,
    SCHEMA_SIZE,
    CoverageReport,
    Rejection,
    SpecRecord,
)
from shoespec.core.units import round2
from shoespec.core.validation import BRAND_LENGTH, MODEL_LENGTH, has_valid_length, is_valid_drop

logger = logging.getLogger(__name__)


def apply_postprocess(record: SpecRecord) -> SpecRecord:
    """Derive drop from heights and default waterproof for trail shoes."""
    changes = {}
    if record.drop is None and record.heel_height is not None and record.forefoot_height is not None:
        drop = round2(record.heel_height - record.forefoot_height)
        if is_valid_drop(drop):
            changes["drop"] = drop
    if record.surface_type == "trail" and record.waterproof is None:
        changes["waterproof"] = False
    return record.replace(**changes)


def validate_records(records: list[SpecRecord], rejected: list[Rejection] | None = None) -> list[SpecRecord]:
    valid = []
    for record in records:
        if not has_valid_length(record.brand_name, BRAND_LENGTH):
            logger.debug("Invalid brand %r for model %r", record.brand_name, record.model)
            reason = "invalid brand"
        elif not has_valid_length(record.model, MODEL_LENGTH):
            logger.debug("Invalid model %r for brand %r", record.model, record.brand_name)
            reason = "invalid model"
        else:
            valid.append(record)
            continue
        if rejected is not None:
            rejected.append(Rejection.of(record, reason, stage="validate"))
    return valid


def dedupe_records(records: list[SpecRecord], rejected: list[Rejection] | None = None) -> list[SpecRecord]:
    """Keep the first record per case-insensitive ``brand:model``."""
    seen: set[str] = set()
    unique = []
    for record in records:
        key = record.identity
        if key is None or key in seen:
            if rejected is not None:
                rejected.append(Rejection.of(record, "duplicate" if key else "no identity", stage="dedupe"))
            continue
        seen.add(key)
        unique.append(record)
    return unique


def compute_coverage(records: list[SpecRecord]) -> CoverageReport:
    """Fill-rate report over the full schema.

    Each record's coverage is the percentage of schema fields populated,
    brand and model included. ``field_coverage`` counts non-null values
    per non-identity field.
    """
    field_coverage = {name: 0 for name in COVERAGE_FIELDS}
    if not records:
        return CoverageReport(total_sneakers=0, average_coverage=0.0, field_coverage=field_coverage)

    total = 0.0
    for record in records:
        filled = sum(1 for name in IDENTITY_FIELDS if getattr(record, name) is not None)
        for name in COVERAGE_FIELDS:
            if getattr(record, name) is not None:
                filled += 1
                field_coverage[name] += 1
        total += filled / SCHEMA_SIZE * 100

    return CoverageReport(
        total_sneakers=len(records),
        average_coverage=round2(total / len(records)),
        field_coverage=field_coverage,
    )
