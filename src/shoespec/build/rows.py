"""Sink row construction."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any

from shoespec.core.types import Article, SpecRecord

from .model_key import generate_model_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ShoeRow:
    model_key: str
    article_id: str
    brand_name: str
    model: str
    heel_height: float | None = None
    forefoot_height: float | None = None
    drop: float | None = None
    weight: float | None = None
    price: float | None = None
    upper_breathability: str | None = None
    carbon_plate: bool | None = None
    waterproof: bool | None = None
    primary_use: str | None = None
    cushioning_type: str | None = None
    surface_type: str | None = None
    foot_width: str | None = None
    additional_features: str | None = None
    source_link: str | None = None
    date: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def build_shoe_row(record: SpecRecord, article: Article) -> ShoeRow | None:
    """Attach the model key and article provenance to *record*.

    Returns ``None`` (with a warning) when no key can be derived.
    """
    key = generate_model_key(record.brand_name, record.model)
    if not key:
        logger.warning(
            "Article %s: no model key for %r %r, row skipped",
            article.id, record.brand_name, record.model,
        )
        return None
    return ShoeRow(
        model_key=key,
        article_id=article.id,
        source_link=article.source_link,
        date=article.date,
        **record.to_dict(),
    )
