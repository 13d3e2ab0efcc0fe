"""LLM fallback extraction: one gateway call per article."""

from __future__ import annotations

import logging

from shoespec.core.taxonomy import Taxonomy, get_taxonomy
from shoespec.core.types import Rejection, SpecRecord, TitleAnalysis
from shoespec.shared.llm import LLMGateway, LLMRequest

from .items import item_rejection_reason, normalize_item
from .parsing import decode_items, parse_json_response
from .prompts import FEW_SHOT_EXAMPLES, build_system_prompt, build_user_prompt

logger = logging.getLogger(__name__)


def build_request(content: str, title: str | None, analysis: TitleAnalysis | None) -> LLMRequest:
    return LLMRequest(
        system_prompt=build_system_prompt(analysis),
        user_prompt=build_user_prompt(content, title, analysis),
        few_shot_examples=FEW_SHOT_EXAMPLES,
    )


def extract_with_llm(
    gateway: LLMGateway,
    content: str,
    title: str | None,
    analysis: TitleAnalysis | None,
    taxonomy: Taxonomy | None = None,
    warnings: list[str] | None = None,
    rejected: list[Rejection] | None = None,
) -> list[SpecRecord]:
    """Ask the model for spec items and keep the ones that validate.

    A response that does not parse yields ``[]``. Discarded field values
    are appended to *warnings* and dropped items to *rejected* when those
    lists are given.

    Raises:
        LLMServiceError: When the gateway gives up on the call.
    """
    taxonomy = taxonomy or get_taxonomy()
    response = gateway.complete(build_request(content, title, analysis))

    payload = parse_json_response(response)
    if payload is None:
        return []

    raw_items = decode_items(payload)
    records: list[SpecRecord] = []
    for raw in raw_items:
        record = normalize_item(raw, taxonomy, warnings)
        reason = item_rejection_reason(record, taxonomy)
        if reason is None:
            records.append(record)
            continue
        logger.debug("Dropping LLM item %s %s: %s", record.brand_name, record.model, reason)
        if rejected is not None:
            rejected.append(Rejection.of(record, reason, stage="llm"))

    logger.debug("LLM extraction: %d raw items, %d valid", len(raw_items), len(records))
    return records
