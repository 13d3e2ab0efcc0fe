"""Title/context classification.

Decides, from an article title alone, how aggressively extracted records
are filtered:

- ``irrelevant``: non-shoe product (watches, apparel, gels); skip the article
- ``specific``: single-model review; keep only that brand + model
- ``brand-only``: single-brand roundup; keep only that brand
- ``general``: multi-brand roundup; never filtered
"""

from __future__ import annotations

import logging
import re

from shoespec.core.taxonomy import Taxonomy, get_taxonomy
from shoespec.core.types import SpecRecord, TitleAnalysis

logger = logging.getLogger(__name__)

GENERAL = TitleAnalysis(scenario="general", confidence=0.8)


def _brand_alternation(brands: tuple[str, ...]) -> str:
    parts = []
    for brand in sorted(brands, key=len, reverse=True):
        escaped = re.escape(brand).replace(r"\-", "-?")
        parts.append(escaped.replace(r"\ ", r"\s+"))
    return "|".join(parts)


class _TitlePatterns:
    """Compiled title regexes for one taxonomy."""

    def __init__(self, taxonomy: Taxonomy) -> None:
        brands = _brand_alternation(taxonomy.title_brands)
        review = "|".join(re.escape(k) for k in taxonomy.review_keywords if k not in ("vs", "comparison"))
        review_or_vs = "|".join(re.escape(k) for k in taxonomy.review_keywords)
        self.brand_model_version = re.compile(
            rf"\b({brands})\s+([a-z]+(?:\s+[a-z]+)?)\s+(\d+)"
            rf"(?:\s+(?:trail|road))?(?:\s+(?:{review_or_vs})\b|\s*$)",
            re.IGNORECASE,
        )
        self.brand_model_review = re.compile(
            rf"\b({brands})\s+([a-z]+(?:\s+[a-z]+){{0,2}}?)\s+(?:{review})\b",
            re.IGNORECASE,
        )
        self.model_version_review = re.compile(
            rf"\b([a-z]+(?:\s+[a-z]+)?)\s+(\d+)(?:\s+(?:trail|road))?\s+(?:{review})\b",
            re.IGNORECASE,
        )
        self.brand_focus = {
            brand: re.compile(
                rf"\b\d+\s+{b}\b|\bbest\s+{b}\b|\btop\s+{b}\b|\b{b}\s+(?:running\s+)?shoes?\b",
                re.IGNORECASE,
            )
            for brand in taxonomy.title_brands
            for b in [_brand_alternation((brand,))]
        }
        self.brand_mention = {
            brand: re.compile(
                rf"\b{_brand_alternation((brand,))}\b",
                0 if len(brand) <= 2 else re.IGNORECASE,
            )
            for brand in taxonomy.title_brands
        }
        self.brand_model_number = {
            brand: re.compile(rf"\b{_brand_alternation((brand,))}\s+[a-z]+\s+\d+", re.IGNORECASE)
            for brand in taxonomy.title_brands
        }
        noise = "|".join(
            re.escape(w).replace(r"\ ", r"\s+")
            for w in sorted(taxonomy.title_noise_words, key=len, reverse=True)
        )
        self.trailing_noise = re.compile(rf"(?:\s+(?:{noise}))+\s*$", re.IGNORECASE)


_patterns_cache: dict[int, tuple[Taxonomy, _TitlePatterns]] = {}


def _patterns(taxonomy: Taxonomy) -> _TitlePatterns:
    cached = _patterns_cache.get(id(taxonomy))
    if cached is None or cached[0] is not taxonomy:
        cached = (taxonomy, _TitlePatterns(taxonomy))
        _patterns_cache[id(taxonomy)] = cached
    return cached[1]


def _strip_noise(model: str, patterns: _TitlePatterns) -> str:
    return patterns.trailing_noise.sub("", model).strip()


def _detect_specific(
    title: str, taxonomy: Taxonomy, patterns: _TitlePatterns
) -> TitleAnalysis | None:
    lowered = title.lower()

    for model_key, brand in taxonomy.model_to_brand.items():
        idx = lowered.find(model_key)
        if idx >= 0:
            return TitleAnalysis(
                scenario="specific",
                brand=brand,
                model=title[idx: idx + len(model_key)],
                confidence=0.9,
            )

    for m in patterns.brand_model_version.finditer(title):
        if not _brand_case_ok(m.group(1)):
            continue
        model = _strip_noise(f"{m.group(2)} {m.group(3)}", patterns)
        if model and model.split()[0].lower() not in taxonomy.invalid_models:
            brand = taxonomy.canonical_brand(m.group(1))
            return TitleAnalysis(scenario="specific", brand=brand, model=model, confidence=0.8)

    for m in patterns.brand_model_review.finditer(title):
        if not _brand_case_ok(m.group(1)):
            continue
        model = _strip_noise(m.group(2), patterns)
        if model and model.lower() not in taxonomy.invalid_models:
            return TitleAnalysis(
                scenario="specific",
                brand=taxonomy.canonical_brand(m.group(1)),
                model=model,
                confidence=0.8,
            )

    m = patterns.model_version_review.search(title)
    if m:
        model = f"{m.group(1)} {m.group(2)}".strip()
        brand = taxonomy.model_to_brand.get(model.lower())
        if brand:
            return TitleAnalysis(scenario="specific", brand=brand, model=model, confidence=0.8)

    return None


def _brand_case_ok(matched: str) -> bool:
    # "on" is too common a word to accept lowercase
    return len(matched) > 2 or matched[:1].isupper()


def _detect_brand_only(
    title: str, taxonomy: Taxonomy, patterns: _TitlePatterns
) -> TitleAnalysis | None:
    for brand in taxonomy.title_brands:
        if not patterns.brand_mention[brand].search(title):
            continue
        if patterns.brand_focus[brand].search(title):
            return TitleAnalysis(
                scenario="brand-only",
                brand=taxonomy.canonical_brand(brand),
                confidence=0.95,
            )
        if not patterns.brand_model_number[brand].search(title):
            return TitleAnalysis(
                scenario="brand-only",
                brand=taxonomy.canonical_brand(brand),
                confidence=0.85,
            )
    return None


def analyze_title(title: str | None, taxonomy: Taxonomy | None = None) -> TitleAnalysis:
    """Classify *title* into an extraction scenario. Never raises."""
    if not title or not title.strip():
        return GENERAL
    taxonomy = taxonomy or get_taxonomy()
    patterns = _patterns(taxonomy)
    title = " ".join(title.split())

    category = taxonomy.non_product_match(title)
    if category:
        logger.info("Title %r is a non-shoe %s article", title, category)
        return TitleAnalysis(scenario="irrelevant", confidence=0.0)

    specific = _detect_specific(title, taxonomy, patterns)
    if specific:
        logger.debug("Title %r -> specific %s %s", title, specific.brand, specific.model)
        return specific

    brand_only = _detect_brand_only(title, taxonomy, patterns)
    if brand_only:
        logger.debug("Title %r -> brand-only %s", title, brand_only.brand)
        return brand_only

    logger.debug("Title %r -> general", title)
    return GENERAL


def matches_brand(record: SpecRecord, analysis: TitleAnalysis) -> bool:
    if not analysis.brand:
        return True
    return (record.brand_name or "").lower() == analysis.brand.lower()


def matches_title_analysis(record: SpecRecord, analysis: TitleAnalysis) -> bool:
    """Whether *record* is consistent with what the title promises."""
    if analysis.scenario == "brand-only" and analysis.brand:
        return matches_brand(record, analysis)
    if analysis.scenario == "specific" and analysis.brand and analysis.model:
        model_ok = analysis.model.lower() in (record.model or "").lower()
        return matches_brand(record, analysis) and model_ok
    return True


_SHOE_VOCABULARY = re.compile(
    r"\b(?:shoes?|sneakers?|trainers?|midsoles?|outsoles?|stack\s+height|heel[-\s]to[-\s]toe)\b",
    re.IGNORECASE,
)


def content_mentions_shoes(content: str | None, taxonomy: Taxonomy | None = None) -> bool:
    """Whether *content* names a known brand or uses shoe vocabulary.

    Empty content gives no evidence either way and counts as a mention.
    """
    if not content or not content.strip():
        return True
    if _SHOE_VOCABULARY.search(content):
        return True
    patterns = _patterns(taxonomy or get_taxonomy())
    # "On" starts too many sentences to count as a brand mention here
    return any(
        p.search(content) for brand, p in patterns.brand_mention.items() if len(brand) > 2
    )


def is_running_shoe_article(
    title: str | None,
    content: str | None = None,
    taxonomy: Taxonomy | None = None,
    analysis: TitleAnalysis | None = None,
) -> bool:
    """Two-stage relevance check, title first and then content.

    A title about a non-shoe product rules the article out and a title
    naming a brand or model rules it in. A general title leaves the
    decision to :func:`content_mentions_shoes`. Pass *analysis* when the
    title was already classified.
    """
    if analysis is None:
        analysis = analyze_title(title, taxonomy)
    if analysis.scenario == "irrelevant":
        return False
    if analysis.scenario != "general":
        return True
    return content_mentions_shoes(content, taxonomy)
