"""Locate model mentions in article bodies.

Two strategies, tried in order by the caller:

1. Heading-delimited listicles ("Best Trail Running Shoe: Hoka Speedgoat 6 ($155)")
2. Inline brand + model mentions anywhere in running prose
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from shoespec.core.taxonomy import Taxonomy

HEADING_PATTERN = re.compile(
    r"^(?:Best\s+)?(?:Top\s+)?(?:Road|Trail)?\s*(?:Running\s+)?Shoes?[^:\n]*?[:—–-]\s*"
    r"([^(\n]+?)(?:\s*\([^)\n]*\$(\d{2,4})[^)\n]*\))?\s*$",
    re.IGNORECASE | re.MULTILINE,
)
HEADING_PREFIX = re.compile(
    r"^(?:Runner-Up|Winner|Pick|Choice|Selection|Best\s+Overall|Best\s+Value)\s*:\s*",
    re.IGNORECASE,
)
# Headings that are really spec lines ("Shoe weight: 250 grams")
NOT_A_MODEL = re.compile(
    r"^(?:\d|millimeters?|grams?|ounces?|features?|offers?|weighs?|stack|height|"
    r"lugs|vibram|compound|outsole|midsole|upper|drop)",
    re.IGNORECASE,
)
UPPERCASE = re.compile(r"[A-Z]")
DIGIT = re.compile(r"\d")

MODEL_PREFIXES = r"(?:Air\s+Zoom\s+|Gel-?|Fresh\s+Foam\s+)?"
# Version numbers followed by a unit are measurements, not model versions.
NOT_A_UNIT = r"(?!\s*(?:mm|millimet\w*|g|grams?|oz|ounces?|%|percent|dollars?|usd)\b)"
VERSION_LOOKAHEAD = re.compile(r"^\s+([A-Z][a-z]+\s+)?(\d+[a-z]*)\b" + NOT_A_UNIT)
TRAILING_MEASUREMENT = re.compile(r"\d+(?:mm|g|oz)$")

MAX_MODEL_PART = 25
CONTEXT_AFTER = 300


@dataclass
class ModelMention:
    heading: str
    brand_model: str
    start: int
    end: int
    price: float | None = None


def detect_model_headings(content: str) -> list[ModelMention]:
    mentions: list[ModelMention] = []
    for m in HEADING_PATTERN.finditer(content):
        brand_model = HEADING_PREFIX.sub("", m.group(1).strip()).strip()
        if NOT_A_MODEL.match(brand_model):
            continue
        if not UPPERCASE.search(brand_model) or not 3 <= len(brand_model) <= 50:
            continue
        mentions.append(
            ModelMention(
                heading=m.group(0).strip(),
                brand_model=brand_model,
                start=m.start(),
                end=m.end(),
                price=float(m.group(2)) if m.group(2) else None,
            )
        )
    return mentions


def _brand_pattern(brand: str) -> str:
    escaped = re.escape(brand).replace(r"\ ", r"\s+")
    # short brands ("On") need both boundaries and are matched case-sensitively
    return rf"\b{escaped}\b" if len(brand) <= 2 else rf"\b{escaped}"


def _series_alternation(taxonomy: Taxonomy) -> str:
    names = sorted(taxonomy.series_names, key=len, reverse=True)
    return "|".join(re.escape(n).replace(r"\ ", r"\s+") for n in names)


_inline_cache: dict[int, tuple[Taxonomy, list[tuple[str, list[re.Pattern[str]]]]]] = {}


def _inline_patterns(taxonomy: Taxonomy) -> list[tuple[str, list[re.Pattern[str]]]]:
    cached = _inline_cache.get(id(taxonomy))
    if cached is not None and cached[0] is taxonomy:
        return cached[1]
    series = _series_alternation(taxonomy)
    compiled = []
    for brand in taxonomy.extraction_brands:
        bp = _brand_pattern(brand)
        flags = 0 if len(brand) <= 2 else re.IGNORECASE
        compiled.append((brand, [
            re.compile(
                rf"{bp}\s+{MODEL_PREFIXES}(?i:[a-z]+(?:\s+[a-z]+)?)[\s-]*(?i:\d+[a-z]*)\b{NOT_A_UNIT}",
                flags,
            ),
            re.compile(rf"{bp}\s+(?i:{series})\b", flags),
        ]))
    _inline_cache[id(taxonomy)] = (taxonomy, compiled)
    return compiled


def is_valid_model_part(model_part: str, taxonomy: Taxonomy) -> bool:
    """Reject generic words and prose fragments captured as model names."""
    if not model_part or len(model_part) < 2 or len(model_part) > MAX_MODEL_PART:
        return False
    lower = model_part.lower()
    if not DIGIT.search(model_part) and not taxonomy.mentions_series(lower):
        return False
    if TRAILING_MEASUREMENT.search(lower):
        return False
    if lower in taxonomy.invalid_model_words:
        return False
    return not taxonomy.has_invalid_phrase(lower)


def detect_inline_models(content: str, taxonomy: Taxonomy) -> list[ModelMention]:
    """Find ``<brand> <model> <version>`` and ``<brand> <series>`` mentions.

    Overlapping hits (the same text matched by both patterns) collapse to
    the one with the longer model name. Results are in document order.
    """
    found: list[ModelMention] = []
    for brand, patterns in _inline_patterns(taxonomy):
        strip_brand = re.compile(rf"^{_brand_pattern(brand)}\s+", re.IGNORECASE)
        for pattern in patterns:
            for m in pattern.finditer(content):
                full = " ".join(m.group(0).split())
                model_part = strip_brand.sub("", full).strip()
                end = m.end()
                version = VERSION_LOOKAHEAD.match(content[end: end + 50])
                if version and not DIGIT.search(model_part):
                    if version.group(1):
                        model_part += " " + version.group(1).strip()
                    model_part += " " + version.group(2)
                    end += version.end()
                if not is_valid_model_part(model_part, taxonomy):
                    continue
                found.append(
                    ModelMention(
                        heading=content[m.start():end],
                        brand_model=f"{brand} {model_part}",
                        start=m.start(),
                        end=end,
                    )
                )

    found.sort(key=lambda x: (x.start, -(x.end - x.start)))
    kept: list[ModelMention] = []
    for mention in found:
        if kept and mention.start < kept[-1].end:
            if len(mention.brand_model) > len(kept[-1].brand_model):
                kept[-1] = mention
            continue
        kept.append(mention)
    return kept


def heading_block(content: str, mention: ModelMention, following: ModelMention | None) -> str:
    """Heading line plus its description, up to the next heading."""
    end = following.start if following else len(content)
    return f"{mention.heading}\n{content[mention.end:end].strip()}"


def inline_block(content: str, mention: ModelMention, following: ModelMention | None) -> str:
    """Mention plus up to ``CONTEXT_AFTER`` chars, never crossing the next mention."""
    end = min(len(content), mention.end + CONTEXT_AFTER)
    if following is not None:
        end = min(end, following.start)
    return f"{mention.heading}\n{content[mention.end:end].strip()}"


def parse_brand_model(brand_model: str, taxonomy: Taxonomy) -> tuple[str | None, str | None]:
    """Split ``"New Balance Fresh Foam 1080v14"`` into brand and model."""
    text = " ".join(brand_model.split())
    if not text:
        return None, None
    lower = text.lower()
    for brand in sorted(taxonomy.extraction_brands, key=len, reverse=True):
        b = brand.lower()
        if lower == b:
            return brand, None
        if lower.startswith(b + " "):
            return brand, text[len(brand):].strip() or None
    parts = text.split(" ", 1)
    brand = taxonomy.canonical_brand(parts[0])
    if len(parts) == 1:
        return brand, None
    return brand, parts[1].strip() or None


def is_high_quality_model(brand: str, model: str, taxonomy: Taxonomy) -> bool:
    if not taxonomy.is_known_brand(brand):
        return False
    return bool(DIGIT.search(model)) or taxonomy.starts_with_series(model)
