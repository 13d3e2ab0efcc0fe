"""Brand / model taxonomy loaded from ``data/taxonomy.json``.

The table holds every curated word list the extractors rely on (brand
names and aliases, model → brand lookups, series names, non-product
keyword classes, invalid model words). It is read once per process and
shared read-only; extend the JSON rather than the code.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

DEFAULT_TAXONOMY_PATH = Path(__file__).resolve().parent.parent / "data" / "taxonomy.json"


@dataclass(frozen=True)
class Taxonomy:
    title_brands: tuple[str, ...]
    extraction_brands: tuple[str, ...]
    brand_aliases: dict[str, str]
    model_to_brand: dict[str, str]
    series_names: tuple[str, ...]
    series_words: frozenset[str]
    series_prefixes: tuple[str, ...]
    non_product_keywords: dict[str, tuple[str, ...]]
    review_keywords: tuple[str, ...]
    title_noise_words: tuple[str, ...]
    model_noise_words: tuple[str, ...]
    invalid_models: frozenset[str]
    invalid_model_words: frozenset[str]
    invalid_model_phrases: tuple[str, ...]
    _non_product_re: re.Pattern[str] = field(init=False, repr=False, compare=False)
    _phrase_re: re.Pattern[str] = field(init=False, repr=False, compare=False)
    _series_word_re: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        keywords = [kw for group in self.non_product_keywords.values() for kw in group]
        object.__setattr__(
            self, "_non_product_re",
            re.compile(r"\b(?:" + "|".join(keywords) + r")\b", re.IGNORECASE),
        )
        object.__setattr__(
            self, "_phrase_re",
            re.compile(
                r"\b(?:" + "|".join(re.escape(p) for p in self.invalid_model_phrases) + r")\b",
                re.IGNORECASE,
            ),
        )
        object.__setattr__(
            self, "_series_word_re",
            re.compile(
                r"\b(?:" + "|".join(re.escape(w) for w in sorted(self.series_words)) + r")",
                re.IGNORECASE,
            ),
        )

    def canonical_brand(self, name: str | None) -> str | None:
        """Collapse alias spellings (``HOKA``, ``On Running``) to one form."""
        if name is None:
            return None
        cleaned = " ".join(name.split())
        if not cleaned:
            return None
        alias = self.brand_aliases.get(cleaned.lower())
        if alias:
            return alias
        if cleaned.isupper() and len(cleaned) > 3:
            return cleaned.title()
        return cleaned

    def is_known_brand(self, name: str | None) -> bool:
        return bool(name) and name in self.extraction_brands

    def non_product_match(self, text: str) -> str | None:
        """Return the first non-product keyword class hit in *text*."""
        m = self._non_product_re.search(text)
        if not m:
            return None
        hit = m.group(0).lower()
        for group, patterns in self.non_product_keywords.items():
            if any(re.fullmatch(p, hit, re.IGNORECASE) for p in patterns):
                return group
        return "other"

    def mentions_series(self, text: str) -> bool:
        return bool(self._series_word_re.search(text))

    def has_invalid_phrase(self, text: str) -> bool:
        return bool(self._phrase_re.search(text))

    def starts_with_series(self, model: str) -> bool:
        lower = model.lower()
        return any(lower.startswith(p.lower()) for p in self.series_prefixes)


def load_taxonomy(path: Path = DEFAULT_TAXONOMY_PATH) -> Taxonomy:
    """Load a taxonomy table from JSON.

    Raises:
        FileNotFoundError: If file doesn't exist
        json.JSONDecodeError: If file is invalid JSON
    """
    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)

    return Taxonomy(
        title_brands=tuple(data.get("title_brands", [])),
        extraction_brands=tuple(data.get("extraction_brands", [])),
        brand_aliases={k.lower(): v for k, v in data.get("brand_aliases", {}).items()},
        model_to_brand={k.lower(): v for k, v in data.get("model_to_brand", {}).items()},
        series_names=tuple(data.get("series_names", [])),
        series_words=frozenset(w.lower() for w in data.get("series_words", [])),
        series_prefixes=tuple(data.get("series_prefixes", [])),
        non_product_keywords={
            k: tuple(v) for k, v in data.get("non_product_keywords", {}).items()
        },
        review_keywords=tuple(data.get("review_keywords", [])),
        title_noise_words=tuple(data.get("title_noise_words", [])),
        model_noise_words=tuple(data.get("model_noise_words", [])),
        invalid_models=frozenset(w.lower() for w in data.get("invalid_models", [])),
        invalid_model_words=frozenset(w.lower() for w in data.get("invalid_model_words", [])),
        invalid_model_phrases=tuple(data.get("invalid_model_phrases", [])),
    )


@lru_cache(maxsize=1)
def get_taxonomy() -> Taxonomy:
    return load_taxonomy()
