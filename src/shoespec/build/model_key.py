"""Stable sink keys for brand + model pairs."""

from __future__ import annotations

import re
import unicodedata

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def _fold(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _NON_ALNUM_RE.sub(" ", stripped.lower()).strip()


def generate_model_key(brand: str | None, model: str | None) -> str:
    """``"Brooks", "Ghost 16"`` -> ``"brooks ghost 16"``.

    Diacritics are dropped, punctuation becomes a single space. Returns
    ``""`` when either part is missing or folds to nothing.
    """
    if not brand or not model:
        return ""
    b = _fold(brand)
    m = _fold(model)
    if not b or not m:
        return ""
    return f"{b} {m}"
