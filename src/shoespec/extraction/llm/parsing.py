"""LLM response parsing utilities."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)

# Wrapper keys seen in the wild, in the order they are trusted.
ITEM_KEYS = ("items", "sneakers", "models")


def parse_json_response(response: str) -> Any:
    """Parse the JSON payload of *response*, tolerating fences and prose.

    Returns ``None`` when nothing parses.
    """
    if not response:
        return None
    text = response.strip()
    fenced = _FENCE_RE.search(text)
    if fenced:
        text = fenced.group(1).strip()

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    # Try {...} and bare [...], whichever opens first
    patterns = [r"\{.*\}", r"\[.*\]"]
    first_brace, first_bracket = text.find("{"), text.find("[")
    if first_bracket >= 0 and (first_brace < 0 or first_bracket < first_brace):
        patterns.reverse()
    for pattern in patterns:
        match = re.search(pattern, text, re.DOTALL)
        if match:
            try:
                return json.loads(match.group())
            except json.JSONDecodeError:
                pass

    logger.warning("Unparseable LLM response (%d chars): %.200s", len(response), response)
    return None


def decode_items(payload: Any) -> list[dict[str, Any]]:
    """Pull the list of item objects out of a parsed response.

    Accepted shapes, first match wins:

    1. ``{"items": [...]}``
    2. ``{"sneakers": [...]}``
    3. ``{"models": [...]}``
    4. ``{"model": {...}}``: a single item under a singular key
    5. ``[...]``: a bare list of items

    Anything else decodes to an empty list. Non-dict entries are dropped.
    """
    items: Any = None
    if isinstance(payload, dict):
        for key in ITEM_KEYS:
            if isinstance(payload.get(key), list):
                items = payload[key]
                break
        else:
            single = payload.get("model")
            if isinstance(single, dict):
                items = [single]
    elif isinstance(payload, list):
        items = payload

    if not items:
        return []
    return [item for item in items if isinstance(item, dict)]
