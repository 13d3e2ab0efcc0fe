"""Generative fallback extractor."""
from .extractor import build_request, extract_with_llm
from .items import item_rejection_reason, normalize_item
from .parsing import decode_items, parse_json_response
from .prompts import build_system_prompt, build_user_prompt

__all__ = [
    "build_request",
    "build_system_prompt",
    "build_user_prompt",
    "decode_items",
    "extract_with_llm",
    "item_rejection_reason",
    "normalize_item",
    "parse_json_response",
]
