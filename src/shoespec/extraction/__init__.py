"""Extraction stage: title analysis, pattern and LLM extractors, orchestration."""
from .config import EXTRACTION_PRESETS, ExtractionConfig, get_extraction_config
from .hybrid import hybrid_merge
from .llm import extract_with_llm
from .orchestrator import ExtractionOrchestrator
from .pattern import extract_with_patterns
from .postprocess import apply_postprocess, compute_coverage, dedupe_records, validate_records
from .title_analysis import (
    analyze_title,
    content_mentions_shoes,
    is_running_shoe_article,
    matches_brand,
    matches_title_analysis,
)

__all__ = [
    "EXTRACTION_PRESETS",
    "ExtractionConfig",
    "ExtractionOrchestrator",
    "analyze_title",
    "apply_postprocess",
    "compute_coverage",
    "content_mentions_shoes",
    "dedupe_records",
    "extract_with_llm",
    "extract_with_patterns",
    "get_extraction_config",
    "hybrid_merge",
    "is_running_shoe_article",
    "matches_brand",
    "matches_title_analysis",
    "validate_records",
]
