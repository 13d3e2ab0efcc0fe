"""Core types, units and validation shared by every stage."""
from .taxonomy import Taxonomy, get_taxonomy, load_taxonomy
from .types import (
    Article,
    Candidate,
    CoverageReport,
    ExtractionResult,
    Rejection,
    SpecRecord,
    TitleAnalysis,
)
from .units import convert_to_usd, detect_currency, oz_to_grams, round2, to_num
from .validation import (
    is_valid_drop,
    is_valid_height,
    is_valid_price,
    is_valid_weight,
)

__all__ = [
    "Article",
    "Candidate",
    "CoverageReport",
    "ExtractionResult",
    "Rejection",
    "SpecRecord",
    "Taxonomy",
    "TitleAnalysis",
    "convert_to_usd",
    "detect_currency",
    "get_taxonomy",
    "is_valid_drop",
    "is_valid_height",
    "is_valid_price",
    "is_valid_weight",
    "load_taxonomy",
    "oz_to_grams",
    "round2",
    "to_num",
]
