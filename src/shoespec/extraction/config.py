"""Orchestrator configuration and presets."""

from dataclasses import dataclass


@dataclass
class ExtractionConfig:
    name: str = "default"

    enable_llm: bool = True
    enable_hybrid: bool = True

    # Below these counts the pattern result is replaced by LLM output.
    roundup_min_candidates: int = 3
    specific_min_candidates: int = 1


EXTRACTION_PRESETS: dict[str, ExtractionConfig] = {
    "default": ExtractionConfig(name="default"),

    "regex_only": ExtractionConfig(
        name="regex_only",
        enable_llm=False,
        enable_hybrid=False,
    ),

    "strict_roundups": ExtractionConfig(
        name="strict_roundups",
        roundup_min_candidates=5,
    ),
}


def get_extraction_config(name: str) -> ExtractionConfig:
    if name not in EXTRACTION_PRESETS:
        raise ValueError(f"Unknown extraction config: {name}. Available: {list(EXTRACTION_PRESETS.keys())}")
    return EXTRACTION_PRESETS[name]
