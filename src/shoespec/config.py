"""Runtime settings read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from shoespec.shared.llm.gateway import DEFAULT_CACHE_TTL, DEFAULT_CONCURRENCY, DEFAULT_MODEL


def parse_bool(value: str) -> bool:
    """Parse boolean from environment variable."""
    return value.strip().lower() in ("true", "1", "yes", "on")


@dataclass(frozen=True)
class Settings:
    anthropic_api_key: str | None = None
    llm_model: str = DEFAULT_MODEL
    llm_concurrency: int = DEFAULT_CONCURRENCY
    llm_cache_ttl: float = DEFAULT_CACHE_TTL
    disable_llm: bool = False
    db_path: Path = Path("shoespec.db")

    @property
    def llm_available(self) -> bool:
        return bool(self.anthropic_api_key) and not self.disable_llm

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from ``SHOESPEC_*`` variables and ``ANTHROPIC_API_KEY``.

        Raises:
            ValueError: If a numeric variable does not parse.
        """
        return cls(
            anthropic_api_key=os.getenv("ANTHROPIC_API_KEY") or None,
            llm_model=os.getenv("SHOESPEC_LLM_MODEL", DEFAULT_MODEL),
            llm_concurrency=int(os.getenv("SHOESPEC_LLM_CONCURRENCY", str(DEFAULT_CONCURRENCY))),
            llm_cache_ttl=float(os.getenv("SHOESPEC_LLM_CACHE_TTL", str(DEFAULT_CACHE_TTL))),
            disable_llm=parse_bool(os.getenv("SHOESPEC_DISABLE_LLM", "false")),
            db_path=Path(os.getenv("SHOESPEC_DB_PATH", "shoespec.db")),
        )
