"""Thread-safe run counters."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .logger import PipelineLogger

ARTICLES_PROCESSED = "articles_processed"
ARTICLES_FAILED = "articles_failed"
ARTICLES_SKIPPED = "articles_skipped"
REGEX_SUCCESSES = "regex_successes"
LLM_FALLBACKS = "llm_fallbacks"
HYBRID_MERGES = "hybrid_merges"
LLM_CALLS = "llm_calls"
LLM_CACHE_HITS = "llm_cache_hits"
LLM_RETRIES = "llm_retries"
LLM_FAILURES = "llm_failures"
RECORDS_EXTRACTED = "records_extracted"
ROWS_WRITTEN = "rows_written"


class PipelineMetrics:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counts: dict[str, int] = {}

    def increment(self, name: str, n: int = 1) -> None:
        with self._lock:
            self._counts[name] = self._counts.get(name, 0) + n

    def get(self, name: str) -> int:
        with self._lock:
            return self._counts.get(name, 0)

    def snapshot(self) -> dict[str, int]:
        with self._lock:
            return dict(self._counts)

    def report(self, log: "PipelineLogger") -> None:
        for name, value in sorted(self.snapshot().items()):
            log.metric(name, value)
