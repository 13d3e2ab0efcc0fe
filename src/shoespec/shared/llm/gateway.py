"""Process-wide access point to the extraction LLM.

One :class:`LLMGateway` is built at startup and passed to every
orchestrator. It owns the three shared resources:

- a bounded semaphore limiting in-flight provider calls (default 2)
- a TTL response cache keyed by sha256(model, system, few-shot, user)
- the retry policy for rate limits and transient failures
  (fixed delays 0.5s, 1.5s, 3.5s, then :class:`LLMServiceError`)
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
import time
from typing import Callable

from shoespec.shared.metrics import (
    LLM_CACHE_HITS,
    LLM_CALLS,
    LLM_FAILURES,
    LLM_RETRIES,
    PipelineMetrics,
)

from .base import LLMProvider, LLMRequest, LLMServiceError, RateLimitError, TransientLLMError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "haiku"
DEFAULT_CONCURRENCY = 2
DEFAULT_CACHE_TTL = 24 * 60 * 60.0
DEFAULT_RETRY_DELAYS = (0.5, 1.5, 3.5)


class LLMGateway:
    def __init__(
        self,
        provider: LLMProvider,
        model: str = DEFAULT_MODEL,
        concurrency: int = DEFAULT_CONCURRENCY,
        cache_ttl: float = DEFAULT_CACHE_TTL,
        retry_delays: tuple[float, ...] = DEFAULT_RETRY_DELAYS,
        timeout: int = 90,
        max_tokens: int = 4000,
        temperature: float = 0.0,
        metrics: PipelineMetrics | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        self.provider = provider
        self.model = model
        self.cache_ttl = cache_ttl
        self.retry_delays = tuple(retry_delays)
        self.timeout = timeout
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.metrics = metrics or PipelineMetrics()
        self._limiter = threading.BoundedSemaphore(concurrency)
        self._cache: dict[str, tuple[float, str]] = {}
        self._cache_lock = threading.Lock()
        self._sleep = sleep
        self._clock = clock

    # -- cache --------------------------------------------------------------

    def cache_key(self, request: LLMRequest) -> str:
        payload = json.dumps(
            [self.model, request.system_prompt, request.few_shot_examples or "", request.user_prompt],
            ensure_ascii=False,
        )
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()

    def _cache_get(self, key: str) -> str | None:
        with self._cache_lock:
            entry = self._cache.get(key)
            if entry is None:
                return None
            expires_at, text = entry
            if self._clock() >= expires_at:
                del self._cache[key]
                return None
            return text

    def _cache_put(self, key: str, text: str) -> None:
        with self._cache_lock:
            now = self._clock()
            expired = [k for k, (exp, _) in self._cache.items() if exp <= now]
            for k in expired:
                del self._cache[k]
            self._cache[key] = (now + self.cache_ttl, text)

    @property
    def cache_size(self) -> int:
        with self._cache_lock:
            return len(self._cache)

    # -- calls --------------------------------------------------------------

    def complete(self, request: LLMRequest) -> str:
        """Return the model's text for *request*, from cache when possible.

        Raises:
            LLMServiceError: When retries are exhausted or the provider
                reports a non-retryable failure.
        """
        key = self.cache_key(request)
        cached = self._cache_get(key)
        if cached is not None:
            self.metrics.increment(LLM_CACHE_HITS)
            logger.debug("LLM cache hit %s", key[:16])
            return cached

        attempts = len(self.retry_delays) + 1
        for attempt in range(attempts):
            try:
                with self._limiter:
                    self.metrics.increment(LLM_CALLS)
                    text = self.provider.complete(
                        request,
                        model=self.model,
                        timeout=self.timeout,
                        max_tokens=self.max_tokens,
                        temperature=self.temperature,
                    )
            except (RateLimitError, TransientLLMError) as e:
                if attempt == attempts - 1:
                    self.metrics.increment(LLM_FAILURES)
                    logger.error(
                        "LLM call EXHAUSTED %d attempts | model=%s | %s: %s",
                        attempts, self.model, type(e).__name__, e,
                    )
                    raise LLMServiceError(f"gave up after {attempts} attempts: {e}") from e
                delay = self.retry_delays[attempt]
                self.metrics.increment(LLM_RETRIES)
                logger.info(
                    "LLM RETRY %s | attempt=%d/%d | wait=%.1fs",
                    type(e).__name__, attempt + 1, attempts, delay,
                )
                self._sleep(delay)
                continue
            except LLMServiceError:
                self.metrics.increment(LLM_FAILURES)
                raise

            if attempt > 0:
                logger.info("LLM call RECOVERED after %d retries", attempt)
            if text:
                self._cache_put(key, text)
            return text

        raise LLMServiceError("unreachable")  # pragma: no cover
