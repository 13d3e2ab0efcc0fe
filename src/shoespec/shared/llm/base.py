"""Base LLM provider interface, request type and error taxonomy.

Providers translate an :class:`LLMRequest` into one HTTP call and raise
typed errors; retrying, caching and concurrency limits live in
:class:`shoespec.shared.llm.gateway.LLMGateway`, not here.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class LLMServiceError(Exception):
    """The extraction service could not produce a response."""


class RateLimitError(LLMServiceError):
    """The service asked us to slow down (HTTP 429)."""

    def __init__(self, message: str, retry_after: float | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class TransientLLMError(LLMServiceError):
    """Timeouts, dropped connections and 5xx responses; safe to retry."""


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LLMRequest:
    system_prompt: str
    user_prompt: str
    few_shot_examples: str | None = None


# ---------------------------------------------------------------------------
# Abstract base
# ---------------------------------------------------------------------------


class LLMProvider(ABC):
    """Abstract base for LLM providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider identifier (e.g. 'anthropic')."""
        ...

    @abstractmethod
    def complete(
        self,
        request: LLMRequest,
        model: str,
        timeout: int = 90,
        max_tokens: int = 4000,
        temperature: float = 0.0,
    ) -> str:
        """Run one completion.

        Args:
            request: System prompt, user prompt and optional few-shot block.
            model: Model name or alias.
            timeout: Request timeout in seconds.
            max_tokens: Maximum output tokens.
            temperature: Sampling temperature (0.0–1.0).

        Returns:
            Generated text (possibly empty).

        Raises:
            RateLimitError: On a rate-limit signal.
            TransientLLMError: On timeouts, connection errors or 5xx.
            LLMServiceError: On any other non-retryable failure.
        """
        ...


# ---------------------------------------------------------------------------
# Provider registry
# ---------------------------------------------------------------------------

_provider_cache: dict[str, LLMProvider] = {}


def get_provider(name: str = "anthropic", api_key: str | None = None) -> LLMProvider:
    """Return (cached) provider by *name*."""
    if name not in _provider_cache:
        if name != "anthropic":
            raise ValueError(f"Unknown LLM provider: {name}. Available: ['anthropic']")
        from .anthropic_provider import AnthropicProvider
        logger.debug("Creating AnthropicProvider")
        _provider_cache[name] = AnthropicProvider(api_key=api_key)
    return _provider_cache[name]
