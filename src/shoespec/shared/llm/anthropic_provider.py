"""Anthropic (Claude) provider over the Messages API.

Authentication uses ``ANTHROPIC_API_KEY`` (or an explicit ``api_key``).
Failures are raised as typed errors so the gateway can decide whether to
retry; nothing here sleeps.
"""

from __future__ import annotations

import json
import logging
import os
import time
from typing import Any

import httpx

from .base import (
    LLMProvider,
    LLMRequest,
    LLMServiceError,
    RateLimitError,
    TransientLLMError,
)

logger = logging.getLogger(__name__)

TRANSIENT_STATUS_CODES = {500, 502, 503, 504, 529}

MODEL_MAP: dict[str, str] = {
    "haiku": "claude-3-5-haiku-latest",
    "claude-haiku": "claude-3-5-haiku-latest",
    "sonnet": "claude-sonnet-4-5-20250929",
    "claude-sonnet": "claude-sonnet-4-5-20250929",
    "claude-sonnet-4": "claude-sonnet-4-20250514",
    "opus": "claude-opus-4-5-20251101",
}


class AnthropicProvider(LLMProvider):
    """Anthropic Claude provider using an API key."""

    API_ENDPOINT = "https://api.anthropic.com/v1/messages"
    API_VERSION = "2023-06-01"

    def __init__(self, api_key: str | None = None, client: httpx.Client | None = None) -> None:
        api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
        if not api_key:
            raise ValueError(
                "ANTHROPIC_API_KEY is not set.\n"
                "Export it or run with --disable-llm for pattern-only extraction."
            )
        self._api_key = api_key
        self._client = client

    @property
    def name(self) -> str:
        return "anthropic"

    @staticmethod
    def _resolve_model(model: str) -> str:
        resolved = MODEL_MAP.get(model, model)
        if resolved != model:
            logger.debug("Model alias: %s -> %s", model, resolved)
        return resolved

    @staticmethod
    def _parse_retry_after(response: httpx.Response) -> float | None:
        retry_after = response.headers.get("retry-after")
        if retry_after:
            try:
                return float(retry_after)
            except ValueError:
                pass
        return None

    def _build_body(
        self, request: LLMRequest, model: str, max_tokens: int, temperature: float
    ) -> dict[str, Any]:
        content: list[dict[str, str]] = []
        if request.few_shot_examples:
            content.append({"type": "text", "text": request.few_shot_examples})
        content.append({"type": "text", "text": request.user_prompt})
        return {
            "model": model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "system": request.system_prompt,
            "messages": [{"role": "user", "content": content}],
        }

    def _post(self, body: dict[str, Any], timeout: int) -> httpx.Response:
        headers = {
            "x-api-key": self._api_key,
            "anthropic-version": self.API_VERSION,
            "content-type": "application/json",
        }
        if self._client is not None:
            return self._client.post(self.API_ENDPOINT, json=body, headers=headers, timeout=timeout)
        return httpx.post(self.API_ENDPOINT, json=body, headers=headers, timeout=timeout)

    def complete(
        self,
        request: LLMRequest,
        model: str = "haiku",
        timeout: int = 90,
        max_tokens: int = 4000,
        temperature: float = 0.0,
    ) -> str:
        resolved_model = self._resolve_model(model)
        body = self._build_body(request, resolved_model, max_tokens, temperature)
        logger.debug(
            "[anthropic] model=%s system_len=%d prompt_len=%d timeout=%ds",
            resolved_model,
            len(request.system_prompt),
            len(request.user_prompt),
            timeout,
        )

        start_time = time.time()
        try:
            response = self._post(body, timeout)
        except httpx.TimeoutException as e:
            raise TransientLLMError(f"timeout after {time.time() - start_time:.1f}s") from e
        except httpx.TransportError as e:
            raise TransientLLMError(f"connection error: {type(e).__name__}: {e}") from e
        elapsed = time.time() - start_time

        if response.status_code == 429:
            raise RateLimitError(
                f"rate limited (model={resolved_model})",
                retry_after=self._parse_retry_after(response),
            )
        if response.status_code in TRANSIENT_STATUS_CODES:
            raise TransientLLMError(f"HTTP {response.status_code} from {resolved_model}")
        if not response.is_success:
            logger.error(
                "[anthropic] FAILED %d | model=%s | elapsed=%.1fs | %s",
                response.status_code,
                resolved_model,
                elapsed,
                response.text[:300],
            )
            raise LLMServiceError(f"HTTP {response.status_code}: {response.text[:300]}")

        data = response.json()
        usage = data.get("usage", {})
        logger.debug(
            "[anthropic] OK | model=%s | in=%d out=%d | %.1fs",
            resolved_model,
            usage.get("input_tokens", 0),
            usage.get("output_tokens", 0),
            elapsed,
        )

        text_parts = [
            block.get("text", "")
            for block in data.get("content", [])
            if block.get("type") == "text"
        ]
        if not text_parts:
            logger.warning("[anthropic] Unexpected response: %s", json.dumps(data)[:500])
            return ""
        return "\n".join(text_parts).strip()
