"""LLM provider abstraction."""
from .base import (
    LLMProvider,
    LLMRequest,
    LLMServiceError,
    RateLimitError,
    TransientLLMError,
    get_provider,
)
from .anthropic_provider import AnthropicProvider
from .gateway import LLMGateway

__all__ = [
    "AnthropicProvider",
    "LLMGateway",
    "LLMProvider",
    "LLMRequest",
    "LLMServiceError",
    "RateLimitError",
    "TransientLLMError",
    "get_provider",
]
