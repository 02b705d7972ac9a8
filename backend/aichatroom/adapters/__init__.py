"""Model adapters for multi-provider chat.

This module puts LLM APIs (OpenAI, Anthropic, xAI) behind one
request/response format, with shared retry handling, streaming
normalization and a single error taxonomy.
"""

from functools import partial
from typing import Optional

from ..config import Settings, load_settings
from .anthropic_adapter import AnthropicAdapter
from .base import AIAdapter, ModelProfile, calculate_cost, retry_with_backoff
from .errors import AIError, AIErrorCode, ModelNotFoundError, normalize_error
from .openai_adapter import OpenAIAdapter
from .registry import AdapterFactory, AdapterRegistry
from .types import (
    AICapabilities,
    AIChunk,
    AIResponse,
    Message,
    MessageParams,
    Pricing,
    TokenUsage,
)
from .xai_adapter import XAIAdapter

__all__ = [
    # Unified model
    "AICapabilities",
    "AIChunk",
    "AIResponse",
    "Message",
    "MessageParams",
    "Pricing",
    "TokenUsage",
    # Errors
    "AIError",
    "AIErrorCode",
    "ModelNotFoundError",
    "normalize_error",
    # Contract and helpers
    "AIAdapter",
    "ModelProfile",
    "calculate_cost",
    "retry_with_backoff",
    # Adapters
    "OpenAIAdapter",
    "AnthropicAdapter",
    "XAIAdapter",
    # Registry
    "AdapterFactory",
    "AdapterRegistry",
    "DEFAULT_MODELS",
    "build_default_factories",
]

# Model IDs served by each adapter family
DEFAULT_MODELS: dict[str, tuple[str, ...]] = {
    "openai": ("gpt-4", "gpt-4-turbo", "gpt-4o", "gpt-4o-mini", "gpt-3.5-turbo"),
    "anthropic": (
        "claude-3-5-sonnet-20241022",
        "claude-3-5-haiku-20241022",
        "claude-3-opus-20240229",
    ),
    "xai": ("grok-4",),
}


def build_default_factories(settings: Optional[Settings] = None) -> dict[str, AdapterFactory]:
    """Build the factory table for every model the deployment supports.

    Credentials from ``settings`` are bound into the factories; an adapter
    only falls back to its environment variable when none was given.
    """
    settings = settings or load_settings()
    family_factories: dict[str, AdapterFactory] = {
        "openai": partial(OpenAIAdapter, api_key=settings.openai_api_key),
        "anthropic": partial(AnthropicAdapter, api_key=settings.anthropic_api_key),
        "xai": partial(XAIAdapter, api_key=settings.xai_api_key),
    }
    return {
        model_id: family_factories[family]
        for family, model_ids in DEFAULT_MODELS.items()
        for model_id in model_ids
    }
