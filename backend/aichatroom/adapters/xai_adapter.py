"""xAI adapter for Grok models."""

from __future__ import annotations

from ..constants import XAI_API_KEY_ENV
from .base import ModelProfile
from .openai_adapter import OpenAIAdapter
from .types import AICapabilities, Pricing

XAI_PROFILES: tuple[ModelProfile, ...] = (
    ModelProfile(
        "grok-3-mini",
        "Grok 3 Mini",
        Pricing(input=0.0003, output=0.0005),
        AICapabilities(streaming=True, vision=False, function_calling=True),
    ),
    ModelProfile(
        "grok-3",
        "Grok 3",
        Pricing(input=0.003, output=0.015),
        AICapabilities(streaming=True, vision=False, function_calling=True),
    ),
    ModelProfile(
        "grok-4",
        "Grok 4",
        Pricing(input=0.003, output=0.015),
        AICapabilities(streaming=True, vision=True, function_calling=True),
    ),
)


class XAIAdapter(OpenAIAdapter):
    """Adapter for xAI Grok models.

    Uses the OpenAI-compatible API at api.x.ai, so request translation,
    streaming and error mapping are shared with OpenAIAdapter.
    """

    provider = "xai"
    provider_label = "xAI"
    API_KEY_ENV = XAI_API_KEY_ENV
    API_KEY_PREFIX = "xai-"
    BASE_URL = "https://api.x.ai/v1"
    PROFILES = XAI_PROFILES
    DEFAULT_PROFILE = XAI_PROFILES[2]

    def __init__(self, model_id: str = "grok-4", **kwargs) -> None:
        super().__init__(model_id, **kwargs)
