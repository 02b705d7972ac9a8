"""Chat service routing requests to the adapter for the requested model."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import AsyncGenerator, Optional

from ..adapters import AdapterRegistry, build_default_factories
from ..adapters.base import calculate_cost
from ..adapters.types import AICapabilities, AIChunk, AIResponse, MessageParams, Pricing
from ..colors import get_ai_color
from ..config import Settings, load_settings, validate_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModelInfo:
    """Public description of one model, as shown to chatroom members."""

    model_id: str
    model_name: str
    provider: str
    capabilities: AICapabilities
    pricing: Pricing
    avatar_color: str


class ChatService:
    """Entry point for callers: model ID plus conversation in, unified response out."""

    def __init__(self, registry: AdapterRegistry) -> None:
        self.registry = registry

    async def send_message(self, model_id: str, params: MessageParams) -> AIResponse:
        adapter = await self.registry.get_adapter(model_id)
        response = await adapter.send_message(params)
        logger.info(
            f"Response from {model_id}: {response.usage.total_tokens} tokens, "
            f"finish_reason={response.finish_reason}"
        )
        return response

    async def stream_message(
        self, model_id: str, params: MessageParams
    ) -> AsyncGenerator[AIChunk, None]:
        """
        Stream a response from ``model_id``.

        Unknown models raise before the first chunk. Closing this generator
        early closes the provider stream.
        """
        adapter = await self.registry.get_adapter(model_id)
        stream = adapter.send_streaming_message(params)
        try:
            async for chunk in stream:
                yield chunk
        finally:
            await stream.aclose()

    def get_available_models(self) -> list[str]:
        return self.registry.get_available_models()

    def has_model(self, model_id: str) -> bool:
        return self.registry.has_model(model_id)

    def calculate_cost(self, model_id: str, input_tokens: int, output_tokens: int) -> float:
        """Estimated USD cost; needs no credential for the model's provider."""
        return calculate_cost(self.registry.get_pricing(model_id), input_tokens, output_tokens)

    async def describe_model(self, model_id: str) -> ModelInfo:
        adapter = await self.registry.get_adapter(model_id)
        return ModelInfo(
            model_id=adapter.model_id,
            model_name=adapter.model_name,
            provider=adapter.provider,
            capabilities=adapter.capabilities,
            pricing=adapter.pricing,
            avatar_color=get_ai_color(model_id),
        )


def create_chat_service(settings: Optional[Settings] = None) -> ChatService:
    """Build a ChatService over the default model catalogue."""
    settings = settings or load_settings()
    validate_settings(settings)
    registry = AdapterRegistry(build_default_factories(settings))
    return ChatService(registry)
