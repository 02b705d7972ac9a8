"""OpenAI adapter for GPT models."""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, AsyncGenerator, Awaitable, Callable, Optional

import openai
from openai import AsyncOpenAI

from ..constants import (
    DEFAULT_API_TIMEOUT,
    DEFAULT_BASE_DELAY,
    DEFAULT_MAX_RETRIES,
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    OPENAI_API_KEY_ENV,
)
from .base import ModelProfile, calculate_cost, resolve_profile, retry_with_backoff
from .errors import AIError, AIErrorCode, get_error_code, normalize_error
from .types import (
    AICapabilities,
    AIChunk,
    AIResponse,
    Message,
    MessageParams,
    Pricing,
    TokenUsage,
)

logger = logging.getLogger(__name__)

_CHAT_CAPABILITIES = AICapabilities(streaming=True, vision=True, function_calling=True)

# Most specific patterns first: "gpt-4o-mini" must match before "gpt-4o" and "gpt-4"
OPENAI_PROFILES: tuple[ModelProfile, ...] = (
    ModelProfile("gpt-4o-mini", "GPT-4o mini", Pricing(input=0.00015, output=0.0006), _CHAT_CAPABILITIES),
    ModelProfile("gpt-4o", "GPT-4o", Pricing(input=0.0025, output=0.01), _CHAT_CAPABILITIES),
    ModelProfile("gpt-4-turbo", "GPT-4 Turbo", Pricing(input=0.01, output=0.03), _CHAT_CAPABILITIES),
    ModelProfile("gpt-4", "GPT-4", Pricing(input=0.03, output=0.06), _CHAT_CAPABILITIES),
    ModelProfile(
        "gpt-3.5-turbo",
        "GPT-3.5 Turbo",
        Pricing(input=0.0005, output=0.0015),
        AICapabilities(streaming=True, vision=False, function_calling=True),
    ),
)


def _is_context_length_error(exc: BaseException) -> bool:
    return get_error_code(exc) == "context_length_exceeded"


class OpenAIAdapter:
    """Adapter for OpenAI chat completion models.

    System turns are sent in-line. A separate ``system_prompt`` becomes a
    leading system turn ahead of the caller's conversation.
    """

    provider = "openai"
    provider_label = "OpenAI"
    API_KEY_ENV = OPENAI_API_KEY_ENV
    API_KEY_PREFIX = "sk-"
    BASE_URL: Optional[str] = None
    PROFILES: tuple[ModelProfile, ...] = OPENAI_PROFILES
    DEFAULT_PROFILE: ModelProfile = OPENAI_PROFILES[3]

    def __init__(
        self,
        model_id: str = "gpt-4",
        *,
        api_key: Optional[str] = None,
        pricing: Optional[Pricing] = None,
        client: Optional[AsyncOpenAI] = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_delay: float = DEFAULT_BASE_DELAY,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.model_id = model_id
        self.model_name, self.pricing, self.capabilities = resolve_profile(
            model_id, self.PROFILES, self.DEFAULT_PROFILE, pricing
        )
        self._api_key = api_key
        self._client = client
        self._max_retries = max_retries
        self._base_delay = base_delay
        self._sleep = sleep

    async def initialize(self) -> None:
        """Create the API client once; later calls are no-ops."""
        if self._client is not None:
            return

        api_key = self._api_key or os.getenv(self.API_KEY_ENV)
        if not api_key:
            raise AIError(
                f"{self.provider_label} API Key not configured",
                AIErrorCode.INVALID_API_KEY,
                provider=self.provider,
            )

        kwargs: dict[str, Any] = {
            "api_key": api_key,
            "timeout": DEFAULT_API_TIMEOUT,
            # Retries are handled by retry_with_backoff
            "max_retries": 0,
        }
        if self.BASE_URL:
            kwargs["base_url"] = self.BASE_URL
        self._client = AsyncOpenAI(**kwargs)
        logger.info(f"Initialized {self.provider_label} client for {self.model_id}")

    def validate_config(self, config: dict[str, Any]) -> bool:
        api_key = config.get("api_key") or config.get("apiKey")
        return isinstance(api_key, str) and api_key.startswith(self.API_KEY_PREFIX)

    def calculate_cost(self, input_tokens: int, output_tokens: int) -> float:
        return calculate_cost(self.pricing, input_tokens, output_tokens)

    async def send_message(self, params: MessageParams) -> AIResponse:
        await self.initialize()
        request = self._build_request(params)

        async def call() -> AIResponse:
            try:
                response = await self._client.chat.completions.create(**request)
            except Exception as exc:
                raise self._handle_error(exc) from exc
            return self._format_response(response)

        return await retry_with_backoff(
            call,
            max_retries=self._max_retries,
            base_delay=self._base_delay,
            sleep=self._sleep,
        )

    async def send_streaming_message(self, params: MessageParams) -> AsyncGenerator[AIChunk, None]:
        """Stream text chunks, ending with one empty chunk carrying the finish reason.

        Streams are not retried. A failure mid-stream is raised as an AIError.
        """
        await self.initialize()
        request = self._build_request(params, stream=True)

        try:
            stream = await self._client.chat.completions.create(**request)
            async with stream:
                index = 0
                async for event in stream:
                    if not event.choices:
                        continue
                    choice = event.choices[0]
                    text = choice.delta.content if choice.delta else None
                    if text:
                        yield AIChunk(content=text, index=index, raw=event)
                        index += 1
                    if choice.finish_reason:
                        yield AIChunk(
                            content="",
                            index=index,
                            finish_reason=choice.finish_reason,
                            raw=event,
                        )
                        return
        except Exception as exc:
            error = self._handle_error(exc)
            logger.error(f"{self.provider_label} streaming error: {error}")
            raise error from exc

        raise AIError(
            "Stream ended before the provider signalled completion",
            AIErrorCode.NETWORK_ERROR,
            provider=self.provider,
        )

    def _format_messages(self, messages: list[Message], system_prompt: Optional[str]) -> list[dict]:
        formatted: list[dict] = []
        if system_prompt:
            formatted.append({"role": "system", "content": system_prompt})
        for msg in messages:
            entry = {"role": msg.role, "content": msg.content}
            if msg.name:
                entry["name"] = msg.name
            formatted.append(entry)
        return formatted

    def _build_request(self, params: MessageParams, stream: bool = False) -> dict[str, Any]:
        request: dict[str, Any] = {
            "model": self.model_id,
            "messages": self._format_messages(params.messages, params.system_prompt),
            "temperature": (
                params.temperature if params.temperature is not None else DEFAULT_TEMPERATURE
            ),
            "max_tokens": params.max_tokens if params.max_tokens is not None else DEFAULT_MAX_TOKENS,
        }
        if params.stop_sequences:
            request["stop"] = params.stop_sequences
        if params.user_id:
            request["user"] = params.user_id
        if stream:
            request["stream"] = True
        return request

    def _format_response(self, response: Any) -> AIResponse:
        choice = response.choices[0]
        usage = response.usage
        return AIResponse(
            content=choice.message.content or "",
            finish_reason=choice.finish_reason,
            usage=TokenUsage(
                prompt_tokens=usage.prompt_tokens if usage else 0,
                completion_tokens=usage.completion_tokens if usage else 0,
            ),
            model=response.model or self.model_id,
            raw=response,
        )

    def _handle_error(self, exc: BaseException) -> AIError:
        return normalize_error(
            exc,
            self.provider,
            timeout_errors=(openai.APITimeoutError,),
            is_context_length=_is_context_length_error,
        )
