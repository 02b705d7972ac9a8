"""Anthropic adapter for Claude models."""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, AsyncGenerator, Awaitable, Callable, Optional

import anthropic
from anthropic import AsyncAnthropic

from ..constants import (
    ANTHROPIC_API_KEY_ENV,
    DEFAULT_API_TIMEOUT,
    DEFAULT_BASE_DELAY,
    DEFAULT_MAX_RETRIES,
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
)
from .base import ModelProfile, calculate_cost, resolve_profile, retry_with_backoff
from .errors import AIError, AIErrorCode, normalize_error
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

# Inserted when a conversation does not open with a user turn
LEADING_USER_PLACEHOLDER = "Please answer the following question."

_CLAUDE_CAPABILITIES = AICapabilities(streaming=True, vision=True, function_calling=False)

ANTHROPIC_PROFILES: tuple[ModelProfile, ...] = (
    ModelProfile("claude-3-5-sonnet", "Claude 3.5 Sonnet", Pricing(input=0.003, output=0.015), _CLAUDE_CAPABILITIES),
    ModelProfile(
        "claude-3-5-haiku",
        "Claude 3.5 Haiku",
        Pricing(input=0.0008, output=0.004),
        AICapabilities(streaming=True, vision=False, function_calling=False),
    ),
    ModelProfile("claude-3-opus", "Claude 3 Opus", Pricing(input=0.015, output=0.075), _CLAUDE_CAPABILITIES),
    ModelProfile("claude-3-sonnet", "Claude 3 Sonnet", Pricing(input=0.003, output=0.015), _CLAUDE_CAPABILITIES),
    ModelProfile("claude-3-haiku", "Claude 3 Haiku", Pricing(input=0.00025, output=0.00125), _CLAUDE_CAPABILITIES),
    ModelProfile("claude-sonnet-4", "Claude Sonnet 4", Pricing(input=0.003, output=0.015), _CLAUDE_CAPABILITIES),
    ModelProfile("claude-opus-4", "Claude Opus 4", Pricing(input=0.015, output=0.075), _CLAUDE_CAPABILITIES),
)

_CONTEXT_LENGTH_MARKERS = ("prompt is too long", "context length", "context window")


def _is_context_length_error(exc: BaseException) -> bool:
    message = str(getattr(exc, "message", exc)).lower()
    return any(marker in message for marker in _CONTEXT_LENGTH_MARKERS)


def format_messages_for_claude(
    messages: list[Message],
    system_prompt: Optional[str] = None,
) -> tuple[str, list[dict]]:
    """
    Split a conversation into Claude's system field and turn list.

    System turns are pulled out of the conversation and newline-joined, in
    order, after ``system_prompt``. Claude requires the turn list to open
    with a user turn, so a placeholder user turn is inserted (and a warning
    logged) when it would not.

    Returns:
        Tuple of (system, messages)
    """
    system_parts = [system_prompt] if system_prompt else []
    formatted: list[dict] = []

    for msg in messages:
        if msg.role == "system":
            system_parts.append(msg.content)
        else:
            formatted.append({"role": msg.role, "content": msg.content})

    if not formatted or formatted[0]["role"] != "user":
        first_role = formatted[0]["role"] if formatted else "none"
        logger.warning(
            f"Conversation does not start with a user turn (first turn: {first_role}); "
            "inserting placeholder user turn"
        )
        formatted.insert(0, {"role": "user", "content": LEADING_USER_PLACEHOLDER})

    return "\n".join(system_parts), formatted


class AnthropicAdapter:
    """Adapter for Anthropic Claude models.

    Claude takes the system instruction out of band, so system turns are
    moved into the request's ``system`` field.
    """

    provider = "anthropic"
    API_KEY_PREFIX = "sk-ant-"

    def __init__(
        self,
        model_id: str = "claude-3-5-sonnet-20241022",
        *,
        api_key: Optional[str] = None,
        pricing: Optional[Pricing] = None,
        client: Optional[AsyncAnthropic] = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_delay: float = DEFAULT_BASE_DELAY,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.model_id = model_id
        self.model_name, self.pricing, self.capabilities = resolve_profile(
            model_id, ANTHROPIC_PROFILES, ANTHROPIC_PROFILES[0], pricing
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

        api_key = self._api_key or os.getenv(ANTHROPIC_API_KEY_ENV)
        if not api_key:
            raise AIError(
                "Anthropic API Key not configured",
                AIErrorCode.INVALID_API_KEY,
                provider=self.provider,
            )

        self._client = AsyncAnthropic(api_key=api_key, timeout=DEFAULT_API_TIMEOUT, max_retries=0)
        logger.info(f"Initialized Anthropic client for {self.model_id}")

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
                response = await self._client.messages.create(**request)
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
        """Stream text deltas, ending with one empty chunk carrying the stop reason.

        Only ``text_delta`` events produce chunks; the stop reason is taken
        from ``message_delta`` and emitted on ``message_stop``.
        """
        await self.initialize()
        request = self._build_request(params, stream=True)

        try:
            stream = await self._client.messages.create(**request)
            async with stream:
                index = 0
                stop_reason: Optional[str] = None
                async for event in stream:
                    event_type = getattr(event, "type", None)

                    if event_type == "content_block_delta":
                        delta = event.delta
                        if getattr(delta, "type", None) == "text_delta" and delta.text:
                            yield AIChunk(content=delta.text, index=index, raw=event)
                            index += 1

                    elif event_type == "message_delta":
                        stop_reason = getattr(event.delta, "stop_reason", None) or stop_reason

                    elif event_type == "message_stop":
                        yield AIChunk(
                            content="",
                            index=index,
                            finish_reason=stop_reason or "end_turn",
                            raw=event,
                        )
                        return
        except Exception as exc:
            error = self._handle_error(exc)
            logger.error(f"Anthropic streaming error: {error}")
            raise error from exc

        raise AIError(
            "Stream ended before the provider signalled completion",
            AIErrorCode.NETWORK_ERROR,
            provider=self.provider,
        )

    def _build_request(self, params: MessageParams, stream: bool = False) -> dict[str, Any]:
        system, messages = format_messages_for_claude(params.messages, params.system_prompt)
        request: dict[str, Any] = {
            "model": self.model_id,
            "messages": messages,
            "max_tokens": params.max_tokens if params.max_tokens is not None else DEFAULT_MAX_TOKENS,
            "temperature": (
                params.temperature if params.temperature is not None else DEFAULT_TEMPERATURE
            ),
        }
        # Anthropic rejects empty or null optional fields
        if system:
            request["system"] = system
        if params.stop_sequences:
            request["stop_sequences"] = params.stop_sequences
        if params.user_id:
            request["metadata"] = {"user_id": params.user_id}
        if stream:
            request["stream"] = True
        return request

    def _extract_text(self, response: Any) -> str:
        """Text of the first text content block."""
        for block in response.content:
            if block.type == "text":
                return block.text
        return ""

    def _format_response(self, response: Any) -> AIResponse:
        usage = response.usage
        return AIResponse(
            content=self._extract_text(response),
            finish_reason=response.stop_reason,
            usage=TokenUsage(
                prompt_tokens=usage.input_tokens if usage else 0,
                completion_tokens=usage.output_tokens if usage else 0,
            ),
            model=response.model or self.model_id,
            raw=response,
        )

    def _handle_error(self, exc: BaseException) -> AIError:
        return normalize_error(
            exc,
            self.provider,
            timeout_errors=(anthropic.APITimeoutError,),
            is_context_length=_is_context_length_error,
        )
