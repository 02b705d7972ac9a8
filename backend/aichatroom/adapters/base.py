"""Adapter capability set and the helpers every adapter shares."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import (
    Any,
    AsyncGenerator,
    Awaitable,
    Callable,
    Optional,
    Protocol,
    Sequence,
    TypeVar,
    runtime_checkable,
)

from ..constants import DEFAULT_BASE_DELAY, DEFAULT_MAX_RETRIES
from .errors import is_retryable as default_is_retryable
from .types import AICapabilities, AIChunk, AIResponse, MessageParams, Pricing

logger = logging.getLogger(__name__)

T = TypeVar("T")


@runtime_checkable
class AIAdapter(Protocol):
    """Capability set every provider adapter provides.

    Adapters are bound to one model identifier. Capabilities and pricing are
    fixed at construction time.
    """

    model_id: str
    model_name: str
    provider: str
    capabilities: AICapabilities
    pricing: Pricing

    async def initialize(self) -> None:
        """Construct the provider client. Idempotent once it has succeeded."""
        ...

    def validate_config(self, config: dict[str, Any]) -> bool:
        """Check the shape of a caller-supplied credential (no network call)."""
        ...

    async def send_message(self, params: MessageParams) -> AIResponse:
        ...

    def send_streaming_message(self, params: MessageParams) -> AsyncGenerator[AIChunk, None]:
        ...

    def calculate_cost(self, input_tokens: int, output_tokens: int) -> float:
        ...


def calculate_cost(pricing: Pricing, input_tokens: int, output_tokens: int) -> float:
    """Estimated cost in USD for the given token counts."""
    input_cost = (input_tokens / 1000) * pricing.input
    output_cost = (output_tokens / 1000) * pricing.output
    return input_cost + output_cost


async def retry_with_backoff(
    fn: Callable[[], Awaitable[T]],
    *,
    max_retries: int = DEFAULT_MAX_RETRIES,
    base_delay: float = DEFAULT_BASE_DELAY,
    is_retryable: Callable[[BaseException], bool] = default_is_retryable,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """Run an async provider call, re-attempting transient failures.

    Attempts are sequential. Between attempt ``i`` and ``i + 1`` (zero-based)
    the wrapper sleeps ``base_delay * 2 ** i`` seconds. A non-retryable
    failure, or any failure on the last attempt, propagates unchanged.
    """
    for attempt in range(max_retries):
        try:
            return await fn()
        except Exception as exc:
            if attempt == max_retries - 1 or not is_retryable(exc):
                raise
            delay = base_delay * (2**attempt)
            logger.warning(
                f"Attempt {attempt + 1}/{max_retries} failed ({exc}), retrying in {delay:.2f}s"
            )
            await sleep(delay)
    raise ValueError("max_retries must be at least 1")


@dataclass(frozen=True)
class ModelProfile:
    """Display name, pricing and capabilities for identifiers matching ``pattern``."""

    pattern: str
    name: str
    pricing: Pricing
    capabilities: AICapabilities


def resolve_profile(
    model_id: str,
    profiles: Sequence[ModelProfile],
    default: ModelProfile,
    pricing: Optional[Pricing] = None,
) -> tuple[str, Pricing, AICapabilities]:
    """Pick the display name, pricing and capabilities for a model identifier.

    Profiles are checked in order and the first substring match wins, so
    more specific patterns must come first. Operator-supplied ``pricing``
    always takes precedence over the table.

    Returns:
        Tuple of (model_name, pricing, capabilities)
    """
    for profile in profiles:
        if profile.pattern in model_id:
            return profile.name, pricing or profile.pricing, profile.capabilities

    if pricing is None:
        logger.warning(
            f"No pricing configured for model {model_id}; "
            f"falling back to {default.name} pricing. Supply pricing explicitly for accurate estimates."
        )
    return model_id, pricing or default.pricing, default.capabilities
