"""Unified message and response model shared by every provider adapter.

These types are the only shapes callers see. Provider-specific payloads
travel in the opaque ``raw`` fields and are never mapped onto named fields.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, computed_field

Role = Literal["system", "user", "assistant"]


class Message(BaseModel):
    """A single conversation turn."""

    role: Role
    content: str
    name: Optional[str] = None


class MessageParams(BaseModel):
    """Request parameters accepted by every adapter.

    ``stream`` records whether the caller asked for a streamed reply. It is
    informational: the path is chosen by calling ``send_message`` or
    ``send_streaming_message``, and adapters never read the flag.
    """

    messages: list[Message]
    system_prompt: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    stop_sequences: Optional[list[str]] = None
    user_id: Optional[str] = None  # forwarded to the provider for abuse tracking
    stream: bool = False


class TokenUsage(BaseModel):
    """Token accounting for one completed response."""

    prompt_tokens: int = 0
    completion_tokens: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


class AIResponse(BaseModel):
    """A complete, non-streamed response."""

    content: str
    finish_reason: Optional[str] = None
    usage: TokenUsage
    model: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    raw: Any = Field(default=None, exclude=True, repr=False)


@dataclass(frozen=True)
class AIChunk:
    """One increment of a streamed response.

    ``finish_reason`` is only set on the terminal chunk, whose ``content``
    is always empty.
    """

    content: str
    index: int
    finish_reason: str | None = None
    raw: Any = None

    @property
    def is_final(self) -> bool:
        return self.finish_reason is not None


@dataclass(frozen=True)
class AICapabilities:
    streaming: bool = True
    vision: bool = False
    function_calling: bool = False


@dataclass(frozen=True)
class Pricing:
    """Cost in USD per 1K tokens. Used for estimates only."""

    input: float
    output: float
