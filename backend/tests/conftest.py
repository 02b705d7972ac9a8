"""Shared fakes for provider SDK clients, streams and errors."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Iterable

import anthropic
import httpx
import openai
import pytest

OPENAI_URL = "https://api.openai.com/v1/chat/completions"
ANTHROPIC_URL = "https://api.anthropic.com/v1/messages"


class FakeStream:
    """Async-iterable stream that records whether it was closed."""

    def __init__(self, events: Iterable[Any], error: BaseException | None = None):
        self.events = list(events)
        self.error = error
        self.closed = False
        self.consumed = 0

    async def __aenter__(self) -> "FakeStream":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.closed = True

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for event in self.events:
            self.consumed += 1
            yield event
        if self.error is not None:
            raise self.error


class FakeCreate:
    """Stands in for ``create``; returns or raises queued outcomes in order."""

    def __init__(self, *outcomes: Any):
        self.outcomes = list(outcomes)
        self.calls: list[dict] = []

    async def create(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


def fake_openai_client(*outcomes: Any) -> Any:
    completions = FakeCreate(*outcomes)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions), completions=completions)


def fake_anthropic_client(*outcomes: Any) -> Any:
    return SimpleNamespace(messages=FakeCreate(*outcomes))


def openai_completion(
    content: str = "Hello there",
    finish_reason: str = "stop",
    prompt_tokens: int = 12,
    completion_tokens: int = 3,
    model: str = "gpt-4-0613",
) -> Any:
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content), finish_reason=finish_reason)],
        usage=SimpleNamespace(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=prompt_tokens + completion_tokens,
        ),
        model=model,
    )


def openai_chunk(content: str | None = None, finish_reason: str | None = None) -> Any:
    return SimpleNamespace(
        choices=[SimpleNamespace(delta=SimpleNamespace(content=content), finish_reason=finish_reason)]
    )


def anthropic_message(
    text: str = "Hello there",
    stop_reason: str = "end_turn",
    input_tokens: int = 20,
    output_tokens: int = 4,
    model: str = "claude-3-5-sonnet-20241022",
) -> Any:
    return SimpleNamespace(
        content=[SimpleNamespace(type="text", text=text)],
        stop_reason=stop_reason,
        usage=SimpleNamespace(input_tokens=input_tokens, output_tokens=output_tokens),
        model=model,
    )


def anthropic_text_delta(text: str) -> Any:
    return SimpleNamespace(type="content_block_delta", delta=SimpleNamespace(type="text_delta", text=text))


def openai_status_error(status: int, body: Any = None) -> openai.APIStatusError:
    request = httpx.Request("POST", OPENAI_URL)
    response = httpx.Response(status, request=request)
    return openai.APIStatusError(f"Error code: {status}", response=response, body=body)


def anthropic_status_error(status: int, message: str = "error", body: Any = None) -> anthropic.APIStatusError:
    request = httpx.Request("POST", ANTHROPIC_URL)
    response = httpx.Response(status, request=request)
    return anthropic.APIStatusError(message, response=response, body=body)


def openai_timeout_error() -> openai.APITimeoutError:
    return openai.APITimeoutError(request=httpx.Request("POST", OPENAI_URL))


def openai_connection_error() -> openai.APIConnectionError:
    return openai.APIConnectionError(request=httpx.Request("POST", OPENAI_URL))


class SleepRecorder:
    """Replacement for asyncio.sleep that records delays without waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def sleep() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture(autouse=True)
def _no_provider_keys(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep real credentials from the environment out of tests."""
    for name in ("OPENAI_API_KEY", "ANTHROPIC_API_KEY", "XAI_API_KEY"):
        monkeypatch.delenv(name, raising=False)
