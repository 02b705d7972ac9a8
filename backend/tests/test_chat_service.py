"""Tests for the chat service entry point."""

import pytest

from aichatroom.adapters.base import calculate_cost
from aichatroom.adapters.errors import ModelNotFoundError
from aichatroom.adapters.registry import AdapterRegistry
from aichatroom.adapters.types import (
    AICapabilities,
    AIChunk,
    AIResponse,
    Message,
    MessageParams,
    Pricing,
    TokenUsage,
)
from aichatroom.colors import get_ai_color
from aichatroom.config import Settings
from aichatroom.services import ChatService, create_chat_service


class EchoAdapter:
    """Stub provider: completion tokens echo the conversation's input length."""

    provider = "stub"
    capabilities = AICapabilities(streaming=True)
    pricing = Pricing(input=0.01, output=0.02)

    def __init__(self, model_id):
        self.model_id = model_id
        self.model_name = "Demo A"
        self.initialized = 0
        self.stream_closed = False

    async def initialize(self):
        self.initialized += 1

    def validate_config(self, config):
        return bool(config.get("api_key"))

    def calculate_cost(self, input_tokens, output_tokens):
        return calculate_cost(self.pricing, input_tokens, output_tokens)

    async def send_message(self, params):
        input_length = sum(len(m.content) for m in params.messages)
        return AIResponse(
            content="ok",
            finish_reason="stop",
            usage=TokenUsage(prompt_tokens=len(params.messages), completion_tokens=input_length),
            model=self.model_id,
        )

    async def send_streaming_message(self, params):
        try:
            words = params.messages[-1].content.split()
            for index, word in enumerate(words):
                yield AIChunk(content=word, index=index)
            yield AIChunk(content="", index=len(words), finish_reason="stop")
        finally:
            self.stream_closed = True


@pytest.fixture
def service():
    return ChatService(AdapterRegistry({"demo-a": EchoAdapter}))


def _conversation(*pairs):
    return MessageParams(messages=[Message(role=r, content=c) for r, c in pairs])


class TestSendMessage:
    """End-to-end tests through registry and adapter."""

    @pytest.mark.asyncio
    async def test_two_turn_conversation(self, service):
        """A system + user conversation returns a consistent unified response."""
        response = await service.send_message(
            "demo-a", _conversation(("system", "be terse"), ("user", "hi"))
        )

        assert response.model == "demo-a"
        assert response.usage.completion_tokens == len("be terse") + len("hi")
        assert response.usage.total_tokens == response.usage.prompt_tokens + response.usage.completion_tokens

    @pytest.mark.asyncio
    async def test_adapter_initialized_once_across_requests(self, service):
        await service.send_message("demo-a", _conversation(("user", "one")))
        await service.send_message("demo-a", _conversation(("user", "two")))

        adapter = await service.registry.get_adapter("demo-a")
        assert adapter.initialized == 1

    @pytest.mark.asyncio
    async def test_unknown_model(self, service):
        with pytest.raises(ModelNotFoundError):
            await service.send_message("nope", _conversation(("user", "hi")))


class TestStreamMessage:
    """Tests for streaming through the service."""

    @pytest.mark.asyncio
    async def test_chunks_in_order(self, service):
        chunks = [
            chunk async for chunk in service.stream_message("demo-a", _conversation(("user", "a b c")))
        ]

        assert [c.content for c in chunks] == ["a", "b", "c", ""]
        assert [c.index for c in chunks] == [0, 1, 2, 3]
        assert chunks[-1].finish_reason == "stop"

    @pytest.mark.asyncio
    async def test_early_exit_closes_adapter_stream(self, service):
        """Closing the service stream early unwinds the adapter's stream."""
        stream = service.stream_message("demo-a", _conversation(("user", "a b c d")))
        first = await stream.__anext__()
        await stream.aclose()

        adapter = await service.registry.get_adapter("demo-a")
        assert first.content == "a"
        assert adapter.stream_closed

    @pytest.mark.asyncio
    async def test_unknown_model_raises_before_any_chunk(self, service):
        with pytest.raises(ModelNotFoundError):
            async for _ in service.stream_message("nope", _conversation(("user", "hi"))):
                pass


class TestModelDiscovery:
    """Tests for listing, pricing and describing models."""

    def test_listing_does_not_instantiate(self, service):
        assert service.get_available_models() == ["demo-a"]
        assert service.has_model("demo-a")
        assert not service.has_model("demo-b")
        assert not service.registry.is_loaded("demo-a")

    def test_calculate_cost_needs_no_instance(self, service):
        assert service.calculate_cost("demo-a", 1000, 1000) == 0.01 + 0.02
        assert not service.registry.is_loaded("demo-a")

    def test_calculate_cost_unknown_model(self, service):
        with pytest.raises(ModelNotFoundError):
            service.calculate_cost("demo-b", 1000, 1000)

    @pytest.mark.asyncio
    async def test_describe_model(self, service):
        info = await service.describe_model("demo-a")

        assert info.model_id == "demo-a"
        assert info.model_name == "Demo A"
        assert info.provider == "stub"
        assert info.pricing == Pricing(input=0.01, output=0.02)
        assert info.avatar_color == get_ai_color("demo-a")


class TestCreateChatService:
    def test_default_catalogue(self):
        service = create_chat_service(Settings(openai_api_key="sk-test"))

        models = service.get_available_models()
        assert "gpt-4" in models
        assert "claude-3-5-sonnet-20241022" in models
        assert "grok-4" in models
        assert not service.registry.is_loaded("gpt-4")

    def test_cost_without_credentials(self):
        """Costs are estimated from pricing alone, even with no keys configured."""
        service = create_chat_service(Settings())

        assert service.calculate_cost("gpt-4", 1000, 1000) == pytest.approx(0.03 + 0.06)
        assert service.calculate_cost("claude-3-opus-20240229", 1000, 1000) == pytest.approx(0.015 + 0.075)
        assert not service.registry.is_loaded("gpt-4")
        assert not service.registry.is_loaded("claude-3-opus-20240229")

    @pytest.mark.asyncio
    async def test_configured_model_resolves_without_network(self):
        service = create_chat_service(Settings(anthropic_api_key="sk-ant-test"))

        info = await service.describe_model("claude-3-5-sonnet-20241022")

        assert info.provider == "anthropic"
        assert info.model_name == "Claude 3.5 Sonnet"
        assert info.capabilities.vision
