"""
Tests for MockLLMProvider.

Covers:
- canned, mapped, sequenced and failing responses
- call tracking and concurrency tracking
- protocol conformance
"""

import asyncio

import pytest

from specforge.core.errors import GenerationServiceError
from specforge.llm.mock import MockLLMProvider
from specforge.llm.protocol import LLMProvider, Message


class TestMockLLMProvider:
    def test_conforms_to_protocol(self):
        assert isinstance(MockLLMProvider(), LLMProvider)

    @pytest.mark.asyncio
    async def test_default_response(self):
        provider = MockLLMProvider(default_response="42")
        response = await provider.complete([Message.user("What is 6*7?")])
        assert response.content == "42"
        assert response.model == "mock-model-v1"
        assert response.usage.total_tokens == (
            response.usage.prompt_tokens + response.usage.completion_tokens
        )

    @pytest.mark.asyncio
    async def test_responses_match_last_user_message(self):
        provider = MockLLMProvider(responses={"checkout": "CHECKOUT"})
        # the system prompt mentioning the key must not trigger a match
        response = await provider.complete(
            [Message.system("checkout rules"), Message.user("home page")]
        )
        assert response.content == "Mock LLM response"
        response = await provider.complete([Message.user("checkout page")])
        assert response.content == "CHECKOUT"

    @pytest.mark.asyncio
    async def test_sequence_then_default(self):
        provider = MockLLMProvider(sequence=["one", "two"], default_response="rest")
        contents = [(await provider.complete([Message.user("x")])).content for _ in range(3)]
        assert contents == ["one", "two", "rest"]

    @pytest.mark.asyncio
    async def test_failures_raise(self):
        provider = MockLLMProvider(failures={"Checkout": "service unavailable"})
        with pytest.raises(GenerationServiceError, match="service unavailable"):
            await provider.complete([Message.user("Checkout page")])
        assert provider.call_count == 1

    @pytest.mark.asyncio
    async def test_call_tracking_and_reset(self):
        provider = MockLLMProvider()
        await provider.complete([Message.user("hi")], model="other", temperature=0.5)
        call = provider.calls[0]
        assert call["model"] == "other"
        assert call["temperature"] == 0.5
        assert call["messages"] == [{"role": "user", "content": "hi"}]

        provider.reset()
        assert provider.call_count == 0
        assert provider.max_in_flight == 0

    @pytest.mark.asyncio
    async def test_max_in_flight(self):
        provider = MockLLMProvider(latency_seconds=0.05)
        await asyncio.gather(*(provider.complete([Message.user(str(i))]) for i in range(3)))
        assert provider.max_in_flight == 3

    def test_models(self):
        assert MockLLMProvider(model_name="m").models() == ["m"]
