"""
Tests for OpenAICompatibleProvider.

Requests are served by ``httpx.MockTransport``; no network access.
"""

import json

import httpx
import pytest

from specforge.core.errors import GenerationServiceError
from specforge.llm.http import OpenAICompatibleProvider
from specforge.llm.protocol import LLMProvider, Message


def completion(content: str | None = "Hello", **extra) -> dict:
    return {
        "id": "chatcmpl-1",
        "model": "gpt-4o-mini",
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}, "finish_reason": "stop"}],
        "usage": {"prompt_tokens": 12, "completion_tokens": 3, "total_tokens": 15},
        **extra,
    }


def provider_for(handler) -> OpenAICompatibleProvider:
    return OpenAICompatibleProvider(
        base_url="https://llm.test/v1/",
        api_key="sk-test",
        model="gpt-4o-mini",
        transport=httpx.MockTransport(handler),
    )


class TestOpenAICompatibleProvider:
    def test_conforms_to_protocol(self):
        assert isinstance(provider_for(lambda request: httpx.Response(200)), LLMProvider)

    @pytest.mark.asyncio
    async def test_request_and_response(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("Authorization")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=completion())

        provider = provider_for(handler)
        response = await provider.complete(
            [Message.system("sys"), Message.user("hi")], temperature=0.1, max_tokens=64
        )

        assert seen["url"] == "https://llm.test/v1/chat/completions"
        assert seen["auth"] == "Bearer sk-test"
        assert seen["body"]["model"] == "gpt-4o-mini"
        assert seen["body"]["max_tokens"] == 64
        assert seen["body"]["messages"][1] == {"role": "user", "content": "hi"}

        assert response.content == "Hello"
        assert response.usage.total_tokens == 15
        assert response.metadata == {"provider": "openai-compatible", "id": "chatcmpl-1"}

    @pytest.mark.asyncio
    async def test_null_content_becomes_empty(self):
        provider = provider_for(lambda request: httpx.Response(200, json=completion(content=None)))
        response = await provider.complete([Message.user("hi")])
        assert response.content == ""

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        provider = provider_for(lambda request: httpx.Response(503, text="overloaded"))
        with pytest.raises(GenerationServiceError, match="returned 503"):
            await provider.complete([Message.user("hi")])

    @pytest.mark.asyncio
    async def test_unreachable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(GenerationServiceError, match="unreachable") as exc_info:
            await provider_for(handler).complete([Message.user("hi")])
        assert exc_info.value.retryable is True

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        provider = provider_for(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(GenerationServiceError, match="invalid JSON"):
            await provider.complete([Message.user("hi")])

    @pytest.mark.asyncio
    async def test_malformed_payload(self):
        provider = provider_for(lambda request: httpx.Response(200, json={"choices": []}))
        with pytest.raises(GenerationServiceError, match="Malformed"):
            await provider.complete([Message.user("hi")])
