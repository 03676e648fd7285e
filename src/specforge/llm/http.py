"""OpenAI-compatible chat-completions provider over httpx.

Works against any endpoint that speaks the ``/chat/completions`` wire format
(OpenAI, OpenRouter, vLLM, Ollama's OpenAI shim). Every failure mode of the
call becomes a ``GenerationServiceError`` so the generator can fail just the
one task.
"""

from __future__ import annotations

from typing import Any

import httpx

from specforge.core.errors import GenerationServiceError
from specforge.core.logging import get_logger
from specforge.llm.protocol import LLMResponse, Message, TokenUsage

logger = get_logger(__name__)


class OpenAICompatibleProvider:
    """``LLMProvider`` backed by ``POST {base_url}/chat/completions``."""

    def __init__(
        self,
        *,
        base_url: str = "https://api.openai.com/v1",
        api_key: str | None = None,
        model: str = "gpt-4o-mini",
        timeout_seconds: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.model = model
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def complete(
        self,
        messages: list[Message],
        model: str | None = None,
        *,
        temperature: float = 0.2,
        max_tokens: int = 4096,
        **kwargs: Any,
    ) -> LLMResponse:
        effective_model = model or self.model
        payload = {
            "model": effective_model,
            "messages": [m.to_dict() for m in messages],
            "temperature": temperature,
            "max_tokens": max_tokens,
            **kwargs,
        }
        url = f"{self.base_url}/chat/completions"

        logger.debug("llm.request", url=url, model=effective_model, messages=len(messages))
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout_seconds),
                transport=self._transport,
            ) as client:
                response = await client.post(url, json=payload, headers=self._headers())
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            raise GenerationServiceError(
                f"Text-generation service returned {e.response.status_code}: "
                f"{e.response.text[:200]}",
                cause=e,
            ) from e
        except httpx.HTTPError as e:
            raise GenerationServiceError(
                f"Text-generation service unreachable: {e}", cause=e
            ) from e
        except ValueError as e:
            raise GenerationServiceError(
                "Text-generation service returned invalid JSON", cause=e
            ) from e

        return self._parse(data, effective_model)

    def _parse(self, data: dict[str, Any], model: str) -> LLMResponse:
        try:
            choice = data["choices"][0]
            content = choice["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise GenerationServiceError(
                "Malformed chat-completions response", cause=e
            ) from e
        if content is None:
            content = ""

        usage = data.get("usage") or {}
        prompt_tokens = int(usage.get("prompt_tokens", 0))
        completion_tokens = int(usage.get("completion_tokens", 0))
        token_usage = TokenUsage(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=int(usage.get("total_tokens", prompt_tokens + completion_tokens)),
        )
        logger.debug("llm.response", model=data.get("model", model), tokens=token_usage.total_tokens)
        return LLMResponse(
            content=content,
            model=data.get("model", model),
            usage=token_usage,
            metadata={"provider": "openai-compatible", "id": data.get("id")},
            finish_reason=choice.get("finish_reason") or "stop",
        )

    def models(self) -> list[str]:
        return [self.model]
