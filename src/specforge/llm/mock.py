"""Mock LLM Provider - deterministic provider for testing.

Manifesto:
Testing generation runs requires a provider that returns predictable
results without network calls. ``MockLLMProvider`` supports canned
responses, response scripting, latency and failure injection, and call
tracking.

ARCHITECTURE
────────────
::

    MockLLMProvider
      ├── await .complete(messages) → LLMResponse (canned or scripted)
      ├── .models()                 → list of fake model names
      ├── .calls                    → list of all calls made
      ├── .call_count               → total calls
      └── .max_in_flight            → peak number of concurrent calls

    Configuration:
      default_response   - text returned for all calls
      responses          - mapping of prompt substrings → responses
      sequence           - list of responses returned in order
      failures           - mapping of prompt substrings → error message
      latency_seconds    - simulated service latency

Example::

    provider = MockLLMProvider(default_response="42")
    resp = await provider.complete([Message.user("What is 6*7?")])
    assert resp.content == "42"

    provider = MockLLMProvider(failures={"Checkout": "service unavailable"})
    await provider.complete([Message.user("Checkout page")])  # GenerationServiceError

Tags:
    specforge, llm, mock, testing, deterministic

Doc-Types:
    api-reference
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

from specforge.core.errors import GenerationServiceError
from specforge.llm.protocol import LLMResponse, Message, Role, TokenUsage


@dataclass
class MockLLMProvider:
    """Deterministic LLM provider for testing.

    Response resolution order (on the last user message):
    1. ``failures``: substring match raises ``GenerationServiceError``
    2. ``responses``: substring match returns the mapped text
    3. ``sequence``: next scripted response
    4. ``default_response``
    """

    default_response: str = "Mock LLM response"
    responses: dict[str, str] = field(default_factory=dict)
    sequence: list[str] = field(default_factory=list)
    failures: dict[str, str] = field(default_factory=dict)
    latency_seconds: float = 0.0
    model_name: str = "mock-model-v1"
    tokens_per_char: float = 0.25

    # Tracking
    calls: list[dict[str, Any]] = field(default_factory=list, repr=False)
    max_in_flight: int = field(default=0, repr=False)
    _in_flight: int = field(default=0, repr=False)
    _sequence_index: int = field(default=0, repr=False)

    async def complete(
        self,
        messages: list[Message],
        model: str | None = None,
        *,
        temperature: float = 0.2,
        max_tokens: int = 4096,
        **kwargs: Any,
    ) -> LLMResponse:
        effective_model = model or self.model_name

        self.calls.append({
            "messages": [m.to_dict() for m in messages],
            "model": effective_model,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "kwargs": kwargs,
        })

        self._in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self._in_flight)
        try:
            if self.latency_seconds:
                await asyncio.sleep(self.latency_seconds)
            content = self._resolve_content(messages)
        finally:
            self._in_flight -= 1

        prompt_text = " ".join(m.content for m in messages)
        prompt_tokens = max(1, int(len(prompt_text) * self.tokens_per_char))
        completion_tokens = max(1, int(len(content) * self.tokens_per_char))

        return LLMResponse(
            content=content,
            model=effective_model,
            usage=TokenUsage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=prompt_tokens + completion_tokens,
            ),
            metadata={"provider": "mock"},
        )

    def models(self) -> list[str]:
        return [self.model_name]

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def reset(self) -> None:
        """Reset call tracking and sequence index."""
        self.calls.clear()
        self.max_in_flight = 0
        self._sequence_index = 0

    def _resolve_content(self, messages: list[Message]) -> str:
        last_user = next(
            (m.content for m in reversed(messages) if m.role is Role.USER),
            "",
        )

        for key, error in self.failures.items():
            if key in last_user:
                raise GenerationServiceError(error)

        for key, response in self.responses.items():
            if key in last_user:
                return response

        if self.sequence and self._sequence_index < len(self.sequence):
            content = self.sequence[self._sequence_index]
            self._sequence_index += 1
            return content

        return self.default_response
