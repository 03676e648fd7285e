"""LLM Provider Protocol - interface to the text-generation service.

Manifesto:
The generator never talks to a vendor SDK directly. It hands a list of
messages to an ``LLMProvider`` and gets back text plus token usage, so
the mock used in tests, an OpenAI-compatible HTTP endpoint, or any other
backend can be swapped in without touching the pipeline.

ARCHITECTURE
────────────
::

    LLMProvider (Protocol)
      ├── await .complete(messages, model, **kwargs) → LLMResponse
      └── .models() → list[str]

    Message(role, content)        - chat message
    Role                          - system | user | assistant
    TokenUsage(prompt, completion, total)
    LLMResponse(content, model, usage, metadata)

Related modules:
    mock.py     - MockLLMProvider for tests
    http.py     - OpenAICompatibleProvider over httpx
    budget.py   - token budget enforcement

Example::

    class OllamaProvider:
        async def complete(self, messages, model="llama3", **kw):
            # call the local server
            return LLMResponse(content="...", model=model, usage=...)

        def models(self):
            return ["llama3"]

Tags:
    specforge, llm, protocol, provider-interface, messages

Doc-Types:
    api-reference
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol, runtime_checkable


class Role(str, Enum):
    """Message role in a conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Message:
    """A single chat message."""

    role: Role
    content: str

    @classmethod
    def system(cls, content: str) -> Message:
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> Message:
        return cls(role=Role.ASSISTANT, content=content)

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


@dataclass(frozen=True)
class TokenUsage:
    """Token usage statistics for one call.

    Attributes:
        prompt_tokens: Tokens in the input.
        completion_tokens: Tokens in the output.
        total_tokens: Total tokens consumed.
    """

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass(frozen=True)
class LLMResponse:
    """Response from a provider.

    Attributes:
        content: Generated text.
        model: Model identifier used.
        usage: Token usage statistics.
        metadata: Provider-specific metadata.
        finish_reason: Why generation stopped.
    """

    content: str
    model: str
    usage: TokenUsage = field(default_factory=TokenUsage)
    metadata: dict[str, Any] = field(default_factory=dict)
    finish_reason: str = "stop"

    def to_dict(self) -> dict[str, Any]:
        return {
            "content": self.content,
            "model": self.model,
            "usage": {
                "prompt_tokens": self.usage.prompt_tokens,
                "completion_tokens": self.usage.completion_tokens,
                "total_tokens": self.usage.total_tokens,
            },
            "finish_reason": self.finish_reason,
            "metadata": self.metadata,
        }


@runtime_checkable
class LLMProvider(Protocol):
    """Protocol for text-generation backends.

    Implementors
    ------------
    * ``MockLLMProvider``           - for testing
    * ``OpenAICompatibleProvider``  - chat-completions over HTTP
    """

    async def complete(
        self,
        messages: list[Message],
        model: str | None = None,
        *,
        temperature: float = 0.2,
        max_tokens: int = 4096,
        **kwargs: Any,
    ) -> LLMResponse:
        """Generate a completion from messages.

        Parameters
        ----------
        messages
            Conversation history.
        model
            Model identifier (provider-specific).
        temperature
            Sampling temperature.
        max_tokens
            Maximum tokens to generate.

        Raises
        ------
        GenerationServiceError
            When the backend fails or answers with something unusable.
        """
        ...

    def models(self) -> list[str]:
        """List available model identifiers."""
        ...
