"""Text-generation providers.

``build_provider(settings)`` picks the backend named by
``SpecforgeSettings.provider``.
"""

from __future__ import annotations

from specforge.core.errors import ConfigError
from specforge.core.settings import SpecforgeSettings
from specforge.llm.budget import BudgetExhaustedError, TokenBudget
from specforge.llm.http import OpenAICompatibleProvider
from specforge.llm.mock import MockLLMProvider
from specforge.llm.protocol import LLMProvider, LLMResponse, Message, Role, TokenUsage


def build_provider(settings: SpecforgeSettings) -> LLMProvider:
    if settings.provider == "mock":
        return MockLLMProvider(model_name=settings.model)
    if settings.provider == "openai":
        if not settings.base_url:
            raise ConfigError("SPECFORGE_BASE_URL is required for the openai provider")
        return OpenAICompatibleProvider(
            base_url=settings.base_url,
            api_key=settings.api_key,
            model=settings.model,
            timeout_seconds=settings.request_timeout_seconds,
        )
    raise ConfigError(f"Unknown provider: {settings.provider}")


__all__ = [
    "BudgetExhaustedError",
    "LLMProvider",
    "LLMResponse",
    "Message",
    "MockLLMProvider",
    "OpenAICompatibleProvider",
    "Role",
    "TokenBudget",
    "TokenUsage",
    "build_provider",
]
