"""Runtime settings for specforge.

All values can be overridden via environment variables prefixed with
``SPECFORGE_`` or a ``.env`` file in the working directory.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.

    - **Pydantic validation:** Type-checked at startup, not mid-run
    - **Environment-driven:** Reads from env vars and .env files
    - **Sensible defaults:** The mock provider works out of the box

Examples:
    >>> from specforge.core.settings import SpecforgeSettings
    >>> settings = SpecforgeSettings(provider="mock", max_concurrency=2)
    >>> settings.api_prefix
    '/api/v1'

Tags:
    settings, configuration, pydantic, environment, specforge

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SpecforgeSettings(BaseSettings):
    """Settings for the generation pipeline, its providers, and the API.

    Order of precedence (highest → lowest):
        1. Constructor keyword arguments
        2. Environment variables (``SPECFORGE_MODEL``, etc.)
        3. ``.env`` file
        4. Defaults below
    """

    model_config = SettingsConfigDict(
        env_prefix="SPECFORGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Text generation ──────────────────────────────────────────────────
    provider: Literal["mock", "openai"] = Field(
        default="mock", description="Text-generation backend"
    )
    model: str = Field(default="gpt-4o-mini", description="Model identifier sent to the provider")
    base_url: str = Field(
        default="https://api.openai.com/v1",
        description="Base URL of an OpenAI-compatible chat-completions API",
    )
    api_key: str | None = Field(default=None, description="Provider API key")
    temperature: float = Field(default=0.2, ge=0.0, le=2.0)
    max_tokens: int = Field(default=4096, ge=1)
    request_timeout_seconds: float = Field(
        default=120.0, gt=0, description="Upper bound for one provider call"
    )
    max_concurrency: int = Field(
        default=4, ge=1, description="Tasks of one stage generated in parallel"
    )
    token_budget: int | None = Field(
        default=None, ge=1, description="Optional cap on tokens spent per process"
    )

    # ── Caching ──────────────────────────────────────────────────────────
    cache_max_entries: int = Field(default=1000, ge=1)
    cache_ttl_seconds: int | None = Field(default=None, ge=1)
    cache_history_limit: int = Field(
        default=5, ge=1, description="Cached generations retained per entity"
    )

    # ── Observability ────────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_json: bool | None = Field(default=None, description="None auto-detects from the TTY")

    # ── API ──────────────────────────────────────────────────────────────
    host: str = Field(default="127.0.0.1", description="Bind address")
    port: int = Field(default=8400, description="Bind port")
    debug: bool = Field(default=False)
    api_prefix: str = Field(default="/api/v1", description="URL prefix for all endpoints")
    api_title: str = Field(default="specforge API")
    api_version: str = Field(default="0.1.0")
    cors_origins: list[str] = Field(default=["*"], description="Allowed CORS origins")


@lru_cache(maxsize=1)
def get_settings() -> SpecforgeSettings:
    """Cached settings - loaded once per process."""
    return SpecforgeSettings()


__all__ = ["SpecforgeSettings", "get_settings"]
