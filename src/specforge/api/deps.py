"""
FastAPI dependency injection - settings, provider, and cache.

Usage in routers::

    from specforge.api.deps import Cache, Provider, Settings

    @router.post("/generate")
    async def generate(body: GenerateRequest, provider: Provider, cache: Cache):
        ...

The provider and the generation cache are created once by ``create_app``
and live on ``app.state``; tests swap them by passing their own.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from specforge.core.settings import SpecforgeSettings, get_settings
from specforge.generation.cache import GenerationCache
from specforge.llm.protocol import LLMProvider


def get_provider(request: Request) -> LLMProvider:
    return request.app.state.provider


def get_cache(request: Request) -> GenerationCache:
    return request.app.state.cache


# ── Convenience type aliases ─────────────────────────────────────────────

Settings = Annotated[SpecforgeSettings, Depends(get_settings)]
Provider = Annotated[LLMProvider, Depends(get_provider)]
Cache = Annotated[GenerationCache, Depends(get_cache)]
