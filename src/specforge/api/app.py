"""
FastAPI application factory.

``create_app()`` wires middleware, routers, error handlers, and the shared
provider and generation cache into a single ``FastAPI`` instance.

Manifesto:
    The app factory is the single composition root - the provider and the
    cache are built here (or injected by tests) so routers never construct
    collaborators themselves.

Tags:
    specforge, api, app-factory, composition-root, FastAPI

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from specforge.api.middleware.errors import (
    specforge_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from specforge.api.middleware.request_id import RequestIDMiddleware
from specforge.core.errors import SpecforgeError
from specforge.core.logging import get_logger
from specforge.core.settings import SpecforgeSettings, get_settings
from specforge.generation.cache import GenerationCache
from specforge.llm import build_provider
from specforge.llm.protocol import LLMProvider

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan - startup / shutdown hooks."""
    logger.info(
        "api.starting",
        version=app.version,
        provider=type(app.state.provider).__name__,
    )
    yield
    logger.info("api.stopping")


def create_app(
    settings: SpecforgeSettings | None = None,
    provider: LLMProvider | None = None,
    cache: GenerationCache | None = None,
) -> FastAPI:
    """Build and return a fully-configured FastAPI application.

    Parameters
    ----------
    settings : SpecforgeSettings | None
        Override settings (useful for testing). When ``None`` the cached
        singleton from :func:`get_settings` is used.
    provider : LLMProvider | None
        Text-generation backend. Defaults to ``build_provider(settings)``.
    cache : GenerationCache | None
        Shared generation cache. Defaults to one sized from settings.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
        docs_url=f"{settings.api_prefix}/docs",
        redoc_url=f"{settings.api_prefix}/redoc",
        openapi_url=f"{settings.api_prefix}/openapi.json",
    )

    app.state.settings = settings
    app.state.provider = provider if provider is not None else build_provider(settings)
    app.state.cache = cache if cache is not None else GenerationCache.from_settings(settings)

    # Override DI so endpoints use the provided settings
    app.dependency_overrides[get_settings] = lambda: settings

    # ── Middleware (outermost → innermost) ────────────────────────────
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Exception handlers ───────────────────────────────────────────
    app.add_exception_handler(SpecforgeError, specforge_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # ── Routers ──────────────────────────────────────────────────────
    from specforge.api.routers import fingerprint, generation, health

    prefix = settings.api_prefix
    app.include_router(health.router, prefix=prefix, tags=["health"])
    app.include_router(fingerprint.router, prefix=prefix, tags=["fingerprint"])
    app.include_router(generation.router, prefix=prefix, tags=["generation"])

    return app
