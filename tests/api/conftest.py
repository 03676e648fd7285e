"""Fixtures for API tests: an app wired to the scripted mock provider."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from specforge.api.app import create_app
from specforge.generation.cache import GenerationCache


@pytest.fixture
def cache(settings) -> GenerationCache:
    return GenerationCache.from_settings(settings)


@pytest.fixture
def app(settings, provider, cache):
    return create_app(settings=settings, provider=provider, cache=cache)


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client
