"""
Shared pytest fixtures for specforge tests.

This module provides:
- A small but complete sample specification (style, components, pages,
  context, asset, template)
- A scripted mock provider answering with fenced file blocks per entity
- A fixed clock for deterministic timestamps
- Isolated settings (no environment or .env leakage)

Usage:
    def test_something(sample_spec, provider):
        generator = CodeGenerator(provider, settings=settings)
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import pytest

from specforge.core.logging import configure_logging
from specforge.core.settings import SpecforgeSettings
from specforge.llm.mock import MockLLMProvider
from specforge.spec.models import Specification


def fenced(path: str, content: str, language: str = "tsx") -> str:
    """One fenced block naming its file."""
    return f'```{language} file="{path}"\n{content}\n```'


def sample_spec_dict() -> dict[str, Any]:
    return {
        "name": "Shop",
        "styles": [
            {
                "id": "s1",
                "name": "Brand",
                "themeMode": "light",
                "colors": {"primary": "#2563eb", "background": "#ffffff", "foreground": "#111827"},
                "typography": {"body": "Inter, sans-serif", "heading": "Poppins, sans-serif"},
                "spacing": 4,
                "borderRadius": 8,
                "effects": {"shadow": "0 1px 2px rgb(0 0 0 / 0.05)"},
            }
        ],
        "pages": [
            {
                "id": "c1",
                "name": "Button",
                "type": "component",
                "mainPrompt": "A primary button",
            },
            {
                "id": "c2",
                "name": "Product Card",
                "type": "component",
                "mainPrompt": "A product card with an image and a buy button",
                "referenceIds": ["c1"],
            },
            {
                "id": "p1",
                "name": "Home",
                "type": "page",
                "route": "/",
                "mainPrompt": "Landing page listing featured products",
                "referenceIds": ["c2", "ctx1"],
            },
            {
                "id": "p2",
                "name": "About",
                "type": "page",
                "route": "/about",
                "mainPrompt": "Company story",
                "referenceIds": ["ctx1", "a1"],
            },
            {"id": "f1", "name": "Marketing", "type": "folder"},
        ],
        "contexts": [
            {"id": "ctx1", "name": "Brand voice", "type": "text", "content": "Friendly and concise."}
        ],
        "assets": [{"id": "a1", "name": "Logo", "type": "image", "link": "https://cdn.example.com/logo.png"}],
        "templates": [{"id": "t1", "name": "Blog", "category": "page", "tags": ["content", "blog"]}],
    }


RESPONSES: dict[str, str] = {
    'to "components/button.tsx"': fenced(
        "components/button.tsx",
        "export function Button() {\n  return <button className=\"btn\">Buy</button>\n}",
    ),
    'to "components/product-card.tsx"': fenced(
        "components/product-card.tsx",
        "import { Button } from './button'\n\nexport function ProductCard() {\n  return <Button />\n}",
    ),
    'to "app/page.tsx"': "Here is the page:\n\n"
    + fenced("app/page.tsx", "export default function Home() {\n  return <main>Home</main>\n}")
    + "\n\n"
    + fenced("lib/products.ts", "export const products = []", language="ts"),
    'to "app/about/page.tsx"': fenced(
        "app/about/page.tsx", "export default function About() {\n  return <main>About</main>\n}"
    ),
}


@pytest.fixture
def spec_dict() -> dict[str, Any]:
    return sample_spec_dict()


@pytest.fixture
def sample_spec() -> Specification:
    return Specification.from_dict(sample_spec_dict())


@pytest.fixture
def provider() -> MockLLMProvider:
    return MockLLMProvider(responses=dict(RESPONSES))


@pytest.fixture
def settings() -> SpecforgeSettings:
    """Settings isolated from the environment and any .env file."""
    return SpecforgeSettings(
        _env_file=None,
        provider="mock",
        model="mock-model-v1",
        max_concurrency=4,
        request_timeout_seconds=5.0,
        token_budget=None,
        log_level="WARNING",
    )


@pytest.fixture
def fixed_clock():
    moment = datetime(2024, 1, 15, 12, 0, tzinfo=UTC)
    return lambda: moment


@pytest.fixture
def fence():
    """The ``fenced`` block builder, for tests scripting their own responses."""
    return fenced


@pytest.fixture
def responses() -> dict[str, str]:
    return dict(RESPONSES)


@pytest.fixture(scope="session", autouse=True)
def _quiet_logging():
    """Configure logging once, before any module logger is first used."""
    configure_logging(level="WARNING", json_format=True)
