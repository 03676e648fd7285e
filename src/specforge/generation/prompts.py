"""Prompt templates for component and page generation.

Templates use ``{placeholder}`` fields. Unknown placeholders are left as-is,
so literal braces in a custom template survive interpolation.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from enum import Enum
from typing import Any

from specforge.core.errors import UnsupportedEntityError, ValidationError
from specforge.generation.parser import default_path
from specforge.llm.protocol import Message
from specforge.spec.models import BaseEntity, Page, Specification

SYSTEM_PROMPT = """\
You convert structured application specifications into production-ready \
Next.js (App Router) code written in TypeScript and styled with Tailwind CSS.

Rules:
- Server Components by default; add 'use client' only for interactive code.
- Use the design tokens defined in app/globals.css instead of raw values.
- Keep components small, typed, and accessible (semantic HTML, WCAG 2.1 AA).
- Put shared helpers under lib/ and reusable components under components/.

Output format:
Answer ONLY with fenced code blocks. Every block must name its file:

```tsx file="components/example.tsx"
export function Example() {
  return <div />
}
```

Emit one block per file. Do not wrap blocks in other blocks."""

COMPONENT_PROMPT = """\
Generate a reusable React component from this specification.

Requirements:
- Define a typed props interface.
- Implement the behaviour described in mainPrompt.
- Apply the style guide tokens.

Component specification:
{componentSpec}

Style guide:
{styleGuide}

Referenced components:
{referencedComponents}

Write the component to "{defaultPath}"."""

PAGE_PROMPT = """\
Generate a Next.js page from this specification.

Requirements:
- Implement the layout described in mainPrompt.
- Import the referenced components from components/ instead of re-creating them.
- Use the referenced contexts as content and requirements.
- Apply the style guide tokens and keep the page responsive.

Page specification:
{pageSpec}

Style guide:
{styleGuide}

Referenced components:
{referencedComponents}

Referenced contexts:
{referencedContexts}

Write the page to "{defaultPath}" (route {route}). Add any new components or \
helpers as separate files."""


class PromptKey(str, Enum):
    SYSTEM = "system"
    COMPONENT = "component"
    PAGE = "page"


_DEFAULTS: dict[PromptKey, str] = {
    PromptKey.SYSTEM: SYSTEM_PROMPT,
    PromptKey.COMPONENT: COMPONENT_PROMPT,
    PromptKey.PAGE: PAGE_PROMPT,
}

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


def _to_json(value: Any) -> str:
    if isinstance(value, BaseEntity):
        value = value.to_dict(include_history=False)
    elif isinstance(value, list):
        value = [v.to_dict(include_history=False) if isinstance(v, BaseEntity) else v for v in value]
    return json.dumps(value, indent=2, sort_keys=True, ensure_ascii=False)


def interpolate(template: str, variables: Mapping[str, str]) -> str:
    return _PLACEHOLDER.sub(lambda m: variables.get(m.group(1), m.group(0)), template)


class PromptManager:
    """Builds provider messages for component and page entities."""

    def __init__(self, templates: Mapping[PromptKey | str, str] | None = None):
        self._custom: dict[PromptKey, str] = {}
        for key, template in (templates or {}).items():
            self.register(key, template)

    def register(self, key: PromptKey | str, template: str) -> None:
        """Override one of the built-in templates."""
        try:
            prompt_key = PromptKey(key)
        except ValueError as e:
            raise ValidationError(
                f"Unknown prompt template '{key}'", field="key", value=key, cause=e
            ) from e
        self._custom[prompt_key] = template

    def template(self, key: PromptKey | str) -> str:
        prompt_key = PromptKey(key)
        return self._custom.get(prompt_key, _DEFAULTS[prompt_key])

    def templates(self) -> dict[str, str]:
        return {key.value: self.template(key) for key in PromptKey}

    def system_prompt(self) -> str:
        return self.template(PromptKey.SYSTEM)

    def component_prompt(self, component: Page, spec: Specification) -> str:
        return interpolate(
            self.template(PromptKey.COMPONENT),
            {
                "componentSpec": _to_json(component),
                "styleGuide": _to_json(spec.active_style_guide()),
                "referencedComponents": _to_json(spec.referenced_components(component)),
                "defaultPath": default_path(component),
            },
        )

    def page_prompt(self, page: Page, spec: Specification) -> str:
        return interpolate(
            self.template(PromptKey.PAGE),
            {
                "pageSpec": _to_json(page),
                "styleGuide": _to_json(spec.active_style_guide()),
                "referencedComponents": _to_json(spec.referenced_components(page)),
                "referencedContexts": _to_json(spec.referenced_contexts(page)),
                "defaultPath": default_path(page),
                "route": page.page_route,
            },
        )

    def build_prompt(self, entity: BaseEntity, spec: Specification) -> str:
        """User prompt for an entity; fails fast for anything not generated by a provider."""
        match entity:
            case Page() if entity.is_component:
                return self.component_prompt(entity, spec)
            case Page() if entity.is_page:
                return self.page_prompt(entity, spec)
            case Page():
                raise UnsupportedEntityError(
                    f"Pages of type '{entity.type.value}' cannot be generated",
                    field="type",
                    value=entity.type.value,
                ).with_context(entity_id=entity.id)
            case _:
                raise UnsupportedEntityError(
                    f"{type(entity).__name__} entities are not generated by the provider"
                ).with_context(entity_id=entity.id)

    def messages_for(self, entity: BaseEntity, spec: Specification) -> list[Message]:
        return [Message.system(self.system_prompt()), Message.user(self.build_prompt(entity, spec))]


__all__ = [
    "PromptKey",
    "PromptManager",
    "SYSTEM_PROMPT",
    "COMPONENT_PROMPT",
    "PAGE_PROMPT",
    "interpolate",
]
