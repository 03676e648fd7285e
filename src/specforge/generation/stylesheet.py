"""Style guide → CSS stylesheet.

Style guides are rendered from a template instead of a provider call. The
output is a Tailwind v4 ``@theme`` block of CSS custom properties followed by
base rules that read them through ``var()`` with fallbacks.

Token mapping:
    ::

        colors (flat)            --color-{key}
        colors.light / .dark     --color-{key} for the active theme mode,
                                 --color-{mode}-{key} for the other one
        colors.custom[]          --color-{slug(name)}
        typography body/heading/code
          (or fontFamily/headingFont/monoFont)
                                 --font-sans / --font-heading / --font-mono
        spacing (number)         --spacing: {n}px
        spacing (map)            --spacing-{key}
        border_radius            --radius (numbers become px)
        effects.shadow           --shadow

Rendering is deterministic: keys are emitted in sorted order so identical
style guides produce identical files.
"""

from __future__ import annotations

import re
from typing import Any

from specforge.spec.models import Specification, StyleGuide

ACTIVE_STYLESHEET_PATH = "app/globals.css"

_TYPOGRAPHY_TOKENS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("--font-sans", ("body", "fontFamily", "sans")),
    ("--font-heading", ("heading", "headingFont", "display")),
    ("--font-mono", ("code", "monoFont", "mono")),
)

_BASE_STYLES = """\
/* Base Styles */
body {
  font-family: var(--font-sans, system-ui, sans-serif);
  color: var(--color-foreground, #000);
  background: var(--color-background, #fff);
}

h1, h2, h3, h4, h5, h6 {
  font-family: var(--font-heading, var(--font-sans, system-ui, sans-serif));
}
"""


def _token_name(key: str) -> str:
    name = re.sub(r"([a-z0-9])([A-Z])", r"\1-\2", str(key))
    name = re.sub(r"[^a-zA-Z0-9]+", "-", name).strip("-").lower()
    return name or "value"


def _css_length(value: Any) -> str:
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float)):
        return f"{value:g}px"
    return str(value)


def _color_tokens(style: StyleGuide) -> list[tuple[str, str]]:
    colors = style.colors or {}
    palettes = {k: v for k, v in colors.items() if k in ("light", "dark") and isinstance(v, dict)}
    custom = colors.get("custom")

    tokens: list[tuple[str, str]] = []
    if not palettes and not isinstance(custom, list):
        for key in sorted(colors):
            tokens.append((f"--color-{_token_name(key)}", str(colors[key])))
        return tokens

    active = style.theme_mode if style.theme_mode in palettes else next(iter(sorted(palettes)), None)
    if active is not None:
        for key in sorted(palettes[active]):
            tokens.append((f"--color-{_token_name(key)}", str(palettes[active][key])))
    for mode in sorted(palettes):
        if mode == active:
            continue
        for key in sorted(palettes[mode]):
            tokens.append((f"--color-{mode}-{_token_name(key)}", str(palettes[mode][key])))
    if isinstance(custom, list):
        for entry in custom:
            if isinstance(entry, dict) and entry.get("name") and entry.get("value"):
                tokens.append((f"--color-{_token_name(entry['name'])}", str(entry["value"])))
    return tokens


def _typography_tokens(style: StyleGuide) -> list[tuple[str, str]]:
    typography = style.typography or {}
    tokens: list[tuple[str, str]] = []
    for token, keys in _TYPOGRAPHY_TOKENS:
        value = next((typography[k] for k in keys if typography.get(k)), None)
        if isinstance(value, dict):
            value = value.get("family") or value.get("fontFamily")
        if value:
            tokens.append((token, str(value)))
    return tokens


def _spacing_tokens(style: StyleGuide) -> list[tuple[str, str]]:
    spacing = style.spacing
    if spacing is None:
        return []
    if isinstance(spacing, dict):
        return [(f"--spacing-{_token_name(k)}", _css_length(spacing[k])) for k in sorted(spacing)]
    return [("--spacing", _css_length(spacing))]


def _effect_tokens(style: StyleGuide) -> list[tuple[str, str]]:
    effects = style.effects or {}
    tokens: list[tuple[str, str]] = []
    radius = style.border_radius if style.border_radius is not None else effects.get("borderRadius")
    if radius is not None:
        tokens.append(("--radius", _css_length(radius)))
    if effects.get("shadow"):
        tokens.append(("--shadow", str(effects["shadow"])))
    return tokens


def render_stylesheet(style: StyleGuide) -> str:
    """CSS for one style guide."""
    sections = [
        ("Colors", _color_tokens(style)),
        ("Typography", _typography_tokens(style)),
        ("Spacing", _spacing_tokens(style)),
        ("Effects", _effect_tokens(style)),
    ]

    lines = ["@import 'tailwindcss';", "", "@theme inline {"]
    first = True
    for title, tokens in sections:
        if not tokens:
            continue
        if not first:
            lines.append("")
        first = False
        lines.append(f"  /* {title} */")
        lines.extend(f"  {name}: {value};" for name, value in tokens)
    lines.append("}")
    lines.append("")
    return "\n".join(lines) + "\n" + _BASE_STYLES


def stylesheet_path(style: StyleGuide, spec: Specification) -> str:
    """The active (first) style guide owns ``app/globals.css``."""
    active = spec.active_style_guide()
    if active is None or active.id == style.id:
        return ACTIVE_STYLESHEET_PATH
    return f"app/themes/{style.slug}.css"


__all__ = ["ACTIVE_STYLESHEET_PATH", "render_stylesheet", "stylesheet_path"]
