"""Tests for style guide rendering."""

from specforge.generation.stylesheet import (
    ACTIVE_STYLESHEET_PATH,
    render_stylesheet,
    stylesheet_path,
)
from specforge.spec.models import Specification, StyleGuide


class TestRenderStylesheet:
    def test_sample_style_guide(self, sample_spec):
        css = render_stylesheet(sample_spec.styles[0])
        assert css.startswith("@import 'tailwindcss';\n\n@theme inline {\n  /* Colors */\n")
        assert (
            "  --color-background: #ffffff;\n"
            "  --color-foreground: #111827;\n"
            "  --color-primary: #2563eb;\n"
        ) in css
        assert "  --font-sans: Inter, sans-serif;\n  --font-heading: Poppins, sans-serif;\n" in css
        assert "  --spacing: 4px;\n" in css
        assert "  --radius: 8px;\n  --shadow: 0 1px 2px rgb(0 0 0 / 0.05);\n}\n" in css
        assert "/* Base Styles */" in css
        assert "font-family: var(--font-sans, system-ui, sans-serif);" in css

    def test_deterministic(self, sample_spec):
        style = sample_spec.styles[0]
        reordered = style.model_copy(update={"colors": dict(reversed(list(style.colors.items())))})
        assert render_stylesheet(style) == render_stylesheet(reordered)

    def test_light_and_dark_palettes(self):
        style = StyleGuide(
            id="s1",
            theme_mode="dark",
            colors={
                "light": {"background": "#fff"},
                "dark": {"background": "#000", "textPrimary": "#eee"},
                "custom": [{"name": "Brand Accent", "value": "#f59e0b"}, {"name": "empty"}],
            },
        )
        css = render_stylesheet(style)
        assert "--color-background: #000;" in css
        assert "--color-text-primary: #eee;" in css
        assert "--color-light-background: #fff;" in css
        assert "--color-brand-accent: #f59e0b;" in css
        assert "--color-empty" not in css

    def test_spacing_scale_and_effect_radius(self):
        style = StyleGuide(
            id="s1",
            spacing={"sm": 4, "md": "1rem"},
            effects={"borderRadius": 6},
            typography={"code": {"family": "JetBrains Mono"}},
        )
        css = render_stylesheet(style)
        assert "--spacing-md: 1rem;\n  --spacing-sm: 4px;" in css
        assert "--radius: 6px;" in css
        assert "--font-mono: JetBrains Mono;" in css

    def test_empty_style_guide(self):
        css = render_stylesheet(StyleGuide(id="s1"))
        assert "@theme inline {\n}\n" in css
        assert "/* Colors */" not in css


class TestStylesheetPath:
    def test_first_style_is_active(self):
        spec = Specification.from_dict({"styles": [{"id": "s1"}, {"id": "s2", "name": "Dark Mode"}]})
        assert stylesheet_path(spec.styles[0], spec) == ACTIVE_STYLESHEET_PATH
        assert stylesheet_path(spec.styles[1], spec) == "app/themes/dark-mode.css"
