"""
Tests for the response parser.

Covers:
- file blocks with language and file attributes
- nested fences kept as content
- unterminated and anonymous blocks
- fallback to the entity's default path
"""

import pytest

from specforge.core.errors import GenerationServiceError
from specforge.generation.parser import (
    default_path,
    infer_file_kind,
    iter_file_blocks,
    parse_response,
)
from specforge.generation.types import FileKind
from specforge.spec.models import Page

HOME = Page(id="p1", name="Home", type="page", route="/")
BUTTON = Page(id="c1", name="Primary Button", type="component")


class TestIterFileBlocks:
    def test_multiple_blocks(self, fence):
        text = "Intro\n" + fence("app/page.tsx", "home") + "\nmiddle\n" + fence("lib/a.ts", "a", "ts")
        blocks = iter_file_blocks(text)
        assert [(b.path, b.language, b.content) for b in blocks] == [
            ("app/page.tsx", "tsx", "home"),
            ("lib/a.ts", "ts", "a"),
        ]

    def test_single_quoted_attribute_and_no_language(self):
        text = "```file='styles/x.css'\nbody {}\n```"
        (block,) = iter_file_blocks(text)
        assert block.path == "styles/x.css"
        assert block.language is None

    def test_anonymous_block_is_skipped(self, fence):
        text = "```bash\nnpm install\n```\n" + fence("a.tsx", "a")
        assert [b.path for b in iter_file_blocks(text)] == ["a.tsx"]

    def test_nested_fence_is_content(self):
        text = (
            '````md file="docs/readme.md"\n'
            "# Usage\n"
            "```tsx\n"
            "<Button />\n"
            "```\n"
            "````"
        )
        (block,) = iter_file_blocks(text)
        assert block.content == "# Usage\n```tsx\n<Button />\n```"

    def test_nested_fence_with_same_ticks(self):
        text = '```md file="a.md"\nbefore\n```ts\ncode\n```\nafter\n```'
        (block,) = iter_file_blocks(text)
        assert block.content == "before\n```ts\ncode\n```\nafter"

    def test_unterminated_block_is_discarded(self, fence):
        text = fence("a.tsx", "a") + '\n```tsx file="b.tsx"\nhalf written'
        assert [b.path for b in iter_file_blocks(text)] == ["a.tsx"]


class TestParseResponse:
    def test_files_get_kinds(self, fence):
        text = fence("app/page.tsx", "home") + "\n" + fence("lib/products.ts", "[]", "ts")
        files = parse_response(text, HOME)
        assert [(f.path, f.kind) for f in files] == [
            ("app/page.tsx", FileKind.PAGE),
            ("lib/products.ts", FileKind.UTILITY),
        ]

    def test_last_duplicate_wins(self, fence):
        text = fence("a.tsx", "first") + "\n" + fence("/a.tsx", "second")
        (file,) = parse_response(text, BUTTON)
        assert file.content == "second"

    def test_invalid_path_is_skipped(self, fence):
        text = fence("app//x.tsx", "bad") + "\n" + fence("ok.tsx", "ok")
        assert [f.path for f in parse_response(text, BUTTON)] == ["ok.tsx"]

    def test_fallback_to_default_path(self):
        (file,) = parse_response("export function Button() {}\n", BUTTON)
        assert file.path == "components/primary-button.tsx"
        assert file.kind is FileKind.COMPONENT
        assert file.content == "export function Button() {}"

    @pytest.mark.parametrize("text", ["", "   \n  "])
    def test_empty_response(self, text):
        with pytest.raises(GenerationServiceError):
            parse_response(text, HOME)


class TestHelpers:
    @pytest.mark.parametrize(
        ("path", "kind"),
        [
            ("app/page.tsx", FileKind.PAGE),
            ("app/about/page.tsx", FileKind.PAGE),
            ("app/globals.css", FileKind.STYLE),
            ("app/api/products/route.ts", FileKind.INTEGRATION),
            ("lib/utils.ts", FileKind.UTILITY),
            ("tailwind.config.ts", FileKind.CONFIG),
            ("components/button.tsx", FileKind.COMPONENT),
        ],
    )
    def test_infer_file_kind(self, path, kind):
        assert infer_file_kind(path) is kind

    def test_default_path(self):
        assert default_path(HOME) == "app/page.tsx"
        assert default_path(Page(id="p2", name="About Us")) == "app/about-us/page.tsx"
        assert default_path(BUTTON) == "components/primary-button.tsx"
