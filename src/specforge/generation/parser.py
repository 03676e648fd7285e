"""
Parser for text-generation responses.

The provider is asked to answer with fenced code blocks that name their
target file::

    ```tsx file="app/page.tsx"
    export default function Page() { ... }
    ```

Grammar (line oriented):
    fence       := indent? "`"{3,} info?
    info        := language? attribute*
    attribute   := name "=" ( '"' value '"' | "'" value "'" )

    - A fence whose info carries ``file=`` opens a *file block*. Any other
      fence opens an *anonymous block* whose content is skipped.
    - Inside a block, a fence with an info string opens a nested fence and
      is kept as content. A bare fence with at least as many backticks as
      the innermost open fence closes it. Closing the outermost fence ends
      the block.
    - A block still open at the end of the text is discarded.
    - When two file blocks name the same path, the last one wins.
    - A response without any file block becomes one file at the entity's
      default path. An empty response is an error.

Examples:
    >>> text = 'Here you go:\\n```css file="app/globals.css"\\nbody {}\\n```\\n'
    >>> [b.path for b in iter_file_blocks(text)]
    ['app/globals.css']
    >>> infer_file_kind("app/about/page.tsx")
    <FileKind.PAGE: 'page'>

Tags:
    parser, state-machine, code-blocks, specforge
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from specforge.core.errors import GenerationServiceError, ValidationError
from specforge.core.logging import get_logger
from specforge.generation.code_manager import normalize_path
from specforge.generation.types import FileKind, GeneratedFile
from specforge.spec.models import Page

logger = get_logger(__name__)

_FENCE = re.compile(r"^\s*(`{3,})(.*)$")
_FILE_ATTR = re.compile(r"""(?:^|\s)file\s*=\s*(?:"([^"]*)"|'([^']*)')""")
_STYLE_EXTENSIONS = (".css", ".scss", ".sass", ".less")


@dataclass(frozen=True)
class FileBlock:
    path: str
    language: str | None
    content: str


def _parse_info(info: str) -> tuple[str | None, str | None]:
    """Return ``(language, file path)`` from a fence info string."""
    info = info.strip()
    if not info:
        return None, None
    first = info.split()[0]
    language = None if "=" in first else first
    match = _FILE_ATTR.search(info)
    path = (match.group(1) if match.group(1) is not None else match.group(2)) if match else None
    return language, path


def iter_file_blocks(text: str) -> list[FileBlock]:
    """Every terminated file block, in order of appearance."""
    blocks: list[FileBlock] = []

    fences: list[int] = []  # backtick counts of open fences, outermost first
    path: str | None = None
    language: str | None = None
    lines: list[str] = []

    for line in text.splitlines():
        fence = _FENCE.match(line)

        if not fences:
            if fence is None:
                continue
            language, path = _parse_info(fence.group(2))
            fences.append(len(fence.group(1)))
            lines = []
            continue

        if fence is not None:
            ticks, info = len(fence.group(1)), fence.group(2).strip()
            if info:
                fences.append(ticks)
            elif ticks >= fences[-1]:
                fences.pop()
                if not fences:
                    if path is not None:
                        blocks.append(FileBlock(path, language, _clean("\n".join(lines))))
                    path = None
                    continue

        lines.append(line)

    if fences:
        logger.warning(
            "parser.unterminated_block",
            path=path,
            open_fences=len(fences),
            discarded_lines=len(lines),
        )
    return blocks


def _clean(content: str) -> str:
    return content.strip("\n").rstrip()


def infer_file_kind(path: str) -> FileKind:
    """Classify a generated file by its path."""
    rooted = "/" + path.lstrip("/")
    lowered = rooted.lower()
    if "/page." in lowered:
        return FileKind.PAGE
    if lowered.endswith(_STYLE_EXTENSIONS):
        return FileKind.STYLE
    if "/api/" in lowered:
        return FileKind.INTEGRATION
    if "/lib/" in lowered or "/utils/" in lowered:
        return FileKind.UTILITY
    if "config" in lowered:
        return FileKind.CONFIG
    return FileKind.COMPONENT


def default_path(entity: Page) -> str:
    """Where a response without file blocks is written."""
    if entity.is_component:
        return f"components/{entity.slug}.tsx"
    route = entity.page_route.rstrip("/")
    return f"app{route}/page.tsx"


def parse_response(text: str, entity: Page) -> list[GeneratedFile]:
    """Turn a provider response into generated files for ``entity``."""
    if not text or not text.strip():
        raise GenerationServiceError(
            f"Empty response from text-generation service for {entity.id}"
        ).with_context(entity_id=entity.id)

    files: dict[str, GeneratedFile] = {}
    for block in iter_file_blocks(text):
        try:
            path = normalize_path(block.path)
        except ValidationError:
            logger.warning("parser.invalid_path", path=block.path, entity_id=entity.id)
            continue
        if path in files:
            logger.debug("parser.duplicate_path", path=path, entity_id=entity.id)
        files[path] = GeneratedFile(path=path, content=block.content, kind=infer_file_kind(path))

    if not files:
        path = default_path(entity)
        kind = FileKind.COMPONENT if entity.is_component else FileKind.PAGE
        logger.info("parser.fallback", path=path, entity_id=entity.id)
        return [GeneratedFile(path=path, content=_clean(text), kind=kind)]

    logger.debug("parser.parsed", files=len(files), entity_id=entity.id)
    return list(files.values())


__all__ = [
    "FileBlock",
    "iter_file_blocks",
    "infer_file_kind",
    "default_path",
    "parse_response",
]
