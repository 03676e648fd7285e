"""
In-memory virtual file system for one generation session.

Manifesto:
    Generated code lands here before anything else sees it. The preview
    sandbox gets a flat ``{path: content}`` export, the UI gets a nested
    tree, and callers can ask which files one run touched.

    - **Idempotent updates:** identical content never logs an operation
    - **Append-only log:** every mutation is one numbered FileOperation
    - **Strict paths:** a path is never both a file and a directory

Architecture:
    ::

        add_file ─┐
        update_file ─┤                       ┌─> export_for_sandbox()
        replace_content ─┼─> files{path: ManagedFile} ─┼─> file_tree()
        delete_file ─┤          │            └─> files_by_kind()
        move_file ─┘            ▼
                         operations[FileOperation(sequence=n)]
                                │
                 operation_marker() / operations_since(marker)

Path policy:
    Leading ``/`` and ``./`` are stripped. Empty paths and empty segments
    are rejected with ``ValidationError``. Adding ``app`` while
    ``app/page.tsx`` exists (or the reverse) raises ``DuplicatePathError``.

Examples:
    >>> cm = CodeManager()
    >>> _ = cm.add_file("x.tsx", "abc", FileKind.COMPONENT)
    >>> _ = cm.update_file("x.tsx", "abc")
    >>> len(cm.operations)
    1
    >>> _ = cm.replace_content("x.tsx", "abc", "xyz")
    >>> cm.get_file("x.tsx").content
    'xyz'

Tags:
    virtual-filesystem, code-manager, operation-log, specforge

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any

from specforge.core.errors import (
    ContentNotFoundError,
    DuplicatePathError,
    NotFoundError,
    ValidationError,
)
from specforge.core.hashing import content_hash
from specforge.core.logging import get_logger
from specforge.generation.types import (
    FileKind,
    FileOperation,
    GeneratedCode,
    GeneratedFile,
    ManagedFile,
    OperationKind,
)

logger = get_logger(__name__)


def normalize_path(path: str) -> str:
    """Canonical form of a virtual path."""
    normalized = path.strip()
    while normalized.startswith(("./", "/")):
        normalized = normalized[2:] if normalized.startswith("./") else normalized[1:]
    if not normalized or any(part == "" for part in normalized.split("/")):
        raise ValidationError(f"Invalid file path: {path!r}", field="path", value=path)
    return normalized


class CodeManager:
    """Virtual file set keyed by path, with an operation log."""

    def __init__(
        self,
        files: Iterable[ManagedFile] | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
    ):
        self._files: dict[str, ManagedFile] = {}
        self._operations: list[FileOperation] = []
        self._sequence = 0
        self._clock = clock or (lambda: datetime.now(UTC))
        for file in files or ():
            path = normalize_path(file.path)
            self._check_tree_conflict(path)
            self._files[path] = replace(file, path=path)

    @classmethod
    def from_generated(
        cls,
        existing_code: Mapping[str, GeneratedCode] | None,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> CodeManager:
        """Seed a manager from cached generated code. Nothing is logged."""
        manager = cls(clock=clock)
        for code in (existing_code or {}).values():
            for generated in code.files:
                path = normalize_path(generated.path)
                if path not in manager._files:
                    manager._check_tree_conflict(path)
                manager._files[path] = manager._new_file(path, generated.content, generated.kind)
        return manager

    # ── Internals ───────────────────────────────────────────────────────

    def _new_file(self, path: str, content: str, kind: FileKind) -> ManagedFile:
        return ManagedFile(
            path=path,
            content=content,
            content_hash=content_hash(content),
            kind=FileKind(kind),
            last_modified_at=self._clock(),
        )

    def _log(self, kind: OperationKind, path: str, **fields: Any) -> FileOperation:
        self._sequence += 1
        operation = FileOperation(kind=kind, path=path, sequence=self._sequence, **fields)
        self._operations.append(operation)
        return operation

    def _require(self, path: str) -> ManagedFile:
        file = self._files.get(path)
        if file is None:
            raise NotFoundError(f"File not found: {path}").with_context(path=path)
        return file

    def _check_tree_conflict(self, path: str, *, ignore: str | None = None) -> None:
        """Reject a path that would be both a file and a directory."""
        parts = path.split("/")
        for depth in range(1, len(parts)):
            prefix = "/".join(parts[:depth])
            if prefix in self._files and prefix != ignore:
                raise DuplicatePathError(
                    path, f"Cannot create {path}: {prefix} is a file"
                )
        directory = path + "/"
        for existing in self._files:
            if existing.startswith(directory) and existing != ignore:
                raise DuplicatePathError(
                    path, f"Cannot create {path}: it is a directory containing {existing}"
                )

    # ── Mutations ───────────────────────────────────────────────────────

    def add_file(self, path: str, content: str, kind: FileKind | str) -> ManagedFile:
        path = normalize_path(path)
        if path in self._files:
            raise DuplicatePathError(path)
        self._check_tree_conflict(path)

        file = self._new_file(path, content, FileKind(kind))
        self._files[path] = file
        self._log(OperationKind.ADD, path, content=content)
        logger.debug("code_manager.add", path=path, kind=file.kind.value)
        return file

    def update_file(self, path: str, content: str) -> ManagedFile:
        """Replace a file's content. Identical content is a no-op."""
        path = normalize_path(path)
        existing = self._require(path)
        new_hash = content_hash(content)
        if new_hash == existing.content_hash:
            return existing

        file = replace(
            existing,
            content=content,
            content_hash=new_hash,
            last_modified_at=self._clock(),
        )
        self._files[path] = file
        self._log(OperationKind.UPDATE, path, content=content)
        logger.debug("code_manager.update", path=path)
        return file

    def replace_content(self, path: str, old_content: str, new_content: str) -> ManagedFile:
        """Replace the first occurrence of ``old_content`` in a file."""
        path = normalize_path(path)
        existing = self._require(path)
        if old_content not in existing.content:
            raise ContentNotFoundError(path)

        updated = existing.content.replace(old_content, new_content, 1)
        file = replace(
            existing,
            content=updated,
            content_hash=content_hash(updated),
            last_modified_at=self._clock(),
        )
        self._files[path] = file
        self._log(
            OperationKind.REPLACE,
            path,
            old_content=old_content,
            new_content=new_content,
        )
        logger.debug("code_manager.replace", path=path)
        return file

    def delete_file(self, path: str) -> ManagedFile:
        path = normalize_path(path)
        removed = self._require(path)
        del self._files[path]
        self._log(OperationKind.DELETE, path)
        logger.debug("code_manager.delete", path=path)
        return removed

    def move_file(self, from_path: str, to_path: str) -> ManagedFile:
        from_path = normalize_path(from_path)
        to_path = normalize_path(to_path)
        existing = self._require(from_path)
        if to_path in self._files:
            raise DuplicatePathError(to_path, f"Destination file already exists: {to_path}")
        self._check_tree_conflict(to_path, ignore=from_path)

        file = replace(existing, path=to_path, last_modified_at=self._clock())
        del self._files[from_path]
        self._files[to_path] = file
        self._log(OperationKind.MOVE, from_path, new_path=to_path)
        logger.debug("code_manager.move", path=from_path, new_path=to_path)
        return file

    def write_file(self, path: str, content: str, kind: FileKind | str) -> ManagedFile:
        """Add the file, or update it if the path is already managed."""
        if self.has_file(path):
            return self.update_file(path, content)
        return self.add_file(path, content, kind)

    def write_files(self, files: Iterable[GeneratedFile]) -> list[ManagedFile]:
        """Add-or-update a batch of files, all or nothing.

        Every path is validated against the current tree and the rest of the
        batch before anything is written.
        """
        batch: dict[str, GeneratedFile] = {}
        for generated in files:
            batch[normalize_path(generated.path)] = generated

        new_paths = [p for p in batch if p not in self._files]
        staged = dict.fromkeys(self._files)
        for path in new_paths:
            parts = path.split("/")
            for depth in range(1, len(parts)):
                prefix = "/".join(parts[:depth])
                if prefix in staged or prefix in batch:
                    raise DuplicatePathError(path, f"Cannot create {path}: {prefix} is a file")
            directory = path + "/"
            for other in list(staged) + list(batch):
                if other.startswith(directory):
                    raise DuplicatePathError(
                        path, f"Cannot create {path}: it is a directory containing {other}"
                    )
            staged[path] = None

        return [self.write_file(path, f.content, f.kind) for path, f in batch.items()]

    # ── Read accessors ──────────────────────────────────────────────────

    def __len__(self) -> int:
        return len(self._files)

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, str):
            return False
        try:
            return self.has_file(path)
        except ValidationError:
            return False

    def get_file(self, path: str) -> ManagedFile | None:
        return self._files.get(normalize_path(path))

    def has_file(self, path: str) -> bool:
        return normalize_path(path) in self._files

    def list_files(self) -> list[ManagedFile]:
        return list(self._files.values())

    def files_by_kind(self, kind: FileKind | str) -> list[ManagedFile]:
        kind = FileKind(kind)
        return [f for f in self._files.values() if f.kind is kind]

    def export_for_sandbox(self) -> dict[str, str]:
        """Flat ``{path: content}`` snapshot for the preview sandbox."""
        return {path: file.content for path, file in self._files.items()}

    def file_tree(self) -> dict[str, Any]:
        """Nested view of the file set.

        Files are ``{"kind": "file", "content", "fileKind"}``; directories are
        ``{"kind": "directory", "children": {...}}``.
        """
        tree: dict[str, Any] = {}
        for path in sorted(self._files):
            file = self._files[path]
            *directories, name = path.split("/")
            level = tree
            for directory in directories:
                node = level.setdefault(directory, {"kind": "directory", "children": {}})
                level = node["children"]
            level[name] = {
                "kind": "file",
                "content": file.content,
                "fileKind": file.kind.value,
            }
        return tree

    # ── Operation log ───────────────────────────────────────────────────

    @property
    def operations(self) -> list[FileOperation]:
        return list(self._operations)

    def operation_marker(self) -> int:
        """Sequence number of the latest operation (0 before any)."""
        return self._sequence

    def operations_since(self, marker: int = 0) -> list[FileOperation]:
        return [op for op in self._operations if op.sequence > marker]

    def clear_operation_log(self) -> None:
        self._operations.clear()

    def changed_files(self) -> list[ManagedFile]:
        """Files still present that were touched since the last clear."""
        touched: set[str] = set()
        for op in self._operations:
            touched.add(op.path)
            if op.new_path:
                touched.add(op.new_path)
        return [f for path, f in self._files.items() if path in touched]

    def clone(self) -> CodeManager:
        """Independent copy of the file set and the operation log."""
        copy = CodeManager(clock=self._clock)
        copy._files = dict(self._files)
        copy._operations = list(self._operations)
        copy._sequence = self._sequence
        return copy


__all__ = ["CodeManager", "normalize_path"]
