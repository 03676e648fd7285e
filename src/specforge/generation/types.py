"""Value types shared by the generation pipeline.

Change records, managed files, the file operation log, tasks, workflow steps
and generated code records. Everything that leaves the process (API
responses, cached entries) goes through ``to_dict`` with camelCase keys;
``GeneratedCode.from_dict`` reads the same shape back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from specforge.spec.models import EntityCategory, Specification


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


# ── Change detection ─────────────────────────────────────────────────────


class ChangeKind(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"


@dataclass(frozen=True)
class ChangeRecord:
    """One entity-level difference between two specification snapshots."""

    entity_id: str
    kind: ChangeKind
    category: EntityCategory
    previous_fingerprint: str | None = None
    current_fingerprint: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "entityId": self.entity_id,
            "kind": self.kind.value,
            "category": self.category.value,
            "previousFingerprint": self.previous_fingerprint,
            "currentFingerprint": self.current_fingerprint,
        }


# ── Virtual file system ──────────────────────────────────────────────────


class FileKind(str, Enum):
    PAGE = "page"
    COMPONENT = "component"
    STYLE = "style"
    CONFIG = "config"
    ASSET = "asset"
    INTEGRATION = "integration"
    UTILITY = "utility"


class OperationKind(str, Enum):
    ADD = "add"
    UPDATE = "update"
    REPLACE = "replace"
    DELETE = "delete"
    MOVE = "move"


@dataclass(frozen=True)
class ManagedFile:
    """One path+content record inside the code manager."""

    path: str
    content: str
    content_hash: str
    kind: FileKind
    last_modified_at: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "content": self.content,
            "contentHash": self.content_hash,
            "kind": self.kind.value,
            "lastModifiedAt": _iso(self.last_modified_at),
        }


@dataclass(frozen=True)
class FileOperation:
    """Entry of the append-only operation log.

    ``sequence`` is unique and increasing for the lifetime of a code manager,
    including across ``clear_operation_log``.
    """

    kind: OperationKind
    path: str
    sequence: int
    content: str | None = None
    new_path: str | None = None
    old_content: str | None = None
    new_content: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "kind": self.kind.value,
            "path": self.path,
            "sequence": self.sequence,
        }
        for key, value in (
            ("content", self.content),
            ("newPath", self.new_path),
            ("oldContent", self.old_content),
            ("newContent", self.new_content),
        ):
            if value is not None:
                result[key] = value
        return result


# ── Generated code ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class GeneratedFile:
    path: str
    content: str
    kind: FileKind

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "content": self.content, "kind": self.kind.value}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GeneratedFile:
        return cls(
            path=data["path"],
            content=data.get("content", ""),
            kind=FileKind(data.get("kind") or data.get("type") or FileKind.COMPONENT.value),
        )


@dataclass(frozen=True)
class GenerationMetadata:
    entity_id: str
    content_fingerprint: str
    generated_at: datetime
    model_identifier: str
    tokens_used: int | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "entityId": self.entity_id,
            "contentFingerprint": self.content_fingerprint,
            "generatedAt": _iso(self.generated_at),
            "modelIdentifier": self.model_identifier,
        }
        if self.tokens_used is not None:
            result["tokensUsed"] = self.tokens_used
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GenerationMetadata:
        generated_at = data.get("generatedAt")
        return cls(
            entity_id=data["entityId"],
            content_fingerprint=data.get("contentFingerprint", ""),
            generated_at=datetime.fromisoformat(generated_at) if generated_at else _utcnow(),
            model_identifier=data.get("modelIdentifier", ""),
            tokens_used=data.get("tokensUsed"),
        )


@dataclass(frozen=True)
class GeneratedCode:
    """Files produced for one entity, plus what they were generated from."""

    files: tuple[GeneratedFile, ...]
    dependency_entity_ids: tuple[str, ...]
    metadata: GenerationMetadata

    @property
    def entity_id(self) -> str:
        return self.metadata.entity_id

    def to_dict(self) -> dict[str, Any]:
        return {
            "files": [f.to_dict() for f in self.files],
            "dependencyEntityIds": list(self.dependency_entity_ids),
            "metadata": self.metadata.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GeneratedCode:
        return cls(
            files=tuple(GeneratedFile.from_dict(f) for f in data.get("files", [])),
            dependency_entity_ids=tuple(data.get("dependencyEntityIds", [])),
            metadata=GenerationMetadata.from_dict(data["metadata"]),
        )


# ── Tasks and workflow ───────────────────────────────────────────────────


class TaskKind(str, Enum):
    STYLE_GUIDE = "style-guide"
    COMPONENT = "component"
    PAGE = "page"
    INTEGRATION = "integration"


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.FAILED)


@dataclass
class GenerationTask:
    """One unit of "produce code for this entity" work."""

    id: str
    kind: TaskKind
    entity_id: str
    priority: int
    dependency_task_ids: list[str] = field(default_factory=list)
    status: TaskStatus = TaskStatus.PENDING
    result: GeneratedCode | None = None
    error: str | None = None
    created_at: datetime = field(default_factory=_utcnow)
    started_at: datetime | None = None
    completed_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "entityId": self.entity_id,
            "priority": self.priority,
            "dependencyTaskIds": list(self.dependency_task_ids),
            "status": self.status.value,
            "error": self.error,
            "createdAt": _iso(self.created_at),
            "startedAt": _iso(self.started_at),
            "completedAt": _iso(self.completed_at),
        }


@dataclass
class WorkflowStep:
    """One stage of the workflow (style, component, page, integration)."""

    name: str
    description: str
    tasks: list[GenerationTask] = field(default_factory=list)
    status: TaskStatus = TaskStatus.PENDING

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "status": self.status.value,
            "tasks": [t.to_dict() for t in self.tasks],
        }


@dataclass(frozen=True)
class Progress:
    completed: int
    total: int
    percentage: int

    def to_dict(self) -> dict[str, int]:
        return {"completed": self.completed, "total": self.total, "percentage": self.percentage}


@dataclass
class GenerationContext:
    """Input to workflow construction."""

    spec: Specification
    changed_entity_ids: set[str] = field(default_factory=set)
    previous_spec: Specification | None = None
    existing_code: dict[str, GeneratedCode] | None = None


__all__ = [
    "ChangeKind",
    "ChangeRecord",
    "FileKind",
    "OperationKind",
    "ManagedFile",
    "FileOperation",
    "GeneratedFile",
    "GenerationMetadata",
    "GeneratedCode",
    "TaskKind",
    "TaskStatus",
    "GenerationTask",
    "WorkflowStep",
    "Progress",
    "GenerationContext",
]
