"""Request and response bodies of the fingerprint and generate endpoints."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from specforge.api.schemas.common import ApiModel
from specforge.spec.models import Specification


class FingerprintRequest(ApiModel):
    spec: Specification
    entity_id: str | None = Field(
        default=None, description="Page id; omit for a whole-specification fingerprint"
    )


class FingerprintResponse(ApiModel):
    fingerprint: str = Field(description="64-char SHA-256 hex digest")
    entity_id: str | None = None


class GenerateRequest(ApiModel):
    """One generation run.

    ``existingCode`` is the ``code`` map returned by a previous call; feeding
    it back (with ``previousSpec``) makes the run incremental.
    """

    spec: Specification
    previous_spec: Specification | None = None
    existing_code: dict[str, dict[str, Any]] | None = None


class ProgressSchema(ApiModel):
    completed: int
    total: int
    percentage: int


class GenerateResponse(ApiModel):
    code: dict[str, dict[str, Any]] = Field(description="entity id → generated code record")
    files: dict[str, str] = Field(description="Flat path → content export for the sandbox")
    tree: dict[str, Any] = Field(description="Nested file tree")
    progress: ProgressSchema
    complete: bool
    tasks: list[dict[str, Any]]
    changes: list[dict[str, Any]]
