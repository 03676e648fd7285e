"""
Generation router - run the incremental pipeline over HTTP.

Endpoints:
    POST /generate   {spec, previousSpec?, existingCode?}
                     → {code, files, tree, progress, complete, tasks, changes}

Each request gets its own ``CodeGenerator``; the provider and the
generation cache are shared through ``app.state``.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from specforge.api.deps import Cache, Provider, Settings
from specforge.api.schemas.generation import GenerateRequest, GenerateResponse, ProgressSchema
from specforge.core.errors import ValidationError
from specforge.generation.generator import CodeGenerator
from specforge.generation.types import GeneratedCode

router = APIRouter()


def _parse_existing_code(raw: dict[str, dict[str, Any]] | None) -> dict[str, GeneratedCode] | None:
    if raw is None:
        return None
    try:
        return {entity_id: GeneratedCode.from_dict(data) for entity_id, data in raw.items()}
    except (KeyError, TypeError, ValueError) as e:
        raise ValidationError(
            f"Malformed existingCode entry: {e}", field="existingCode", cause=e
        ) from e


@router.post("/generate", response_model=GenerateResponse)
async def generate(
    body: GenerateRequest,
    settings: Settings,
    provider: Provider,
    cache: Cache,
) -> GenerateResponse:
    generator = CodeGenerator(provider, settings=settings, cache=cache)
    code = await generator.generate(
        body.spec,
        body.previous_spec,
        _parse_existing_code(body.existing_code),
    )
    progress = generator.progress()
    return GenerateResponse(
        code={entity_id: generated.to_dict() for entity_id, generated in code.items()},
        files=generator.export_for_sandbox(),
        tree=generator.file_tree(),
        progress=ProgressSchema(**progress.to_dict()),
        complete=generator.is_complete(),
        tasks=[t.to_dict() for t in generator.tasks],
        changes=[c.to_dict() for c in generator.last_changes],
    )
