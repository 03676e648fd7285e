"""
Fingerprint router - content fingerprints for client-side cache checks.

A client hashes before asking for generation: if it already holds code for
the returned fingerprint it can skip ``POST /generate`` entirely.

Endpoints:
    POST /fingerprint   {spec, entityId?} → {fingerprint, entityId}
"""

from __future__ import annotations

from fastapi import APIRouter

from specforge.api.schemas.generation import FingerprintRequest, FingerprintResponse
from specforge.spec.fingerprint import fingerprint_page, fingerprint_spec

router = APIRouter()


@router.post("/fingerprint", response_model=FingerprintResponse)
async def fingerprint(body: FingerprintRequest) -> FingerprintResponse:
    """Page fingerprint when ``entityId`` is given, else the whole specification's.

    Raises:
        NotFoundError: ``entityId`` is not a page of the specification (404).
    """
    if body.entity_id:
        digest = fingerprint_page(body.spec, body.entity_id)
    else:
        digest = fingerprint_spec(body.spec)
    return FingerprintResponse(fingerprint=digest, entity_id=body.entity_id)
