"""
Common API schemas - RFC 7807 errors and the camelCase base model.

Every non-2xx response is a :class:`ProblemDetail`.

Doc-Types: API_REFERENCE
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base for request/response bodies: camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── RFC 7807 Problem Detail ─────────────────────────────────────────────


class ErrorDetail(BaseModel):
    """Structured error detail for field-level or nested errors."""

    code: str = Field(description="Machine-readable error code (e.g., 'REQUIRED', 'INVALID_FORMAT')")
    message: str = Field(description="Human-readable error description")
    field: str | None = Field(default=None, description="Field path if error is field-specific")


class ProblemDetail(BaseModel):
    """RFC 7807 «Problem Details for HTTP APIs».

    Error Codes:
        - ``NOT_FOUND`` (404): Page, entity, or file does not exist
        - ``CONFLICT`` (409): Path already taken
        - ``VALIDATION`` (400): Request body is valid JSON but not a valid specification
        - ``INVALID_REQUEST`` (422): Request body failed schema validation
        - ``SERVICE`` (502): Text-generation service failed
        - ``INTERNAL`` (500): Unexpected server error

    Example:
        {
            "type": "about:blank",
            "title": "Not Found",
            "status": 404,
            "detail": "Page not found: p-404",
            "instance": "/api/v1/fingerprint",
            "errors": []
        }
    """

    type: str = Field(default="about:blank", description="Error type URI (usually 'about:blank')")
    title: str = Field(description="Short human-readable error summary")
    status: int = Field(description="HTTP status code (e.g., 400, 404, 500)")
    detail: str = Field(default="", description="Human-readable explanation of the error")
    instance: str = Field(default="", description="URI of the failing request")
    errors: list[ErrorDetail] = Field(
        default_factory=list,
        description="List of field-level or nested error details",
    )
