"""
Error handlers - map specforge errors to RFC 7807 responses.
"""

from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from specforge.api.schemas.common import ErrorDetail, ProblemDetail
from specforge.core.errors import ErrorCategory, SpecforgeError
from specforge.core.logging import get_logger

logger = get_logger(__name__)

# ── Error category → HTTP status mapping ─────────────────────────────────

CATEGORY_TO_STATUS: dict[ErrorCategory, int] = {
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.CONFLICT: 409,
    ErrorCategory.VALIDATION: 400,
    ErrorCategory.SERVICE: 502,
    ErrorCategory.CANCELLED: 409,
    ErrorCategory.CONFIG: 500,
    ErrorCategory.ORCHESTRATION: 500,
    ErrorCategory.INTERNAL: 500,
    ErrorCategory.UNKNOWN: 500,
}

_TITLES: dict[int, str] = {
    400: "Bad Request",
    404: "Not Found",
    409: "Conflict",
    422: "Unprocessable Entity",
    500: "Internal Server Error",
    502: "Bad Gateway",
}


def status_for_category(category: ErrorCategory) -> int:
    """Resolve an error category to HTTP status, defaulting to 500."""
    return CATEGORY_TO_STATUS.get(category, 500)


def problem_response(
    *,
    status: int,
    title: str | None = None,
    detail: str = "",
    instance: str = "",
    errors: list[dict[str, Any]] | None = None,
) -> JSONResponse:
    """Build a RFC 7807 JSON error response."""
    body = ProblemDetail(
        title=title or _TITLES.get(status, "Error"),
        status=status,
        detail=detail,
        instance=instance,
        errors=[ErrorDetail(**e) for e in errors or []],
    )
    return JSONResponse(
        status_code=status,
        content=body.model_dump(),
        media_type="application/problem+json",
    )


async def specforge_exception_handler(request: Request, exc: SpecforgeError) -> JSONResponse:
    status = status_for_category(exc.category)
    errors = []
    field = getattr(exc, "field", None)
    if field:
        errors.append({"code": exc.category.value, "message": exc.message, "field": field})
    logger.info(
        "api.error",
        path=request.url.path,
        status=status,
        error_type=type(exc).__name__,
        error=exc.message,
    )
    return problem_response(
        status=status,
        detail=exc.message,
        instance=request.url.path,
        errors=errors,
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        {
            "code": str(error.get("type", "invalid")).upper(),
            "message": str(error.get("msg", "")),
            "field": ".".join(str(part) for part in error.get("loc", ())),
        }
        for error in exc.errors()
    ]
    return problem_response(
        status=422,
        detail="Request body failed validation",
        instance=request.url.path,
        errors=errors,
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions - returns 500 with ProblemDetail."""
    logger.error("api.unhandled", path=request.url.path, error_type=type(exc).__name__, exc_info=exc)
    return problem_response(
        status=500,
        detail=str(exc) if request.app.state.settings.debug else "An unexpected error occurred.",
        instance=request.url.path,
    )
