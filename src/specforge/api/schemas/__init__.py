"""API request/response schemas."""

from specforge.api.schemas.common import ApiModel, ErrorDetail, ProblemDetail
from specforge.api.schemas.generation import (
    FingerprintRequest,
    FingerprintResponse,
    GenerateRequest,
    GenerateResponse,
    ProgressSchema,
)

__all__ = [
    "ApiModel",
    "ErrorDetail",
    "FingerprintRequest",
    "FingerprintResponse",
    "GenerateRequest",
    "GenerateResponse",
    "ProblemDetail",
    "ProgressSchema",
]
