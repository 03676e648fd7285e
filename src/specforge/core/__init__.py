"""specforge core -- errors, logging, settings, hashing and cache backends.

Architecture::

    errors.py     Structured error hierarchy (SpecforgeError and subclasses)
    logging.py    structlog configuration, LogContext
    settings.py   SpecforgeSettings (pydantic-settings, SPECFORGE_ prefix)
    hashing.py    Canonical JSON + SHA-256 digests
    cache.py      CacheBackend protocol, InMemoryCache
"""

from specforge.core.errors import (
    CancelledError,
    ConfigError,
    ContentNotFoundError,
    DuplicatePathError,
    ErrorCategory,
    ErrorContext,
    GenerationServiceError,
    InvalidTransitionError,
    NotFoundError,
    OrchestrationError,
    SpecforgeError,
    UnsupportedEntityError,
    ValidationError,
)

__all__ = [
    "CancelledError",
    "ConfigError",
    "ContentNotFoundError",
    "DuplicatePathError",
    "ErrorCategory",
    "ErrorContext",
    "GenerationServiceError",
    "InvalidTransitionError",
    "NotFoundError",
    "OrchestrationError",
    "SpecforgeError",
    "UnsupportedEntityError",
    "ValidationError",
]
