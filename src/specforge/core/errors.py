"""
Structured error types for specforge.

Provides a typed error hierarchy with metadata for task-scoped failure
reporting, retry decisions, and error serialization. Every failure inside a
generation run is captured on the task that raised it, so errors need to carry
enough context to be shown back to the user ("page p1 failed: ...") without
the original traceback.

Manifesto:
    - **Typed Error Hierarchy:** One class per failure mode the pipeline can hit
    - **Explicit Retry Semantics:** Each error knows if calling again may help
    - **Rich Context:** Errors carry entity/task/path metadata for logging
    - **Error Chaining:** Preserve original exceptions while adding context

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                       SpecforgeError                             │
        │  (category, retryable, context, cause)                          │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  NotFoundError        DuplicatePathError    ContentNotFoundError │
        │  (NOT_FOUND)          (CONFLICT)            (NOT_FOUND)          │
        │                                                                  │
        │  ValidationError      GenerationServiceError  CancelledError     │
        │  (VALIDATION)         (SERVICE, retryable)    (CANCELLED)        │
        │       │                                                          │
        │  UnsupportedEntityError                                          │
        │                                                                  │
        │  ConfigError          OrchestrationError                         │
        │  (CONFIG)             (ORCHESTRATION)                            │
        │                            │                                     │
        │                       InvalidTransitionError                     │
        └─────────────────────────────────────────────────────────────────┘

Examples:
    Raising with context:

    >>> error = NotFoundError("File not found: app/page.tsx")
    >>> error.with_context(path="app/page.tsx")
    NotFoundError('File not found: app/page.tsx', category=NOT_FOUND)
    >>> error.context.path
    'app/page.tsx'

    Chaining a provider failure:

    >>> try:
    ...     raise ConnectionError("connection refused")
    ... except ConnectionError as e:
    ...     err = GenerationServiceError("Provider call failed", cause=e)
    >>> err.retryable
    True

Guardrails:
    ❌ DON'T: Raise bare Exception from pipeline code
    ✅ DO: Use the matching SpecforgeError subclass

    ❌ DON'T: Swallow the original exception
    ✅ DO: Pass it as cause= for error chaining

Tags:
    error-handling, exception-hierarchy, error-context, specforge

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification and HTTP mapping.

    Categories are grouped by what the caller can do about them:
    - **Input problems (fix the request):** VALIDATION, NOT_FOUND, CONFLICT, CONFIG
    - **Upstream problems (maybe retry):** SERVICE
    - **Run control:** CANCELLED, ORCHESTRATION
    - **Internal errors:** INTERNAL, UNKNOWN

    Attributes:
        NOT_FOUND: Path, entity, or task absent
        CONFLICT: Path collision on add/move
        VALIDATION: Malformed input or unsupported entity
        SERVICE: Text-generation service failure
        CANCELLED: Caller aborted the run
        CONFIG: Missing or invalid settings
        ORCHESTRATION: Task scheduling/state errors
        INTERNAL: Bugs, unexpected state
        UNKNOWN: Uncategorized errors
    """

    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    VALIDATION = "VALIDATION"

    SERVICE = "SERVICE"

    CANCELLED = "CANCELLED"
    CONFIG = "CONFIG"
    ORCHESTRATION = "ORCHESTRATION"

    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """
    Structured metadata context for errors.

    Typed fields cover the identifiers the generation pipeline deals in
    (entity, task, file path, run, model). Anything else goes in
    ``metadata``. ``to_dict()`` drops unset fields so log lines stay short.

    Examples:
        >>> ctx = ErrorContext(entity_id="p1", task_id="task-p1")
        >>> ctx.to_dict()
        {'entity_id': 'p1', 'task_id': 'task-p1'}

    Attributes:
        run_id: Generation run identifier
        entity_id: Specification entity the error concerns
        task_id: Generation task identifier
        path: Virtual file path
        model: Model identifier used for the provider call
        metadata: Additional key-value pairs
    """

    run_id: str | None = None
    entity_id: str | None = None
    task_id: str | None = None
    path: str | None = None
    model: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["run_id", "entity_id", "task_id", "path", "model"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class SpecforgeError(Exception):
    """
    Base exception for all specforge errors.

    Every error raised by the pipeline extends SpecforgeError so that the
    generator can record it on the failing task and the API can translate it
    into a problem response without special cases.

    Subclasses set ``default_category`` and ``default_retryable`` to give
    sensible defaults for their domain.

    Examples:
        >>> error = SpecforgeError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.to_dict()["retryable"]
        False
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> SpecforgeError:
        """
        Add context to this error (fluent API).

        Usage:
            raise NotFoundError("Page not found").with_context(entity_id="p1")
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# VIRTUAL FILE SYSTEM / LOOKUP ERRORS
# =============================================================================


class NotFoundError(SpecforgeError):
    """A referenced path, entity, or task is absent."""

    default_category = ErrorCategory.NOT_FOUND


class DuplicatePathError(SpecforgeError):
    """
    A path is already taken.

    Raised by add and move when the destination exists, and when a write
    would make one path both a file and a directory.
    """

    default_category = ErrorCategory.CONFLICT

    def __init__(self, path: str, message: str | None = None, **kwargs: Any):
        self.path = path
        super().__init__(message or f"File already exists: {path}", **kwargs)
        self.context.path = path


class ContentNotFoundError(SpecforgeError):
    """Surgical replace target substring is missing from the file."""

    default_category = ErrorCategory.NOT_FOUND

    def __init__(self, path: str, message: str | None = None, **kwargs: Any):
        self.path = path
        super().__init__(message or f"Content not found in file: {path}", **kwargs)
        self.context.path = path


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(SpecforgeError):
    """
    Input validation error.

    Never retryable - the input must be fixed.
    """

    default_category = ErrorCategory.VALIDATION

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        if self.value is not None:
            result["value"] = repr(self.value)
        return result


class UnsupportedEntityError(ValidationError):
    """Entity type cannot be turned into a prompt or a task."""

    pass


# =============================================================================
# GENERATION SERVICE ERRORS
# =============================================================================


class GenerationServiceError(SpecforgeError):
    """
    External text-generation call failed or returned unusable content.

    Retryable by default: calling ``generate`` again may succeed.
    """

    default_category = ErrorCategory.SERVICE
    default_retryable = True


class CancelledError(SpecforgeError):
    """The caller cancelled the generation run."""

    default_category = ErrorCategory.CANCELLED

    def __init__(self, message: str = "Generation cancelled", **kwargs: Any):
        super().__init__(message, **kwargs)


# =============================================================================
# CONFIGURATION / ORCHESTRATION ERRORS
# =============================================================================


class ConfigError(SpecforgeError):
    """
    Configuration error.

    Never retryable - configuration must be fixed.
    """

    default_category = ErrorCategory.CONFIG


class OrchestrationError(SpecforgeError):
    """Task scheduling or workflow state error."""

    default_category = ErrorCategory.ORCHESTRATION


class InvalidTransitionError(OrchestrationError):
    """A task status change would move backwards or skip a state."""

    def __init__(self, task_id: str, current: str, requested: str):
        self.task_id = task_id
        self.current = current
        self.requested = requested
        super().__init__(f"Task '{task_id}' cannot move from {current} to {requested}")
        self.context.task_id = task_id


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_retryable(error: Exception) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, SpecforgeError):
        return error.retryable
    return isinstance(error, (ConnectionError, TimeoutError))


def categorize_error(error: Exception) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, SpecforgeError):
        return error.category
    if isinstance(error, (ConnectionError, TimeoutError)):
        return ErrorCategory.SERVICE
    if isinstance(error, ValueError):
        return ErrorCategory.VALIDATION
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "SpecforgeError",
    "NotFoundError",
    "DuplicatePathError",
    "ContentNotFoundError",
    "ValidationError",
    "UnsupportedEntityError",
    "GenerationServiceError",
    "CancelledError",
    "ConfigError",
    "OrchestrationError",
    "InvalidTransitionError",
    "is_retryable",
    "categorize_error",
]
