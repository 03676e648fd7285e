"""
Content-addressed cache of generated code.

A page whose fingerprint (``fingerprint_page``) was seen before gets its
code back from here instead of from the text-generation service.

Architecture:
    ::

        GenerationCache
          ├── get(fingerprint)              → CacheEntry | None   (bumps access stats)
          ├── put(fingerprint, entity, code) → CacheEntry
          ├── history(entity_id)            → [CacheEntry]  newest first
          ├── recent(limit) / stats()
          └── remove(fingerprint) / clear()
                │
                ▼
          CacheBackend  (InMemoryCache by default)
            entry:{fingerprint}   → CacheEntry.to_dict()
            history:{entity_id}   → [fingerprint, ...]  oldest first

    Per-entity history is trimmed to ``history_limit`` fingerprints. A
    trimmed fingerprint is evicted unless another entity's history still
    points at it.

Examples:
    >>> cache = GenerationCache()
    >>> cache.get("abc") is None
    True
    >>> entry = cache.put("abc", page, code)
    >>> cache.get("abc").access_count
    2

Guardrails:
    ❌ DON'T: Use a module-level cache instance
    ✅ DO: Pass one GenerationCache to the generator and the API

Tags:
    cache, content-addressed, history, specforge
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import Any

from specforge.core.cache import CacheBackend, InMemoryCache
from specforge.core.logging import get_logger
from specforge.core.settings import SpecforgeSettings
from specforge.generation.types import GeneratedCode
from specforge.spec.models import BaseEntity

logger = get_logger(__name__)

_ENTRY_PREFIX = "entry:"
_HISTORY_PREFIX = "history:"


@dataclass(frozen=True)
class CacheEntry:
    fingerprint: str
    entity_id: str
    entity_name: str
    generated_code: GeneratedCode
    generated_at: datetime
    last_accessed_at: datetime
    access_count: int = 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "fingerprint": self.fingerprint,
            "entityId": self.entity_id,
            "entityName": self.entity_name,
            "generatedCode": self.generated_code.to_dict(),
            "generatedAt": self.generated_at.isoformat(),
            "lastAccessedAt": self.last_accessed_at.isoformat(),
            "accessCount": self.access_count,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CacheEntry:
        return cls(
            fingerprint=data["fingerprint"],
            entity_id=data["entityId"],
            entity_name=data.get("entityName", ""),
            generated_code=GeneratedCode.from_dict(data["generatedCode"]),
            generated_at=datetime.fromisoformat(data["generatedAt"]),
            last_accessed_at=datetime.fromisoformat(data["lastAccessedAt"]),
            access_count=data.get("accessCount", 1),
        )


class GenerationCache:
    """Fingerprint → generated code, with per-entity history."""

    def __init__(
        self,
        backend: CacheBackend | None = None,
        *,
        history_limit: int = 5,
        clock: Callable[[], datetime] | None = None,
    ):
        self._backend = backend if backend is not None else InMemoryCache()
        self._history_limit = history_limit
        self._clock = clock or (lambda: datetime.now(UTC))

    @classmethod
    def from_settings(cls, settings: SpecforgeSettings) -> GenerationCache:
        backend = InMemoryCache(
            max_size=settings.cache_max_entries,
            default_ttl_seconds=settings.cache_ttl_seconds,
        )
        return cls(backend, history_limit=settings.cache_history_limit)

    @property
    def history_limit(self) -> int:
        return self._history_limit

    # ── Internals ───────────────────────────────────────────────────────

    def _load(self, fingerprint: str) -> CacheEntry | None:
        data = self._backend.get(_ENTRY_PREFIX + fingerprint)
        return CacheEntry.from_dict(data) if data is not None else None

    def _store(self, entry: CacheEntry) -> None:
        self._backend.set(_ENTRY_PREFIX + entry.fingerprint, entry.to_dict())

    def _history_ids(self, entity_id: str) -> list[str]:
        return list(self._backend.get(_HISTORY_PREFIX + entity_id) or [])

    def _entries(self) -> list[CacheEntry]:
        entries = []
        for key in self._backend.keys():
            if key.startswith(_ENTRY_PREFIX):
                entry = self._load(key[len(_ENTRY_PREFIX):])
                if entry is not None:
                    entries.append(entry)
        return entries

    def _referenced_elsewhere(self, fingerprint: str, entity_id: str) -> bool:
        for key in self._backend.keys():
            if key.startswith(_HISTORY_PREFIX) and key != _HISTORY_PREFIX + entity_id:
                if fingerprint in (self._backend.get(key) or []):
                    return True
        return False

    # ── Public API ──────────────────────────────────────────────────────

    def get(self, fingerprint: str) -> CacheEntry | None:
        """Look up an entry and record the access."""
        entry = self._load(fingerprint)
        if entry is None:
            logger.debug("cache.miss", fingerprint=fingerprint[:12])
            return None

        entry = replace(
            entry,
            access_count=entry.access_count + 1,
            last_accessed_at=self._clock(),
        )
        self._store(entry)
        logger.debug("cache.hit", fingerprint=fingerprint[:12], entity_id=entry.entity_id)
        return entry

    def put(self, fingerprint: str, entity: BaseEntity, code: GeneratedCode) -> CacheEntry:
        now = self._clock()
        entry = CacheEntry(
            fingerprint=fingerprint,
            entity_id=entity.id,
            entity_name=entity.name,
            generated_code=code,
            generated_at=now,
            last_accessed_at=now,
        )
        self._store(entry)

        history = self._history_ids(entity.id)
        if fingerprint not in history:
            history.append(fingerprint)
        while len(history) > self._history_limit:
            trimmed = history.pop(0)
            if trimmed != fingerprint and not self._referenced_elsewhere(trimmed, entity.id):
                self._backend.delete(_ENTRY_PREFIX + trimmed)
                logger.debug("cache.evict", fingerprint=trimmed[:12], entity_id=entity.id)
        self._backend.set(_HISTORY_PREFIX + entity.id, history)

        logger.debug("cache.put", fingerprint=fingerprint[:12], entity_id=entity.id)
        return entry

    def history(self, entity_id: str) -> list[CacheEntry]:
        """Cached generations for one entity, newest first."""
        entries = [e for e in map(self._load, self._history_ids(entity_id)) if e is not None]
        entries.sort(key=lambda e: e.generated_at, reverse=True)
        return entries

    def remove(self, fingerprint: str) -> None:
        entry = self._load(fingerprint)
        self._backend.delete(_ENTRY_PREFIX + fingerprint)
        if entry is not None:
            history = [h for h in self._history_ids(entry.entity_id) if h != fingerprint]
            self._backend.set(_HISTORY_PREFIX + entry.entity_id, history)

    def recent(self, limit: int = 10) -> list[CacheEntry]:
        entries = self._entries()
        entries.sort(key=lambda e: e.generated_at, reverse=True)
        return entries[:limit]

    def stats(self) -> dict[str, Any]:
        entries = self._entries()
        most_used = max(entries, key=lambda e: e.access_count, default=None)
        entity_count = sum(1 for k in self._backend.keys() if k.startswith(_HISTORY_PREFIX))
        return {
            "totalEntries": len(entries),
            "totalEntities": entity_count,
            "mostUsed": most_used.fingerprint if most_used else None,
            "recentlyGenerated": [e.fingerprint for e in self.recent(5)],
        }

    def clear(self) -> None:
        self._backend.clear()

    def __len__(self) -> int:
        return sum(1 for k in self._backend.keys() if k.startswith(_ENTRY_PREFIX))

    def __contains__(self, fingerprint: object) -> bool:
        return isinstance(fingerprint, str) and self._backend.exists(_ENTRY_PREFIX + fingerprint)


__all__ = ["CacheEntry", "GenerationCache"]
