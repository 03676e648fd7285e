"""
Key/value cache backend used by the generation cache.

Provides a ``CacheBackend`` protocol and a bounded in-memory implementation.
The generation cache stores its entries and per-entity history through this
protocol, so a process-wide or external store can be swapped in without
touching the pipeline.

Architecture:
    ::

        CacheBackend (Protocol)
        └── InMemoryCache  - single-process, bounded LRU, optional TTL

        API: get(key) → value | None
             set(key, value, ttl_seconds=None)
             delete(key)
             exists(key) → bool
             keys() → list[str]   (least recently used first)
             clear()

Examples:
    >>> from specforge.core.cache import InMemoryCache
    >>> cache = InMemoryCache(max_size=2, default_ttl_seconds=None)
    >>> cache.set("a", 1); cache.set("b", 2); cache.set("c", 3)
    >>> cache.exists("a")
    False
    >>> cache.keys()
    ['b', 'c']

Guardrails:
    ❌ DON'T: Share one InMemoryCache across processes (no sharing)
    ✅ DO: Pass the cache into the generator as a dependency

Tags:
    cache, caching, in-memory, lru, ttl, specforge, protocol

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import time
from collections import OrderedDict
from typing import Any, Protocol


class CacheBackend(Protocol):
    """Protocol for cache backend implementations.

    Keys are strings. Values are whatever the caller stores; the generation
    cache stores plain dicts so a serializing backend can be used.
    """

    def get(self, key: str) -> Any | None:
        """Return the value, or ``None`` if missing or expired."""
        ...

    def set(self, key: str, value: Any, *, ttl_seconds: int | None = None) -> None:
        """Store a value. ``ttl_seconds=None`` uses the backend default."""
        ...

    def delete(self, key: str) -> None:
        """Remove a key. No-op if it does not exist."""
        ...

    def exists(self, key: str) -> bool:
        """``True`` if the key exists and has not expired."""
        ...

    def keys(self) -> list[str]:
        """Live keys, least recently used first."""
        ...

    def clear(self) -> None:
        """Remove all keys."""
        ...


class InMemoryCache:
    """Bounded in-memory cache with LRU eviction and optional TTL.

    Expiry is checked lazily on access.

    Attributes:
        max_size: Maximum number of keys before LRU eviction.
        default_ttl_seconds: Default TTL for keys (``None`` → no expiry).
    """

    def __init__(
        self,
        *,
        max_size: int = 1000,
        default_ttl_seconds: int | None = None,
    ):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._store: OrderedDict[str, tuple[Any, float | None]] = OrderedDict()
        self._max_size = max_size
        self._default_ttl = default_ttl_seconds

    @property
    def max_size(self) -> int:
        return self._max_size

    def _expired(self, key: str) -> bool:
        _, expires_at = self._store[key]
        if expires_at is not None and time.monotonic() > expires_at:
            del self._store[key]
            return True
        return False

    def get(self, key: str) -> Any | None:
        if key not in self._store or self._expired(key):
            return None
        self._store.move_to_end(key)
        return self._store[key][0]

    def set(self, key: str, value: Any, *, ttl_seconds: int | None = None) -> None:
        ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl
        expires_at = (time.monotonic() + ttl) if ttl else None

        if key not in self._store and len(self._store) >= self._max_size:
            self._store.popitem(last=False)

        self._store[key] = (value, expires_at)
        self._store.move_to_end(key)

    def delete(self, key: str) -> None:
        self._store.pop(key, None)

    def exists(self, key: str) -> bool:
        return key in self._store and not self._expired(key)

    def keys(self) -> list[str]:
        return [key for key in list(self._store) if not self._expired(key)]

    def clear(self) -> None:
        self._store.clear()

    def size(self) -> int:
        """Return current number of cached keys."""
        return len(self._store)


__all__ = ["CacheBackend", "InMemoryCache"]
