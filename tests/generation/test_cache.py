"""
Tests for GenerationCache.

Covers:
- hits bump access statistics, misses return None
- per-entity history, trimming and shared-fingerprint retention
- stats, recent, remove and clear
"""

from datetime import UTC, datetime, timedelta

import pytest

from specforge.core.cache import InMemoryCache
from specforge.generation.cache import CacheEntry, GenerationCache
from specforge.generation.types import (
    FileKind,
    GeneratedCode,
    GeneratedFile,
    GenerationMetadata,
)
from specforge.spec.models import Page

HOME = Page(id="p1", name="Home")
ABOUT = Page(id="p2", name="About")


def code(content: str, entity_id: str = "p1") -> GeneratedCode:
    return GeneratedCode(
        files=(GeneratedFile("app/page.tsx", content, FileKind.PAGE),),
        dependency_entity_ids=("ctx1",),
        metadata=GenerationMetadata(entity_id, "fp", datetime(2024, 1, 1, tzinfo=UTC), "mock", 42),
    )


@pytest.fixture
def clock():
    start = datetime(2024, 1, 15, 12, 0, tzinfo=UTC)
    ticks = (start + timedelta(seconds=n) for n in range(1000))
    return lambda: next(ticks)


@pytest.fixture
def cache(clock):
    return GenerationCache(InMemoryCache(), history_limit=3, clock=clock)


class TestGetPut:
    def test_miss(self, cache):
        assert cache.get("missing") is None
        assert "missing" not in cache

    def test_hit_bumps_access(self, cache):
        put = cache.put("fp-1", HOME, code("v1"))
        assert put.access_count == 1

        hit = cache.get("fp-1")
        assert hit.access_count == 2
        assert hit.last_accessed_at > put.last_accessed_at
        assert hit.generated_code == put.generated_code
        assert cache.get("fp-1").access_count == 3

    def test_entry_round_trips_through_backend(self, cache):
        entry = cache.put("fp-1", HOME, code("v1"))
        assert CacheEntry.from_dict(entry.to_dict()) == entry
        assert entry.to_dict()["entityName"] == "Home"


class TestHistory:
    def test_newest_first(self, cache):
        for i in range(3):
            cache.put(f"fp-{i}", HOME, code(f"v{i}"))
        assert [e.fingerprint for e in cache.history("p1")] == ["fp-2", "fp-1", "fp-0"]

    def test_trimmed_entries_are_evicted(self, cache):
        for i in range(5):
            cache.put(f"fp-{i}", HOME, code(f"v{i}"))
        assert [e.fingerprint for e in cache.history("p1")] == ["fp-4", "fp-3", "fp-2"]
        assert "fp-0" not in cache
        assert len(cache) == 3

    def test_shared_fingerprint_survives_trim(self, cache):
        cache.put("shared", HOME, code("v"))
        cache.put("shared", ABOUT, code("v", "p2"))
        for i in range(3):
            cache.put(f"fp-{i}", HOME, code(f"v{i}"))
        assert "shared" in cache
        assert [e.fingerprint for e in cache.history("p2")] == ["shared"]

    def test_put_same_fingerprint_does_not_duplicate_history(self, cache):
        cache.put("fp-1", HOME, code("v1"))
        cache.put("fp-1", HOME, code("v1"))
        assert len(cache.history("p1")) == 1


class TestMaintenance:
    def test_remove(self, cache):
        cache.put("fp-1", HOME, code("v1"))
        cache.remove("fp-1")
        assert cache.get("fp-1") is None
        assert cache.history("p1") == []

    def test_stats_and_recent(self, cache):
        cache.put("fp-1", HOME, code("v1"))
        cache.put("fp-2", ABOUT, code("v2", "p2"))
        cache.get("fp-1")

        stats = cache.stats()
        assert stats["totalEntries"] == 2
        assert stats["totalEntities"] == 2
        assert stats["mostUsed"] == "fp-1"
        assert stats["recentlyGenerated"] == ["fp-2", "fp-1"]
        assert [e.fingerprint for e in cache.recent(1)] == ["fp-2"]

    def test_clear(self, cache):
        cache.put("fp-1", HOME, code("v1"))
        cache.clear()
        assert len(cache) == 0
        assert cache.stats()["mostUsed"] is None

    def test_from_settings(self, settings):
        cache = GenerationCache.from_settings(settings)
        assert cache.history_limit == settings.cache_history_limit
