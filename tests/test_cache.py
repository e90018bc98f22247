"""Compilation cache tests."""

import pytest

from qbnexus.cache import CompilationCache, LRUCache, cache_key
from qbnexus.diagnostics import CAT_SEMANTIC, SEV_WARNING, Diagnostic


def test_lru_evicts_least_recently_used():
    lru = LRUCache(2)
    lru.set("a", 1)
    lru.set("b", 2)
    assert lru.get("a") == 1
    lru.set("c", 3)
    assert lru.has("a")
    assert not lru.has("b")
    assert lru.has("c")
    assert lru.stats() == {"size": 2, "capacity": 2, "evictions": 1}


def test_lru_overwrite_does_not_evict():
    lru = LRUCache(2)
    lru.set("a", 1)
    lru.set("b", 2)
    lru.set("a", 10)
    assert len(lru) == 2
    assert lru.get("a") == 10
    assert lru.evictions == 0


def test_lru_miss_and_clear():
    lru = LRUCache(1)
    assert lru.get("nope") is None
    lru.set("a", 1)
    lru.clear()
    assert len(lru) == 0


def test_lru_capacity_must_be_positive():
    with pytest.raises(ValueError):
        LRUCache(0)


def test_cache_key_shape():
    key = cache_key("PRINT 1", "node")
    assert len(key) == 16
    int(key, 16)
    assert key == cache_key("PRINT 1", "node")
    assert key != cache_key("PRINT 1", "web")
    assert key != cache_key("PRINT 2", "node")


def test_hits_and_misses():
    cache = CompilationCache(10)
    assert cache.get("x", "node") is None
    warning = Diagnostic(SEV_WARNING, CAT_SEMANTIC, "w", 1, 1)
    cache.set("x", "node", "code", [warning])
    entry = cache.get("x", "node")
    assert entry is not None
    assert entry.code == "code"
    assert entry.diagnostics == [warning]
    stats = cache.stats()
    assert (stats["hits"], stats["misses"], stats["size"]) == (1, 1, 1)
    assert stats["hit_rate"] == 0.5


def test_entry_diagnostics_are_copied():
    cache = CompilationCache()
    diagnostics: list[Diagnostic] = []
    cache.set("x", "node", "code", diagnostics)
    diagnostics.append(Diagnostic(SEV_WARNING, CAT_SEMANTIC, "late", 1, 1))
    assert cache.get("x", "node").diagnostics == []


def test_disabled_cache_stores_nothing():
    cache = CompilationCache(enabled=False)
    cache.set("x", "node", "code", [])
    assert cache.get("x", "node") is None
    assert len(cache) == 0
    assert cache.stats()["misses"] == 0


def test_disabling_clears():
    cache = CompilationCache()
    cache.set("x", "node", "code", [])
    cache.set_enabled(False)
    cache.set_enabled(True)
    assert cache.get("x", "node") is None


def test_reset_stats_keeps_entries():
    cache = CompilationCache(1)
    cache.set("a", "node", "1", [])
    cache.set("b", "node", "2", [])
    cache.get("b", "node")
    cache.reset_stats()
    stats = cache.stats()
    assert (stats["hits"], stats["misses"], stats["evictions"]) == (0, 0, 0)
    assert stats["size"] == 1
    assert stats["hit_rate"] == 0.0
