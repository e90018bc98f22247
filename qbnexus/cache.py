"""Compilation cache: an LRU map from (source, target) to generated code."""

from __future__ import annotations

import hashlib
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass

from .diagnostics import Diagnostic

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 100


class LRUCache:
    """Fixed-capacity map that evicts the least recently used entry."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity: int = capacity
        self.entries: OrderedDict[str, object] = OrderedDict()
        self.evictions: int = 0

    def get(self, key: str) -> object | None:
        if key not in self.entries:
            return None
        self.entries.move_to_end(key)
        return self.entries[key]

    def set(self, key: str, value: object) -> None:
        if key in self.entries:
            self.entries.move_to_end(key)
        self.entries[key] = value
        while len(self.entries) > self.capacity:
            oldest, _ = self.entries.popitem(last=False)
            self.evictions += 1
            logger.debug("cache evict %s", oldest)

    def has(self, key: str) -> bool:
        return key in self.entries

    def clear(self) -> None:
        self.entries.clear()

    def stats(self) -> dict[str, int]:
        return {
            "size": len(self.entries),
            "capacity": self.capacity,
            "evictions": self.evictions,
        }

    def __len__(self) -> int:
        return len(self.entries)


@dataclass
class CacheEntry:
    code: str
    diagnostics: list[Diagnostic]
    timestamp: float


def cache_key(source: str, target: str) -> str:
    """First 16 hex digits of SHA-256 over source + target."""
    digest = hashlib.sha256((source + target).encode("utf-8")).hexdigest()
    return digest[:16]


class CompilationCache:
    """Thread-safe cache of compilation results with hit/miss accounting."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY, enabled: bool = True):
        self.lru: LRUCache = LRUCache(capacity)
        self.enabled: bool = enabled
        self.hits: int = 0
        self.misses: int = 0
        self._lock = threading.Lock()

    def get(self, source: str, target: str) -> CacheEntry | None:
        if not self.enabled:
            return None
        key = cache_key(source, target)
        with self._lock:
            entry = self.lru.get(key)
            if entry is None:
                self.misses += 1
                logger.debug("cache miss %s", key)
                return None
            self.hits += 1
        logger.debug("cache hit %s", key)
        return entry

    def set(
        self, source: str, target: str, code: str, diagnostics: list[Diagnostic]
    ) -> None:
        if not self.enabled:
            return
        key = cache_key(source, target)
        entry = CacheEntry(code, list(diagnostics), time.time())
        with self._lock:
            self.lru.set(key, entry)

    def clear(self) -> None:
        with self._lock:
            self.lru.clear()

    def reset_stats(self) -> None:
        with self._lock:
            self.hits = 0
            self.misses = 0
            self.lru.evictions = 0

    def set_enabled(self, flag: bool) -> None:
        self.enabled = flag
        if not flag:
            self.clear()

    def stats(self) -> dict[str, object]:
        with self._lock:
            lookups = self.hits + self.misses
            rate = self.hits / lookups if lookups else 0.0
            return {
                "hits": self.hits,
                "misses": self.misses,
                "evictions": self.lru.evictions,
                "size": len(self.lru),
                "capacity": self.lru.capacity,
                "hit_rate": rate,
            }

    def __len__(self) -> int:
        return len(self.lru)
