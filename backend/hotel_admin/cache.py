"""In-process TTL cache with pattern and dependency-tag invalidation.

The cache is an explicit object: create one per application (or per test) and
pass it to whatever needs it. There is no module-level instance.
"""

import logging
import re
import time
from collections import defaultdict
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class _Entry:
    value: Any
    expires_at: float
    dependencies: frozenset[str]


@dataclass(frozen=True)
class CacheStats:
    hits: int
    misses: int
    entries: int

    @property
    def hit_rate(self) -> float:
        """Percentage of lookups served from the cache."""
        lookups = self.hits + self.misses
        return self.hits / lookups * 100 if lookups else 0.0


class AnalyticsCache:
    """Key/value cache with per-entry expiry.

    Concurrent writers to the same key are last-write-wins.
    """

    def __init__(
        self,
        default_ttl: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[str, _Entry] = {}
        self._tags: dict[str, set[str]] = defaultdict(set)
        self._hits = 0
        self._misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and entry.expires_at > self._clock()

    def _remove(self, key: str) -> None:
        entry = self._entries.pop(key, None)
        if entry is None:
            return
        for tag in entry.dependencies:
            keys = self._tags.get(tag)
            if keys is not None:
                keys.discard(key)
                if not keys:
                    del self._tags[tag]

    def get(self, key: str, fallback: T | None = None) -> Any | T | None:
        """Return the cached value for ``key``, or ``fallback`` if absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return fallback
        if entry.expires_at <= self._clock():
            self._remove(key)
            self._misses += 1
            return fallback
        self._hits += 1
        return entry.value

    def set(
        self,
        key: str,
        value: Any,
        ttl: float | None = None,
        dependencies: Iterable[str] | None = None,
    ) -> None:
        """Store ``value`` under ``key`` for ``ttl`` seconds.

        ``dependencies`` are tags that ``invalidate_dependency`` can later use
        to drop this entry.
        """
        ttl = self.default_ttl if ttl is None else ttl
        self._remove(key)
        tags = frozenset(dependencies or ())
        self._entries[key] = _Entry(value=value, expires_at=self._clock() + ttl, dependencies=tags)
        for tag in tags:
            self._tags[tag].add(key)

    def delete(self, key: str) -> bool:
        existed = key in self._entries
        self._remove(key)
        return existed

    def invalidate(self, pattern: str) -> int:
        """Remove every entry whose key matches the regular expression ``pattern``."""
        regex = re.compile(pattern)
        matched = [key for key in self._entries if regex.search(key)]
        for key in matched:
            self._remove(key)
        logger.debug("Invalidated %d cache entr(ies) matching %r", len(matched), pattern)
        return len(matched)

    def invalidate_dependency(self, tag: str) -> int:
        """Remove every entry registered under the dependency ``tag``."""
        keys = list(self._tags.get(tag, ()))
        for key in keys:
            self._remove(key)
        logger.debug("Invalidated %d cache entr(ies) depending on %r", len(keys), tag)
        return len(keys)

    async def get_or_set(
        self,
        key: str,
        fetcher: Callable[[], Awaitable[T]],
        ttl: float | None = None,
        dependencies: Iterable[str] | None = None,
    ) -> T:
        """Return the cached value, or await ``fetcher`` and cache its result."""
        if key in self:
            return self.get(key)
        self._misses += 1
        value = await fetcher()
        self.set(key, value, ttl=ttl, dependencies=dependencies)
        return value

    def purge_expired(self) -> int:
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.expires_at <= now]
        for key in expired:
            self._remove(key)
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()
        self._tags.clear()

    def stats(self) -> CacheStats:
        self.purge_expired()
        return CacheStats(hits=self._hits, misses=self._misses, entries=len(self._entries))
