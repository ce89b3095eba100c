"""In-process TTL memoizer for asynchronous fetches."""

from __future__ import annotations

import time
from typing import Any, Awaitable, Callable, TypeVar

from cachetools import TTLCache

from .constants import CACHE_MAXSIZE
from .logger import TRACE, get_logger

logger = get_logger(__name__)

T = TypeVar("T")

_MISSING = object()


class TtlCache:
    """Keyed cache that memoizes the result of an async producer for a TTL.

    Entries live in one bounded ``cachetools.TTLCache`` per TTL, so expired
    entries are dropped lazily and the least recently used entry is evicted
    once a cache is full. Producer failures are not cached. Concurrent first
    callers of the same key may each run the producer; later callers within
    the TTL reuse the value.
    """

    def __init__(
        self,
        maxsize: int = CACHE_MAXSIZE,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.maxsize = maxsize
        self._clock = clock
        self._caches: dict[float, TTLCache] = {}

    def _cache_for(self, ttl_seconds: float) -> TTLCache:
        cache = self._caches.get(ttl_seconds)
        if cache is None:
            cache = TTLCache(maxsize=self.maxsize, ttl=ttl_seconds, timer=self._clock)
            self._caches[ttl_seconds] = cache
        return cache

    async def wrap(
        self,
        key: str,
        producer: Callable[[], Awaitable[T]],
        ttl_seconds: float,
    ) -> T:
        """Return the cached value for ``key`` or run ``producer`` and store it."""
        cache = self._cache_for(ttl_seconds)
        value: Any = cache.get(key, _MISSING)
        if value is not _MISSING:
            logger.log(TRACE, "Cache hit %s", key)
            return value

        value = await producer()
        cache[key] = value
        return value

    def __len__(self) -> int:
        return sum(len(cache) for cache in self._caches.values())
