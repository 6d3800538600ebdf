"""Caller-owned LRU cache with TTL expiration for traversal results."""

import logging
from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Any, Hashable, Optional

logger = logging.getLogger("kingraph.kinship.cache")


class LRUTTLCache:
    """LRU cache with TTL expiration.

    Owned by the caller (one per loaded snapshot or session), never shared
    process-wide. Keys should include the snapshot fingerprint so entries from
    one tree or snapshot version are never served for another.

    Args:
        max_size: Maximum number of entries (default 512)
        ttl_seconds: Time-to-live in seconds (default 900 = 15 minutes)
    """

    def __init__(self, max_size: int = 512, ttl_seconds: int = 900):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._cache: OrderedDict[Hashable, tuple[Any, datetime]] = OrderedDict()
        self._max_size = max_size
        self._ttl = timedelta(seconds=ttl_seconds)
        self.hits = 0
        self.misses = 0

    def get(self, key: Hashable) -> Optional[Any]:
        """Get cached value if it exists and has not expired."""
        if key not in self._cache:
            self.misses += 1
            return None

        value, timestamp = self._cache[key]

        # Check TTL expiration
        if datetime.now() - timestamp > self._ttl:
            del self._cache[key]
            self.misses += 1
            logger.debug(f"Cache entry expired for: {key!r}")
            return None

        # Move to end (most recently used)
        self._cache.move_to_end(key)
        self.hits += 1
        logger.debug(f"Cache hit for: {key!r}")
        return value

    def set(self, key: Hashable, value: Any) -> None:
        """Store value in cache with LRU eviction."""
        if key in self._cache:
            self._cache[key] = (value, datetime.now())
            self._cache.move_to_end(key)
            return

        # Evict oldest entries if at capacity
        while len(self._cache) >= self._max_size:
            oldest_key = next(iter(self._cache))
            del self._cache[oldest_key]
            logger.debug(f"Cache evicted oldest entry: {oldest_key!r}")

        self._cache[key] = (value, datetime.now())

    def clear(self) -> None:
        """Clear all cached entries."""
        self._cache.clear()
        logger.info("Cache cleared")

    def __contains__(self, key: Hashable) -> bool:
        return key in self._cache

    @property
    def size(self) -> int:
        """Current number of cached entries."""
        return len(self._cache)
