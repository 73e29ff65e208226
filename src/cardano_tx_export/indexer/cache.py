"""TTL-based caching for indexer responses."""

import time
from collections.abc import Callable
from typing import Any


class CacheEntry:
    """
    Cache entry with TTL support.

    Parameters
    ----------
    value : Any
        Cached value
    ttl : float
        Time-to-live in seconds
    created_at : float
        Clock reading at creation

    """

    def __init__(self, value: Any, ttl: float, created_at: float) -> None:
        self.value = value
        self.ttl = ttl
        self.created_at = created_at

    def is_expired(self, now: float) -> bool:
        """Check if the entry is older than its TTL."""
        return (now - self.created_at) > self.ttl


class ResponseCache:
    """
    In-memory cache of decoded indexer responses keyed by request path.

    Parameters
    ----------
    default_ttl : float
        Default time-to-live in seconds for cache entries
    clock : Callable[[], float]
        Monotonic clock, injectable for tests

    """

    def __init__(self, default_ttl: float = 30.0, clock: Callable[[], float] = time.monotonic) -> None:
        self.default_ttl = default_ttl
        self._clock = clock
        self._cache: dict[str, CacheEntry] = {}

    def get(self, path: str) -> Any | None:
        """
        Get cached value if it exists and hasn't expired.

        Parameters
        ----------
        path : str
            Request path

        Returns
        -------
        Any | None
            Cached value if found and valid, None otherwise

        """
        entry = self._cache.get(path)

        if entry is None:
            return None

        if entry.is_expired(self._clock()):
            del self._cache[path]
            return None

        return entry.value

    def set(self, path: str, value: Any, ttl: float | None = None) -> None:
        """Store a response under its request path."""
        self._cache[path] = CacheEntry(value, ttl or self.default_ttl, self._clock())

    def clear(self) -> None:
        """Clear all cached entries."""
        self._cache.clear()

    def cleanup_expired(self) -> int:
        """
        Remove all expired entries from cache.

        Returns
        -------
        int
            Number of entries removed

        """
        now = self._clock()
        expired_keys = [key for key, entry in self._cache.items() if entry.is_expired(now)]
        for key in expired_keys:
            del self._cache[key]
        return len(expired_keys)

    def __len__(self) -> int:
        return len(self._cache)
