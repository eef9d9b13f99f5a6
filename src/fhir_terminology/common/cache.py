"""Expiring least-recently-used cache owned by a single terminology client."""

import logging
import threading
import time
from collections.abc import Callable
from typing import Generic, TypeVar

from cachetools import TTLCache

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ExpiringLruCache(Generic[T]):
    """Thread-safe LRU cache whose entries expire after a fixed time-to-live.

    Reads and writes are synchronous and never block on I/O, so callers on an event loop can use it
    without awaiting."""

    def __init__(self, max_size: int, ttl_ms: int, clock: Callable[[], float] | None = None) -> None:
        if max_size < 1:
            message = f"max_size must be at least 1, got {max_size}"
            raise ValueError(message)
        self._entries: TTLCache[str, T] = TTLCache(
            maxsize=max_size, ttl=ttl_ms / 1000, timer=clock or time.monotonic
        )
        self._lock = threading.Lock()

    @property
    def max_size(self) -> int:
        return int(self._entries.maxsize)

    def get(self, cache_key: str) -> T | None:
        """Get a live value from the cache, marking it most recently used."""
        with self._lock:
            value = self._entries.get(cache_key)
        if value is None:
            logger.debug("Cache miss", extra={"cache_key": cache_key})
        else:
            logger.debug("Cache hit", extra={"cache_key": cache_key})
        return value

    def set(self, cache_key: str, value: T) -> None:
        """Set a value in the cache, evicting expired entries and then the least recently used one when full."""
        with self._lock:
            self._entries[cache_key] = value
        logger.debug("Cache updated", extra={"cache_key": cache_key})

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
        logger.info("All cache entries cleared")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
