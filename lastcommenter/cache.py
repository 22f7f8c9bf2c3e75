"""Per-row cache of resolved cell payloads.

A row whose payload is cached is rendered synchronously on every later
render pass, without touching the network. The empty payload is cached too:
"resolved to nothing" and "never resolved" are different states, and only
the second one triggers a fetch.

Rows scroll in and out of view, so the in-memory cache is bounded (LRU) and
can optionally expire entries after a fixed lifetime.

Typical usage:
    ```python
    cache = InMemoryCommenterCache(CommenterCacheConfig(max_size=200))

    payload = cache.get(row_id)
    if payload is None:
        payload = (await pipeline.resolve_row(row_id)).payload
        cache.set(row_id, payload)
    ```
"""

import time
from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import Callable, Optional

from lastcommenter.config import CommenterCacheConfig
from lastcommenter.models import ResolvedPayload


class CommenterCacheInterface(ABC):
    """Abstract row id → payload cache.

    Implementations are used from a single event loop and need no locking.
    """

    @abstractmethod
    def get(self, row_id: int) -> Optional[ResolvedPayload]:
        """Return the cached payload for ``row_id``, or None if never resolved."""

    @abstractmethod
    def set(self, row_id: int, payload: ResolvedPayload) -> None:
        """Store the payload for ``row_id``, replacing any previous one."""

    @abstractmethod
    def clear(self) -> None:
        """Drop every entry and reset statistics."""

    @abstractmethod
    def get_stats(self) -> dict[str, int]:
        """Return cache statistics.

        Returns:
            Dictionary with "hits", "misses", "size", "evictions" and "expirations".
        """


class InMemoryCommenterCache(CommenterCacheInterface):
    """In-memory LRU cache with optional time-based expiry.

    Uses an OrderedDict for O(1) lookups and recency updates. With
    ``max_size=None`` and ``ttl_seconds=None`` it never forgets anything for
    the lifetime of the instance.

    Example:
        ```python
        cache = InMemoryCommenterCache(CommenterCacheConfig(max_size=2))
        cache.set(1, payload_a)
        cache.set(2, payload_b)
        cache.get(1)            # row 1 is now most recently used
        cache.set(3, payload_c) # evicts row 2
        ```
    """

    def __init__(self, config: CommenterCacheConfig | None = None, clock: Callable[[], float] = time.monotonic):
        """Initialize the cache.

        Args:
            config: Cache configuration. If None, uses default config.
            clock: Monotonic time source in seconds, used for expiry.
        """
        self.config = config or CommenterCacheConfig()
        self._clock = clock
        self._entries: OrderedDict[int, tuple[float, ResolvedPayload]] = OrderedDict()
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0

    def _expired(self, stored_at: float) -> bool:
        ttl = self.config.ttl_seconds
        return ttl is not None and self._clock() - stored_at >= ttl

    def get(self, row_id: int) -> Optional[ResolvedPayload]:
        entry = self._entries.get(row_id)
        if entry is None:
            self._misses += 1
            return None

        stored_at, payload = entry
        if self._expired(stored_at):
            del self._entries[row_id]
            self._expirations += 1
            self._misses += 1
            return None

        self._hits += 1
        self._entries.move_to_end(row_id)
        return payload

    def set(self, row_id: int, payload: ResolvedPayload) -> None:
        if row_id in self._entries:
            self._entries.move_to_end(row_id)
        self._entries[row_id] = (self._clock(), payload)

        max_size = self.config.max_size
        if max_size is not None:
            while len(self._entries) > max_size:
                self._entries.popitem(last=False)
                self._evictions += 1

    def clear(self) -> None:
        self._entries.clear()
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0

    def get_stats(self) -> dict[str, int]:
        return {
            "hits": self._hits,
            "misses": self._misses,
            "size": len(self._entries),
            "evictions": self._evictions,
            "expirations": self._expirations,
        }

    def __len__(self) -> int:
        return len(self._entries)
