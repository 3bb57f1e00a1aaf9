"""In-memory key/value cache with TTL expiry and bounded size."""

import logging
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    value: Any
    inserted_at: float


@dataclass
class CacheStats:
    size: int
    max_size: int


class MemoryCache:
    """Process-local cache.

    Entries expire lazily on read once older than the ttl given to ``get``.
    When the cache is full, setting a new key evicts the oldest inserted entry
    (insertion order, not access order).
    """

    def __init__(self, max_size: int = 1000, clock: Callable[[], float] = time.monotonic):
        self.max_size = max_size
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()

    def get(self, key: str, ttl: float) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return None

        if self._clock() - entry.inserted_at > ttl:
            self._entries.pop(key, None)
            logger.debug("Cache expired: %s", key)
            return None

        logger.debug("Cache hit: %s", key)
        return entry.value

    def set(self, key: str, value: Any) -> None:
        if key not in self._entries and len(self._entries) >= self.max_size:
            try:
                oldest_key, _ = self._entries.popitem(last=False)
                logger.debug("Cache eviction: %s", oldest_key)
            except KeyError:
                pass

        # Re-setting a key refreshes its timestamp but keeps its eviction position.
        self._entries[key] = CacheEntry(value=value, inserted_at=self._clock())
        logger.debug("Cache set: %s (size %d)", key, len(self._entries))

    def delete(self, key: str) -> None:
        if self._entries.pop(key, None) is not None:
            logger.debug("Cache deleted: %s", key)

    def clear(self) -> None:
        size = len(self._entries)
        self._entries.clear()
        logger.info("Cache cleared, %d entries removed", size)

    def stats(self) -> CacheStats:
        return CacheStats(size=len(self._entries), max_size=self.max_size)

    def __len__(self) -> int:
        return len(self._entries)
