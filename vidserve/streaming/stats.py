"""Short-lived cache of filesystem stat results for streamed files."""

import logging
import os
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileStat:
    size: int
    mtime_ms: int

    @classmethod
    def from_stat(cls, st: os.stat_result) -> "FileStat":
        return cls(size=st.st_size, mtime_ms=st.st_mtime_ns // 1_000_000)


class FileStatCache:
    """Caches ``os.stat`` per path for ``ttl_seconds``.

    An entry is fresh while ``now - fetched_at < ttl``. When the cache grows
    past ``max_size`` the expired entries are swept; fresh ones are kept even
    if that leaves the cache over capacity.
    """

    def __init__(
        self,
        ttl_seconds: float = 300,
        max_size: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self._clock = clock
        self._entries: dict[str, tuple[FileStat, float]] = {}

    def get(self, path: Path) -> FileStat:
        """Return the cached stat for ``path``, stating it on a miss.

        Raises FileNotFoundError and other OSErrors from ``os.stat``.
        """
        key = str(path)
        now = self._clock()
        cached = self._entries.get(key)
        if cached and now - cached[1] < self.ttl_seconds:
            return cached[0]

        stat = FileStat.from_stat(os.stat(path))
        self._entries[key] = (stat, now)
        if len(self._entries) > self.max_size:
            self._sweep(now)
        return stat

    def invalidate(self, path: Path) -> None:
        self._entries.pop(str(path), None)

    def __len__(self) -> int:
        return len(self._entries)

    def _sweep(self, now: float) -> None:
        expired = [k for k, (_, at) in self._entries.items() if now - at >= self.ttl_seconds]
        for key in expired:
            del self._entries[key]
        logger.debug("Swept %d expired stat entries, %d remain", len(expired), len(self._entries))
