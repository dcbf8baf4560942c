"""TTL cache used for provider-derived payloads.

Aggregation code talks to the :class:`Cache` interface only, so the
in-process :class:`MemoryCache` can be swapped for an external backend
without touching the listing or detail logic.

Entries are never served past their TTL. There is no size bound: the
process is expected to be restarted long before growth matters.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


class Cache(ABC):
    """Key/value cache with per-entry TTL (seconds)."""

    @abstractmethod
    def get(self, key: str) -> Any:  # noqa: ANN401
        """Return the cached value, or None if missing or expired."""

    @abstractmethod
    def set(self, key: str, value: Any, ttl: float) -> None:  # noqa: ANN401
        """Store ``value`` under ``key`` for ``ttl`` seconds."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove ``key``. Returns True if it was present."""

    @abstractmethod
    def clear(self) -> None:
        """Drop every entry."""


@dataclass
class CacheEntry:
    """A cached payload with its insertion time."""

    key: str
    value: Any
    inserted_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.inserted_at >= self.ttl


class MemoryCache(Cache):
    """Process-local dict-backed cache.

    Concurrent readers may see a stale-but-valid entry while another
    request refills it; fills are idempotent so no locking is needed.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str) -> Any:  # noqa: ANN401
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            self._entries.pop(key, None)
            logger.debug("Cache entry expired: %s", key)
            return None
        return entry.value

    def set(self, key: str, value: Any, ttl: float) -> None:  # noqa: ANN401
        self._entries[key] = CacheEntry(key=key, value=value, inserted_at=self._clock(), ttl=ttl)

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
