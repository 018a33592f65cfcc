"""In-process TTL cache for fetched price series."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable

from stockdash.config import Defaults


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    stored_at: float


class SeriesCache:
    """Key/value cache with TTL support and an injectable clock.

    Expired entries are kept around so callers can still fall back to the
    last good copy when a refresh fails (see ``get_stale``).
    """

    def __init__(
        self,
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = Defaults.PRICE_CACHE_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def _is_fresh(self, entry: CacheEntry) -> bool:
        return self._clock() - entry.stored_at < self.ttl_seconds

    def get(self, key: str) -> Any | None:
        """Return the cached value if present and not expired."""
        entry = self._entries.get(key)
        if entry is None or not self._is_fresh(entry):
            return None
        return entry.value

    def get_stale(self, key: str) -> Any | None:
        """Return the cached value regardless of age."""
        entry = self._entries.get(key)
        return entry.value if entry is not None else None

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = CacheEntry(value=value, stored_at=self._clock())

    def is_cached(self, key: str) -> bool:
        return self.get(key) is not None

    def clear(self) -> None:
        self._entries.clear()
