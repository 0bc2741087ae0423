"""In-memory TTL cache for USDA payloads.

Cache stores: key → (value, stored_at)

DESIGN DECISIONS:
- Process-lifetime only; nothing is written to disk
- Freshness is checked on read: fresh iff now - stored_at < ttl
- Expired entries are NOT evicted. get() hides them, get_stale() still
  returns them so the degradation ladder has something to serve
- No size bound; entries leave only through clear()
- Clock is injectable so tests can advance time without sleeping
"""

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Hashable, Optional, TypeVar


V = TypeVar("V")


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    """A cached value and the clock reading (seconds) when it was fetched."""

    value: V
    stored_at: float


class TTLCache(Generic[V]):
    """Expiring key → value store with per-entry fetch timestamps.

    Usage:
        cache = TTLCache(ttl_seconds=24 * 60 * 60)
        cache.set("broccoli", results)

        cache.get("broccoli")        # None once the TTL has passed
        cache.get_stale("broccoli")  # still the old results
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.time):
        """Initialize cache.

        Args:
            ttl_seconds: Freshness window for every entry
            clock: Returns the current time in seconds

        Raises:
            ValueError: If ttl_seconds is not positive
        """
        if ttl_seconds <= 0:
            raise ValueError(f"Invalid ttl_seconds: {ttl_seconds}. Must be positive.")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[Hashable, CacheEntry[V]] = {}
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> Optional[V]:
        """Return the value for key only if it is still fresh."""
        with self._lock:
            entry = self._entries.get(key)
        if entry is None or not self._is_fresh(entry):
            return None
        return entry.value

    def get_stale(self, key: Hashable) -> Optional[V]:
        """Return the value for key regardless of age."""
        with self._lock:
            entry = self._entries.get(key)
        return entry.value if entry is not None else None

    def get_entry(self, key: Hashable) -> Optional[CacheEntry[V]]:
        with self._lock:
            return self._entries.get(key)

    def set(self, key: Hashable, value: V) -> None:
        """Store value under key, replacing any older entry."""
        entry = CacheEntry(value=value, stored_at=self._clock())
        with self._lock:
            self._entries[key] = entry

    def is_fresh(self, key: Hashable) -> bool:
        with self._lock:
            entry = self._entries.get(key)
        return entry is not None and self._is_fresh(entry)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _is_fresh(self, entry: CacheEntry[V]) -> bool:
        return self._clock() - entry.stored_at < self.ttl_seconds

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
