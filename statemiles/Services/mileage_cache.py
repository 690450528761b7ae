# statemiles/Services/mileage_cache.py
"""
In-memory cache for mileage aggregation results.

Purpose:
- Avoid reloading crossings and re-aggregating on every dashboard poll
- Drop results as soon as a change event says they are stale
- Recompute lazily: an invalidated entry is rebuilt on the next read,
  never eagerly on the event itself

Architecture:
- Thread-safe (uses threading.Lock)
- LRU eviction (removes oldest entries when full)
- TTL-based expiration (bounds staleness from out-of-band edits)

Keys:
    user:<user_id>:trip:<trip_id>            per-trip mileage
    user:<user_id>:summary:all               all-time summary
    user:<user_id>:summary:quarter:<YYYY-QN> quarter summary
"""

import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Dict, Optional, TypeVar

from statemiles.Core.config import settings
from statemiles.Services.change_notifier import TripChangeEvent

T = TypeVar("T")


def trip_key(user_id: str, trip_id: str) -> str:
    return f"user:{user_id}:trip:{trip_id}"


def summary_key(user_id: str, scope: str = "all") -> str:
    return f"user:{user_id}:summary:{scope}"


class MileageCache:
    """
    Thread-safe in-memory cache with LRU eviction and TTL expiration.

    Attributes:
        max_size: Maximum number of cache entries
        default_ttl: Default TTL in seconds
    """

    def __init__(
        self,
        max_size: int = 1000,
        default_ttl: int = 300,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._cache: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()
        self._lock = threading.Lock()
        self._clock = clock
        # bumped on every invalidation so a compute racing with it is not stored
        self._generation = 0
        self.max_size = max_size
        self.default_ttl = default_ttl
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Optional[Any]:
        """
        Return the cached value, or None if missing or expired.
        """
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None

            if self._clock() > entry["expires_at"]:
                del self._cache[key]
                return None

            self._cache.move_to_end(key)
            return entry["data"]

    def set(self, key: str, data: Any, ttl: Optional[int] = None) -> None:
        """
        Store a value, evicting the least recently used entry when full.
        """
        with self._lock:
            self._store(key, data, ttl)

    def _store(self, key: str, data: Any, ttl: Optional[int]) -> None:
        now = self._clock()
        self._cache[key] = {
            "data": data,
            "expires_at": now + (ttl or self.default_ttl),
            "created_at": now,
        }
        self._cache.move_to_end(key)

        if len(self._cache) > self.max_size:
            oldest_key = next(iter(self._cache))
            del self._cache[oldest_key]

    def get_or_compute(self, key: str, compute: Callable[[], T], ttl: Optional[int] = None) -> T:
        """
        Return the cached value or compute, store and return it.

        compute() runs outside the lock. If the key is invalidated while it
        runs, the fresh result is returned but not stored.
        """
        with self._lock:
            entry = self._cache.get(key)
            if entry is not None and self._clock() <= entry["expires_at"]:
                self._cache.move_to_end(key)
                self.hits += 1
                return entry["data"]
            self.misses += 1
            generation = self._generation

        data = compute()

        with self._lock:
            if generation == self._generation:
                self._store(key, data, ttl)
        return data

    def invalidate(self, key: str) -> bool:
        """
        Remove one entry. Returns True if it was present.
        """
        with self._lock:
            self._generation += 1
            if key in self._cache:
                del self._cache[key]
                return True
            return False

    def invalidate_prefix(self, prefix: str) -> int:
        """
        Remove every entry whose key starts with prefix.

        Returns:
            Number of entries invalidated
        """
        with self._lock:
            self._generation += 1
            keys_to_remove = [key for key in self._cache if key.startswith(prefix)]
            for key in keys_to_remove:
                del self._cache[key]
            return len(keys_to_remove)

    def handle_change(self, event: TripChangeEvent) -> None:
        """
        Change-notifier listener.

        Drops the affected trip's entry and all of the user's summaries.
        Other users' entries are untouched.
        """
        removed = int(self.invalidate(trip_key(event.user_id, event.trip_id)))
        removed += self.invalidate_prefix(summary_key(event.user_id, ""))
        print(f"[CACHE] {event.kind.value} on trip {event.trip_id}: {removed} entries invalidated")

    def clear(self) -> None:
        with self._lock:
            self._generation += 1
            self._cache.clear()

    def stats(self) -> Dict[str, Any]:
        """
        Cache metrics (for monitoring/debugging).
        """
        with self._lock:
            now = self._clock()
            expired_count = sum(
                1 for entry in self._cache.values()
                if now > entry["expires_at"]
            )
            return {
                "size": len(self._cache),
                "max_size": self.max_size,
                "expired_count": expired_count,
                "hits": self.hits,
                "misses": self.misses,
            }


# Global cache instance (singleton)
mileage_cache = MileageCache(
    max_size=settings.CACHE_MAX_SIZE,
    default_ttl=settings.CACHE_DEFAULT_TTL_S
)
