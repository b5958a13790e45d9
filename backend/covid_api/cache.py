"""
Thread-safe named caches backed by cachetools TTLCache.

Holds response caches for the heavier read endpoints and the moving
averages published by the daily statistics job.
"""
import threading
from typing import Any

from cachetools import TTLCache


class AppCache:
    """Application-wide cache registry with size and TTL bounds."""

    def __init__(self):
        self._lock = threading.Lock()
        self._caches: dict[str, TTLCache] = {}

    def get_cache(self, name: str, maxsize: int = 128, ttl: int = 600) -> TTLCache:
        """Get or create a named TTLCache."""
        with self._lock:
            if name not in self._caches:
                self._caches[name] = TTLCache(maxsize=maxsize, ttl=ttl)
            return self._caches[name]

    def get(self, cache_name: str, key: str) -> Any:
        """Return a cached value, or None when missing or expired."""
        cache = self._caches.get(cache_name)
        if cache is None:
            return None
        with self._lock:
            return cache.get(key)

    def set(self, cache_name: str, key: str, value: Any, maxsize: int = 128, ttl: int = 600) -> None:
        cache = self.get_cache(cache_name, maxsize=maxsize, ttl=ttl)
        with self._lock:
            cache[key] = value

    def invalidate(self, cache_name: str, key: str | None = None) -> None:
        """Drop one key, or the whole named cache when key is None."""
        cache = self._caches.get(cache_name)
        if cache is None:
            return
        with self._lock:
            if key is None:
                cache.clear()
            else:
                cache.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            for cache in self._caches.values():
                cache.clear()

    def stats(self) -> dict:
        """Cache sizes for the metrics endpoint."""
        with self._lock:
            return {
                name: {"size": len(cache), "maxsize": cache.maxsize, "ttl": cache.ttl}
                for name, cache in self._caches.items()
            }


app_cache = AppCache()

# Cache names
STATISTICS_CACHE = "statistics"
AUTOMATION_CACHE = "automation"
MOVING_AVERAGES_KEY = "moving_averages"
