# utils/cache.py
"""
Read-through cache with a fixed freshness window.

Availability results are cached per date for a few seconds. Writes that can
change availability must call invalidate(). Expired entries are kept so a
caller can fall back to them when the database is unreachable, but they are
only ever handed out through get_stale() so the caller knows they are stale.
"""

import threading
import time


class AvailabilityCache:
    """Thread-safe TTL cache keyed by arbitrary hashable keys."""

    def __init__(self, ttl=5.0, timer=time.monotonic):
        self.ttl = ttl
        self._timer = timer
        self._entries = {}
        self._lock = threading.Lock()
        self.stats = {
            'hits': 0,
            'misses': 0,
            'invalidations': 0
        }

    def get(self, key):
        """Return the cached value if still fresh, otherwise None."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.stats['misses'] += 1
                return None

            stored_at, value = entry
            if self._timer() - stored_at >= self.ttl:
                self.stats['misses'] += 1
                return None

            self.stats['hits'] += 1
            return value

    def get_stale(self, key):
        """Return the last stored value regardless of age, or None."""
        with self._lock:
            entry = self._entries.get(key)
            return entry[1] if entry else None

    def set(self, key, value):
        with self._lock:
            self._entries[key] = (self._timer(), value)

    def invalidate(self, key=None):
        """
        Expire one key, or every key when none is given.

        Expired values stay available to get_stale().
        """
        with self._lock:
            self.stats['invalidations'] += 1
            keys = [key] if key is not None else list(self._entries)
            for k in keys:
                if k in self._entries:
                    _, value = self._entries[k]
                    self._entries[k] = (float('-inf'), value)

    def clear(self):
        with self._lock:
            self._entries.clear()
