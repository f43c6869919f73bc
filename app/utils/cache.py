"""In-process TTL cache keyed by request parameters.

Replaces the repetitive dict pattern:
    _cache = {"data": None, "timestamp": 0, "ttl": 60}

Usage:
    _cache = KeyedCache(ttl=300)

    # Read
    hit, data = _cache.get((tournament_id, season_id))
    if hit:
        return data

    # Write
    data = await fetch()
    _cache.set((tournament_id, season_id), data)

    # Expired entries stay readable as a fallback when the upstream fails
    found, data = _cache.get_stale((tournament_id, season_id))

    # Invalidate
    _cache.invalidate()
"""

import time
from typing import Hashable


class KeyedCache:
    """TTL-based cache, one timestamped entry per key."""

    __slots__ = ("ttl", "max_entries", "_entries")

    def __init__(self, ttl: float, max_entries: int = 512):
        self.ttl = ttl
        self.max_entries = max_entries
        self._entries: dict[Hashable, tuple[float, object]] = {}

    def get(self, key: Hashable) -> tuple[bool, object]:
        """Return (hit, data). Misses on unknown or expired keys."""
        entry = self._entries.get(key)
        if entry is None:
            return False, None
        timestamp, data = entry
        if time.time() - timestamp >= self.ttl:
            return False, None
        return True, data

    def get_stale(self, key: Hashable) -> tuple[bool, object]:
        """Return (found, data) ignoring the TTL."""
        entry = self._entries.get(key)
        if entry is None:
            return False, None
        return True, entry[1]

    def set(self, key: Hashable, data: object) -> None:
        """Store data with current timestamp."""
        if key not in self._entries and len(self._entries) >= self.max_entries:
            # Drop the oldest entry
            oldest = min(self._entries, key=lambda k: self._entries[k][0])
            del self._entries[oldest]
        self._entries[key] = (time.time(), data)

    def invalidate(self, key: Hashable = None) -> None:
        """Clear one key, or everything."""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)
