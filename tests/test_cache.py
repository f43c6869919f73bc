"""Unit tests for KeyedCache."""

from unittest.mock import patch

from app.utils.cache import KeyedCache


class TestKeyedCache:
    def test_miss_then_hit(self):
        cache = KeyedCache(ttl=60)
        assert cache.get("a") == (False, None)
        cache.set("a", {"x": 1})
        assert cache.get("a") == (True, {"x": 1})

    def test_expired_entry_misses_but_stays_stale(self):
        cache = KeyedCache(ttl=60)
        with patch("app.utils.cache.time.time", return_value=1000.0):
            cache.set(("t", 1), "data")
        with patch("app.utils.cache.time.time", return_value=1061.0):
            assert cache.get(("t", 1)) == (False, None)
            assert cache.get_stale(("t", 1)) == (True, "data")

    def test_evicts_oldest_when_full(self):
        cache = KeyedCache(ttl=60, max_entries=2)
        with patch("app.utils.cache.time.time", side_effect=[1.0, 2.0, 3.0]):
            cache.set("a", 1)
            cache.set("b", 2)
            cache.set("c", 3)
        assert len(cache) == 2
        assert cache.get_stale("a") == (False, None)

    def test_invalidate(self):
        cache = KeyedCache(ttl=60)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.invalidate("a")
        assert cache.get_stale("a") == (False, None)
        cache.invalidate()
        assert len(cache) == 0
