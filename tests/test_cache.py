"""Tests for the TTL response cache."""

from clients.cache import ResponseCache


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


class TestResponseCache:
    def test_get_within_ttl(self):
        clock = FakeClock()
        cache = ResponseCache(default_ttl=600, clock=clock)
        cache.set("k", {"v": 1}, ttl=1.0)
        assert cache.get("k") == {"v": 1}
        assert cache.has("k")

    def test_expires_after_ttl(self):
        clock = FakeClock()
        cache = ResponseCache(default_ttl=600, clock=clock)
        cache.set("k", "value", ttl=1.0)
        clock.now = 1.001
        assert cache.get("k") is None
        assert not cache.has("k")

    def test_entry_still_live_at_exact_expiry(self):
        clock = FakeClock()
        cache = ResponseCache(clock=clock)
        cache.set("k", "value", ttl=5.0)
        clock.now = 5.0
        assert cache.get("k") == "value"

    def test_default_ttl(self):
        clock = FakeClock()
        cache = ResponseCache(default_ttl=10, clock=clock)
        cache.set("k", "value")
        clock.now = 9
        assert cache.has("k")
        clock.now = 11
        assert not cache.has("k")

    def test_missing_key(self):
        assert ResponseCache().get("nope") is None

    def test_size_sweeps_expired(self):
        clock = FakeClock()
        cache = ResponseCache(clock=clock)
        cache.set("short", 1, ttl=1)
        cache.set("long", 2, ttl=100)
        clock.now = 50
        assert cache.size() == 1
        assert cache.get("long") == 2

    def test_delete_and_clear(self):
        cache = ResponseCache()
        cache.set("a", 1)
        cache.set("b", 2)
        cache.delete("a")
        assert cache.get("a") is None
        cache.clear()
        assert cache.size() == 0
