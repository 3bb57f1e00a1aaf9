"""Tests for the in-memory cache."""

from vidserve.cache import MemoryCache


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestMemoryCache:
    """Tests for MemoryCache."""

    def test_miss_returns_none(self):
        cache = MemoryCache()
        assert cache.get("missing", ttl=60) is None

    def test_hit_within_ttl(self):
        clock = FakeClock()
        cache = MemoryCache(clock=clock)
        cache.set("k", {"imdb": "tt1"})

        clock.now += 60
        assert cache.get("k", ttl=60) == {"imdb": "tt1"}

    def test_expired_entry_is_evicted_on_read(self):
        clock = FakeClock()
        cache = MemoryCache(clock=clock)
        cache.set("k", "v")

        clock.now += 61
        assert cache.get("k", ttl=60) is None
        assert len(cache) == 0

    def test_ttl_is_per_read(self):
        clock = FakeClock()
        cache = MemoryCache(clock=clock)
        cache.set("k", "v")

        clock.now += 30
        assert cache.get("k", ttl=60) == "v"
        assert cache.get("k", ttl=10) is None

    def test_evicts_oldest_inserted_when_full(self):
        cache = MemoryCache(max_size=2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a", ttl=60)  # access does not protect from eviction
        cache.set("c", 3)

        assert cache.get("a", ttl=60) is None
        assert cache.get("b", ttl=60) == 2
        assert cache.get("c", ttl=60) == 3
        assert len(cache) == 2

    def test_overwriting_existing_key_does_not_evict(self):
        cache = MemoryCache(max_size=2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("a", 10)

        assert cache.get("a", ttl=60) == 10
        assert cache.get("b", ttl=60) == 2

    def test_overwriting_refreshes_timestamp(self):
        clock = FakeClock()
        cache = MemoryCache(clock=clock)
        cache.set("a", 1)
        clock.now += 50
        cache.set("a", 2)
        clock.now += 50

        assert cache.get("a", ttl=60) == 2

    def test_delete_and_clear(self):
        cache = MemoryCache()
        cache.set("a", 1)
        cache.set("b", 2)

        cache.delete("a")
        assert cache.get("a", ttl=60) is None

        cache.clear()
        assert len(cache) == 0

    def test_stats(self):
        cache = MemoryCache(max_size=5)
        cache.set("a", 1)

        stats = cache.stats()
        assert stats.size == 1
        assert stats.max_size == 5
