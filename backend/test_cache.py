"""Report TTL cache, geocode cache and cache keys."""

from cache import GeocodeCache, TTLCache, report_cache_key


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_entry_expires_after_ttl():
    clock = FakeClock()
    cache = TTLCache(ttl=60, max_size=10, clock=clock)
    cache.set("k", {"total": 1})
    clock.now = 60
    assert cache.get("k") == {"total": 1}
    clock.now = 60.001
    assert cache.get("k") is None
    assert len(cache) == 0


def test_set_refreshes_stored_at():
    clock = FakeClock()
    cache = TTLCache(ttl=60, max_size=10, clock=clock)
    cache.set("k", 1)
    clock.now = 50
    cache.set("k", 2)
    clock.now = 100
    assert cache.get("k") == 2


def test_oversize_sweeps_expired_entries():
    clock = FakeClock()
    cache = TTLCache(ttl=60, max_size=5, clock=clock)
    for i in range(5):
        cache.set(f"old{i}", i)
    clock.now = 100
    cache.set("fresh", "x")
    assert len(cache) == 1
    assert cache.get("fresh") == "x"


def test_oversize_without_expired_drops_oldest():
    cache = TTLCache(ttl=60, max_size=10, clock=FakeClock())
    for i in range(11):
        cache.set(f"k{i}", i)
    assert len(cache) == 10
    assert cache.get("k0") is None
    assert cache.get("k10") == 10


def test_geocode_cache_keeps_none_and_evicts_oldest():
    cache = GeocodeCache(max_size=10)
    cache.set("bad", None)
    assert "bad" in cache
    assert cache.get("bad") is None
    assert cache.get("never") is GeocodeCache.MISSING

    for i in range(9):
        cache.set(f"k{i}", f"addr {i}")
    assert len(cache) == 10
    cache.set("new", "addr")
    assert len(cache) == 10
    assert "bad" not in cache
    assert cache.get("new") == "addr"


def test_report_key_covers_every_parameter():
    base = report_cache_key(72, False, False, None)
    variants = {
        report_cache_key(24, False, False, None),
        report_cache_key(72, True, False, None),
        report_cache_key(72, False, True, None),
        report_cache_key(72, False, False, 10),
        report_cache_key(72, False, False, 20),
        report_cache_key(72, False, False, 0),
    }
    assert base not in variants
    assert len(variants) == 6
    assert report_cache_key(72, False, False, None) == base
