import threading

from health_insights.cache import ResultCache
from tests.fakes import FakeClock


def test_cache_hit_miss_and_expiry() -> None:
    clock = FakeClock()
    cache = ResultCache(clock=clock)
    key = "cache:v1:visualization:abc"
    value = {"ok": True}

    assert cache.get(key) is None
    cache.set(key, value, ttl_seconds=600)
    assert cache.get(key) == value

    clock.advance(600)
    assert cache.get(key) == value

    clock.advance(0.001)
    assert cache.get(key) is None


def test_expired_entry_is_overwritten_on_next_set() -> None:
    clock = FakeClock()
    cache = ResultCache(clock=clock)
    cache.set("k", "old", ttl_seconds=10)
    clock.advance(30)
    assert cache.get("k") is None

    cache.set("k", "new", ttl_seconds=10)
    assert cache.get("k") == "new"
    assert len(cache) == 1


def test_lru_bound_evicts_least_recently_used() -> None:
    cache = ResultCache(clock=FakeClock(), max_entries=2)
    cache.set("a", 1, ttl_seconds=60)
    cache.set("b", 2, ttl_seconds=60)
    assert cache.get("a") == 1
    cache.set("c", 3, ttl_seconds=60)

    assert cache.get("b") is None
    assert cache.get("a") == 1
    assert cache.get("c") == 3


def test_unbounded_cache_keeps_everything() -> None:
    cache = ResultCache(clock=FakeClock(), max_entries=None)
    for index in range(1000):
        cache.set(str(index), index, ttl_seconds=60)
    assert len(cache) == 1000


def test_concurrent_writers_and_readers() -> None:
    cache = ResultCache(clock=FakeClock(), max_entries=50)
    errors: list[Exception] = []

    def worker(offset: int) -> None:
        try:
            for index in range(200):
                key = f"k{(index + offset) % 80}"
                cache.set(key, {"value": index}, ttl_seconds=60)
                cached = cache.get(key)
                assert cached is None or "value" in cached
        except Exception as exc:  # pragma: no cover - surfaced by the assertion below
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(offset,)) for offset in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert len(cache) <= 50
