"""Tests for the TTL cache and rate tracker."""

from datetime import datetime, timedelta, timezone

import pytest

from flightpath.data_collection.cache import TTLCache
from flightpath.data_collection.rate_limiter import RateTracker


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestTTLCache:
    def test_miss_then_hit(self):
        """A stored value is returned and counted as a hit."""
        cache = TTLCache(max_size=10, ttl_seconds=60)
        assert cache.get("a") is None
        cache.set("a", 1)
        assert cache.get("a") == 1

        stats = cache.get_stats()
        assert stats['hits'] == 1
        assert stats['misses'] == 1
        assert stats['hit_rate'] == 0.5

    def test_expiry(self):
        """Entries older than the TTL are dropped on read."""
        clock = FakeClock()
        cache = TTLCache(max_size=10, ttl_seconds=60, clock=clock)
        cache.set("a", 1)

        clock.now = 61
        assert cache.get("a") is None
        assert cache.get_stats()['expired'] == 1
        assert len(cache) == 0

    def test_evicts_oldest_inserted(self):
        """The first inserted key goes when capacity is reached."""
        cache = TTLCache(max_size=2, ttl_seconds=60)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("c", 3)

        assert cache.get("a") is None
        assert cache.get("b") == 2
        assert cache.get("c") == 3
        assert cache.get_stats()['evictions'] == 1

    def test_overwrite_refreshes_position(self):
        """Overwriting a key moves it behind the others for eviction."""
        cache = TTLCache(max_size=2, ttl_seconds=60)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("a", 10)
        cache.set("c", 3)

        assert cache.get("a") == 10
        assert cache.get("b") is None

    def test_overwrite_does_not_evict(self):
        cache = TTLCache(max_size=2, ttl_seconds=60)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("b", 3)
        assert len(cache) == 2
        assert cache.get_stats()['evictions'] == 0

    def test_many_overwrites_stay_bounded(self):
        """Repeated writes to one key never grow the cache."""
        cache = TTLCache(max_size=3, ttl_seconds=60)
        for i in range(100):
            cache.set("k", i)
        assert len(cache) == 1
        assert cache.get("k") == 99

    def test_clear(self):
        cache = TTLCache(max_size=5, ttl_seconds=60)
        cache.set("a", 1)
        cache.clear()
        assert len(cache) == 0

    def test_rejects_non_positive_size(self):
        with pytest.raises(ValueError):
            TTLCache(max_size=0)


class TestRateTracker:
    def test_counts_calls(self):
        tracker = RateTracker("Test", hourly_limit=5)
        now = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)
        tracker.record_call(now)
        tracker.record_call(now)

        assert tracker.get_remaining_calls(now) == 3
        assert tracker.stats['total_calls'] == 2

    def test_old_calls_expire(self):
        """Calls older than an hour no longer count."""
        tracker = RateTracker("Test", hourly_limit=5)
        start = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)
        tracker.record_call(start)

        assert tracker.get_remaining_calls(start + timedelta(minutes=61)) == 5

    def test_limit_reached_is_reported_not_enforced(self):
        """Hitting the soft limit only records a warning."""
        tracker = RateTracker("Test", hourly_limit=2)
        now = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)
        for _ in range(3):
            tracker.record_call(now)

        assert tracker.stats['limit_warnings'] == 1
        assert tracker.stats['total_calls'] == 3
        assert tracker.get_remaining_calls(now) == 0
