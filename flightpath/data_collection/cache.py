"""
In-memory TTL cache shared by the data services
Bounded by size and age, safe to use from concurrent requests
"""

import threading
import time
from collections import deque
from typing import Any, Callable, Dict, Hashable, Optional

from flightpath.utils.logger import get_logger


class TTLCache:
    """
    Capacity-bounded cache with time-to-live expiry

    Eviction never relies on dict ordering: an explicit insertion index
    (deque of (sequence, key)) decides which entry is oldest. Entries that are
    overwritten leave stale index records behind, skipped by sequence number.
    """

    def __init__(
        self,
        max_size: int = 10000,
        ttl_seconds: float = 86400,
        clock: Optional[Callable[[], float]] = None,
        logger=None
    ):
        """
        Initialize cache

        Args:
            max_size: Maximum number of entries kept
            ttl_seconds: Entry lifetime in seconds
            clock: Monotonic time source, replaceable in tests
            logger: Logger instance
        """
        if max_size <= 0:
            raise ValueError("max_size must be positive")

        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self.clock = clock or time.monotonic
        self.logger = logger or get_logger()

        self._lock = threading.Lock()
        self._entries: Dict[Hashable, tuple] = {}
        self._order = deque()
        self._sequence = 0

        self.stats = {
            'hits': 0,
            'misses': 0,
            'expired': 0,
            'evictions': 0
        }

    def get(self, key: Hashable) -> Optional[Any]:
        """
        Return the cached value, or None on miss or expiry

        Args:
            key: Cache key

        Returns:
            Cached value or None
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.stats['misses'] += 1
                return None

            value, stored_at, _ = entry
            if self.clock() - stored_at > self.ttl_seconds:
                del self._entries[key]
                self.stats['expired'] += 1
                self.stats['misses'] += 1
                return None

            self.stats['hits'] += 1
            return value

    def set(self, key: Hashable, value: Any) -> None:
        """
        Store a value, evicting the oldest entry when full

        Args:
            key: Cache key
            value: Value to store
        """
        with self._lock:
            if key not in self._entries:
                while len(self._entries) >= self.max_size:
                    self._evict_oldest()

            self._sequence += 1
            self._entries[key] = (value, self.clock(), self._sequence)
            self._order.append((self._sequence, key))
            self._compact()

    def _evict_oldest(self) -> None:
        # Caller holds the lock
        while self._order:
            sequence, key = self._order.popleft()
            entry = self._entries.get(key)
            if entry is not None and entry[2] == sequence:
                del self._entries[key]
                self.stats['evictions'] += 1
                self.logger.debug(f"Cache evicted oldest entry: {key}")
                return

    def _compact(self) -> None:
        # Drop index records for overwritten or expired keys once the index
        # grows well past the live entry count
        if len(self._order) <= 2 * self.max_size:
            return
        self._order = deque(
            (sequence, key) for sequence, key in self._order
            if key in self._entries and self._entries[key][2] == sequence
        )

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._order.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def hit_rate(self) -> float:
        """Share of lookups served from the cache"""
        with self._lock:
            lookups = self.stats['hits'] + self.stats['misses']
            return self.stats['hits'] / lookups if lookups else 0.0

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics"""
        with self._lock:
            lookups = self.stats['hits'] + self.stats['misses']
            return {
                'size': len(self._entries),
                'max_size': self.max_size,
                'ttl_seconds': self.ttl_seconds,
                'hits': self.stats['hits'],
                'misses': self.stats['misses'],
                'expired': self.stats['expired'],
                'evictions': self.stats['evictions'],
                'hit_rate': self.stats['hits'] / lookups if lookups else 0.0
            }
