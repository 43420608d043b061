"""
Rate tracker for external data providers
Records calls against a provider's soft limit for self-reporting only
"""

from collections import deque
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from flightpath.utils.logger import get_logger


class RateTracker:
    """
    Tracks provider calls per minute and per hour

    Never blocks or rejects a call. Providers publish their soft hourly limit
    and the tracker reports how close the process is to it.
    """

    def __init__(self, provider: str, hourly_limit: int, logger=None):
        """
        Initialize rate tracker

        Args:
            provider: Provider name used in log messages
            hourly_limit: Soft limit of calls per hour
            logger: Logger instance
        """
        self.provider = provider
        self.hourly_limit = hourly_limit
        self.logger = logger or get_logger()

        self.call_history = {
            'minute': deque(),
            'hour': deque()
        }

        self.stats = {
            'total_calls': 0,
            'limit_warnings': 0
        }

    def record_call(self, now: Optional[datetime] = None):
        """Record a provider call"""
        now = now or datetime.now(timezone.utc)

        self.call_history['minute'].append(now)
        self.call_history['hour'].append(now)
        self.stats['total_calls'] += 1

        self._clean_old_entries(now)
        if len(self.call_history['hour']) == self.hourly_limit:
            self.stats['limit_warnings'] += 1
            self.logger.warning(
                f"{self.provider}: soft rate limit of {self.hourly_limit} calls/hour reached"
            )

    def _clean_old_entries(self, now: datetime):
        """Remove expired entries from tracking"""
        cutoff_minute = now - timedelta(seconds=60)
        while self.call_history['minute'] and self.call_history['minute'][0] < cutoff_minute:
            self.call_history['minute'].popleft()

        cutoff_hour = now - timedelta(minutes=60)
        while self.call_history['hour'] and self.call_history['hour'][0] < cutoff_hour:
            self.call_history['hour'].popleft()

    def get_remaining_calls(self, now: Optional[datetime] = None) -> int:
        """Calls left in the current hour before the soft limit"""
        self._clean_old_entries(now or datetime.now(timezone.utc))
        return max(0, self.hourly_limit - len(self.call_history['hour']))

    def get_stats(self) -> Dict:
        """Get rate tracker statistics"""
        remaining = self.get_remaining_calls()

        return {
            'provider': self.provider,
            'total_calls': self.stats['total_calls'],
            'calls_last_minute': len(self.call_history['minute']),
            'calls_last_hour': len(self.call_history['hour']),
            'remaining_this_hour': remaining,
            'hourly_limit': self.hourly_limit,
            'limit_warnings': self.stats['limit_warnings']
        }
