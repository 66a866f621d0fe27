"""
Request analytics counters.

Monotonically increasing counters for the routing outcomes of
process_message calls. Each increment is atomic; snapshots are not
required to be consistent across counters.
"""

import threading

from .models import AnalyticsSnapshot


class AnalyticsCounter:
    """Thread-safe outcome counters exposed as read-only snapshots."""

    def __init__(self):
        self._lock = threading.Lock()
        self._total_requests = 0
        self._cache_hits = 0
        self._local_hits = 0
        self._api_hits = 0
        self._fallback_responses = 0
        self._errors = 0

    def record_request(self) -> None:
        with self._lock:
            self._total_requests += 1

    def record_cache_hit(self) -> None:
        with self._lock:
            self._cache_hits += 1

    def record_local_hit(self) -> None:
        with self._lock:
            self._local_hits += 1

    def record_api_hit(self) -> None:
        with self._lock:
            self._api_hits += 1

    def record_fallback(self) -> None:
        with self._lock:
            self._fallback_responses += 1

    def record_error(self) -> None:
        with self._lock:
            self._errors += 1

    def snapshot(self, cache_size: int = 0) -> AnalyticsSnapshot:
        """
        Take a read-only copy of the counters.

        Args:
            cache_size: Current response cache size to include.

        Returns:
            AnalyticsSnapshot: Counts plus derived rates.
        """
        with self._lock:
            return AnalyticsSnapshot(
                total_requests=self._total_requests,
                cache_hits=self._cache_hits,
                local_hits=self._local_hits,
                api_hits=self._api_hits,
                fallback_responses=self._fallback_responses,
                errors=self._errors,
                cache_size=cache_size
            )
