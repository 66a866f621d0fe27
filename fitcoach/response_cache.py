"""
Response Cache - bounded, time-expiring store of prior responses.

This module implements a response cache keyed by normalized message text.
Entries are valid for a fixed TTL window from creation; expired entries are
treated as absent on read but are only physically removed by eviction.
When an insert would exceed capacity, the oldest-inserted entry is evicted
(insertion order, not access recency).
"""

import re
import threading
import time
from collections import OrderedDict
from typing import Callable, List, Optional

from .models import CacheEntry, CoachResponse


DEFAULT_TTL_SECONDS = 3600.0
DEFAULT_MAX_SIZE = 100

_WHITESPACE = re.compile(r"\s+")


def normalize_key(message: str) -> str:
    """Lower-case, collapse whitespace runs and trim."""
    return _WHITESPACE.sub(" ", (message or "").lower()).strip()


class ResponseCache:
    """
    Insertion-ordered TTL cache for coach responses.

    All operations hold a single lock, so get/put are linearizable and the
    capacity check and eviction happen in one critical section.
    """

    def __init__(
        self,
        max_size: int = DEFAULT_MAX_SIZE,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize the response cache.

        Args:
            max_size: Maximum number of entries to store (default: 100)
            ttl_seconds: Validity window from creation (default: 1 hour)
            clock: Time source in seconds, injectable for tests
        """
        self.cache: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()

    def get(self, message: str) -> Optional[CoachResponse]:
        """
        Get a cached response if it is still inside its TTL window.

        Does not promote the entry and does not evict expired entries.

        Args:
            message: Raw or normalized message text

        Returns:
            CoachResponse if present and fresh, None otherwise
        """
        key = normalize_key(message)
        with self._lock:
            entry = self.cache.get(key)
            if entry is None:
                return None
            if self._clock() - entry.created_at >= self.ttl_seconds:
                return None
            return entry.response

    def put(self, message: str, response: CoachResponse) -> None:
        """
        Insert or overwrite a response, evicting the oldest entry if full.

        Overwriting keeps the key's original insertion position.

        Args:
            message: Raw or normalized message text
            response: Response to store
        """
        key = normalize_key(message)
        with self._lock:
            self.cache[key] = CacheEntry(response=response, created_at=self._clock())

            if len(self.cache) > self.max_size:
                # First item is the oldest inserted
                self.cache.popitem(last=False)

    def clear(self) -> None:
        """Clear all entries from the cache."""
        with self._lock:
            self.cache.clear()

    def size(self) -> int:
        """
        Get the current number of resident entries (fresh or expired).

        Returns:
            Number of entries currently stored
        """
        with self._lock:
            return len(self.cache)

    def contains(self, message: str) -> bool:
        """
        Check if a key is resident, regardless of TTL.

        Args:
            message: Raw or normalized message text

        Returns:
            True if the key is stored, False otherwise
        """
        with self._lock:
            return normalize_key(message) in self.cache

    def get_all_keys(self) -> List[str]:
        """
        Get all keys, ordered from oldest to newest insertion.

        Returns:
            List of normalized keys in insertion order
        """
        with self._lock:
            return list(self.cache.keys())

    def __len__(self) -> int:
        return self.size()
