"""In-memory response cache.

Bounded, time-expiring, least-recently-used map of successful generation
results keyed by request fingerprint. Entries expire lazily on read and
the LRU entry is evicted when an insert would exceed capacity. Values are
deep-copied on the way in and out, so callers never share a cached object.
"""

import copy
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 50
DEFAULT_TTL_SECONDS = 300.0


@dataclass
class CacheEntry:
    """A cached value and its absolute expiry time."""

    value: Any
    expires_at: float


class ResponseCache:
    """LRU cache with a fixed TTL.

    Usage:
        cache = ResponseCache(max_entries=50, ttl_seconds=300)
        cached = cache.get(fingerprint)
        if cached is None:
            cached = await generate()
            cache.put(fingerprint, cached)
    """

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize response cache.

        Args:
            max_entries: Capacity; the LRU entry is evicted beyond this
            ttl_seconds: Lifetime of an entry from insertion
            clock: Monotonic time source in seconds
        """
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0")

        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = threading.Lock()

        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0

        logger.info(f"Response cache initialized: max_entries={max_entries}, ttl={ttl_seconds}s")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, fingerprint: str) -> bool:
        # Does not touch recency or counters
        with self._lock:
            entry = self._entries.get(fingerprint)
            return entry is not None and self._clock() <= entry.expires_at

    def get(self, fingerprint: str, default: Any = None) -> Any:
        """Look up a cached result.

        Args:
            fingerprint: Request fingerprint
            default: Returned when absent or expired

        Returns:
            Cached value or default
        """
        with self._lock:
            entry = self._entries.get(fingerprint)
            if entry is None:
                self._misses += 1
                return default

            if self._clock() > entry.expires_at:
                del self._entries[fingerprint]
                self._expirations += 1
                self._misses += 1
                logger.debug(f"Cache EXPIRED: {fingerprint[:16]}...")
                return default

            self._entries.move_to_end(fingerprint)
            self._hits += 1
            logger.debug(f"Cache HIT: {fingerprint[:16]}...")
            return copy.deepcopy(entry.value)

    def put(self, fingerprint: str, value: Any) -> None:
        """Insert or overwrite a result.

        Args:
            fingerprint: Request fingerprint
            value: Successful result
        """
        with self._lock:
            if fingerprint in self._entries:
                self._entries.move_to_end(fingerprint)
            elif len(self._entries) >= self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                self._evictions += 1
                logger.debug(f"Cache EVICTED (LRU): {evicted[:16]}...")

            self._entries[fingerprint] = CacheEntry(
                value=copy.deepcopy(value),
                expires_at=self._clock() + self.ttl_seconds,
            )

    def clear(self) -> None:
        """Remove all entries."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.info(f"Response cache cleared ({count} entries)")

    def get_status(self) -> dict[str, Any]:
        """Get cache status.

        Returns:
            Status dictionary
        """
        with self._lock:
            lookups = self._hits + self._misses
            return {
                "size": len(self._entries),
                "max_entries": self.max_entries,
                "ttl_seconds": self.ttl_seconds,
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": self._hits / lookups if lookups else 0.0,
                "evictions": self._evictions,
                "expirations": self._expirations,
            }

