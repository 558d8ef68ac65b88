import logging
import threading
import time
from typing import Any, Callable, Hashable, Optional

logger = logging.getLogger(__name__)


class InsightCache:
    """
    TTL cache with a single get-or-compute entry point.

    Entries are stored as key -> (value, inserted_at). One lock guards both
    lookup and computation, so concurrent callers for a missing key never
    compute it twice. The clock is injectable to keep expiry testable.
    """

    def __init__(self, ttl_seconds: float, clock: Optional[Callable[[], float]] = None):
        self.ttl_seconds = ttl_seconds
        self.clock = clock or time.monotonic
        self._entries: dict[Hashable, tuple[Any, float]] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get_or_compute(self, key: Hashable, compute: Callable[[], Any]) -> Any:
        with self._lock:
            now = self.clock()
            entry = self._entries.get(key)
            if entry is not None:
                value, inserted_at = entry
                if now - inserted_at < self.ttl_seconds:
                    self._hits += 1
                    logger.debug("Insight cache hit for %s", key)
                    return value
                del self._entries[key]

            self._misses += 1
            logger.debug("Insight cache miss for %s", key)
            value = compute()
            self._entries[key] = (value, self.clock())
            return value

    def invalidate(self, predicate: Callable[[Hashable], bool]) -> int:
        """Drop every entry whose key matches the predicate. Returns the count dropped."""
        with self._lock:
            stale = [key for key in self._entries if predicate(key)]
            for key in stale:
                del self._entries[key]
            return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> dict:
        with self._lock:
            return {
                "size": len(self._entries),
                "hits": self._hits,
                "misses": self._misses,
                "ttl_seconds": self.ttl_seconds,
            }
