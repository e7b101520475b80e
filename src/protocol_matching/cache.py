"""
Protocol Cache

TTL-based in-memory cache for protocol lists keyed by
(cancer type, treatment line, include_inactive).
"""

import logging
import time
from dataclasses import dataclass
from threading import Lock
from typing import Any, Awaitable, Callable, Dict, Hashable, Optional

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300


@dataclass
class CacheEntry:
    """Cache entry with value and expiration time."""
    value: Any
    expires_at: float
    created_at: float


class ProtocolCache:
    """
    Thread-safe TTL cache for protocol lists.

    Entries expire by time only; the repository has no invalidation hook.
    Concurrent refreshes of the same key may both hit the loader and the
    last write wins. Stale reads are acceptable, torn writes are not.

    Usage:
        cache = ProtocolCache(default_ttl=300)

        protocols = await cache.get_or_refresh(
            ("NSCLC", "first", False),
            lambda: repository.get_protocols_for_cancer("NSCLC", TreatmentLine.FIRST),
        )

        cache.clear()
    """

    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        max_size: int = 256,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the cache.

        Args:
            default_ttl: Default time-to-live in seconds (default: 5 minutes)
            max_size: Maximum number of keys before the oldest is evicted
            clock: Time source, injectable for tests
        """
        self._cache: Dict[Hashable, CacheEntry] = {}
        self._lock = Lock()
        self._clock = clock
        self.default_ttl = default_ttl
        self.max_size = max_size

        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def get(self, key: Hashable) -> Optional[Any]:
        """
        Get value from cache if present and not expired.

        Returns:
            Cached value or None if not found/expired
        """
        with self._lock:
            entry = self._cache.get(key)

            if entry is None:
                self._misses += 1
                return None

            if self._clock() >= entry.expires_at:
                del self._cache[key]
                self._misses += 1
                return None

            self._hits += 1
            return entry.value

    def set(self, key: Hashable, value: Any, ttl: Optional[float] = None) -> None:
        """Store a value with a TTL (default_ttl if None)."""
        with self._lock:
            if len(self._cache) >= self.max_size and key not in self._cache:
                self._evict_oldest()

            ttl = self.default_ttl if ttl is None else ttl
            now = self._clock()
            self._cache[key] = CacheEntry(value=value, expires_at=now + ttl, created_at=now)

    async def get_or_refresh(
        self,
        key: Hashable,
        loader: Callable[[], Awaitable[Any]],
        ttl: Optional[float] = None,
    ) -> Any:
        """
        Return the cached value for key, loading and storing it on a miss.

        Loader failures propagate and nothing is cached.

        Args:
            key: Cache key
            loader: Coroutine factory producing the fresh value
            ttl: Time-to-live for a refreshed entry

        Returns:
            Cached or freshly loaded value
        """
        with self._lock:
            entry = self._cache.get(key)
            if entry is not None and self._clock() < entry.expires_at:
                self._hits += 1
                logger.debug(f"Protocol cache hit: {key}")
                return entry.value
            self._misses += 1

        logger.debug(f"Protocol cache miss: {key}")
        value = await loader()
        self.set(key, value, ttl)
        return value

    def delete(self, key: Hashable) -> bool:
        with self._lock:
            if key in self._cache:
                del self._cache[key]
                return True
            return False

    def clear(self) -> None:
        """Clear all cached values."""
        with self._lock:
            self._cache.clear()
        logger.info("Protocol cache cleared")

    def cleanup_expired(self) -> int:
        """
        Remove all expired entries.

        Returns:
            Number of entries removed
        """
        with self._lock:
            now = self._clock()
            expired_keys = [key for key, entry in self._cache.items() if now >= entry.expires_at]
            for key in expired_keys:
                del self._cache[key]

        if expired_keys:
            logger.debug(f"Removed {len(expired_keys)} expired protocol cache entries")
        return len(expired_keys)

    def _evict_oldest(self) -> None:
        """Evict the oldest entry. Caller holds the lock."""
        if not self._cache:
            return
        oldest_key = min(self._cache, key=lambda k: self._cache[k].created_at)
        del self._cache[oldest_key]
        self._evictions += 1

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            total = self._hits + self._misses
            return {
                "size": len(self._cache),
                "max_size": self.max_size,
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
                "hit_rate": round(self._hits / total, 3) if total else 0.0,
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
