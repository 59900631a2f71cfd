"""
Best-effort TTL cache over a key-value store.

Nothing in here may break the caller: every storage or decoding failure
is turned into a miss (on read) or a dropped write.
"""
import time
import threading
import logging
from typing import Any, Callable, Dict, Optional

from app.errors import CacheCorruptError
from .core import CACHE_NAMESPACE, CacheEntry, CacheReadResult
from .eviction import DEFAULT_KEEP_NEWEST, cleanup
from .store import KeyValueStore

logger = logging.getLogger("cache.ttl")

# Five minutes, matching the default fetch cache lifetime
DEFAULT_MAX_AGE = 300.0


class TTLCache:
    """
    Reads and writes timestamped records under the "cache_" namespace.

    Usage:
        cache = TTLCache(MemoryStore())
        cache.write("rotation|limit:4", {"items": [...]}, max_age=1800)
        result = cache.read("rotation|limit:4", max_age=1800)
        if result.hit:
            ...
    """

    def __init__(
        self,
        store: KeyValueStore,
        clock: Callable[[], float] = time.time,
        keep_newest: int = DEFAULT_KEEP_NEWEST,
        enabled: bool = True,
    ):
        """
        Args:
            store: Backing key-value store
            clock: Returns the current epoch time in seconds
            keep_newest: Capacity used when a failed write triggers eviction
            enabled: When False every read misses and writes are skipped
        """
        self.store = store
        self._clock = clock
        self._keep_newest = keep_newest
        self.enabled = enabled

        self._stats_lock = threading.Lock()
        self._stats = {
            "hits": 0,
            "misses": 0,
            "writes": 0,
            "write_failures": 0,
            "corrupt": 0,
            "expired": 0,
        }

    @staticmethod
    def storage_key(key: str) -> str:
        return f"{CACHE_NAMESPACE}{key}"

    def _count(self, stat: str) -> None:
        with self._stats_lock:
            self._stats[stat] += 1

    def read(self, key: str, max_age: float = DEFAULT_MAX_AGE) -> CacheReadResult:
        """
        Look up a key.

        Returns a miss if the record is absent, corrupt, or at least
        max_age seconds old. Corrupt and expired records are deleted.
        """
        if not self.enabled:
            return CacheReadResult(hit=False)

        storage_key = self.storage_key(key)
        try:
            raw = self.store.get(storage_key)
        except Exception as e:
            logger.warning(f"Cache read failed for {key}: {e}")
            self._count("misses")
            return CacheReadResult(hit=False)

        if raw is None:
            logger.debug(f"CACHE MISS: {key}")
            self._count("misses")
            return CacheReadResult(hit=False)

        try:
            entry = CacheEntry.from_json(raw, key)
        except CacheCorruptError as e:
            logger.warning(f"Dropping corrupt cache entry {key}: {e}")
            self._count("corrupt")
            self._count("misses")
            self._delete_quietly(storage_key)
            return CacheReadResult(hit=False)

        age = entry.age_seconds(self._clock())
        if age >= max_age:
            logger.debug(f"CACHE EXPIRED: {key} [age={age:.1f}s]")
            self._count("expired")
            self._count("misses")
            self._delete_quietly(storage_key)
            return CacheReadResult(hit=False)

        logger.debug(f"CACHE HIT: {key} [age={age:.1f}s]")
        self._count("hits")
        return CacheReadResult(hit=True, data=entry.data, age=age)

    def write(self, key: str, data: Any, max_age: float = DEFAULT_MAX_AGE) -> bool:
        """
        Store data under key for max_age seconds.

        On failure, runs eviction once and drops the write.

        Returns:
            True if the record was stored
        """
        if not self.enabled:
            return False

        now = self._clock()
        entry = CacheEntry(data=data, written_at=now, expires_at=now + max_age)
        try:
            self.store.set(self.storage_key(key), entry.to_json())
        except Exception as e:
            logger.warning(f"Cache write failed for {key}, running cleanup: {e}")
            self._count("write_failures")
            self.cleanup()
            return False

        self._count("writes")
        return True

    def cleanup(self, keep_newest: Optional[int] = None) -> int:
        """Run eviction against the backing store."""
        if keep_newest is None:
            keep_newest = self._keep_newest
        return cleanup(self.store, keep_newest=keep_newest, now=self._clock())

    def _delete_quietly(self, storage_key: str) -> None:
        try:
            self.store.delete(storage_key)
        except Exception as e:
            logger.warning(f"Failed to delete cache record {storage_key}: {e}")

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        with self._stats_lock:
            stats = dict(self._stats)
        lookups = stats["hits"] + stats["misses"]
        stats["hit_rate_percent"] = round(stats["hits"] / lookups * 100, 1) if lookups else 0
        stats["enabled"] = self.enabled
        try:
            stats["entries"] = sum(
                1 for key in self.store.keys() if key.startswith(CACHE_NAMESPACE)
            )
        except Exception as e:
            logger.warning(f"Could not count cache entries: {e}")
            stats["entries"] = None
        return stats
