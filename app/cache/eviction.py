"""
Two-phase cleanup that bounds how much the response cache can hold.
"""
import time
import logging
from typing import List, Optional, Tuple

from app.errors import CacheCorruptError
from .core import CACHE_NAMESPACE, CacheEntry
from .store import KeyValueStore

logger = logging.getLogger("cache.eviction")

DEFAULT_KEEP_NEWEST = 50


def cleanup(
    store: KeyValueStore,
    keep_newest: int = DEFAULT_KEEP_NEWEST,
    now: Optional[float] = None,
) -> int:
    """
    Evict expired and excess cache records from the store.

    Phase 1 drops every record that is corrupt or past its expiresAt.
    Phase 2 keeps only the keep_newest most recently written survivors.
    If the scan itself fails, the whole cache namespace is cleared.

    Args:
        store: Store holding the cache records
        keep_newest: Max number of live records to keep
        now: Current epoch time (defaults to time.time())

    Returns:
        Number of records removed
    """
    now = time.time() if now is None else now
    keep_newest = max(0, keep_newest)

    try:
        removed = 0
        survivors: List[Tuple[float, str]] = []

        for key in store.keys():
            if not key.startswith(CACHE_NAMESPACE):
                continue
            raw = store.get(key)
            if raw is None:
                continue
            try:
                entry = CacheEntry.from_json(raw, key)
            except CacheCorruptError:
                store.delete(key)
                removed += 1
                continue

            if entry.is_expired(now):
                store.delete(key)
                removed += 1
            else:
                survivors.append((entry.written_at, key))

        if len(survivors) > keep_newest:
            survivors.sort(key=lambda item: item[0], reverse=True)
            for _, key in survivors[keep_newest:]:
                store.delete(key)
                removed += 1

        if removed:
            logger.info(f"Cache cleanup removed {removed} entries")
        return removed

    except Exception as e:
        logger.warning(f"Cache cleanup scan failed, clearing namespace: {e}")
        return clear_namespace(store)


def clear_namespace(store: KeyValueStore) -> int:
    """
    Delete every cache record from the store.

    Returns:
        Number of records removed
    """
    removed = 0
    try:
        for key in store.keys():
            if key.startswith(CACHE_NAMESPACE):
                store.delete(key)
                removed += 1
    except Exception as e:
        logger.error(f"Failed to clear cache namespace: {e}")
    if removed:
        logger.info(f"Cleared {removed} cache entries")
    return removed
