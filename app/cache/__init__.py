"""
Response caching with TTL expiry, bounded eviction and pluggable stores.
"""
from .core import CacheEntry, CacheReadResult, FetchState, FetchStatus, CACHE_NAMESPACE
from .keys import generate_cache_key
from .store import KeyValueStore, MemoryStore, SQLiteStore, create_store
from .eviction import cleanup, clear_namespace
from .ttl_cache import TTLCache
from .ttl_policies import (
    TTL_CONFIG,
    CachePolicy,
    RotationCategory,
    get_cache_policy,
)
from .orchestrator import CachedFetchOrchestrator
from .manager import get_response_cache, set_response_cache

__all__ = [
    # Core types
    "CacheEntry",
    "CacheReadResult",
    "FetchState",
    "FetchStatus",
    "CACHE_NAMESPACE",
    # Keys
    "generate_cache_key",
    # Stores
    "KeyValueStore",
    "MemoryStore",
    "SQLiteStore",
    "create_store",
    # Eviction
    "cleanup",
    "clear_namespace",
    # TTL cache
    "TTLCache",
    # TTL policies
    "TTL_CONFIG",
    "CachePolicy",
    "RotationCategory",
    "get_cache_policy",
    # Fetch lifecycle
    "CachedFetchOrchestrator",
    # Manager
    "get_response_cache",
    "set_response_cache",
]
