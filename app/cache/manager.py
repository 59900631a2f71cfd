"""
Process-wide response cache built from settings.
"""
import logging
from typing import Optional

from config.settings import settings

from .store import create_store
from .ttl_cache import TTLCache

logger = logging.getLogger("cache.manager")


# Global response cache instance
_response_cache: Optional[TTLCache] = None


def get_response_cache() -> TTLCache:
    """Get or create the global response cache."""
    global _response_cache
    if _response_cache is None:
        store = create_store(settings.cache_backend, settings.cache_directory)
        _response_cache = TTLCache(
            store,
            keep_newest=settings.cache_keep_newest,
            enabled=settings.cache_enabled,
        )
        logger.info(
            f"Response cache ready (backend={settings.cache_backend}, "
            f"enabled={settings.cache_enabled})"
        )
    return _response_cache


def set_response_cache(cache: Optional[TTLCache]) -> None:
    """Replace the global response cache; None rebuilds it lazily from settings."""
    global _response_cache
    _response_cache = cache
