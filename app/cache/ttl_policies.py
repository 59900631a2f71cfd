"""
Cache lifetimes and HTTP cache headers for each rotation endpoint.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Any


class RotationCategory(Enum):
    """Rotation endpoints with different caching behaviors."""
    FEATURED = "featured"   # hourly rotation, 15 minute revalidate
    HERO = "hero"           # per-minute rotation, 1 minute revalidate


# TTL Configuration by category (in seconds)
TTL_CONFIG: Dict[RotationCategory, Dict[str, Any]] = {
    RotationCategory.FEATURED: {
        "revalidate": 900,        # 15 minutes
        "max_age": 1800,          # 30 minutes for shared caches
        "stale_ttl": 3600,        # 1 hour stale-while-revalidate
        "error_max_age": 300,     # 5 minutes on failure
        "error_stale_ttl": 1800,
    },
    RotationCategory.HERO: {
        "revalidate": 60,         # 1 minute
        "max_age": 60,
        "stale_ttl": 120,
        "error_max_age": 30,      # half the normal lifetime on failure
        "error_stale_ttl": 60,
    },
}


@dataclass(frozen=True)
class CachePolicy:
    """Resolved cache settings for one endpoint."""
    category: RotationCategory
    revalidate: int
    max_age: int
    stale_ttl: int
    error_max_age: int
    error_stale_ttl: int

    def cache_control(self, error: bool = False) -> str:
        """Cache-Control header value for a success or error response."""
        if error:
            return f"public, max-age={self.error_max_age}, stale-while-revalidate={self.error_stale_ttl}"
        return f"public, max-age={self.max_age}, stale-while-revalidate={self.stale_ttl}"


def get_cache_policy(category: RotationCategory) -> CachePolicy:
    """
    Get cache configuration for a rotation category.

    Unknown categories fall back to the featured policy.
    """
    config = TTL_CONFIG.get(category, TTL_CONFIG[RotationCategory.FEATURED])
    return CachePolicy(category=category, **config)
