"""
Time-windowed content rotation.

Picks a stable pseudo-random subset of catalog items per time window,
on top of a query cascade that relaxes filters when strict ones find nothing.
"""
from .prng import RandomSource, SineRandom, next_value
from .seed import Granularity, derive_seed, window_end, window_start
from .sampler import discount_weight, sample, shuffle, take, weighted_shuffle
from .cascade import CascadeResult, FallbackQueryCascade, QueryTier
from .provider import (
    FeaturedRotation,
    HeroRotation,
    RotationProvider,
    RotationResponse,
    get_featured_rotation,
    get_hero_rotation,
)

__all__ = [
    "RandomSource",
    "SineRandom",
    "next_value",
    "Granularity",
    "derive_seed",
    "window_start",
    "window_end",
    "shuffle",
    "take",
    "sample",
    "weighted_shuffle",
    "discount_weight",
    "QueryTier",
    "CascadeResult",
    "FallbackQueryCascade",
    "RotationProvider",
    "FeaturedRotation",
    "HeroRotation",
    "RotationResponse",
    "get_featured_rotation",
    "get_hero_rotation",
]
