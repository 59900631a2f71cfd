"""
Seeded Fisher-Yates shuffling and truncation.
"""
import math
from typing import Any, Callable, Dict, List, Sequence, TypeVar

from .prng import RandomSource, SineRandom

T = TypeVar("T")

RandomFactory = Callable[[int], RandomSource]

# Discount thresholds (percent) and weights for weighted rotation
WEIGHT_CONFIG = {
    "discount_threshold_high": 30,
    "discount_threshold_medium": 20,
    "weight_high_discount": 3,
    "weight_medium_discount": 2,
    "weight_normal": 1,
}


def shuffle(
    items: Sequence[T],
    seed: int,
    random_factory: RandomFactory = SineRandom,
) -> List[T]:
    """
    Deterministic Fisher-Yates shuffle.

    Walks from the last index down to 1, swapping each position with a
    draw from the not-yet-shuffled prefix. One generator is used for the
    whole pass, so the same items and seed always give the same order.
    The input is not modified.
    """
    shuffled = list(items)
    rng = random_factory(seed)
    for m in range(len(shuffled) - 1, 0, -1):
        i = math.floor(rng.next() * (m + 1))
        shuffled[m], shuffled[i] = shuffled[i], shuffled[m]
    return shuffled


def take(items: Sequence[T], count: int) -> List[T]:
    """First `count` items, with count clamped to [0, len(items)]."""
    count = max(0, min(count, len(items)))
    return list(items[:count])


def sample(
    items: Sequence[T],
    seed: int,
    count: int,
    random_factory: RandomFactory = SineRandom,
) -> List[T]:
    """Shuffle with `seed` and keep the first `count` items."""
    return take(shuffle(items, seed, random_factory), count)


def discount_weight(item: Dict[str, Any]) -> int:
    """Rotation weight for a catalog item based on its discount percent."""
    try:
        discount = float(item.get("discount") or 0)
    except (TypeError, ValueError):
        discount = 0
    if discount >= WEIGHT_CONFIG["discount_threshold_high"]:
        return WEIGHT_CONFIG["weight_high_discount"]
    if discount >= WEIGHT_CONFIG["discount_threshold_medium"]:
        return WEIGHT_CONFIG["weight_medium_discount"]
    return WEIGHT_CONFIG["weight_normal"]


def weighted_shuffle(
    items: Sequence[T],
    seed: int,
    weight_fn: Callable[[T], float] = discount_weight,
    random_factory: RandomFactory = SineRandom,
) -> List[T]:
    """
    Fisher-Yates variant where swaps depend on item weights.

    Each step picks a partner j as usual, then only swaps when a second
    draw lands in j's share of the combined weight. The result is still
    a permutation of the input and still deterministic for a seed, but
    no longer uniform.
    """
    shuffled = list(items)
    rng = random_factory(seed)
    for m in range(len(shuffled) - 1, 0, -1):
        weight_m = weight_fn(shuffled[m])
        j = math.floor(rng.next() * (m + 1))
        weight_j = weight_fn(shuffled[j])
        if rng.next() * (weight_m + weight_j) < weight_j:
            shuffled[m], shuffled[j] = shuffled[j], shuffled[m]
    return shuffled
