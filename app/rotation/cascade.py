"""
Query relaxation for candidate pools.

Tiers are tried strictly in order and the first non-empty result wins,
so adding or removing a relaxation step is a one-line change to a tier
list.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from app.errors import UpstreamUnavailableError

logger = logging.getLogger("rotation.cascade")

# query_fn(params) -> (items, served_from_cache)
QueryFn = Callable[[Dict[str, Any]], Tuple[List[Dict[str, Any]], bool]]


@dataclass
class QueryTier:
    """One set of filter parameters in a relaxation cascade."""
    name: str
    params: Dict[str, Any]


@dataclass
class CascadeResult:
    """Items from the first productive tier, plus how we got there."""
    items: List[Dict[str, Any]] = field(default_factory=list)
    tier: Optional[str] = None
    tier_index: Optional[int] = None
    from_cache: bool = False
    failures: List[str] = field(default_factory=list)

    @property
    def exhausted(self) -> bool:
        """True if no tier produced any items."""
        return self.tier is None


class FallbackQueryCascade:
    """
    Runs tiers in order until one returns items.

    A tier that raises counts as empty and the cascade moves on. If the
    last tier raises too, the cascade raises UpstreamUnavailableError,
    which callers treat differently from an honest empty result.
    """

    def __init__(self, query_fn: QueryFn, tiers: List[QueryTier]):
        if not tiers:
            raise ValueError("A query cascade needs at least one tier")
        self._query_fn = query_fn
        self.tiers = list(tiers)

    def fetch_candidates(self) -> CascadeResult:
        result = CascadeResult()
        last_error: Optional[Exception] = None

        for index, tier in enumerate(self.tiers):
            try:
                items, from_cache = self._query_fn(tier.params)
                last_error = None
            except Exception as e:
                logger.warning(f"Tier '{tier.name}' failed: {e}")
                result.failures.append(f"{tier.name}: {e}")
                last_error = e
                continue

            if items:
                logger.info(
                    f"Tier '{tier.name}' returned {len(items)} items"
                    f"{' (cached)' if from_cache else ''}"
                )
                result.items = list(items)
                result.tier = tier.name
                result.tier_index = index
                result.from_cache = from_cache
                return result

            logger.info(f"Tier '{tier.name}' returned no items, relaxing")

        if last_error is not None:
            raise UpstreamUnavailableError(
                f"All {len(self.tiers)} query tiers exhausted, last tier failed: {last_error}",
                cause=last_error,
            )

        logger.info("All query tiers returned no items")
        return result
