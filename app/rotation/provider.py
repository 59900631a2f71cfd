"""
Rotation providers for the featured and hero endpoints.

Each request derives a window seed, runs the query cascade for a
candidate pool, shuffles the pool with that seed and truncates it.
Identical windows therefore produce identical selections.
"""
import math
import time
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any, Callable, Dict, List, Optional, Tuple
from zoneinfo import ZoneInfo

from app import api_client
from app.cache import CachePolicy, RotationCategory, get_cache_policy
from app.errors import UpstreamUnavailableError
from app.utils.helpers import clamp, safe_int
from app.view_models import fallback_promo_cards, products_to_promo_cards
from config.settings import settings

from .cascade import CascadeResult, FallbackQueryCascade, QueryFn, QueryTier
from .prng import next_value
from .sampler import shuffle, take, weighted_shuffle
from .seed import Granularity, derive_seed

logger = logging.getLogger("rotation.provider")

# Number of catalog pages the hero rotation spreads its strict query over
HERO_PAGE_SPREAD = 50


@dataclass
class RotationResponse:
    """Everything an HTTP layer needs to answer a rotation request."""
    body: Dict[str, Any]
    status_code: int = 200
    headers: Dict[str, str] = field(default_factory=dict)


def to_iso(moment: datetime) -> str:
    """UTC ISO-8601 with millisecond precision and a Z suffix."""
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def rotation_timezone() -> tzinfo:
    name = settings.rotation_timezone
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def parse_limit(raw: Any, default: int, maximum: int) -> int:
    """Parse a limit query value; junk falls back to default, range is clamped."""
    if raw is None or raw == "":
        value = default
    else:
        value = safe_int(raw, default)
    return clamp(value, 0, maximum)


def catalog_query(max_age: float) -> QueryFn:
    """Query function for the cascade, backed by the cached catalog client."""
    def query(params: Dict[str, Any]) -> Tuple[List[Dict[str, Any]], bool]:
        return api_client.list_products(params, max_age=max_age)
    return query


class RotationProvider:
    """
    Base rotation: seed -> cascade -> shuffle -> truncate -> cache headers.

    Subclasses pick the window granularity, the relaxation tiers and the
    response body shape.
    """

    category: RotationCategory = RotationCategory.FEATURED
    granularity: Granularity = Granularity.HOUR
    default_limit: int = 4
    error_status: int = 500

    def __init__(
        self,
        query_fn: Optional[QueryFn] = None,
        clock: Optional[Callable[[], datetime]] = None,
        max_limit: Optional[int] = None,
    ):
        """
        Args:
            query_fn: Fetches one tier; defaults to the cached catalog client
            clock: Returns the current aware datetime
            max_limit: Upper bound for the limit parameter
        """
        self.policy: CachePolicy = get_cache_policy(self.category)
        self._query_fn = query_fn or catalog_query(self.pool_ttl())
        self._clock = clock or (lambda: datetime.now(rotation_timezone()))
        self.max_limit = settings.max_rotation_limit if max_limit is None else max_limit

    def pool_ttl(self) -> float:
        raise NotImplementedError

    def build_tiers(self, seed: int) -> List[QueryTier]:
        raise NotImplementedError

    def order(self, items: List[Dict[str, Any]], seed: int) -> List[Dict[str, Any]]:
        return shuffle(items, seed)

    def success_body(self, items: List[Dict[str, Any]], meta: Dict[str, Any]) -> Dict[str, Any]:
        return {"success": True, "data": items, "meta": meta}

    def failure_body(self, meta: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "success": False,
            "data": [],
            "error": f"Failed to fetch {self.category.value} products",
            "meta": meta,
        }

    def _base_headers(self, now: datetime, expires_at: datetime) -> Dict[str, str]:
        return {
            "X-Cache-Config": "enabled",
            "X-Cache-Revalidate": str(self.policy.revalidate),
            "X-Cache-Revalidate-Unit": "seconds",
            "X-Cache-Max-Age": str(self.policy.revalidate),
            "X-Cache-Expires": to_iso(expires_at),
            "X-Cache-Generated": to_iso(now),
        }

    def rotate(self, limit: Any = None, now: Optional[datetime] = None) -> RotationResponse:
        """
        Build the rotation response for the window containing `now`.

        Never raises: a dead catalog becomes a degraded response.
        """
        started = time.perf_counter()
        try:
            now = now or self._clock()
        except Exception:
            # e.g. an unknown rotation_timezone
            logger.exception(f"{self.category.value} rotation clock failed")
            now = datetime.now(timezone.utc)
            return self._failure(now, now + timedelta(seconds=self.policy.revalidate))
        count = parse_limit(limit, self.default_limit, self.max_limit)
        seed = derive_seed(now, self.granularity)
        expires_at = now + timedelta(seconds=self.policy.revalidate)

        try:
            cascade = FallbackQueryCascade(self._query_fn, self.build_tiers(seed))
            result: CascadeResult = cascade.fetch_candidates()
            selected = take(self.order(result.items, seed), count)
        except UpstreamUnavailableError as e:
            logger.error(f"{self.category.value} rotation failed: {e}")
            return self._failure(now, expires_at)
        except Exception:
            logger.exception(f"{self.category.value} rotation failed unexpectedly")
            return self._failure(now, expires_at)

        response_time = int((time.perf_counter() - started) * 1000)
        if result.exhausted:
            logger.warning(f"{self.category.value} rotation found no candidates")

        meta = {
            "seed": seed,
            "cached": result.from_cache,
            "expires": to_iso(expires_at),
            "responseTime": response_time,
        }
        headers = self._base_headers(now, expires_at)
        headers.update({
            "X-Cache-Source": "cache-hit" if result.from_cache else "generated",
            "X-Cache-Random-Seed": str(seed),
            "X-Response-Time": f"{response_time}ms",
            "Cache-Control": self.policy.cache_control(),
        })
        return RotationResponse(body=self.success_body(selected, meta), headers=headers)

    def _failure(self, now: datetime, expires_at: datetime) -> RotationResponse:
        headers = self._base_headers(now, expires_at)
        headers.update({
            "X-Cache-Source": "generated-error",
            "X-Cache-Error": "true",
            "Cache-Control": self.policy.cache_control(error=True),
        })
        meta = {"cached": False, "expires": to_iso(expires_at)}
        return RotationResponse(
            body=self.failure_body(meta),
            status_code=self.error_status,
            headers=headers,
        )


class FeaturedRotation(RotationProvider):
    """Hourly featured products: large discounted pool, relaxed twice."""

    category = RotationCategory.FEATURED
    granularity = Granularity.HOUR
    default_limit = 4
    error_status = 500

    def __init__(self, *args, weighted: Optional[bool] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.weighted = settings.featured_weighted_shuffle if weighted is None else weighted

    def pool_ttl(self) -> float:
        return settings.featured_pool_ttl_seconds

    def build_tiers(self, seed: int) -> List[QueryTier]:
        common = {"product_type": "all", "sort_order": "desc"}
        return [
            QueryTier("discounted-random", {"limit": 200, "min_discount": 10, "sort_by": "random", **common}),
            QueryTier("discounted", {"limit": 50, "min_discount": 10, "sort_by": "discount", **common}),
            QueryTier("any", {"limit": 50, "sort_by": "discount", **common}),
        ]

    def order(self, items: List[Dict[str, Any]], seed: int) -> List[Dict[str, Any]]:
        if self.weighted:
            return weighted_shuffle(items, seed)
        return shuffle(items, seed)


class HeroRotation(RotationProvider):
    """
    Per-minute hero banner products with promo cards.

    Failures answer 200 with static cards so the page still renders.
    """

    category = RotationCategory.HERO
    granularity = Granularity.MINUTE
    default_limit = 3
    error_status = 200

    def pool_ttl(self) -> float:
        return settings.hero_pool_ttl_seconds

    @staticmethod
    def seed_page(seed: int) -> int:
        """Catalog page for the strict tier, fixed for the whole window."""
        value, _ = next_value(seed)
        return math.floor(value * HERO_PAGE_SPREAD) + 1

    def build_tiers(self, seed: int) -> List[QueryTier]:
        common = {"page_size": 50, "product_type": "all", "sort_by": "discount", "sort_order": "desc"}
        return [
            QueryTier("prime-deals", {
                "page": self.seed_page(seed),
                "min_price": 3,
                "max_price": 700,
                "min_discount": 20,
                "is_prime_only": "true",
                **common,
            }),
            QueryTier("deals", {"page": 1, "min_price": 3, "max_price": 700, "min_discount": 10, **common}),
            QueryTier("any", {"page": 1, **common}),
        ]

    def success_body(self, items: List[Dict[str, Any]], meta: Dict[str, Any]) -> Dict[str, Any]:
        body = super().success_body(items, meta)
        body["promoCards"] = products_to_promo_cards(items)
        return body

    def failure_body(self, meta: Dict[str, Any]) -> Dict[str, Any]:
        body = super().failure_body(meta)
        body["promoCards"] = fallback_promo_cards()
        return body


# Global provider instances
_featured: Optional[FeaturedRotation] = None
_hero: Optional[HeroRotation] = None


def get_featured_rotation() -> FeaturedRotation:
    global _featured
    if _featured is None:
        _featured = FeaturedRotation()
    return _featured


def get_hero_rotation() -> HeroRotation:
    global _hero
    if _hero is None:
        _hero = HeroRotation()
    return _hero
