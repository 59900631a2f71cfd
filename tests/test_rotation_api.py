"""
Rotation endpoint tests.

The catalog API is replaced by a fake at the HTTP client seam so the whole
path (cascade, response cache, shuffle, headers) runs for real.
"""
import pytest
import requests
from datetime import datetime, timezone
from fastapi.testclient import TestClient

from app import api_client
from app.cache import MemoryStore, TTLCache, set_response_cache
from app.main import app
from app.rotation import FeaturedRotation, HeroRotation
from config.settings import settings

client = TestClient(app)


def make_products(count: int, start: int = 0):
    return [
        {
            "asin": f"B{i:04d}",
            "title": f"Product {i}",
            "url": f"https://shop.test/p/{i}",
            "brand": "Acme",
            "discount": (i * 7) % 50,
            "offers": [{"savings_percentage": 10 + i % 40}],
        }
        for i in range(start, start + count)
    ]


class FakeCatalog:
    """Stands in for api_client.get_json."""

    def __init__(self, responder):
        self.responder = responder
        self.calls = []

    def __call__(self, url, params=None):
        self.calls.append(dict(params or {}))
        return self.responder(params or {})


@pytest.fixture(autouse=True)
def fresh_cache():
    set_response_cache(TTLCache(MemoryStore()))
    yield
    set_response_cache(None)


@pytest.fixture
def catalog(monkeypatch):
    fake = FakeCatalog(lambda params: {"data": {"items": make_products(20)}})
    monkeypatch.setattr(api_client, "get_json", fake)
    return fake


@pytest.fixture
def dead_catalog(monkeypatch):
    def refuse(params):
        raise requests.ConnectionError("connection refused")
    fake = FakeCatalog(refuse)
    monkeypatch.setattr(api_client, "get_json", fake)
    return fake


FIXED_NOW = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)


def fixed_clock():
    return FIXED_NOW


# =============================================================================
# HTTP Endpoint Tests
# =============================================================================

class TestFeaturedEndpoint:
    """Tests for GET /rotation/featured."""

    def test_returns_limited_products(self, catalog):
        response = client.get("/rotation/featured?limit=3")
        assert response.status_code == 200

        body = response.json()
        assert body["success"] is True
        assert len(body["data"]) == 3
        assert set(body["meta"]) == {"seed", "cached", "expires", "responseTime"}

    def test_default_limit(self, catalog):
        body = client.get("/rotation/featured").json()
        assert len(body["data"]) == 4

    def test_cache_headers(self, catalog):
        response = client.get("/rotation/featured")
        assert response.headers["cache-control"] == "public, max-age=1800, stale-while-revalidate=3600"
        assert response.headers["x-cache-revalidate"] == "900"
        assert response.headers["x-cache-random-seed"] == str(response.json()["meta"]["seed"])
        assert response.headers["x-response-time"].endswith("ms")
        assert response.headers["x-cache-expires"].endswith("Z")

    def test_pool_served_from_cache_on_second_request(self, catalog):
        first = client.get("/rotation/featured").json()
        second = client.get("/rotation/featured").json()

        assert first["meta"]["cached"] is False
        assert second["meta"]["cached"] is True
        assert len(catalog.calls) == 1
        if first["meta"]["seed"] == second["meta"]["seed"]:
            assert first["data"] == second["data"]

    def test_relaxes_filters_when_strict_query_is_empty(self, monkeypatch):
        def responder(params):
            if params.get("sort_by") == "random":
                return {"items": []}
            return {"items": make_products(5)}
        fake = FakeCatalog(responder)
        monkeypatch.setattr(api_client, "get_json", fake)

        body = client.get("/rotation/featured?limit=10").json()

        assert body["success"] is True
        assert len(body["data"]) == 5
        assert [c.get("sort_by") for c in fake.calls] == ["random", "discount"]

    def test_catalog_down_returns_500_json(self, dead_catalog):
        response = client.get("/rotation/featured")

        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert body["data"] == []
        assert body["meta"]["cached"] is False
        assert response.headers["cache-control"] == "public, max-age=300, stale-while-revalidate=1800"
        assert response.headers["x-cache-error"] == "true"
        # Every tier was tried before giving up
        assert len(dead_catalog.calls) == 3

    @pytest.mark.parametrize("raw, expected", [("-5", 0), ("abc", 4), ("0", 0), ("7", 7)])
    def test_limit_is_clamped(self, catalog, raw, expected):
        body = client.get(f"/rotation/featured?limit={raw}").json()
        assert len(body["data"]) == expected

    def test_absurd_limit_capped(self, catalog):
        body = client.get("/rotation/featured?limit=100000").json()
        assert body["success"] is True
        assert len(body["data"]) == 20


class TestHeroEndpoint:
    """Tests for GET /rotation/hero."""

    def test_returns_products_and_promo_cards(self, catalog):
        response = client.get("/rotation/hero")
        assert response.status_code == 200

        body = response.json()
        assert len(body["data"]) == 3
        assert len(body["promoCards"]) == 3
        assert [card["productId"] for card in body["promoCards"]] == [p["asin"] for p in body["data"]]
        assert response.headers["cache-control"] == "public, max-age=60, stale-while-revalidate=120"

    def test_strict_query_uses_seeded_page(self, catalog):
        body = client.get("/rotation/hero").json()
        first_query = catalog.calls[0]

        assert first_query["is_prime_only"] == "true"
        assert first_query["page"] == HeroRotation.seed_page(body["meta"]["seed"])

    def test_catalog_down_serves_fallback_cards(self, dead_catalog):
        response = client.get("/rotation/hero")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is False
        assert body["data"] == []
        assert [card["id"] for card in body["promoCards"]] == [1, 2, 3]
        assert response.headers["cache-control"] == "public, max-age=30, stale-while-revalidate=60"
        assert response.headers["x-cache-source"] == "generated-error"


# =============================================================================
# Provider Tests (fixed clock)
# =============================================================================

class TestRotationProvider:
    """Tests for rotation providers with an injected query and clock."""

    def test_same_window_same_selection(self):
        pool = make_products(30)
        provider = FeaturedRotation(query_fn=lambda params: (pool, False), clock=fixed_clock)

        first = provider.rotate(5)
        second = provider.rotate(5, now=FIXED_NOW.replace(minute=59))

        assert first.body["meta"]["seed"] == 2024011510
        assert first.body["data"] == second.body["data"]

    def test_meta_and_expiry(self):
        provider = FeaturedRotation(query_fn=lambda params: (make_products(10), True), clock=fixed_clock)
        response = provider.rotate()

        assert response.body["meta"]["cached"] is True
        assert response.body["meta"]["expires"] == "2024-01-15T10:45:00.000Z"
        assert response.headers["X-Cache-Source"] == "cache-hit"
        assert response.headers["X-Cache-Generated"] == "2024-01-15T10:30:00.000Z"

    def test_exhausted_pool_is_empty_success(self):
        provider = FeaturedRotation(query_fn=lambda params: ([], False), clock=fixed_clock)
        response = provider.rotate()

        assert response.status_code == 200
        assert response.body["success"] is True
        assert response.body["data"] == []

    def test_weighted_featured_is_permutation_subset(self):
        pool = make_products(12)
        provider = FeaturedRotation(
            query_fn=lambda params: (pool, False), clock=fixed_clock, weighted=True,
        )
        data = provider.rotate(12).body["data"]
        assert sorted(p["asin"] for p in data) == sorted(p["asin"] for p in pool)

    def test_hero_uses_minute_seed(self):
        provider = HeroRotation(query_fn=lambda params: (make_products(8), False), clock=fixed_clock)
        response = provider.rotate("2")

        assert response.body["meta"]["seed"] == 202401151030
        assert len(response.body["promoCards"]) == 2
        assert response.body["meta"]["expires"] == "2024-01-15T10:31:00.000Z"

    def test_seed_page_in_range(self):
        for seed in (202401151030, 202401151031, 202412312359):
            assert 1 <= HeroRotation.seed_page(seed) <= 50

    def test_clock_failure_serves_hero_fallback(self):
        def broken_clock():
            raise RuntimeError("clock unavailable")

        provider = HeroRotation(query_fn=lambda params: (make_products(8), False), clock=broken_clock)
        response = provider.rotate()

        assert response.status_code == 200
        assert response.body["success"] is False
        assert len(response.body["promoCards"]) == 3
        assert response.headers["X-Cache-Error"] == "true"

    def test_unknown_timezone_is_degraded_response(self, monkeypatch):
        monkeypatch.setattr(settings, "rotation_timezone", "Not/A_Zone")
        provider = FeaturedRotation(query_fn=lambda params: (make_products(8), False))
        response = provider.rotate()

        assert response.status_code == 500
        assert response.body["data"] == []
        assert response.headers["X-Cache-Source"] == "generated-error"
