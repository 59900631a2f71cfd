"""
Catalog client and promo card mapping tests
"""
import pytest
import requests

from app import api_client
from app.cache import MemoryStore, TTLCache, set_response_cache
from app.view_models import PromoCardPayload, fallback_promo_cards, products_to_promo_cards
from config.settings import settings


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")

    def json(self):
        return self.payload


@pytest.fixture(autouse=True)
def fresh_cache():
    set_response_cache(TTLCache(MemoryStore()))
    yield
    set_response_cache(None)


# =============================================================================
# Client Tests
# =============================================================================

class TestCatalogClient:
    """Tests for the upstream HTTP client."""

    def test_extract_items_shapes(self):
        assert api_client.extract_items({"data": {"items": [1, 2]}}) == [1, 2]
        assert api_client.extract_items({"items": [3]}) == [3]
        assert api_client.extract_items({"data": {"items": []}, "items": [4]}) == [4]
        assert api_client.extract_items({"data": []}) == []
        assert api_client.extract_items(None) == []

    def test_headers_include_api_key(self, monkeypatch):
        monkeypatch.setattr(settings, "catalog_api_key", "secret")
        headers = api_client._get_headers()
        assert headers["X-API-Key"] == "secret"
        assert headers["Accept"] == "application/json"

    def test_headers_without_api_key(self, monkeypatch):
        monkeypatch.setattr(settings, "catalog_api_key", None)
        assert "X-API-Key" not in api_client._get_headers()

    def test_get_json_raises_on_error_status(self, monkeypatch):
        monkeypatch.setattr(requests, "get", lambda *a, **kw: FakeResponse({}, status_code=503))
        with pytest.raises(requests.HTTPError):
            api_client.get_json("https://catalog.test/api/products/list")

    def test_get_json_passes_params_and_timeout(self, monkeypatch):
        captured = {}

        def fake_get(url, headers=None, params=None, timeout=None):
            captured.update(url=url, params=params, timeout=timeout)
            return FakeResponse({"data": {"items": [1]}})

        monkeypatch.setattr(requests, "get", fake_get)
        data = api_client.get_json("https://catalog.test/x", {"limit": 2})

        assert data == {"data": {"items": [1]}}
        assert captured["params"] == {"limit": 2}
        assert captured["timeout"] == settings.upstream_timeout_seconds

    def test_list_products_caches(self, monkeypatch):
        calls = []

        def fake_get_json(url, params=None):
            calls.append(url)
            return {"data": {"items": [{"asin": "B1"}]}}

        monkeypatch.setattr(api_client, "get_json", fake_get_json)

        items, cached = api_client.list_products({"limit": 50}, max_age=60)
        assert items == [{"asin": "B1"}]
        assert cached is False

        items, cached = api_client.list_products({"limit": 50}, max_age=60)
        assert cached is True
        assert len(calls) == 1
        assert calls[0].endswith("/products/list")

    def test_list_products_force_refresh(self, monkeypatch):
        calls = []
        monkeypatch.setattr(
            api_client, "get_json",
            lambda url, params=None: calls.append(url) or {"items": [1]},
        )
        api_client.list_products({"limit": 1}, max_age=60)
        items, cached = api_client.list_products({"limit": 1}, max_age=60, force_refresh=True)

        assert cached is False
        assert len(calls) == 2

    def test_list_products_propagates_failure(self, monkeypatch):
        def refuse(url, params=None):
            raise requests.ConnectionError("refused")

        monkeypatch.setattr(api_client, "get_json", refuse)
        with pytest.raises(requests.ConnectionError):
            api_client.list_products({"limit": 1}, max_age=60)


# =============================================================================
# Promo Card Tests
# =============================================================================

class TestPromoCards:
    """Tests for the hero promo card projection."""

    def test_fixed_coupon(self):
        card = PromoCardPayload.from_product(
            {"title": "Kettle", "asin": "B1", "url": "/k", "brand": "Acme",
             "offers": [{"coupon_type": "fixed", "coupon_value": 5.0}]},
            1,
        ).to_dict()
        assert card["discount"] == "$5 Coupon"
        assert card["ctaText"] == "Get Coupon"
        assert card["productId"] == "B1"

    def test_percent_coupon(self):
        card = PromoCardPayload.from_product(
            {"title": "Lamp", "offers": [{"coupon_type": "percentage", "coupon_value": 15}]}, 2,
        )
        assert card.discount == "15% Coupon"

    def test_savings_discount(self):
        card = PromoCardPayload.from_product(
            {"title": "Mixer", "offers": [{"savings_percentage": 25}]}, 1,
        )
        assert card.discount == "25% OFF"
        assert card.cta_text == "Shop Now"

    def test_no_offer(self):
        card = PromoCardPayload.from_product({"title": "Plain"}, 1).to_dict()
        assert card["discount"] == ""
        assert "image" not in card

    def test_description(self):
        assert PromoCardPayload.from_product({"brand": "Acme", "binding": "Kitchen"}, 1).description == "Acme · Kitchen"
        assert PromoCardPayload.from_product({"binding": "Kitchen"}, 1).description == "Kitchen"
        assert PromoCardPayload.from_product({"brand": "Acme"}, 1).description == "Acme"

    def test_positions_are_one_based(self):
        cards = products_to_promo_cards([{"title": "a"}, {"title": "b"}])
        assert [c["id"] for c in cards] == [1, 2]

    def test_fallback_cards(self):
        cards = fallback_promo_cards()
        assert len(cards) == 3
        assert cards[0]["title"] == "Flash Sale"
        assert all("ctaText" in c for c in cards)
