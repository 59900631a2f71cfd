"""
Client for the upstream catalog API.
Candidate pools are fetched over HTTP and cached through the response cache.
"""
import logging
from typing import Optional, List, Dict, Any, Tuple

import requests
from dotenv import load_dotenv

from app.cache import CachedFetchOrchestrator, get_response_cache
from config.settings import settings

load_dotenv()

logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
logger = logging.getLogger("api_client")

PRODUCTS_ENDPOINT = "products/list"


def _get_headers() -> dict:
    """Get request headers, with the API key when one is configured."""
    headers = {
        "Content-Type": "application/json",
        "Accept": "application/json",
    }
    if settings.catalog_api_key:
        headers["X-API-Key"] = settings.catalog_api_key
    return headers


def _endpoint_url(endpoint: str) -> str:
    return f"{settings.catalog_api_url.rstrip('/')}/{endpoint}"


def get_json(url: str, params: Optional[Dict[str, Any]] = None) -> Any:
    """
    GET a JSON resource.

    Raises:
        requests.RequestException: On network errors or a non-2xx status
    """
    response = requests.get(
        url,
        headers=_get_headers(),
        params=params,
        timeout=settings.upstream_timeout_seconds,
    )
    response.raise_for_status()
    return response.json()


def extract_items(payload: Any) -> List[Dict[str, Any]]:
    """
    Pull the item list out of a catalog response.

    Accepts both {"data": {"items": [...]}} and {"items": [...]}.
    """
    if not isinstance(payload, dict):
        return []
    data = payload.get("data")
    if isinstance(data, dict) and data.get("items"):
        return list(data["items"])
    if payload.get("items"):
        return list(payload["items"])
    return []


def list_products(
    params: Dict[str, Any],
    max_age: float,
    force_refresh: bool = False,
) -> Tuple[List[Dict[str, Any]], bool]:
    """
    Query the catalog product list through the response cache.

    Args:
        params: Filter query parameters
        max_age: Seconds a cached response stays valid
        force_refresh: Skip the cache read and hit the API

    Returns:
        (items, served_from_cache)

    Raises:
        Exception: Whatever the HTTP call raised, when it failed
    """
    fetcher = CachedFetchOrchestrator(
        url=_endpoint_url(PRODUCTS_ENDPOINT),
        params=params,
        fetch_fn=get_json,
        cache=get_response_cache(),
        max_age=max_age,
        prefix_key="catalog",
    )
    state = fetcher.refetch() if force_refresh else fetcher.load()

    if state.is_error:
        raise state.error
    return extract_items(state.data), state.from_cache


def get_cache_stats() -> Dict[str, Any]:
    """Get response cache statistics."""
    return get_response_cache().get_stats()
