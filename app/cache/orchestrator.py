"""
Cached fetch lifecycle: idle -> loading -> success | error.
"""
import threading
import logging
from typing import Any, Callable, Dict, Optional

from .core import FetchState, FetchStatus
from .keys import generate_cache_key
from .ttl_cache import DEFAULT_MAX_AGE, TTLCache

logger = logging.getLogger("cache.orchestrator")

FetchFn = Callable[[str, Dict[str, Any]], Any]


class CachedFetchOrchestrator:
    """
    Runs one GET resource through the TTL cache.

    - load(): serve from cache on a hit, otherwise fetch and write through
    - refetch(): always fetch, still write through
    - abandon(): the caller went away; later transitions are dropped

    Concurrent orchestrators for the same key are not deduplicated.
    Each one reads, fetches and writes on its own and the last write wins.

    Usage:
        fetcher = CachedFetchOrchestrator(
            url="https://catalog/api/products/list",
            params={"limit": 4},
            fetch_fn=api_client.get_json,
            cache=get_response_cache(),
        )
        state = fetcher.load()
    """

    def __init__(
        self,
        url: Optional[str],
        params: Optional[Dict[str, Any]],
        fetch_fn: FetchFn,
        cache: TTLCache,
        max_age: float = DEFAULT_MAX_AGE,
        prefix_key: str = "fetch",
        require_url: bool = True,
        on_change: Optional[Callable[[FetchState], None]] = None,
    ):
        """
        Args:
            url: Resource URL; None means "nothing to fetch yet"
            params: Query parameters, also used to derive the cache key
            fetch_fn: Performs the network call, fetch_fn(url, params) -> data
            cache: TTL cache to read from and write through
            max_age: Cache lifetime in seconds
            prefix_key: Cache key prefix, combined with the URL
            require_url: If True a missing URL leaves the state idle,
                otherwise it is reported as an error
            on_change: Called with every new state
        """
        self.url = url
        self.params = dict(params or {})
        self._fetch_fn = fetch_fn
        self._cache = cache
        self.max_age = max_age
        self.require_url = require_url
        self._on_change = on_change

        self.cache_key = (
            generate_cache_key(f"{prefix_key}_{url}", self.params) if url else None
        )

        self._lock = threading.Lock()
        self._state = FetchState()
        self._generation = 0
        self._abandoned = False

    @property
    def state(self) -> FetchState:
        with self._lock:
            return self._state

    @property
    def abandoned(self) -> bool:
        return self._abandoned

    def load(self) -> FetchState:
        """Serve from cache if possible, otherwise fetch."""
        return self._run(use_cache=True)

    def refetch(self) -> FetchState:
        """Force a network fetch, bypassing the cache read."""
        return self._run(use_cache=False)

    def abandon(self) -> None:
        """Discard this orchestrator; pending results will be ignored."""
        with self._lock:
            self._abandoned = True
            self._generation += 1
        logger.debug(f"Abandoned fetch for {self.cache_key}")

    def _begin(self) -> Optional[int]:
        with self._lock:
            if self._abandoned:
                return None
            self._generation += 1
            return self._generation

    def _transition(self, token: int, state: FetchState) -> bool:
        """Apply a state if it still belongs to the newest run."""
        with self._lock:
            if self._abandoned or token != self._generation:
                logger.debug(f"Dropping stale transition to {state.status.value} for {self.cache_key}")
                return False
            self._state = state
        if self._on_change:
            self._on_change(state)
        return True

    def _run(self, use_cache: bool) -> FetchState:
        token = self._begin()
        if token is None:
            return self.state

        if not self.url:
            if self.require_url:
                return self.state
            self._transition(token, FetchState(
                status=FetchStatus.ERROR,
                error=ValueError("URL is required for fetch"),
            ))
            return self.state

        if use_cache:
            cached = self._cache.read(self.cache_key, self.max_age)
            if cached.hit and cached.data is not None:
                self._transition(token, FetchState(
                    status=FetchStatus.SUCCESS, data=cached.data, from_cache=True,
                ))
                return self.state

        self._transition(token, FetchState(status=FetchStatus.LOADING))

        try:
            data = self._fetch_fn(self.url, self.params)
        except Exception as e:
            logger.warning(f"Fetch failed for {self.url}: {e}")
            self._transition(token, FetchState(status=FetchStatus.ERROR, error=e))
            return self.state

        # The upstream answer is still worth caching even if nobody is waiting for it
        self._cache.write(self.cache_key, data, self.max_age)
        self._transition(token, FetchState(
            status=FetchStatus.SUCCESS, data=data, from_cache=False,
        ))
        return self.state
