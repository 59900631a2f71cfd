"""
Core cache data structures.
"""
import json
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from app.errors import CacheCorruptError


# Every record the cache owns lives under this key prefix in the store
CACHE_NAMESPACE = "cache_"


class FetchStatus(Enum):
    """Lifecycle of one cached fetch."""
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class CacheEntry:
    """
    A cached item as written to the key-value store.

    Timestamps are epoch seconds. Entries are only ever replaced whole.
    """
    data: Any
    written_at: float
    expires_at: float

    def age_seconds(self, now: float) -> float:
        """Seconds since the entry was written."""
        return now - self.written_at

    def is_expired(self, now: float) -> bool:
        return self.expires_at < now

    def to_json(self) -> str:
        return json.dumps({
            "data": self.data,
            "writtenAt": self.written_at,
            "expiresAt": self.expires_at,
        })

    @classmethod
    def from_json(cls, raw: str, key: str = "") -> "CacheEntry":
        """
        Decode a stored record.

        Raises:
            CacheCorruptError: If the record is not a JSON object with
                finite numeric timestamps
        """
        try:
            record = json.loads(raw)
        except Exception as e:
            raise CacheCorruptError(key, f"undecodable record ({type(e).__name__})") from e
        if not isinstance(record, dict) or "data" not in record:
            raise CacheCorruptError(key, "record is not a cache entry")
        written_at = record.get("writtenAt")
        expires_at = record.get("expiresAt")
        for value in (written_at, expires_at):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise CacheCorruptError(key, "missing or non-numeric timestamp")
            if not math.isfinite(value):
                raise CacheCorruptError(key, "non-finite timestamp")
        return cls(
            data=record["data"],
            written_at=float(written_at),
            expires_at=float(expires_at),
        )


@dataclass
class CacheReadResult:
    """Outcome of a cache read. Never persisted."""
    hit: bool
    data: Optional[Any] = None
    age: Optional[float] = None


@dataclass
class FetchState:
    """
    State of a cached fetch, owned by a single orchestrator.
    """
    status: FetchStatus = FetchStatus.IDLE
    data: Optional[Any] = None
    from_cache: bool = False
    error: Optional[Exception] = None

    @property
    def is_error(self) -> bool:
        return self.status == FetchStatus.ERROR
