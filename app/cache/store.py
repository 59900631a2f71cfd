"""
Key-value store interface and implementations.

The cache never talks to a storage engine directly; it is handed a store
so the same TTL and eviction logic runs against memory or SQLite.
"""
import sqlite3
import threading
import logging
from pathlib import Path
from typing import Protocol, Optional, Dict, List
from contextlib import contextmanager

from app.errors import StorageFullError

logger = logging.getLogger("cache.store")


class KeyValueStore(Protocol):
    """
    Interface for persistent string key-value stores.

    Implementations:
    - MemoryStore: process-local dict, optional byte quota
    - SQLiteStore: file-backed, survives restarts
    """

    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if absent."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store a value, replacing any previous one."""
        ...

    def delete(self, key: str) -> None:
        """Remove a key. Missing keys are ignored."""
        ...

    def keys(self) -> List[str]:
        """Snapshot of all keys currently stored."""
        ...


class MemoryStore:
    """
    In-memory store.

    With quota_bytes set, a write that would push the total size of keys
    and values over the quota raises StorageFullError, like a browser
    storage quota.
    """

    def __init__(self, quota_bytes: Optional[int] = None):
        self._data: Dict[str, str] = {}
        self._lock = threading.Lock()
        self._quota_bytes = quota_bytes

    def _size_with(self, key: str, value: str) -> int:
        size = sum(len(k) + len(v) for k, v in self._data.items() if k != key)
        return size + len(key) + len(value)

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            if self._quota_bytes is not None:
                size = self._size_with(key, value)
                if size > self._quota_bytes:
                    raise StorageFullError(key, size, self._quota_bytes)
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._data.keys())

    def __len__(self) -> int:
        return len(self._data)


SCHEMA = """
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""


class SQLiteStore:
    """
    SQLite-backed store.

    Opens a connection per operation so it can be shared across the
    request threadpool.
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self):
        """Initialize database with schema."""
        with self._get_connection() as conn:
            conn.executescript(SCHEMA)
            conn.commit()

    @contextmanager
    def _get_connection(self):
        """Get a database connection."""
        conn = sqlite3.connect(str(self.db_path))
        try:
            yield conn
        finally:
            conn.close()

    def get(self, key: str) -> Optional[str]:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT value FROM kv_store WHERE key = ?", (key,)
            ).fetchone()
            return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        with self._get_connection() as conn:
            try:
                conn.execute(
                    "INSERT OR REPLACE INTO kv_store (key, value) VALUES (?, ?)",
                    (key, value),
                )
                conn.commit()
            except sqlite3.OperationalError as e:
                # SQLITE_FULL surfaces as "database or disk is full"
                if "full" in str(e).lower():
                    raise StorageFullError(key, len(value)) from e
                raise

    def delete(self, key: str) -> None:
        with self._get_connection() as conn:
            conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            conn.commit()

    def keys(self) -> List[str]:
        with self._get_connection() as conn:
            return [row[0] for row in conn.execute("SELECT key FROM kv_store")]


def create_store(backend: str, directory: Optional[Path] = None) -> KeyValueStore:
    """
    Build a store from a backend name.

    Args:
        backend: "memory" or "sqlite"
        directory: Directory for the SQLite file (sqlite backend only)
    """
    backend = (backend or "memory").lower()
    if backend == "memory":
        return MemoryStore()
    if backend == "sqlite":
        db_path = Path(directory or "./cache") / "response_cache.db"
        logger.info(f"Using SQLite cache store at {db_path}")
        return SQLiteStore(db_path)
    raise ValueError(f"Unknown cache backend: {backend}. Supported: ['memory', 'sqlite']")
