"""
State Store - the key-value persistence behind every dayplan document.

Documents (today, tomorrow, weekday routines, priorities, settings) are JSON
strings stored under string keys. The interface is asynchronous so callers can
sit on an event loop; SQLite calls are pushed to a worker thread.

Conflict policy is last-write-wins.
"""

import asyncio
import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime

from dayplan import paths
from dayplan.observability.metrics import store_latency, store_reads, store_writes, timed

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when the underlying store cannot complete a read or write."""

    pass


class KeyValueStore(ABC):
    """Asynchronous string key-value store."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the stored value, or None if the key is absent."""

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""

    @abstractmethod
    async def remove(self, key: str) -> None:
        """Delete key. Removing an absent key is not an error."""

    @abstractmethod
    async def keys(self) -> list[str]:
        """All stored keys, sorted."""


class MemoryKeyValueStore(KeyValueStore):
    """Dict-backed store. Used by tests and for throwaway sessions."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        store_reads.inc()
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError(f"Store values must be str, got {type(value).__name__}")
        store_writes.inc()
        self._data[key] = value

    async def remove(self, key: str) -> None:
        store_writes.inc()
        self._data.pop(key, None)

    async def keys(self) -> list[str]:
        return sorted(self._data)


class SqliteKeyValueStore(KeyValueStore):
    """
    SQLite-backed store. One table, one row per key.

    Every call opens its own connection on a worker thread, so the store can
    be shared between coroutines without locking.
    """

    def __init__(self, db_path: str | None = None):
        self.db_path = str(db_path or paths.db_path())
        logger.info("StateStore initializing with DB: %s", self.db_path)
        self._ensure_schema()

    @contextmanager
    def _get_conn(self):
        """Connection context: commit on success, always close."""
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise StoreError(f"Cannot open store {self.db_path}: {e}") from e
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"Store operation failed: {e}") from e
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        with self._get_conn() as conn:
            conn.execute(
                """CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )"""
            )

    # ==================== Blocking primitives ====================

    def _get_sync(self, key: str) -> str | None:
        with self._get_conn() as conn:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", [key]).fetchone()
            return row[0] if row else None

    def _set_sync(self, key: str, value: str) -> None:
        with self._get_conn() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO kv (key, value, updated_at) VALUES (?, ?, ?)",
                [key, value, datetime.now().isoformat()],
            )

    def _remove_sync(self, key: str) -> None:
        with self._get_conn() as conn:
            conn.execute("DELETE FROM kv WHERE key = ?", [key])

    def _keys_sync(self) -> list[str]:
        with self._get_conn() as conn:
            return [row[0] for row in conn.execute("SELECT key FROM kv ORDER BY key")]

    # ==================== Async interface ====================

    @timed(store_latency)
    async def get(self, key: str) -> str | None:
        store_reads.inc()
        try:
            return await asyncio.to_thread(self._get_sync, key)
        except StoreError:
            logger.error("Store read failed for key %s", key)
            raise

    @timed(store_latency)
    async def set(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError(f"Store values must be str, got {type(value).__name__}")
        store_writes.inc()
        try:
            await asyncio.to_thread(self._set_sync, key, value)
        except StoreError:
            logger.error("Store write failed for key %s", key)
            raise

    @timed(store_latency)
    async def remove(self, key: str) -> None:
        store_writes.inc()
        try:
            await asyncio.to_thread(self._remove_sync, key)
        except StoreError:
            logger.error("Store remove failed for key %s", key)
            raise

    async def keys(self) -> list[str]:
        return await asyncio.to_thread(self._keys_sync)


# Singleton accessor
_store: KeyValueStore | None = None
_store_lock = threading.Lock()


def get_store(db_path: str | None = None) -> KeyValueStore:
    """Get the process-wide store, creating the SQLite store on first use."""
    global _store
    if _store is None:
        with _store_lock:
            if _store is None:
                _store = SqliteKeyValueStore(db_path)
    return _store


def reset_store() -> None:
    """Forget the singleton (tests, and after DAYPLAN_HOME changes)."""
    global _store
    with _store_lock:
        _store = None
