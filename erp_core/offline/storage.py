# =============================================================================
# erp_core/offline/storage.py
# Key-Value Storage Backends and the Storage Adapter
# =============================================================================
"""
Storage - string-keyed persistent key-value storage with a capacity limit.

Backends:
- MemoryStorageBackend: process-local dict (tests, scripts)
- SQLiteStorageBackend: single-table SQLite file (survives restarts)
- SessionStateStorageBackend: Streamlit session state (per browser session)

Every backend raises StorageQuotaExceededError when a write does not fit.
StorageAdapter wraps a backend and never lets a storage failure escape.
"""

from __future__ import annotations
import sqlite3
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional
import logging

from erp_core.errors import StorageError, StorageQuotaExceededError, safe_execute

logger = logging.getLogger(__name__)

# Same order of magnitude as a browser localStorage quota
DEFAULT_CAPACITY_BYTES = 5 * 1024 * 1024


def entry_size(key: str, value: str) -> int:
    """Bytes counted against the quota for one entry."""
    return len(key.encode("utf-8")) + len(value.encode("utf-8"))


class StorageBackend(ABC):
    """Abstract string-keyed storage with a capacity limit."""

    name = "abstract"

    def __init__(self, capacity_bytes: Optional[int] = DEFAULT_CAPACITY_BYTES):
        self.capacity_bytes = capacity_bytes

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """Return the stored string or None."""

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Store a string. Raises StorageQuotaExceededError when full."""

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Remove a key (no-op when absent)."""

    @abstractmethod
    def clear(self) -> None:
        """Remove every key."""

    @abstractmethod
    def keys(self) -> List[str]:
        """List stored keys."""

    @abstractmethod
    def used_bytes(self) -> int:
        """Bytes currently counted against the quota."""

    def _check_quota(self, key: str, value: str) -> None:
        if self.capacity_bytes is None:
            return
        current = self.get_item(key)
        freed = entry_size(key, current) if current is not None else 0
        required = self.used_bytes() - freed + entry_size(key, value)
        if required > self.capacity_bytes:
            raise StorageQuotaExceededError(
                f"Storage quota exceeded while writing '{key}'",
                key=key,
                capacity_bytes=self.capacity_bytes,
                required_bytes=required,
                backend=self.name,
            )


class MemoryStorageBackend(StorageBackend):
    """In-process dictionary storage."""

    name = "memory"

    def __init__(self, capacity_bytes: Optional[int] = DEFAULT_CAPACITY_BYTES):
        super().__init__(capacity_bytes)
        self._data: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._check_quota(key, value)
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()

    def keys(self) -> List[str]:
        return list(self._data.keys())

    def used_bytes(self) -> int:
        return sum(entry_size(k, v) for k, v in self._data.items())


class SQLiteStorageBackend(StorageBackend):
    """
    SQLite-backed storage.

    One row per key in ``cache_entries``; connections are thread-local.
    """

    name = "sqlite"

    DEFAULT_DB_PATH = Path(__file__).parent.parent.parent / "local_data" / "erp_cache.db"

    SCHEMA = """
        CREATE TABLE IF NOT EXISTS cache_entries (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            size_bytes INTEGER NOT NULL,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
    """

    def __init__(
        self,
        db_path: Optional[Path] = None,
        capacity_bytes: Optional[int] = DEFAULT_CAPACITY_BYTES,
    ):
        super().__init__(capacity_bytes)
        self.db_path = Path(db_path) if db_path else self.DEFAULT_DB_PATH
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._local = threading.local()
        self._connections: List[sqlite3.Connection] = []
        self._connections_lock = threading.Lock()
        self._initialized = False

    def _get_connection(self) -> sqlite3.Connection:
        """Get thread-local database connection."""
        if getattr(self._local, "connection", None) is None:
            self._local.connection = sqlite3.connect(
                str(self.db_path),
                check_same_thread=False,
            )
            self._local.connection.row_factory = sqlite3.Row
            with self._connections_lock:
                self._connections.append(self._local.connection)
        if not self._initialized:
            self._local.connection.execute(self.SCHEMA)
            self._local.connection.commit()
            self._initialized = True
        return self._local.connection

    @contextmanager
    def transaction(self):
        """Context manager for database transactions."""
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except sqlite3.OperationalError as e:
            conn.rollback()
            if "full" in str(e).lower():
                raise StorageQuotaExceededError(
                    f"SQLite storage is full: {e}", backend=self.name
                ) from e
            raise StorageError(f"SQLite error: {e}", backend=self.name) from e
        except Exception:
            conn.rollback()
            raise

    def get_item(self, key: str) -> Optional[str]:
        row = self._get_connection().execute(
            "SELECT value FROM cache_entries WHERE key = ?", (key,)
        ).fetchone()
        return row["value"] if row else None

    def set_item(self, key: str, value: str) -> None:
        self._check_quota(key, value)
        with self.transaction() as conn:
            conn.execute(
                """
                INSERT INTO cache_entries (key, value, size_bytes, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    size_bytes = excluded.size_bytes,
                    updated_at = excluded.updated_at
                """,
                (key, value, entry_size(key, value), datetime.now().isoformat()),
            )

    def remove_item(self, key: str) -> None:
        with self.transaction() as conn:
            conn.execute("DELETE FROM cache_entries WHERE key = ?", (key,))

    def clear(self) -> None:
        with self.transaction() as conn:
            conn.execute("DELETE FROM cache_entries")

    def keys(self) -> List[str]:
        rows = self._get_connection().execute("SELECT key FROM cache_entries").fetchall()
        return [row["key"] for row in rows]

    def used_bytes(self) -> int:
        row = self._get_connection().execute(
            "SELECT COALESCE(SUM(size_bytes), 0) AS total FROM cache_entries"
        ).fetchone()
        return int(row["total"])

    def close(self) -> None:
        """Close the connections opened by every thread."""
        with self._connections_lock:
            connections, self._connections = self._connections, []
        for conn in connections:
            conn.close()
        self._local = threading.local()
        self._initialized = False


class SessionStateStorageBackend(StorageBackend):
    """
    Storage inside ``st.session_state``.

    All entries live in one namespaced dict so that a full clear never
    touches unrelated session keys.
    """

    name = "session"

    def __init__(
        self,
        namespace: str = "_erp_cache",
        capacity_bytes: Optional[int] = DEFAULT_CAPACITY_BYTES,
    ):
        super().__init__(capacity_bytes)
        self.namespace = namespace

    def _bucket(self) -> Dict[str, str]:
        import streamlit as st

        if self.namespace not in st.session_state:
            st.session_state[self.namespace] = {}
        return st.session_state[self.namespace]

    def get_item(self, key: str) -> Optional[str]:
        return self._bucket().get(key)

    def set_item(self, key: str, value: str) -> None:
        self._check_quota(key, value)
        self._bucket()[key] = value

    def remove_item(self, key: str) -> None:
        self._bucket().pop(key, None)

    def clear(self) -> None:
        self._bucket().clear()

    def keys(self) -> List[str]:
        return list(self._bucket().keys())

    def used_bytes(self) -> int:
        return sum(entry_size(k, v) for k, v in self._bucket().items())


class StorageAdapter:
    """
    Failure-tolerant facade over a StorageBackend.

    - read() returns None instead of raising
    - write() returns False on failure; on a quota failure the key being
      written is removed to free space
    - remove() / clear_all() are best-effort
    """

    def __init__(self, backend: Optional[StorageBackend] = None):
        self.backend = backend or MemoryStorageBackend()

    def read(self, key: str) -> Optional[str]:
        try:
            return self.backend.get_item(key)
        except Exception as e:
            logger.warning(f"Storage read failed for '{key}': {e}")
            return None

    def write(self, key: str, value: str) -> bool:
        try:
            self.backend.set_item(key, value)
            return True
        except StorageQuotaExceededError as e:
            logger.warning(f"Storage full, dropping cache entry '{key}': {e}")
            self.remove(key)
            return False
        except Exception as e:
            logger.error(f"Unexpected storage failure writing '{key}': {e}")
            return False

    def remove(self, key: str) -> None:
        try:
            self.backend.remove_item(key)
        except Exception as e:
            logger.warning(f"Storage remove failed for '{key}': {e}")

    def clear_all(self) -> None:
        try:
            self.backend.clear()
        except Exception as e:
            logger.error(f"Storage clear failed: {e}")

    def keys(self) -> List[str]:
        return safe_execute(self.backend.keys, default=[], context="Listing storage keys")
