# =============================================================================
# erp_core/offline/cache_store.py
# JSON Cache Store on top of the Storage Adapter
# =============================================================================
"""
CacheStore - the single shared resource of the data layer.

Owns a StorageAdapter and speaks JSON. Created once at application start
(init_cache_store) and cleared at logout. Components receive the store
explicitly; get_cache_store() is only the default for callers that have
no store at hand (URL builders, identity accessors).
"""

from __future__ import annotations
import json
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional
import logging

from erp_core.errors import CacheDecodeError, ConfigurationError
from erp_core.logging import setup_logging
from erp_core.services import ServiceResult
from erp_core.offline.storage import (
    DEFAULT_CAPACITY_BYTES,
    MemoryStorageBackend,
    SessionStateStorageBackend,
    SQLiteStorageBackend,
    StorageAdapter,
    StorageBackend,
)

logger = logging.getLogger(__name__)

CACHE_MISS = "CACHE_MISS"


@dataclass
class CacheConfig:
    """Which storage backend to use and how large it may grow"""
    backend: str = "memory"
    db_path: Optional[Path] = None
    capacity_bytes: Optional[int] = DEFAULT_CAPACITY_BYTES
    namespace: str = "_erp_cache"

    def build_backend(self) -> StorageBackend:
        if self.backend == "memory":
            return MemoryStorageBackend(self.capacity_bytes)
        if self.backend == "sqlite":
            return SQLiteStorageBackend(self.db_path, self.capacity_bytes)
        if self.backend == "session":
            return SessionStateStorageBackend(self.namespace, self.capacity_bytes)
        raise ConfigurationError(
            f"Unknown cache backend: {self.backend}",
            config_key="cache.backend",
            expected_type="memory | sqlite | session",
        )


class CacheStore:
    """
    JSON-level access to persisted cache entries.

    Usage:
        store = CacheStore(StorageAdapter(MemoryStorageBackend()))
        store.init()
        store.set_json("appClients", [{"id": 1}])
        result = store.get_json("appClients")
        if result:
            clients = result.data
    """

    def __init__(self, adapter: Optional[StorageAdapter] = None):
        self.adapter = adapter or StorageAdapter()
        self._ready = False

    @classmethod
    def from_config(cls, config: CacheConfig) -> CacheStore:
        return cls(StorageAdapter(config.build_backend()))

    @property
    def is_ready(self) -> bool:
        return self._ready

    def init(self) -> CacheStore:
        """Mark the store ready for use (idempotent)."""
        if not self._ready:
            self._ready = True
            logger.info(
                f"CacheStore initialized (backend: {self.adapter.backend.name}, "
                f"{len(self.adapter.keys())} entries)"
            )
        return self

    def clear(self) -> None:
        """Remove every persisted key, unconditionally."""
        self.adapter.clear_all()
        logger.info("CacheStore cleared")

    # =========================================================================
    # RAW STRING ACCESS
    # =========================================================================

    def get_raw(self, key: str) -> Optional[str]:
        return self.adapter.read(key)

    def set_raw(self, key: str, value: str) -> bool:
        return self.adapter.write(key, value)

    def has(self, key: str) -> bool:
        return self.adapter.read(key) is not None

    def invalidate(self, key: str) -> None:
        self.adapter.remove(key)
        logger.debug(f"Invalidated cache entry '{key}'")

    # =========================================================================
    # JSON ACCESS
    # =========================================================================

    def get_json(self, key: str) -> ServiceResult:
        """
        Read and parse an entry.

        Returns:
            ok(value) on success, fail(CACHE_MISS) when absent,
            fail(CACHE_001) when the stored text is not valid JSON
        """
        raw = self.adapter.read(key)
        if raw is None:
            return ServiceResult.fail(f"No cache entry for '{key}'", error_code=CACHE_MISS)
        try:
            return ServiceResult.ok(json.loads(raw))
        except (TypeError, ValueError) as e:
            error = CacheDecodeError(f"Corrupt cache entry: {e}", key=key)
            logger.warning(str(error))
            return ServiceResult.from_exception(error)

    def set_json(self, key: str, value: Any) -> bool:
        """Serialize and persist; False when the value could not be stored."""
        try:
            payload = json.dumps(value, ensure_ascii=False, default=str)
        except (TypeError, ValueError) as e:
            logger.error(f"Could not serialize cache entry '{key}': {e}")
            return False
        return self.adapter.write(key, payload)


# =============================================================================
# DEFAULT INSTANCE
# =============================================================================

_cache_store: Optional[CacheStore] = None
_lock = threading.Lock()


def init_cache_store(config: Optional[CacheConfig] = None) -> CacheStore:
    """
    Create (or replace) the process-wide default store.

    Args:
        config: Backend configuration. When None this is application
            start: logging and the backend are both configured from
            secrets/env.
    """
    global _cache_store
    if config is None:
        from erp_core.api.config_manager import APIConfigManager

        settings = APIConfigManager()
        setup_logging(**settings.get_logging_config())
        config = settings.get_cache_config()

    with _lock:
        _cache_store = CacheStore.from_config(config).init()
    return _cache_store


def get_cache_store() -> CacheStore:
    """Get the default store, creating an in-memory one on first use."""
    global _cache_store
    if _cache_store is None:
        with _lock:
            if _cache_store is None:
                _cache_store = CacheStore().init()
    return _cache_store


def set_cache_store(store: Optional[CacheStore]) -> None:
    """Install a specific store as the default (None resets it)."""
    global _cache_store
    with _lock:
        _cache_store = store
