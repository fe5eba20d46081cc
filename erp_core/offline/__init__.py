# =============================================================================
# erp_core/offline/__init__.py
# Offline-First Data Layer for the ERP client
# =============================================================================
"""
Offline-First Data Layer

Cache-aside access to the ERP entities: the UI always gets data, fresh when
the backend answers and cached (or empty) when it does not.

Architecture:
------------
┌─────────────────────────────────────────────────────────────────┐
│                    OFFLINE-FIRST DATA LAYER                      │
├─────────────────────────────────────────────────────────────────┤
│                                                                  │
│   ┌──────────────────────────────────────────────────────────┐  │
│   │                 CacheEntryManager                         │  │
│   │        (get_app_* - the only API pages use)               │  │
│   └──────────────────────────────────────────────────────────┘  │
│              │                           │                       │
│              ▼                           ▼                       │
│   ┌──────────────────┐        ┌──────────────────┐              │
│   │   ERPConnector   │        │    CacheStore    │              │
│   │ (fetch + shapes) │        │  (JSON entries)  │              │
│   └──────────────────┘        └──────────────────┘              │
│                                          │                       │
│                               ┌──────────────────┐              │
│                               │  StorageAdapter  │              │
│                               │ memory | sqlite  │              │
│                               │ | session_state  │              │
│                               └──────────────────┘              │
└─────────────────────────────────────────────────────────────────┘

Usage:
------
from erp_core.offline import init_cache_store, get_cache_manager

init_cache_store()                      # once, at application start
manager = get_cache_manager()

clients = await manager.get_app_clients()
products = await manager.get_app_products(force_api_refresh=True)
manager.invalidate_inventory_related_caches()
"""

from erp_core.offline.storage import (
    StorageBackend,
    MemoryStorageBackend,
    SQLiteStorageBackend,
    SessionStateStorageBackend,
    StorageAdapter,
)

from erp_core.offline.cache_store import (
    CacheConfig,
    CacheStore,
    init_cache_store,
    get_cache_store,
    set_cache_store,
)

from erp_core.offline.normalizers import EntityShape

from erp_core.offline.entities import (
    EmptyResultPolicy,
    EntitySpec,
    ENTITIES,
    get_entity,
)

from erp_core.offline.settings_categorizer import (
    CATEGORIES,
    categorize_settings,
    classify_setting_key,
)

from erp_core.offline.cache_manager import (
    CacheEntryManager,
    cached_entity,
    get_cache_manager,
)

from erp_core.offline.warmup import (
    WarmUpReport,
    warm_up_all,
)

__all__ = [
    # Storage
    "StorageBackend",
    "MemoryStorageBackend",
    "SQLiteStorageBackend",
    "SessionStateStorageBackend",
    "StorageAdapter",
    # Cache store
    "CacheConfig",
    "CacheStore",
    "init_cache_store",
    "get_cache_store",
    "set_cache_store",
    # Entities
    "EntityShape",
    "EmptyResultPolicy",
    "EntitySpec",
    "ENTITIES",
    "get_entity",
    # Settings
    "CATEGORIES",
    "categorize_settings",
    "classify_setting_key",
    # Manager
    "CacheEntryManager",
    "cached_entity",
    "get_cache_manager",
    # Warm-up
    "WarmUpReport",
    "warm_up_all",
]
