# =============================================================================
# erp_core/offline/cache_manager.py
# Cache-Aside Entity Manager
# =============================================================================
"""
CacheEntryManager - cache-aside access to every business entity.

For each entity:
1. read the persisted entry (corrupt or wrongly shaped entries count as absent)
2. a present, valid entry is returned as-is unless a refresh is forced
3. otherwise the fetch collaborator is awaited and its response normalized
4. fresh data is persisted and returned; on failure the previous entry
   (or the entity's empty value) is returned instead

No get_app_* coroutine ever raises.
"""

from __future__ import annotations
import threading
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional
import logging

from erp_core.errors import handle_error
from erp_core.services import BaseService, ServiceResult
from erp_core.offline.cache_store import CacheStore, get_cache_store
from erp_core.offline.entities import (
    ENTITY_SPECS,
    INVENTORY_RELATED_KEYS,
    SETTINGS_CATEGORIZED_KEY,
    EmptyResultPolicy,
    EntitySpec,
    ENTITIES,
    ENTITIES_BY_KEY,
    get_entity,
)
from erp_core.offline.normalizers import conforms, is_empty
from erp_core.offline.settings_categorizer import (
    CATEGORIES,
    categorize_settings,
    empty_categories,
)

logger = logging.getLogger(__name__)

FetchFn = Callable[[Optional[Dict[str, Any]]], Awaitable[Any]]
EntityGetter = Callable[..., Awaitable[Any]]


def read_cached(store: CacheStore, spec: EntitySpec) -> ServiceResult:
    """Parsed entry for ``spec``; failure when absent, corrupt or wrongly shaped."""
    result = store.get_json(spec.key)
    if result and not conforms(spec.shape, result.data):
        logger.warning(f"Cache entry '{spec.key}' has an unexpected shape, ignoring it")
        return ServiceResult.fail(f"Wrong shape for '{spec.key}'", error_code="CACHE_001")
    return result


async def fetch_normalized(spec: EntitySpec, fetch: FetchFn, params: Dict[str, Any]) -> ServiceResult:
    """Await the fetch collaborator and normalize its response."""
    try:
        raw = await fetch(params or None)
    except Exception as e:
        handle_error(e, context=f"Fetching {spec.name}", level="warning")
        return ServiceResult.from_exception(e)
    return ServiceResult.ok(spec.normalize(raw))


def persist(store: CacheStore, spec: EntitySpec, value: Any) -> bool:
    """Write a fresh value; derived entries are dropped either way."""
    stored = store.set_json(spec.key, value)
    for dependent in spec.dependents:
        store.invalidate(dependent)
    if not stored:
        logger.warning(f"Could not persist '{spec.key}', serving it from memory only")
    return stored


def finish(store: CacheStore, spec: EntitySpec, value: Any) -> Any:
    """Apply the read-time hooks of an entity."""
    if spec.derive_when_empty is not None and is_empty(spec.shape, value):
        derived = spec.derive_when_empty(store)
        if derived:
            value = derived
    if spec.on_read is not None:
        value = spec.on_read(value, store)
    return value


def cached_entity(store: CacheStore, spec: EntitySpec, fetch: FetchFn) -> EntityGetter:
    """
    Build the cache-aside getter of one entity.

    Returns:
        Coroutine function ``(force_api_refresh=False, **params) -> value``
    """
    async def get(force_api_refresh: bool = False, **params) -> Any:
        cached = ServiceResult.fail("not read")
        try:
            cached = read_cached(store, spec)
            valid = bool(cached) and (spec.validity is None or spec.validity(cached.data))

            if valid and not force_api_refresh:
                logger.debug(f"Cache hit for '{spec.key}'")
                return finish(store, spec, cached.data)
            if cached and not valid:
                logger.info(f"Cache entry '{spec.key}' failed validation, refetching")

            fallback = cached.data if cached else spec.empty()
            fetched = await fetch_normalized(spec, fetch, params)
            if not fetched:
                logger.warning(f"Serving {'cached' if cached else 'empty'} '{spec.key}' after fetch failure")
                return finish(store, spec, fallback)

            fresh = fetched.data
            if is_empty(spec.shape, fresh) and spec.empty_policy is EmptyResultPolicy.KEEP_CACHED:
                logger.warning(f"Empty response for '{spec.key}', keeping the cached entry")
                return finish(store, spec, fallback)

            persist(store, spec, fresh)
            logger.info(f"Refreshed '{spec.key}' from API")
            return finish(store, spec, fresh)

        except Exception as e:
            handle_error(e, context=f"Loading {spec.name}")
            return cached.data if cached else spec.empty()

    get.__name__ = f"get_app_{spec.name}"
    get.__qualname__ = get.__name__
    return get


class CacheEntryManager(BaseService):
    """
    Exclusive owner of every entity cache entry.

    Usage:
        manager = CacheEntryManager(store)
        clients = await manager.get_app_clients()
        products = await manager.get_app_products(force_api_refresh=True)
        manager.invalidate_inventory_cache()

    Args:
        store: CacheStore to read/write (default store when None)
        fetchers: Optional ``{entity_name: fetch_fn}`` overrides; entities
            without an override are fetched through the ERP connector
        connector: Connector used for entities without an override
    """

    def __init__(
        self,
        store: Optional[CacheStore] = None,
        fetchers: Optional[Mapping[str, FetchFn]] = None,
        connector=None,
    ):
        super().__init__()
        self.store = store or get_cache_store()
        self._fetchers: Dict[str, FetchFn] = dict(fetchers or {})
        self._connector = connector
        self._getters: Dict[str, EntityGetter] = {
            spec.name: cached_entity(self.store, spec, self._fetcher_for(spec))
            for spec in ENTITY_SPECS
        }

    def _get_connector(self):
        """Lazy load the ERP connector."""
        if self._connector is None:
            from erp_core.api.erp_connector import ERPConnector
            self._connector = ERPConnector.from_settings(store=self.store)
        return self._connector

    def _fetcher_for(self, spec: EntitySpec) -> FetchFn:
        if spec.name in self._fetchers:
            return self._fetchers[spec.name]

        async def fetch(params: Optional[Dict[str, Any]] = None) -> Any:
            return await self._get_connector().fetch(spec.endpoint, params)

        return fetch

    @property
    def entity_names(self) -> List[str]:
        return list(self._getters.keys())

    async def get(self, name: str, force_api_refresh: bool = False, **params) -> Any:
        """Generic access by entity name or storage key."""
        spec = get_entity(name)
        return await self._getters[spec.name](force_api_refresh, **params)

    # =========================================================================
    # ENTITY GETTERS
    # =========================================================================

    async def get_app_users(self, force_api_refresh: bool = False) -> list:
        return await self._getters["users"](force_api_refresh)

    async def get_app_categories(self, force_api_refresh: bool = False) -> list:
        return await self._getters["categories"](force_api_refresh)

    async def get_app_clients(self, force_api_refresh: bool = False) -> list:
        return await self._getters["clients"](force_api_refresh)

    async def get_app_products(
        self, force_api_refresh: bool = False, include_inactive: bool = False
    ) -> dict:
        params = {"include_inactive": 1} if include_inactive else {}
        return await self._getters["products"](force_api_refresh, **params)

    async def get_app_product_variants(self, force_api_refresh: bool = False) -> list:
        return await self._getters["product_variants"](force_api_refresh)

    async def get_app_warehouses(
        self, force_api_refresh: bool = False, include_inactive: bool = False
    ) -> dict:
        params = {"include_inactive": 1} if include_inactive else {}
        return await self._getters["warehouses"](force_api_refresh, **params)

    async def get_app_inventory(self, force_api_refresh: bool = False) -> list:
        return await self._getters["inventory"](force_api_refresh)

    async def get_app_sales_orders(self, force_api_refresh: bool = False) -> list:
        return await self._getters["sales_orders"](force_api_refresh)

    async def get_app_deliverable_sales_orders(self, force_api_refresh: bool = False) -> list:
        return await self._getters["deliverable_sales_orders"](force_api_refresh)

    async def get_app_purchase_orders(self, force_api_refresh: bool = False) -> list:
        return await self._getters["purchase_orders"](force_api_refresh)

    async def get_app_pending_purchase_orders_for_receive(
        self, force_api_refresh: bool = False
    ) -> list:
        return await self._getters["pending_purchase_orders_for_receive"](force_api_refresh)

    async def get_app_sales_returns(self, force_api_refresh: bool = False) -> list:
        return await self._getters["sales_returns"](force_api_refresh)

    async def get_app_purchase_returns(self, force_api_refresh: bool = False) -> list:
        return await self._getters["purchase_returns"](force_api_refresh)

    async def get_app_goods_receipts(self, force_api_refresh: bool = False) -> list:
        return await self._getters["goods_receipts"](force_api_refresh)

    async def get_app_notifications(self, force_api_refresh: bool = False) -> list:
        return await self._getters["notifications"](force_api_refresh)

    async def get_app_settings(self, force_api_refresh: bool = False) -> list:
        return await self._getters["settings"](force_api_refresh)

    async def get_app_client_area_tags(self, force_api_refresh: bool = False) -> list:
        return await self._getters["client_area_tags"](force_api_refresh)

    async def get_app_client_industries(self, force_api_refresh: bool = False) -> list:
        return await self._getters["client_industries"](force_api_refresh)

    async def get_app_client_types(self, force_api_refresh: bool = False) -> list:
        return await self._getters["client_types"](force_api_refresh)

    async def get_app_countries_with_governorates(self, force_api_refresh: bool = False) -> list:
        return await self._getters["countries_with_governorates"](force_api_refresh)

    async def get_app_product_attributes(self, force_api_refresh: bool = False) -> list:
        return await self._getters["product_attributes"](force_api_refresh)

    async def get_app_base_units(self, force_api_refresh: bool = False) -> dict:
        return await self._getters["base_units"](force_api_refresh)

    async def get_app_packaging_types(self, force_api_refresh: bool = False) -> dict:
        return await self._getters["packaging_types"](force_api_refresh)

    async def get_app_suppliers(self, force_api_refresh: bool = False) -> dict:
        return await self._getters["suppliers"](force_api_refresh)

    async def get_app_visit_plans(self, force_api_refresh: bool = False) -> list:
        return await self._getters["visit_plans"](force_api_refresh)

    async def get_app_payment_methods(self, force_api_refresh: bool = False) -> list:
        return await self._getters["payment_methods"](force_api_refresh)

    async def get_app_safes(self, force_api_refresh: bool = False) -> list:
        return await self._getters["safes"](force_api_refresh)

    async def get_app_settings_categorized(
        self, force_api_refresh: bool = False
    ) -> Dict[str, List[Any]]:
        """
        Settings grouped by category.

        The grouping is cached under its own key and rebuilt whenever the
        raw settings are refetched or invalidated.
        """
        try:
            if not force_api_refresh:
                cached = self.store.get_json(SETTINGS_CATEGORIZED_KEY)
                if cached and isinstance(cached.data, dict):
                    return {category: cached.data.get(category, []) for category in CATEGORIES}

            settings = await self.get_app_settings(force_api_refresh)
            categorized = categorize_settings(settings)
            self.store.set_json(SETTINGS_CATEGORIZED_KEY, categorized)
            return categorized
        except Exception as e:
            handle_error(e, context="Categorizing settings")
            return empty_categories()

    # =========================================================================
    # INVALIDATION
    # =========================================================================

    def invalidate(self, name_or_key: str) -> None:
        """Drop one entry (and anything derived from it)."""
        spec = ENTITIES.get(name_or_key) or ENTITIES_BY_KEY.get(name_or_key)
        if spec is None:
            self.store.invalidate(name_or_key)
            return
        self.store.invalidate(spec.key)
        for dependent in spec.dependents:
            self.store.invalidate(dependent)

    def invalidate_inventory_cache(self) -> None:
        self.invalidate("appInventory")

    def invalidate_inventory_related_caches(self) -> None:
        """Call after any stock movement (transfer, receipt, repack)."""
        for key in INVENTORY_RELATED_KEYS:
            self.invalidate(key)


# =============================================================================
# DEFAULT INSTANCE
# =============================================================================

_cache_manager: Optional[CacheEntryManager] = None
_lock = threading.Lock()


def get_cache_manager() -> CacheEntryManager:
    """
    Get the global CacheEntryManager bound to the default store.

    Returns:
        CacheEntryManager singleton
    """
    global _cache_manager
    store = get_cache_store()
    if _cache_manager is None or _cache_manager.store is not store:
        with _lock:
            if _cache_manager is None or _cache_manager.store is not store:
                _cache_manager = CacheEntryManager(store)
    return _cache_manager
