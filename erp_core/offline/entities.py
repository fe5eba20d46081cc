# =============================================================================
# erp_core/offline/entities.py
# Cached Entity Definitions
# =============================================================================
"""
Registry of every cached business entity.

Each EntitySpec names the storage key, the endpoint of its fetch
collaborator, the canonical shape and the deviations from the generic
cache-aside algorithm (validity predicate, empty-result policy, read-time
enrichment, derived fallback).
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Tuple
import logging

from erp_core.offline.normalizers import (
    EntityShape,
    Matcher,
    empty_value,
    list_matchers,
    named_first_matchers,
    normalize,
)

if TYPE_CHECKING:
    from erp_core.offline.cache_store import CacheStore

logger = logging.getLogger(__name__)

SETTINGS_CATEGORIZED_KEY = "appSettingsCategorized"

# Status values as sent by the backend
SALES_ORDER_CONFIRMED = "مؤكد"
SALES_ORDER_DELIVERED = "تم التسليم"
PURCHASE_ORDER_REQUESTED = "مطلوب"


class EmptyResultPolicy(Enum):
    """What a successful fetch with an empty result does to the cache."""
    STORE = "store"              # empty is the truth; overwrite
    KEEP_CACHED = "keep_cached"  # empty is suspect; keep the previous value


@dataclass(frozen=True)
class EntitySpec:
    """Static description of one cached entity."""
    name: str
    key: str
    endpoint: str
    shape: EntityShape = EntityShape.LIST
    matchers: Tuple[Matcher, ...] = field(default_factory=lambda: tuple(list_matchers()))
    empty_policy: EmptyResultPolicy = EmptyResultPolicy.STORE
    validity: Optional[Callable[[Any], bool]] = None
    dependents: Tuple[str, ...] = ()
    on_read: Optional[Callable[[Any, "CacheStore"], Any]] = None
    derive_when_empty: Optional[Callable[["CacheStore"], list]] = None

    def empty(self) -> Any:
        return empty_value(self.shape)

    def normalize(self, raw: Any) -> Any:
        return normalize(self.shape, self.matchers, raw)


# =============================================================================
# SPECIAL CASES
# =============================================================================

def has_sort_order(value: Any) -> bool:
    """
    Validity check for area tags and industries.

    Entries cached before ``sort_order`` existed must be refetched once,
    so a single record without it invalidates the whole entry.
    """
    if not isinstance(value, list):
        return False
    return all(isinstance(item, dict) and "sort_order" in item for item in value)


def _first_present(item: Dict[str, Any], *names: str) -> Any:
    for name in names:
        if item.get(name) is not None:
            return item[name]
    return None


def enrich_inventory(items: Any, store: "CacheStore") -> Any:
    """
    Add the short field names the inventory screens join on.

    ``products_id`` is resolved through the cached product variants.
    """
    if not isinstance(items, list):
        return items
    variants = store.get_json("appProductVariants").unwrap_or([])
    if not isinstance(variants, list):
        variants = []
    by_id = {
        v.get("product_variants_id"): v
        for v in variants
        if isinstance(v, dict) and v.get("product_variants_id") is not None
    }

    enriched = []
    for item in items:
        if not isinstance(item, dict):
            enriched.append(item)
            continue
        variant_id = _first_present(item, "inventory_variant_id", "variant_id")
        variant = by_id.get(variant_id, {})
        enriched.append({
            **item,
            "variant_id": variant_id,
            "warehouse_id": _first_present(item, "inventory_warehouse_id", "warehouse_id"),
            "packaging_type_id": _first_present(
                item, "inventory_packaging_type_id", "packaging_type_id"
            ),
            "products_id": variant.get("product_variants_product_id", item.get("products_id")),
        })
    return enriched


def _cached_list(store: "CacheStore", key: str) -> list:
    value = store.get_json(key).unwrap_or([])
    return value if isinstance(value, list) else []


def deliverable_from_sales_orders(store: "CacheStore") -> list:
    """Confirmed sales orders that are not delivered yet."""
    return [
        order for order in _cached_list(store, "appSalesOrders")
        if isinstance(order, dict)
        and order.get("sales_orders_status") == SALES_ORDER_CONFIRMED
        and order.get("sales_orders_delivery_status") != SALES_ORDER_DELIVERED
    ]


def pending_from_purchase_orders(store: "CacheStore") -> list:
    """Purchase orders still waiting to be received."""
    return [
        order for order in _cached_list(store, "appPurchaseOrders")
        if isinstance(order, dict)
        and order.get("purchase_orders_status") == PURCHASE_ORDER_REQUESTED
    ]


# =============================================================================
# REGISTRY
# =============================================================================

def _multi(name: str) -> Tuple[Matcher, ...]:
    return tuple(list_matchers(name))


ENTITY_SPECS: List[EntitySpec] = [
    EntitySpec("users", "appUsers", "users/get_all.php"),
    EntitySpec("categories", "appCategories", "categories/get_all.php"),
    EntitySpec("clients", "appClients", "clients/get_all.php", matchers=_multi("clients")),
    EntitySpec(
        "products", "appProducts", "products/get_all.php",
        shape=EntityShape.WRAPPED, matchers=_multi("products"),
    ),
    EntitySpec("product_variants", "appProductVariants", "product_variants/get_all.php"),
    EntitySpec(
        "warehouses", "appWarehouses", "warehouses/get_all.php",
        shape=EntityShape.WRAPPED, matchers=_multi("warehouses"),
    ),
    EntitySpec(
        "inventory", "appInventory", "inventory/get_all.php",
        matchers=_multi("inventory"),
        empty_policy=EmptyResultPolicy.STORE,
        on_read=enrich_inventory,
    ),
    EntitySpec(
        "sales_orders", "appSalesOrders", "sales_orders/get_all.php",
        matchers=_multi("sales_orders"),
        empty_policy=EmptyResultPolicy.KEEP_CACHED,
    ),
    EntitySpec(
        "deliverable_sales_orders", "appDeliverableSalesOrders",
        "sales_orders/get_deliverable.php",
        matchers=_multi("sales_orders"),
        derive_when_empty=deliverable_from_sales_orders,
    ),
    EntitySpec(
        "purchase_orders", "appPurchaseOrders", "purchase_orders/get_all.php",
        matchers=_multi("purchase_orders"),
        empty_policy=EmptyResultPolicy.KEEP_CACHED,
    ),
    EntitySpec(
        "pending_purchase_orders_for_receive", "appPendingPurchaseOrdersForReceive",
        "purchase_orders/get_pending_for_receive.php",
        matchers=_multi("purchase_orders"),
        derive_when_empty=pending_from_purchase_orders,
    ),
    EntitySpec(
        "sales_returns", "appSalesReturns", "sales_returns/get_all.php",
        matchers=_multi("sales_returns"),
    ),
    EntitySpec(
        "purchase_returns", "appPurchaseReturns", "purchase_returns/get_all.php",
        matchers=_multi("purchase_returns"),
    ),
    EntitySpec(
        "goods_receipts", "appGoodsReceipts", "goods_receipts/get_all.php",
        matchers=_multi("goods_receipts"),
        empty_policy=EmptyResultPolicy.KEEP_CACHED,
    ),
    EntitySpec(
        "notifications", "appNotifications", "notifications/get_all_admin.php",
        matchers=_multi("notifications"),
        empty_policy=EmptyResultPolicy.STORE,
    ),
    EntitySpec(
        "settings", "appSettings", "settings/get_all.php",
        matchers=_multi("settings"),
        dependents=(SETTINGS_CATEGORIZED_KEY,),
    ),
    EntitySpec(
        "client_area_tags", "appClientAreaTags", "client_area_tags/get_all.php",
        validity=has_sort_order,
    ),
    EntitySpec(
        "client_industries", "appClientIndustries", "client_industries/get_all.php",
        validity=has_sort_order,
    ),
    EntitySpec("client_types", "appClientTypes", "client_types/get_all.php"),
    EntitySpec(
        "countries_with_governorates", "appCountriesWithGovernorates",
        "countries/get_all_with_governorates.php",
        matchers=_multi("countries"),
    ),
    EntitySpec("product_attributes", "appProductAttributes", "product_attributes/get_all.php"),
    EntitySpec(
        "base_units", "appBaseUnits", "base_units/get_all.php",
        shape=EntityShape.WRAPPED, matchers=_multi("base_units"),
    ),
    EntitySpec(
        "packaging_types", "appPackagingTypes", "packaging_types/get_all.php",
        shape=EntityShape.WRAPPED, matchers=_multi("packaging_types"),
    ),
    EntitySpec(
        "suppliers", "appSuppliers", "suppliers/get_all.php",
        shape=EntityShape.WRAPPED, matchers=_multi("suppliers"),
    ),
    EntitySpec("visit_plans", "appVisitPlans", "visit_plans/get_all.php", matchers=_multi("visit_plans")),
    EntitySpec(
        "payment_methods", "appPaymentMethods", "payment_methods/get_all.php",
        matchers=tuple(named_first_matchers("payment_methods")),
    ),
    EntitySpec(
        "safes", "appSafes", "safes/get_all.php",
        matchers=tuple(named_first_matchers("safes")),
    ),
]

ENTITIES: Dict[str, EntitySpec] = {spec.name: spec for spec in ENTITY_SPECS}
ENTITIES_BY_KEY: Dict[str, EntitySpec] = {spec.key: spec for spec in ENTITY_SPECS}

# Caches that go stale after any stock movement
INVENTORY_RELATED_KEYS = (
    "appInventory",
    "appGoodsReceipts",
    "appPurchaseOrders",
    "appPendingPurchaseOrdersForReceive",
)


def get_entity(name_or_key: str) -> EntitySpec:
    """Look up a spec by entity name or storage key."""
    spec = ENTITIES.get(name_or_key) or ENTITIES_BY_KEY.get(name_or_key)
    if spec is None:
        raise KeyError(f"Unknown cached entity: {name_or_key}")
    return spec
