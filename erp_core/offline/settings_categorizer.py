# =============================================================================
# erp_core/offline/settings_categorizer.py
# Settings Categorization
# =============================================================================
"""
Buckets the flat settings list into the categories of the settings screens.

Rules are evaluated in order and the first match wins:
1. explicit key allow-list
2. ``company_`` prefix
3. substring rules, one group per topic, in CATEGORY_RULES order
4. anything else is ``advanced``

Reordering the rules changes where settings land; the settings screens
depend on the current placement.
"""

from typing import Any, Dict, Iterable, List, Tuple

ADVANCED = "advanced"

CATEGORIES: Tuple[str, ...] = (
    "company",
    "system",
    "financial",
    "inventory",
    "business",
    "mobile",
    "visit",
    "safe",
    "warehouse",
    "client",
    "notifications",
    "security",
    "backup",
    "reports",
    "product",
    "ui",
    "integration",
    "performance",
    ADVANCED,
)

# Keys whose topic cannot be told from their name
EXPLICIT_KEYS: Dict[str, str] = {
    "company_name": "company",
    "company_logo": "company",
    "company_address": "company",
    "company_phone": "company",
    "company_email": "company",
    "company_website": "company",
    "company_vat_number": "company",
    "company_commercial_register": "company",
    "company_description": "company",
    "company_country": "company",
    "company_currency": "company",
    "company_lat": "company",
    "company_lng": "company",
    "default_language": "system",
    "app_version": "system",
    "decimal_places": "financial",
    "rounding_method": "financial",
    "allow_negative_stock": "inventory",
    "require_gps_for_orders": "mobile",
    "max_daily_visits": "visit",
    "default_warehouse_id": "warehouse",
    "enable_advanced_analytics": "reports",
    "items_per_page": "performance",
}

CATEGORY_RULES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("system", ("system", "language", "timezone", "time_zone", "date_format",
                "time_format", "locale", "maintenance", "app_")),
    ("financial", ("currency", "tax", "vat", "price", "payment", "invoice",
                   "discount", "credit", "financial", "accounting", "account")),
    ("inventory", ("inventory", "stock", "batch", "expiry", "repack")),
    ("business", ("business", "sales", "purchase", "order", "return", "delivery",
                  "commission", "target")),
    ("mobile", ("mobile", "gps", "location", "tracking", "offline")),
    ("visit", ("visit", "attendance", "route", "check_in", "checkin")),
    ("safe", ("safe", "cash")),
    ("warehouse", ("warehouse", "transfer", "load")),
    ("client", ("client", "customer", "area_tag", "industry")),
    ("notifications", ("notification", "notify", "alert", "sms", "email")),
    ("security", ("security", "password", "login", "session", "otp",
                  "two_factor", "2fa", "permission", "role")),
    ("backup", ("backup", "restore", "archive")),
    ("reports", ("report", "analytics", "dashboard", "export", "print")),
    ("product", ("product", "variant", "category", "unit", "packaging",
                 "barcode", "sku", "attribute")),
    ("ui", ("theme", "color", "colour", "font", "layout", "display", "ui_",
            "dark_mode", "sidebar")),
    ("integration", ("integration", "odoo", "api", "webhook", "sync")),
    ("performance", ("cache", "performance", "timeout", "page_size",
                     "pagination", "limit")),
)


def classify_setting_key(key: Any) -> str:
    """Return the single category of a settings key."""
    if not isinstance(key, str):
        return ADVANCED
    name = key.strip().lower()
    if not name:
        return ADVANCED

    if name in EXPLICIT_KEYS:
        return EXPLICIT_KEYS[name]
    if name.startswith("company_"):
        return "company"
    for category, needles in CATEGORY_RULES:
        if any(needle in name for needle in needles):
            return category
    return ADVANCED


def empty_categories() -> Dict[str, List[Any]]:
    return {category: [] for category in CATEGORIES}


def categorize_settings(settings: Iterable[Any]) -> Dict[str, List[Any]]:
    """
    Group settings records by category.

    Every input record ends up in exactly one list; all categories are
    present in the result even when empty.
    """
    categorized = empty_categories()
    if not isinstance(settings, (list, tuple)):
        return categorized

    for setting in settings:
        key = setting.get("settings_key") if isinstance(setting, dict) else None
        categorized[classify_setting_key(key)].append(setting)
    return categorized
