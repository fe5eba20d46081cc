# =============================================================================
# tests/unit/test_settings_categorizer.py
# Unit Tests for Settings Categorization
# =============================================================================

import pytest

from erp_core.offline.settings_categorizer import (
    CATEGORIES,
    categorize_settings,
    classify_setting_key,
)


class TestClassifySettingKey:
    """Test key classification precedence"""

    @pytest.mark.parametrize("key,category", [
        ("company_name", "company"),
        ("COMPANY_Name", "company"),
        ("company_visit_radius", "company"),
        ("default_language", "system"),
        ("max_daily_visits", "visit"),
        ("enable_advanced_analytics", "reports"),
        ("items_per_page", "performance"),
        ("default_currency", "financial"),
        ("invoice_print_header", "financial"),
        ("low_stock_alert", "inventory"),
        ("sales_order_notification", "business"),
        ("visit_radius", "visit"),
        ("safe_default_id", "safe"),
        ("enable_sms", "notifications"),
        ("password_min_length", "security"),
        ("backup_frequency", "backup"),
        ("theme_color", "ui"),
        ("odoo_url", "integration"),
        ("cache_ttl_minutes", "performance"),
        ("foo_bar", "advanced"),
    ])
    def test_known_keys(self, key, category):
        assert classify_setting_key(key) == category

    @pytest.mark.parametrize("key", [None, "", "   ", 42])
    def test_missing_or_blank_key_is_advanced(self, key):
        assert classify_setting_key(key) == "advanced"


class TestCategorizeSettings:
    """Test grouping of settings records"""

    def test_all_categories_present_for_empty_input(self):
        result = categorize_settings([])

        assert list(result.keys()) == list(CATEGORIES)
        assert all(items == [] for items in result.values())

    def test_non_list_input(self):
        result = categorize_settings(None)

        assert set(result.keys()) == set(CATEGORIES)

    def test_every_record_lands_exactly_once(self):
        settings = [
            {"settings_key": "company_name", "settings_value": "Acme"},
            {"settings_key": "default_currency", "settings_value": "EGP"},
            {"settings_key": "theme_color", "settings_value": "#fff"},
            {"settings_key": "foo_bar", "settings_value": "1"},
            {"settings_value": "orphan"},
            "not a record",
        ]

        result = categorize_settings(settings)

        placed = [item for items in result.values() for item in items]
        assert len(placed) == len(settings)
        assert result["company"] == [settings[0]]
        assert result["financial"] == [settings[1]]
        assert result["ui"] == [settings[2]]
        assert result["advanced"] == [settings[3], settings[4], settings[5]]
