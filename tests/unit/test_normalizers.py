# =============================================================================
# tests/unit/test_normalizers.py
# Unit Tests for Response Normalization
# =============================================================================

import pytest

from erp_core.offline.entities import ENTITY_SPECS, get_entity
from erp_core.offline.normalizers import (
    EntityShape,
    conforms,
    empty_value,
    is_empty,
    items_of,
    list_matchers,
    named_first_matchers,
    normalize,
)


class TestListNormalization:
    """Test the envelope variants of list endpoints"""

    @pytest.mark.parametrize("raw", [
        [{"id": 1}],
        {"data": [{"id": 1}]},
        {"data": {"data": [{"id": 1}], "pagination": {"page": 1}}},
        {"purchase_orders": [{"id": 1}]},
        {"status": "success", "data": {"purchase_orders": [{"id": 1}]}},
    ])
    def test_envelopes(self, raw):
        result = normalize(EntityShape.LIST, list_matchers("purchase_orders"), raw)

        assert result == [{"id": 1}]

    @pytest.mark.parametrize("raw", [None, "error", 3, {"status": "success"}, {"data": "x"}])
    def test_unrecognized_is_empty(self, raw):
        assert normalize(EntityShape.LIST, list_matchers("clients"), raw) == []

    def test_data_envelope_wins_over_named(self):
        matchers = list_matchers("clients")

        assert normalize(EntityShape.LIST, matchers, {"data": [1], "clients": [2]}) == [1]

    def test_named_first_order(self):
        matchers = named_first_matchers("payment_methods")
        raw = {"data": [{"id": 1}], "payment_methods": [{"id": 2}]}

        assert normalize(EntityShape.LIST, matchers, raw) == [{"id": 2}]


class TestWrappedAndMapping:
    """Test the non-list shapes"""

    def test_wrapped_from_bare_list(self):
        result = normalize(EntityShape.WRAPPED, list_matchers("products"), [{"id": 1}])

        assert result == {"data": [{"id": 1}]}

    def test_wrapped_unrecognized(self):
        assert normalize(EntityShape.WRAPPED, list_matchers("products"), None) == {"data": []}

    def test_mapping(self):
        assert normalize(EntityShape.MAPPING, [], {"data": {"a": 1}}) == {"a": 1}
        assert normalize(EntityShape.MAPPING, [], {"a": 1}) == {"a": 1}
        assert normalize(EntityShape.MAPPING, [], [1, 2]) == {}


class TestShapeHelpers:
    """Test shape predicates"""

    def test_empty_values(self):
        assert empty_value(EntityShape.LIST) == []
        assert empty_value(EntityShape.WRAPPED) == {"data": []}
        assert empty_value(EntityShape.MAPPING) == {}

    def test_conforms(self):
        assert conforms(EntityShape.LIST, [])
        assert not conforms(EntityShape.LIST, {"data": []})
        assert conforms(EntityShape.WRAPPED, {"data": []})
        assert not conforms(EntityShape.WRAPPED, [])

    def test_is_empty(self):
        assert is_empty(EntityShape.LIST, [])
        assert not is_empty(EntityShape.LIST, [{"id": 1}])
        assert is_empty(EntityShape.WRAPPED, {"data": []})
        assert is_empty(EntityShape.WRAPPED, "garbage")

    def test_items_of(self):
        assert items_of(EntityShape.WRAPPED, {"data": [1, 2]}) == [1, 2]
        assert items_of(EntityShape.LIST, None) == []


class TestEntityNormalization:
    """Normalizing an already-normalized value changes nothing"""

    @pytest.mark.parametrize("spec", ENTITY_SPECS, ids=lambda spec: spec.name)
    def test_idempotent(self, spec):
        once = spec.normalize({"data": [{"id": 1}, {"id": 2}]})

        assert spec.normalize(once) == once
        assert items_of(spec.shape, once) == [{"id": 1}, {"id": 2}]

    def test_payment_methods_named_envelope(self):
        spec = get_entity("payment_methods")

        assert spec.normalize({"payment_methods": [{"id": 1}]}) == [{"id": 1}]

    def test_safes_status_envelope(self):
        spec = get_entity("safes")
        raw = {"status": "success", "data": {"safes": [{"safes_id": 1}]}}

        assert spec.normalize(raw) == [{"safes_id": 1}]

    def test_lookup_by_key(self):
        assert get_entity("appProducts").name == "products"

    def test_unknown_entity(self):
        with pytest.raises(KeyError):
            get_entity("nope")


class TestSupportedEnvelopes:
    """Every supported envelope yields the same canonical value"""

    RECORDS = [{"id": 1}, {"id": 2}]

    @pytest.mark.parametrize("spec", ENTITY_SPECS, ids=lambda spec: spec.name)
    def test_generic_envelopes(self, spec):
        results = [
            spec.normalize(list(self.RECORDS)),
            spec.normalize({"data": list(self.RECORDS)}),
            spec.normalize({"data": {"data": list(self.RECORDS), "pagination": {}}}),
        ]

        assert results[0] == results[1] == results[2]
        assert items_of(spec.shape, results[0]) == self.RECORDS

    @pytest.mark.parametrize("name", [
        "clients", "products", "warehouses", "inventory", "sales_orders",
        "purchase_orders", "goods_receipts", "notifications", "settings",
        "suppliers", "payment_methods", "safes",
    ])
    def test_named_envelopes(self, name):
        spec = get_entity(name)
        expected = spec.normalize(list(self.RECORDS))

        assert spec.normalize({name: list(self.RECORDS)}) == expected
        assert spec.normalize({"status": "success", "data": {name: list(self.RECORDS)}}) == expected
