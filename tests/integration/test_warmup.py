# =============================================================================
# tests/integration/test_warmup.py
# Integration Tests for the Post-Login Warm-Up
# =============================================================================

import asyncio

import pytest

from erp_core.auth import complete_login, is_authenticated
from erp_core.errors import TransportError
from erp_core.offline.cache_manager import CacheEntryManager
from erp_core.offline.entities import ENTITY_SPECS, SETTINGS_CATEGORIZED_KEY
from erp_core.offline.warmup import SETTINGS_CATEGORIZED, warm_up_all

from tests.conftest import FakeFetcher


def all_fetchers(**overrides):
    fetchers = {spec.name: FakeFetcher({"data": [{"id": 1}]}) for spec in ENTITY_SPECS}
    fetchers.update(overrides)
    return fetchers


class GatedFetcher:
    """Fetcher that only answers once every gated fetcher has been called."""

    def __init__(self, gate: asyncio.Event, started: list, expected: int):
        self.gate = gate
        self.started = started
        self.expected = expected

    async def __call__(self, params=None):
        self.started.append(self)
        if len(self.started) == self.expected:
            self.gate.set()
        await self.gate.wait()
        return [{"id": len(self.started)}]


class TestWarmUpAll:
    """Test bulk refresh of every entity"""

    @pytest.mark.asyncio
    async def test_refreshes_every_entity_once(self, store):
        fetchers = all_fetchers()
        manager = CacheEntryManager(store, fetchers=fetchers)

        report = await warm_up_all(manager)

        assert report.completed
        assert report.failed == []
        assert all(fetcher.call_count == 1 for fetcher in fetchers.values())
        assert "settings" not in report.item_counts
        assert report.item_counts[SETTINGS_CATEGORIZED] == 1
        assert report.item_counts["products"] == 1
        assert store.get_json("appProducts").data == {"data": [{"id": 1}]}
        assert store.has(SETTINGS_CATEGORIZED_KEY)

    @pytest.mark.asyncio
    async def test_overwrites_existing_entries(self, store):
        store.set_json("appClients", [{"id": 99}])
        manager = CacheEntryManager(store, fetchers=all_fetchers())

        await warm_up_all(manager)

        assert store.get_json("appClients").data == [{"id": 1}]

    @pytest.mark.asyncio
    async def test_one_failure_does_not_stop_the_rest(self, store):
        store.set_json("appInventory", [{"inventory_id": 5}])
        fetchers = all_fetchers(inventory=FakeFetcher(error=TransportError("timeout")))
        manager = CacheEntryManager(store, fetchers=fetchers)

        report = await warm_up_all(manager)

        assert report.completed
        assert report.item_counts["inventory"] == 1
        assert store.get_json("appInventory").data == [{"inventory_id": 5}]
        assert store.get_json("appClients").data == [{"id": 1}]

    @pytest.mark.asyncio
    async def test_fetches_run_concurrently(self, store):
        gate, started = asyncio.Event(), []
        names = ["clients", "users", "categories"]
        fetchers = {name: GatedFetcher(gate, started, len(names)) for name in names}
        manager = CacheEntryManager(store, fetchers=fetchers)

        report = await asyncio.wait_for(warm_up_all(manager, entities=names), timeout=5)

        assert len(started) == len(names)
        assert sorted(report.item_counts) == sorted(names)

    @pytest.mark.asyncio
    async def test_report_to_dict(self, store):
        manager = CacheEntryManager(store, fetchers=all_fetchers())

        report = await warm_up_all(manager, entities=["clients", "settings"])
        data = report.to_dict()

        assert data["completed"] is True
        assert data["item_counts"] == {"clients": 1, SETTINGS_CATEGORIZED: 1}
        assert data["total_items"] == 2


class TestCompleteLogin:
    """Test the full post-login sequence"""

    @pytest.mark.asyncio
    async def test_login_persists_identity_and_warms_up(self, store):
        fetchers = all_fetchers()
        manager = CacheEntryManager(store, fetchers=fetchers)

        report = await complete_login(
            {"users_uuid": "u-1", "users_role": "admin", "users_email": "a@test.com"},
            "acme",
            manager=manager,
        )

        assert is_authenticated(store)
        assert report.completed
        assert fetchers["clients"].call_count == 1
        assert store.has("appClients")
