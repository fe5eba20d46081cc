# =============================================================================
# tests/unit/test_session.py
# Unit Tests for Session and Identity Accessors
# =============================================================================

import pytest

from erp_core.auth import (
    Identity,
    complete_login,
    get_company_name,
    get_identity,
    get_user_role,
    get_user_uuid,
    is_admin,
    is_authenticated,
    is_authenticated_admin,
    logout,
    store_identity,
)
from erp_core.offline.cache_manager import CacheEntryManager


class TestIdentityAccessors:
    """Test reads of the persisted identity"""

    def test_logged_out(self, store):
        assert get_company_name(store) is None
        assert get_user_uuid(store) is None
        assert get_identity(store) is None
        assert not is_authenticated(store)
        assert not is_admin(store)

    def test_logged_in_admin(self, logged_in_store):
        assert get_company_name(logged_in_store) == "acme"
        assert get_user_uuid(logged_in_store) == "uuid-001"
        assert get_user_role(logged_in_store) == "admin"
        assert is_authenticated_admin(logged_in_store)

    def test_identity_snapshot(self, logged_in_store):
        identity = get_identity(logged_in_store)

        assert identity == Identity(company_name="acme", user_uuid="uuid-001", user_role="admin")
        assert identity.user_data["users_email"] == "admin@test.com"

    def test_malformed_user_data(self, store):
        store.set_raw("userData", "{broken")

        assert get_user_uuid(store) is None
        assert not is_authenticated(store)

    def test_non_object_user_data(self, store):
        store.set_json("userData", ["not", "an", "object"])

        assert not is_authenticated(store)

    def test_default_store_is_used(self, logged_in_store):
        assert get_company_name() == "acme"

    def test_non_admin(self, store):
        store_identity({"users_uuid": "u-2", "users_role": "rep"}, "acme", store)

        assert is_authenticated(store)
        assert not is_admin(store)
        assert not is_authenticated_admin(store)


class TestLoginLogout:
    """Test the login and logout sequences"""

    def test_store_identity(self, store):
        assert store_identity({"users_uuid": "u-1"}, "acme", store)

        assert store.get_raw("companyName") == "acme"
        assert get_user_uuid(store) == "u-1"

    def test_logout_clears_everything(self, logged_in_store):
        logged_in_store.set_json("appClients", [{"id": 1}])

        logout(logged_in_store)

        assert logged_in_store.adapter.keys() == []
        assert not is_authenticated(logged_in_store)

    @pytest.mark.asyncio
    async def test_complete_login_without_warm_up(self, store):
        manager = CacheEntryManager(store)

        report = await complete_login(
            {"users_uuid": "u-1", "users_role": "admin"}, "acme", manager=manager, warm_up=False
        )

        assert report is None
        assert is_authenticated_admin(store)
        assert get_company_name(store) == "acme"
