"""
Session and identity accessors for the ERP data layer.

The logged-in user lives in two cache entries written at login:
- ``userData``: JSON object with ``users_uuid``, ``users_role``, ...
- ``companyName``: plain string used as the first URL path segment

Nearly every request URL is built from these, synchronously, so the
accessors below never raise; they return None (or False) instead.
"""

from __future__ import annotations
import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, TYPE_CHECKING

from erp_core.errors import ErrorContext, error_boundary
from erp_core.logging import get_logger
from erp_core.offline.cache_store import CacheStore, get_cache_store

if TYPE_CHECKING:
    from erp_core.offline.cache_manager import CacheEntryManager
    from erp_core.offline.warmup import WarmUpReport

logger = get_logger(__name__)

USER_DATA_KEY = "userData"
COMPANY_NAME_KEY = "companyName"
ADMIN_ROLE = "admin"


@dataclass(frozen=True)
class Identity:
    """Who is logged in, and for which company"""
    company_name: Optional[str]
    user_uuid: Optional[str]
    user_role: Optional[str]
    user_data: Dict[str, Any] = field(default_factory=dict, compare=False)


def _store(store: Optional[CacheStore]) -> CacheStore:
    return store if store is not None else get_cache_store()


# ==================== IDENTITY ACCESSORS ====================

@error_boundary(default_return=None)
def get_company_name(store: Optional[CacheStore] = None) -> Optional[str]:
    """
    Get the company of the current session.

    Returns:
        Optional[str]: Company name or None if not logged in
    """
    return _store(store).get_raw(COMPANY_NAME_KEY) or None


@error_boundary(default_return=None)
def get_user_data(store: Optional[CacheStore] = None) -> Optional[Dict[str, Any]]:
    """
    Get the cached user record.

    Returns:
        Optional[dict]: User record or None if absent or malformed
    """
    result = _store(store).get_json(USER_DATA_KEY)
    if not result or not isinstance(result.data, dict):
        return None
    return result.data


def get_user_uuid(store: Optional[CacheStore] = None) -> Optional[str]:
    user_data = get_user_data(store)
    return (user_data or {}).get("users_uuid") or None


def get_user_role(store: Optional[CacheStore] = None) -> Optional[str]:
    user_data = get_user_data(store)
    return (user_data or {}).get("users_role") or None


def get_identity(store: Optional[CacheStore] = None) -> Optional[Identity]:
    """Snapshot of the current identity, or None when logged out."""
    user_data = get_user_data(store)
    if user_data is None:
        return None
    return Identity(
        company_name=get_company_name(store),
        user_uuid=user_data.get("users_uuid") or None,
        user_role=user_data.get("users_role") or None,
        user_data=user_data,
    )


def is_authenticated(store: Optional[CacheStore] = None) -> bool:
    return get_user_data(store) is not None


def is_admin(store: Optional[CacheStore] = None) -> bool:
    return get_user_role(store) == ADMIN_ROLE


def is_authenticated_admin(store: Optional[CacheStore] = None) -> bool:
    return is_authenticated(store) and is_admin(store)


# ==================== LOGIN / LOGOUT ====================

def store_identity(
    user_data: Dict[str, Any],
    company_name: str,
    store: Optional[CacheStore] = None,
) -> bool:
    """
    Persist the identity returned by a successful login.

    Returns:
        bool: True if both entries were written
    """
    target = _store(store)
    saved_user = target.set_json(USER_DATA_KEY, user_data)
    saved_company = target.set_raw(COMPANY_NAME_KEY, company_name)
    if not (saved_user and saved_company):
        logger.error("Could not persist the session identity")
    return saved_user and saved_company


async def complete_login(
    user_data: Dict[str, Any],
    company_name: str,
    manager: Optional["CacheEntryManager"] = None,
    warm_up: bool = True,
) -> Optional["WarmUpReport"]:
    """
    Post-login sequence: persist the identity, then warm up every cache.

    Args:
        user_data: User record from the login response
        company_name: Company the user logged into
        manager: Manager to warm up (default manager when None)
        warm_up: Skip the warm-up when False

    Returns:
        WarmUpReport, or None when the warm-up was skipped
    """
    from erp_core.offline.cache_manager import get_cache_manager
    from erp_core.offline.warmup import warm_up_all

    manager = manager or get_cache_manager()
    store_identity(user_data, company_name, manager.store)
    logger.info(f"Logged in to '{company_name}' as {user_data.get('users_email', 'unknown user')}")

    if not warm_up:
        return None
    return await warm_up_all(manager)


def logout(store: Optional[CacheStore] = None) -> None:
    """
    Logout the current user: every persisted key is removed.
    """
    with ErrorContext("Logging out", recoverable=True):
        _store(store).clear()
    logger.info("User logged out, cache cleared")
