# =============================================================================
# tests/conftest.py
# Pytest Configuration and Fixtures
# =============================================================================

import sys
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import pytest

from erp_core.offline.cache_store import CacheStore, set_cache_store
from erp_core.offline.storage import MemoryStorageBackend, StorageAdapter


# =============================================================================
# FAKE COLLABORATORS
# =============================================================================

class FakeFetcher:
    """Async fetch collaborator that records its calls."""

    def __init__(self, response: Any = None, error: Optional[Exception] = None):
        self.response = response
        self.error = error
        self.calls: List[Optional[Dict[str, Any]]] = []

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def __call__(self, params: Optional[Dict[str, Any]] = None) -> Any:
        self.calls.append(params)
        if self.error is not None:
            raise self.error
        return self.response


# =============================================================================
# STORE FIXTURES
# =============================================================================

@pytest.fixture
def memory_backend():
    """In-memory backend with the default capacity"""
    return MemoryStorageBackend()


@pytest.fixture
def store(memory_backend):
    """Initialized CacheStore installed as the default store"""
    cache_store = CacheStore(StorageAdapter(memory_backend)).init()
    set_cache_store(cache_store)
    yield cache_store
    set_cache_store(None)


@pytest.fixture
def tiny_store():
    """Store whose backend only fits a few bytes"""
    return CacheStore(StorageAdapter(MemoryStorageBackend(capacity_bytes=64))).init()


@pytest.fixture
def logged_in_store(store):
    """Store holding a logged-in admin of company 'acme'"""
    store.set_json("userData", {
        "users_uuid": "uuid-001",
        "users_email": "admin@test.com",
        "users_role": "admin",
        "name": "Demo Admin",
    })
    store.set_raw("companyName", "acme")
    return store


@pytest.fixture
def fetcher_factory():
    """Build FakeFetcher instances"""
    return FakeFetcher


# =============================================================================
# MOCK FIXTURES
# =============================================================================

@pytest.fixture
def mock_streamlit():
    """Mock Streamlit for testing"""
    mock_st = MagicMock()
    mock_st.session_state = {}
    mock_st.secrets = {}

    original_st = sys.modules.get("streamlit")
    sys.modules["streamlit"] = mock_st

    yield mock_st

    if original_st is not None:
        sys.modules["streamlit"] = original_st
    else:
        sys.modules.pop("streamlit", None)
