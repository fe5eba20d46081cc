"""
ERP Backend Connector
Remote fetch collaborators for the cached entities
"""
from __future__ import annotations
import asyncio
import time
from typing import Any, Dict, Optional, Tuple, TYPE_CHECKING
import logging

import requests

from erp_core.errors import APIResponseError, MissingIdentityError, TransportError
from .base_connector import BaseAPIConnector, APIConfig

if TYPE_CHECKING:
    from erp_core.offline.cache_store import CacheStore

logger = logging.getLogger(__name__)


class ERPConnector(BaseAPIConnector):
    """
    Connector for the company-scoped PHP endpoints.

    URLs have the form ``{base_url}/{company_name}/{endpoint}``; every GET
    carries a ``_ts`` cache-busting parameter and, when known, the
    ``users_uuid`` of the logged-in user.

    Usage:
        connector = ERPConnector.from_settings()
        raw = await connector.fetch("clients/get_all.php")
    """

    def __init__(self, config: APIConfig, store: Optional["CacheStore"] = None):
        super().__init__(config)
        self.store = store

    @classmethod
    def from_settings(cls, store: Optional["CacheStore"] = None) -> ERPConnector:
        """Build a connector from secrets / environment configuration."""
        from .config_manager import APIConfigManager
        return cls(APIConfigManager().get_erp_config(), store=store)

    def _set_auth_header(self):
        self.session.headers["Authorization"] = f"Bearer {self.config.api_key}"

    def validate_response(self, response: requests.Response) -> bool:
        content_type = response.headers.get("Content-Type", "")
        return response.ok and ("json" in content_type or not content_type)

    def company_endpoint(self, endpoint: str) -> str:
        """Prefix an endpoint with the current company name."""
        from erp_core.auth.session import get_company_name

        company = get_company_name(self.store)
        if not company:
            raise MissingIdentityError(
                "Company name not found. Please log in.",
                missing="companyName",
            )
        return f"{company}/{endpoint.lstrip('/')}"

    def build_request(
        self, endpoint: str, params: Optional[Dict[str, Any]] = None
    ) -> Tuple[str, Dict[str, Any]]:
        """
        Company path and query string of a GET.

        Reads the session identity, so it must run on the caller's thread:
        Streamlit session state is not visible from worker threads.

        Raises:
            MissingIdentityError: no company in the session
        """
        from erp_core.auth.session import get_user_uuid

        path = self.company_endpoint(endpoint)
        query: Dict[str, Any] = {"_ts": int(time.time() * 1000)}
        user_uuid = get_user_uuid(self.store)
        if user_uuid:
            query["users_uuid"] = user_uuid
        query.update(params or {})
        return path, query

    def get_json(self, path: str, query: Dict[str, Any]) -> Any:
        """
        Blocking GET of a prepared request and JSON decoding of its body.

        Raises:
            TransportError: network failure, non-2xx or non-JSON body
            APIResponseError: body is an envelope with ``status: "error"``
        """
        response = self._make_request(path, params=query)
        try:
            body = response.json()
        except ValueError as e:
            raise TransportError(
                f"Malformed JSON from {path}: {e}",
                url=response.url,
                status_code=response.status_code,
            ) from e

        if isinstance(body, dict) and body.get("status") == "error":
            raise APIResponseError(
                body.get("message") or f"Request to {path} failed",
                url=response.url,
                api_status="error",
            )
        logger.debug(f"Fetched {path} ({response.status_code})")
        return body

    def fetch_sync(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET a company endpoint on the calling thread."""
        path, query = self.build_request(endpoint, params)
        return self.get_json(path, query)

    async def fetch(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Async GET: the request is built here, only the blocking HTTP call
        and decoding run in a worker thread.
        """
        path, query = self.build_request(endpoint, params)
        return await asyncio.to_thread(self.get_json, path, query)
