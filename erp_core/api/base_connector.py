"""
Base API Connector Class
Provides the shared HTTP plumbing for the ERP backend connectors
"""
from abc import ABC, abstractmethod
from typing import Optional, Dict, Any
from dataclasses import dataclass
import time

import requests

from erp_core.errors import TransportError


@dataclass
class APIConfig:
    """Configuration for API connection"""
    api_name: str
    base_url: str
    api_key: Optional[str] = None
    headers: Optional[Dict[str, str]] = None
    timeout: int = 30
    rate_limit_delay: float = 0.0  # seconds between requests
    additional_params: Optional[Dict[str, Any]] = None


class BaseAPIConnector(ABC):
    """Abstract base class for all API connectors"""

    def __init__(self, config: APIConfig):
        self.config = config
        self.session = requests.Session()
        self._last_request_at = 0.0

        # Set default headers
        self.session.headers.update({"Accept": "application/json"})
        if config.headers:
            self.session.headers.update(config.headers)

        # Add API key to headers if provided
        if config.api_key:
            self._set_auth_header()

    @abstractmethod
    def _set_auth_header(self):
        """Set authentication header based on API requirements"""
        pass

    @abstractmethod
    def validate_response(self, response: requests.Response) -> bool:
        """Validate API response"""
        pass

    def _respect_rate_limit(self) -> None:
        if self.config.rate_limit_delay <= 0:
            return
        wait = self.config.rate_limit_delay - (time.monotonic() - self._last_request_at)
        if wait > 0:
            time.sleep(wait)
        self._last_request_at = time.monotonic()

    def _make_request(
        self,
        endpoint: str,
        method: str = "GET",
        params: Optional[Dict] = None,
        data: Optional[Dict] = None
    ) -> requests.Response:
        """
        Make HTTP request with error handling

        Args:
            endpoint: API endpoint (appended to base_url)
            method: HTTP method (GET, POST, etc.)
            params: Query parameters
            data: Request body data

        Returns:
            Response object
        """
        url = f"{self.config.base_url.rstrip('/')}/{endpoint.lstrip('/')}"
        query = dict(self.config.additional_params or {})
        query.update(params or {})

        self._respect_rate_limit()
        try:
            response = self.session.request(
                method=method,
                url=url,
                params=query or None,
                json=data,
                timeout=self.config.timeout
            )
            response.raise_for_status()
            return response

        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise TransportError(
                f"API request failed for {self.config.api_name}: {str(e)}",
                url=url,
                status_code=status,
            ) from e
        except requests.exceptions.RequestException as e:
            raise TransportError(
                f"API request failed for {self.config.api_name}: {str(e)}",
                url=url,
            ) from e

    def test_connection(self) -> Dict[str, Any]:
        """
        Test API connection and return status

        Returns:
            Dict with status and message
        """
        try:
            response = self._make_request("")
            return {
                "status": "success" if self.validate_response(response) else "error",
                "message": f"Reached {self.config.api_name}",
                "status_code": response.status_code,
            }
        except Exception as e:
            return {
                "status": "error",
                "message": f"Connection failed: {str(e)}"
            }
