# =============================================================================
# erp_core/errors/exceptions.py
# Custom Exception Hierarchy for the ERP data layer
# =============================================================================

from typing import Optional, Dict, Any


class ERPCoreError(Exception):
    """
    Base exception for all erp_core errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (e.g., "STORE_001")
        details: Additional context as a dictionary
        recoverable: Whether the error can be recovered from
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = True,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or "ERP_000"
        self.details = details or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        base = f"[{self.code}] {self.message}"
        if self.details:
            base += f" | Details: {self.details}"
        return base

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization"""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
        }


# =============================================================================
# STORAGE LAYER EXCEPTIONS
# =============================================================================

class StorageError(ERPCoreError):
    """Raised by a storage backend when a read or write fails"""

    def __init__(
        self,
        message: str,
        key: Optional[str] = None,
        backend: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if key:
            details["key"] = key
        if backend:
            details["backend"] = backend

        super().__init__(
            message=message,
            code=kwargs.pop("code", "STORE_001"),
            details=details,
            **kwargs,
        )


class StorageQuotaExceededError(StorageError):
    """Raised when a write would exceed the storage capacity"""

    def __init__(
        self,
        message: str,
        key: Optional[str] = None,
        capacity_bytes: Optional[int] = None,
        required_bytes: Optional[int] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if capacity_bytes is not None:
            details["capacity_bytes"] = capacity_bytes
        if required_bytes is not None:
            details["required_bytes"] = required_bytes

        super().__init__(
            message=message,
            key=key,
            code="STORE_002",
            details=details,
            **kwargs,
        )


class CacheDecodeError(ERPCoreError):
    """Raised when a cached value cannot be parsed or has the wrong shape"""

    def __init__(self, message: str, key: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if key:
            details["key"] = key

        super().__init__(
            message=message,
            code="CACHE_001",
            details=details,
            **kwargs,
        )


# =============================================================================
# REMOTE API EXCEPTIONS
# =============================================================================

class TransportError(ERPCoreError):
    """Raised when the remote API is unreachable or returns a non-2xx/non-JSON response"""

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if url:
            details["url"] = url
        if status_code is not None:
            details["status_code"] = status_code

        super().__init__(
            message=message,
            code="API_001",
            details=details,
            **kwargs,
        )


class APIResponseError(ERPCoreError):
    """Raised when the backend answers with an error envelope"""

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        api_status: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if url:
            details["url"] = url
        if api_status:
            details["api_status"] = api_status

        super().__init__(
            message=message,
            code="API_002",
            details=details,
            **kwargs,
        )


# =============================================================================
# SESSION EXCEPTIONS
# =============================================================================

class MissingIdentityError(ERPCoreError):
    """Raised when no company/user context is available to build a request URL"""

    def __init__(self, message: str, missing: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if missing:
            details["missing"] = missing

        super().__init__(
            message=message,
            code="AUTH_001",
            details=details,
            **kwargs,
        )


# =============================================================================
# CONFIGURATION EXCEPTIONS
# =============================================================================

class ConfigurationError(ERPCoreError):
    """Raised when configuration is invalid or missing"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        expected_type: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if config_key:
            details["config_key"] = config_key
        if expected_type:
            details["expected_type"] = expected_type

        super().__init__(
            message=message,
            code="CONFIG_001",
            details=details,
            recoverable=False,
            **kwargs,
        )
