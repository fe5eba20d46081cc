# =============================================================================
# erp_core/errors/__init__.py
# Centralized Error Handling for the ERP data layer
# =============================================================================

from .exceptions import (
    ERPCoreError,
    StorageError,
    StorageQuotaExceededError,
    CacheDecodeError,
    TransportError,
    APIResponseError,
    MissingIdentityError,
    ConfigurationError,
)

from .handlers import (
    handle_error,
    safe_execute,
    ErrorContext,
    error_boundary,
)

__all__ = [
    # Exceptions
    "ERPCoreError",
    "StorageError",
    "StorageQuotaExceededError",
    "CacheDecodeError",
    "TransportError",
    "APIResponseError",
    "MissingIdentityError",
    "ConfigurationError",
    # Handlers
    "handle_error",
    "safe_execute",
    "ErrorContext",
    "error_boundary",
]
