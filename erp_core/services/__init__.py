# =============================================================================
# erp_core/services/__init__.py
# Service Layer primitives
# =============================================================================

from .base_service import BaseService, ServiceResult

__all__ = [
    "BaseService",
    "ServiceResult",
]
