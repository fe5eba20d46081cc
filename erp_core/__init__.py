# =============================================================================
# erp_core/__init__.py
# Client-side data layer of the ERP application
# =============================================================================
"""
erp_core - cache-aside synchronization between the ERP backend API and a
local key-value store.

Sub-packages:
    erp_core.offline   storage, cache store, entity manager, warm-up
    erp_core.api       backend connector and configuration
    erp_core.auth      identity accessors, login completion, logout
    erp_core.errors    exception hierarchy and handlers
    erp_core.services  ServiceResult and BaseService
    erp_core.logging   logging setup
"""

__version__ = "1.0.0"
