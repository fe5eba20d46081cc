"""
ERP API Module
Connectors and configuration for the remote ERP backend
"""

from .base_connector import BaseAPIConnector, APIConfig
from .config_manager import APIConfigManager
from .erp_connector import ERPConnector

__all__ = [
    "BaseAPIConnector",
    "APIConfig",
    "APIConfigManager",
    "ERPConnector",
]
