"""
API Configuration Manager
Centralized resolution of the ERP API and cache storage configuration
"""
import os
from pathlib import Path
from typing import Dict, Any, Optional
import logging

import streamlit as st
from dotenv import load_dotenv

from erp_core.errors import ConfigurationError
from erp_core.logging import resolve_level
from erp_core.offline.cache_store import CacheConfig
from erp_core.offline.storage import DEFAULT_CAPACITY_BYTES
from .base_connector import APIConfig

logger = logging.getLogger(__name__)


class APIConfigManager:
    """
    Resolves configuration from Streamlit secrets, then the environment
    (``.env`` is loaded first), then defaults.

    Expected secrets.toml format:
        [api.erp]
        base_url = "https://erp.example.com/api/"
        api_key = "optional-token"
        timeout = 30

        [cache]
        backend = "sqlite"          # memory | sqlite | session
        db_path = "local_data/erp_cache.db"
        capacity_bytes = 5242880

        [logging]
        level = "INFO"
        to_file = true
        dir = "logs"

    Usage:
        config_manager = APIConfigManager()
        api_config = config_manager.get_erp_config()
        cache_config = config_manager.get_cache_config()
    """

    ENV_VARS = {
        ("erp", "base_url"): "ERP_API_BASE_URL",
        ("erp", "api_key"): "ERP_API_KEY",
        ("erp", "timeout"): "ERP_API_TIMEOUT",
        ("erp", "rate_limit_delay"): "ERP_API_RATE_LIMIT_DELAY",
        ("cache", "backend"): "ERP_CACHE_BACKEND",
        ("cache", "db_path"): "ERP_CACHE_DB_PATH",
        ("cache", "capacity_bytes"): "ERP_CACHE_CAPACITY_BYTES",
        ("cache", "namespace"): "ERP_CACHE_NAMESPACE",
        ("logging", "level"): "ERP_LOG_LEVEL",
        ("logging", "to_file"): "ERP_LOG_TO_FILE",
        ("logging", "dir"): "ERP_LOG_DIR",
    }

    def __init__(self, env: Optional[Dict[str, str]] = None):
        """Initialize with configurations from Streamlit secrets or the environment"""
        if env is None:
            load_dotenv()
            env = dict(os.environ)
        self.env = env
        self.secrets = self._load_secrets()

    def _load_secrets(self) -> Dict[str, Any]:
        """Load the ``api.erp``, ``cache`` and ``logging`` sections of Streamlit secrets"""
        secrets: Dict[str, Any] = {"erp": {}, "cache": {}, "logging": {}}
        try:
            if hasattr(st, "secrets"):
                if "api" in st.secrets and "erp" in st.secrets["api"]:
                    secrets["erp"] = dict(st.secrets["api"]["erp"])
                if "cache" in st.secrets:
                    secrets["cache"] = dict(st.secrets["cache"])
                if "logging" in st.secrets:
                    secrets["logging"] = dict(st.secrets["logging"])
        except Exception as e:
            # No secrets.toml - environment and defaults apply
            logger.debug(f"Streamlit secrets unavailable: {e}")
        return secrets

    def _value(self, section: str, name: str, default: Any = None) -> Any:
        if name in self.secrets.get(section, {}):
            return self.secrets[section][name]
        env_name = self.ENV_VARS.get((section, name))
        return self.env.get(env_name, default) if env_name else default

    @staticmethod
    def _as_int(value: Any, config_key: str) -> Optional[int]:
        if value is None or value == "":
            return None
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(
                f"Invalid integer for {config_key}: {value!r}",
                config_key=config_key,
                expected_type="int",
            ) from e

    def get_erp_config(self, **overrides) -> APIConfig:
        """
        Configuration of the ERP backend.

        Raises:
            ConfigurationError: when no base URL is configured
        """
        base_url = overrides.pop("base_url", None) or self._value("erp", "base_url")
        if not base_url:
            raise ConfigurationError(
                "ERP API base URL is not configured (api.erp.base_url or ERP_API_BASE_URL)",
                config_key="api.erp.base_url",
                expected_type="str",
            )

        config = {
            "api_name": "ERP",
            "base_url": base_url,
            "api_key": self._value("erp", "api_key"),
            "timeout": self._as_int(self._value("erp", "timeout"), "api.erp.timeout") or 30,
            "rate_limit_delay": float(self._value("erp", "rate_limit_delay", 0.0) or 0.0),
        }
        config.update(overrides)
        return APIConfig(**config)

    def get_cache_config(self, **overrides) -> CacheConfig:
        """Configuration of the cache storage backend"""
        db_path = self._value("cache", "db_path")
        capacity = self._as_int(self._value("cache", "capacity_bytes"), "cache.capacity_bytes")

        config = {
            "backend": (self._value("cache", "backend") or "memory").lower(),
            "db_path": Path(db_path) if db_path else None,
            "capacity_bytes": capacity if capacity is not None else DEFAULT_CAPACITY_BYTES,
            "namespace": self._value("cache", "namespace") or "_erp_cache",
        }
        config.update(overrides)
        return CacheConfig(**config)

    def get_logging_config(self) -> Dict[str, Any]:
        """Keyword arguments for ``setup_logging``"""
        level = self._value("logging", "level") or "INFO"
        try:
            resolve_level(level)
        except ValueError as e:
            raise ConfigurationError(
                str(e), config_key="logging.level", expected_type="log level name"
            ) from e

        to_file = self._value("logging", "to_file", True)
        if isinstance(to_file, str):
            to_file = to_file.strip().lower() not in ("0", "false", "no", "off", "")
        log_dir = self._value("logging", "dir")

        return {
            "level": level,
            "log_to_file": bool(to_file),
            "log_dir": Path(log_dir) if log_dir else None,
        }
