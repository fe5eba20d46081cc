# =============================================================================
# tests/unit/test_errors.py
# Unit Tests for Error Handling and Logging Utilities
# =============================================================================

import logging

import pytest

from erp_core.errors import (
    ConfigurationError,
    ErrorContext,
    StorageQuotaExceededError,
    TransportError,
    error_boundary,
    handle_error,
    safe_execute,
)
from erp_core.logging import LogContext, resolve_level, setup_logging
from erp_core.services import ServiceResult


class TestExceptions:
    """Test the exception hierarchy"""

    def test_to_dict(self):
        error = TransportError("offline", url="https://erp.test", status_code=503)

        info = error.to_dict()
        assert info["error_type"] == "TransportError"
        assert info["code"] == "API_001"
        assert info["details"] == {"url": "https://erp.test", "status_code": 503}
        assert info["recoverable"] is True

    def test_quota_error_details(self):
        error = StorageQuotaExceededError("full", key="k", capacity_bytes=10, required_bytes=20)

        assert error.code == "STORE_002"
        assert error.details == {"capacity_bytes": 10, "required_bytes": 20, "key": "k"}

    def test_configuration_error_not_recoverable(self):
        assert ConfigurationError("bad").recoverable is False


class TestHandlers:
    """Test the error handling helpers"""

    def test_handle_error_unknown_exception(self):
        info = handle_error(ValueError("bad value"), log_error=False)

        assert info["code"] == "UNKNOWN"
        assert info["message"] == "bad value"

    def test_safe_execute_default(self):
        def fail():
            raise RuntimeError("boom")

        assert safe_execute(fail, default=[]) == []
        assert safe_execute(lambda x: x * 2, 4) == 8

    def test_safe_execute_reraise(self):
        def fail():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            safe_execute(fail, reraise=True)

    def test_error_context_suppresses_recoverable(self):
        with ErrorContext("Clearing cache") as ctx:
            raise RuntimeError("boom")

        assert isinstance(ctx.error, RuntimeError)

    def test_error_context_propagates_unrecoverable(self):
        with pytest.raises(RuntimeError):
            with ErrorContext("Clearing cache", recoverable=False):
                raise RuntimeError("boom")

    def test_error_boundary(self):
        @error_boundary(default_return="fallback")
        def explode():
            raise KeyError("missing")

        assert explode() == "fallback"
        assert explode.__name__ == "explode"


class TestServiceResult:
    """Test ServiceResult helpers"""

    def test_from_erp_error(self):
        result = ServiceResult.from_exception(TransportError("offline"))

        assert not result
        assert result.error_code == "API_001"
        assert result.unwrap_or([]) == []

    def test_ok(self):
        assert ServiceResult.ok([1]).unwrap_or([]) == [1]


class TestLogging:
    """Test logging setup"""

    @pytest.fixture
    def root_logger(self):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        yield root
        for handler in root.handlers:
            if handler not in saved_handlers:
                handler.close()
        root.handlers = saved_handlers
        root.setLevel(saved_level)

    def test_log_context_records_elapsed(self):
        with LogContext(logging.getLogger("test"), "Operation") as ctx:
            pass

        assert ctx.elapsed >= 0.0

    @pytest.mark.parametrize("level,expected", [
        (logging.DEBUG, logging.DEBUG),
        ("warning", logging.WARNING),
        (" INFO ", logging.INFO),
    ])
    def test_resolve_level(self, level, expected):
        assert resolve_level(level) == expected

    def test_resolve_unknown_level(self):
        with pytest.raises(ValueError):
            resolve_level("chatty")

    def test_setup_logging_writes_file(self, tmp_path, root_logger):
        log_path = setup_logging(level="debug", log_filename="erp_test.log", log_dir=tmp_path)
        logging.getLogger("erp_core.test").info("hello")
        for handler in root_logger.handlers:
            handler.flush()

        assert log_path == tmp_path / "erp_test.log"
        assert "hello" in log_path.read_text(encoding="utf-8")
        assert root_logger.level == logging.DEBUG
        assert logging.getLogger("urllib3").level == logging.WARNING

    def test_setup_logging_stdout_only(self, root_logger):
        assert setup_logging(log_to_file=False) is None
        assert not any(isinstance(h, logging.FileHandler) for h in root_logger.handlers)
