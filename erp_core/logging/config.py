# =============================================================================
# erp_core/logging/config.py
# Logging Configuration for the ERP data layer
# =============================================================================

import logging
import sys
import time
from pathlib import Path
from datetime import datetime
from typing import Optional, Union


LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

DEFAULT_LOG_DIR = Path("logs")

# HTTP and UI libraries log every request at INFO
NOISY_LOGGERS = ("urllib3", "requests", "streamlit")


def resolve_level(level: Union[int, str]) -> int:
    """
    Turn ``"debug"`` / ``"WARNING"`` / ``10`` into a logging level.

    Raises:
        ValueError: unknown level name
    """
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_to_file: bool = True,
    log_filename: Optional[str] = None,
    log_dir: Optional[Path] = None,
) -> Optional[Path]:
    """
    Configure logging for the whole process.

    Called once at application start (see ``init_cache_store``).

    Args:
        level: Level number or name
        log_to_file: Also write to ``log_dir/log_filename``
        log_filename: Defaults to erp_YYYY-MM-DD.log
        log_dir: Defaults to ./logs

    Returns:
        Path of the log file, or None when logging to stdout only
    """
    handlers = [logging.StreamHandler(sys.stdout)]
    log_path = None

    if log_to_file:
        directory = Path(log_dir) if log_dir else DEFAULT_LOG_DIR
        directory.mkdir(parents=True, exist_ok=True)
        log_path = directory / (log_filename or f"erp_{datetime.now():%Y-%m-%d}.log")
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    logging.basicConfig(
        level=resolve_level(level),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        handlers=handlers,
        force=True,
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger("erp_core").info(
        f"Logging initialized ({logging.getLevelName(resolve_level(level))}"
        f"{f', file {log_path}' if log_path else ''})"
    )
    return log_path


def get_logger(name: str) -> logging.Logger:
    """
    Usage:
        from erp_core.logging import get_logger
        logger = get_logger(__name__)
    """
    return logging.getLogger(name)


class LogContext:
    """
    Times an operation and logs its start and outcome.

    Usage:
        with LogContext(logger, "Warming up caches") as ctx:
            await warm_up_all(manager)
        ctx.elapsed  # seconds
    """

    def __init__(self, logger: logging.Logger, operation: str):
        self.logger = logger
        self.operation = operation
        self.started_at = 0.0
        self.elapsed = 0.0

    def __enter__(self) -> "LogContext":
        self.started_at = time.perf_counter()
        self.logger.info(f"{self.operation}... started")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.elapsed = time.perf_counter() - self.started_at
        if exc_type is None:
            self.logger.info(f"{self.operation}... completed ({self.elapsed:.2f}s)")
        else:
            self.logger.error(
                f"{self.operation}... failed ({self.elapsed:.2f}s): {exc_val}",
                exc_info=True,
            )
        return False
