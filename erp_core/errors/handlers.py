# =============================================================================
# erp_core/errors/handlers.py
# Error Handling Utilities for the ERP data layer
# =============================================================================

from __future__ import annotations
import functools
import traceback
from typing import Optional, Callable, TypeVar, Any, Dict

from erp_core.logging import get_logger
from .exceptions import ERPCoreError

logger = get_logger(__name__)

T = TypeVar("T")


def handle_error(
    error: Exception,
    log_error: bool = True,
    context: Optional[str] = None,
    level: str = "error",
) -> Dict[str, Any]:
    """
    Centralized error handling function.

    The data layer never surfaces errors to the user; this only normalizes
    the error into a dictionary and logs it.

    Args:
        error: The exception to handle
        log_error: Whether to log the error
        context: Short description of what was being done
        level: Logger method to use ("error", "warning", ...)

    Returns:
        Dictionary description of the error
    """
    if isinstance(error, ERPCoreError):
        info = error.to_dict()
    else:
        info = {
            "error_type": error.__class__.__name__,
            "code": "UNKNOWN",
            "message": str(error),
            "details": {"traceback": traceback.format_exc()},
            "recoverable": True,
        }

    if log_error:
        prefix = f"{context}: " if context else ""
        log = getattr(logger, level, logger.error)
        log(
            f"{prefix}[{info['code']}] {info['message']}",
            extra={"details": info["details"]},
            exc_info=level == "error" and not isinstance(error, ERPCoreError),
        )

    return info


def safe_execute(
    func: Callable[..., T],
    *args,
    default: Optional[T] = None,
    context: Optional[str] = None,
    reraise: bool = False,
    **kwargs,
) -> Optional[T]:
    """
    Execute a function with automatic error handling.

    Usage:
        result = safe_execute(
            backend.keys,
            default=[],
            context="Listing cache keys"
        )
    """
    try:
        return func(*args, **kwargs)
    except Exception as e:
        handle_error(e, context=context)
        if reraise:
            raise
        return default


class ErrorContext:
    """
    Context manager for error handling with automatic logging.

    Usage:
        with ErrorContext("Clearing cache", recoverable=True):
            store.clear()
    """

    def __init__(self, operation: str, recoverable: bool = True):
        self.operation = operation
        self.recoverable = recoverable
        self.error: Optional[BaseException] = None

    def __enter__(self) -> ErrorContext:
        logger.debug(f"Starting: {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if exc_type is not None:
            if not issubclass(exc_type, Exception):
                return False
            self.error = exc_val
            handle_error(exc_val, context=f"Error during: {self.operation}")
            # Suppress exception if recoverable
            return self.recoverable

        logger.debug(f"Completed: {self.operation}")
        return False


def error_boundary(
    default_return: Any = None,
    log: bool = True,
):
    """
    Decorator to wrap functions with error handling.

    Usage:
        @error_boundary(default_return=None)
        def get_user_role() -> Optional[str]:
            ...
    """
    def decorator(func: Callable[..., T]) -> Callable[..., Optional[T]]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Optional[T]:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                if log:
                    logger.warning(f"Error in {func.__name__}: {e}")
                return default_return

        return wrapper

    return decorator
