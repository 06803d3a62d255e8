# =============================================================================
# vetbook_core/errors/handlers.py
# Error Handling Utilities for the Vetbook core
# =============================================================================

from __future__ import annotations
import functools
import traceback
from typing import Optional, Callable, TypeVar, Any

from vetbook_core.logging import get_logger
from .exceptions import VetbookError

logger = get_logger(__name__)

T = TypeVar("T")

GENERIC_ERROR_MESSAGE = "Something went wrong. Please try again later."


def handle_error(
    error: Exception,
    log_error: bool = True,
    user_message: Optional[str] = None,
) -> str:
    """
    Centralized error handling function.

    Args:
        error: The exception to handle
        log_error: Whether to log the error
        user_message: Custom message for the user (uses error message if None)

    Returns:
        The message the UI layer should present
    """
    if isinstance(error, VetbookError):
        message = user_message or error.message
        code = error.code
        details = error.details
        recoverable = error.recoverable
    else:
        message = user_message or GENERIC_ERROR_MESSAGE
        code = "UNKNOWN"
        details = {"traceback": traceback.format_exc()}
        recoverable = True

    if log_error:
        logger.error(
            f"[{code}] {error}",
            extra={"details": details},
            exc_info=error,
        )

    if not recoverable:
        return f"{message}. Please contact support."
    return message


def error_boundary(
    default_return: Any = None,
    error_message: Optional[str] = None,
    log: bool = True,
):
    """
    Decorator to wrap read paths that must degrade instead of failing.

    Usage:
        @error_boundary(default_return=[], error_message="Loading pets failed")
        def load_pets(owner_id: str) -> List[dict]:
            ...
    """
    def decorator(func: Callable[..., T]) -> Callable[..., Optional[T]]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Optional[T]:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                if log:
                    logger.error(
                        f"Error in {func.__name__}: {error_message or e}",
                        exc_info=True,
                    )
                return default_return

        return wrapper

    return decorator
