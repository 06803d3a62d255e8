# =============================================================================
# vetbook_core/errors/__init__.py
# Centralized Error Handling for the Vetbook core
# =============================================================================

from .exceptions import (
    VetbookError,
    DataValidationError,
    RemoteStoreError,
    LocalStoreError,
    AuthError,
    AuthServiceUnavailableError,
    AuthTimeoutError,
    ConfigurationError,
)

from .handlers import (
    handle_error,
    error_boundary,
)

__all__ = [
    # Exceptions
    "VetbookError",
    "DataValidationError",
    "RemoteStoreError",
    "LocalStoreError",
    "AuthError",
    "AuthServiceUnavailableError",
    "AuthTimeoutError",
    "ConfigurationError",
    # Handlers
    "handle_error",
    "error_boundary",
]
