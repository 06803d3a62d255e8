# =============================================================================
# vetbook_core/errors/exceptions.py
# Custom Exception Hierarchy for the Vetbook core
# =============================================================================

from typing import Optional, Dict, Any


class VetbookError(Exception):
    """
    Base exception for all Vetbook core errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (e.g., "STORE_001")
        details: Additional context as a dictionary
        recoverable: Whether the calling flow can carry on
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = True,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or "VB_000"
        self.details = details or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        base = f"[{self.code}] {self.message}"
        if self.details:
            base += f" | Details: {self.details}"
        return base

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization"""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
        }


# =============================================================================
# VALIDATION EXCEPTIONS
# =============================================================================

class DataValidationError(VetbookError):
    """Raised when user input fails validation before any network call"""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        expected: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if field:
            details["field"] = field
        if expected:
            details["expected"] = expected

        super().__init__(
            message=message,
            code="DATA_001",
            details=details,
            **kwargs,
        )


# =============================================================================
# STORAGE EXCEPTIONS
# =============================================================================

class RemoteStoreError(VetbookError):
    """Raised when the hosted row store is unreachable or rejects a query"""

    def __init__(
        self,
        message: str,
        table: Optional[str] = None,
        operation: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if table:
            details["table"] = table
        if operation:
            details["operation"] = operation

        super().__init__(
            message=message,
            code="STORE_001",
            details=details,
            **kwargs,
        )


class LocalStoreError(VetbookError):
    """Raised when the local fallback store cannot persist a collection"""

    def __init__(
        self,
        message: str,
        collection: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if collection:
            details["collection"] = collection

        super().__init__(
            message=message,
            code="STORE_002",
            details=details,
            **kwargs,
        )


# =============================================================================
# AUTH EXCEPTIONS
# =============================================================================

class AuthError(VetbookError):
    """Raised when the auth service rejects a request"""

    def __init__(
        self,
        message: str,
        action: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if action:
            details["action"] = action

        super().__init__(
            message=message,
            code=kwargs.pop("code", "AUTH_001"),
            details=details,
            **kwargs,
        )


class AuthServiceUnavailableError(AuthError):
    """Raised when the auth service cannot be reached (network/transport failure)"""

    def __init__(self, message: str, **kwargs):
        details = kwargs.pop("details", {})
        details["transient"] = True

        super().__init__(
            message=message,
            code="AUTH_002",
            details=details,
            **kwargs,
        )


class AuthTimeoutError(AuthError):
    """Raised when an auth call does not settle within its time budget"""

    def __init__(
        self,
        message: str,
        timeout: Optional[float] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if timeout is not None:
            details["timeout_seconds"] = timeout

        super().__init__(
            message=message,
            code="AUTH_TIMEOUT",
            details=details,
            **kwargs,
        )


# =============================================================================
# CONFIGURATION EXCEPTIONS
# =============================================================================

class ConfigurationError(VetbookError):
    """Raised when configuration is invalid or missing"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if config_key:
            details["config_key"] = config_key

        super().__init__(
            message=message,
            code="CONFIG_001",
            details=details,
            recoverable=False,
            **kwargs,
        )
