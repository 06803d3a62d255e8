# =============================================================================
# vetbook_core/services/base_service.py
# ServiceResult and the Base Class of Vetbook Services
# =============================================================================

from __future__ import annotations
from abc import ABC
from typing import Optional, Dict, Any, Callable
from dataclasses import dataclass

from vetbook_core.logging import get_logger, LogContext
from vetbook_core.errors import handle_error, VetbookError


@dataclass
class ServiceResult:
    """
    What a UI-facing call returns instead of raising.

    `error` is always a message fit for display; `error_code` and `metadata`
    carry the machine-readable part (e.g. AUTH_TIMEOUT, {"timeout_seconds": 10}).
    """
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    def __bool__(self) -> bool:
        return self.success

    @classmethod
    def ok(cls, data: Any = None) -> ServiceResult:
        return cls(success=True, data=data)

    @classmethod
    def fail(
        cls,
        error: str,
        error_code: str = "UNKNOWN",
        metadata: Dict[str, Any] = None
    ) -> ServiceResult:
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            metadata=metadata,
        )

    @classmethod
    def from_exception(
        cls,
        e: Exception,
        user_message: Optional[str] = None,
        log_error: bool = True,
    ) -> ServiceResult:
        """
        Failed result for an exception, logged through handle_error.

        Vetbook errors keep their code and details; anything else gets the
        generic message so internals never reach the screen.
        """
        message = handle_error(e, log_error=log_error, user_message=user_message)
        if isinstance(e, VetbookError):
            return cls.fail(message, error_code=e.code, metadata=e.details)
        return cls.fail(message)


class BaseService(ABC):
    """
    Base of the repositories and facades.

    Gives each service a logger named after its class, timed operation
    logging, and safe_execute for calls that must end in a ServiceResult.

    Usage:
        class PetRepository(BaseService):
            def create_pet(self, owner_id, pet) -> dict:
                with self.log_operation("Creating pet"):
                    ...
    """

    def __init__(self):
        self.logger = get_logger(self.__class__.__name__)

    def log_operation(self, operation: str) -> LogContext:
        return LogContext(self.logger, operation)

    def safe_execute(
        self,
        operation: str,
        func: Callable[..., Any],
        *args,
        **kwargs
    ) -> ServiceResult:
        """Run func inside a logged operation; any exception becomes a failed result."""
        try:
            with self.log_operation(operation):
                return ServiceResult.ok(func(*args, **kwargs))
        except Exception as e:
            return ServiceResult.from_exception(e)
