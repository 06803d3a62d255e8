"""
Session and authentication facade for the Vetbook core.

Every public coroutine returns a ServiceResult and does not raise for
expected failures (bad credentials, validation, slow networks). Each call
to the identity provider is raced against a timer; when the timer wins the
provider call is left to finish on its own and its outcome is discarded, so
nothing it returns late can touch the session held here.

Known gap: signup creates the auth identity and then the profile row. If the
profile insert fails the identity is NOT removed; the result is a failure
with error_code PROFILE_CREATE_FAILED and the orphaned id in metadata.
"""

from __future__ import annotations
import asyncio
from typing import Any, Awaitable, Dict, Optional, TypeVar

from vetbook_core.config import Settings, password_reset_redirect
from vetbook_core.errors import (
    AuthError,
    AuthServiceUnavailableError,
    AuthTimeoutError,
    DataValidationError,
    VetbookError,
    error_boundary,
)
from vetbook_core.logging import get_logger
from vetbook_core.models import Role
from vetbook_core.services.base_service import BaseService, ServiceResult
from .backends import AuthBackend, AuthIdentity

logger = get_logger(__name__)

T = TypeVar("T")

MIN_PASSWORD_LENGTH = 6
RESET_REQUEST_MESSAGE = (
    "If an account exists for this email, you will receive a password reset link shortly."
)
RESET_FAILED_MESSAGE = "Failed to reset password. The reset link may be invalid or expired."
SERVICE_UNAVAILABLE_MESSAGE = "Could not reach the sign-in service. Please check your connection and try again."


# ==================== TIMEOUT GUARD ====================

def _discard_late_result(task: asyncio.Future) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug(f"Timed-out auth call failed after the deadline: {exc}")
    else:
        logger.debug("Timed-out auth call completed after the deadline; result discarded")


async def with_timeout(awaitable: Awaitable[T], seconds: float, message: str = "Request timed out") -> T:
    """
    Await a call for at most `seconds`.

    Raises:
        AuthTimeoutError: the call did not settle in time. The call keeps
            running in the background and whatever it produces is dropped.
    """
    task = asyncio.ensure_future(awaitable)
    done, _ = await asyncio.wait({task}, timeout=seconds)
    if task in done:
        return task.result()

    task.add_done_callback(_discard_late_result)
    raise AuthTimeoutError(message, timeout=seconds)


# ==================== VALIDATION ====================

def validate_password(password: str, confirm_password: Optional[str] = None) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise DataValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            field="password",
            expected=f">= {MIN_PASSWORD_LENGTH} characters",
        )
    if confirm_password is not None and confirm_password != password:
        raise DataValidationError("Passwords don't match", field="confirm_password")


def _require(value: Optional[str], field: str, label: str) -> str:
    text = (value or "").strip()
    if not text:
        raise DataValidationError(f"{label} is required", field=field)
    return text


def _failure(error: VetbookError, user_message: Optional[str] = None) -> ServiceResult:
    return ServiceResult.from_exception(error, user_message=user_message)


# ==================== AUTH SERVICE ====================

class AuthService(BaseService):
    """
    Login, signup, logout and password reset against an AuthBackend.

    Usage:
        auth = AuthService(SupabaseAuthBackend(client), profiles, reset_log, settings)
        result = await auth.login("owner@example.com", "secret1")
        if result:
            user = auth.current_user
    """

    def __init__(self, backend: AuthBackend, profiles, reset_log=None, settings: Optional[Settings] = None):
        super().__init__()
        self.backend = backend
        self.profiles = profiles
        self.reset_log = reset_log
        self.settings = settings or Settings()
        self._user: Optional[Dict[str, Any]] = None

    @property
    def current_user(self) -> Optional[Dict[str, Any]]:
        return self._user

    @property
    def is_admin(self) -> bool:
        return bool(self._user) and self._user.get("role") == Role.ADMIN.value

    def _session_user(self, identity: AuthIdentity) -> Dict[str, Any]:
        profile = self.profiles.get_profile(identity.id)
        if profile is None:
            self.logger.warning(f"No profile found for user {identity.id}")
            return {"id": identity.id, "email": identity.email, "role": Role.USER.value}
        return profile

    async def login(self, email: str, password: str) -> ServiceResult:
        try:
            email = _require(email, "email", "Email")
            _require(password, "password", "Password")
            identity = await with_timeout(
                self.backend.sign_in(email, password),
                self.settings.login_timeout,
                "Login timed out. Please check your connection.",
            )
            user = self._session_user(identity)
        except AuthTimeoutError as e:
            return _failure(e)
        except AuthServiceUnavailableError as e:
            return _failure(e, user_message=SERVICE_UNAVAILABLE_MESSAGE)
        except AuthError as e:
            return _failure(e, user_message="Invalid email or password")
        except VetbookError as e:
            return _failure(e)

        self._user = user
        self.logger.info(f"User {user['id']} logged in")
        return ServiceResult.ok({"user": user, "isAdmin": self.is_admin})

    async def signup(
        self,
        full_name: str,
        email: str,
        password: str,
        confirm_password: Optional[str] = None,
    ) -> ServiceResult:
        try:
            full_name = _require(full_name, "full_name", "Name")
            email = _require(email, "email", "Email")
            validate_password(password, confirm_password)
            identity = await with_timeout(
                self.backend.sign_up(email, password, full_name),
                self.settings.signup_timeout,
                "Signup timed out. Please check your connection.",
            )
        except AuthServiceUnavailableError as e:
            return _failure(e, user_message=SERVICE_UNAVAILABLE_MESSAGE)
        except VetbookError as e:
            return _failure(e)

        try:
            profile = self.profiles.create_profile(
                {"id": identity.id, "email": email, "fullName": full_name, "role": Role.USER.value}
            )
        except Exception as e:
            self.logger.error(
                f"Auth identity {identity.id} was created but its profile was not: {e}",
                exc_info=True,
            )
            return ServiceResult.fail(
                "Your account could not be fully created. Please contact support.",
                error_code="PROFILE_CREATE_FAILED",
                metadata={"user_id": identity.id},
            )

        self.logger.info(f"Signed up user {identity.id}")
        return ServiceResult.ok(profile)

    async def logout(self) -> ServiceResult:
        try:
            await with_timeout(self.backend.sign_out(), self.settings.auth_timeout, "Logout timed out.")
        except VetbookError as e:
            return _failure(e)
        self._user = None
        return ServiceResult.ok()

    @error_boundary(default_return=None, error_message="Recording password reset request failed")
    def _log_reset_request(self, email: str):
        if self.reset_log is not None:
            return self.reset_log.record_request(email)
        return None

    async def request_password_reset(self, email: str) -> ServiceResult:
        """
        Ask the provider to email a reset link.

        Known and unknown emails get the same result. Only validation,
        timeouts and an unreachable provider produce a failure, and none of
        them depends on the account.
        """
        try:
            email = _require(email, "email", "Email")
        except DataValidationError as e:
            return _failure(e)

        self._log_reset_request(email)
        redirect_to = password_reset_redirect(self.settings)

        try:
            await with_timeout(
                self.backend.reset_password_for_email(email, redirect_to),
                self.settings.auth_timeout,
                "Password reset request timed out. Please try again.",
            )
        except AuthTimeoutError as e:
            return _failure(e)
        except AuthServiceUnavailableError as e:
            return _failure(e, user_message=SERVICE_UNAVAILABLE_MESSAGE)
        except AuthError as e:
            # Provider errors can reveal whether the account exists
            self.logger.warning(f"Password reset request was rejected by the provider: {e}")

        return ServiceResult.ok({"message": RESET_REQUEST_MESSAGE})

    async def verify_password_reset(self, email: str, token: str) -> ServiceResult:
        """
        Open the recovery session from the email and token of a reset link.

        A wrong, used or expired token and an unknown email fail the same way.
        """
        try:
            email = _require(email, "email", "Email")
            token = _require(token, "token", "Reset token")
            await with_timeout(
                self.backend.verify_recovery(email, token),
                self.settings.auth_timeout,
                "Reset link verification timed out. Please try again.",
            )
        except AuthTimeoutError as e:
            return _failure(e)
        except AuthServiceUnavailableError as e:
            return _failure(e, user_message=SERVICE_UNAVAILABLE_MESSAGE)
        except AuthError as e:
            return _failure(e, user_message=RESET_FAILED_MESSAGE)
        except VetbookError as e:
            return _failure(e)

        self._user = None
        return ServiceResult.ok({"email": email})

    async def complete_password_reset(self, new_password: str, confirm_password: Optional[str] = None) -> ServiceResult:
        """Set the new password; needs the recovery session opened by verify_password_reset."""
        try:
            validate_password(new_password, confirm_password)
            await with_timeout(
                self.backend.update_password(new_password),
                self.settings.auth_timeout,
                "Password update timed out. Please try again.",
            )
        except AuthTimeoutError as e:
            return _failure(e)
        except AuthServiceUnavailableError as e:
            return _failure(e, user_message=SERVICE_UNAVAILABLE_MESSAGE)
        except AuthError as e:
            return _failure(e, user_message=RESET_FAILED_MESSAGE)
        except VetbookError as e:
            return _failure(e)

        self.logger.info("Password updated")
        return ServiceResult.ok({"message": "Your password has been updated. You can now log in with your new password."})

