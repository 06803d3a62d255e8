# =============================================================================
# vetbook_core/auth/backends.py
# Auth Service Backends (Supabase Auth and local credentials)
# =============================================================================
"""
The calls AuthService makes against an identity provider.

SupabaseAuthBackend wraps supabase-py's blocking auth client and runs each
call in a worker thread so the event loop stays free. LocalAuthBackend keeps
bcrypt hashes in the local store for running without a hosted project.

A recovery session is only opened by verify_recovery with the token from a
reset link; requesting a reset never changes the session.
"""

from __future__ import annotations
import asyncio
import secrets
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlencode

import bcrypt
import httpx

from vetbook_core.errors import AuthError, AuthServiceUnavailableError
from vetbook_core.logging import get_logger
from vetbook_core.offline.record_backend import RecordBackend

logger = get_logger(__name__)

RESET_TOKEN_TTL = timedelta(hours=1)

# Failures reaching the provider, as opposed to the provider saying no
TRANSPORT_ERRORS = (httpx.TransportError, ConnectionError)


@dataclass(frozen=True)
class AuthIdentity:
    """The account as the identity provider knows it."""
    id: str
    email: Optional[str] = None


class AuthBackend(ABC):

    @abstractmethod
    async def sign_up(self, email: str, password: str, full_name: str) -> AuthIdentity:
        ...

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> AuthIdentity:
        ...

    @abstractmethod
    async def sign_out(self) -> None:
        ...

    @abstractmethod
    async def reset_password_for_email(self, email: str, redirect_to: str) -> None:
        """Send a reset link. Must not reveal whether the account exists."""

    @abstractmethod
    async def verify_recovery(self, email: str, token: str) -> AuthIdentity:
        """Exchange the token from a reset link for a recovery session."""

    @abstractmethod
    async def update_password(self, new_password: str) -> None:
        """Set a new password for the account of the active (recovery) session."""


# =============================================================================
# SUPABASE AUTH
# =============================================================================

class SupabaseAuthBackend(AuthBackend):

    def __init__(self, client):
        self.client = client

    async def _call(self, action: str, func: Callable[..., Any], *args) -> Any:
        try:
            return await asyncio.to_thread(func, *args)
        except TRANSPORT_ERRORS as e:
            raise AuthServiceUnavailableError(f"Auth service unreachable during {action}: {e}", action=action) from e
        except Exception as e:
            raise AuthError(str(e) or f"{action} failed", action=action) from e

    @staticmethod
    def _identity(response, action: str) -> AuthIdentity:
        user = getattr(response, "user", None)
        if user is None:
            raise AuthError(f"{action} returned no user", action=action)
        return AuthIdentity(id=user.id, email=getattr(user, "email", None))

    async def sign_up(self, email: str, password: str, full_name: str) -> AuthIdentity:
        response = await self._call(
            "sign_up",
            self.client.auth.sign_up,
            {"email": email, "password": password, "options": {"data": {"full_name": full_name}}},
        )
        return self._identity(response, "sign_up")

    async def sign_in(self, email: str, password: str) -> AuthIdentity:
        response = await self._call(
            "sign_in",
            self.client.auth.sign_in_with_password,
            {"email": email, "password": password},
        )
        return self._identity(response, "sign_in")

    async def sign_out(self) -> None:
        await self._call("sign_out", self.client.auth.sign_out)

    async def reset_password_for_email(self, email: str, redirect_to: str) -> None:
        await self._call(
            "reset_password",
            self.client.auth.reset_password_for_email,
            email,
            {"redirect_to": redirect_to},
        )

    async def verify_recovery(self, email: str, token: str) -> AuthIdentity:
        response = await self._call(
            "verify_recovery",
            self.client.auth.verify_otp,
            {"email": email, "token": token, "type": "recovery"},
        )
        return self._identity(response, "verify_recovery")

    async def update_password(self, new_password: str) -> None:
        await self._call("update_password", self.client.auth.update_user, {"password": new_password})


# =============================================================================
# LOCAL CREDENTIALS
# =============================================================================

def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Example:
        >>> hash_password("mypassword123")
        '$2b$12$...'
    """
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode(), password_hash.encode())
    except ValueError:
        # Not a bcrypt hash
        return False


class LocalAuthBackend(AuthBackend):
    """
    Credentials kept in the local 'credentials' collection.

    There is no mail delivery locally. A reset request for a known account
    stores a bcrypt hash of a single-use token with an expiry on its
    credentials row and puts the link in `outbox`. Only verify_recovery with
    that token opens a recovery session.
    """

    TABLE = "credentials"

    def __init__(self, backend: RecordBackend, token_ttl: timedelta = RESET_TOKEN_TTL):
        self.backend = backend
        self.token_ttl = token_ttl
        self.outbox: List[Dict[str, str]] = []
        self._session: Optional[AuthIdentity] = None

    def _find(self, email: str) -> Optional[Dict[str, Any]]:
        wanted = (email or "").strip().lower()
        for row in self.backend.select(self.TABLE):
            if (row.get("email") or "").strip().lower() == wanted:
                return row
        return None

    async def sign_up(self, email: str, password: str, full_name: str) -> AuthIdentity:
        if self._find(email) is not None:
            raise AuthError("User already registered", action="sign_up")
        row = self.backend.insert(
            self.TABLE,
            {"email": email.strip(), "full_name": full_name, "password_hash": hash_password(password)},
        )
        return AuthIdentity(id=row["id"], email=row["email"])

    async def sign_in(self, email: str, password: str) -> AuthIdentity:
        row = self._find(email)
        if row is None or not verify_password(password, row.get("password_hash") or ""):
            raise AuthError("Invalid login credentials", action="sign_in")
        self._session = AuthIdentity(id=row["id"], email=row["email"])
        return self._session

    async def sign_out(self) -> None:
        self._session = None

    async def reset_password_for_email(self, email: str, redirect_to: str) -> None:
        row = self._find(email)
        if row is None:
            return

        token = secrets.token_urlsafe(32)
        expires_at = datetime.now(timezone.utc) + self.token_ttl
        self.backend.update(
            self.TABLE,
            {"id": row["id"]},
            {"recovery_token_hash": hash_password(token), "recovery_expires_at": expires_at.isoformat()},
        )
        link = f"{redirect_to}?{urlencode({'email': row['email'], 'token': token})}"
        self.outbox.append({"email": row["email"], "token": token, "link": link})
        logger.info(f"Local mode: reset link for account {row['id']} added to the outbox")

    async def verify_recovery(self, email: str, token: str) -> AuthIdentity:
        row = self._find(email)
        token_hash = (row or {}).get("recovery_token_hash")
        expires_at = (row or {}).get("recovery_expires_at")
        if (
            not token_hash
            or not expires_at
            or datetime.fromisoformat(expires_at) <= datetime.now(timezone.utc)
            or not verify_password(token or "", token_hash)
        ):
            raise AuthError("Token has expired or is invalid", action="verify_recovery")

        # Single use
        self.backend.update(self.TABLE, {"id": row["id"]}, {"recovery_token_hash": None, "recovery_expires_at": None})
        self._session = AuthIdentity(id=row["id"], email=row["email"])
        return self._session

    async def update_password(self, new_password: str) -> None:
        if self._session is None:
            raise AuthError("Auth session missing", action="update_password")
        self.backend.update(self.TABLE, {"id": self._session.id}, {"password_hash": hash_password(new_password)})
