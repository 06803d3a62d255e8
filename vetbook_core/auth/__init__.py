"""Session and authentication."""

from .backends import (
    AuthBackend,
    AuthIdentity,
    SupabaseAuthBackend,
    LocalAuthBackend,
    hash_password,
    verify_password,
)
from .authentication import (
    AuthService,
    with_timeout,
    validate_password,
    MIN_PASSWORD_LENGTH,
    RESET_REQUEST_MESSAGE,
)

__all__ = [
    "AuthBackend",
    "AuthIdentity",
    "SupabaseAuthBackend",
    "LocalAuthBackend",
    "hash_password",
    "verify_password",
    "AuthService",
    "with_timeout",
    "validate_password",
    "MIN_PASSWORD_LENGTH",
    "RESET_REQUEST_MESSAGE",
]
