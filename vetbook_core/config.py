# =============================================================================
# vetbook_core/config.py
# Runtime Settings for the Vetbook core
# =============================================================================
"""
Settings are read once at process start.

Expected secrets.toml format:
    [supabase]
    url = "https://your-project.supabase.co"
    key = "your-anon-key"

    [app]
    url = "https://booking.example-vet.com"
    backend = "auto"            # auto | local | remote
    local_db_path = "local_data/vetbook.db"
    local_tables = ["appointments"]

Environment variables are used for anything missing from secrets:
SUPABASE_URL, SUPABASE_KEY, VETBOOK_APP_URL, VETBOOK_BACKEND,
VETBOOK_LOCAL_DB, VETBOOK_LOCAL_TABLES (comma separated).
"""

from __future__ import annotations
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import streamlit as st

from vetbook_core.errors import ConfigurationError
from vetbook_core.logging import get_logger

logger = get_logger(__name__)

BACKEND_MODES = ("auto", "local", "remote")
DEFAULT_LOCAL_DB_PATH = Path("local_data") / "vetbook.db"
# Streamlit's default dev server origin, used when no app URL is configured
DEFAULT_LOCAL_ORIGIN = "http://localhost:8501"
RESET_PASSWORD_PATH = "/reset-password"


@dataclass(frozen=True)
class Settings:
    """Resolved runtime settings."""
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    app_url: Optional[str] = None
    backend: str = "auto"
    local_db_path: str = str(DEFAULT_LOCAL_DB_PATH)
    local_tables: Tuple[str, ...] = field(default_factory=tuple)
    login_timeout: float = 10.0
    signup_timeout: float = 12.0
    auth_timeout: float = 10.0

    def __post_init__(self):
        if self.backend not in BACKEND_MODES:
            raise ConfigurationError(
                f"Unknown backend mode '{self.backend}'",
                config_key="backend",
            )
        if self.backend == "remote" and not self.remote_configured:
            raise ConfigurationError(
                "Remote backend requested but Supabase URL/key are missing",
                config_key="supabase",
            )

    @property
    def remote_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)

    @property
    def use_remote(self) -> bool:
        """Whether the remote row store is the default backend."""
        if self.backend == "local":
            return False
        return self.remote_configured


def _read_secrets() -> Dict[str, Dict[str, Any]]:
    """Return the [supabase] and [app] secret sections, if any."""
    sections: Dict[str, Dict[str, Any]] = {}
    try:
        for name in ("supabase", "app"):
            if name in st.secrets:
                sections[name] = dict(st.secrets[name])
    except Exception as e:
        # No secrets.toml outside a configured Streamlit deployment
        logger.debug(f"Streamlit secrets unavailable, using environment: {e}")
    return sections


def _split_tables(value: Any) -> Tuple[str, ...]:
    if not value:
        return tuple()
    if isinstance(value, str):
        value = value.split(",")
    return tuple(t.strip() for t in value if str(t).strip())


def load_settings() -> Settings:
    """Build Settings from Streamlit secrets with environment fallback."""
    secrets = _read_secrets()
    supabase = secrets.get("supabase", {})
    app = secrets.get("app", {})

    return Settings(
        supabase_url=supabase.get("url") or os.getenv("SUPABASE_URL") or None,
        supabase_key=supabase.get("key") or os.getenv("SUPABASE_KEY") or None,
        app_url=app.get("url") or os.getenv("VETBOOK_APP_URL") or None,
        backend=(app.get("backend") or os.getenv("VETBOOK_BACKEND") or "auto").lower(),
        local_db_path=app.get("local_db_path") or os.getenv("VETBOOK_LOCAL_DB") or str(DEFAULT_LOCAL_DB_PATH),
        local_tables=_split_tables(app.get("local_tables") or os.getenv("VETBOOK_LOCAL_TABLES")),
    )


def password_reset_redirect(settings: Settings, fallback_origin: str = DEFAULT_LOCAL_ORIGIN) -> str:
    """
    Build the link target the reset email points to.

    Falls back to fallback_origin when no app URL is configured, which in a
    deployed environment yields an unreachable link, so it warns.
    """
    app_url = settings.app_url
    if not app_url:
        logger.warning(
            "App URL is not configured; password reset links will point to "
            f"{fallback_origin}. Set VETBOOK_APP_URL (or [app].url) to the public URL."
        )
        app_url = fallback_origin
    elif "localhost" in app_url:
        logger.warning(f"App URL {app_url} points to localhost; reset links will not work outside this machine")

    return f"{app_url.rstrip('/')}{RESET_PASSWORD_PATH}"
