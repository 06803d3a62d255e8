# =============================================================================
# vetbook_core/offline/unified_data_service.py
# Clinic Data Service - Backend Selection and Repository Wiring
# =============================================================================
"""
ClinicDataService - the entry point the app uses for all data access.

The backend for each table is chosen once, when the service is created:
- remote mode: every table on Supabase, except the local-only bookkeeping
- local mode: every table in the local store
- Settings.local_tables: tables not yet migrated stay local while the rest
  go remote

Domain repositories only see a RecordBackend and never ask which one.

Usage:
------
from vetbook_core.offline import get_data_service

service = get_data_service()
pets = service.pets.list_pets(user_id)
result = await service.auth.login(email, password)
"""

from __future__ import annotations
import threading
from typing import Any, Dict, Iterable, Optional

from vetbook_core.config import Settings, load_settings
from vetbook_core.errors import ConfigurationError
from vetbook_core.logging import get_logger
from .local_database import LocalDatabase, get_local_database
from .record_backend import LocalRecordBackend, RecordBackend

logger = get_logger(__name__)


class ClinicDataService:
    """Per-table backend routing plus the repositories built on it."""

    # Never stored remotely
    LOCAL_ONLY_TABLES = frozenset({"password_reset_requests", "credentials"})

    def __init__(
        self,
        local: LocalRecordBackend,
        remote: Optional[RecordBackend] = None,
        local_tables: Iterable[str] = (),
    ):
        self.local = local
        self.remote = remote
        self.local_tables = frozenset(local_tables) | self.LOCAL_ONLY_TABLES

        # Joins follow the table routing, whichever backend runs the query
        self.local.join_router = self.backend_for
        if remote is not None:
            remote.join_router = self.backend_for

        self.profiles = None
        self.pets = None
        self.appointments = None
        self.catalog = None
        self.reset_log = None
        self.admin = None
        self.auth = None

    def backend_for(self, table: str) -> RecordBackend:
        if self.remote is None or table in self.local_tables:
            return self.local
        return self.remote

    @property
    def is_remote(self) -> bool:
        return self.remote is not None

    @property
    def mode(self) -> str:
        if self.remote is None:
            return "local"
        if self.local_tables - self.LOCAL_ONLY_TABLES:
            return "mixed"
        return "remote"

    def get_status(self) -> Dict[str, Any]:
        """Get service status for the admin screen."""
        return {
            "mode": self.mode,
            "local_db": self.local.local_db.db_path,
            "local_tables": sorted(self.local_tables),
        }


def _remote_backend(settings: Settings, supabase_client=None) -> Optional[RecordBackend]:
    from vetbook_core.data.supabase_client import SupabaseService, client_from_settings

    if supabase_client is not None:
        return SupabaseService(supabase_client)
    if not settings.use_remote:
        return None
    try:
        return SupabaseService(client_from_settings(settings))
    except ConfigurationError:
        if settings.backend == "remote":
            raise
        logger.warning("Supabase client unavailable, falling back to the local store", exc_info=True)
        return None


def create_data_service(
    settings: Optional[Settings] = None,
    local_db: Optional[LocalDatabase] = None,
    supabase_client=None,
) -> ClinicDataService:
    """
    Build the data service and its repositories.

    Args:
        settings: Runtime settings (loaded from secrets/environment if None)
        local_db: Local store handle (process-wide database if None)
        supabase_client: Pre-built Supabase client, mainly for tests
    """
    from vetbook_core.auth import AuthService, LocalAuthBackend, SupabaseAuthBackend
    from vetbook_core.services import (
        AdminService,
        AppointmentRepository,
        CatalogRepository,
        PasswordResetLog,
        PetRepository,
        ProfileRepository,
    )

    settings = settings or load_settings()
    local = LocalRecordBackend(local_db or get_local_database(settings.local_db_path))
    remote = _remote_backend(settings, supabase_client) if settings.backend != "local" else None

    service = ClinicDataService(local, remote, settings.local_tables)
    backend = service.backend_for

    service.profiles = ProfileRepository(backend("profiles"))
    service.pets = PetRepository(backend("pets"))
    service.appointments = AppointmentRepository(backend("appointments"), service.profiles, service.pets)
    service.catalog = CatalogRepository(backend("services"), backend("feedback"), backend("medical_records"))
    service.reset_log = PasswordResetLog(backend("password_reset_requests"))
    service.admin = AdminService(service.appointments, service.pets)

    if remote is not None:
        auth_backend = SupabaseAuthBackend(remote.client)
    else:
        auth_backend = LocalAuthBackend(backend("credentials"))
    service.auth = AuthService(auth_backend, service.profiles, service.reset_log, settings)

    logger.info(f"Data service ready ({service.mode} mode)")
    return service


_data_service: Optional[ClinicDataService] = None
_data_service_lock = threading.Lock()


def get_data_service() -> ClinicDataService:
    """
    Get the process-wide data service.

    Usage:
        from vetbook_core.offline import get_data_service
        service = get_data_service()
    """
    global _data_service
    if _data_service is None:
        with _data_service_lock:
            if _data_service is None:
                _data_service = create_data_service()
    return _data_service
