# =============================================================================
# vetbook_core/services/__init__.py
# Domain Repositories and Admin Services
# =============================================================================

from .base_service import BaseService, ServiceResult
from .ownership import build_email_index, resolve_owner, reconcile_owners, filter_owned_by
from .stats_service import (
    AdminStats,
    AdminService,
    compute_stats,
    upcoming_appointments,
    appointments_by_status,
    recent_appointments,
    records_to_dataframe,
)
from .user_service import ProfileRepository
from .pet_service import PetRepository
from .appointment_service import AppointmentRepository
from .catalog_service import CatalogRepository
from .password_reset_service import PasswordResetLog

__all__ = [
    "BaseService",
    "ServiceResult",
    "build_email_index",
    "resolve_owner",
    "reconcile_owners",
    "filter_owned_by",
    "AdminStats",
    "AdminService",
    "compute_stats",
    "upcoming_appointments",
    "appointments_by_status",
    "recent_appointments",
    "records_to_dataframe",
    "ProfileRepository",
    "PetRepository",
    "AppointmentRepository",
    "CatalogRepository",
    "PasswordResetLog",
]
