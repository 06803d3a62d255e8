# =============================================================================
# vetbook_core/models/__init__.py
# Entity Shapes and Normalization
# =============================================================================

from .records import (
    Role,
    AppointmentStatus,
    ResetRequestStatus,
    CLOSED_STATUSES,
    EntityShape,
    PROFILE,
    PET,
    SERVICE,
    APPOINTMENT,
    FEEDBACK,
    MEDICAL_RECORD,
    PASSWORD_RESET_REQUEST,
    get_shape,
    normalize_status,
    normalize_role,
    normalize_owner,
    calculate_pet_age,
)

from .normalization import (
    to_application_shape,
    to_storage_shape,
    to_application_records,
)

__all__ = [
    "Role",
    "AppointmentStatus",
    "ResetRequestStatus",
    "CLOSED_STATUSES",
    "EntityShape",
    "PROFILE",
    "PET",
    "SERVICE",
    "APPOINTMENT",
    "FEEDBACK",
    "MEDICAL_RECORD",
    "PASSWORD_RESET_REQUEST",
    "get_shape",
    "normalize_status",
    "normalize_role",
    "normalize_owner",
    "calculate_pet_age",
    "to_application_shape",
    "to_storage_shape",
    "to_application_records",
]
