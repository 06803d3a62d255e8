# =============================================================================
# vetbook_core/models/records.py
# Entity Shapes, Enumerations and Value Normalizers
# =============================================================================
"""
Every entity has two shapes:

- storage shape: the row as the hosted row store (and the local fallback
  store) keeps it: snake_case columns, foreign-key columns.
- application shape: what the rest of the app consumes: camelCase keys,
  denormalized display fields, normalized status/role values.

An EntityShape lists the (storage column, application key) pairs of an entity.
The translation itself lives in vetbook_core.models.normalization.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union


class Role(str, Enum):
    """Profile roles."""
    USER = "user"
    ADMIN = "admin"
    VET = "vet"


class AppointmentStatus(str, Enum):
    """Appointment lifecycle states."""
    PENDING = "pending"
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ResetRequestStatus(str, Enum):
    """Password reset bookkeeping states."""
    PENDING = "pending"
    COMPLETED = "completed"


# Statuses that take an appointment off the calendar
CLOSED_STATUSES = frozenset({AppointmentStatus.COMPLETED.value, AppointmentStatus.CANCELLED.value})

# Owner id written by older builds when ownership could not be resolved
LEGACY_ANONYMOUS_OWNER = "anonymous"

_STATUS_SPELLINGS = {
    "canceled": AppointmentStatus.CANCELLED.value,
}

_ROLE_SPELLINGS = {
    "customer": Role.USER.value,
    "client": Role.USER.value,
    "veterinarian": Role.VET.value,
}


def normalize_status(value: Any) -> Optional[str]:
    """
    Lower-case and strip a status value.

    Known statuses come back as the AppointmentStatus value; unknown ones are
    returned lower-cased so they still count toward totals.
    """
    if value is None:
        return None
    text = str(value).strip().lower()
    if not text:
        return None
    return _STATUS_SPELLINGS.get(text, text)


def normalize_role(value: Any) -> str:
    """Map any role spelling onto Role; unknown roles become 'user'."""
    text = str(value or "").strip().lower()
    text = _ROLE_SPELLINGS.get(text, text)
    if text in {r.value for r in Role}:
        return text
    return Role.USER.value


def normalize_owner(value: Any) -> Optional[str]:
    """Owner ids: empty values and the legacy sentinel mean 'unknown'."""
    if value is None:
        return None
    text = str(value).strip()
    if not text or text == LEGACY_ANONYMOUS_OWNER:
        return None
    return text


@dataclass(frozen=True)
class EntityShape:
    """Field correspondence between storage rows and application records."""
    name: str
    fields: Tuple[Tuple[str, str], ...]
    # Legacy storage columns accepted on read only
    read_aliases: Tuple[Tuple[str, str], ...] = ()
    # Passthrough keys holding joined entities: key -> entity name
    nested: Tuple[Tuple[str, str], ...] = ()
    # Application key -> value normalizer
    normalizers: Mapping[str, Callable[[Any], Any]] = field(default_factory=dict)

    @property
    def application_keys(self) -> Tuple[str, ...]:
        return tuple(key for _, key in self.fields)

    @property
    def storage_columns(self) -> Tuple[str, ...]:
        return tuple(column for column, _ in self.fields)


_TIMESTAMPS = (("created_at", "createdAt"), ("updated_at", "updatedAt"))

PROFILE = EntityShape(
    name="profile",
    fields=(
        ("id", "id"),
        ("email", "email"),
        ("full_name", "fullName"),
        ("phone_number", "phone"),
        ("role", "role"),
        ("status", "status"),
    ) + _TIMESTAMPS,
    read_aliases=(("name", "fullName"),),
    normalizers={"role": normalize_role},
)

PET = EntityShape(
    name="pet",
    fields=(
        ("id", "id"),
        ("owner_id", "ownerId"),
        ("name", "name"),
        ("species", "species"),
        ("breed", "breed"),
        ("gender", "gender"),
        ("weight", "weight"),
        ("birth_date", "birthDate"),
        ("medical_history", "medicalHistory"),
    ) + _TIMESTAMPS,
    nested=(("owner", "profile"),),
)

SERVICE = EntityShape(
    name="service",
    fields=(
        ("id", "id"),
        ("name", "name"),
        ("description", "description"),
        ("price", "price"),
        ("duration", "duration"),
    ) + _TIMESTAMPS,
)

APPOINTMENT = EntityShape(
    name="appointment",
    fields=(
        ("id", "id"),
        ("pet_id", "petId"),
        ("owner_id", "ownerId"),
        ("vet_id", "vetId"),
        ("service_type", "serviceType"),
        ("appointment_date", "appointmentDate"),
        ("appointment_time", "timeSlot"),
        ("status", "status"),
        ("notes", "notes"),
        ("pet_name", "petName"),
        ("pet_species", "petSpecies"),
        ("owner_name", "ownerName"),
        ("email", "email"),
        ("phone", "phone"),
    ) + _TIMESTAMPS,
    read_aliases=(
        ("time_slot", "timeSlot"),
        ("service", "serviceType"),
        ("user_notes", "notes"),
        ("additional_info", "notes"),
    ),
    nested=(
        ("pet", "pet"),
        ("service", "service"),
        ("owner", "profile"),
        ("vet", "profile"),
    ),
    normalizers={"status": normalize_status, "ownerId": normalize_owner},
)

FEEDBACK = EntityShape(
    name="feedback",
    fields=(
        ("id", "id"),
        ("user_id", "userId"),
        ("appointment_id", "appointmentId"),
        ("rating", "rating"),
        ("comment", "comment"),
    ) + _TIMESTAMPS,
)

MEDICAL_RECORD = EntityShape(
    name="medical_record",
    fields=(
        ("id", "id"),
        ("pet_id", "petId"),
        ("appointment_id", "appointmentId"),
        ("vet_id", "vetId"),
        ("diagnosis", "diagnosis"),
        ("treatment", "treatment"),
        ("prescription", "prescription"),
        ("notes", "notes"),
    ) + _TIMESTAMPS,
    nested=(("vet", "profile"), ("pet", "pet")),
)

PASSWORD_RESET_REQUEST = EntityShape(
    name="password_reset_request",
    fields=(
        ("id", "id"),
        ("email", "email"),
        ("status", "status"),
        ("created_at", "createdAt"),
        ("completed_at", "completedAt"),
    ),
)

ENTITY_SHAPES: Dict[str, EntityShape] = {
    shape.name: shape
    for shape in (PROFILE, PET, SERVICE, APPOINTMENT, FEEDBACK, MEDICAL_RECORD, PASSWORD_RESET_REQUEST)
}


def get_shape(entity: Union[str, EntityShape]) -> EntityShape:
    if isinstance(entity, EntityShape):
        return entity
    try:
        return ENTITY_SHAPES[entity]
    except KeyError:
        raise ValueError(f"Unknown entity: {entity}") from None


# =============================================================================
# DERIVED VALUES
# =============================================================================

def _to_date(value: Union[str, date, datetime]) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def calculate_pet_age(
    birth_date: Optional[Union[str, date, datetime]],
    today: Optional[Union[str, date, datetime]] = None,
) -> Optional[str]:
    """
    Human-readable age derived from a birth date.

    Examples (today = 2024-01-01):
        2022-01-01 -> "2 years"
        2022-10-01 -> "1 year and 3 months"
        2023-11-15 -> "1 month"
        2023-12-20 -> "12 days"
    """
    if not birth_date:
        return None
    try:
        born = _to_date(birth_date)
    except ValueError:
        return None
    now = _to_date(today) if today is not None else date.today()
    if born > now:
        return None

    months = (now.year - born.year) * 12 + (now.month - born.month)
    if now.day < born.day:
        months -= 1
    years, remaining = divmod(months, 12)

    if months < 1:
        return _plural((now - born).days, "day")
    if years < 1:
        return _plural(remaining, "month")
    if remaining == 0:
        return _plural(years, "year")
    return f"{_plural(years, 'year')} and {_plural(remaining, 'month')}"
