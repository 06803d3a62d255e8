# =============================================================================
# vetbook_core/services/appointment_service.py
# Appointment Repository
# =============================================================================
"""
Appointments in application shape with reconciled owners.

Reads join the pet, owner and vet rows and fill ownerId from the contact email
when a booking was stored without one. Writes resolve the owner in order:
explicit ownerId, the signed-in user, the contact email, else unknown (None).
"""

from __future__ import annotations
from datetime import datetime, timedelta
from typing import Any, Dict, List, Mapping, Optional

from vetbook_core.errors import DataValidationError
from vetbook_core.models import (
    APPOINTMENT,
    AppointmentStatus,
    normalize_status,
    to_application_records,
    to_application_shape,
    to_storage_shape,
)
from vetbook_core.offline.record_backend import Join, RecordBackend
from .base_service import BaseService
from .ownership import build_email_index, filter_owned_by, reconcile_owners, resolve_owner
from .stats_service import (
    AdminStats,
    RECENT_LIMIT,
    UPCOMING_WINDOW,
    appointments_by_status,
    compute_stats,
    recent_appointments,
    upcoming_appointments,
)

TABLE = "appointments"
JOINS = (
    Join("pet", "pets", "pet_id"),
    Join("owner", "profiles", "owner_id"),
    Join("vet", "profiles", "vet_id"),
)
VALID_STATUSES = frozenset(s.value for s in AppointmentStatus)


def _checked_status(status: Any) -> str:
    value = normalize_status(status)
    if value not in VALID_STATUSES:
        raise DataValidationError(
            f"Unknown appointment status: {status}",
            field="status",
            expected=", ".join(sorted(VALID_STATUSES)),
        )
    return value


class AppointmentRepository(BaseService):
    """Bookings for owners and the admin views built on them."""

    def __init__(self, backend: RecordBackend, profiles, pets):
        super().__init__()
        self.backend = backend
        self.profiles = profiles
        self.pets = pets

    # =========================================================================
    # READS
    # =========================================================================

    def list_appointments(self) -> List[Dict[str, Any]]:
        records = to_application_records(self.backend.select(TABLE, joins=JOINS), APPOINTMENT)
        if all(r.get("ownerId") for r in records):
            return records
        return reconcile_owners(records, self.profiles.list_users())

    def get_appointment(self, appointment_id: str) -> Optional[Dict[str, Any]]:
        row = self.backend.select_one(TABLE, {"id": appointment_id}, joins=JOINS)
        return to_application_shape(row, APPOINTMENT)

    def list_for_user(self, user_id: str) -> List[Dict[str, Any]]:
        appointments = filter_owned_by(self.list_appointments(), user_id)
        self.logger.debug(f"Found {len(appointments)} appointments for user {user_id}")
        return appointments

    def by_status(self, status: str) -> List[Dict[str, Any]]:
        return appointments_by_status(self.list_appointments(), status)

    def upcoming(self, now: Optional[datetime] = None, window: timedelta = UPCOMING_WINDOW) -> List[Dict[str, Any]]:
        return upcoming_appointments(self.list_appointments(), now or datetime.now(), window)

    def recent(self, limit: int = RECENT_LIMIT) -> List[Dict[str, Any]]:
        return recent_appointments(self.list_appointments(), limit)

    def stats(self) -> AdminStats:
        return compute_stats(self.list_appointments(), self.pets.list_all_pets())

    # =========================================================================
    # WRITES
    # =========================================================================

    def save_appointment(self, appointment: Mapping[str, Any], session_user_id: Optional[str] = None) -> Dict[str, Any]:
        """Store a new booking and return it as read back."""
        if not appointment.get("appointmentDate") and not appointment.get("appointment_date"):
            raise DataValidationError("Appointment date is required", field="appointmentDate", expected="date")

        owner_id = resolve_owner(appointment, {})
        if owner_id is None:
            owner_id = session_user_id
        if owner_id is None and appointment.get("email"):
            owner_id = resolve_owner(appointment, build_email_index(self.profiles.list_users()))

        row = to_storage_shape(appointment, APPOINTMENT)
        row.pop("id", None)
        row["owner_id"] = owner_id
        row["status"] = _checked_status(row.get("status") or AppointmentStatus.SCHEDULED.value)

        saved = self.backend.insert(TABLE, row)
        self.logger.info(f"Saved appointment {saved.get('id')} (owner: {owner_id or 'unknown'})")
        return to_application_shape(saved, APPOINTMENT)

    def _update(self, appointment_id: str, changes: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        rows = self.backend.update(TABLE, {"id": appointment_id}, to_storage_shape(changes, APPOINTMENT))
        return to_application_shape(rows[0], APPOINTMENT) if rows else None

    def update_status(self, appointment_id: str, status: str) -> Optional[Dict[str, Any]]:
        value = _checked_status(status)
        self.logger.info(f"Updating appointment {appointment_id} status to: {value}")
        return self._update(appointment_id, {"status": value})

    def update_notes(self, appointment_id: str, notes: Optional[str]) -> Optional[Dict[str, Any]]:
        return self._update(appointment_id, {"notes": notes})

    def delete_appointment(self, appointment_id: str) -> bool:
        self.logger.info(f"Deleting appointment {appointment_id}")
        return self.backend.delete(TABLE, {"id": appointment_id}) > 0
