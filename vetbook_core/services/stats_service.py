# =============================================================================
# vetbook_core/services/stats_service.py
# Admin Statistics and Appointment Views
# =============================================================================
"""
Admin-facing aggregates derived by re-scanning the appointment and pet
collections. Every function here is a pure fold over application-shape
records; AdminService wires them to the repositories.
"""

from __future__ import annotations
import re
from dataclasses import dataclass, asdict
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import pandas as pd

from vetbook_core.models import AppointmentStatus, CLOSED_STATUSES, normalize_owner, normalize_status
from .base_service import BaseService, ServiceResult

UPCOMING_WINDOW = timedelta(hours=24)
RECENT_LIMIT = 5

# First clock time in a slot label: "09:30", "9:30 AM", "14:00 - 14:30"
_TIME_PATTERN = re.compile(r"(\d{1,2}):(\d{2})\s*([AaPp][Mm])?")


@dataclass(frozen=True)
class AdminStats:
    """Counts shown on the admin dashboard."""
    total_appointments: int = 0
    total_pets: int = 0
    active_owners: int = 0
    scheduled_appointments: int = 0
    completed_appointments: int = 0
    cancelled_appointments: int = 0

    def to_dict(self) -> Dict[str, int]:
        values = asdict(self)
        return {
            "totalAppointments": values["total_appointments"],
            "totalPets": values["total_pets"],
            "activeClients": values["active_owners"],
            "scheduledAppointments": values["scheduled_appointments"],
            "completedAppointments": values["completed_appointments"],
            "cancelledAppointments": values["cancelled_appointments"],
        }


def records_to_dataframe(records: Iterable[Mapping[str, Any]], columns: Optional[Sequence[str]] = None) -> pd.DataFrame:
    """Tabular view of normalized records; requested columns always exist."""
    rows = [dict(r) for r in records]
    if columns is None:
        return pd.DataFrame(rows)
    return pd.DataFrame(rows, columns=list(columns))


def compute_stats(appointments: Iterable[Mapping[str, Any]], pets: Iterable[Mapping[str, Any]]) -> AdminStats:
    """
    Aggregate counts over all appointments and pets.

    Statuses compare case-insensitively. Appointments with an unknown status
    count toward the total only. Unknown owners are not active owners.
    """
    df = records_to_dataframe(appointments, ["status", "ownerId"])
    total_pets = sum(1 for _ in pets)

    if df.empty:
        return AdminStats(total_pets=total_pets)

    statuses = df["status"].map(normalize_status, na_action="ignore").value_counts()
    owners = df["ownerId"].map(normalize_owner, na_action="ignore").dropna()

    return AdminStats(
        total_appointments=int(len(df)),
        total_pets=total_pets,
        active_owners=int(owners.nunique()),
        scheduled_appointments=int(statuses.get(AppointmentStatus.SCHEDULED.value, 0)),
        completed_appointments=int(statuses.get(AppointmentStatus.COMPLETED.value, 0)),
        cancelled_appointments=int(statuses.get(AppointmentStatus.CANCELLED.value, 0)),
    )


def _slot_time(slot: Any) -> Optional[tuple]:
    if not slot:
        return None
    match = _TIME_PATTERN.search(str(slot))
    if not match:
        return None
    hour, minute = int(match.group(1)), int(match.group(2))
    meridiem = (match.group(3) or "").lower()
    if meridiem == "pm" and hour < 12:
        hour += 12
    elif meridiem == "am" and hour == 12:
        hour = 0
    if hour > 23 or minute > 59:
        return None
    return hour, minute


def appointment_start(appointment: Mapping[str, Any], tz=None) -> Optional[pd.Timestamp]:
    """
    When an appointment begins, or None if its date cannot be parsed.

    A date without a time of day takes the first time found in the timeSlot.
    Naive values are taken to be in tz when one is given.
    """
    value = appointment.get("appointmentDate")
    if value is None or value == "":
        return None
    start = pd.to_datetime(value, errors="coerce")
    if pd.isna(start):
        return None

    slot = _slot_time(appointment.get("timeSlot"))
    if slot is not None and start == start.normalize():
        start = start.replace(hour=slot[0], minute=slot[1])

    if tz is not None and start.tzinfo is None:
        start = start.tz_localize(tz)
    elif tz is None and start.tzinfo is not None:
        start = start.tz_convert(None)
    return start


def upcoming_appointments(
    appointments: Iterable[Mapping[str, Any]],
    now: datetime,
    window: timedelta = UPCOMING_WINDOW,
) -> List[Mapping[str, Any]]:
    """
    Open appointments starting strictly after now and strictly before
    now + window. Cancelled and completed appointments never qualify.
    """
    current = pd.Timestamp(now)
    horizon = current + window
    upcoming = []
    for appointment in appointments:
        if normalize_status(appointment.get("status")) in CLOSED_STATUSES:
            continue
        start = appointment_start(appointment, tz=current.tzinfo)
        if start is not None and current < start < horizon:
            upcoming.append(appointment)
    return upcoming


def appointments_by_status(appointments: Iterable[Mapping[str, Any]], status: str) -> List[Mapping[str, Any]]:
    wanted = normalize_status(status)
    return [a for a in appointments if normalize_status(a.get("status")) == wanted]


def recent_appointments(appointments: Iterable[Mapping[str, Any]], limit: int = RECENT_LIMIT) -> List[Mapping[str, Any]]:
    """Newest first by createdAt; records without a creation time sort last."""
    def sort_key(appointment):
        created = pd.to_datetime(appointment.get("createdAt"), errors="coerce", utc=True)
        if pd.isna(created):
            return (1, 0)
        return (0, -created.value)

    return sorted(appointments, key=sort_key)[:limit]


class AdminService(BaseService):
    """Admin dashboard data: stats, the next 24 hours, latest bookings."""

    def __init__(self, appointments, pets):
        super().__init__()
        self.appointments = appointments
        self.pets = pets

    def _dashboard(self, now: datetime) -> Dict[str, Any]:
        appointments = self.appointments.list_appointments()
        pets = self.pets.list_all_pets()
        return {
            "stats": compute_stats(appointments, pets).to_dict(),
            "upcoming": upcoming_appointments(appointments, now),
            "recent": recent_appointments(appointments),
        }

    def dashboard(self, now: Optional[datetime] = None) -> ServiceResult:
        return self.safe_execute("Loading admin dashboard", self._dashboard, now or datetime.now())
