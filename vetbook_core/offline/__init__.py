# =============================================================================
# vetbook_core/offline/__init__.py
# Local Fallback Store and Backend Selection
# =============================================================================
"""
Storage backends for the Vetbook core.

Architecture:
------------
    repositories (profiles, pets, appointments, ...)
                    │
              RecordBackend
          ┌─────────┴─────────┐
          ▼                   ▼
 LocalRecordBackend     SupabaseService
  (LocalDatabase,        (hosted row
   SQLite JSON            store)
   collections)

ClinicDataService picks a backend per table when it is created.

Usage:
------
from vetbook_core.offline import get_data_service

service = get_data_service()
appointments = service.appointments.list_for_user(user_id)
"""

from vetbook_core.offline.local_database import (
    LocalDatabase,
    get_local_database,
    new_record_id,
)

from vetbook_core.offline.record_backend import (
    Join,
    RecordBackend,
    LocalRecordBackend,
)

from vetbook_core.offline.unified_data_service import (
    ClinicDataService,
    create_data_service,
    get_data_service,
)

__all__ = [
    # Local Database
    "LocalDatabase",
    "get_local_database",
    "new_record_id",
    # Backends
    "Join",
    "RecordBackend",
    "LocalRecordBackend",
    # Data Service (Main API)
    "ClinicDataService",
    "create_data_service",
    "get_data_service",
]
