# =============================================================================
# vetbook_core/services/catalog_service.py
# Services Catalog, Feedback and Medical Records
# =============================================================================

from __future__ import annotations
from typing import Any, Dict, List, Mapping, Optional

from vetbook_core.errors import DataValidationError
from vetbook_core.models import FEEDBACK, MEDICAL_RECORD, SERVICE, to_application_records, to_application_shape, to_storage_shape
from vetbook_core.offline.record_backend import Join, RecordBackend
from .base_service import BaseService

RATING_RANGE = range(1, 6)


class CatalogRepository(BaseService):
    """Read-mostly clinic data: the services offered, visit feedback, medical history."""

    def __init__(self, services: RecordBackend, feedback: RecordBackend, medical_records: RecordBackend):
        super().__init__()
        self.services_backend = services
        self.feedback_backend = feedback
        self.medical_records_backend = medical_records

    def list_services(self) -> List[Dict[str, Any]]:
        return to_application_records(self.services_backend.select("services"), SERVICE)

    def create_feedback(self, feedback: Mapping[str, Any]) -> Dict[str, Any]:
        row = to_storage_shape(feedback, FEEDBACK)
        row.pop("id", None)
        rating = row.get("rating")
        if rating not in RATING_RANGE:
            raise DataValidationError(f"Rating must be 1-5, got {rating}", field="rating", expected="1-5")
        if not row.get("appointment_id"):
            raise DataValidationError("Feedback must reference an appointment", field="appointmentId")
        return to_application_shape(self.feedback_backend.insert("feedback", row), FEEDBACK)

    def get_feedback(self, appointment_id: str) -> Optional[Dict[str, Any]]:
        row = self.feedback_backend.select_one("feedback", {"appointment_id": appointment_id})
        return to_application_shape(row, FEEDBACK)

    def list_medical_records(self, pet_id: str) -> List[Dict[str, Any]]:
        rows = self.medical_records_backend.select(
            "medical_records",
            {"pet_id": pet_id},
            joins=[Join("vet", "profiles", "vet_id")],
        )
        return to_application_records(rows, MEDICAL_RECORD)
