# =============================================================================
# vetbook_core/services/pet_service.py
# Pet Repository
# =============================================================================

from __future__ import annotations
from typing import Any, Dict, List, Mapping, Optional

from vetbook_core.errors import DataValidationError
from vetbook_core.models import PET, to_application_records, to_application_shape, to_storage_shape
from vetbook_core.offline.record_backend import Join, RecordBackend
from .base_service import BaseService

TABLE = "pets"
OWNER_JOIN = Join("owner", "profiles", "owner_id")


def _scope(pet_id: str, owner_id: Optional[str]) -> Dict[str, Any]:
    """Owners act on their own pets only; owner_id None is an admin acting on any pet."""
    filters = {"id": pet_id}
    if owner_id is not None:
        filters["owner_id"] = owner_id
    return filters


class PetRepository(BaseService):
    """Pets, always returned in application shape (birthDate, ownerId, ...)."""

    def __init__(self, backend: RecordBackend):
        super().__init__()
        self.backend = backend

    def list_pets(self, owner_id: str) -> List[Dict[str, Any]]:
        if not owner_id:
            return []
        return to_application_records(self.backend.select(TABLE, {"owner_id": owner_id}), PET)

    def get_pet(self, pet_id: str, owner_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
        return to_application_shape(self.backend.select_one(TABLE, _scope(pet_id, owner_id)), PET)

    def create_pet(self, owner_id: str, pet: Mapping[str, Any]) -> Dict[str, Any]:
        """Create a pet owned by owner_id; any owner in the payload is ignored."""
        if not owner_id:
            raise DataValidationError("A pet needs an owner", field="ownerId", expected="user id")
        if not (pet.get("name") or "").strip():
            raise DataValidationError("Pet name is required", field="name", expected="non-empty string")

        row = to_storage_shape(pet, PET)
        row.pop("id", None)
        row["owner_id"] = owner_id
        self.logger.info(f"Creating pet '{row['name']}' for owner {owner_id}")
        return to_application_shape(self.backend.insert(TABLE, row), PET)

    def update_pet(
        self,
        pet_id: str,
        changes: Mapping[str, Any],
        owner_id: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        """Apply a partial update; fields not in changes are left untouched."""
        payload = to_storage_shape(changes, PET)
        for locked in ("id", "owner_id"):
            payload.pop(locked, None)
        if not payload:
            return self.get_pet(pet_id, owner_id)
        rows = self.backend.update(TABLE, _scope(pet_id, owner_id), payload)
        return to_application_shape(rows[0], PET) if rows else None

    def delete_pet(self, pet_id: str, owner_id: Optional[str] = None) -> bool:
        return self.backend.delete(TABLE, _scope(pet_id, owner_id)) > 0

    def list_all_pets(self) -> List[Dict[str, Any]]:
        """Every pet with its owner joined, plus ownerName/ownerEmail for admin tables."""
        pets = to_application_records(self.backend.select(TABLE, joins=[OWNER_JOIN]), PET)
        for pet in pets:
            owner = pet.get("owner") or {}
            pet["ownerName"] = owner.get("fullName")
            pet["ownerEmail"] = owner.get("email")
        return pets
