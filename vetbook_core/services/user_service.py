# =============================================================================
# vetbook_core/services/user_service.py
# Profile Repository
# =============================================================================

from __future__ import annotations
from typing import Any, Dict, List, Mapping, Optional

from vetbook_core.models import PROFILE, Role, to_application_records, to_application_shape, to_storage_shape
from vetbook_core.offline.record_backend import RecordBackend
from .base_service import BaseService

TABLE = "profiles"


def role_from_label(label: str) -> str:
    """Admin screens offer 'Admin' or a customer label; only 'Admin' grants admin."""
    return Role.ADMIN.value if label == "Admin" else Role.USER.value


class ProfileRepository(BaseService):
    """Profiles (the users collection when running locally)."""

    def __init__(self, backend: RecordBackend):
        super().__init__()
        self.backend = backend

    def get_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        if not user_id:
            return None
        return to_application_shape(self.backend.select_one(TABLE, {"id": user_id}), PROFILE)

    def create_profile(self, profile: Mapping[str, Any]) -> Dict[str, Any]:
        row = to_storage_shape(profile, PROFILE)
        row.setdefault("role", Role.USER.value)
        self.logger.info(f"Creating profile for {row.get('email')}")
        return to_application_shape(self.backend.insert(TABLE, row), PROFILE)

    def update_profile(self, user_id: str, changes: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        payload = to_storage_shape(changes, PROFILE)
        payload.pop("id", None)
        if not payload:
            return self.get_profile(user_id)
        rows = self.backend.update(TABLE, {"id": user_id}, payload)
        return to_application_shape(rows[0], PROFILE) if rows else None

    def list_users(self) -> List[Dict[str, Any]]:
        return to_application_records(self.backend.select(TABLE), PROFILE)

    def find_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        """Case-insensitive lookup."""
        wanted = (email or "").strip().lower()
        if not wanted:
            return None
        for user in self.list_users():
            if (user.get("email") or "").strip().lower() == wanted:
                return user
        return None

    def update_role(self, user_id: str, label: str) -> Optional[Dict[str, Any]]:
        role = role_from_label(label)
        self.logger.info(f"Updating user {user_id} role to: {role}")
        return self.update_profile(user_id, {"role": role})

    def update_status(self, user_id: str, status: str) -> Optional[Dict[str, Any]]:
        self.logger.info(f"Updating user {user_id} status to: {status}")
        return self.update_profile(user_id, {"status": status})

    def delete_user(self, user_id: str) -> bool:
        self.logger.info(f"Deleting user {user_id}")
        return self.backend.delete(TABLE, {"id": user_id}) > 0
