# =============================================================================
# vetbook_core/services/password_reset_service.py
# Password Reset Request Log
# =============================================================================
"""
Bookkeeping of password reset requests for the admin screen.

This log is separate from the auth service: a request is recorded whether or
not the email belongs to an account, and marking it completed says nothing
about whether the user actually chose a new password.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional

from vetbook_core.models import PASSWORD_RESET_REQUEST, ResetRequestStatus, to_application_records, to_application_shape
from vetbook_core.offline.local_database import utc_now_iso
from vetbook_core.offline.record_backend import RecordBackend
from .base_service import BaseService

TABLE = "password_reset_requests"


class PasswordResetLog(BaseService):

    def __init__(self, backend: RecordBackend):
        super().__init__()
        self.backend = backend

    def record_request(self, email: str) -> Dict[str, Any]:
        row = {
            "email": (email or "").strip(),
            "status": ResetRequestStatus.PENDING.value,
            "created_at": utc_now_iso(),
            "completed_at": None,
        }
        return to_application_shape(self.backend.insert(TABLE, row), PASSWORD_RESET_REQUEST)

    def list_requests(self, search: Optional[str] = None) -> List[Dict[str, Any]]:
        """Newest first, optionally narrowed to emails containing search (any case)."""
        requests = to_application_records(self.backend.select(TABLE), PASSWORD_RESET_REQUEST)
        if search:
            term = search.strip().lower()
            requests = [r for r in requests if term in (r.get("email") or "").lower()]
        return sorted(requests, key=lambda r: r.get("createdAt") or "", reverse=True)

    def mark_completed(self, request_id: str) -> Optional[Dict[str, Any]]:
        rows = self.backend.update(
            TABLE,
            {"id": request_id},
            {"status": ResetRequestStatus.COMPLETED.value, "completed_at": utc_now_iso()},
        )
        if not rows:
            return None
        self.logger.info(f"Password reset request {request_id} marked as completed")
        return to_application_shape(rows[0], PASSWORD_RESET_REQUEST)
