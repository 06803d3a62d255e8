# =============================================================================
# vetbook_core/services/ownership.py
# Appointment Owner Reconciliation
# =============================================================================
"""
Older booking flows stored only the contact email on an appointment. The owner
is recovered by matching that email against the known users.

An unresolved owner is None. It never equals a user id, so per-user filters
cannot pick it up.
"""

from __future__ import annotations
from typing import Any, Dict, Iterable, List, Mapping, Optional

from vetbook_core.models import normalize_owner


def _email_key(email: Any) -> Optional[str]:
    if not email:
        return None
    key = str(email).strip().lower()
    return key or None


def build_email_index(users: Iterable[Mapping[str, Any]]) -> Dict[str, str]:
    """Lower-cased email -> user id. The first user listed for an email wins."""
    index: Dict[str, str] = {}
    for user in users:
        key = _email_key(user.get("email"))
        user_id = user.get("id")
        if key and user_id and key not in index:
            index[key] = user_id
    return index


def resolve_owner(record: Mapping[str, Any], users_by_email: Mapping[str, str]) -> Optional[str]:
    """
    Owner id of a record.

    An explicit owner id is returned unchanged and the email is not consulted.
    Otherwise the email is looked up case-insensitively; no match gives None.
    """
    explicit = normalize_owner(record.get("ownerId") or record.get("owner_id"))
    if explicit is not None:
        return explicit

    key = _email_key(record.get("email"))
    if key is None:
        return None
    return users_by_email.get(key)


def reconcile_owners(records: Iterable[Mapping[str, Any]], users: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """Copies of the records with ownerId filled in where it can be resolved."""
    index = build_email_index(users)
    reconciled = []
    for record in records:
        copy = dict(record)
        copy["ownerId"] = resolve_owner(record, index)
        reconciled.append(copy)
    return reconciled


def filter_owned_by(records: Iterable[Mapping[str, Any]], user_id: Optional[str]) -> List[Mapping[str, Any]]:
    """Records whose resolved owner is user_id. Unknown owners never match."""
    owner = normalize_owner(user_id)
    if owner is None:
        return []
    return [r for r in records if normalize_owner(r.get("ownerId")) == owner]
