# =============================================================================
# vetbook_core/offline/record_backend.py
# Record Backend Interface and Local Implementation
# =============================================================================
"""
RecordBackend - the one capability interface the domain services use.

Rows crossing this interface are in storage shape (snake_case columns).
Tables are addressed by their remote names (profiles, pets, appointments,
services, feedback, medical_records, password_reset_requests); the local
implementation maps them onto its collections.

Implementations:
- LocalRecordBackend   (this module, over LocalDatabase)
- SupabaseService      (vetbook_core.data.supabase_client)
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from vetbook_core.logging import get_logger
from .local_database import LocalDatabase, new_record_id, utc_now_iso

logger = get_logger(__name__)

Filters = Optional[Mapping[str, Any]]


@dataclass(frozen=True)
class Join:
    """
    Many-to-one join: row[alias] = <table row whose id == row[foreign_key]>.

    Rendered for the row store as "alias:table!foreign_key(*)".
    """
    alias: str
    table: str
    foreign_key: str

    def to_select(self) -> str:
        return f"{self.alias}:{self.table}!{self.foreign_key}(*)"


class RecordBackend(ABC):
    """Storage capability used by every domain service."""

    # Set by ClinicDataService: which backend holds a joined table
    join_router: Optional[Callable[[str], "RecordBackend"]] = None

    def join_backend(self, table: str) -> "RecordBackend":
        if self.join_router is None:
            return self
        return self.join_router(table)

    @abstractmethod
    def select(
        self,
        table: str,
        filters: Filters = None,
        joins: Sequence[Join] = (),
    ) -> List[Dict[str, Any]]:
        """Rows matching all equality filters (None matches null)."""

    @abstractmethod
    def insert(self, table: str, row: Mapping[str, Any]) -> Dict[str, Any]:
        """Insert a row and return it as stored (with id and timestamps)."""

    @abstractmethod
    def update(self, table: str, filters: Mapping[str, Any], changes: Mapping[str, Any]) -> List[Dict[str, Any]]:
        """Apply changes to matching rows and return the updated rows."""

    @abstractmethod
    def delete(self, table: str, filters: Mapping[str, Any]) -> int:
        """Delete matching rows and return how many were removed."""

    def select_one(self, table: str, filters: Filters = None, joins: Sequence[Join] = ()) -> Optional[Dict[str, Any]]:
        rows = self.select(table, filters, joins)
        return rows[0] if rows else None


def attach_join(rows: List[Dict[str, Any]], join: Join, related: Iterable[Mapping[str, Any]]) -> None:
    """Set row[join.alias] to the related row (or None) for every row."""
    by_id = {r.get("id"): r for r in related}
    for row in rows:
        row[join.alias] = by_id.get(row.get(join.foreign_key))


def require_filters(table: str, operation: str, filters: Filters) -> None:
    """Updates and deletes are always scoped by key columns."""
    if not filters:
        raise ValueError(f"Refusing to {operation} every row of '{table}' without filters")


def _matches(row: Mapping[str, Any], filters: Filters) -> bool:
    if not filters:
        return True
    return all(row.get(column) == value for column, value in filters.items())


class LocalRecordBackend(RecordBackend):
    """
    RecordBackend over the local whole-collection store.

    Every write is a read-modify-write of the full collection, safe under the
    single-writer assumption of LocalDatabase.
    """

    # Table mappings between remote table names and local collections
    TABLE_MAPPING = {
        "profiles": "users",
        "pets": "pets",
        "appointments": "appointments",
        "services": "services",
        "feedback": "feedback",
        "medical_records": "medical_records",
        "password_reset_requests": "password_reset_requests",
    }

    def __init__(self, local_db: LocalDatabase):
        self.local_db = local_db

    def collection_for(self, table: str) -> str:
        return self.TABLE_MAPPING.get(table, table)

    def _read(self, table: str) -> List[Dict[str, Any]]:
        return self.local_db.read_collection(self.collection_for(table))

    def _write(self, table: str, rows: List[Dict[str, Any]]) -> None:
        self.local_db.write_collection(self.collection_for(table), rows)

    def select(self, table: str, filters: Filters = None, joins: Sequence[Join] = ()) -> List[Dict[str, Any]]:
        rows = [dict(r) for r in self._read(table) if _matches(r, filters)]

        for join in joins:
            source = self.join_backend(join.table)
            related = self._read(join.table) if source is self else source.select(join.table)
            attach_join(rows, join, related)

        return rows

    def insert(self, table: str, row: Mapping[str, Any]) -> Dict[str, Any]:
        rows = self._read(table)
        now = utc_now_iso()
        stored = dict(row)
        stored["id"] = stored.get("id") or new_record_id()
        stored.setdefault("created_at", now)
        stored.setdefault("updated_at", now)
        rows.append(stored)
        self._write(table, rows)
        logger.debug(f"Inserted {table} record {stored['id']}")
        return dict(stored)

    def update(self, table: str, filters: Mapping[str, Any], changes: Mapping[str, Any]) -> List[Dict[str, Any]]:
        require_filters(table, "update", filters)
        rows = self._read(table)
        updated = []
        for row in rows:
            if _matches(row, filters):
                row.update(changes)
                row["updated_at"] = utc_now_iso()
                updated.append(dict(row))
        if updated:
            self._write(table, rows)
        return updated

    def delete(self, table: str, filters: Mapping[str, Any]) -> int:
        require_filters(table, "delete", filters)
        rows = self._read(table)
        kept = [r for r in rows if not _matches(r, filters)]
        removed = len(rows) - len(kept)
        if removed:
            self._write(table, kept)
        return removed
