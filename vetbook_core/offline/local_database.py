# =============================================================================
# vetbook_core/offline/local_database.py
# Local Key-Value Record Store for the Fallback Backend
# =============================================================================
"""
LocalDatabase - whole-collection persistence for the local fallback backend.

Each named collection (users, pets, appointments, ...) is stored as one JSON
document in a single SQLite key-value table, the same way the web client
keeps them in browser local storage:

    collections(name TEXT PRIMARY KEY, payload TEXT, updated_at TEXT)

Features:
- Whole-collection read and write, no partial updates
- Reads never fail: missing or corrupted payloads read as []
- Writes replace the payload inside one transaction
- ":memory:" path for tests

Concurrency: one writer per process is assumed. Two processes writing the same
collection do not coordinate; the last write wins.
"""

from __future__ import annotations
import json
import sqlite3
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union

from vetbook_core.errors import LocalStoreError
from vetbook_core.logging import get_logger

logger = get_logger(__name__)

MEMORY_PATH = ":memory:"


def new_record_id() -> str:
    """Random globally-unique record id."""
    return str(uuid.uuid4())


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class LocalDatabase:
    """
    SQLite-backed store of JSON collections.

    The connection is shared between threads and guarded by a lock, so the
    auth layer may touch it from a worker thread.
    """

    DEFAULT_DB_PATH = Path("local_data") / "vetbook.db"

    SCHEMA = """
        CREATE TABLE IF NOT EXISTS collections (
            name TEXT PRIMARY KEY,
            payload TEXT NOT NULL,
            updated_at TEXT
        )
    """

    _instance: Optional[LocalDatabase] = None
    _instance_lock = threading.Lock()

    def __init__(self, db_path: Optional[Union[str, Path]] = None):
        """
        Initialize local database.

        Args:
            db_path: Path to SQLite database file, or ":memory:"
        """
        self.db_path = str(db_path or self.DEFAULT_DB_PATH)
        if self.db_path != MEMORY_PATH:
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()
        self._connection = sqlite3.connect(self.db_path, check_same_thread=False)
        self._connection.execute(self.SCHEMA)
        self._connection.commit()
        logger.info(f"Local database initialized at: {self.db_path}")

    @classmethod
    def get_instance(cls, db_path: Optional[Union[str, Path]] = None) -> LocalDatabase:
        """Get or create singleton instance."""
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = LocalDatabase(db_path)
        return cls._instance

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database transactions."""
        with self._lock:
            conn = self._connection
            try:
                yield conn
                conn.commit()
            except Exception:
                conn.rollback()
                raise

    # =========================================================================
    # COLLECTION OPERATIONS
    # =========================================================================

    def read_collection(self, name: str) -> List[Dict[str, Any]]:
        """
        Read a whole collection.

        Returns [] when the collection is absent, unreadable, or not a JSON
        list of records.
        """
        try:
            with self._lock:
                row = self._connection.execute(
                    "SELECT payload FROM collections WHERE name = ?", [name]
                ).fetchone()
        except sqlite3.Error as e:
            logger.warning(f"Could not read collection '{name}': {e}")
            return []

        if row is None:
            return []

        try:
            records = json.loads(row[0])
        except (TypeError, ValueError) as e:
            logger.warning(f"Collection '{name}' is corrupted, reading as empty: {e}")
            return []

        if not isinstance(records, list):
            logger.warning(f"Collection '{name}' is not a list, reading as empty")
            return []
        return [r for r in records if isinstance(r, dict)]

    def write_collection(self, name: str, records: Sequence[Dict[str, Any]]) -> None:
        """Replace a whole collection."""
        try:
            payload = json.dumps(list(records), default=str)
        except (TypeError, ValueError) as e:
            raise LocalStoreError(f"Collection is not serializable: {e}", collection=name) from e

        try:
            with self.transaction() as conn:
                conn.execute(
                    "INSERT OR REPLACE INTO collections (name, payload, updated_at) VALUES (?, ?, ?)",
                    [name, payload, utc_now_iso()],
                )
        except sqlite3.Error as e:
            raise LocalStoreError(f"Failed to save collection: {e}", collection=name) from e

        logger.debug(f"Saved {len(records)} records to collection '{name}'")

    def write_raw(self, name: str, payload: str) -> None:
        """Store a payload verbatim (imports from the web client's local storage)."""
        with self.transaction() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO collections (name, payload, updated_at) VALUES (?, ?, ?)",
                [name, payload, utc_now_iso()],
            )

    def list_collections(self) -> List[str]:
        with self._lock:
            rows = self._connection.execute("SELECT name FROM collections ORDER BY name").fetchall()
        return [r[0] for r in rows]

    def clear_collection(self, name: str) -> None:
        with self.transaction() as conn:
            conn.execute("DELETE FROM collections WHERE name = ?", [name])

    def close(self) -> None:
        with self._lock:
            self._connection.close()


def get_local_database(db_path: Optional[Union[str, Path]] = None) -> LocalDatabase:
    """Get the process-wide local database."""
    return LocalDatabase.get_instance(db_path)
