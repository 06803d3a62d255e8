# =============================================================================
# tests/conftest.py
# Pytest Configuration and Fixtures
# =============================================================================

import pytest
from types import SimpleNamespace
from unittest.mock import MagicMock


# =============================================================================
# STORAGE FIXTURES
# =============================================================================

@pytest.fixture
def local_db():
    """In-memory local store"""
    from vetbook_core.offline.local_database import LocalDatabase

    db = LocalDatabase(":memory:")
    yield db
    db.close()


@pytest.fixture
def local_backend(local_db):
    """RecordBackend over the in-memory local store"""
    from vetbook_core.offline.record_backend import LocalRecordBackend

    return LocalRecordBackend(local_db)


@pytest.fixture
def settings():
    """Local-mode settings with short auth timeouts"""
    from vetbook_core.config import Settings

    return Settings(
        backend="local",
        local_db_path=":memory:",
        app_url="https://booking.example-vet.com",
        login_timeout=0.05,
        signup_timeout=0.05,
        auth_timeout=0.05,
    )


@pytest.fixture
def data_service(settings, local_db):
    """Fully wired data service on the in-memory store"""
    from vetbook_core.offline.unified_data_service import create_data_service

    return create_data_service(settings, local_db=local_db)


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================

@pytest.fixture
def sample_users():
    """Users as stored in the local 'users' collection"""
    return [
        {"id": "u1", "email": "Alice@Example.com", "full_name": "Alice Moyo", "role": "customer"},
        {"id": "u2", "email": "bob@example.com", "full_name": "Bob Naidoo", "role": "admin"},
    ]


@pytest.fixture
def sample_appointments():
    """Application-shape appointments with mixed status casing"""
    return [
        {"id": "a1", "ownerId": "u1", "status": "Scheduled", "appointmentDate": "2024-03-01", "timeSlot": "09:00"},
        {"id": "a2", "ownerId": "u1", "status": "completed", "appointmentDate": "2024-02-01", "timeSlot": "10:00"},
        {"id": "a3", "ownerId": "u2", "status": "CANCELLED", "appointmentDate": "2024-03-02", "timeSlot": "11:00"},
        {"id": "a4", "ownerId": None, "status": "pending", "appointmentDate": "2024-03-03", "timeSlot": "12:00"},
    ]


@pytest.fixture
def seeded_users(local_db, sample_users):
    """Write sample users into the local store"""
    local_db.write_collection("users", sample_users)
    return sample_users


# =============================================================================
# MOCK FIXTURES
# =============================================================================

@pytest.fixture
def mock_streamlit(monkeypatch):
    """Mock Streamlit as seen by the config module"""
    mock_st = MagicMock()
    mock_st.secrets = {}
    monkeypatch.setattr("vetbook_core.config.st", mock_st)
    return mock_st


class FakeQuery:
    """Chainable stand-in for a supabase-py table query"""

    def __init__(self, client, table):
        self.client = client
        self.table = table
        self.operation = "select"
        self.columns = "*"
        self.payload = None
        self.filters = []
        self.bounds = None

    def select(self, columns="*"):
        self.operation, self.columns = "select", columns
        return self

    def insert(self, payload):
        self.operation, self.payload = "insert", payload
        return self

    def update(self, payload):
        self.operation, self.payload = "update", payload
        return self

    def delete(self):
        self.operation = "delete"
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def is_(self, column, value):
        self.filters.append((column, None))
        return self

    def range(self, start, end):
        self.bounds = (start, end)
        return self

    def _matches(self, row):
        return all(row.get(column) == value for column, value in self.filters)

    def execute(self):
        self.client.executed.append(self)
        if self.client.fail_with is not None:
            raise self.client.fail_with

        rows = self.client.tables.setdefault(self.table, [])
        if self.operation == "select":
            data = [dict(r) for r in rows if self._matches(r)]
            if self.bounds is not None:
                data = data[self.bounds[0]:self.bounds[1] + 1]
        elif self.operation == "insert":
            stored = dict(self.payload)
            stored.setdefault("id", f"{self.table}-{len(rows) + 1}")
            stored.setdefault("created_at", "2024-01-01T00:00:00+00:00")
            rows.append(stored)
            data = [dict(stored)]
        elif self.operation == "update":
            data = []
            for row in rows:
                if self._matches(row):
                    row.update(self.payload)
                    data.append(dict(row))
        else:
            data = [dict(r) for r in rows if self._matches(r)]
            self.client.tables[self.table] = [r for r in rows if not self._matches(r)]
        return SimpleNamespace(data=data)


class FakeSupabase:
    """In-memory Supabase client: tables, executed queries, and a mock auth API"""

    def __init__(self):
        self.tables = {}
        self.executed = []
        self.fail_with = None
        self.auth = MagicMock()

    def table(self, name):
        return FakeQuery(self, name)


@pytest.fixture
def mock_supabase():
    """Mock Supabase client"""
    return FakeSupabase()

