# =============================================================================
# vetbook_core/data/supabase_client.py
# Supabase Client Configuration for the Vetbook core
# Remote row-store implementation of RecordBackend
# =============================================================================

from __future__ import annotations
from typing import Any, Dict, List, Mapping, Optional, Sequence

import streamlit as st
from supabase import Client, create_client

from vetbook_core.config import Settings
from vetbook_core.errors import ConfigurationError, RemoteStoreError
from vetbook_core.logging import get_logger
from vetbook_core.offline.record_backend import Filters, Join, RecordBackend, attach_join, require_filters

logger = get_logger(__name__)

# PostgREST caps a single response at 1000 rows
BATCH_SIZE = 1000


def get_supabase_client(url: Optional[str], key: Optional[str]) -> Client:
    """
    Initialize and return a Supabase client.

    Raises:
        ConfigurationError: if the URL or key is missing or rejected
    """
    if not url or not key:
        raise ConfigurationError(
            "Supabase credentials not found. Set [supabase] url/key in "
            ".streamlit/secrets.toml or SUPABASE_URL/SUPABASE_KEY.",
            config_key="supabase",
        )
    try:
        return create_client(url, key)
    except Exception as e:
        raise ConfigurationError(f"Failed to initialize Supabase client: {e}", config_key="supabase") from e


@st.cache_resource(ttl=3600)  # Cache for 1 hour, then refresh
def get_cached_supabase_client(url: str, key: str) -> Client:
    """Process-wide Supabase client, reused across sessions."""
    return get_supabase_client(url, key)


def client_from_settings(settings: Settings) -> Client:
    return get_cached_supabase_client(settings.supabase_url, settings.supabase_key)


class SupabaseService(RecordBackend):
    """
    RecordBackend over the hosted row store.

    Queries are equality filters on key columns plus optional many-to-one
    joins. Any transport or PostgREST failure surfaces as RemoteStoreError.
    """

    def __init__(self, client: Client):
        self.client = client

    def is_connected(self) -> bool:
        """Check if Supabase client is available."""
        return self.client is not None

    @staticmethod
    def _apply_filters(query, filters: Filters):
        for column, value in (filters or {}).items():
            if value is None:
                query = query.is_(column, "null")
            else:
                query = query.eq(column, value)
        return query

    @staticmethod
    def _select_clause(joins: Sequence[Join]) -> str:
        return ", ".join(["*"] + [join.to_select() for join in joins])

    def select(self, table: str, filters: Filters = None, joins: Sequence[Join] = ()) -> List[Dict[str, Any]]:
        """
        Fetch ALL matching records (handles the 1000 row response limit).

        Joins to tables routed to another backend are attached after the fetch.
        """
        native = [j for j in joins if self.join_backend(j.table) is self]
        columns = self._select_clause(native)
        try:
            all_data: List[Dict[str, Any]] = []
            offset = 0

            while True:
                query = self._apply_filters(self.client.table(table).select(columns), filters)
                response = query.range(offset, offset + BATCH_SIZE - 1).execute()

                if not response.data:
                    break
                all_data.extend(response.data)
                # Fewer than a full batch means we've reached the end
                if len(response.data) < BATCH_SIZE:
                    break
                offset += BATCH_SIZE

        except Exception as e:
            raise RemoteStoreError(f"Error fetching data from {table}: {e}", table=table, operation="select") from e

        for join in joins:
            if join not in native:
                attach_join(all_data, join, self.join_backend(join.table).select(join.table))
        return all_data

    def insert(self, table: str, row: Mapping[str, Any]) -> Dict[str, Any]:
        try:
            response = self.client.table(table).insert(dict(row)).execute()
        except Exception as e:
            raise RemoteStoreError(f"Error inserting into {table}: {e}", table=table, operation="insert") from e

        if not response.data:
            raise RemoteStoreError(f"Insert into {table} returned no row", table=table, operation="insert")
        return response.data[0]

    def update(self, table: str, filters: Mapping[str, Any], changes: Mapping[str, Any]) -> List[Dict[str, Any]]:
        require_filters(table, "update", filters)
        try:
            query = self._apply_filters(self.client.table(table).update(dict(changes)), filters)
            response = query.execute()
        except Exception as e:
            raise RemoteStoreError(f"Error updating {table}: {e}", table=table, operation="update") from e
        return response.data or []

    def delete(self, table: str, filters: Mapping[str, Any]) -> int:
        require_filters(table, "delete", filters)
        try:
            query = self._apply_filters(self.client.table(table).delete(), filters)
            response = query.execute()
        except Exception as e:
            raise RemoteStoreError(f"Error deleting from {table}: {e}", table=table, operation="delete") from e
        return len(response.data or [])
