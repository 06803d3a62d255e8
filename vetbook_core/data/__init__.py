"""Remote row-store access."""

from .supabase_client import (
    SupabaseService,
    get_supabase_client,
    get_cached_supabase_client,
    client_from_settings,
)

__all__ = [
    "SupabaseService",
    "get_supabase_client",
    "get_cached_supabase_client",
    "client_from_settings",
]
