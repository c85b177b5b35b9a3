"""Process-wide synchronous Supabase clients for the proxy function."""

from functools import lru_cache

from supabase import Client, create_client

from gitgenie.config import settings


@lru_cache(maxsize=1)
def get_supabase_client() -> Client:
    """Anon-key client; resolves callers through Supabase Auth."""
    return create_client(settings.supabase_url, settings.supabase_anon_key)


@lru_cache(maxsize=1)
def get_supabase_admin_client() -> Client:
    """
    Service-role client. Bypasses row level security.

    Reads a caller's stored GitHub token once the caller has been resolved
    from their access token.
    """
    return create_client(settings.supabase_url, settings.supabase_service_role_key)
