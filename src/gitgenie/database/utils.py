"""Row lookups against Supabase tables."""

import logging
from typing import Any
from uuid import UUID

from supabase import Client

from gitgenie.database.connection import get_supabase_admin_client, get_supabase_client

logger = logging.getLogger(__name__)


class SupabaseQueryBuilder:
    """Synchronous table reads through one Supabase client."""

    def __init__(self, client: Client | None = None) -> None:
        self.client = client or get_supabase_client()

    def get_by_id(
        self, table: str, record_id: UUID | str, columns: str = "*"
    ) -> dict[str, Any] | None:
        """
        Return the row whose ``id`` equals ``record_id``, or None.

        Only ``columns`` are selected, so secrets outside them never leave
        the database.

        Example:
            >>> db.get_by_id("user_profiles", user.id, "github_access_token, username")
            {'github_access_token': 'gho_...', 'username': 'octocat'}
        """
        rows = (
            self.client.table(table)
            .select(columns)
            .eq("id", str(record_id))
            .limit(1)
            .execute()
            .data
        )
        if not rows:
            logger.debug(f"No row in {table} for id {record_id}")
            return None
        return rows[0]


def get_query_builder(client: Client | None = None, use_admin: bool = True) -> SupabaseQueryBuilder:
    """
    Query builder for server-side reads.

    The admin client bypasses row level security; use it only after the
    caller has been authenticated.
    """
    if client is None:
        client = get_supabase_admin_client() if use_admin else get_supabase_client()
    return SupabaseQueryBuilder(client)
