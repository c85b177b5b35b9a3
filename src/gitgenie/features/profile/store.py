"""Reads and upserts of profile rows through the signed-in user's client."""

import logging
from datetime import datetime, timezone
from typing import Any, Protocol

from supabase import AsyncClient

from gitgenie.client.session_store import (
    AuthUser,
    Session,
    extract_github_identity,
    extract_provider_token,
)
from gitgenie.features.profile.models import UserProfile

logger = logging.getLogger(__name__)


def build_profile_row(user: AuthUser, session: Session | None) -> dict[str, Any]:
    """
    Build the upsert payload for ``user`` from the current session.

    ``github_access_token`` is only included when the session carries a
    provider token, so refreshed sessions never blank a stored token.
    """
    row: dict[str, Any] = {
        "id": user.id,
        **extract_github_identity(user),
        "updated_at": datetime.now(timezone.utc).isoformat(),
    }
    provider_token = extract_provider_token(session)
    if provider_token:
        row["github_access_token"] = provider_token
    return row


class ProfileStore(Protocol):
    async def upsert(self, row: dict[str, Any]) -> None: ...

    async def get(self, user_id: str) -> UserProfile | None: ...


class SupabaseProfileStore:
    """``ProfileStore`` over the browser session's Supabase client (RLS applies)."""

    def __init__(self, client: AsyncClient, table: str = "user_profiles") -> None:
        self.client = client
        self.table = table

    async def upsert(self, row: dict[str, Any]) -> None:
        await self.client.table(self.table).upsert(row, on_conflict="id").execute()

    async def get(self, user_id: str) -> UserProfile | None:
        """Return the profile row, or None when the user has no row yet."""
        response = await self.client.table(self.table).select("*").eq("id", user_id).limit(1).execute()
        if not response.data:
            return None
        return UserProfile.model_validate(response.data[0])
