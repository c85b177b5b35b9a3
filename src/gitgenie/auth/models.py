"""Data models for authentication."""

from typing import Any
from uuid import UUID

from pydantic import BaseModel


class JWTUser(BaseModel):
    """
    Caller identity resolved from a Supabase access token.

    GitHub accounts may keep their email private, so unlike the user id the
    email claim is optional here.

    Attributes:
        id: User UUID from 'sub' claim
        email: User email from 'email' claim, when present
        user_metadata: OAuth metadata copied by Supabase (user_name, avatar_url, ...)

    Example:
        >>> user = JWTUser(
        ...     id=UUID("123e4567-e89b-12d3-a456-426614174000"),
        ...     email="octocat@example.com",
        ...     user_metadata={"user_name": "octocat"},
        ... )
    """

    id: UUID
    email: str | None = None
    user_metadata: dict[str, Any] = {}
