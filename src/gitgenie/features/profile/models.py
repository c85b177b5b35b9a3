"""Pydantic models for the profile table."""

from datetime import datetime

from pydantic import BaseModel, Field


class UserProfile(BaseModel):
    """One row of ``user_profiles``, keyed by the Supabase user id."""

    id: str = Field(description="Supabase user id (primary key)")
    github_id: str | None = Field(None, description="GitHub account identifier")
    username: str | None = Field(None, description="GitHub login")
    avatar_url: str | None = Field(None, description="GitHub avatar URL")
    github_access_token: str | None = Field(
        None, repr=False, description="Provider token used by the proxy function"
    )
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def has_token(self) -> bool:
        return bool(self.github_access_token)
