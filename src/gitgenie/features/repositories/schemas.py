"""Pydantic schemas for the repository proxy contract."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class Repository(BaseModel):
    """
    Repository snapshot as returned by the GitHub API.

    The user-repos and search endpoints return the same object shape; extra
    GitHub fields are dropped.
    """

    model_config = ConfigDict(extra="ignore")

    id: int
    name: str
    full_name: str
    description: str | None = None
    html_url: str
    language: str | None = None
    stargazers_count: int = 0
    forks_count: int = 0
    updated_at: datetime | None = None
    private: bool = False


class FetchRepositoriesRequest(BaseModel):
    """Body of ``POST /functions/v1/fetch-github-repos``."""

    model_config = ConfigDict(populate_by_name=True)

    search_query: str | None = Field(None, alias="searchQuery")


class FetchRepositoriesResponse(BaseModel):
    repositories: list[Repository]


class ProxyErrorResponse(BaseModel):
    error: str

    class Config:
        """Pydantic config."""

        json_schema_extra = {"example": {"error": "GitHub API error: 401"}}
