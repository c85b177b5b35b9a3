"""Resolve a caller's stored GitHub token and proxy their repository listing."""

import logging
from typing import Callable

from starlette.concurrency import run_in_threadpool

from gitgenie.auth.models import JWTUser
from gitgenie.config import settings
from gitgenie.database import SupabaseQueryBuilder, get_query_builder
from gitgenie.features.repositories.exceptions import ProviderTokenNotFoundError
from gitgenie.features.repositories.github import GitHubClient
from gitgenie.features.repositories.schemas import Repository

logger = logging.getLogger(__name__)


class RepositoryProxyService:
    """Looks up the provider token in the profile table and calls GitHub with it."""

    def __init__(
        self,
        query_builder: SupabaseQueryBuilder | None = None,
        github_client_factory: Callable[[str], GitHubClient] = GitHubClient,
        table: str | None = None,
    ) -> None:
        self._db = query_builder
        self._github_client_factory = github_client_factory
        self._table = table or settings.profiles_table

    async def get_provider_token(self, user: JWTUser) -> str:
        """
        Return the caller's stored GitHub token.

        Raises:
            ProviderTokenNotFoundError: If there is no profile row or no token in it
        """
        db = self._db or get_query_builder()
        profile = await run_in_threadpool(
            db.get_by_id, self._table, user.id, "github_access_token, username"
        )
        if not profile or not profile.get("github_access_token"):
            logger.warning(
                f"No GitHub token stored for user {user.id}",
                extra={"error_type": "provider_token_missing"},
            )
            raise ProviderTokenNotFoundError("GitHub access token not found")
        return profile["github_access_token"]

    async def fetch_for_user(
        self, user: JWTUser, search_query: str | None = None
    ) -> list[Repository]:
        """Fetch the caller's repositories, or search GitHub when a query is given."""
        token = await self.get_provider_token(user)
        async with self._github_client_factory(token) as github:
            items = await github.list_repositories(search_query or None)
        return [Repository.model_validate(item) for item in items]


def get_repository_proxy_service() -> RepositoryProxyService:
    """FastAPI dependency for the proxy service."""
    return RepositoryProxyService()
