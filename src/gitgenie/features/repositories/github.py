"""GitHub REST API client used by the proxy function."""

import logging
from typing import Any

import httpx

from gitgenie.config import settings
from gitgenie.features.repositories.exceptions import GitHubAPIError

logger = logging.getLogger(__name__)


def build_repositories_url(
    search_query: str | None,
    *,
    api_url: str | None = None,
    search_page_size: int | None = None,
    user_page_size: int | None = None,
) -> httpx.URL:
    """
    Build the request target for a repository listing.

    A non-empty ``search_query`` searches all of GitHub, most-starred first;
    otherwise the caller's own and collaborator repositories are listed,
    most recently updated first.

    Example:
        >>> str(build_repositories_url("fastapi"))
        'https://api.github.com/search/repositories?q=fastapi&sort=stars&order=desc&per_page=30'
    """
    base = (api_url or settings.github_api_url).rstrip("/")
    if search_query:
        return httpx.URL(
            f"{base}/search/repositories",
            params={
                "q": search_query,
                "sort": "stars",
                "order": "desc",
                "per_page": search_page_size or settings.github_search_page_size,
            },
        )
    return httpx.URL(
        f"{base}/user/repos",
        params={
            "sort": "updated",
            "per_page": user_page_size or settings.github_user_repos_page_size,
            "affiliation": "owner,collaborator",
        },
    )


class GitHubClient:
    """
    Minimal async GitHub client acting with a user's OAuth token.

    Example:
        >>> async with GitHubClient(token) as github:
        ...     repos = await github.list_repositories("fastapi")
    """

    def __init__(
        self,
        access_token: str,
        *,
        http_client: httpx.AsyncClient | None = None,
        user_agent: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self._headers = {
            "Authorization": f"token {access_token}",
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": user_agent or settings.github_user_agent,
        }
        self._owns_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(
            timeout=timeout or settings.github_timeout_seconds
        )

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def list_repositories(self, search_query: str | None = None) -> list[dict[str, Any]]:
        """
        Fetch repositories and return them as one flat list.

        Search responses wrap results in ``items``; the user-repos endpoint
        returns a bare list. Both come back as a list here.

        Raises:
            GitHubAPIError: If GitHub answers with a non-2xx status
        """
        url = build_repositories_url(search_query)
        logger.info(f"Fetching from: {url}")

        response = await self._http_client.get(url, headers=self._headers)
        if response.is_error:
            logger.error(
                f"GitHub API error: {response.status_code}",
                extra={"error_type": "github_api_error", "body": response.text[:500]},
            )
            raise GitHubAPIError(response.status_code)

        data = response.json()
        repositories = data.get("items") if search_query else data
        repositories = repositories or []

        logger.info(f"Found {len(repositories)} repositories")
        return repositories

    async def close(self) -> None:
        if self._owns_client:
            await self._http_client.aclose()
