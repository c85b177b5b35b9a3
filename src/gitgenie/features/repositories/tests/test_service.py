"""Tests for the repository proxy service."""

from unittest.mock import AsyncMock, Mock

import pytest

from gitgenie.features.repositories.exceptions import GitHubAPIError, ProviderTokenNotFoundError
from gitgenie.features.repositories.schemas import Repository
from gitgenie.features.repositories.service import RepositoryProxyService


class FakeGitHubClient:
    """Stands in for GitHubClient; records the token it was built with."""

    instances: list["FakeGitHubClient"] = []

    def __init__(self, token, repos=None, error=None):
        self.token = token
        self.list_repositories = AsyncMock(return_value=repos or [], side_effect=error)
        self.closed = False
        FakeGitHubClient.instances.append(self)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.closed = True


@pytest.fixture
def mock_query_builder():
    db = Mock()
    db.get_by_id.return_value = {"github_access_token": "gho_stored", "username": "octocat"}
    return db


@pytest.fixture(autouse=True)
def reset_fake_clients():
    FakeGitHubClient.instances = []
    yield


@pytest.mark.asyncio
class TestRepositoryProxyService:
    """Tests for RepositoryProxyService."""

    async def test_get_provider_token_reads_profile_row(self, mock_query_builder, caller):
        service = RepositoryProxyService(query_builder=mock_query_builder, table="user_profiles")

        token = await service.get_provider_token(caller)

        assert token == "gho_stored"
        mock_query_builder.get_by_id.assert_called_once_with(
            "user_profiles", caller.id, "github_access_token, username"
        )

    @pytest.mark.parametrize(
        "row", [None, {"username": "octocat"}, {"github_access_token": None}, {"github_access_token": ""}]
    )
    async def test_missing_token_raises(self, mock_query_builder, caller, row):
        mock_query_builder.get_by_id.return_value = row
        service = RepositoryProxyService(query_builder=mock_query_builder)

        with pytest.raises(ProviderTokenNotFoundError, match="GitHub access token not found"):
            await service.get_provider_token(caller)

    async def test_fetch_uses_stored_token(self, mock_query_builder, caller, github_repos):
        service = RepositoryProxyService(
            query_builder=mock_query_builder,
            github_client_factory=lambda token: FakeGitHubClient(token, repos=github_repos),
        )

        repositories = await service.fetch_for_user(caller)

        github = FakeGitHubClient.instances[0]
        assert github.token == "gho_stored"
        assert github.closed
        github.list_repositories.assert_awaited_once_with(None)
        assert all(isinstance(repo, Repository) for repo in repositories)
        assert [repo.name for repo in repositories] == ["awesome-web-app", "api-service"]

    async def test_fetch_passes_search_query(self, mock_query_builder, caller):
        service = RepositoryProxyService(
            query_builder=mock_query_builder, github_client_factory=FakeGitHubClient
        )

        await service.fetch_for_user(caller, "fastapi")

        FakeGitHubClient.instances[0].list_repositories.assert_awaited_once_with("fastapi")

    async def test_empty_search_query_lists_own_repositories(self, mock_query_builder, caller):
        service = RepositoryProxyService(
            query_builder=mock_query_builder, github_client_factory=FakeGitHubClient
        )

        await service.fetch_for_user(caller, "")

        FakeGitHubClient.instances[0].list_repositories.assert_awaited_once_with(None)

    async def test_missing_token_never_calls_github(self, mock_query_builder, caller):
        mock_query_builder.get_by_id.return_value = None
        service = RepositoryProxyService(
            query_builder=mock_query_builder, github_client_factory=FakeGitHubClient
        )

        with pytest.raises(ProviderTokenNotFoundError):
            await service.fetch_for_user(caller)

        assert FakeGitHubClient.instances == []

    async def test_github_error_propagates(self, mock_query_builder, caller):
        service = RepositoryProxyService(
            query_builder=mock_query_builder,
            github_client_factory=lambda token: FakeGitHubClient(token, error=GitHubAPIError(401)),
        )

        with pytest.raises(GitHubAPIError, match="GitHub API error: 401"):
            await service.fetch_for_user(caller)

        assert FakeGitHubClient.instances[0].closed
