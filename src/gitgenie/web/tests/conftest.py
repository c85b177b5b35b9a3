"""Stand-in client apps for rendering tests."""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from gitgenie.client.notifications import Notifier
from gitgenie.client.repositories import FetchState
from gitgenie.client.session_store import AuthUser
from gitgenie.features.profile import UserProfile
from gitgenie.features.repositories.schemas import Repository

MOCK_REPOS = [
    {
        "id": 1,
        "name": "awesome-web-app",
        "full_name": "octocat/awesome-web-app",
        "description": "A full-stack web application built with React and Node.js",
        "html_url": "https://github.com/octocat/awesome-web-app",
        "language": "TypeScript",
        "stargazers_count": 42,
        "forks_count": 8,
        "updated_at": "2024-01-15T10:30:00Z",
        "private": False,
    },
    {
        "id": 2,
        "name": "api-service",
        "full_name": "octocat/api-service",
        "description": "RESTful API service with authentication and database integration",
        "html_url": "https://github.com/octocat/api-service",
        "language": "JavaScript",
        "stargazers_count": 15,
        "forks_count": 3,
        "updated_at": "2024-01-10T14:20:00Z",
        "private": True,
    },
    {
        "id": 3,
        "name": "mobile-app",
        "full_name": "octocat/mobile-app",
        "description": "Cross-platform mobile application using React Native",
        "html_url": "https://github.com/octocat/mobile-app",
        "language": "JavaScript",
        "stargazers_count": 28,
        "forks_count": 5,
        "updated_at": "2024-01-12T09:15:00Z",
        "private": False,
    },
    {
        "id": 4,
        "name": "data-analytics",
        "full_name": "octocat/data-analytics",
        "description": "Data analysis and visualization tools",
        "html_url": "https://github.com/octocat/data-analytics",
        "language": "Python",
        "stargazers_count": 67,
        "forks_count": 12,
        "updated_at": "2024-01-08T16:45:00Z",
        "private": False,
    },
]


@pytest.fixture
def repositories() -> list[Repository]:
    return [Repository.model_validate(repo) for repo in MOCK_REPOS]


@pytest.fixture
def fake_app(repositories):
    """Signed-in client app with a loaded repository list."""
    auth = SimpleNamespace(
        loading=False,
        user=AuthUser(id="u1", user_metadata={"user_name": "octocat"}),
        profile=UserProfile(id="u1", username="octocat", avatar_url="https://a/u.png"),
        sign_in=AsyncMock(return_value="https://github.com/login/oauth/authorize?client_id=abc"),
        complete_sign_in=AsyncMock(return_value=True),
        sign_out=AsyncMock(),
    )
    repos = SimpleNamespace(
        state=FetchState.READY,
        error=None,
        repositories=repositories,
        last_search_query=None,
        fetch=AsyncMock(),
        retry=AsyncMock(),
    )
    return SimpleNamespace(
        auth=auth,
        repositories=repos,
        notifier=Notifier(),
        start=AsyncMock(),
        reload=AsyncMock(),
        close=AsyncMock(),
        select_repository=AsyncMock(),
    )
