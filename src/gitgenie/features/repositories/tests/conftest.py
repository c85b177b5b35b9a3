"""Shared fixtures for repository proxy tests."""

from typing import Any
from uuid import UUID

import pytest

from gitgenie.auth.models import JWTUser


@pytest.fixture
def github_repos() -> list[dict[str, Any]]:
    """Repository objects as the GitHub API returns them (trimmed)."""
    return [
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
            "owner": {"login": "octocat"},
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
            "owner": {"login": "octocat"},
        },
    ]


@pytest.fixture
def caller() -> JWTUser:
    """Resolved proxy caller."""
    return JWTUser(
        id=UUID("123e4567-e89b-12d3-a456-426614174000"),
        email="octocat@example.com",
        user_metadata={"user_name": "octocat"},
    )
