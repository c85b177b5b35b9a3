"""Shared fixtures for authentication tests."""

from typing import Any
from unittest.mock import Mock
from uuid import UUID

import pytest


@pytest.fixture
def mock_user_id() -> UUID:
    """Provide a consistent test user ID."""
    return UUID("123e4567-e89b-12d3-a456-426614174000")


@pytest.fixture
def valid_jwt_token() -> str:
    """Provide a mock access token for testing."""
    return "eyJhbGciOiJFUzI1NiIsInR5cCI6IkpXVCJ9.mock.token"


@pytest.fixture
def auth_header(valid_jwt_token: str) -> str:
    """Authorization header value for the mock token."""
    return f"Bearer {valid_jwt_token}"


@pytest.fixture
def mock_supabase_client(mock_user_id: UUID) -> Mock:
    """Mock Supabase client whose auth server knows the test user."""
    mock_client = Mock()
    mock_client.auth.get_user.return_value = Mock(
        user=Mock(
            id=str(mock_user_id),
            email="octocat@example.com",
            user_metadata={"user_name": "octocat"},
        )
    )
    return mock_client


@pytest.fixture
def mock_jwt_claims(mock_user_id: UUID) -> dict[str, Any]:
    """Provide mock JWT claims."""
    return {
        "sub": str(mock_user_id),
        "email": "octocat@example.com",
        "role": "authenticated",
        "aud": "authenticated",
        "exp": 9999999999,
        "iat": 1234567890,
        "user_metadata": {"user_name": "octocat"},
    }
