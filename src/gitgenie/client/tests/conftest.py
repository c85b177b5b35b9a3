"""In-memory stand-ins for the session store, profile table and proxy function."""

import asyncio
from typing import Any

import pytest

from gitgenie.client.app import ClientApp
from gitgenie.client.session_store import AuthEvent, AuthUser, Session
from gitgenie.features.profile import UserProfile

USER_ID = "123e4567-e89b-12d3-a456-426614174000"


def make_repo(repo_id: int, name: str, description: str | None = None, **fields) -> dict[str, Any]:
    return {
        "id": repo_id,
        "name": name,
        "full_name": f"octocat/{name}",
        "description": description,
        "html_url": f"https://github.com/octocat/{name}",
        "language": fields.pop("language", None),
        "stargazers_count": fields.pop("stargazers_count", 0),
        "forks_count": fields.pop("forks_count", 0),
        "updated_at": fields.pop("updated_at", "2024-01-15T10:30:00Z"),
        "private": fields.pop("private", False),
        **fields,
    }


class FakeSessionStore:
    """Session store whose session, latency and failures are set by the test."""

    def __init__(self, events: list, session: Session | None = None) -> None:
        self.events = events
        self.session = session
        self.listeners: list = []
        self.get_session_delay = 0.0
        self.get_session_error: Exception | None = None
        self.refresh_error: Exception | None = None
        self.refreshed_session: Session | None = None
        self.sign_in_error: Exception | None = None
        self.sign_out_error: Exception | None = None
        self.exchange_session: Session | None = None
        self.emit_on_exchange = True
        self.oauth_requests: list[tuple[str, str, str]] = []
        self.oauth_url = "https://github.com/login/oauth/authorize?client_id=abc"
        self.closed = False

    async def get_session(self) -> Session | None:
        self.events.append("get_session")
        if self.get_session_delay:
            await asyncio.sleep(self.get_session_delay)
        if self.get_session_error:
            raise self.get_session_error
        return self.session

    def subscribe(self, listener):
        self.listeners.append(listener)
        return lambda: self.listeners.remove(listener)

    async def emit(self, event: AuthEvent, session: Session | None) -> None:
        self.session = session
        for listener in list(self.listeners):
            await listener(event, session)

    async def refresh_session(self) -> Session | None:
        self.events.append("refresh_session")
        if self.refresh_error:
            raise self.refresh_error
        if self.refreshed_session is not None:
            self.session = self.refreshed_session
        return self.session

    async def sign_in_with_oauth(self, provider: str, scopes: str, redirect_to: str) -> str:
        if self.sign_in_error:
            raise self.sign_in_error
        self.oauth_requests.append((provider, scopes, redirect_to))
        return self.oauth_url

    async def exchange_code_for_session(self, code: str) -> Session | None:
        session = self.exchange_session
        if self.emit_on_exchange and session is not None:
            await self.emit(AuthEvent.SIGNED_IN, session)
        else:
            self.session = session
        return session

    async def sign_out(self) -> None:
        if self.sign_out_error:
            raise self.sign_out_error
        await self.emit(AuthEvent.SIGNED_OUT, None)

    async def wait_for_listeners(self) -> None:
        return None

    async def close(self) -> None:
        self.events.append("close_store")
        self.closed = True


class FakeProfileStore:
    """Profile table that merges upserted columns into existing rows."""

    def __init__(self, events: list) -> None:
        self.events = events
        self.rows: dict[str, dict[str, Any]] = {}
        self.upserts: list[dict[str, Any]] = []
        self.upsert_error: Exception | None = None
        self.get_error: Exception | None = None

    async def upsert(self, row: dict[str, Any]) -> None:
        self.events.append("upsert")
        if self.upsert_error:
            raise self.upsert_error
        self.upserts.append(row)
        self.rows[row["id"]] = {**self.rows.get(row["id"], {}), **row}

    async def get(self, user_id: str) -> UserProfile | None:
        self.events.append("get_profile")
        if self.get_error:
            raise self.get_error
        row = self.rows.get(user_id)
        return UserProfile.model_validate(row) if row else None


class FakeProxy:
    """Proxy function returning ``payload``, or whatever ``handler`` returns."""

    def __init__(self, events: list, payload: Any = None) -> None:
        self.events = events
        self.payload = payload
        self.handler = None
        self.error: Exception | None = None
        self.calls: list[tuple[str, str | None]] = []
        self.closed = False

    async def invoke(self, access_token: str, search_query: str | None = None) -> Any:
        self.events.append("invoke")
        self.calls.append((access_token, search_query))
        if self.error:
            raise self.error
        if self.handler is not None:
            return await self.handler(access_token, search_query)
        return self.payload

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def events() -> list:
    """Shared call log across the fakes, in call order."""
    return []


@pytest.fixture
def github_user() -> AuthUser:
    return AuthUser(
        id=USER_ID,
        email="octocat@example.com",
        user_metadata={
            "user_name": "octocat",
            "provider_id": "583231",
            "avatar_url": "https://avatars.githubusercontent.com/u/583231",
        },
    )


@pytest.fixture
def oauth_session(github_user) -> Session:
    """Session as created by the OAuth callback, carrying the GitHub token."""
    return Session(
        access_token="access-1",
        refresh_token="refresh-1",
        provider_token="gho_fresh",
        expires_at=1893456000,
        user=github_user,
    )


@pytest.fixture
def restored_session(github_user) -> Session:
    """Session rehydrated from storage; Supabase drops the provider token."""
    return Session(access_token="access-2", refresh_token="refresh-2", user=github_user)


@pytest.fixture
def repo_payload() -> dict[str, Any]:
    return {
        "repositories": [
            make_repo(1, "awesome-web-app", "A full-stack web application built with React and Node.js"),
            make_repo(2, "api-service", "RESTful API service with authentication and database integration"),
        ]
    }


@pytest.fixture
def session_store(events) -> FakeSessionStore:
    return FakeSessionStore(events)


@pytest.fixture
def profile_store(events, github_user) -> FakeProfileStore:
    """Profile table that already holds the user's row."""
    store = FakeProfileStore(events)
    store.rows[github_user.id] = {
        "id": github_user.id,
        "username": "octocat",
        "github_id": "583231",
        "github_access_token": "gho_stored",
    }
    return store


@pytest.fixture
def proxy(events, repo_payload) -> FakeProxy:
    return FakeProxy(events, repo_payload)


@pytest.fixture
def client_app(session_store, profile_store, proxy) -> ClientApp:
    return ClientApp(
        session_store,
        profile_store,
        proxy,
        redirect_to="http://localhost:8000/auth/callback",
        loading_timeout=0.5,
    )


@pytest.fixture
def repo_factory():
    """Build GitHub-shaped repository dicts."""
    return make_repo
