"""Session Store Client: the Supabase auth session as seen by one browser session."""

import asyncio
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Protocol

from pydantic import BaseModel
from supabase import AsyncClient, acreate_client
from supabase.lib.client_options import AsyncClientOptions

from gitgenie.config import Settings

logger = logging.getLogger(__name__)


class AuthEvent(str, Enum):
    """Session-change events emitted by Supabase Auth."""

    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"
    USER_DELETED = "USER_DELETED"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"
    MFA_CHALLENGE_VERIFIED = "MFA_CHALLENGE_VERIFIED"


class AuthUser(BaseModel):
    """The signed-in principal."""

    id: str
    email: str | None = None
    user_metadata: dict[str, Any] = {}
    app_metadata: dict[str, Any] = {}


class Session(BaseModel):
    """
    Token bundle for a signed-in user.

    ``provider_token`` is the GitHub OAuth token; Supabase only includes it
    in the session created by the OAuth callback, not in refreshed sessions.
    """

    access_token: str
    refresh_token: str | None = None
    provider_token: str | None = None
    expires_at: int | None = None
    user: AuthUser

    @classmethod
    def from_supabase(cls, session: Any) -> "Session | None":
        """Convert a ``supabase_auth`` session object into a ``Session``."""
        if session is None or getattr(session, "user", None) is None:
            return None
        user = session.user
        return cls(
            access_token=session.access_token,
            refresh_token=getattr(session, "refresh_token", None),
            provider_token=getattr(session, "provider_token", None),
            expires_at=getattr(session, "expires_at", None),
            user=AuthUser(
                id=str(user.id),
                email=getattr(user, "email", None),
                user_metadata=getattr(user, "user_metadata", None) or {},
                app_metadata=getattr(user, "app_metadata", None) or {},
            ),
        )


SessionListener = Callable[[AuthEvent, Session | None], Awaitable[None]]


def extract_provider_token(session: Session | None) -> str | None:
    """
    Return the GitHub token carried by ``session``, if any.

    Lookup order:
        1. ``session.provider_token``
        2. ``session.user.user_metadata["provider_token"]``
        3. ``session.user.app_metadata["provider_token"]``
    """
    if session is None:
        return None
    candidates = (
        session.provider_token,
        session.user.user_metadata.get("provider_token"),
        session.user.app_metadata.get("provider_token"),
    )
    for token in candidates:
        if isinstance(token, str) and token:
            return token
    return None


def extract_github_identity(user: AuthUser) -> dict[str, str | None]:
    """
    Read GitHub login, id and avatar from the OAuth metadata Supabase copies.

    Returns a dict with ``username``, ``github_id`` and ``avatar_url``.
    """
    metadata = user.user_metadata
    username = metadata.get("user_name") or metadata.get("preferred_username")
    github_id = metadata.get("provider_id") or metadata.get("sub") or username
    return {
        "username": username,
        "github_id": str(github_id) if github_id is not None else None,
        "avatar_url": metadata.get("avatar_url"),
    }


def describe_session(session: Session | None) -> dict[str, Any]:
    """Presence flags for logging. Never includes token values."""
    if session is None:
        return {"has_session": False}
    expires_at = None
    if session.expires_at:
        expires_at = datetime.fromtimestamp(session.expires_at, tz=timezone.utc).isoformat()
    return {
        "has_session": True,
        "user_id": session.user.id,
        "expires_at": expires_at,
        "has_access_token": bool(session.access_token),
        "has_provider_token": extract_provider_token(session) is not None,
        "has_refresh_token": bool(session.refresh_token),
    }


class SessionStore(Protocol):
    """What the coordinators need from the auth backend."""

    async def get_session(self) -> Session | None: ...

    def subscribe(self, listener: SessionListener) -> Callable[[], None]: ...

    async def refresh_session(self) -> Session | None: ...

    async def sign_in_with_oauth(self, provider: str, scopes: str, redirect_to: str) -> str: ...

    async def exchange_code_for_session(self, code: str) -> Session | None: ...

    async def sign_out(self) -> None: ...

    async def wait_for_listeners(self) -> None: ...

    async def close(self) -> None: ...


class SupabaseSessionStore:
    """
    ``SessionStore`` backed by a supabase-py ``AsyncClient``.

    Supabase calls auth listeners synchronously; each notification is
    scheduled as a task on the running loop and tracked until it settles so
    callers can wait for the resulting state changes.
    """

    def __init__(self, client: AsyncClient) -> None:
        self.client = client
        self._pending: set[asyncio.Task] = set()

    async def get_session(self) -> Session | None:
        return Session.from_supabase(await self.client.auth.get_session())

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        def _on_change(event: str, session: Any) -> None:
            try:
                auth_event = AuthEvent(event)
            except ValueError:
                logger.debug(f"Ignoring unknown auth event {event}")
                return
            task = asyncio.ensure_future(listener(auth_event, Session.from_supabase(session)))
            self._pending.add(task)
            task.add_done_callback(self._settle)

        subscription = self.client.auth.on_auth_state_change(_on_change)
        return subscription.unsubscribe

    def _settle(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(
                f"Auth listener failed: {task.exception()}",
                extra={"error_type": "auth_listener_failed"},
            )

    async def refresh_session(self) -> Session | None:
        response = await self.client.auth.refresh_session()
        return Session.from_supabase(response.session)

    async def sign_in_with_oauth(self, provider: str, scopes: str, redirect_to: str) -> str:
        response = await self.client.auth.sign_in_with_oauth(
            {"provider": provider, "options": {"scopes": scopes, "redirect_to": redirect_to}}
        )
        return response.url

    async def exchange_code_for_session(self, code: str) -> Session | None:
        response = await self.client.auth.exchange_code_for_session({"auth_code": code})
        return Session.from_supabase(response.session)

    async def sign_out(self) -> None:
        await self.client.auth.sign_out()

    async def wait_for_listeners(self) -> None:
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def close(self) -> None:
        """Close the HTTP sessions behind the table and auth APIs."""
        for task in list(self._pending):
            task.cancel()
        await self.client.postgrest.aclose()
        await self.client.auth.close()


async def create_supabase_client(settings: Settings) -> AsyncClient:
    """
    Build a per-browser Supabase client.

    PKCE keeps the code verifier in the client's in-memory storage between
    the sign-in redirect and the callback. Tokens are refreshed on demand by
    ``get_session``/``refresh_session`` rather than by a background timer.
    """
    return await acreate_client(
        settings.supabase_url,
        settings.supabase_anon_key,
        options=AsyncClientOptions(
            flow_type="pkce",
            persist_session=True,
            auto_refresh_token=False,
        ),
    )
