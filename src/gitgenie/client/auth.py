"""Auth Coordinator: owns session, user and profile state for one browser session."""

import asyncio
import logging
from typing import Awaitable, Callable

from gitgenie.client.notifications import Notifier
from gitgenie.client.session_store import (
    AuthEvent,
    AuthUser,
    Session,
    SessionStore,
    describe_session,
    extract_provider_token,
)
from gitgenie.features.profile import ProfileStore, UserProfile, build_profile_row

logger = logging.getLogger(__name__)

StateListener = Callable[["AuthCoordinator"], Awaitable[None]]

_PROFILE_EVENTS = {AuthEvent.SIGNED_IN, AuthEvent.TOKEN_REFRESHED}
_CLEARING_EVENTS = {AuthEvent.SIGNED_OUT, AuthEvent.USER_DELETED}


class AuthCoordinator:
    """
    Tracks who is signed in and whether session restoration has finished.

    ``session_fully_restored`` becomes true once the startup session lookup
    settles, fails, or exceeds ``loading_timeout`` seconds, and never goes
    back to false. Every transition is idempotent: applying the same session
    twice yields the same state, so the startup lookup and the session-change
    subscription may race freely.

    Listeners registered with ``add_listener`` are awaited, in order, after
    each transition.
    """

    def __init__(
        self,
        session_store: SessionStore,
        profile_store: ProfileStore,
        notifier: Notifier,
        *,
        redirect_to: str,
        scopes: str = "repo read:user",
        loading_timeout: float = 3.0,
    ) -> None:
        self._store = session_store
        self._profiles = profile_store
        self._notifier = notifier
        self._redirect_to = redirect_to
        self._scopes = scopes
        self._loading_timeout = loading_timeout

        self.user: AuthUser | None = None
        self.session: Session | None = None
        self.profile: UserProfile | None = None
        self.loading = True
        self.session_fully_restored = False

        self._listeners: list[StateListener] = []
        self._unsubscribe: Callable[[], None] | None = None
        self._initial_lookup: asyncio.Task | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    def add_listener(self, listener: StateListener) -> Callable[[], None]:
        """Register ``listener``; returns a function that removes it."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    async def start(self) -> None:
        """Subscribe to session changes and restore the existing session."""
        if self._unsubscribe is not None:
            return
        self._unsubscribe = self._store.subscribe(self.handle_auth_event)
        self._initial_lookup = asyncio.ensure_future(self._restore_session())

        done, _ = await asyncio.wait({self._initial_lookup}, timeout=self._loading_timeout)
        if not done:
            logger.warning(
                f"Session restoration still pending after {self._loading_timeout}s, "
                "continuing without it",
                extra={"error_type": "session_restore_timeout"},
            )
            await self._mark_restored()

    async def _restore_session(self) -> None:
        try:
            session = await self._store.get_session()
            logger.info("Initial session lookup finished", extra=describe_session(session))
            if session is not None:
                await self._apply_session(session, refresh_profile=False)
        except Exception as e:
            logger.error(
                f"Error getting initial session: {e}",
                exc_info=True,
                extra={"error_type": "session_restore_failed"},
            )
        await self._mark_restored()

    async def handle_auth_event(self, event: AuthEvent, session: Session | None) -> None:
        """Apply a session-change notification from the session store."""
        logger.info(f"Auth state changed: {event.value}", extra=describe_session(session))

        if session is None or event in _CLEARING_EVENTS:
            self.user = None
            self.session = None
            self.profile = None
        else:
            await self._apply_session(session, refresh_profile=event in _PROFILE_EVENTS)

        await self._mark_restored()

    async def _apply_session(self, session: Session, *, refresh_profile: bool) -> None:
        self.session = session
        self.user = session.user
        if refresh_profile:
            await self._upsert_profile(session)
        if refresh_profile or self.profile is None or self.profile.id != session.user.id:
            await self._load_profile(session.user.id)

    async def _upsert_profile(self, session: Session) -> None:
        if extract_provider_token(session) is None:
            logger.warning(
                "Session carries no GitHub provider token; keeping the stored one",
                extra={"user_id": session.user.id},
            )
        try:
            await self._profiles.upsert(build_profile_row(session.user, session))
        except Exception as e:
            logger.error(
                f"Error upserting profile: {e}",
                exc_info=True,
                extra={"error_type": "profile_upsert_failed", "user_id": session.user.id},
            )

    async def _load_profile(self, user_id: str) -> None:
        try:
            self.profile = await self._profiles.get(user_id)
        except Exception as e:
            logger.error(
                f"Error fetching profile: {e}",
                exc_info=True,
                extra={"error_type": "profile_fetch_failed", "user_id": user_id},
            )

    async def _mark_restored(self) -> None:
        self.loading = False
        self.session_fully_restored = True
        await self._emit()

    async def _emit(self) -> None:
        for listener in list(self._listeners):
            await listener(self)

    async def sign_in(self) -> str | None:
        """
        Start the GitHub OAuth flow.

        Returns:
            The provider URL to redirect the browser to, or None on failure
        """
        try:
            return await self._store.sign_in_with_oauth("github", self._scopes, self._redirect_to)
        except Exception as e:
            logger.error(f"Error signing in with GitHub: {e}", exc_info=True)
            self._notifier.notify(
                "Authentication Failed",
                "Failed to sign in with GitHub. Please try again.",
                "destructive",
            )
            return None

    async def complete_sign_in(self, code: str) -> bool:
        """Exchange the OAuth callback code for a session and wait for it to apply."""
        try:
            session = await self._store.exchange_code_for_session(code)
            await self._store.wait_for_listeners()
        except Exception as e:
            logger.error(f"Error completing GitHub sign-in: {e}", exc_info=True)
            self._notifier.notify(
                "Authentication Failed",
                "Failed to sign in with GitHub. Please try again.",
                "destructive",
            )
            return False

        if session is not None and self.user is None:
            # The store did not emit SIGNED_IN; apply the session directly
            await self.handle_auth_event(AuthEvent.SIGNED_IN, session)
        return session is not None

    async def sign_out(self) -> None:
        """Invalidate the session; local state clears through the subscription."""
        try:
            await self._store.sign_out()
            await self._store.wait_for_listeners()
        except Exception as e:
            logger.error(f"Error signing out: {e}", exc_info=True)
            self._notifier.notify("Error", "Failed to sign out. Please try again.", "destructive")
            return

        self._notifier.notify("Signed Out", "You have been signed out successfully.")

    async def close(self) -> None:
        """Unsubscribe from the session store and drop listeners."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._initial_lookup is not None and not self._initial_lookup.done():
            self._initial_lookup.cancel()
        self._listeners.clear()
