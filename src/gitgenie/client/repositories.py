"""Repository Fetch Coordinator: the repository list behind the browsing UI."""

import logging
from enum import Enum
from typing import Any, Callable, MutableMapping

from pydantic import ValidationError

from gitgenie.client.auth import AuthCoordinator
from gitgenie.client.exceptions import (
    MissingProxyDataError,
    SessionRefreshError,
    SessionUnavailableError,
)
from gitgenie.client.notifications import Notifier
from gitgenie.client.proxy import FunctionsProxyClient
from gitgenie.client.session_store import SessionStore
from gitgenie.features.repositories.schemas import Repository

logger = logging.getLogger(__name__)

FETCH_FAILED_MESSAGE = "Failed to fetch repositories from GitHub"
NO_SESSION_MESSAGE = "No active session found. Please sign in with GitHub again."
SESSION_EXPIRED_MESSAGE = "Your GitHub session has expired. Please sign in with GitHub again."

# Tab-lifetime marker: set on first mount, so seeing it at mount means a reload
INITIALIZED_MARKER = "app_initialized"


class FetchState(str, Enum):
    IDLE = "idle"
    AWAITING_SESSION = "awaiting_session"
    FETCHING = "fetching"
    READY = "ready"
    ERROR = "error"


def parse_repositories(payload: Any) -> list[Repository]:
    """
    Turn a proxy payload into repositories.

    A payload without ``repositories`` (or with null) is an empty result; no
    payload at all is an error.

    Raises:
        MissingProxyDataError: If ``payload`` is not a JSON object
    """
    if not isinstance(payload, dict):
        raise MissingProxyDataError("Proxy function returned no data")
    return [Repository.model_validate(item) for item in payload.get("repositories") or []]


class RepositoryFetchCoordinator:
    """
    Fetches the repository list once the signed-in session is usable.

    States and transitions:

        IDLE --mount--> AWAITING_SESSION
        AWAITING_SESSION --session ready--> FETCHING
        FETCHING --success--> READY, --failure--> ERROR
        READY/ERROR --fetch or manual retry--> FETCHING
        any --signed out--> AWAITING_SESSION (list cleared)

    Each fetch takes a sequence number; a response whose number is no longer
    the latest is dropped, so a slow stale response never overwrites a newer
    one. The list is only ever replaced wholesale.
    """

    def __init__(
        self,
        auth: AuthCoordinator,
        session_store: SessionStore,
        proxy: FunctionsProxyClient,
        notifier: Notifier,
    ) -> None:
        self._auth = auth
        self._store = session_store
        self._proxy = proxy
        self._notifier = notifier

        self.repositories: list[Repository] = []
        self.error: str | None = None
        self.state = FetchState.IDLE
        self.last_search_query: str | None = None

        self._sequence = 0
        self._recovering_from_reload = False
        self._remove_listener: Callable[[], None] | None = None

    @property
    def loading(self) -> bool:
        return self.state in (FetchState.AWAITING_SESSION, FetchState.FETCHING)

    @property
    def mounted(self) -> bool:
        return self._remove_listener is not None

    async def mount(self, markers: MutableMapping[str, Any]) -> None:
        """
        Start following the auth state.

        ``markers`` lives as long as the browser tab. If it already holds the
        initialized marker this mount follows a reload, and the initial fetch
        refreshes the session first because a rehydrated session may carry a
        stale provider token.
        """
        if self.mounted:
            return
        self._recovering_from_reload = bool(markers.get(INITIALIZED_MARKER))
        markers[INITIALIZED_MARKER] = True
        if self._recovering_from_reload:
            logger.info("Mounted after a page reload, will refresh the session before fetching")

        self.state = FetchState.AWAITING_SESSION
        self._remove_listener = self._auth.add_listener(self._on_auth_change)
        await self._on_auth_change(self._auth)

    async def reload(self, markers: MutableMapping[str, Any]) -> None:
        """Remount for a page reload of an already mounted list."""
        self.unmount()
        await self.mount(markers)

    def unmount(self) -> None:
        if self._remove_listener is not None:
            self._remove_listener()
            self._remove_listener = None
        self._sequence += 1
        self.state = FetchState.IDLE

    async def _on_auth_change(self, auth: AuthCoordinator) -> None:
        if auth.user is None:
            if self.state is not FetchState.AWAITING_SESSION:
                self._sequence += 1
                self.repositories = []
                self.error = None
                self.last_search_query = None
                self.state = FetchState.AWAITING_SESSION
            if auth.session_fully_restored:
                # Nothing was restored, so there is no stale provider token to recover
                self._recovering_from_reload = False
            return

        ready = auth.profile is not None and auth.session_fully_restored
        if self.state is FetchState.AWAITING_SESSION and ready:
            if self._recovering_from_reload:
                self._recovering_from_reload = False
                await self.retry()
            else:
                await self.fetch()

    async def fetch(self, search_query: str | None = None) -> None:
        """
        Replace the repository list with a fresh one from the proxy.

        Without a signed-in user and profile the list is cleared and nothing
        is requested. Failures set ``error`` and leave the previous list as is.
        """
        if self._auth.user is None or self._auth.profile is None:
            self.repositories = []
            return

        self._sequence += 1
        sequence = self._sequence
        self.state = FetchState.FETCHING
        self.error = None
        self.last_search_query = search_query or None

        try:
            session = await self._store.get_session()
            if session is None or not session.access_token:
                raise SessionUnavailableError(NO_SESSION_MESSAGE)
            payload = await self._proxy.invoke(session.access_token, self.last_search_query)
            repositories = parse_repositories(payload)
        except SessionUnavailableError as e:
            logger.warning(f"Cannot fetch repositories: {e}")
            self._fail(sequence, str(e), title="Authentication Error")
            return
        except (MissingProxyDataError, ValidationError) as e:
            logger.error(
                f"Unusable proxy response: {e}",
                extra={"error_type": "proxy_payload_invalid"},
            )
            self._fail(sequence, FETCH_FAILED_MESSAGE)
            return
        except Exception as e:
            logger.error(
                f"Error fetching repositories: {e}",
                extra={"error_type": "repository_fetch_failed"},
            )
            self._fail(sequence, FETCH_FAILED_MESSAGE)
            return

        if sequence != self._sequence:
            logger.info("Discarding stale repository response", extra={"sequence": sequence})
            return
        self.repositories = repositories
        self.state = FetchState.READY
        logger.info(f"Loaded {len(repositories)} repositories")

    async def retry(self) -> None:
        """Force a session refresh to pick up a rotated provider token, then fetch again."""
        if self._auth.user is None or self._auth.profile is None:
            self.repositories = []
            return

        self._sequence += 1
        sequence = self._sequence
        self.state = FetchState.FETCHING
        self.error = None

        try:
            session = await self._store.refresh_session()
            if session is None:
                raise SessionRefreshError("Session refresh returned no session")
        except Exception as e:
            logger.warning(
                f"Session refresh failed: {e}",
                extra={"error_type": "session_refresh_failed"},
            )
            self._fail(sequence, SESSION_EXPIRED_MESSAGE, title="Authentication Error")
            return

        if sequence == self._sequence:
            await self.fetch(self.last_search_query)

    def _fail(self, sequence: int, message: str, title: str = "Error") -> None:
        if sequence != self._sequence:
            logger.info("Discarding stale repository failure", extra={"sequence": sequence})
            return
        self.error = message
        self.state = FetchState.ERROR
        self._notifier.notify(title, message, "destructive")
