"""One client app per browser session, and the registry that owns them."""

import asyncio
import inspect
import logging
import secrets
from collections import OrderedDict
from typing import Any, Awaitable, Callable, MutableMapping

from gitgenie.client.auth import AuthCoordinator
from gitgenie.client.notifications import Notifier
from gitgenie.client.proxy import FunctionsProxyClient
from gitgenie.client.repositories import RepositoryFetchCoordinator
from gitgenie.client.session_store import (
    SessionStore,
    SupabaseSessionStore,
    create_supabase_client,
)
from gitgenie.config import Settings
from gitgenie.features.profile import ProfileStore, SupabaseProfileStore
from gitgenie.features.repositories.schemas import Repository

logger = logging.getLogger(__name__)

RepositorySelectHandler = Callable[[Repository], Awaitable[None] | None]


def log_repository_selection(repository: Repository) -> None:
    """Default selection handler."""
    logger.info(f"Selected repository: {repository.full_name}")


class ClientApp:
    """
    Auth and repository state for a single browser session.

    Built once per session and shared by reference with every request from
    that session; ``close`` is the teardown path.
    """

    def __init__(
        self,
        session_store: SessionStore,
        profile_store: ProfileStore,
        proxy: FunctionsProxyClient,
        *,
        redirect_to: str,
        scopes: str = "repo read:user",
        loading_timeout: float = 3.0,
        notifier: Notifier | None = None,
        on_repository_select: RepositorySelectHandler | None = None,
    ) -> None:
        self.notifier = notifier or Notifier()
        self.session_store = session_store
        self.proxy = proxy
        self.auth = AuthCoordinator(
            session_store,
            profile_store,
            self.notifier,
            redirect_to=redirect_to,
            scopes=scopes,
            loading_timeout=loading_timeout,
        )
        self.repositories = RepositoryFetchCoordinator(
            self.auth, session_store, proxy, self.notifier
        )
        self._on_repository_select = on_repository_select or log_repository_selection
        self._started = False

    @classmethod
    async def create(
        cls,
        settings: Settings,
        on_repository_select: RepositorySelectHandler | None = None,
    ) -> "ClientApp":
        """Build a client app with its own Supabase client."""
        supabase = await create_supabase_client(settings)
        return cls(
            SupabaseSessionStore(supabase),
            SupabaseProfileStore(supabase, settings.profiles_table),
            FunctionsProxyClient(
                settings.functions_url,
                settings.proxy_function_name,
                settings.supabase_anon_key,
                timeout=settings.github_timeout_seconds,
            ),
            redirect_to=f"{settings.app_base_url.rstrip('/')}/auth/callback",
            scopes=settings.github_oauth_scopes,
            loading_timeout=settings.auth_loading_timeout_seconds,
            on_repository_select=on_repository_select,
        )

    async def start(self, markers: MutableMapping[str, Any]) -> None:
        """Mount the repository coordinator, then restore the session."""
        if self._started:
            return
        self._started = True
        await self.repositories.mount(markers)
        await self.auth.start()

    async def reload(self, markers: MutableMapping[str, Any]) -> None:
        """A page reload: refresh the session, then fetch the list again."""
        await self.repositories.reload(markers)

    async def select_repository(self, repository_id: int) -> Repository | None:
        """Hand the full record of a listed repository to the selection handler."""
        repository = next(
            (repo for repo in self.repositories.repositories if repo.id == repository_id), None
        )
        if repository is None:
            logger.warning(f"Selected repository {repository_id} is not in the current list")
            return None
        result = self._on_repository_select(repository)
        if inspect.isawaitable(result):
            await result
        return repository

    async def close(self) -> None:
        self.repositories.unmount()
        await self.auth.close()
        await self.proxy.close()
        await self.session_store.close()


class ClientRegistry:
    """
    Client apps keyed by the random id stored in the browser's session cookie.

    Holds at most ``max_clients`` apps; the least recently used one is closed
    when the limit is exceeded.
    """

    def __init__(
        self,
        factory: Callable[[], Awaitable[ClientApp]],
        max_clients: int = 500,
    ) -> None:
        self._factory = factory
        self._max_clients = max_clients
        self._apps: OrderedDict[str, ClientApp] = OrderedDict()
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._apps)

    def get(self, client_id: str | None) -> ClientApp | None:
        return self._apps.get(client_id) if client_id else None

    async def get_or_create(
        self, client_id: str | None, markers: MutableMapping[str, Any]
    ) -> tuple[str, ClientApp]:
        """
        Return the app for ``client_id``, creating and starting one if needed.

        An unknown id is kept, so a browser whose app was evicted or lost in
        a restart gets a new app under the same id.
        """
        evicted: list[ClientApp] = []
        async with self._lock:
            client_id = client_id or secrets.token_urlsafe(16)
            app = self._apps.get(client_id)
            if app is not None:
                self._apps.move_to_end(client_id)
            else:
                app = await self._factory()
                self._apps[client_id] = app
                while len(self._apps) > self._max_clients:
                    _, oldest = self._apps.popitem(last=False)
                    evicted.append(oldest)

        for oldest in evicted:
            logger.info("Evicting least recently used client session")
            await oldest.close()

        await app.start(markers)
        return client_id, app

    async def close_all(self) -> None:
        async with self._lock:
            apps = list(self._apps.values())
            self._apps.clear()
        for app in apps:
            await app.close()
