"""Product analytics via PostHog."""

from functools import lru_cache

from posthog import Posthog

from gitgenie.config import settings


@lru_cache(maxsize=1)
def get_posthog_client() -> Posthog | None:
    """Shared PostHog client, or None when no API key is configured."""
    if not settings.posthog_api_key:
        return None
    return Posthog(settings.posthog_api_key, host=settings.posthog_host)


def shutdown_analytics() -> None:
    """Flush queued events; called once at application shutdown."""
    client = get_posthog_client()
    if client is not None:
        client.shutdown()


class PostHogService:
    """Records proxy and caller-resolution events. Does nothing without an API key."""

    def __init__(self, client: Posthog | None = None) -> None:
        self._client = client or get_posthog_client()

    @property
    def enabled(self) -> bool:
        return self._client is not None

    def capture(self, distinct_id: str, event: str, properties: dict | None = None) -> None:
        """
        Queue an event for ``distinct_id`` (a Supabase user id, or "anonymous").

        Example:
            >>> PostHogService().capture(str(user.id), "repositories_proxied", {"count": 12})
        """
        if self._client is None:
            return
        self._client.capture(distinct_id=distinct_id, event=event, properties=properties or {})
