"""Product analytics."""

from gitgenie.services.analytics.posthog import (
    PostHogService,
    get_posthog_client,
    shutdown_analytics,
)

__all__ = ["PostHogService", "get_posthog_client", "shutdown_analytics"]
