"""Cross-cutting services: analytics and rate limiting."""

from gitgenie.services.analytics import PostHogService

__all__ = ["PostHogService"]
