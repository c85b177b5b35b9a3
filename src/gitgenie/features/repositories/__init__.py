"""Proxy function forwarding repository listings from the GitHub API."""

from gitgenie.features.repositories.handlers import router
from gitgenie.features.repositories.schemas import Repository

__all__ = ["router", "Repository"]
