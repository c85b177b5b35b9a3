"""Server-rendered repository browser."""

from gitgenie.web.handlers import router

__all__ = ["router"]
