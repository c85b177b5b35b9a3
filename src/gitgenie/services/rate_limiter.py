"""Rate limiting for the proxy function and UI actions."""

import logging

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from gitgenie.auth.models import JWTUser
from gitgenie.config import settings

logger = logging.getLogger(__name__)


def get_user_id_or_ip(request: Request) -> str:
    """
    Rate limit key: the resolved caller when known, otherwise the client IP.

    The proxy handler stores the resolved ``JWTUser`` on ``request.state.user``.
    """
    user: JWTUser | None = getattr(request.state, "user", None)
    if user and user.id:
        return f"user:{user.id}"
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(
    key_func=get_user_id_or_ip,
    default_limits=[],
    storage_uri="memory://",
    enabled=settings.rate_limit_enabled,
)


class RateLimitTiers:
    """Rate limit tiers for the endpoint categories this app exposes."""

    # Proxy calls fan out to the GitHub API, which has its own hourly quota
    DEFAULT = ["60 per minute", "1000 per hour"]

    # Browser-facing actions (sign in, retry, search)
    PUBLIC = ["30 per minute", "300 per hour"]


# These decorators require the endpoint to have a 'request: Request' parameter
default_rate_limit = limiter.limit(";".join(RateLimitTiers.DEFAULT))
public_rate_limit = limiter.limit(";".join(RateLimitTiers.PUBLIC))
