"""Proxy function endpoint: ``/functions/v1/fetch-github-repos``."""

import json
import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError

from gitgenie.auth import AuthenticationError, JWTUser, resolve_user
from gitgenie.features.repositories.exceptions import (
    InvalidProxyRequestError,
    RepositoryProxyError,
)
from gitgenie.features.repositories.schemas import (
    FetchRepositoriesRequest,
    FetchRepositoriesResponse,
    ProxyErrorResponse,
)
from gitgenie.features.repositories.service import (
    RepositoryProxyService,
    get_repository_proxy_service,
)
from gitgenie.services.analytics import PostHogService
from gitgenie.services.rate_limiter import default_rate_limit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/functions/v1", tags=["functions"])

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}


async def resolved_caller(request: Request) -> JWTUser | None:
    """
    Resolve the caller ahead of the rate limiter, which keys on ``request.state.user``.

    An unresolved caller yields None and leaves the reason on
    ``request.state.auth_error`` for the 400 response.
    """
    try:
        caller = await resolve_user(request.headers.get("Authorization"))
    except AuthenticationError as e:
        request.state.auth_error = str(e)
        return None
    except Exception as e:
        logger.error(f"Error resolving caller: {e}", exc_info=True)
        request.state.auth_error = str(e) or "Unauthorized"
        return None
    request.state.user = caller
    return caller


async def _read_payload(request: Request) -> FetchRepositoriesRequest:
    """Parse the optional JSON body; an empty body means "my repositories"."""
    body = await request.body()
    if not body.strip():
        return FetchRepositoriesRequest()
    try:
        return FetchRepositoriesRequest.model_validate(json.loads(body))
    except (ValueError, ValidationError) as e:
        raise InvalidProxyRequestError("Invalid request body") from e


@router.options("/fetch-github-repos", include_in_schema=False)
async def fetch_github_repos_preflight() -> PlainTextResponse:
    """Answer CORS pre-flight requests."""
    return PlainTextResponse("ok", headers=CORS_HEADERS)


@router.post(
    "/fetch-github-repos",
    response_model=FetchRepositoriesResponse,
    responses={
        400: {"model": ProxyErrorResponse},
        429: {"description": "Rate limit exceeded"},
    },
)
@default_rate_limit
async def fetch_github_repos(
    request: Request,
    caller: JWTUser | None = Depends(resolved_caller),
    service: RepositoryProxyService = Depends(get_repository_proxy_service),
) -> JSONResponse:
    """
    List the caller's GitHub repositories, or search GitHub.

    The caller is identified by the Supabase access token in the
    ``Authorization`` header; their GitHub token is read from their profile
    row. With ``searchQuery`` in the body GitHub's repository search is used
    instead of the caller's own repositories.

    Every failure is answered with HTTP 400 and ``{"error": message}``,
    except rate limit rejections, which slowapi answers with 429.

    Example Response:
        {"repositories": [{"id": 1, "name": "api-service", ...}]}
    """
    posthog_service = PostHogService()
    try:
        if caller is None:
            raise AuthenticationError(request.state.auth_error)
        payload = await _read_payload(request)
        repositories = await service.fetch_for_user(caller, payload.search_query)
    except (AuthenticationError, RepositoryProxyError) as e:
        message = str(e)
    except Exception as e:
        logger.error(f"Error fetching GitHub repositories: {e}", exc_info=True)
        message = str(e) or "Failed to fetch repositories"
    else:
        posthog_service.capture(
            distinct_id=str(caller.id),
            event="repositories_proxied",
            properties={"count": len(repositories), "search": bool(payload.search_query)},
        )
        body = FetchRepositoriesResponse(repositories=repositories)
        return JSONResponse(
            content=body.model_dump(mode="json"),
            status_code=status.HTTP_200_OK,
            headers=CORS_HEADERS,
        )

    logger.warning(f"Proxy request failed: {message}", extra={"error_type": "proxy_failed"})
    posthog_service.capture(
        distinct_id=str(caller.id) if caller else "anonymous",
        event="repositories_proxy_failed",
        properties={"error": message},
    )
    return JSONResponse(
        content=ProxyErrorResponse(error=message).model_dump(),
        status_code=status.HTTP_400_BAD_REQUEST,
        headers=CORS_HEADERS,
    )
