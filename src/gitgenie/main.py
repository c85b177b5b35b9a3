"""FastAPI application entry point."""

import logging
import sys
from contextlib import asynccontextmanager
from functools import partial

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.middleware.sessions import SessionMiddleware
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from gitgenie.auth import JWKSCache, JWTValidator, set_jwt_validator
from gitgenie.auth.dependencies import use_local_verification
from gitgenie.client.app import ClientApp, ClientRegistry, RepositorySelectHandler
from gitgenie.config import settings
from gitgenie.features.repositories import router as repositories_router
from gitgenie.services.analytics import shutdown_analytics
from gitgenie.services.rate_limiter import limiter
from gitgenie.web import router as web_router

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging with a consistent format."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=5),
    retry=retry_if_exception_type(httpx.HTTPError),
    reraise=True,
)
async def load_signing_keys(jwks_cache: JWKSCache) -> None:
    """
    Download the signing keys once at startup.

    Transient HTTP failures are retried with exponential backoff:
    - Maximum 3 attempts
    - Backoff 1s, 2s (capped at 5s)
    """
    await jwks_cache.refresh_keys()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle (startup and shutdown)."""
    jwks_cache = None

    if not settings.supabase_configured:
        logger.error(
            "Missing Supabase configuration: SUPABASE_URL and SUPABASE_ANON_KEY are required",
            extra={"error_type": "config_missing"},
        )

    if use_local_verification():
        jwks_url = f"{settings.supabase_url}/auth/v1/.well-known/jwks.json"
        issuer = f"{settings.supabase_url}/auth/v1"
        try:
            jwks_cache = JWKSCache(jwks_url=jwks_url, cache_ttl=settings.jwks_cache_ttl_seconds)
            await load_signing_keys(jwks_cache)
            set_jwt_validator(
                JWTValidator(
                    jwks_cache=jwks_cache,
                    issuer=issuer,
                    audience=settings.jwt_audience,
                    leeway=settings.jwt_leeway_seconds,
                )
            )
            logger.info("JWT validator initialized", extra={"jwks_url": jwks_url, "issuer": issuer})
        except Exception as e:
            logger.error(
                f"Failed to initialize JWT validator: {e}",
                exc_info=True,
                extra={"error_type": "jwt_validator_init_failed"},
            )
            raise
    else:
        logger.info("Local JWT verification disabled, resolving callers through Supabase Auth")

    yield

    await app.state.client_registry.close_all()
    set_jwt_validator(None)
    if jwks_cache is not None:
        await jwks_cache.close()
    shutdown_analytics()


class HealthCheckResponse(BaseModel):
    """Health check response."""

    status: str


def create_app(on_repository_select: RepositorySelectHandler | None = None) -> FastAPI:
    """
    Build the application.

    Args:
        on_repository_select: Called with the full record when a user picks a
            repository card; defaults to logging the selection.
    """
    app = FastAPI(
        title="Git Genie",
        description="Browse GitHub repositories through a Supabase-authenticated proxy",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.state.client_registry = ClientRegistry(
        factory=partial(ClientApp.create, settings, on_repository_select),
        max_clients=settings.max_client_sessions,
    )

    # Session cookie without max_age: it lives as long as the browser session
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret_key,
        session_cookie="gitgenie_session",
        max_age=None,
        same_site="lax",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins.split(","),
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
    )

    app.include_router(repositories_router)
    app.include_router(web_router)

    @app.get("/health", response_model=HealthCheckResponse)
    async def health_check() -> HealthCheckResponse:
        """Health check endpoint."""
        return HealthCheckResponse(status="healthy")

    return app


configure_logging(settings.log_level)
app = create_app()
