"""Caller resolution for requests carrying a Supabase access token."""

import logging
from uuid import UUID

from jose import JWTError
from starlette.concurrency import run_in_threadpool

from gitgenie.auth.exceptions import AuthenticationError
from gitgenie.auth.jwt_validator import JWTValidator
from gitgenie.auth.models import JWTUser
from gitgenie.config import settings
from gitgenie.database import get_supabase_client
from gitgenie.services.analytics import PostHogService

logger = logging.getLogger(__name__)

# Global JWT validator instance (initialized in main.py lifespan)
_jwt_validator: JWTValidator | None = None


def set_jwt_validator(validator: JWTValidator | None) -> None:
    """Install the validator used for local token verification."""
    global _jwt_validator
    _jwt_validator = validator


def get_jwt_validator() -> JWTValidator:
    """
    Get the global JWT validator instance.

    Raises:
        RuntimeError: If JWT validator not initialized
    """
    if _jwt_validator is None:
        raise RuntimeError(
            "JWT validator not initialized. "
            "Ensure application startup calls set_jwt_validator()."
        )
    return _jwt_validator


def parse_bearer(authorization: str | None) -> str:
    """Extract the token from an ``Authorization: Bearer <token>`` header value."""
    if not authorization:
        raise AuthenticationError("Unauthorized")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Unauthorized")
    return token.strip()


async def _claims_from_auth_server(token: str) -> dict:
    """Resolve the token through Supabase Auth when local verification is off."""
    client = get_supabase_client()
    response = await run_in_threadpool(client.auth.get_user, token)
    user = response.user if response else None
    if user is None:
        raise AuthenticationError("Unauthorized")
    return {"sub": user.id, "email": user.email, "user_metadata": user.user_metadata or {}}


async def resolve_user(authorization: str | None) -> JWTUser:
    """
    Resolve the caller's identity from their bearer credential.

    Uses the local JWKS validator when one is installed, otherwise asks the
    Supabase auth server. Every failure surfaces as ``AuthenticationError``
    with the message ``Unauthorized``.

    Example:
        >>> user = await resolve_user(request.headers.get("Authorization"))
        >>> user.id
        UUID('123e4567-e89b-12d3-a456-426614174000')
    """
    posthog_service = PostHogService()
    token = parse_bearer(authorization)

    try:
        if _jwt_validator is not None:
            claims = await _jwt_validator.verify_token(token)
        else:
            claims = await _claims_from_auth_server(token)
    except AuthenticationError:
        posthog_service.capture(
            distinct_id="anonymous",
            event="authentication_failed",
            properties={"error": "user_not_found"},
        )
        raise
    except JWTError as e:
        logger.warning(f"JWT verification failed: {e}", extra={"error_type": "jwt_invalid"})
        posthog_service.capture(
            distinct_id="anonymous",
            event="authentication_failed",
            properties={"error": "jwt_verification_failed"},
        )
        raise AuthenticationError("Unauthorized") from e
    except Exception as e:
        logger.error(f"Caller resolution failed: {e}", exc_info=True)
        posthog_service.capture(
            distinct_id="anonymous",
            event="authentication_failed",
            properties={"error": "token_validation_failed"},
        )
        raise AuthenticationError("Unauthorized") from e

    user_id = claims.get("sub")
    if not user_id:
        logger.warning("Auth failed: missing user ID", extra={"error_type": "missing_sub_claim"})
        raise AuthenticationError("Unauthorized")

    try:
        user_uuid = UUID(str(user_id))
    except ValueError as e:
        logger.warning(
            f"Auth failed: malformed user ID {user_id}", extra={"error_type": "invalid_sub_claim"}
        )
        raise AuthenticationError("Unauthorized") from e

    logger.info(f"Caller resolved: {user_id}")
    posthog_service.capture(distinct_id=str(user_id), event="user_authenticated")
    return JWTUser(
        id=user_uuid,
        email=claims.get("email"),
        user_metadata=claims.get("user_metadata") or {},
    )


def use_local_verification() -> bool:
    """Whether the app should install a JWKS-backed validator at startup."""
    return settings.use_local_jwt_verification and settings.supabase_configured
