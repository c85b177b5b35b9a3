"""Authentication of proxy callers via Supabase access tokens."""

from gitgenie.auth.dependencies import (
    get_jwt_validator,
    parse_bearer,
    resolve_user,
    set_jwt_validator,
)
from gitgenie.auth.exceptions import AuthenticationError, AuthorizationError
from gitgenie.auth.jwks import JWKSCache
from gitgenie.auth.jwt_validator import JWTValidator
from gitgenie.auth.models import JWTUser

__all__ = [
    "get_jwt_validator",
    "parse_bearer",
    "resolve_user",
    "set_jwt_validator",
    "JWKSCache",
    "JWTValidator",
    "AuthenticationError",
    "AuthorizationError",
    "JWTUser",
]
