"""Local verification of Supabase access tokens."""

import logging
from typing import Any

from jose import JWTError, jwt

from gitgenie.auth.jwks import JWKSCache

logger = logging.getLogger(__name__)

# New Supabase projects sign with ES256, older ones with RS256
SUPPORTED_ALGORITHMS = ["RS256", "ES256"]

_REQUIRED_CHECKS = {
    "verify_signature": True,
    "verify_exp": True,
    "verify_aud": True,
    "verify_iss": True,
    "require_exp": True,
}


class JWTValidator:
    """
    Checks a Supabase access token against the project's published keys.

    A valid token proves who is calling the proxy function without a round
    trip to Supabase Auth.

    Example:
        >>> validator = JWTValidator(cache, issuer="https://project.supabase.co/auth/v1")
        >>> claims = await validator.verify_token(access_token)
        >>> claims["sub"]
    """

    def __init__(
        self,
        jwks_cache: JWKSCache,
        issuer: str,
        audience: str = "authenticated",
        leeway: int = 10,
    ):
        self.jwks_cache = jwks_cache
        self.issuer = issuer
        self.audience = audience
        self.leeway = leeway

    async def _key_for(self, token: str):
        kid = jwt.get_unverified_header(token).get("kid")
        if not kid:
            raise JWTError("JWT header missing 'kid' (key ID)")
        return kid, await self.jwks_cache.get_signing_key(kid)

    async def verify_token(self, token: str) -> dict[str, Any]:
        """
        Return the claims of ``token`` once signature, expiry, issuer and
        audience all check out.

        Raises:
            JWTError: For any token that does not verify, including unknown keys
        """
        try:
            kid, signing_key = await self._key_for(token)
            claims = jwt.decode(
                token,
                signing_key,
                algorithms=SUPPORTED_ALGORITHMS,
                audience=self.audience,
                issuer=self.issuer,
                options={**_REQUIRED_CHECKS, "leeway": self.leeway},
            )
        except JWTError as e:
            logger.warning(
                f"Access token rejected: {e}",
                extra={"error_type": "jwt_verification_failed"},
            )
            raise
        except Exception as e:
            logger.error(
                f"Access token could not be checked: {e}",
                exc_info=True,
                extra={"error_type": "jwt_verification_error"},
            )
            raise JWTError(f"JWT verification error: {e}") from e

        logger.debug("Access token verified", extra={"user_id": claims.get("sub"), "kid": kid})
        return claims
