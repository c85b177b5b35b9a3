"""Signing key retrieval for Supabase access tokens."""

import logging
from datetime import datetime, timezone

import httpx
from jose import jwk
from jose.backends import ECKey, RSAKey

logger = logging.getLogger(__name__)

# Supabase publishes EC (ES256) keys for new projects and RSA for older ones
_ALGORITHM_BY_KEY_TYPE = {"EC": "ES256", "RSA": "RS256"}


class JWKSCache:
    """
    In-memory cache of the Supabase project's public signing keys.

    Keys are loaded from the project's ``/auth/v1/.well-known/jwks.json``
    endpoint and kept for ``cache_ttl`` seconds. An unknown ``kid`` triggers
    one extra reload so that key rotation does not reject fresh tokens.

    Example:
        >>> cache = JWKSCache("https://project.supabase.co/auth/v1/.well-known/jwks.json")
        >>> await cache.refresh_keys()
        >>> key = await cache.get_signing_key("kid-1")
    """

    def __init__(self, jwks_url: str, cache_ttl: int = 3600):
        self.jwks_url = jwks_url
        self.cache_ttl = cache_ttl
        self._keys: dict[str, RSAKey | ECKey] = {}
        self._last_refresh: datetime | None = None
        self._http_client = httpx.AsyncClient(timeout=httpx.Timeout(10.0, read=30.0))

    async def get_signing_key(self, kid: str) -> RSAKey | ECKey:
        """
        Return the public key for ``kid``, reloading the key set when needed.

        Raises:
            ValueError: If the key is still unknown after a reload
            httpx.HTTPError: If the key set cannot be downloaded
        """
        if self._is_stale():
            await self.refresh_keys()

        key = self._keys.get(kid)
        if key is None:
            logger.warning(
                f"Unknown signing key '{kid}', reloading key set",
                extra={"kid": kid, "cached_kids": list(self._keys)},
            )
            await self.refresh_keys()
            key = self._keys.get(kid)

        if key is None:
            raise ValueError(f"Signing key '{kid}' is not published by {self.jwks_url}")
        return key

    async def refresh_keys(self) -> None:
        """Download the key set and swap it into the cache."""
        try:
            response = await self._http_client.get(self.jwks_url)
            response.raise_for_status()
            published = response.json().get("keys", [])
        except httpx.HTTPError as e:
            logger.error(
                f"Failed to download signing keys from {self.jwks_url}: {e}",
                exc_info=True,
                extra={"error_type": "jwks_fetch_failed"},
            )
            raise

        keys: dict[str, RSAKey | ECKey] = {}
        for key_data in published:
            kid = key_data.get("kid")
            if not kid:
                logger.warning("Skipping published key without 'kid'")
                continue
            algorithm = _ALGORITHM_BY_KEY_TYPE.get(key_data.get("kty"), key_data.get("alg", "RS256"))
            keys[kid] = jwk.construct(key_data, algorithm=algorithm)

        if not keys:
            logger.warning(
                "Supabase published no signing keys; token verification will fail",
                extra={"jwks_url": self.jwks_url},
            )

        self._keys = keys
        self._last_refresh = datetime.now(timezone.utc)
        logger.info("Signing keys refreshed", extra={"key_ids": list(keys)})

    def _is_stale(self) -> bool:
        if self._last_refresh is None:
            return True
        return (datetime.now(timezone.utc) - self._last_refresh).total_seconds() >= self.cache_ttl

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._http_client.aclose()
