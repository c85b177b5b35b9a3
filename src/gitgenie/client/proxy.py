"""Client side of the proxy function contract."""

import logging
from typing import Any

import httpx

from gitgenie.client.exceptions import ProxyInvocationError

logger = logging.getLogger(__name__)


class FunctionsProxyClient:
    """
    Invokes the repository proxy function with the user's access token.

    Example:
        >>> proxy = FunctionsProxyClient("https://x.supabase.co/functions/v1", "fetch-github-repos", anon_key)
        >>> payload = await proxy.invoke(session.access_token, "fastapi")
    """

    def __init__(
        self,
        functions_url: str,
        function_name: str,
        anon_key: str,
        *,
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.url = f"{functions_url.rstrip('/')}/{function_name}"
        self._anon_key = anon_key
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout)

    async def invoke(self, access_token: str, search_query: str | None = None) -> Any:
        """
        POST ``{"searchQuery": ...}`` to the proxy function.

        Returns:
            The decoded JSON payload, or None when the response has no body

        Raises:
            ProxyInvocationError: On transport failure or a non-2xx answer
        """
        body = {"searchQuery": search_query} if search_query else {}
        headers = {"Authorization": f"Bearer {access_token}", "apikey": self._anon_key}
        try:
            response = await self._http_client.post(self.url, json=body, headers=headers)
        except httpx.HTTPError as e:
            raise ProxyInvocationError(f"Proxy function unreachable: {e}") from e

        if response.is_error:
            raise ProxyInvocationError(_error_message(response), status_code=response.status_code)

        if not response.content.strip():
            return None
        try:
            return response.json()
        except ValueError:
            logger.warning("Proxy function returned a non-JSON body")
            return None

    async def close(self) -> None:
        await self._http_client.aclose()


def _error_message(response: httpx.Response) -> str:
    try:
        error = response.json().get("error")
    except (ValueError, AttributeError):
        error = None
    return error or f"Proxy function returned HTTP {response.status_code}"
