"""Errors raised inside the client coordinators.

They never leave a coordinator: each is turned into a display string and a
notification at the coordinator boundary.
"""


class ClientError(Exception):
    """Base exception for client-side failures."""

    pass


class SessionUnavailableError(ClientError):
    """Raised when a fetch needs a session and the session store has none."""

    pass


class SessionRefreshError(ClientError):
    """Raised when forcing a session refresh fails."""

    pass


class ProxyInvocationError(ClientError):
    """Raised when the proxy function answers with a non-2xx status or is unreachable."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MissingProxyDataError(ClientError):
    """Raised when the proxy function answers without any payload."""

    pass
