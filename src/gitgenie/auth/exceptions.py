"""Custom exceptions for caller authentication in the proxy function."""


class AuthenticationError(Exception):
    """Raised when the caller's bearer credential cannot be resolved to a user."""

    pass


class AuthorizationError(Exception):
    """Raised when a resolved user lacks what is needed to act on their behalf."""

    pass
