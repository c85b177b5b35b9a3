"""Custom exceptions for the repository proxy."""


class RepositoryProxyError(Exception):
    """Base exception for proxy failures; the message is returned to the caller."""

    pass


class ProviderTokenNotFoundError(RepositoryProxyError):
    """Raised when the caller has no stored GitHub access token."""

    pass


class GitHubAPIError(RepositoryProxyError):
    """Raised when the GitHub API answers with a non-2xx status."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"GitHub API error: {status_code}")
        self.status_code = status_code


class InvalidProxyRequestError(RepositoryProxyError):
    """Raised when the request body is not the expected JSON object."""

    pass
