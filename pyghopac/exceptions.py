"""Exceptions raised by pyghopac."""


class GhopacError(Exception):
    """Base exception for all pyghopac errors."""


class ConfigError(GhopacError):
    """Raised when the configuration file cannot be read or is malformed."""


class APIError(GhopacError):
    """Raised when a GitHub API request fails."""


class AuthenticationError(APIError):
    """Raised when the access token is missing, invalid or expired."""


class PermissionDeniedError(APIError):
    """Raised when the token lacks access to the requested resource."""


class NotFoundError(APIError):
    """Raised when the organization or resource does not exist."""


class RateLimitError(APIError):
    """Raised when the API rate limit has been exhausted."""


class NetworkError(APIError):
    """Raised on transport level failures (DNS, connection, timeouts)."""


class InvalidResponseError(APIError):
    """Raised when the API returns something that is not the expected JSON."""


class QueueClosedError(GhopacError):
    """Raised when a closed dispatch queue is used by its producer."""


class NoAncestorError(GhopacError):
    """Raised when no existing directory can be found above a path."""

    def __init__(self, path):
        super().__init__(f"No existing directory found above {path}")
        self.path = path
