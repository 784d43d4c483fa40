"""pyghopac - keep local clones of GitHub organizations up to date."""

from .api import GitHubClient, Repository
from .config import Config, OrgConfig, load_config
from .exceptions import (
    APIError,
    AuthenticationError,
    ConfigError,
    GhopacError,
    InvalidResponseError,
    NetworkError,
    NoAncestorError,
    NotFoundError,
    PermissionDeniedError,
    QueueClosedError,
    RateLimitError,
)

__version__ = "0.3.0"

__all__ = [
    "GitHubClient",
    "Repository",
    "Config",
    "OrgConfig",
    "load_config",
    "GhopacError",
    "ConfigError",
    "APIError",
    "AuthenticationError",
    "PermissionDeniedError",
    "NotFoundError",
    "RateLimitError",
    "NetworkError",
    "InvalidResponseError",
    "QueueClosedError",
    "NoAncestorError",
]
