"""API client for GitHub organization repository listings."""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

import httpx

from .exceptions import (
    APIError,
    AuthenticationError,
    InvalidResponseError,
    NetworkError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitError,
)

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
USER_AGENT = "pyghopac"


@dataclass(frozen=True)
class Repository:
    """A repository as listed by the organization endpoint."""

    name: str
    ssh_url: str | None = None
    clone_url: str | None = None
    archived: bool = False

    @classmethod
    def from_api_response(cls, data: dict) -> Repository:
        """Create a Repository from one element of the API response.

        Raises:
            InvalidResponseError: If the element is not an object or has no name
        """
        if not isinstance(data, dict):
            raise InvalidResponseError(f"Expected a repository object, got {data!r}")
        name = data.get("name")
        if not isinstance(name, str) or not name:
            raise InvalidResponseError(f"Repository without a name: {data!r}")
        return cls(
            name=name,
            ssh_url=data.get("ssh_url"),
            clone_url=data.get("clone_url"),
            archived=bool(data.get("archived", False)),
        )


class GitHubClient:
    """Client for the parts of the GitHub REST API ghopac needs."""

    def __init__(
        self,
        token: str,
        api_url: str = DEFAULT_API_URL,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        timeout: float = 30.0,
        per_page: int = 100,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize the GitHub API client.

        Args:
            token: Personal access token
            api_url: API base URL (GitHub Enterprise uses a different one)
            max_retries: Maximum number of retry attempts (default: 3)
            retry_delay: Initial delay between retries in seconds (default: 1.0)
            timeout: Request timeout in seconds (default: 30.0)
            per_page: Page size for list endpoints (max 100)
            transport: Optional httpx transport, mainly for tests
        """
        if not token or not token.strip():
            raise AuthenticationError("GitHub access token not configured")
        self.token = token
        self.api_url = api_url.rstrip("/")
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.timeout = timeout
        self.per_page = per_page
        self._transport = transport
        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        """Get or create the httpx client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                headers={
                    "Authorization": f"Bearer {self.token}",
                    "Accept": "application/vnd.github+json",
                    "User-Agent": USER_AGENT,
                },
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        """Close the client and release connections."""
        if self._client is not None and not self._client.is_closed:
            self._client.close()
            self._client = None

    def __enter__(self) -> GitHubClient:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _calculate_retry_delay(self, attempt: int) -> float:
        """Exponential backoff with +/-25% jitter.

        Args:
            attempt: Current attempt number (0-based)

        Returns:
            Delay in seconds
        """
        base_delay = self.retry_delay * (2**attempt)
        jitter = base_delay * 0.25 * (2 * random.random() - 1)
        return base_delay + jitter

    def _error_for_status(self, response: httpx.Response) -> APIError:
        """Map an unsuccessful response to an exception."""
        status_code = response.status_code

        if status_code == 401:
            return AuthenticationError("Invalid GitHub token or unauthorized access")
        if status_code == 429 or (
            status_code == 403
            and response.headers.get("X-RateLimit-Remaining") == "0"
        ):
            return RateLimitError("GitHub API rate limit exceeded")
        if status_code == 403:
            return PermissionDeniedError("Access forbidden - check token scopes")
        if status_code == 404:
            return NotFoundError("Resource not found")

        error_msg = f"API request failed with status {status_code}"
        try:
            data = response.json()
            if isinstance(data, dict) and data.get("message"):
                error_msg = f"{error_msg}: {data['message']}"
        except ValueError:
            # Non-JSON error body, keep the status based message
            pass
        return APIError(error_msg)

    @staticmethod
    def _retry_after(response: httpx.Response) -> float | None:
        """Seconds to wait according to the Retry-After header, if any."""
        retry_after = response.headers.get("Retry-After")
        if retry_after and retry_after.isdigit():
            return float(retry_after)
        return None

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> httpx.Response:
        """Make an API request with retry logic.

        Args:
            method: HTTP method
            endpoint: Endpoint path or absolute URL (pagination links)
            **kwargs: Additional arguments passed to httpx

        Returns:
            The successful response

        Raises:
            APIError: If the request fails after all retries
        """
        if endpoint.startswith(("http://", "https://")):
            url = endpoint
        else:
            url = f"{self.api_url}/{endpoint.lstrip('/')}"
        client = self._get_client()
        last_exception: APIError | None = None

        for attempt in range(self.max_retries + 1):
            try:
                response = client.request(method, url, **kwargs)
            except httpx.RequestError as e:
                last_exception = NetworkError(f"Network error: {e}")
                if attempt < self.max_retries:
                    delay = self._calculate_retry_delay(attempt)
                    logger.debug(
                        f"{method} {url} failed ({e}), retrying in {delay:.1f}s"
                    )
                    time.sleep(delay)
                    continue
                raise last_exception from e

            if response.is_success:
                return response

            error = self._error_for_status(response)
            last_exception = error
            is_rate_limit = isinstance(error, RateLimitError)
            retryable = is_rate_limit or response.status_code >= 500
            if retryable and attempt < self.max_retries:
                delay = self._retry_after(response) if is_rate_limit else None
                if delay is None:
                    delay = self._calculate_retry_delay(attempt)
                logger.debug(
                    f"{method} {url} returned {response.status_code}, "
                    f"retrying in {delay:.1f}s"
                )
                time.sleep(delay)
                continue
            raise error

        if last_exception:
            raise last_exception
        raise APIError("Request failed after all retry attempts")

    @staticmethod
    def _parse_json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise InvalidResponseError("Invalid JSON response from GitHub") from e

    def iter_org_repos(self, org: str) -> Iterator[Repository]:
        """Iterate over all repositories of an organization.

        Follows the ``Link: rel="next"`` pagination headers.

        Args:
            org: Organization login

        Yields:
            Repository entries in API order
        """
        endpoint: str | None = f"/orgs/{org}/repos"
        params: dict | None = {"per_page": self.per_page, "type": "all"}
        page = 0

        while endpoint:
            page += 1
            response = self._request("GET", endpoint, params=params)
            data = self._parse_json(response)
            if not isinstance(data, list):
                raise InvalidResponseError(
                    f"Expected a list of repositories for {org}, "
                    f"got {type(data).__name__}"
                )
            logger.debug(f"Org {org}: page {page} with {len(data)} repositories")
            for item in data:
                yield Repository.from_api_response(item)

            next_link = response.links.get("next")
            endpoint = next_link.get("url") if next_link else None
            # the next link already carries the query string
            params = None

    def list_org_repos(self, org: str) -> list[Repository]:
        """Get all repositories of an organization."""
        return list(self.iter_org_repos(org))
