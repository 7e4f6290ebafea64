"""
Registry HTTP transport for the OCI Distribution API.

Issues requests against one registry with a fixed timeout, delegating 401
handling to the AuthNegotiator. No other retries are made: timeouts,
connection errors and 5xx responses surface immediately.
"""
from __future__ import annotations

import logging
from typing import Optional

import httpx

from .. import __version__
from .auth import AuthNegotiator, Credentials
from .oci_errors import TransportError

logger = logging.getLogger(__name__)

__all__ = ["RegistryHTTP", "USER_AGENT", "normalize_registry_url"]

USER_AGENT = f"manifesto/{__version__}"


def normalize_registry_url(url: str, insecure: bool = False) -> str:
    """
    Build the registry base URL.

    Strips whitespace and any trailing slash, and adds a scheme when
    none is given (http:// only for insecure registries).

    Raises:
        ValueError: If the URL is empty
    """
    url = url.strip().rstrip("/")
    if not url:
        raise ValueError("The registry URL must be provided")
    if not url.startswith("http"):
        url = f"{'http' if insecure else 'https'}://{url}"
    return url


class RegistryHTTP:
    """
    HTTP client for one registry.

    Holds the httpx client and the authentication state for the lifetime
    of a command; nothing is shared between instances.
    """

    def __init__(self, registry: str, credentials: Optional[Credentials] = None, *,
                 timeout_s: float = 10.0, insecure: bool = False,
                 transport: Optional[httpx.BaseTransport] = None):
        """
        Initialize registry HTTP client.

        Args:
            registry: Registry hostname or URL (e.g., "localhost:5000", "quay.io")
            credentials: (username, password), None for anonymous access
            timeout_s: Timeout applied to every request
            insecure: Use http:// when the registry has no scheme
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.base_url = normalize_registry_url(registry, insecure)
        self.timeout_s = timeout_s
        self.client = httpx.Client(
            timeout=httpx.Timeout(timeout_s),
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
            transport=transport,
        )
        self.auth = AuthNegotiator(self.client, credentials)

    def call(self, method: str, path: str, body: bytes = b"", content_type: str = "") -> httpx.Response:
        """
        Issue a request, authenticating as the registry demands.

        The response body is always fully read, so the connection is
        released whether the caller uses the body or not.

        Args:
            method: HTTP method
            path: Absolute URL, or a path starting with '/' resolved
                against the registry base URL
            body: Request payload
            content_type: Content-Type header, omitted when empty

        Returns:
            Response of the last request in the auth sequence

        Raises:
            TransportError: On network failure or timeout
            AuthChallengeParseError: On a malformed 401 challenge
            AuthTokenError: If a token could not be obtained
        """
        url = self.base_url + path if path.startswith("/") else path
        headers = {"Content-Type": content_type} if content_type else {}

        def send(auth_headers: dict) -> httpx.Response:
            logger.debug(f"{method} {url}")
            try:
                return self.client.request(
                    method, url, content=body, headers={**headers, **auth_headers}
                )
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                raise TransportError(method, url, e) from e

        return self.auth.execute(send)

    def get(self, path: str) -> httpx.Response:
        return self.call("GET", path)

    def close(self):
        """Close HTTP client."""
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
