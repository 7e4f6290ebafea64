"""
Registry error classes.

Provides the taxonomy of failures that can occur while talking to a
registry or to the image collaborator. HTTP-level exceptions from httpx
and subprocess failures are wrapped into these so callers only need to
handle one hierarchy.
"""
from __future__ import annotations


class ManifestoError(Exception):
    """Base class for all manifesto errors."""
    pass


class AuthChallengeParseError(ManifestoError):
    """
    WWW-Authenticate header could not be parsed.

    Raised when a 401 response carries a header that does not match
    ``scheme realm="realm"(,key="value")*``.
    """

    def __init__(self, header: str):
        super().__init__(f"Empty or invalid WWW-Authenticate header: {header!r}")
        self.header = header


class AuthTokenError(ManifestoError):
    """
    Bearer token could not be obtained.

    Raised when:
    - the token endpoint (challenge realm) is unreachable
    - the token endpoint returns a status other than 200
    - the token response is not JSON or has no ``token`` field
    - the challenge carries no scope to cache the token under
    """
    pass


class TransportError(ManifestoError):
    """Network failure or timeout while issuing a request."""

    def __init__(self, method: str, url: str, cause: Exception):
        super().__init__(f"{method} {url} failed: {cause}")
        self.method = method
        self.url = url


class UnexpectedStatusError(ManifestoError):
    """
    Response status outside the set required for an operation.

    Carries the operation name and the status so callers can report
    which step of a multi-request operation went wrong.
    """

    def __init__(self, operation: str, status_code: int, url: str = ""):
        message = f"{operation}: unexpected status {status_code}"
        if url:
            message += f" from {url}"
        super().__init__(message)
        self.operation = operation
        self.status_code = status_code
        self.url = url


class ImageResolveError(ManifestoError):
    """The image collaborator could not resolve or transfer an image."""
    pass


class IndexDocumentError(ManifestoError):
    """Stored metadata index is not a valid JSON document."""
    pass


__all__ = [
    "ManifestoError",
    "AuthChallengeParseError",
    "AuthTokenError",
    "TransportError",
    "UnexpectedStatusError",
    "ImageResolveError",
    "IndexDocumentError",
]
