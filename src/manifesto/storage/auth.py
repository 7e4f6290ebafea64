"""
Registry authentication.

Implements the Docker Registry v2 challenge/token handshake as an explicit
state machine, plus lookup of credentials from the Docker config file.

A logical call goes through at most three requests:

1. the request with the current mode (anonymous or Basic)
2. on 401, a retry with a cached bearer token for the challenge scope
3. on 401 again (or no cached token), a token fetch from the challenge
   realm followed by one final retry whose result is returned as-is
"""
from __future__ import annotations

import base64
import json
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple

import httpx

from .oci_errors import AuthChallengeParseError, AuthTokenError

logger = logging.getLogger(__name__)

__all__ = [
    "AuthChallenge",
    "AuthMode",
    "AuthNegotiator",
    "DockerAuth",
    "parse_www_authenticate",
]

_CHALLENGE_RE = re.compile(r'^([A-Za-z0-9]+) realm="([^"]+)"(.*)$', re.DOTALL)
_PARAM_RE = re.compile(r',([^=]+)="([^"]+)"')

Credentials = Tuple[str, str]
SendFn = Callable[[Dict[str, str]], httpx.Response]


@dataclass(frozen=True)
class AuthChallenge:
    """Parsed WWW-Authenticate challenge."""
    scheme: str
    realm: str
    params: Dict[str, str] = field(default_factory=dict)

    @property
    def scope(self) -> Optional[str]:
        return self.params.get("scope")


def parse_www_authenticate(header: Optional[str]) -> AuthChallenge:
    """
    Parse a WWW-Authenticate header.

    Grammar: ``scheme realm="realm"(,key="value")*``

    Examples:
        >>> parse_www_authenticate('Basic realm="secure"')
        AuthChallenge(scheme='Basic', realm='secure', params={})

    Raises:
        AuthChallengeParseError: If the header is empty or malformed
    """
    match = _CHALLENGE_RE.match(header or "")
    if not match:
        raise AuthChallengeParseError(header or "")

    scheme, realm, rest = match.groups()
    params = {key: value for key, value in _PARAM_RE.findall(rest)}
    return AuthChallenge(scheme=scheme, realm=realm, params=params)


class AuthMode(str, Enum):
    """Authentication state of a registry client."""
    NO_AUTH = "no_auth"
    BASIC = "basic"
    BEARER_CACHED = "bearer_cached"
    BEARER_REFRESHING = "bearer_refreshing"


class AuthNegotiator:
    """
    Challenge/token authentication for one registry client.

    Tokens are cached per scope for the lifetime of this object and are
    never written to disk. The cache is a plain dict: calls must be
    strictly sequential, a shared instance needs external locking.
    """

    def __init__(self, client: httpx.Client, credentials: Optional[Credentials] = None):
        """
        Args:
            client: HTTP client used for token requests
            credentials: (username, password) for Basic auth and token fetches
        """
        self._client = client
        self._credentials = credentials
        self.tokens: Dict[str, str] = {}
        self.mode = AuthMode.BASIC if credentials else AuthMode.NO_AUTH

    def execute(self, send: SendFn) -> httpx.Response:
        """
        Run one logical request through the authentication state machine.

        Args:
            send: Issues the request with the given extra headers and
                returns the (fully read) response

        Returns:
            The first non-401 response, or the response of the final
            retry after a token refresh whatever its status

        Raises:
            AuthChallengeParseError: If a 401 carries a malformed challenge
            AuthTokenError: If a new token could not be obtained
        """
        response = send(self._headers())
        if response.status_code != 401:
            return response

        challenge = parse_www_authenticate(response.headers.get("WWW-Authenticate"))
        response.close()

        scope = challenge.scope
        if scope is not None and scope in self.tokens:
            logger.debug(f"Retrying with cached token for scope {scope}")
            response = send(self._headers(self.tokens[scope]))
            if response.status_code != 401:
                return response
            response.close()
            logger.debug(f"Cached token for scope {scope} rejected")

        token = self._refresh(challenge)
        return send(self._headers(token))

    def _refresh(self, challenge: AuthChallenge) -> str:
        """Fetch a new token for the challenge and cache it under its scope."""
        previous = self.mode
        self.mode = AuthMode.BEARER_REFRESHING
        try:
            token = self._fetch_token(challenge)
        except AuthTokenError:
            self.mode = previous
            raise

        self.tokens[challenge.scope] = token
        self.mode = AuthMode.BEARER_CACHED
        logger.debug(f"Cached new token for scope {challenge.scope}")
        return token

    def _fetch_token(self, challenge: AuthChallenge) -> str:
        if challenge.scope is None:
            raise AuthTokenError(f"No scope in challenge from {challenge.realm}")

        logger.debug(f"Requesting token from {challenge.realm}")
        try:
            response = self._client.get(
                challenge.realm,
                params=challenge.params,
                auth=self._credentials,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise AuthTokenError(f"Token request to {challenge.realm} failed: {e}") from e

        if response.status_code != 200:
            raise AuthTokenError(
                f"Token request to {challenge.realm} returned status {response.status_code}"
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise AuthTokenError(f"Error decoding token response: {e}") from e

        if not isinstance(payload, dict) or not isinstance(payload.get("token"), str):
            raise AuthTokenError(f"Token response from {challenge.realm} has no token field")
        return payload["token"]

    def _headers(self, token: Optional[str] = None) -> Dict[str, str]:
        if token is not None:
            return {"Authorization": f"Bearer {token}"}
        if self.mode == AuthMode.BASIC and self._credentials:
            username, password = self._credentials
            encoded = base64.b64encode(f"{username}:{password}".encode()).decode()
            return {"Authorization": f"Basic {encoded}"}
        return {}


class DockerAuth:
    """Handle Docker Registry credentials from config files."""

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = config_path or Path.home() / ".docker" / "config.json"

    def get_credentials(self, registry: str) -> Optional[Credentials]:
        """
        Get credentials for registry from Docker config.

        Returns: (username, password) or None if not found
        """
        config = self._load_config()
        if not config:
            return None

        auths = config.get("auths", {})
        host = registry.replace("https://", "").replace("http://", "")
        for key in (registry, f"https://{host}", host):
            if key in auths:
                return _decode_auth_entry(auths[key])
        return None

    def _load_config(self) -> Optional[dict]:
        if not self.config_path.exists():
            return None
        try:
            with open(self.config_path, "r") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.debug(f"Failed to read Docker config {self.config_path}: {e}")
            return None


def _decode_auth_entry(entry: dict) -> Optional[Credentials]:
    if "auth" in entry:
        try:
            decoded = base64.b64decode(entry["auth"]).decode()
        except (ValueError, UnicodeDecodeError):
            decoded = ""
        if ":" in decoded:
            username, password = decoded.split(":", 1)
            return username, password

    if "username" in entry and "password" in entry:
        return entry["username"], entry["password"]
    return None
