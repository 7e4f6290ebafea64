"""
Content-addressed blob transfer.

Uploads are monolithic: the whole payload is held in memory, digested,
and sent in a single PUT after the upload session has been opened.
"""
from __future__ import annotations

import hashlib
import logging

from .oci_errors import UnexpectedStatusError
from .registry_http import RegistryHTTP

logger = logging.getLogger(__name__)

__all__ = ["BlobStore", "compute_digest"]


def compute_digest(data: bytes) -> str:
    """Return the ``sha256:<64 hex>`` digest of data."""
    return f"sha256:{hashlib.sha256(data).hexdigest()}"


class BlobStore:
    """Upload and download blobs through a RegistryHTTP transport."""

    def __init__(self, http: RegistryHTTP):
        self.http = http

    def upload(self, repo: str, data: bytes) -> str:
        """
        Push a blob to the registry.

        Args:
            repo: Repository path without host (e.g., "acme/widget")
            data: Full blob payload

        Returns:
            Digest of the uploaded blob (sha256:...)

        Raises:
            UnexpectedStatusError: If the session is not accepted (202) or
                the upload is not created (201)
            TransportError: On network failure
        """
        url = f"/v2/{repo}/blobs/uploads/"
        response = self.http.call("POST", url)
        response.close()
        if response.status_code != 202:
            raise UnexpectedStatusError("initiate upload", response.status_code, url)

        location = response.headers.get("Location", "")
        if not location:
            raise UnexpectedStatusError("initiate upload (no Location header)", response.status_code, url)

        digest = compute_digest(data)
        separator = "&" if "?" in location else "?"
        location = f"{location}{separator}digest={digest}"

        response = self.http.call("PUT", location, data, "application/octet-stream")
        response.close()
        if response.status_code != 201:
            raise UnexpectedStatusError("complete upload", response.status_code, location)

        logger.debug(f"Uploaded {len(data)} bytes to {repo} as {digest}")
        return digest

    def download(self, repo: str, digest: str) -> bytes:
        """
        Fetch a blob by digest.

        Raises:
            UnexpectedStatusError: If the registry does not answer 200
            TransportError: On network failure
        """
        url = f"/v2/{repo}/blobs/{digest}"
        response = self.http.get(url)
        response.close()
        if response.status_code != 200:
            raise UnexpectedStatusError("fetch blob", response.status_code, url)
        return response.content
