"""
Storage interfaces for manifesto.

These protocols define the boundary between the CLI, the metadata
backends, and the external image tooling, enabling clean dependency
injection and testing with fakes.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Protocol, Tuple, runtime_checkable

__all__ = ["ImageResolver", "MetadataStorage", "PutResult", "TaggedDataStore"]


@dataclass(frozen=True)
class PutResult:
    """Outcome of storing one piece of metadata."""
    image_name: str
    digest: str
    replaced: bool


@runtime_checkable
class ImageResolver(Protocol):
    """Resolves a tagged image name to its current content digest."""

    def resolve_digest(self, image_name: str) -> str:
        """
        Args:
            image_name: Tagged image name (e.g., "quay.io/acme/widget:v2")

        Returns:
            Content digest (sha256:...)

        Raises:
            ImageResolveError: If the image cannot be found or inspected
        """
        ...


@runtime_checkable
class TaggedDataStore(Protocol):
    """Reads and writes a single data file packaged as an image."""

    def read_data(self, image_name: str) -> Optional[bytes]:
        """
        Args:
            image_name: Image name with tag or digest

        Returns:
            The stored bytes, or None if no such image exists
        """
        ...

    def write_data(self, image_name: str, data: bytes) -> str:
        """
        Store data as an image under image_name.

        Returns:
            Digest of the pushed image

        Raises:
            ImageResolveError: If building or pushing fails
        """
        ...


@runtime_checkable
class MetadataStorage(Protocol):
    """
    Capability interface implemented by every metadata backend.

    Each method also returns the resolved image name so the caller can
    report which image was used.
    """

    def get_metadata(self, image: str, metadata_type: str) -> Tuple[Optional[bytes], str]:
        """
        Returns:
            (metadata bytes or None when not found, resolved image name)
        """
        ...

    def list_metadata(self, image: str) -> Tuple[List[str], str]:
        """
        Returns:
            (metadata types stored for the image, resolved image name)
        """
        ...

    def put_metadata(self, image: str, metadata_type: str, data_file: str) -> PutResult:
        """
        Store the contents of data_file as metadata for image.

        Returns:
            Resolved image name, stored blob digest, and whether an
            existing entry of that type was replaced
        """
        ...
