"""
Metadata index document.

The index maps an image's content digest to the metadata entries stored
for it. One index document exists per repository and is always replaced
wholesale: it is fetched, changed in memory, and written back.

Wire shape::

    {"images": [{"image_digest": "sha256:...",
                 "manifesto": [{"type": "...", "digest": "sha256:..."}]}]}
"""
from __future__ import annotations

import json
import logging
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .storage.oci_errors import IndexDocumentError

logger = logging.getLogger(__name__)

__all__ = ["MetadataEntry", "ImageMetadata", "MetadataIndex"]


class MetadataEntry(BaseModel):
    """One piece of metadata: its type name and the blob holding it."""
    type: str = Field(..., description="Metadata type (e.g. 'contacts', 'cve')")
    digest: str = Field(..., description="Digest of the blob holding the metadata")


class ImageMetadata(BaseModel):
    """All metadata entries recorded for one image digest."""
    model_config = ConfigDict(populate_by_name=True)

    image_digest: str = Field(..., description="Content digest of the image")
    entries: List[MetadataEntry] = Field(default_factory=list, alias="manifesto")


class MetadataIndex(BaseModel):
    """
    Per-repository metadata index.

    Invariant: at most one entry per (image_digest, type). ``put`` keeps
    it by replacing an existing entry rather than adding a second one.

    Documents written by older releases keyed records by tag, either under
    a ``tags`` field or as ``images`` records without an ``image_digest``.
    Those are not migrated: they read as an empty index.
    """
    images: List[ImageMetadata] = Field(default_factory=list)

    @classmethod
    def from_bytes(cls, raw: bytes) -> MetadataIndex:
        """
        Parse a stored index document.

        Raises:
            IndexDocumentError: If raw is not JSON
        """
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise IndexDocumentError(f"Metadata index is not valid JSON: {e}") from e

        if not isinstance(data, dict) or data.get("images") is None:
            return cls()

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            logger.debug(f"Ignoring metadata index in an older format: {e}")
            return cls()

    def to_bytes(self) -> bytes:
        return self.model_dump_json(by_alias=True).encode()

    def find_image(self, image_digest: str) -> Optional[ImageMetadata]:
        for image in self.images:
            if image.image_digest == image_digest:
                return image
        return None

    def get(self, image_digest: str, metadata_type: str) -> Optional[MetadataEntry]:
        """First entry matching both the image digest and the type, or None."""
        for image in self.images:
            if image.image_digest != image_digest:
                continue
            for entry in image.entries:
                if entry.type == metadata_type:
                    return entry
        return None

    def list_types(self, image_digest: str) -> List[str]:
        """All metadata types stored for an image digest."""
        return [
            entry.type
            for image in self.images
            if image.image_digest == image_digest
            for entry in image.entries
        ]

    def put(self, image_digest: str, metadata_type: str, digest: str) -> bool:
        """
        Record digest as the metadata of the given type for an image.

        Returns:
            True if an existing entry was replaced, False if one was added
        """
        image = self.find_image(image_digest)
        if image is None:
            self.images.append(ImageMetadata(
                image_digest=image_digest,
                entries=[MetadataEntry(type=metadata_type, digest=digest)],
            ))
            return False

        for entry in image.entries:
            if entry.type == metadata_type:
                entry.digest = digest
                return True

        image.entries.append(MetadataEntry(type=metadata_type, digest=digest))
        return False
