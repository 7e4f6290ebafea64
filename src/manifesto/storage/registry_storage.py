"""
Registry metadata backend.

Stores each piece of metadata as a blob in the image's own repository and
records it in the repository's metadata index, which lives under the
well-known ``_manifesto`` tag.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Tuple

import httpx

from ..models import MetadataIndex
from ..settings import Settings
from .auth import Credentials, DockerAuth
from .base import ImageResolver, PutResult, TaggedDataStore
from .blobs import BlobStore
from .names import ImageReference, index_image_name, parse_reference
from .oci_errors import ImageResolveError, UnexpectedStatusError
from .registry_http import RegistryHTTP

logger = logging.getLogger(__name__)

__all__ = ["RegistryMetadataStorage"]


class RegistryMetadataStorage:
    """
    MetadataStorage implementation backed by the image's registry.

    A fresh RegistryHTTP (and so a fresh token cache) is created per call.
    There is no rollback: if the metadata blob is uploaded but the index
    write fails, the blob stays in the registry unreferenced.
    """

    def __init__(self, settings: Settings, resolver: ImageResolver, data_store: TaggedDataStore, *,
                 docker_auth: Optional[DockerAuth] = None,
                 transport: Optional[httpx.BaseTransport] = None):
        """
        Args:
            settings: Credentials, timeout and insecure flag
            resolver: Resolves tagged image names to content digests
            data_store: Reads and writes the per-repository index image
            docker_auth: Credential fallback when settings carry no username
            transport: Optional httpx transport for the registry client
        """
        self.settings = settings
        self.resolver = resolver
        self.data_store = data_store
        self.docker_auth = docker_auth or DockerAuth(settings.docker_config)
        self._transport = transport

    def get_metadata(self, image: str, metadata_type: str) -> Tuple[Optional[bytes], str]:
        ref = parse_reference(image)
        image_digest = self._image_digest(ref)

        index = self._load_index(ref)
        if index is None:
            return None, ref.image_name

        entry = index.get(image_digest, metadata_type)
        if entry is None:
            return None, ref.image_name
        logger.debug(f"'{metadata_type}' metadata identified at {entry.digest}")

        with self._client(ref) as http:
            try:
                return BlobStore(http).download(ref.repo_path_no_host, entry.digest), ref.image_name
            except UnexpectedStatusError as e:
                # Older releases stored each piece of metadata as its own image
                logger.debug(f"Metadata may be stored in an image rather than a blob: {e}")
                try:
                    contents = self.data_store.read_data(f"{ref.repo_path}@{entry.digest}")
                except ImageResolveError as fallback_error:
                    logger.debug(f"Metadata image unavailable: {fallback_error}")
                    contents = None
                if contents is None:
                    raise
                return contents, ref.image_name

    def list_metadata(self, image: str) -> Tuple[List[str], str]:
        ref = parse_reference(image)
        image_digest = self._image_digest(ref)

        index = self._load_index(ref)
        if index is None:
            return [], ref.image_name
        return index.list_types(image_digest), ref.image_name

    def put_metadata(self, image: str, metadata_type: str, data_file: str) -> PutResult:
        data = Path(data_file).read_bytes()

        ref = parse_reference(image)
        image_digest = self._image_digest(ref)

        # The index must be readable before any blob is uploaded
        index = self._load_index(ref)
        if index is None:
            logger.info(f"Creating new metadata index for {ref.repo_path}")
            index = MetadataIndex()

        with self._client(ref) as http:
            digest = BlobStore(http).upload(ref.repo_path_no_host, data)
        logger.info(f"Metadata '{metadata_type}' for image '{ref.image_name}' stored at {digest}")

        replaced = index.put(image_digest, metadata_type, digest)
        self.data_store.write_data(index_image_name(ref.repo_path), index.to_bytes())
        return PutResult(image_name=ref.image_name, digest=digest, replaced=replaced)

    def _image_digest(self, ref: ImageReference) -> str:
        if ref.digest:
            return ref.digest
        digest = self.resolver.resolve_digest(ref.image_name)
        logger.debug(f"Image {ref.image_name} has digest {digest}")
        return digest

    def _load_index(self, ref: ImageReference) -> Optional[MetadataIndex]:
        raw = self.data_store.read_data(index_image_name(ref.repo_path))
        if raw is None:
            logger.debug(f"No metadata index stored for {ref.repo_path}")
            return None
        logger.debug("Repo metadata index retrieved")
        return MetadataIndex.from_bytes(raw)

    def _credentials(self, registry: str) -> Optional[Credentials]:
        if self.settings.registry_user:
            return self.settings.registry_user, self.settings.registry_pass or ""
        return self.docker_auth.get_credentials(registry)

    def _client(self, ref: ImageReference) -> RegistryHTTP:
        return RegistryHTTP(
            ref.registry,
            self._credentials(ref.registry),
            timeout_s=self.settings.http_timeout_s,
            insecure=self.settings.registry_insecure,
            transport=self._transport,
        )
