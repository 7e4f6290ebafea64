"""
Image reference parsing.

Splits a reference such as ``quay.io/acme/widget:v2@sha256:...`` into the
pieces the registry client needs. Parsing never fails: missing parts are
filled with defaults.
"""
from __future__ import annotations

from dataclasses import dataclass

__all__ = ["DEFAULT_REGISTRY", "INDEX_TAG", "ImageReference", "parse_reference", "index_image_name"]

DEFAULT_REGISTRY = "registry-1.docker.io"

# Tag under which each repository's metadata index is stored
INDEX_TAG = "_manifesto"


@dataclass(frozen=True)
class ImageReference:
    """
    Parsed components of an image reference.

    Attributes:
        registry: Registry host (DEFAULT_REGISTRY when none is given)
        repo_path: Repository path, prefixed with the host unless it is the default
        repo_path_no_host: Repository path without any host
        tag: Tag, "latest" when absent
        digest: Content digest after '@', empty when absent
    """
    registry: str
    repo_path: str
    repo_path_no_host: str
    tag: str = "latest"
    digest: str = ""

    @property
    def image_name(self) -> str:
        """Tagged name used when talking to the image collaborator."""
        return f"{self.repo_path}:{self.tag}"


def parse_reference(name: str) -> ImageReference:
    """
    Parse an image reference.

    reference := name [ ":" tag ] [ "@" digest ]
    name      := [ hostname "/" ] component [ "/" component ]*

    More than two '/'-separated components means the first one is the
    registry host. The host may contain ':' (a port), so the tag is only
    looked for in what remains after the host has been split off.

    Examples:
        >>> parse_reference("quay.io/acme/widget:v2")
        ImageReference(registry='quay.io', repo_path='quay.io/acme/widget',
                       repo_path_no_host='acme/widget', tag='v2', digest='')

        >>> parse_reference("acme/widget")
        ImageReference(registry='registry-1.docker.io', repo_path='acme/widget',
                       repo_path_no_host='acme/widget', tag='latest', digest='')
    """
    digest = ""
    parts = name.split("@")
    if len(parts) > 1:
        name, digest = parts[0], parts[1]

    registry = DEFAULT_REGISTRY
    host_prefix = ""
    components = name.split("/")
    if len(components) > 2:
        registry = components[0]
        host_prefix = registry + "/"
        name = "/".join(components[1:])

    tag = "latest"
    parts = name.split(":")
    if len(parts) > 1:
        tag = parts[1]
    repo_path_no_host = parts[0]

    return ImageReference(
        registry=registry,
        repo_path=host_prefix + repo_path_no_host,
        repo_path_no_host=repo_path_no_host,
        tag=tag,
        digest=digest,
    )


def index_image_name(repo_path: str) -> str:
    """Image name holding the metadata index for a repository."""
    return f"{repo_path}:{INDEX_TAG}"
