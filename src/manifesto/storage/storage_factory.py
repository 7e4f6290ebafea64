"""
Metadata backend factory.

Picks the MetadataStorage implementation from configuration once, at
startup, so call sites only ever see the capability interface.
"""
from __future__ import annotations

from typing import Optional

import httpx

from ..settings import Settings
from .base import MetadataStorage
from .docker_cli import DockerCLI
from .registry_storage import RegistryMetadataStorage


def make_storage(settings: Settings, docker: Optional[DockerCLI] = None,
                 transport: Optional[httpx.BaseTransport] = None) -> MetadataStorage:
    """
    Create the metadata backend named by ``settings.storage``.

    Args:
        settings: Configuration naming the backend
        docker: Image collaborator (defaults to the docker command)
        transport: Optional httpx transport for registry requests

    Returns:
        MetadataStorage implementation

    Raises:
        NotImplementedError: For backends this package does not provide
        ValueError: For unknown backend names
    """
    storage = settings.storage

    if storage == "registry":
        docker = docker or DockerCLI(verbose=settings.verbose)
        return RegistryMetadataStorage(settings, resolver=docker, data_store=docker, transport=transport)
    elif storage == "grafeas":
        raise NotImplementedError(
            "The grafeas backend is not provided by this package. Use 'registry' for now."
        )
    else:
        raise ValueError(f"Unknown storage type: {storage}. Supported values: registry, grafeas")


__all__ = ["make_storage"]
