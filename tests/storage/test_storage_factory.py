"""
Tests for metadata backend selection.
"""
from __future__ import annotations

import pytest

from manifesto.settings import Settings
from manifesto.storage.docker_cli import DockerCLI
from manifesto.storage.registry_storage import RegistryMetadataStorage
from manifesto.storage.storage_factory import make_storage


class TestMakeStorage:
    """Test make_storage function."""

    def test_registry_backend(self, docker):
        storage = make_storage(Settings(storage="registry"), docker=docker)

        assert isinstance(storage, RegistryMetadataStorage)
        assert storage.resolver is docker
        assert storage.data_store is docker

    def test_registry_backend_defaults_to_docker_command(self):
        storage = make_storage(Settings(verbose=True))

        assert isinstance(storage.resolver, DockerCLI)
        assert storage.resolver.verbose is True

    def test_grafeas_not_provided(self):
        with pytest.raises(NotImplementedError, match="grafeas"):
            make_storage(Settings(storage="grafeas"))

    def test_unknown_backend(self):
        settings = Settings()
        object.__setattr__(settings, "storage", "etcd")

        with pytest.raises(ValueError, match="Unknown storage type: etcd"):
            make_storage(settings)

    @pytest.mark.parametrize("name", ["Registry", "GRAFEAS", ""])
    def test_backend_names_are_exact(self, name):
        """Test that only the validated names select a backend."""
        with pytest.raises(ValueError, match="Unknown storage type"):
            Settings(storage=name)

        settings = Settings()
        object.__setattr__(settings, "storage", name)
        with pytest.raises(ValueError, match="Unknown storage type"):
            make_storage(settings)
