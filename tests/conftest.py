"""Root pytest configuration for manifesto tests."""
import pytest

from manifesto.settings import Settings
from manifesto.storage.registry_storage import RegistryMetadataStorage
from .storage.fakes.fake_docker import FakeDockerCLI
from .storage.fakes.fake_registry import FakeRegistry

# Import fixtures to make them available
from .fixtures.oci_registry import oci_registry

IMAGE_DIGEST = "sha256:" + "ab" * 32


# Configure pytest markers
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (requires Docker)"
    )


@pytest.fixture(autouse=True)
def test_env(monkeypatch, tmp_path):
    """Isolate tests from the caller's config files and environment."""
    for var in (
        "REGISTRY_USERNAME", "REGISTRY_PASSWORD", "MANIFESTO_STORAGE", "MANIFESTO_VERBOSE",
        "MANIFESTO_HTTP_TIMEOUT", "MANIFESTO_REGISTRY_INSECURE", "MANIFESTO_DOCKER_CONFIG",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.chdir(tmp_path)


# Standardized test fixtures
@pytest.fixture
def settings(tmp_path):
    """Standard test settings (no credentials, no Docker config)."""
    return Settings(docker_config=tmp_path / "no-such-config.json")


@pytest.fixture
def fake_registry():
    """Token-guarded fake registry."""
    return FakeRegistry(require_token=True)


@pytest.fixture
def docker():
    """Fake image collaborator knowing one tagged image."""
    return FakeDockerCLI(digests={"quay.io/acme/widget:v2": IMAGE_DIGEST})


@pytest.fixture
def storage(settings, docker, fake_registry):
    """Registry backend wired to the fakes."""
    return RegistryMetadataStorage(
        settings,
        resolver=docker,
        data_store=docker,
        transport=fake_registry.transport,
    )
