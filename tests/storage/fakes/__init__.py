# Fake implementations for testing

from .fake_docker import FakeDockerCLI
from .fake_registry import FakeRegistry

__all__ = ["FakeDockerCLI", "FakeRegistry"]
