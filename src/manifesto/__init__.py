"""Store and retrieve metadata alongside container images in their registry."""

__version__ = "0.1.0"
