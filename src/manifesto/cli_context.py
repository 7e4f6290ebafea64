"""
CLI Context for managing application dependencies.

Provides a clean way to manage CLI-level dependencies like settings and the
metadata backend, avoiding global state and enabling proper dependency
injection.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .settings import Settings, create_settings
from .storage.base import MetadataStorage
from .storage.storage_factory import make_storage


@dataclass
class CLIContext:
    """
    Shared context for CLI commands.

    Built once per invocation from config file, environment and global
    flags; the backend is created on first use.
    """
    settings: Settings
    _storage: Optional[MetadataStorage] = None

    @classmethod
    def from_options(cls, **overrides: Any) -> CLIContext:
        """
        Create CLI context from configuration plus flag overrides.

        Args:
            **overrides: Settings fields given on the command line
        """
        return cls(settings=create_settings(**overrides))

    @property
    def storage(self) -> MetadataStorage:
        """Get or create the metadata backend (lazy initialization)."""
        if self._storage is None:
            self._storage = make_storage(self.settings)
        return self._storage
