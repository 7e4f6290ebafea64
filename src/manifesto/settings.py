"""
Settings and configuration for manifesto.

Centralizes configuration values and provides validation with fail-fast
behavior. Values come from, in increasing precedence: defaults, an
optional ``.manifesto.yaml`` config file, environment variables, and
explicit overrides (CLI flags).
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

__all__ = ["Settings", "create_settings", "find_config_file", "SUPPORTED_STORAGE"]

SUPPORTED_STORAGE = ("registry", "grafeas")

CONFIG_FILE_NAMES = (".manifesto.yaml", ".manifesto.yml")

# Environment variable -> settings field
ENV_VARS = {
    "REGISTRY_USERNAME": "registry_user",
    "REGISTRY_PASSWORD": "registry_pass",
    "MANIFESTO_STORAGE": "storage",
    "MANIFESTO_VERBOSE": "verbose",
    "MANIFESTO_HTTP_TIMEOUT": "http_timeout_s",
    "MANIFESTO_REGISTRY_INSECURE": "registry_insecure",
    "MANIFESTO_DOCKER_CONFIG": "docker_config",
}

# Config file keys -> settings field
FILE_KEYS = {
    "username": "registry_user",
    "password": "registry_pass",
    "storage": "storage",
    "verbose": "verbose",
    "http_timeout": "http_timeout_s",
    "insecure": "registry_insecure",
    "docker_config": "docker_config",
}


@dataclass(frozen=True)
class Settings:
    """
    Configuration settings for manifesto.

    Attributes:
        registry_user: Username for registry authentication
        registry_pass: Password for registry authentication
        storage: Metadata backend ("registry" or "grafeas")
        verbose: Send debug output to stderr
        http_timeout_s: Timeout applied to every registry request
        registry_insecure: Use http:// for registries given without a scheme
        docker_config: Docker config.json used when no username is set
    """
    registry_user: Optional[str] = None
    registry_pass: Optional[str] = None
    storage: str = "registry"
    verbose: bool = False
    http_timeout_s: float = 10.0
    registry_insecure: bool = False
    docker_config: Optional[Path] = None

    def __post_init__(self):
        """Validate settings on construction."""
        if self.http_timeout_s <= 0:
            raise ValueError(f"http_timeout_s must be positive, got {self.http_timeout_s}")

        if self.storage not in SUPPORTED_STORAGE:
            raise ValueError(
                f"Unknown storage type: {self.storage}. Supported values: {', '.join(SUPPORTED_STORAGE)}"
            )

        if self.registry_pass and not self.registry_user:
            raise ValueError("registry password specified but username is missing")


def find_config_file(search_dirs: Optional[list] = None) -> Optional[Path]:
    """Return the first config file found in the current then home directory."""
    dirs = search_dirs if search_dirs is not None else [Path.cwd(), Path.home()]
    for directory in dirs:
        for name in CONFIG_FILE_NAMES:
            candidate = Path(directory) / name
            if candidate.is_file():
                return candidate
    return None


def create_settings(config_file: Optional[Path] = None, **overrides: Any) -> Settings:
    """
    Build settings from config file, environment, and overrides.

    Args:
        config_file: Explicit config file; searched for when None
        **overrides: Settings fields to force (None values are ignored)

    Returns:
        Settings object with validated configuration

    Raises:
        ValueError: If configuration is invalid

    Note:
        Creates a fresh Settings instance every time (no caching).
        This ensures test isolation and eliminates global state.
    """
    values: Dict[str, Any] = {}

    path = config_file or find_config_file()
    if path is not None:
        values.update(_load_config_file(path))

    for env_var, field_name in ENV_VARS.items():
        value = os.getenv(env_var)
        if value:
            values[field_name] = value

    values.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**_coerce(values))


def _load_config_file(path: Path) -> Dict[str, Any]:
    with open(path, "r") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")

    unknown = set(data) - set(FILE_KEYS)
    if unknown:
        raise ValueError(f"Unknown keys in config file {path}: {', '.join(sorted(unknown))}")
    return {FILE_KEYS[key]: value for key, value in data.items()}


def _coerce(values: Dict[str, Any]) -> Dict[str, Any]:
    """Convert string values from env/config into field types."""
    def str_to_bool(value: Any) -> bool:
        if isinstance(value, bool):
            return value
        return str(value).lower() in ("true", "1", "yes", "on")

    result = dict(values)
    for key in ("verbose", "registry_insecure"):
        if key in result:
            result[key] = str_to_bool(result[key])
    if "http_timeout_s" in result:
        try:
            result["http_timeout_s"] = float(result["http_timeout_s"])
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid http timeout: {result['http_timeout_s']!r}") from e
    if result.get("docker_config") is not None:
        result["docker_config"] = Path(result["docker_config"]).expanduser()
    for key in ("registry_user", "registry_pass", "storage"):
        if key in result and result[key] is not None:
            result[key] = str(result[key])
    return result
