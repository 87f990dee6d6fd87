"""YAML configuration parser for ideakit.

This module provides parsing and validation for ideakit.yaml configuration files.

Example ideakit.yaml:

    repository_url: https://www.jetbrains.com/intellij-repository
    cache_path: /var/cache/ideakit/ides
    context: my-plugin
    max_workers: 4
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ideakit.core.directory import get_downloads_dir
from ideakit.core.exceptions import ConfigError

DEFAULT_REPOSITORY_URL = "https://www.jetbrains.com/intellij-repository"
DEFAULT_CONFIG_FILE = "ideakit.yaml"

_PATH_KEYS = ("cache_path", "downloads_dir", "build_dir")
_KNOWN_KEYS = {
    "repository_url",
    "cache_path",
    "downloads_dir",
    "build_dir",
    "context",
    "lock_timeout",
    "max_workers",
}


@dataclass
class ResolverConfig:
    """Settings shared by every resolution performed by one manager."""

    repository_url: str = DEFAULT_REPOSITORY_URL
    cache_path: Optional[Path] = None  # shared extraction cache; None = beside archive
    downloads_dir: Path = field(default_factory=get_downloads_dir)
    build_dir: Optional[Path] = None  # Rider on Windows extracts here
    context: Optional[str] = None  # tag prefixed to log messages
    lock_timeout: int = 300
    max_workers: int = 4

    def repository_for(self, release_channel: str) -> str:
        """Repository URL for a release channel ('releases' or 'snapshots')."""
        return f"{self.repository_url.rstrip('/')}/{release_channel}"


def parse_config(config_path: Path) -> ResolverConfig:
    """
    Parse ideakit.yaml configuration file.

    Args:
        config_path: Path to ideakit.yaml

    Returns:
        Parsed and validated configuration

    Raises:
        ConfigError: If configuration is invalid
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax: {e}")

    if data is None:
        return ResolverConfig()

    return config_from_dict(data, base_dir=config_path.parent)


def config_from_dict(data: Dict[str, Any], base_dir: Optional[Path] = None) -> ResolverConfig:
    """
    Build a validated ResolverConfig from a mapping.

    Relative paths are resolved against ``base_dir`` when given.
    """
    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a mapping")

    unknown = sorted(set(data) - _KNOWN_KEYS)
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

    kwargs: Dict[str, Any] = {}

    if "repository_url" in data:
        url = data["repository_url"]
        if not isinstance(url, str) or not url.startswith(("http://", "https://", "file:")):
            raise ConfigError(f"Invalid repository_url: {url!r}")
        kwargs["repository_url"] = url

    for key in _PATH_KEYS:
        value = data.get(key)
        if value is None:
            continue
        if not isinstance(value, str) or not value:
            raise ConfigError(f"'{key}' must be a non-empty path string")
        path = Path(value).expanduser()
        if base_dir is not None and not path.is_absolute():
            path = base_dir / path
        kwargs[key] = path

    if data.get("context") is not None:
        kwargs["context"] = str(data["context"])

    for key in ("lock_timeout", "max_workers"):
        if key in data:
            value = data[key]
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ConfigError(f"'{key}' must be a positive integer, got {value!r}")
            kwargs[key] = value

    return ResolverConfig(**kwargs)


def find_config(project_root: Path) -> Optional[Path]:
    """Return ``<project_root>/ideakit.yaml`` if it exists."""
    candidate = Path(project_root) / DEFAULT_CONFIG_FILE
    return candidate if candidate.exists() else None
