"""
Directory structure management for ideakit.

Global Cache (~/.ideakit/ or %USERPROFILE%\\.ideakit\\):
    - downloads/  : Files fetched from Maven repositories, mirrored by coordinates
    - lock/       : Lock files for cross-process coordination
"""

import os
from pathlib import Path

from ideakit.core.exceptions import ConfigurationError
from ideakit.core.platform import is_windows


def get_global_cache_dir() -> Path:
    """
    Get the platform-specific global cache directory path.

    Returns:
        Path: The global cache directory path.
            - Windows: %USERPROFILE%\\.ideakit
            - Linux/macOS: ~/.ideakit/

    Raises:
        ConfigurationError: If USERPROFILE is not set on Windows
    """
    if is_windows():
        user_profile = os.environ.get("USERPROFILE")
        if not user_profile:
            raise ConfigurationError(
                "USERPROFILE environment variable is not set. "
                "Cannot determine global cache directory."
            )
        return Path(user_profile) / ".ideakit"
    return Path.home() / ".ideakit"


def get_downloads_dir() -> Path:
    """Default directory for downloaded repository artifacts."""
    return get_global_cache_dir() / "downloads"
