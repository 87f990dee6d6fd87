"""
Host platform detection for ideakit.

Only the operating system matters here: it decides whether archive
permissions must be restored after extraction and where Rider caches go.

Usage:
    from ideakit.core.platform import detect_host_os, is_windows

    if not is_windows():
        restore_permissions(tree)
"""

import functools
import platform


@functools.lru_cache(maxsize=1)
def detect_host_os() -> str:
    """
    Detect the host operating system.

    This function is cached - it only runs detection once per process.

    Returns:
        Normalized OS name: 'windows', 'linux', 'macos', or the raw lowercase
        ``platform.system()`` value for anything else
    """
    system = platform.system().lower()

    if system == "windows":
        return "windows"
    elif system == "darwin":
        return "macos"
    elif system == "linux":
        return "linux"
    return system


def is_windows() -> bool:
    """Return True when running on Windows."""
    return detect_host_os() == "windows"


def clear_platform_cache():
    """
    Clear the platform detection cache.

    Useful for testing or when platform information changes.
    """
    detect_host_os.cache_clear()
