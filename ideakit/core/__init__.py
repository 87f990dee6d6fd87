"""
Core functionality for ideakit.

This package contains the foundational modules that other components depend on.
"""

from .directory import (
    get_global_cache_dir,
    get_downloads_dir,
)

from .locking import (
    LockManager,
    LockTimeout,
)

from .platform import (
    detect_host_os,
    is_windows,
    clear_platform_cache,
)

from .interfaces import (
    ArtifactDownloader,
    DependencyHost,
)

from .diagnostics import (
    ContextLogger,
    get_context_logger,
)

from .exceptions import (
    IdeaKitError,
    ConfigurationError,
    UnsupportedPlatformTypeError,
    InvalidLocalPathError,
    ExtraDependencyConflictError,
    ConfigError,
    ResolutionError,
    AmbiguousResolutionError,
    DownloadError,
    ArtifactNotFoundError,
    FilesystemError,
    ArchiveExtractionError,
    InsecureArchiveError,
)

__all__ = [
    "get_global_cache_dir",
    "get_downloads_dir",
    "LockManager",
    "LockTimeout",
    "detect_host_os",
    "is_windows",
    "clear_platform_cache",
    "ArtifactDownloader",
    "DependencyHost",
    "ContextLogger",
    "get_context_logger",
    "IdeaKitError",
    "ConfigurationError",
    "UnsupportedPlatformTypeError",
    "InvalidLocalPathError",
    "ExtraDependencyConflictError",
    "ConfigError",
    "ResolutionError",
    "AmbiguousResolutionError",
    "DownloadError",
    "ArtifactNotFoundError",
    "FilesystemError",
    "ArchiveExtractionError",
    "InsecureArchiveError",
]
