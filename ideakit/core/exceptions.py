"""
Centralized exception hierarchy for ideakit.

Fatal configuration problems, resolution failures and filesystem failures
each have their own branch so callers can decide which ones are terminal.
"""

from typing import Iterable, List, Sequence


# ============================================================================
# Base Exceptions
# ============================================================================


class IdeaKitError(Exception):
    """Base exception for all ideakit errors."""

    pass


# ============================================================================
# Configuration Exceptions
# ============================================================================


class ConfigurationError(IdeaKitError):
    """Invalid request or configuration. Always aborts resolution."""

    pass


class UnsupportedPlatformTypeError(ConfigurationError):
    """Raised when a platform type is not one of the supported values."""

    def __init__(self, platform_type: str, supported: Sequence[str]):
        self.platform_type = platform_type
        self.supported = list(supported)
        super().__init__(
            f"Specified type '{platform_type}' is unknown. "
            f"Supported values: {', '.join(self.supported)}"
        )


class InvalidLocalPathError(ConfigurationError):
    """Raised when a local IDE path is missing or not a directory."""

    pass


class ExtraDependencyConflictError(ConfigurationError):
    """Raised when extra dependency names collide with main dependency names."""

    def __init__(self, names: Iterable[str]):
        self.names: List[str] = list(names)
        super().__init__(
            f"The items {self.names} cannot be used as extra dependencies"
        )


class ConfigError(ConfigurationError):
    """Configuration file parsing or validation error."""

    pass


# ============================================================================
# Resolution Exceptions
# ============================================================================


class ResolutionError(IdeaKitError):
    """Base exception when an artifact cannot be resolved."""

    pass


class AmbiguousResolutionError(ResolutionError):
    """Raised when coordinates resolve to zero or several files instead of one."""

    def __init__(self, coordinates, files):
        self.coordinates = coordinates
        self.files = list(files)
        super().__init__(
            f"Expected exactly one file for {coordinates}, found {len(self.files)}: "
            f"{[str(f) for f in self.files]}"
        )


class DownloadError(ResolutionError):
    """Exception raised when a download fails."""

    pass


class ArtifactNotFoundError(DownloadError):
    """The repository does not contain the requested file."""

    pass


# ============================================================================
# Filesystem Exceptions
# ============================================================================


class FilesystemError(IdeaKitError):
    """Base exception for filesystem operations."""

    pass


class ArchiveExtractionError(FilesystemError):
    """Failed to extract an archive."""

    pass


class InsecureArchiveError(ArchiveExtractionError):
    """Archive contains insecure paths (directory traversal attempt)."""

    pass
