"""
IDE dependency resolution for ideakit.

Maps platform requests to repository coordinates, downloads and caches the
extracted distributions, and exposes them to a build through Ivy
descriptors.
"""

from .coordinates import (
    PlatformType,
    ResolvedCoordinates,
    resolve_coordinates,
    supported_platform_types,
)
from .descriptor import (
    DependencyDeclaration,
    RepositoryRegistration,
    build_registration,
    get_or_create_descriptor,
)
from .extraction import ArchiveCache, select_cache_directory
from .extras import ExtraDependencyResolver
from .manager import IdeaDependencyManager
from .models import (
    DependencyLayout,
    ExtraDependency,
    PlatformRequest,
    ResolvedDependency,
)
from .plugins import BuiltinPlugin, BuiltinPluginsRegistry
from .repository import MavenCoordinates, MavenDownloader

__all__ = [
    "PlatformType",
    "ResolvedCoordinates",
    "resolve_coordinates",
    "supported_platform_types",
    "DependencyDeclaration",
    "RepositoryRegistration",
    "build_registration",
    "get_or_create_descriptor",
    "ArchiveCache",
    "select_cache_directory",
    "ExtraDependencyResolver",
    "IdeaDependencyManager",
    "DependencyLayout",
    "ExtraDependency",
    "PlatformRequest",
    "ResolvedDependency",
    "BuiltinPlugin",
    "BuiltinPluginsRegistry",
    "MavenCoordinates",
    "MavenDownloader",
]
