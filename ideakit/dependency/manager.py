"""
IDE dependency resolution facade.

Ties the coordinate mapping, the downloader, the archive cache and the
descriptor synthesizer together:

    manager = IdeaDependencyManager(parse_config(Path("ideakit.yaml")))
    dependency = manager.resolve_remote(PlatformRequest("IC", "2022.3"))
    registration, declaration = manager.register(dependency)
"""

from pathlib import Path
from typing import Callable, Optional, Tuple, Union

from ideakit.config.parser import ResolverConfig
from ideakit.core.diagnostics import get_context_logger
from ideakit.core.exceptions import (
    AmbiguousResolutionError,
    IdeaKitError,
    InvalidLocalPathError,
    ResolutionError,
)
from ideakit.core.interfaces import ArtifactDownloader, DependencyHost
from ideakit.core.locking import LockManager, LockTimeout
from ideakit.dependency import descriptor
from ideakit.dependency.coordinates import (
    PlatformType,
    ResolvedCoordinates,
    is_snapshot,
    resolve_coordinates,
)
from ideakit.dependency.descriptor import DependencyDeclaration, RepositoryRegistration
from ideakit.dependency.extraction import ArchiveCache, select_cache_directory
from ideakit.dependency.extras import ExtraDependencyResolver, check_extra_names
from ideakit.dependency.ide import ide_directory, read_build_number
from ideakit.dependency.models import (
    DependencyLayout,
    PlatformRequest,
    ResolvedDependency,
)
from ideakit.dependency.plugins import BuiltinPluginsRegistry
from ideakit.dependency.repository import MavenDownloader

LOCAL_DEPENDENCY_NAME = "ideaLocal"
PLUGINS_DIRECTORY = "plugins"


class IdeaDependencyManager:
    """
    Resolves IDE distributions into build dependencies.

    Args:
        config: Resolver settings (repository, cache paths, lock timeout)
        downloader: Artifact downloader (default: MavenDownloader into
            ``config.downloads_dir``)
        build_number_reader: Reads the build number of an extracted IDE
        plugins_scanner: Builds the bundled plugins registry from a plugins dir
        lock_manager: Lock manager for the archive cache
    """

    def __init__(
        self,
        config: Optional[ResolverConfig] = None,
        downloader: Optional[ArtifactDownloader] = None,
        build_number_reader: Optional[Callable[[Path], str]] = None,
        plugins_scanner: Optional[Callable[[Path], BuiltinPluginsRegistry]] = None,
        lock_manager: Optional[LockManager] = None,
    ):
        self.config = config or ResolverConfig()
        self.downloader = downloader or MavenDownloader(
            self.config.downloads_dir, lock_timeout=self.config.lock_timeout
        )
        self.build_number_reader = build_number_reader or read_build_number
        self.plugins_scanner = plugins_scanner or BuiltinPluginsRegistry.from_directory
        self.archive_cache = ArchiveCache(
            lock_manager=lock_manager,
            lock_timeout=self.config.lock_timeout,
            context=self.config.context,
        )
        self.extras = ExtraDependencyResolver(self.downloader, self.archive_cache, self.config)
        self.log = get_context_logger(__name__, self.config.context)

    def resolve_remote(
        self, request: PlatformRequest, layout: Optional[DependencyLayout] = None
    ) -> ResolvedDependency:
        """
        Download, extract and describe a remote IDE distribution.

        Args:
            request: Platform type, version, sources and extras wanted
            layout: Override the jar layout (default: split-root for JPS,
                single-root otherwise)

        Returns:
            The resolved dependency

        Raises:
            UnsupportedPlatformTypeError: If the platform type is unknown
            ExtraDependencyConflictError: If an extra name is reserved
            AmbiguousResolutionError: If the distribution is not exactly one file
            DownloadError: If the distribution cannot be downloaded
            ResolutionError: If the extracted distribution has no build number
            ArchiveExtractionError: If the distribution cannot be extracted
        """
        coordinates = resolve_coordinates(request.type, request.version, request.want_sources)
        check_extra_names(request.extra_names)

        repository_url = self.config.repository_for(coordinates.release_channel)
        self.log.debug(f"Adding IDE repository: {repository_url}")
        self.log.debug("Adding IDE dependency")

        artifact = coordinates.artifact()
        files = self.downloader.download(artifact, repository_url)
        if len(files) != 1:
            raise AmbiguousResolutionError(artifact, files)
        archive = Path(files[0])
        self.log.debug(f"IDE zip: {archive}")

        cache_directory = select_cache_directory(
            archive,
            coordinates.platform_type,
            cache_path=self.config.cache_path,
            build_dir=self.config.build_dir,
        )
        classes = self.archive_cache.ensure_extracted(
            archive,
            cache_directory,
            coordinates.platform_type,
            check_version=is_snapshot(request.version),
        )
        self.log.info(f"IDE dependency cache directory: {classes}")

        try:
            build_number = self.build_number_reader(classes)
        except InvalidLocalPathError as e:
            raise ResolutionError(
                f"IDE distribution {archive.name} has no build number: {e}"
            ) from e
        sources = (
            self._resolve_sources(coordinates, repository_url)
            if coordinates.sources_available
            else None
        )
        extra_dependencies = self.extras.resolve(request.version, request.extra_names)

        if layout is None:
            layout = (
                DependencyLayout.SPLIT_ROOT
                if coordinates.platform_type == PlatformType.JPS
                else DependencyLayout.SINGLE_ROOT
            )
        if layout == DependencyLayout.SPLIT_ROOT:
            plugins_registry = BuiltinPluginsRegistry()
        else:
            plugins_registry = self.plugins_scanner(classes / PLUGINS_DIRECTORY)

        return ResolvedDependency(
            name=coordinates.artifact_name,
            version=request.version,
            build_number=build_number,
            classes=classes,
            sources=sources,
            with_kotlin=request.with_kotlin,
            layout=layout,
            plugins_registry=plugins_registry,
            extra_dependencies=extra_dependencies,
        )

    def _resolve_sources(
        self, coordinates: ResolvedCoordinates, repository_url: str
    ) -> Optional[Path]:
        self.log.info("Adding IDE sources repository")
        artifact = coordinates.sources_artifact()
        try:
            files = self.downloader.download(artifact, repository_url)
        except (IdeaKitError, LockTimeout, OSError) as e:
            self.log.warning(f"Cannot resolve IDE sources dependency: {e}")
            return None

        if len(files) != 1:
            self.log.warning(f"Cannot attach IDE sources. Found files: {files}")
            return None

        sources = Path(files[0])
        self.log.debug(f"IDE sources jar: {sources}")
        return sources

    def resolve_local(
        self,
        local_path: Union[str, Path],
        local_sources_path: Optional[Union[str, Path]] = None,
        with_kotlin: bool = True,
    ) -> ResolvedDependency:
        """
        Describe an IDE installed on disk.

        Raises:
            InvalidLocalPathError: If the path is missing, not a directory, or
                has no build.txt
        """
        self.log.debug("Adding local IDE dependency")
        directory = ide_directory(local_path)
        if not directory.is_dir():
            raise InvalidLocalPathError(
                f"Specified localPath '{local_path}' doesn't exist or is not a directory"
            )

        build_number = self.build_number_reader(directory)
        sources = Path(local_sources_path) if local_sources_path else None

        return ResolvedDependency(
            name=LOCAL_DEPENDENCY_NAME,
            version=build_number,
            build_number=build_number,
            classes=directory,
            sources=sources,
            with_kotlin=with_kotlin,
            local=True,
            plugins_registry=self.plugins_scanner(directory / PLUGINS_DIRECTORY),
        )

    def get_or_create_descriptor(self, dependency: ResolvedDependency) -> Path:
        """Path of the Ivy descriptor for a dependency, written if needed."""
        return descriptor.get_or_create_descriptor(dependency)

    def register(
        self, dependency: ResolvedDependency, host: Optional[DependencyHost] = None
    ) -> Tuple[RepositoryRegistration, DependencyDeclaration]:
        """
        Expose a dependency to a host build through an Ivy repository.

        Returns:
            The repository registration and dependency declaration, also
            applied to ``host`` when one is given
        """
        return descriptor.register(dependency, host)
