"""
Resolution of extra artifacts published alongside an IDE version.

Extras are optional: a name that cannot be downloaded or extracted is
reported as a warning and left out, the rest of the batch still resolves.
Names reserved for main IDE distributions are rejected up front.
"""

from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional, Sequence

from ideakit.config.parser import ResolverConfig
from ideakit.core.diagnostics import get_context_logger
from ideakit.core.exceptions import ExtraDependencyConflictError, IdeaKitError
from ideakit.core.interfaces import ArtifactDownloader
from ideakit.core.locking import LockTimeout
from ideakit.dependency.coordinates import (
    IDEA_GROUP,
    MAIN_DEPENDENCY_NAMES,
    PlatformType,
    is_snapshot,
    release_channel,
)
from ideakit.dependency.extraction import ArchiveCache, select_cache_directory
from ideakit.dependency.models import ExtraDependency
from ideakit.dependency.repository import MavenCoordinates

# Failures that skip one extra instead of failing the batch
_ITEM_ERRORS = (IdeaKitError, LockTimeout, OSError, ValueError)


def check_extra_names(names: Sequence[str]) -> None:
    """
    Reject extra names that belong to main IDE distributions.

    Raises:
        ExtraDependencyConflictError: Listing every offending name
    """
    conflicts = [name for name in names if name in MAIN_DEPENDENCY_NAMES]
    if conflicts:
        raise ExtraDependencyConflictError(conflicts)


class ExtraDependencyResolver:
    """
    Downloads and materializes extra artifacts for one IDE version.

    Example:
        >>> resolver = ExtraDependencyResolver(downloader, ArchiveCache(), config)
        >>> [extra.name for extra in resolver.resolve("2022.3", ["jps-build-test"])]
        ['jps-build-test']
    """

    def __init__(
        self,
        downloader: ArtifactDownloader,
        archive_cache: ArchiveCache,
        config: ResolverConfig,
    ):
        self.downloader = downloader
        self.archive_cache = archive_cache
        self.config = config
        self.log = get_context_logger(__name__, config.context)

    def resolve(self, version: str, names: Sequence[str]) -> List[ExtraDependency]:
        """
        Resolve extra artifacts by name.

        Args:
            version: IDE version the extras are published for
            names: Artifact names in the IDE group

        Returns:
            Resolved extras in request order, skipping those that failed

        Raises:
            ExtraDependencyConflictError: If a name is reserved for a main IDE
        """
        names = list(names)
        if not names:
            return []
        check_extra_names(names)
        self.log.info(f"Configuring IDE extra dependencies: {names}")

        repository_url = self.config.repository_for(release_channel(version))
        workers = max(1, min(self.config.max_workers, len(names)))

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="extras") as executor:
            futures: List[Future] = [
                executor.submit(self._resolve_one, name, version, repository_url)
                for name in names
            ]
            results = [future.result() for future in futures]

        return [extra for extra in results if extra is not None]

    def _resolve_one(
        self, name: str, version: str, repository_url: str
    ) -> Optional[ExtraDependency]:
        coordinates = MavenCoordinates(group=IDEA_GROUP, name=name, version=version)

        try:
            files = self.downloader.download(coordinates, repository_url)
        except _ITEM_ERRORS as e:
            self.log.warning(f"Cannot resolve IDE extra dependency '{name}': {e}")
            return None

        if len(files) != 1:
            self.log.warning(
                f"Cannot attach IDE extra dependency '{name}': "
                f"expected one file for {coordinates}, got {len(files)}"
            )
            return None

        artifact = Path(files[0])
        if artifact.suffix != ".zip":
            return ExtraDependency(name=name, classes=artifact)

        try:
            cache_directory = select_cache_directory(
                artifact,
                PlatformType.INTELLIJ_COMMUNITY,
                cache_path=self.config.cache_path,
                build_dir=self.config.build_dir,
            )
            classes = self.archive_cache.ensure_extracted(
                artifact,
                cache_directory,
                PlatformType.INTELLIJ_COMMUNITY,
                check_version=is_snapshot(version),
            )
        except _ITEM_ERRORS as e:
            self.log.warning(f"Cannot extract IDE extra dependency '{name}': {e}")
            return None

        self.log.debug(f"IDE extra dependency '{name}': {classes}")
        return ExtraDependency(name=name, classes=classes)
