"""
Core interfaces for ideakit.

The resolver talks to the network and to the host build graph only through
these interfaces, so either side can be swapped out (or faked in tests)
without the resolver knowing.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, List

if TYPE_CHECKING:
    from ideakit.dependency.descriptor import (
        DependencyDeclaration,
        RepositoryRegistration,
    )
    from ideakit.dependency.repository import MavenCoordinates


class ArtifactDownloader(ABC):
    """
    Abstract interface for fetching files that match repository coordinates.

    Implementations own transport concerns: retries, timeouts, cancellation.
    """

    @abstractmethod
    def download(
        self, coordinates: "MavenCoordinates", repository_url: str
    ) -> List[Path]:
        """
        Download the files matching the coordinates from a repository.

        Args:
            coordinates: Group, name, version and optional classifier/extension
            repository_url: Base URL of a Maven-layout repository

        Returns:
            Local files matching the coordinates (possibly empty)

        Raises:
            ResolutionError: If the repository cannot be queried
        """
        pass


class DependencyHost(ABC):
    """
    Abstract interface for the build graph that consumes resolved dependencies.
    """

    @abstractmethod
    def add_ivy_repository(self, registration: "RepositoryRegistration") -> None:
        """Register a file-system backed Ivy repository."""
        pass

    @abstractmethod
    def add_dependency(self, declaration: "DependencyDeclaration") -> None:
        """Declare a dependency resolved from a registered repository."""
        pass
