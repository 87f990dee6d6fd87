"""
Mapping from platform requests to repository coordinates.

Everything in this module is a pure function of its arguments: no network
or disk access, so the whole mapping matrix can be unit tested directly.

Example:
    >>> coords = resolve_coordinates("IC", "2022.3", want_sources=True)
    >>> coords.group, coords.artifact_name, coords.release_channel
    ('com.jetbrains.intellij.idea', 'ideaIC', 'releases')
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Tuple

from ideakit.core.exceptions import UnsupportedPlatformTypeError
from ideakit.dependency.repository import MavenCoordinates

logger = logging.getLogger(__name__)

RELEASE_SUFFIX_SNAPSHOT = "-SNAPSHOT"
RELEASE_CHANNEL_RELEASES = "releases"
RELEASE_CHANNEL_SNAPSHOTS = "snapshots"

IDEA_GROUP = "com.jetbrains.intellij.idea"
PYCHARM_GROUP = "com.jetbrains.intellij.pycharm"

# Names that belong to main IDE distributions and cannot be extra dependencies
MAIN_DEPENDENCY_NAMES = ("ideaIC", "ideaIU", "riderRD", "riderRS")


class PlatformType(str, Enum):
    """Supported IDE distribution kinds."""

    INTELLIJ_COMMUNITY = "IC"
    INTELLIJ_ULTIMATE = "IU"
    CLION = "CL"
    PYCHARM_PROFESSIONAL = "PY"
    PYCHARM_COMMUNITY = "PC"
    GOLAND = "GO"
    PHPSTORM = "PS"
    RIDER = "RD"
    GATEWAY = "GW"
    JPS = "JPS"

    @classmethod
    def from_value(cls, value: str) -> "PlatformType":
        """
        Look up a platform type by its short code.

        Raises:
            UnsupportedPlatformTypeError: If the code is not supported
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise UnsupportedPlatformTypeError(
                value, supported_platform_types()
            ) from None


_COORDINATES: Dict[PlatformType, Tuple[str, str]] = {
    PlatformType.INTELLIJ_ULTIMATE: (IDEA_GROUP, "ideaIU"),
    PlatformType.INTELLIJ_COMMUNITY: (IDEA_GROUP, "ideaIC"),
    PlatformType.CLION: ("com.jetbrains.intellij.clion", "clion"),
    PlatformType.PYCHARM_PROFESSIONAL: (PYCHARM_GROUP, "pycharmPY"),
    PlatformType.PYCHARM_COMMUNITY: (PYCHARM_GROUP, "pycharmPC"),
    PlatformType.GOLAND: ("com.jetbrains.intellij.goland", "goland"),
    PlatformType.PHPSTORM: ("com.jetbrains.intellij.phpstorm", "phpstorm"),
    PlatformType.RIDER: ("com.jetbrains.intellij.rider", "riderRD"),
    PlatformType.GATEWAY: ("com.jetbrains.gateway", "JetBrainsGateway"),
    PlatformType.JPS: (IDEA_GROUP, "jps-standalone"),
}

# Distributions that never publish a sources artifact
_SOURCELESS_TYPES = frozenset({PlatformType.GATEWAY, PlatformType.JPS})


def supported_platform_types() -> List[str]:
    """All supported platform type codes, in declaration order."""
    return [t.value for t in PlatformType]


def is_snapshot(version: str) -> bool:
    """True if the version belongs to the snapshot channel."""
    return version.endswith(RELEASE_SUFFIX_SNAPSHOT)


def release_channel(version: str) -> str:
    """Repository channel for a version: 'snapshots' or 'releases'."""
    return RELEASE_CHANNEL_SNAPSHOTS if is_snapshot(version) else RELEASE_CHANNEL_RELEASES


def is_pycharm_type(platform_type) -> bool:
    """True for the PyCharm Professional and Community types."""
    return platform_type in (
        PlatformType.PYCHARM_PROFESSIONAL,
        PlatformType.PYCHARM_COMMUNITY,
        PlatformType.PYCHARM_PROFESSIONAL.value,
        PlatformType.PYCHARM_COMMUNITY.value,
    )


@dataclass(frozen=True)
class ResolvedCoordinates:
    """Where a platform request lives in the repository."""

    platform_type: PlatformType
    group: str
    artifact_name: str
    version: str
    release_channel: str
    sources_available: bool

    def artifact(self) -> MavenCoordinates:
        """Coordinates of the main distribution archive."""
        return MavenCoordinates(
            group=self.group,
            name=self.artifact_name,
            version=self.version,
            extension="zip",
        )

    def sources_artifact(self) -> MavenCoordinates:
        """
        Coordinates of the sources jar.

        PyCharm ships its own sources; every other IDE uses the IntelliJ
        Community sources.
        """
        if is_pycharm_type(self.platform_type):
            group, name = PYCHARM_GROUP, "pycharmPC"
        else:
            group, name = IDEA_GROUP, "ideaIC"
        return MavenCoordinates(
            group=group,
            name=name,
            version=self.version,
            classifier="sources",
            extension="jar",
        )


def resolve_coordinates(
    platform_type: str, version: str, want_sources: bool
) -> ResolvedCoordinates:
    """
    Map a platform request to repository coordinates.

    Args:
        platform_type: Platform type code (e.g. 'IC', 'RD')
        version: Requested version; a '-SNAPSHOT' suffix selects the snapshot channel
        want_sources: Whether a sources artifact is wanted

    Returns:
        ResolvedCoordinates for the request

    Raises:
        UnsupportedPlatformTypeError: If the type is unknown
    """
    resolved_type = PlatformType.from_value(platform_type)
    channel = release_channel(version)
    group, artifact_name = _COORDINATES[resolved_type]

    sources_available = want_sources
    if resolved_type in _SOURCELESS_TYPES:
        sources_available = False
    elif (
        resolved_type == PlatformType.RIDER
        and want_sources
        and channel == RELEASE_CHANNEL_SNAPSHOTS
    ):
        logger.warning("IDE sources are not available for Rider SNAPSHOTS")
        sources_available = False

    return ResolvedCoordinates(
        platform_type=resolved_type,
        group=group,
        artifact_name=artifact_name,
        version=version,
        release_channel=channel,
        sources_available=sources_available,
    )
