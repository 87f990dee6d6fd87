"""
Resolved dependency data model.

A ResolvedDependency is one record with a layout tag rather than a class
hierarchy: the set of layouts is closed, and each layout only changes which
directories contribute jar files.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple

from ideakit.dependency.plugins import BuiltinPluginsRegistry

TEST_FRAMEWORK_DIRECTORY = "test-framework"

_EXCLUDED_JARS = frozenset({"junit.jar", "annotations.jar"})
_PYCHARM_NAMES = frozenset({"pycharmPY", "pycharmPC"})


class DependencyLayout(str, Enum):
    """How jar files are laid out inside a resolved distribution."""

    SINGLE_ROOT = "single-root"  # <root>/lib/*.jar
    SPLIT_ROOT = "split-root"  # <root>/*.jar (core) + <root>/test-framework/*.jar


def is_kotlin_runtime(name: str) -> bool:
    """True for Kotlin runtime library names (without the .jar suffix)."""
    return (
        name in ("kotlin-runtime", "kotlin-reflect")
        or name.startswith("kotlin-stdlib")
        or name.startswith("kotlin-test")
    )


def collect_jars(directory: Path, recursive: bool = False) -> List[Path]:
    """Sorted jar files in a directory; empty if it does not exist."""
    if not directory.is_dir():
        return []
    pattern = "**/*.jar" if recursive else "*.jar"
    return sorted(p for p in directory.glob(pattern) if p.is_file())


@dataclass(frozen=True)
class ExtraDependency:
    """A supplementary artifact resolved for the same version as the IDE."""

    name: str
    classes: Path

    @property
    def jar_files(self) -> List[Path]:
        if self.classes.is_dir():
            return collect_jars(self.classes, recursive=True)
        if self.classes.suffix == ".jar":
            return [self.classes]
        return []


@dataclass
class ResolvedDependency:
    """
    An IDE distribution ready to be consumed as a build dependency.

    Attributes:
        name: Artifact name ('ideaIC', 'riderRD', 'ideaLocal', ...)
        version: Requested version, or the build number for local IDEs
        build_number: Build number read from the distribution itself
        classes: Root of the extracted (or local) distribution
        sources: Sources jar, if one was resolved
        with_kotlin: Keep the bundled Kotlin runtime jars
        layout: Jar layout of the distribution
        local: True when the distribution is a user-provided directory
        plugins_registry: Plugins bundled with the distribution
        extra_dependencies: Supplementary artifacts
    """

    name: str
    version: str
    build_number: str
    classes: Path
    sources: Optional[Path] = None
    with_kotlin: bool = True
    layout: DependencyLayout = DependencyLayout.SINGLE_ROOT
    local: bool = False
    plugins_registry: BuiltinPluginsRegistry = field(
        default_factory=BuiltinPluginsRegistry
    )
    extra_dependencies: List[ExtraDependency] = field(default_factory=list)

    @property
    def roots(self) -> List[Path]:
        """Directories whose jars make up the dependency."""
        if self.layout == DependencyLayout.SPLIT_ROOT:
            return [self.classes, self.classes / TEST_FRAMEWORK_DIRECTORY]
        return [self.classes / "lib"]

    @property
    def jar_files(self) -> List[Path]:
        jars = []
        for root in self.roots:
            jars.extend(j for j in collect_jars(root) if self._accepts(j))
        return sorted(jars)

    def _accepts(self, jar: Path) -> bool:
        if jar.name in _EXCLUDED_JARS:
            return False
        return self.with_kotlin or not is_kotlin_runtime(jar.stem)

    @property
    def fqn(self) -> str:
        """Name-version plus flags; distinguishes cached descriptors."""
        fqn = f"{self.name}-{self.version}"
        if self.with_kotlin:
            fqn += "-withKotlin"
        if self.sources is not None:
            fqn += "-withSources"
        return fqn

    @property
    def ivy_repository_directory(self) -> Optional[Path]:
        """
        Directory for a reusable descriptor, or None for a throwaway one.

        Snapshots change under the same version and local IDEs may be
        read-only, so neither gets a cached descriptor.
        """
        if self.local or self.version.endswith("-SNAPSHOT"):
            return None
        return self.classes

    @property
    def is_pycharm(self) -> bool:
        return self.name in _PYCHARM_NAMES


@dataclass(frozen=True)
class PlatformRequest:
    """
    A request for a remote IDE distribution.

    Attributes:
        type: Platform type code ('IC', 'RD', ...)
        version: Version to resolve; '-SNAPSHOT' selects the snapshot channel
        want_sources: Try to attach a sources jar
        extra_names: Extra artifacts published with the same version
        with_kotlin: Keep the bundled Kotlin runtime jars
    """

    type: str
    version: str
    want_sources: bool = True
    extra_names: Tuple[str, ...] = ()
    with_kotlin: bool = True
