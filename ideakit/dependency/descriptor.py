"""
Ivy descriptor synthesis for resolved IDE dependencies.

The extracted distribution is exposed to the host build as an Ivy module
``com.jetbrains:<name>:<version>`` with three configurations:

- ``default``
- ``compile``: one artifact per jar file, named by its path relative to the
  distribution root
- ``sources``: the sources jar, if any, with classifier ``sources``

A file-system Ivy repository pointing at the descriptor and at the
distribution root makes the module resolvable.
"""

import logging
import os
import tempfile
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from ideakit.core.filesystem import atomic_write
from ideakit.core.interfaces import DependencyHost
from ideakit.dependency.models import ResolvedDependency

logger = logging.getLogger(__name__)

DEPENDENCY_GROUP = "com.jetbrains"
CONFIGURATIONS = ("default", "compile", "sources")
MAVEN_NAMESPACE = "http://ant.apache.org/ivy/maven"


@dataclass(frozen=True)
class IvyArtifact:
    """One ``<artifact>`` entry of an Ivy descriptor."""

    name: str
    type: str
    extension: str
    conf: str
    classifier: Optional[str] = None

    @classmethod
    def for_jar(cls, jar: Path, base_dir: Path, conf: str = "compile") -> "IvyArtifact":
        """Artifact for a jar, named by its extension-less path relative to base_dir."""
        relative = jar.relative_to(base_dir).with_suffix("")
        return cls(name=relative.as_posix(), type="jar", extension="jar", conf=conf)


@dataclass(frozen=True)
class RepositoryRegistration:
    """A file-system backed Ivy repository for the host build."""

    url: str
    ivy_pattern: str
    artifact_patterns: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class DependencyDeclaration:
    """A dependency on a module from a registered repository."""

    group: str
    name: str
    version: str
    configuration: str = "compile"

    def notation(self) -> str:
        return f"{self.group}:{self.name}:{self.version}"


def sources_artifact_name(dependency: ResolvedDependency) -> str:
    """PyCharm publishes its own sources artifact; all other IDEs use ideaIC."""
    return "pycharmPC" if dependency.is_pycharm else "ideaIC"


def descriptor_artifacts(dependency: ResolvedDependency) -> List[IvyArtifact]:
    """All artifact entries for a dependency, compile jars first."""
    artifacts = [IvyArtifact.for_jar(jar, dependency.classes) for jar in dependency.jar_files]
    if dependency.sources is not None:
        artifacts.append(
            IvyArtifact(
                name=sources_artifact_name(dependency),
                type="sources",
                extension="jar",
                conf="sources",
                classifier="sources",
            )
        )
    return artifacts


def render_descriptor(dependency: ResolvedDependency) -> str:
    """Render the Ivy XML for a dependency."""
    ET.register_namespace("m", MAVEN_NAMESPACE)
    module = ET.Element("ivy-module", {"version": "2.0"})
    ET.SubElement(
        module,
        "info",
        {
            "organisation": DEPENDENCY_GROUP,
            "module": dependency.name,
            "revision": dependency.version,
        },
    )

    configurations = ET.SubElement(module, "configurations")
    for name in CONFIGURATIONS:
        ET.SubElement(configurations, "conf", {"name": name, "visibility": "public"})

    publications = ET.SubElement(module, "publications")
    for artifact in descriptor_artifacts(dependency):
        attributes = {
            "name": artifact.name,
            "type": artifact.type,
            "ext": artifact.extension,
            "conf": artifact.conf,
        }
        if artifact.classifier:
            attributes[f"{{{MAVEN_NAMESPACE}}}classifier"] = artifact.classifier
        ET.SubElement(publications, "artifact", attributes)

    ET.SubElement(module, "dependencies")

    ET.indent(module)
    body = ET.tostring(module, encoding="unicode")
    return f'<?xml version="1.0" encoding="UTF-8"?>\n{body}\n'


def get_or_create_descriptor(dependency: ResolvedDependency) -> Path:
    """
    Return the Ivy descriptor for a dependency, writing it if needed.

    With an Ivy repository directory the descriptor lives at
    ``<dir>/<fqn>.xml`` and an existing file is trusted as-is. Without one a
    fresh temporary ``<fqn>*.xml`` file is written on every call.
    """
    directory = dependency.ivy_repository_directory

    if directory is not None:
        descriptor = directory / f"{dependency.fqn}.xml"
        if descriptor.exists():
            logger.debug(f"Reusing Ivy descriptor: {descriptor}")
            return descriptor
        atomic_write(descriptor, render_descriptor(dependency))
        logger.debug(f"Created Ivy descriptor: {descriptor}")
        return descriptor

    fd, name = tempfile.mkstemp(prefix=dependency.fqn, suffix=".xml")
    os.close(fd)
    descriptor = Path(name)
    descriptor.write_text(render_descriptor(dependency), encoding="utf-8")
    logger.debug(f"Created temporary Ivy descriptor: {descriptor}")
    return descriptor


def build_registration(
    dependency: ResolvedDependency, descriptor: Path
) -> Tuple[RepositoryRegistration, DependencyDeclaration]:
    """
    Describe the repository and dependency that expose a descriptor.

    The descriptor name may carry a suffix after ``<name>-<version>`` (flags,
    temp-file randomness); the Ivy pattern keeps it literal so
    ``[module]-[revision]`` still resolves to this exact file.
    """
    prefix = f"{dependency.name}-{dependency.version}"
    suffix = descriptor.name[len(prefix):]
    if suffix.endswith(".xml"):
        suffix = suffix[: -len(".xml")]

    classes = dependency.classes
    artifact_patterns = [f"{classes.as_posix()}/[artifact].[ext]"]
    if dependency.sources is not None:
        artifact_patterns.append(
            f"{dependency.sources.parent.as_posix()}/[artifact]-[revision]-[classifier].[ext]"
        )

    registration = RepositoryRegistration(
        url=classes.resolve().as_uri(),
        ivy_pattern=f"{descriptor.parent.as_posix()}/[module]-[revision]{suffix}.[ext]",
        artifact_patterns=artifact_patterns,
    )
    declaration = DependencyDeclaration(
        group=DEPENDENCY_GROUP,
        name=dependency.name,
        version=dependency.version,
        configuration="compile",
    )
    return registration, declaration


def register(
    dependency: ResolvedDependency, host: Optional[DependencyHost] = None
) -> Tuple[RepositoryRegistration, DependencyDeclaration]:
    """
    Expose a dependency to the host build.

    Writes (or reuses) the descriptor, then adds the repository and the
    dependency to ``host`` when one is given.
    """
    descriptor = get_or_create_descriptor(dependency)
    registration, declaration = build_registration(dependency, descriptor)

    if host is not None:
        host.add_ivy_repository(registration)
        host.add_dependency(declaration)
        logger.debug(f"Registered {declaration.notation()} from {registration.url}")

    return registration, declaration
