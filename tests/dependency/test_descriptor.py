"""
Unit tests for Ivy descriptor synthesis and repository registration.
"""

import xml.etree.ElementTree as ET
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from ideakit.core.interfaces import DependencyHost
from ideakit.dependency.descriptor import (
    MAVEN_NAMESPACE,
    DependencyDeclaration,
    build_registration,
    get_or_create_descriptor,
    register,
    render_descriptor,
)
from ideakit.dependency.models import DependencyLayout, ResolvedDependency
from tests.fixtures.distributions import make_ide_tree

CLASSIFIER = f"{{{MAVEN_NAMESPACE}}}classifier"


@pytest.fixture
def ide_root(tmp_path) -> Path:
    root = make_ide_tree(tmp_path / "cache" / "ideaIC-2022.3", jars=("app.jar", "util.jar", "junit.jar"))
    (root / "lib" / "ant").mkdir()
    return root


@pytest.fixture
def sources_jar(tmp_path) -> Path:
    jar = tmp_path / "downloads" / "ideaIC-2022.3-sources.jar"
    jar.parent.mkdir(parents=True)
    jar.write_text("src")
    return jar


def _dependency(classes: Path, **kwargs) -> ResolvedDependency:
    values = dict(name="ideaIC", version="2022.3", build_number="IC-223.8836.41", classes=classes)
    values.update(kwargs)
    return ResolvedDependency(**values)


def _artifacts(xml: str):
    root = ET.fromstring(xml)
    return root.findall("./publications/artifact")


class TestRenderDescriptor:
    """Test the generated Ivy XML."""

    def test_module_info_and_configurations(self, ide_root):
        """Test info element and the three configurations."""
        root = ET.fromstring(render_descriptor(_dependency(ide_root)))

        assert root.tag == "ivy-module"
        assert root.get("version") == "2.0"
        info = root.find("info")
        assert (info.get("organisation"), info.get("module"), info.get("revision")) == (
            "com.jetbrains",
            "ideaIC",
            "2022.3",
        )
        assert [conf.get("name") for conf in root.findall("./configurations/conf")] == [
            "default",
            "compile",
            "sources",
        ]

    def test_one_artifact_per_jar(self, ide_root):
        """Test jar artifacts are named by path relative to the root, without extension."""
        artifacts = _artifacts(render_descriptor(_dependency(ide_root)))

        assert [a.get("name") for a in artifacts] == ["lib/app", "lib/util"]
        for artifact in artifacts:
            assert artifact.get("type") == "jar"
            assert artifact.get("ext") == "jar"
            assert artifact.get("conf") == "compile"

    def test_sources_artifact(self, ide_root, sources_jar):
        """Test a sources artifact with the ideaIC name and Maven classifier."""
        artifacts = _artifacts(render_descriptor(_dependency(ide_root, sources=sources_jar)))

        sources = artifacts[-1]
        assert sources.get("name") == "ideaIC"
        assert sources.get("type") == "sources"
        assert sources.get("ext") == "jar"
        assert sources.get("conf") == "sources"
        assert sources.get(CLASSIFIER) == "sources"

    def test_pycharm_sources_artifact_name(self, ide_root, sources_jar):
        """Test PyCharm dependencies name their sources artifact pycharmPC."""
        dependency = _dependency(ide_root, name="pycharmPY", sources=sources_jar)
        assert _artifacts(render_descriptor(dependency))[-1].get("name") == "pycharmPC"

    def test_no_sources_artifact_without_sources(self, ide_root):
        """Test no sources entry when the dependency has no sources."""
        artifacts = _artifacts(render_descriptor(_dependency(ide_root)))
        assert all(a.get("conf") == "compile" for a in artifacts)

    def test_maven_namespace_prefix(self, ide_root, sources_jar):
        """Test the classifier is written with the m: prefix."""
        xml = render_descriptor(_dependency(ide_root, sources=sources_jar))
        assert f'xmlns:m="{MAVEN_NAMESPACE}"' in xml
        assert 'm:classifier="sources"' in xml

    def test_split_root_artifact_names(self, tmp_path):
        """Test split-root artifacts keep their test framework prefix."""
        root = tmp_path / "jps"
        (root / "test-framework").mkdir(parents=True)
        (root / "jps-builders.jar").write_text("x")
        (root / "test-framework" / "testFramework.jar").write_text("x")
        dependency = _dependency(root, name="jps-standalone", layout=DependencyLayout.SPLIT_ROOT)

        names = [a.get("name") for a in _artifacts(render_descriptor(dependency))]

        assert names == ["jps-builders", "test-framework/testFramework"]


class TestGetOrCreateDescriptor:
    """Test descriptor file placement and reuse."""

    def test_written_in_repository_directory(self, ide_root):
        """Test release dependencies get <root>/<fqn>.xml."""
        dependency = _dependency(ide_root)

        descriptor = get_or_create_descriptor(dependency)

        assert descriptor == ide_root / "ideaIC-2022.3-withKotlin.xml"
        assert ET.parse(descriptor).getroot().tag == "ivy-module"

    def test_existing_descriptor_reused_unchanged(self, ide_root):
        """Test an existing descriptor is returned without rewriting it."""
        dependency = _dependency(ide_root)
        first = get_or_create_descriptor(dependency)
        first.write_text("<ivy-module version=\"2.0\"><!-- custom --></ivy-module>")
        mtime = first.stat().st_mtime_ns

        second = get_or_create_descriptor(dependency)

        assert second == first
        assert second.stat().st_mtime_ns == mtime
        assert "custom" in second.read_text()

    def test_snapshot_gets_temp_descriptor(self, ide_root):
        """Test snapshots get a fresh temporary descriptor every time."""
        dependency = _dependency(ide_root, version="223-SNAPSHOT")

        first = get_or_create_descriptor(dependency)
        second = get_or_create_descriptor(dependency)
        try:
            assert first != second
            assert first.parent != ide_root
            assert first.name.startswith("ideaIC-223-SNAPSHOT-withKotlin")
            assert first.suffix == ".xml"
            assert not (ide_root / "ideaIC-223-SNAPSHOT-withKotlin.xml").exists()
        finally:
            first.unlink()
            second.unlink()

    def test_local_gets_temp_descriptor(self, ide_root):
        """Test local dependencies never write into the installation."""
        dependency = _dependency(ide_root, name="ideaLocal", version="IC-223.1", local=True)

        descriptor = get_or_create_descriptor(dependency)
        try:
            assert descriptor.parent != ide_root
            assert ET.parse(descriptor).getroot().find("info").get("module") == "ideaLocal"
        finally:
            descriptor.unlink()


class TestBuildRegistration:
    """Test repository registration patterns."""

    def test_release_registration(self, ide_root):
        """Test patterns for a cached release descriptor."""
        dependency = _dependency(ide_root)
        descriptor = ide_root / "ideaIC-2022.3-withKotlin.xml"

        registration, declaration = build_registration(dependency, descriptor)

        assert registration.url == ide_root.resolve().as_uri()
        assert registration.ivy_pattern == (
            f"{ide_root.as_posix()}/[module]-[revision]-withKotlin.[ext]"
        )
        assert registration.artifact_patterns == [f"{ide_root.as_posix()}/[artifact].[ext]"]
        assert declaration == DependencyDeclaration("com.jetbrains", "ideaIC", "2022.3", "compile")
        assert declaration.notation() == "com.jetbrains:ideaIC:2022.3"

    def test_ivy_pattern_resolves_descriptor(self, ide_root, sources_jar):
        """Test substituting module and revision into the pattern names the descriptor."""
        dependency = _dependency(ide_root, sources=sources_jar)
        descriptor = ide_root / f"{dependency.fqn}.xml"

        registration, _ = build_registration(dependency, descriptor)
        resolved = (
            registration.ivy_pattern.replace("[module]", "ideaIC")
            .replace("[revision]", "2022.3")
            .replace("[ext]", "xml")
        )

        assert resolved == descriptor.as_posix()

    def test_temp_descriptor_suffix(self, ide_root, tmp_path):
        """Test a random temp-file suffix is kept literal in the pattern."""
        dependency = _dependency(ide_root, version="223-SNAPSHOT", with_kotlin=False)
        descriptor = tmp_path / "ideaIC-223-SNAPSHOTk3j2x9.xml"

        registration, _ = build_registration(dependency, descriptor)

        assert registration.ivy_pattern == f"{tmp_path.as_posix()}/[module]-[revision]k3j2x9.[ext]"

    def test_sources_pattern(self, ide_root, sources_jar):
        """Test a classifier pattern rooted at the sources directory."""
        dependency = _dependency(ide_root, sources=sources_jar)

        registration, _ = build_registration(dependency, ide_root / f"{dependency.fqn}.xml")

        assert registration.artifact_patterns == [
            f"{ide_root.as_posix()}/[artifact].[ext]",
            f"{sources_jar.parent.as_posix()}/[artifact]-[revision]-[classifier].[ext]",
        ]


class TestRegister:
    """Test applying registrations to a host."""

    def test_applies_to_host(self, ide_root):
        """Test the repository and dependency are both added to the host."""
        host = MagicMock(spec=DependencyHost)

        registration, declaration = register(_dependency(ide_root), host)

        host.add_ivy_repository.assert_called_once_with(registration)
        host.add_dependency.assert_called_once_with(declaration)
        assert (ide_root / "ideaIC-2022.3-withKotlin.xml").exists()

    def test_without_host(self, ide_root):
        """Test registration data is returned when no host is given."""
        registration, declaration = register(_dependency(ide_root))
        assert registration.url.startswith("file:")
        assert declaration.name == "ideaIC"
