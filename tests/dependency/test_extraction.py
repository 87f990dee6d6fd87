"""
Unit tests for the archive cache and extraction engine.

Tests cover:
- Cache directory selection
- Idempotent extraction and marker handling
- Re-extraction of stale trees
- Executable permission fixup for Rider
"""

import os
import stat
from pathlib import Path
from unittest.mock import patch

import pytest

from ideakit.core.exceptions import ArchiveExtractionError
from ideakit.core.locking import LockManager
from ideakit.dependency import extraction
from ideakit.dependency.coordinates import PlatformType
from ideakit.dependency.extraction import (
    ArchiveCache,
    archive_stem,
    marker_path,
    needs_executable_bit,
    reset_executable_permissions,
    select_cache_directory,
)
from tests.fixtures.distributions import make_ide_zip

IC = PlatformType.INTELLIJ_COMMUNITY
RD = PlatformType.RIDER


@pytest.fixture
def archive_cache(tmp_path):
    return ArchiveCache(lock_manager=LockManager(tmp_path / "locks"), lock_timeout=5)


def _mode(path: Path) -> int:
    return stat.S_IMODE(path.stat().st_mode)


class TestHelpers:
    """Test naming helpers."""

    def test_archive_stem(self):
        """Test the .zip suffix is dropped."""
        assert archive_stem(Path("ideaIC-2022.3.zip")) == "ideaIC-2022.3"
        assert archive_stem(Path("riderRD-2022.3")) == "riderRD-2022.3"

    def test_marker_path(self, tmp_path):
        """Test the marker is a sibling of the tree."""
        assert marker_path(tmp_path / "ideaIC-2022.3") == tmp_path / "ideaIC-2022.3.marker"

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("libjvm.dylib", True),
            ("helper.py", True),
            ("run.sh", True),
            ("libfoo.so", True),
            ("libstdc++.so.6", True),
            ("dotnet", True),
            ("env-wrapper", True),
            ("mono-sgen", True),
            ("BridgeService", True),
            ("JetBrains.Profiler.PdbServer", True),
            ("JBDeviceService", True),
            ("Rider.Backend", True),
            ("b.txt", False),
            ("Rider.Backend.dll", False),
            ("app.jar", False),
            ("sources", False),
        ],
    )
    def test_needs_executable_bit(self, name, expected):
        """Test the extension and name allow-list."""
        assert needs_executable_bit(Path(name)) is expected


class TestSelectCacheDirectory:
    """Test where archives are extracted."""

    def test_configured_cache_path_wins(self, tmp_path):
        """Test a configured cache path is created and used."""
        cache = tmp_path / "shared-cache"
        result = select_cache_directory(tmp_path / "dl" / "ideaIC-2022.3.zip", IC, cache_path=cache)

        assert result == cache
        assert cache.is_dir()

    def test_beside_archive_by_default(self, tmp_path):
        """Test archives extract next to themselves."""
        archive = tmp_path / "dl" / "ideaIC-2022.3.zip"
        assert select_cache_directory(archive, IC, build_dir=tmp_path / "build") == archive.parent

    def test_rider_on_windows_uses_build_dir(self, tmp_path):
        """Test Rider on Windows extracts into the build directory."""
        archive = tmp_path / "dl" / "riderRD-2022.3.zip"
        with patch.object(extraction, "is_windows", return_value=True):
            assert select_cache_directory(archive, RD, build_dir=tmp_path / "build") == tmp_path / "build"
            assert select_cache_directory(archive, IC, build_dir=tmp_path / "build") == archive.parent

    def test_rider_elsewhere_beside_archive(self, tmp_path):
        """Test Rider on other hosts extracts next to the archive."""
        archive = tmp_path / "dl" / "riderRD-2022.3.zip"
        with patch.object(extraction, "is_windows", return_value=False):
            assert select_cache_directory(archive, RD, build_dir=tmp_path / "build") == archive.parent


class TestEnsureExtracted:
    """Test ArchiveCache.ensure_extracted."""

    def test_first_extraction(self, archive_cache, ide_zip, tmp_path):
        """Test the tree and marker are created."""
        cache_dir = tmp_path / "cache"

        root = archive_cache.ensure_extracted(ide_zip, cache_dir, IC, check_version=False)

        assert root == cache_dir / "ideaIC-2022.3"
        assert (root / "lib" / "app.jar").is_file()
        assert marker_path(root).read_text() == "IC-223.8836.41"

    def test_extraction_progress_logged(self, archive_cache, ide_zip, tmp_path, caplog_debug):
        """Test progress is logged at the interval and on the last entry."""
        with patch.object(extraction, "PROGRESS_INTERVAL", 2):
            archive_cache.ensure_extracted(ide_zip, tmp_path / "cache", IC, check_version=False)

        progress = [r.getMessage() for r in caplog_debug.records if "entries" in r.getMessage()]
        assert progress == [
            "Extracted 2/5 entries",
            "Extracted 4/5 entries",
            "Extracted 5/5 entries",
        ]

    def test_no_leftover_temp_directories(self, archive_cache, ide_zip, tmp_path):
        """Test only the tree, its marker and its lock remain."""
        cache_dir = tmp_path / "cache"
        archive_cache.ensure_extracted(ide_zip, cache_dir, IC, check_version=False)

        assert sorted(p.name for p in cache_dir.iterdir()) == [
            "ideaIC-2022.3",
            "ideaIC-2022.3.lock",
            "ideaIC-2022.3.marker",
        ]

    @pytest.mark.parametrize("check_version", [False, True])
    def test_second_call_does_no_work(self, archive_cache, ide_zip, tmp_path, check_version):
        """Test a valid tree is reused without extracting again."""
        cache_dir = tmp_path / "cache"
        first = archive_cache.ensure_extracted(ide_zip, cache_dir, IC, check_version)

        with patch.object(extraction, "extract_archive", wraps=extraction.extract_archive) as spy:
            second = archive_cache.ensure_extracted(ide_zip, cache_dir, IC, check_version)

        assert second == first
        spy.assert_not_called()

    def test_marker_ignored_without_version_check(self, archive_cache, ide_zip, tmp_path):
        """Test any marker content is accepted when version checking is off."""
        cache_dir = tmp_path / "cache"
        root = archive_cache.ensure_extracted(ide_zip, cache_dir, IC, check_version=False)
        marker_path(root).write_text("something else")

        with patch.object(extraction, "extract_archive") as spy:
            archive_cache.ensure_extracted(ide_zip, cache_dir, IC, check_version=False)

        spy.assert_not_called()

    def test_stale_marker_triggers_reextraction(self, archive_cache, tmp_path):
        """Test a changed build number re-extracts and replaces the tree."""
        cache_dir = tmp_path / "cache"
        archive = make_ide_zip(tmp_path / "dl" / "ideaIC-223-SNAPSHOT.zip", build="IC-223.1")
        root = archive_cache.ensure_extracted(archive, cache_dir, IC, check_version=True)
        (root / "leftover.txt").write_text("old")

        make_ide_zip(archive, build="IC-223.2", jars=("new.jar",))
        root = archive_cache.ensure_extracted(archive, cache_dir, IC, check_version=True)

        assert marker_path(root).read_text() == "IC-223.2"
        assert (root / "lib" / "new.jar").is_file()
        assert not (root / "leftover.txt").exists()
        assert not (root / "lib" / "app.jar").exists()

    def test_marker_compared_trimmed(self, archive_cache, ide_zip, tmp_path):
        """Test surrounding whitespace does not make a tree stale."""
        cache_dir = tmp_path / "cache"
        root = archive_cache.ensure_extracted(ide_zip, cache_dir, IC, check_version=True)
        marker_path(root).write_text("  IC-223.8836.41\n\n")

        with patch.object(extraction, "extract_archive") as spy:
            archive_cache.ensure_extracted(ide_zip, cache_dir, IC, check_version=True)

        spy.assert_not_called()

    def test_missing_marker_triggers_reextraction(self, archive_cache, ide_zip, tmp_path):
        """Test a tree without a marker is extracted again."""
        cache_dir = tmp_path / "cache"
        root = archive_cache.ensure_extracted(ide_zip, cache_dir, IC, check_version=False)
        marker_path(root).unlink()

        with patch.object(extraction, "extract_archive", wraps=extraction.extract_archive) as spy:
            archive_cache.ensure_extracted(ide_zip, cache_dir, IC, check_version=False)

        spy.assert_called_once()
        assert marker_path(root).exists()

    def test_missing_manifest_is_stale_when_checking(self, archive_cache, tmp_path):
        """Test an archive without build.txt is re-extracted on every checked call."""
        cache_dir = tmp_path / "cache"
        archive = make_ide_zip(tmp_path / "dl" / "ideaIC-223-SNAPSHOT.zip", build=None)

        root = archive_cache.ensure_extracted(archive, cache_dir, IC, check_version=True)
        assert root.is_dir()
        assert not marker_path(root).exists()

        # A marker left by an older archive must not validate it either
        marker_path(root).write_text("IC-223.1")
        with patch.object(extraction, "extract_archive", wraps=extraction.extract_archive) as spy:
            archive_cache.ensure_extracted(archive, cache_dir, IC, check_version=True)

        spy.assert_called_once()

    def test_corrupt_archive_raises(self, archive_cache, tmp_path):
        """Test an archive that cannot be extracted raises and leaves no tree."""
        cache_dir = tmp_path / "cache"
        archive = tmp_path / "dl" / "ideaIC-2022.3.zip"
        archive.parent.mkdir()
        archive.write_bytes(b"not a zip at all")

        with pytest.raises(ArchiveExtractionError):
            archive_cache.ensure_extracted(archive, cache_dir, IC, check_version=True)

        assert not (cache_dir / "ideaIC-2022.3").exists()
        assert not [p for p in cache_dir.iterdir() if p.name.endswith(".tmp")]

    def test_extraction_holds_tree_lock(self, tmp_path, ide_zip):
        """Test extraction happens under the per-tree lock."""
        lock_manager = LockManager(tmp_path / "locks")
        cache = ArchiveCache(lock_manager=lock_manager, lock_timeout=5)
        cache_dir = tmp_path / "cache"

        with patch.object(lock_manager, "extraction_lock", wraps=lock_manager.extraction_lock) as spy:
            cache.ensure_extracted(ide_zip, cache_dir, IC, check_version=False)

        spy.assert_called_once_with(cache_dir / "ideaIC-2022.3", timeout=5)

    def test_recheck_after_lock(self, archive_cache, ide_zip, tmp_path):
        """Test a tree completed by another process while waiting is not re-extracted."""
        cache_dir = tmp_path / "cache"
        results = iter([False, True])

        with patch.object(archive_cache, "is_up_to_date", side_effect=lambda *a: next(results)):
            with patch.object(extraction, "extract_archive") as spy:
                archive_cache.ensure_extracted(ide_zip, cache_dir, IC, check_version=False)

        spy.assert_not_called()


@pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
class TestExecutablePermissions:
    """Test the Rider executable bit fixup."""

    @pytest.fixture
    def rider_tree(self, tmp_path):
        root = tmp_path / "riderRD"
        (root / "lib").mkdir(parents=True)
        for name in ("a.dylib", "b.txt", "mono-sgen"):
            path = root / "lib" / name
            path.write_text("x")
            path.chmod(0o644)
        return root

    def test_only_allow_listed_files(self, rider_tree):
        """Test a.dylib and mono-sgen gain the bit and b.txt does not."""
        with patch.object(extraction, "is_windows", return_value=False):
            count = reset_executable_permissions(rider_tree, RD)

        assert count == 2
        assert _mode(rider_tree / "lib" / "a.dylib") == 0o744
        assert _mode(rider_tree / "lib" / "mono-sgen") == 0o744
        assert _mode(rider_tree / "lib" / "b.txt") == 0o644

    def test_other_platform_types_untouched(self, rider_tree):
        """Test non-Rider distributions are not modified."""
        with patch.object(extraction, "is_windows", return_value=False):
            assert reset_executable_permissions(rider_tree, IC) == 0

        assert _mode(rider_tree / "lib" / "a.dylib") == 0o644

    def test_windows_host_untouched(self, rider_tree):
        """Test nothing is modified on Windows hosts."""
        with patch.object(extraction, "is_windows", return_value=True):
            assert reset_executable_permissions(rider_tree, RD) == 0

        assert _mode(rider_tree / "lib" / "mono-sgen") == 0o644

    def test_failures_are_skipped(self, rider_tree, caplog):
        """Test a chmod failure is logged and the rest still processed."""
        calls = []

        def flaky(path):
            calls.append(path.name)
            if path.name == "a.dylib":
                raise PermissionError("read-only")
            os.chmod(path, 0o744)

        with patch.object(extraction, "is_windows", return_value=False):
            with patch.object(extraction, "make_executable", side_effect=flaky):
                count = reset_executable_permissions(rider_tree, RD)

        assert count == 1
        assert sorted(calls) == ["a.dylib", "mono-sgen"]
        assert "Cannot reset executable permissions" in caplog.text

    def test_applied_during_rider_extraction(self, archive_cache, tmp_path):
        """Test extracting a Rider archive restores the bits."""
        archive = make_ide_zip(
            tmp_path / "dl" / "riderRD-2022.3.zip",
            build="RD-223.7571.232",
            jars=(),
            extra_files={"lib/ReSharperHost/linux-x64/dotnet/dotnet": "bin", "bin/readme.txt": "x"},
        )

        with patch.object(extraction, "is_windows", return_value=False):
            root = archive_cache.ensure_extracted(archive, tmp_path / "cache", RD, check_version=False)

        assert os.access(root / "lib" / "ReSharperHost" / "linux-x64" / "dotnet" / "dotnet", os.X_OK)
        assert not os.access(root / "bin" / "readme.txt", os.X_OK)
