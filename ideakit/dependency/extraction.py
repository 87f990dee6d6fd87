"""
Idempotent extraction of downloaded IDE archives.

An archive ``<cache>/ideaIC-2022.3.zip`` is extracted to
``<cache>/ideaIC-2022.3`` and a sibling ``ideaIC-2022.3.marker`` file records
the build number taken from the archive's ``build.txt``. The tree is reused
as long as the marker is present and, when version checking is on, matches
the build number inside the archive.

Extraction runs under a file lock and writes into a hidden temporary
directory that is renamed into place, so concurrent builds sharing a cache
directory never observe a half-written tree.
"""

import tempfile
import zipfile
from pathlib import Path
from typing import Optional

from ideakit.core.diagnostics import get_context_logger
from ideakit.core.filesystem import (
    atomic_write,
    extract_archive,
    make_executable,
    read_archive_entry,
    safe_rmtree,
)
from ideakit.core.locking import LockManager
from ideakit.core.platform import is_windows
from ideakit.dependency.coordinates import PlatformType

MANIFEST_ENTRY = "build.txt"
MARKER_SUFFIX = ".marker"
# Extraction progress is logged every this many archive entries
PROGRESS_INTERVAL = 1000

EXECUTABLE_EXTENSIONS = frozenset({"dylib", "py", "sh", "so"})
EXECUTABLE_NAMES = frozenset(
    {
        "dotnet",
        "env-wrapper",
        "mono-sgen",
        "BridgeService",
        "JetBrains.Profiler.PdbServer",
        "JBDeviceService",
        "Rider.Backend",
    }
)


def archive_stem(archive_file: Path) -> str:
    """Directory name an archive extracts to."""
    name = archive_file.name
    return name[: -len(".zip")] if name.endswith(".zip") else name


def marker_path(target: Path) -> Path:
    """Marker file recording the build extracted into ``target``."""
    return target.parent / f"{target.name}{MARKER_SUFFIX}"


def needs_executable_bit(path: Path) -> bool:
    """
    True for native libraries, scripts and known native helper binaries.

    Versioned shared objects such as ``libfoo.so.6`` count as shared objects.
    """
    name = path.name
    extension = name.rsplit(".", 1)[1] if "." in name else ""
    return (
        extension in EXECUTABLE_EXTENSIONS
        or ".so." in name
        or name in EXECUTABLE_NAMES
    )


def select_cache_directory(
    archive_file: Path,
    platform_type: PlatformType,
    cache_path: Optional[Path] = None,
    build_dir: Optional[Path] = None,
) -> Path:
    """
    Pick the directory an archive is extracted into.

    A configured shared cache path wins. Rider on Windows otherwise extracts
    into the build directory, everything else next to the archive.
    """
    if cache_path is not None:
        cache_path = Path(cache_path)
        cache_path.mkdir(parents=True, exist_ok=True)
        return cache_path
    if platform_type == PlatformType.RIDER and is_windows() and build_dir is not None:
        return Path(build_dir)
    return archive_file.parent


class ArchiveCache:
    """
    Materializes extracted archive trees in cache directories.

    Example:
        >>> cache = ArchiveCache()
        >>> root = cache.ensure_extracted(
        ...     Path("downloads/ideaIC-2022.3.zip"), Path("cache"), PlatformType.INTELLIJ_COMMUNITY,
        ...     check_version=False)
        >>> root
        PosixPath('cache/ideaIC-2022.3')
    """

    def __init__(
        self,
        lock_manager: Optional[LockManager] = None,
        lock_timeout: float = 300,
        context: Optional[str] = None,
    ):
        self.lock_manager = lock_manager or LockManager()
        self.lock_timeout = lock_timeout
        self.log = get_context_logger(__name__, context)

    def ensure_extracted(
        self,
        archive_file: Path,
        cache_directory: Path,
        platform_type: PlatformType,
        check_version: bool,
    ) -> Path:
        """
        Guarantee a valid extracted tree for an archive exists.

        Args:
            archive_file: Downloaded zip archive
            cache_directory: Directory the tree is extracted into
            platform_type: Platform whose permission rules apply
            check_version: Compare the marker with the archive's build.txt

        Returns:
            Root of the extracted tree

        Raises:
            ArchiveExtractionError: If the archive cannot be extracted
            LockTimeout: If another process holds the tree lock too long
        """
        archive_file = Path(archive_file)
        cache_directory = Path(cache_directory)
        target = cache_directory / archive_stem(archive_file)

        if self.is_up_to_date(archive_file, target, check_version):
            self.log.debug(f"Using cached extraction: {target}")
            return target

        cache_directory.mkdir(parents=True, exist_ok=True)
        with self.lock_manager.extraction_lock(target, timeout=self.lock_timeout):
            # Another process may have finished while we waited for the lock
            if self.is_up_to_date(archive_file, target, check_version):
                self.log.debug(f"Extraction completed by another process: {target}")
                return target

            self._extract(archive_file, target, PlatformType.from_value(platform_type))

        return target

    def is_up_to_date(self, archive_file: Path, target: Path, check_version: bool) -> bool:
        """
        Check whether the extracted tree can be reused.

        Without version checking, an existing marker is enough. With it, the
        archive's build.txt must exist and match the marker. Unreadable
        archives count as stale.
        """
        marker = marker_path(target)
        if not marker.is_file() or not target.is_dir():
            return False
        if not check_version:
            return True

        try:
            manifest = read_archive_entry(archive_file, MANIFEST_ENTRY)
            stored = marker.read_text(encoding="utf-8")
        except (zipfile.BadZipFile, OSError, UnicodeDecodeError) as e:
            self.log.debug(f"Cannot compare build markers for {archive_file}: {e}")
            return False

        if manifest is None:
            self.log.debug(f"No {MANIFEST_ENTRY} in {archive_file}, treating cache as stale")
            return False
        return manifest.strip() == stored.strip()

    def _extract(self, archive_file: Path, target: Path, platform_type: PlatformType) -> None:
        cache_directory = target.parent
        marker = marker_path(target)
        temp_dir = Path(
            tempfile.mkdtemp(dir=cache_directory, prefix=f".{target.name}.", suffix=".tmp")
        )

        self.log.info(f"Extracting {archive_file.name} to {target}")
        try:
            extract_archive(archive_file, temp_dir, progress_callback=self._log_progress)
            reset_executable_permissions(temp_dir, platform_type, self.log)

            marker.unlink(missing_ok=True)
            if target.exists():
                safe_rmtree(target, require_prefix=cache_directory)
            temp_dir.rename(target)
        finally:
            if temp_dir.exists():
                safe_rmtree(temp_dir, require_prefix=cache_directory)

        self._store_marker(target, marker)

    def _log_progress(self, current: int, total: int) -> None:
        if current == total or current % PROGRESS_INTERVAL == 0:
            self.log.debug(f"Extracted {current}/{total} entries")

    def _store_marker(self, target: Path, marker: Path) -> None:
        build_file = target / MANIFEST_ENTRY
        if not build_file.is_file():
            self.log.debug(f"No {MANIFEST_ENTRY} in {target}, cache marker not written")
            return
        try:
            atomic_write(marker, build_file.read_text(encoding="utf-8").strip())
        except OSError as e:
            self.log.warning(f"Cannot write cache marker {marker}: {e}")


def reset_executable_permissions(root: Path, platform_type, log=None) -> int:
    """
    Restore executable bits that zip extraction dropped.

    Only Rider distributions on non-Windows hosts are touched, and only files
    matching the native library, script and helper allow-list.

    Returns:
        Number of files made executable
    """
    if PlatformType.from_value(platform_type) != PlatformType.RIDER or is_windows():
        return 0

    log = log or get_context_logger(__name__)
    count = 0
    for path in sorted(root.rglob("*")):
        if path.is_symlink() or not path.is_file() or not needs_executable_bit(path):
            continue
        log.debug(f"Resetting executable permissions for: {path}")
        try:
            make_executable(path)
            count += 1
        except OSError as e:
            log.warning(f"Cannot reset executable permissions for {path}: {e}")
    return count
