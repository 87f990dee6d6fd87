"""
Cross-platform file system utilities for ideakit.

This module provides the file operations the artifact cache relies on:
- Zip archive inspection and safe extraction
- Safe file operations (atomic writes, guarded deletion)
- Executable permission handling

All operations handle platform differences transparently.
"""

import os
import shutil
import stat
import tempfile
import zipfile
import zlib
from pathlib import Path
from typing import Callable, Optional, Union

from ideakit.core.exceptions import (
    ArchiveExtractionError,
    FilesystemError,
    InsecureArchiveError,
)

# Platform detection
IS_WINDOWS = os.name == "nt"
IS_UNIX = not IS_WINDOWS


# ============================================================================
# Path Utilities
# ============================================================================


def is_relative_to(path: Path, parent: Path) -> bool:
    """
    Check if a path is relative to (under) a parent directory.

    Args:
        path: Path to check
        parent: Potential parent directory

    Returns:
        True if path is under parent

    Example:
        >>> is_relative_to(Path('/home/user/file.txt'), Path('/home'))
        True
    """
    try:
        path.resolve().relative_to(parent.resolve())
        return True
    except ValueError:
        return False


# ============================================================================
# Archive Handling
# ============================================================================


def read_archive_entry(
    archive_path: Union[str, Path], entry_name: str
) -> Optional[str]:
    """
    Read a text entry from a zip archive without extracting it.

    Args:
        archive_path: Path to the zip archive
        entry_name: Name of the entry inside the archive (e.g. 'build.txt')

    Returns:
        Entry content decoded as UTF-8, or None if the entry does not exist

    Raises:
        zipfile.BadZipFile: If the archive is corrupt
        OSError: If the archive cannot be read
    """
    with zipfile.ZipFile(archive_path, "r") as zf:
        try:
            info = zf.getinfo(entry_name)
        except KeyError:
            return None
        with zf.open(info) as entry:
            return entry.read().decode("utf-8")


def _validate_archive_path(path: str, destination: Path) -> None:
    """
    Validate that an archive member path is safe to extract.

    Prevents directory traversal attacks (e.g., paths containing '../').

    Raises:
        InsecureArchiveError: If path attempts directory traversal
    """
    member_path = (destination / path).resolve()

    if not is_relative_to(member_path, destination.resolve()):
        raise InsecureArchiveError(
            f"Archive member '{path}' attempts directory traversal. "
            "This is a security risk and extraction has been blocked."
        )


def extract_archive(
    archive_path: Union[str, Path],
    destination: Union[str, Path],
    progress_callback: Optional[Callable[[int, int], None]] = None,
) -> None:
    """
    Extract a zip archive to a destination directory.

    Validates all member paths before writing anything. Zip archives do not
    carry POSIX permission bits through ``zipfile``, so extracted files are
    never executable.

    Args:
        archive_path: Path to the archive file
        destination: Directory to extract to
        progress_callback: Optional callback(current, total) for progress

    Raises:
        ArchiveExtractionError: If the archive is missing, corrupt or unreadable
        InsecureArchiveError: If the archive contains malicious paths

    Example:
        >>> extract_archive('ideaIC-2022.3.zip', '/tmp/ideaIC-2022.3')
    """
    archive_path = Path(archive_path)
    destination = Path(destination)

    if not archive_path.exists():
        raise ArchiveExtractionError(f"Archive not found: {archive_path}")

    destination.mkdir(parents=True, exist_ok=True)

    try:
        with zipfile.ZipFile(archive_path, "r") as zf:
            members = zf.namelist()
            total = len(members)

            for member in members:
                _validate_archive_path(member, destination)

            for i, member in enumerate(members):
                zf.extract(member, destination)
                if progress_callback:
                    progress_callback(i + 1, total)
    except InsecureArchiveError:
        raise
    except (zipfile.BadZipFile, zlib.error, OSError, EOFError) as e:
        raise ArchiveExtractionError(f"Failed to extract {archive_path}: {e}") from e


# ============================================================================
# Safe File Operations
# ============================================================================


def atomic_write(
    file_path: Union[str, Path], content: Union[str, bytes], encoding: str = "utf-8"
) -> None:
    """
    Write file atomically using temp file + rename.

    The file is never observable in a partially-written state. Concurrent
    writers of identical content are safe: the last rename wins.

    Args:
        file_path: Path to write to
        content: Content to write (string or bytes)
        encoding: Text encoding (used only for string content)
    """
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    # Same directory keeps the rename on one filesystem
    temp_fd, temp_path_str = tempfile.mkstemp(
        dir=file_path.parent, prefix=f".{file_path.name}.", suffix=".tmp"
    )
    temp_path = Path(temp_path_str)

    try:
        if isinstance(content, str):
            with open(temp_fd, "w", encoding=encoding) as f:
                f.write(content)
        else:
            with open(temp_fd, "wb") as f:
                f.write(content)

        temp_path.replace(file_path)

    except Exception:
        try:
            temp_path.unlink(missing_ok=True)
        except OSError:
            pass
        raise


def safe_rmtree(
    path: Union[str, Path], require_prefix: Optional[Union[str, Path]] = None
) -> None:
    """
    Safely remove a directory tree with safeguards.

    Args:
        path: Directory to remove
        require_prefix: If specified, path must be under this directory

    Raises:
        ValueError: If path is not under require_prefix
        FilesystemError: If deletion fails

    Example:
        >>> safe_rmtree('/tmp/cache/ideaIC-2022.3', require_prefix='/tmp/cache')
    """
    path = Path(path).resolve()

    if require_prefix is not None:
        require_prefix = Path(require_prefix).resolve()
        if not is_relative_to(path, require_prefix):
            raise ValueError(
                f"Refusing to delete '{path}': not under required prefix '{require_prefix}'"
            )

    if not path.exists():
        return

    if not path.is_dir():
        raise FilesystemError(f"Path is not a directory: {path}")

    try:
        if IS_WINDOWS:

            def handle_remove_readonly(func, path, exc):
                """Error handler for Windows read-only files."""
                if not os.access(path, os.W_OK):
                    os.chmod(path, 0o777)
                    func(path)
                else:
                    raise

            shutil.rmtree(path, onerror=handle_remove_readonly)
        else:
            shutil.rmtree(path)

    except OSError as e:
        raise FilesystemError(f"Failed to remove directory '{path}': {e}") from e


def make_executable(path: Union[str, Path]) -> None:
    """
    Set the owner executable bit on a file, leaving other bits untouched.

    Raises:
        OSError: If the permissions cannot be changed
    """
    path = Path(path)
    mode = path.stat().st_mode
    path.chmod(mode | stat.S_IXUSR)


__all__ = [
    "IS_WINDOWS",
    "IS_UNIX",
    "is_relative_to",
    "read_archive_entry",
    "extract_archive",
    "atomic_write",
    "safe_rmtree",
    "make_executable",
]
