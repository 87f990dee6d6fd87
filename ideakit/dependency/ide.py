"""
Helpers for reading an IDE distribution laid out on disk.
"""

from pathlib import Path
from typing import Union

from ideakit.core.exceptions import InvalidLocalPathError

BUILD_FILE = "build.txt"


def ide_directory(path: Union[str, Path]) -> Path:
    """
    Map a user-supplied IDE path to the distribution root.

    macOS application bundles keep the distribution under ``Contents``.
    """
    path = Path(path)
    if path.name.endswith(".app"):
        return path / "Contents"
    return path


def read_build_number(directory: Path) -> str:
    """
    Read the build number of an IDE distribution.

    ``Resources/build.txt`` (macOS bundle layout) wins over ``build.txt``.

    Raises:
        InvalidLocalPathError: If neither file exists
    """
    for candidate in (directory / "Resources" / BUILD_FILE, directory / BUILD_FILE):
        if candidate.is_file():
            return candidate.read_text(encoding="utf-8").strip()
    raise InvalidLocalPathError(
        f"Cannot read IDE build number: no {BUILD_FILE} in '{directory}'"
    )
