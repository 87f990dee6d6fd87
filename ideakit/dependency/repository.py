"""
Maven repository access.

Provides the coordinate value type used throughout the resolver and the
default ArtifactDownloader implementation. Files are mirrored under a local
downloads directory using the same layout as the remote repository:

    <repo>/<group as path>/<name>/<version>/<name>-<version>[-<classifier>].<ext>

Supports:
  - https://, http:// repositories (via requests, with retries)
  - file:///... repositories (local mirrors, offline tests)
"""

import logging
import shutil
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional
from urllib.parse import urlparse
from urllib.request import url2pathname

import requests
from requests.exceptions import RequestException

from ideakit.core.download import DownloadProgress, download_file, partial_path
from ideakit.core.exceptions import ArtifactNotFoundError, DownloadError
from ideakit.core.interfaces import ArtifactDownloader
from ideakit.core.locking import LockManager

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MavenCoordinates:
    """Maven artifact coordinates."""

    group: str
    name: str
    version: str
    classifier: Optional[str] = None
    extension: Optional[str] = None  # None = use the POM packaging

    def __str__(self) -> str:
        text = f"{self.group}:{self.name}:{self.version}"
        if self.classifier:
            text += f":{self.classifier}"
        if self.extension:
            text += f"@{self.extension}"
        return text

    def directory_path(self) -> str:
        """Repository-relative directory holding this version's files."""
        return f"{self.group.replace('.', '/')}/{self.name}/{self.version}"

    def file_name(self, extension: str) -> str:
        suffix = f"-{self.classifier}" if self.classifier else ""
        return f"{self.name}-{self.version}{suffix}.{extension}"

    def relative_path(self, extension: str) -> str:
        """Repository-relative path of the artifact file."""
        return f"{self.directory_path()}/{self.file_name(extension)}"

    def pom_path(self) -> str:
        return f"{self.directory_path()}/{self.name}-{self.version}.pom"


def _log_progress(progress: DownloadProgress) -> None:
    logger.debug(f"Downloading: {progress}")


def _is_file_url(url: str) -> bool:
    return url.startswith("file:")


def _file_url_to_path(url: str) -> Path:
    return Path(url2pathname(urlparse(url).path))


class MavenDownloader(ArtifactDownloader):
    """
    Downloads artifacts from Maven-layout repositories into a local mirror.

    Release files already present in the mirror are reused. Snapshot files
    are fetched again on every call because their content changes under the
    same name.

    Example:
        >>> downloader = MavenDownloader(Path("~/.ideakit/downloads").expanduser())
        >>> coords = MavenCoordinates("com.jetbrains.intellij.idea", "ideaIC", "2022.3",
        ...                           extension="zip")
        >>> downloader.download(coords, "https://www.jetbrains.com/intellij-repository/releases")
        [PosixPath('.../ideaIC/2022.3/ideaIC-2022.3.zip')]
    """

    def __init__(
        self,
        downloads_dir: Path,
        lock_manager: Optional[LockManager] = None,
        timeout: int = 30,
        max_retries: int = 3,
        lock_timeout: float = 300,
    ):
        self.downloads_dir = Path(downloads_dir)
        self.lock_manager = lock_manager or LockManager(self.downloads_dir / ".lock")
        self.timeout = timeout
        self.max_retries = max_retries
        self.lock_timeout = lock_timeout

    def download(
        self, coordinates: MavenCoordinates, repository_url: str
    ) -> List[Path]:
        """
        Download the file matching the coordinates.

        Returns:
            ``[path]`` when found, ``[]`` when the repository has no such file

        Raises:
            DownloadError: On network or server failures
        """
        repository_url = repository_url.rstrip("/")
        extension = coordinates.extension or self._packaging(coordinates, repository_url)
        if extension is None:
            logger.debug(f"No POM found for {coordinates} in {repository_url}")
            return []

        relative = coordinates.relative_path(extension)
        destination = self.downloads_dir / relative
        url = f"{repository_url}/{relative}"
        snapshot = coordinates.version.endswith("-SNAPSHOT")

        with self.lock_manager.artifact_lock(f"{coordinates}@{extension}", self.lock_timeout):
            if destination.exists() and not snapshot:
                logger.debug(f"Using cached artifact: {destination}")
                return [destination]

            try:
                self._fetch(url, destination)
            except ArtifactNotFoundError:
                logger.debug(f"Artifact not found: {url}")
                return []

        return [destination]

    def _fetch(self, url: str, destination: Path) -> None:
        if _is_file_url(url):
            source = _file_url_to_path(url)
            if not source.is_file():
                raise ArtifactNotFoundError(f"Not found: {url}")
            destination.parent.mkdir(parents=True, exist_ok=True)
            part = partial_path(destination)
            try:
                shutil.copyfile(source, part)
                part.replace(destination)
            except OSError as e:
                raise DownloadError(f"Failed to copy {url}: {e}") from e
            return

        download_file(
            url,
            destination,
            timeout=self.timeout,
            max_retries=self.max_retries,
            progress_callback=_log_progress,
        )

    def _packaging(
        self, coordinates: MavenCoordinates, repository_url: str
    ) -> Optional[str]:
        """
        Read the ``<packaging>`` of an artifact's POM.

        Returns:
            Packaging extension ('jar' when the POM does not declare one),
            or None when the POM does not exist
        """
        url = f"{repository_url}/{coordinates.pom_path()}"
        content = self._read_text(url)
        if content is None:
            return None

        try:
            root = ET.fromstring(content)
        except ET.ParseError as e:
            raise DownloadError(f"Invalid POM at {url}: {e}") from e

        for element in root.iter():
            # Tags carry the POM namespace, e.g. '{http://maven.apache.org/POM/4.0.0}packaging'
            if element.tag.rsplit("}", 1)[-1] == "packaging" and element.text:
                packaging = element.text.strip()
                return "jar" if packaging in ("pom", "bundle") else packaging
        return "jar"

    def _read_text(self, url: str) -> Optional[str]:
        if _is_file_url(url):
            path = _file_url_to_path(url)
            return path.read_text(encoding="utf-8") if path.is_file() else None

        try:
            response = requests.get(url, timeout=self.timeout)
        except RequestException as e:
            raise DownloadError(f"Failed to fetch {url}: {e}") from e
        if response.status_code == 404:
            return None
        try:
            response.raise_for_status()
        except RequestException as e:
            raise DownloadError(f"Failed to fetch {url}: {e}") from e
        return response.text
