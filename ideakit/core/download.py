"""
Network download manager with progress tracking and retry logic.

This module provides robust downloading capabilities with:
- HTTP/HTTPS downloads with TLS verification
- Resume of partial downloads (using Range headers on a ``.part`` file)
- Progress reporting (bytes, percentage, speed, ETA)
- Retry logic with exponential backoff
- Atomic publication: the destination only appears once complete
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

import requests
from requests.exceptions import RequestException

from ideakit.core.exceptions import ArtifactNotFoundError, DownloadError

logger = logging.getLogger(__name__)


@dataclass
class DownloadProgress:
    """Progress information for a download."""

    bytes_downloaded: int
    total_bytes: int
    percentage: float
    speed_bps: float  # bytes per second
    eta_seconds: float  # estimated time remaining

    def __str__(self) -> str:
        return format_progress(self)


def partial_path(destination: Path) -> Path:
    """Path of the in-progress file for a destination."""
    return destination.with_name(destination.name + ".part")


def download_file(
    url: str,
    destination: Path,
    progress_callback: Optional[Callable[[DownloadProgress], None]] = None,
    resume: bool = True,
    timeout: int = 30,
    max_retries: int = 3,
) -> Path:
    """
    Download file from URL to destination with retry logic.

    Data is streamed into ``<destination>.part`` and renamed onto the
    destination once the transfer completes, so an interrupted download never
    leaves a truncated file at the destination.

    Args:
        url: URL to download from
        destination: Local path to save file
        progress_callback: Optional callback for progress updates
        resume: Whether to resume a partial ``.part`` file
        timeout: Request timeout in seconds
        max_retries: Maximum number of retry attempts

    Returns:
        Path to downloaded file

    Raises:
        ArtifactNotFoundError: If the server answers 404 (never retried)
        DownloadError: If download fails after retries
        ValueError: If URL or destination is invalid

    Example:
        >>> url = "https://example.com/ideaIC-2022.3.zip"
        >>> download_file(url, Path("cache/ideaIC-2022.3.zip"))
    """
    if not url:
        raise ValueError("URL cannot be empty")

    if not destination:
        raise ValueError("Destination path cannot be empty")

    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)
    part = partial_path(destination)

    for attempt in range(max_retries):
        resume_from = 0
        if resume and part.exists():
            resume_from = part.stat().st_size
            logger.info(f"Resuming download from byte {resume_from}")
        elif part.exists():
            part.unlink()

        try:
            _download_with_progress(
                url=url,
                part=part,
                resume_from=resume_from,
                progress_callback=progress_callback,
                timeout=timeout,
            )
            part.replace(destination)
            logger.info(f"Download complete: {destination}")
            return destination
        except RequestException as e:
            if attempt == max_retries - 1:
                raise DownloadError(
                    f"Download failed after {max_retries} attempts: {e}"
                ) from e

            backoff_seconds = 2**attempt
            logger.warning(
                f"Download attempt {attempt + 1} failed: {e}. "
                f"Retrying in {backoff_seconds}s..."
            )
            time.sleep(backoff_seconds)

    raise DownloadError("Download failed for unknown reason")


def _download_with_progress(
    url: str,
    part: Path,
    resume_from: int,
    progress_callback: Optional[Callable[[DownloadProgress], None]],
    timeout: int,
) -> None:
    """
    Perform download with streaming and progress updates.

    Raises:
        ArtifactNotFoundError: If the server answers 404
        RequestException: If HTTP request fails
    """
    headers = {}
    if resume_from > 0:
        headers["Range"] = f"bytes={resume_from}-"

    logger.info(f"Downloading from {url}")

    response = requests.get(
        url, headers=headers, stream=True, timeout=timeout, allow_redirects=True
    )
    if response.status_code == 404:
        raise ArtifactNotFoundError(f"Not found: {url}")
    response.raise_for_status()

    # Server ignored the Range header, start over
    if resume_from > 0 and response.status_code != 206:
        resume_from = 0

    content_length = response.headers.get("content-length")
    if content_length:
        total_size = int(content_length) + resume_from
    else:
        total_size = 0

    mode = "ab" if resume_from > 0 else "wb"

    downloaded = resume_from
    start_time = time.time()
    last_progress_time = start_time

    with open(part, mode) as f:
        for chunk in response.iter_content(chunk_size=8192):
            if not chunk:
                continue
            f.write(chunk)
            downloaded += len(chunk)

            # Report progress at most twice per second
            current_time = time.time()
            if progress_callback and (
                current_time - last_progress_time >= 0.5 or downloaded == total_size
            ):
                elapsed = current_time - start_time
                speed = (downloaded - resume_from) / elapsed if elapsed > 0 else 0
                remaining = total_size - downloaded if total_size > 0 else 0
                eta = remaining / speed if speed > 0 else 0

                progress_callback(
                    DownloadProgress(
                        bytes_downloaded=downloaded,
                        total_bytes=total_size if total_size > 0 else downloaded,
                        percentage=(downloaded / total_size * 100)
                        if total_size > 0
                        else 0,
                        speed_bps=speed,
                        eta_seconds=eta,
                    )
                )
                last_progress_time = current_time


def format_progress(progress: DownloadProgress) -> str:
    """
    Format progress for display.

    Example:
        >>> progress = DownloadProgress(52428800, 104857600, 50.0, 1048576, 50)
        >>> print(format_progress(progress))
        50.0/100.0 MB (50.0%) at 1.0 MB/s ETA: 50s
    """
    mb_downloaded = progress.bytes_downloaded / 1024 / 1024
    mb_total = progress.total_bytes / 1024 / 1024
    speed_mbps = progress.speed_bps / 1024 / 1024

    if progress.total_bytes > 0:
        return (
            f"{mb_downloaded:.1f}/{mb_total:.1f} MB "
            f"({progress.percentage:.1f}%) "
            f"at {speed_mbps:.1f} MB/s "
            f"ETA: {progress.eta_seconds:.0f}s"
        )
    return f"{mb_downloaded:.1f} MB at {speed_mbps:.1f} MB/s"
