"""
Concurrent access control for ideakit.

Extracted IDE trees and downloaded artifacts live in cache directories that
several build processes may share. This module provides file-based locks
around the operations that write into them.

Usage:
    from ideakit.core.locking import LockManager

    lock_manager = LockManager()
    with lock_manager.extraction_lock(target_dir, timeout=300):
        # Extract and mark the tree valid
        pass
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from filelock import FileLock, Timeout as LockTimeout

from ideakit.core.directory import get_global_cache_dir

logger = logging.getLogger(__name__)


def _safe_name(key: str) -> str:
    return key.replace("/", "-").replace("\\", "-").replace(":", "-")


class LockManager:
    """
    Manages locks for ideakit resources.

    Uses file-based locking with the `filelock` library for cross-platform
    compatibility and automatic cleanup on process death.

    Attributes:
        lock_dir: Directory where artifact download lock files are stored
    """

    def __init__(self, lock_dir: Optional[Path] = None):
        """
        Initialize lock manager.

        Args:
            lock_dir: Directory for artifact lock files (default: global cache/lock/)
        """
        if lock_dir is None:
            lock_dir = get_global_cache_dir() / "lock"

        self.lock_dir = Path(lock_dir)

    @staticmethod
    def extraction_lock_path(target: Path) -> Path:
        """Lock file guarding an extracted tree, stored beside it."""
        return target.parent / f"{target.name}.lock"

    @contextmanager
    def extraction_lock(self, target: Path, timeout: float = 300):
        """
        Acquire the lock guarding an extracted archive tree.

        The lock file sits next to the tree so every process sharing the cache
        directory sees the same lock, regardless of its own lock_dir.

        Args:
            target: Extracted tree directory
            timeout: Maximum wait time in seconds (default: 300 for large archives)

        Yields:
            None

        Raises:
            LockTimeout: If lock can't be acquired within timeout
        """
        lock_path = self.extraction_lock_path(target)
        lock_path.parent.mkdir(parents=True, exist_ok=True)
        lock = FileLock(lock_path, timeout=timeout)

        try:
            with lock:
                logger.debug(f"Acquired extraction lock: {lock_path}")
                yield
                logger.debug(f"Released extraction lock: {lock_path}")
        except LockTimeout as e:
            logger.error(
                f"Could not acquire extraction lock for {target} after {timeout}s. "
                "Another process may be extracting this archive."
            )
            raise LockTimeout(
                f"Could not acquire extraction lock for {target} after {timeout}s. "
                "Another process may be extracting this archive."
            ) from e

    @contextmanager
    def artifact_lock(self, artifact_id: str, timeout: float = 300):
        """
        Acquire lock for a specific repository artifact download.

        Args:
            artifact_id: Unique artifact identifier (e.g. Maven coordinates)
            timeout: Maximum wait time in seconds

        Yields:
            None

        Raises:
            LockTimeout: If lock can't be acquired within timeout
        """
        self.lock_dir.mkdir(parents=True, exist_ok=True)
        lock_path = self.lock_dir / f"artifact-{_safe_name(artifact_id)}.lock"
        lock = FileLock(lock_path, timeout=timeout)

        try:
            with lock:
                logger.debug(f"Acquired artifact lock: {lock_path}")
                yield
                logger.debug(f"Released artifact lock: {lock_path}")
        except LockTimeout as e:
            logger.error(
                f"Could not acquire artifact lock for {artifact_id} after {timeout}s. "
                "Another process may be downloading this artifact."
            )
            raise LockTimeout(
                f"Could not acquire artifact lock for {artifact_id} after {timeout}s. "
                "Another process may be downloading this artifact."
            ) from e


__all__ = [
    "LockManager",
    "LockTimeout",
]
