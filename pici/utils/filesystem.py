"""Filesystem utilities for pici.

Stash/unstash move a file out of the way with a rename and put it back
later. A rename on the same volume either happens completely or not at
all, so the original content is never half-copied.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pici.config.parser import ManifestWriteError, dump_json

logger = logging.getLogger("pici.filesystem")

BACKUP_SUFFIX = ".pici.backup"
STAGING_SUFFIX = ".pici.tmp"


class StashError(Exception):
    """A file could not be moved to or from its backup location."""

    def __init__(self, message: str, path: Path):
        self.path = path
        super().__init__(message)


@dataclass(frozen=True)
class FileBackup:
    """Record of a stashed file.

    Attributes:
        path: Absolute path of the original file
        backup_path: Where the original was moved to
        existed: Whether there was a file to move
    """

    path: Path
    backup_path: Path
    existed: bool


def _is_file_or_link(path: Path) -> bool:
    return path.is_symlink() or path.is_file()


def backup_path_for(path: Path) -> Path:
    """Get the backup location for a file."""
    return path.with_name(path.name + BACKUP_SUFFIX)


def staging_path_for(path: Path) -> Path:
    """Get the temporary staging location for a file."""
    return path.with_name(path.name + STAGING_SUFFIX)


def stash_file(path: Path) -> FileBackup:
    """Move a file to its backup location.

    Args:
        path: File to stash

    Returns:
        FileBackup describing what was done

    Raises:
        StashError: If the file exists but could not be moved
    """
    # A symlink is moved as a link, never followed.
    target = Path(os.path.abspath(path))
    backup = backup_path_for(target)

    if not _is_file_or_link(target):
        return FileBackup(path=target, backup_path=backup, existed=False)

    try:
        os.replace(target, backup)
    except OSError as e:
        raise StashError(f"Cannot stash {target}: {e}", target) from e

    logger.debug("Stashed %s to %s", target, backup)
    return FileBackup(path=target, backup_path=backup, existed=True)


def unstash_file(backup: FileBackup) -> None:
    """Move a stashed file back to its original location.

    Does nothing if there was no original file or the backup has already
    gone. Any file currently at the original path is replaced.

    Raises:
        StashError: If the backup could not be moved back
    """
    if not backup.existed or not _is_file_or_link(backup.backup_path):
        return

    try:
        if _is_file_or_link(backup.path):
            backup.path.unlink()
        os.replace(backup.backup_path, backup.path)
    except OSError as e:
        raise StashError(f"Cannot restore {backup.path}: {e}", backup.path) from e

    logger.debug("Restored %s from %s", backup.path, backup.backup_path)


def discard_file(path: Path) -> bool:
    """Remove a file written during staging.

    Args:
        path: File path to remove

    Returns:
        True if the file was removed, False if it didn't exist
    """
    if not _is_file_or_link(path):
        return False
    path.unlink()
    logger.debug("Removed %s", path)
    return True


def stage_json(path: Path, data: dict[str, Any]) -> Path:
    """Write JSON next to a file without touching the file itself.

    Args:
        path: The file that will eventually be replaced
        data: Data to serialize

    Returns:
        Path of the staged temporary file

    Raises:
        ManifestWriteError: If the temporary file cannot be written
    """
    temp_path = staging_path_for(path)
    try:
        temp_path.write_text(dump_json(data), encoding="utf-8")
    except OSError as e:
        raise ManifestWriteError(f"Cannot write {temp_path}: {e}", temp_path) from e
    return temp_path


def commit_staged(temp_path: Path, path: Path) -> None:
    """Rename a staged file into its final location.

    Raises:
        ManifestWriteError: If the rename fails
    """
    try:
        os.replace(temp_path, path)
    except OSError as e:
        raise ManifestWriteError(f"Cannot write {path}: {e}", path) from e
