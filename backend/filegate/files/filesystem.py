"""OS-backed filesystem primitives used by the file manager.

None of these methods raise on an OS error. Failures are logged and
reported as a False or None result, leaving the decision of how to surface
them to the caller.
"""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class EntryStat:
    """Metadata for a single directory entry."""

    name: str
    size: int
    is_directory: bool
    extension: str
    modified_time: float


class LocalFilesystem:
    """Filesystem primitives operating directly on the local disk."""

    def create_directory(self, path: str | Path) -> bool:
        try:
            os.mkdir(path)
        except OSError as e:
            LOGGER.warning("Failed to create directory %s: %s", path, e)
            return False
        return True

    def list_entries(self, directory: str | Path) -> list[EntryStat] | None:
        """List a directory's entries with their metadata.

        ``os.scandir`` never yields ``.`` or ``..``.

        :param directory: Directory to list
        :return: Entries sorted by name, or None if the directory is unreadable
        """
        entries = []
        try:
            with os.scandir(directory) as iterator:
                for entry in iterator:
                    try:
                        info = entry.stat()
                    except OSError:
                        # dangling symlink, report the link itself
                        info = entry.stat(follow_symlinks=False)
                    is_directory = entry.is_dir()
                    entries.append(
                        EntryStat(
                            name=entry.name,
                            size=info.st_size,
                            is_directory=is_directory,
                            extension="" if is_directory else Path(entry.name).suffix.lstrip("."),
                            modified_time=info.st_mtime,
                        ),
                    )
        except OSError as e:
            LOGGER.warning("Failed to list directory %s: %s", directory, e)
            return None
        return sorted(entries, key=lambda entry: entry.name)

    def delete_file(self, path: str | Path) -> bool:
        try:
            os.unlink(path)
        except OSError as e:
            LOGGER.warning("Failed to delete file %s: %s", path, e)
            return False
        return True

    def delete_directory_recursive(self, path: str | Path) -> bool:
        """Delete a directory tree, children before their parents.

        Symlinks to directories are unlinked, never descended into.

        :param path: Directory to delete
        :return: True if the directory and all its descendants are gone
        """
        try:
            for current, directories, files in os.walk(path, topdown=False):
                for name in files:
                    os.unlink(os.path.join(current, name))
                for name in directories:
                    child = os.path.join(current, name)
                    if os.path.islink(child):
                        os.unlink(child)
                    else:
                        os.rmdir(child)
            os.rmdir(path)
        except OSError as e:
            LOGGER.warning("Failed to delete directory %s: %s", path, e)
            return False
        return True

    def rename(self, old_path: str | Path, new_path: str | Path) -> bool:
        try:
            os.rename(old_path, new_path)
        except OSError as e:
            LOGGER.warning("Failed to rename %s to %s: %s", old_path, new_path, e)
            return False
        return True

    def copy_stream(self, source: BinaryIO, destination: str | Path) -> bool:
        """Copy an incoming upload stream into a new file.

        :param source: Readable binary stream
        :param destination: Target file path
        :return: True if every byte was written
        """
        try:
            with open(destination, "wb") as target:
                shutil.copyfileobj(source, target)
        except OSError as e:
            LOGGER.warning("Failed to write upload to %s: %s", destination, e)
            return False
        return True
