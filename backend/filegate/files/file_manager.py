"""Authorization gate in front of every filesystem operation.

Each operation is a short-circuit conjunction of three checks, evaluated
before anything touches the disk:

1. the user's access level grants the needed capability,
2. the target canonicalizes to a path under the server root,
3. the target lies under one of the user's allowed directories (admins
   skip this check, their only allowed directory is the server root).

A refused operation returns a denied :class:`Outcome` and never mutates
anything. The checks and the delegated filesystem call are not atomic: a
path can change between the two. That window is accepted; the filesystem's
own semantics apply to whatever happens inside it.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO

from filegate.common import Outcome

from .filesystem import LocalFilesystem
from .models import DirectoryEntry, UploadResult
from .path_security import canonicalize, is_contained, same_parent_directory

if TYPE_CHECKING:
    from filegate.common import User

LOGGER = logging.getLogger(__name__)

OUTSIDE_SERVER_ROOT = "Path is outside the server root"
OUTSIDE_ALLOWED_DIRECTORIES = "Path is outside the allowed directories"


@dataclass(frozen=True)
class IncomingFile:
    """An uploaded file as handed over by the transport layer.

    :param filename: Name supplied by the client, may contain directories
    :param stream: Readable binary stream with the file contents
    """

    filename: str
    stream: BinaryIO


class FileManager:
    """Gated filesystem operations on behalf of one user."""

    def __init__(
        self,
        user: User,
        server_root: str | os.PathLike[str],
        filesystem: LocalFilesystem | None = None,
        strict_write_checks: bool = True,
    ) -> None:
        """Create a file manager for the current request.

        :param user: The authenticated user
        :param server_root: Root no operation may escape
        :param filesystem: Filesystem primitives, local disk by default
        :param strict_write_checks: Also require write capability for
            directory creation and uploads
        """
        self.user = user
        self.filesystem = filesystem or LocalFilesystem()
        self.strict_write_checks = strict_write_checks
        self._server_root = canonicalize(server_root)
        if self._server_root is None:
            LOGGER.error("Server root %s cannot be resolved, denying everything", server_root)

    def _deny(self, operation: str, path: str | os.PathLike[str], reason: str) -> Outcome:
        LOGGER.debug(
            "Denied %s on %s for %s: %s",
            operation,
            path,
            self.user.email,
            reason,
        )
        return Outcome.denied(reason)

    def _within_server_root(self, target: Path | None) -> bool:
        if target is None or self._server_root is None:
            return False
        return is_contained(self._server_root, target)

    def _within_allowed_directories(self, target: Path | None) -> bool:
        if self.user.can_manage_users:
            return True
        if target is None:
            return False
        for directory in self.user.allowed_directories:
            root = Path(directory)
            if root.is_absolute() and is_contained(root, target):
                return True
        return False

    def authorize(self, path: str | os.PathLike[str], must_exist: bool = True) -> bool:
        """Check server root containment and allowed directory scope.

        Capabilities are not part of this check.

        :param path: Target path
        :param must_exist: Whether the target has to exist already
        :return: True if the user may operate on this location
        """
        target = canonicalize(path, must_exist=must_exist)
        return self._within_server_root(target) and self._within_allowed_directories(
            target,
        )

    def create_directory(self, path: str | os.PathLike[str]) -> Outcome:
        """Create a single directory.

        :param path: Directory to create, its parent must exist
        :return: The outcome
        """
        if self.strict_write_checks and not self.user.can_write_files:
            return self._deny("create_directory", path, "Write permission required")

        target = canonicalize(path, must_exist=False)
        if not self._within_server_root(target):
            return self._deny("create_directory", path, OUTSIDE_SERVER_ROOT)
        if not self._within_allowed_directories(target):
            return self._deny("create_directory", path, OUTSIDE_ALLOWED_DIRECTORIES)

        if not self.filesystem.create_directory(target):
            return Outcome.failed(f"Could not create directory {path}")
        LOGGER.info("%s created directory %s", self.user.email, target)
        return Outcome.ok()

    def list_directory(self, path: str | os.PathLike[str]) -> Outcome:
        """List a directory.

        Entry locations are built from ``path`` as given, made absolute and
        normalized, not from its symlink-resolved form.

        :param path: Directory to list
        :return: The outcome, with a list of DirectoryEntry as value on success
        """
        if not self.user.can_read_files:
            return self._deny("list_directory", path, "Read permission required")

        target = canonicalize(path)
        if not self._within_server_root(target):
            return self._deny("list_directory", path, OUTSIDE_SERVER_ROOT)
        if not self._within_allowed_directories(target):
            return self._deny("list_directory", path, OUTSIDE_ALLOWED_DIRECTORIES)

        entries = self.filesystem.list_entries(target)
        if entries is None:
            return Outcome.failed(f"Could not list directory {path}")

        location = os.path.join(os.path.abspath(path), "")
        listing = []
        for entry in entries:
            full_location = location + entry.name
            if entry.is_directory:
                full_location += os.sep
            listing.append(
                DirectoryEntry(
                    name=entry.name,
                    size=entry.size,
                    is_directory=entry.is_directory,
                    extension=entry.extension,
                    last_modified_time=entry.modified_time,
                    full_location=full_location,
                    location_without_item_name=location,
                ),
            )
        return Outcome.ok(listing)

    def delete_item(self, path: str | os.PathLike[str]) -> Outcome:
        """Delete a file, or a directory with everything inside it.

        A symlink is removed itself, its target is left alone.

        :param path: Item to delete
        :return: The outcome
        """
        if not self.user.can_delete_files:
            return self._deny("delete_item", path, "Delete permission required")

        target = canonicalize(path)
        if not self._within_server_root(target):
            return self._deny("delete_item", path, OUTSIDE_SERVER_ROOT)
        if not self._within_allowed_directories(target):
            return self._deny("delete_item", path, OUTSIDE_ALLOWED_DIRECTORIES)

        # a symlink is deleted itself, so its own location must be in scope too
        location = canonicalize(path, must_exist=False)
        if location is None or not self._within_server_root(location):
            return self._deny("delete_item", path, OUTSIDE_SERVER_ROOT)
        if not self._within_allowed_directories(location):
            return self._deny("delete_item", path, OUTSIDE_ALLOWED_DIRECTORIES)
        if target == self._server_root:
            return self._deny("delete_item", path, "The server root cannot be deleted")

        if location.is_symlink() or not location.is_dir():
            deleted = self.filesystem.delete_file(location)
        else:
            deleted = self.filesystem.delete_directory_recursive(location)

        if not deleted:
            return Outcome.failed(f"Could not delete {path}")
        LOGGER.info("%s deleted %s", self.user.email, location)
        return Outcome.ok()

    def rename_item(
        self,
        old_path: str | os.PathLike[str],
        new_path: str | os.PathLike[str],
    ) -> Outcome:
        """Rename an item in place. Moving to another directory is refused.

        An existing item at new_path is never replaced.

        :param old_path: Existing item
        :param new_path: New path, in the same directory as old_path
        :return: The outcome
        """
        if not self.user.can_write_files:
            return self._deny("rename_item", old_path, "Write permission required")

        target = canonicalize(old_path)
        if not self._within_server_root(target):
            return self._deny("rename_item", old_path, OUTSIDE_SERVER_ROOT)
        if not same_parent_directory(os.fspath(old_path), os.fspath(new_path)):
            return self._deny(
                "rename_item",
                old_path,
                "Items can only be renamed within their directory",
            )

        source = canonicalize(old_path, must_exist=False)
        destination = canonicalize(new_path, must_exist=False)
        if not (self._within_server_root(source) and self._within_server_root(destination)):
            return self._deny("rename_item", old_path, OUTSIDE_SERVER_ROOT)
        if not (
            self._within_allowed_directories(target)
            and self._within_allowed_directories(destination)
        ):
            return self._deny("rename_item", old_path, OUTSIDE_ALLOWED_DIRECTORIES)
        if target == self._server_root:
            return self._deny("rename_item", old_path, "The server root cannot be renamed")

        if os.path.lexists(destination):
            return Outcome.failed(f"{new_path} already exists")

        if not self.filesystem.rename(source, destination):
            return Outcome.failed(f"Could not rename {old_path} to {new_path}")
        LOGGER.info("%s renamed %s to %s", self.user.email, source, destination)
        return Outcome.ok()

    def upload_files(
        self,
        destination: str | os.PathLike[str],
        incoming_files: Iterable[IncomingFile],
    ) -> Outcome:
        """Store uploaded files in a directory.

        Every file is copied independently, one failure does not stop the
        others. The outcome is a failure only when files were sent and none
        of them could be stored.

        :param destination: Existing directory to store the files in
        :param incoming_files: The uploaded files
        :return: The outcome, with a list of UploadResult as value
        """
        if self.strict_write_checks and not self.user.can_write_files:
            return self._deny("upload_files", destination, "Write permission required")

        target = canonicalize(destination)
        if not self._within_server_root(target):
            return self._deny("upload_files", destination, OUTSIDE_SERVER_ROOT)
        if not self._within_allowed_directories(target):
            return self._deny("upload_files", destination, OUTSIDE_ALLOWED_DIRECTORIES)
        if not target.is_dir():
            return Outcome.failed(f"{destination} is not a directory")

        results = []
        for incoming in incoming_files:
            name = os.path.basename(incoming.filename)
            file_path = target / name
            if name in ("", ".", "..") or file_path.is_symlink():
                LOGGER.warning("Refusing to store upload named %r", incoming.filename)
                results.append(UploadResult(filename=incoming.filename, success=False))
                continue
            stored = self.filesystem.copy_stream(incoming.stream, file_path)
            results.append(UploadResult(filename=name, success=stored))

        if results and not any(result.success for result in results):
            return Outcome.failed("None of the uploaded files could be stored", results)
        LOGGER.info(
            "%s uploaded %d file(s) to %s",
            self.user.email,
            sum(result.success for result in results),
            target,
        )
        return Outcome.ok(results)
