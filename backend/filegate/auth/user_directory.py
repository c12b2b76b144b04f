"""Rules for creating, removing and looking up users.

The first user ever stored may be created without being logged in; that is
how the first administrator gets in. After that only users who can manage
users may add or remove accounts, and never their own.
"""

from __future__ import annotations

import logging
import os
import sqlite3
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from filegate.common import AccessLevel, Outcome, User
from filegate.files.path_security import canonicalize, is_within_root

from .models import UserSummary
from .queries import UserQueries, UserRecord

if TYPE_CHECKING:
    from .security_manager import SecurityManager

LOGGER = logging.getLogger(__name__)
LOGGER.setLevel(logging.DEBUG)


@dataclass
class NewUser:
    """Account details submitted for creation or update.

    :param email: Unique user key
    :param password: Plaintext password, hashed before storage
    :param access_level: Requested access level
    :param allowed_directories: Directories a non-admin is scoped to
    """

    email: str
    password: str
    access_level: Any
    allowed_directories: Iterable[str] = field(default_factory=list)


class UserDirectory:
    """User management on top of the user store."""

    def __init__(
        self,
        store: UserQueries,
        security_manager: SecurityManager,
        server_root: str | os.PathLike[str],
    ) -> None:
        """Create the directory.

        :param store: Repository holding the user records
        :param security_manager: Password hashing
        :param server_root: Root every allowed directory must lie under
        """
        self.store = store
        self.security_manager = security_manager
        self.server_root = os.fspath(server_root)

    def _deny(self, caller: User | None, action: str, reason: str) -> Outcome:
        LOGGER.debug(
            "Denied %s for %s: %s",
            action,
            caller.email if caller else "anonymous caller",
            reason,
        )
        return Outcome.denied(reason)

    def _user_from_record(self, record: UserRecord) -> User:
        return User.create(
            email=record.email,
            password_hash=record.password_hash,
            access_level=record.access_level,
            allowed_directories=record.allowed_directories,
            server_root=self.server_root,
        )

    def get_user(self, email: str) -> User | None:
        """Build the current User value for an email from storage.

        :param email: The user key
        :return: The user, or None if unknown or the store is unavailable
        """
        try:
            record = self.store.get(email)
        except sqlite3.Error as e:
            LOGGER.error("Error loading user %s: %s", email, e)
            return None
        if record is None:
            return None
        return self._user_from_record(record)

    def authenticate(self, email: str, password: str) -> User | None:
        """Check login credentials.

        :param email: The user key
        :param password: The plaintext password
        :return: The user if the password matches, None otherwise
        """
        user = self.get_user(email)
        if user is None:
            return None
        if not self.security_manager.verify_password(password, user.password_hash):
            LOGGER.debug("Wrong password for %s", email)
            return None
        return user

    def admin_present(self) -> bool:
        """Return whether any stored user is an admin."""
        try:
            return self.store.admin_present()
        except sqlite3.Error as e:
            LOGGER.error("Error checking for admin users: %s", e)
            return False

    def users_present(self) -> bool:
        """Return whether any user is stored, i.e. bootstrap is over.

        Errors propagate so that an unreadable store never looks empty.
        """
        return self.store.count_users() > 0

    def _validated_directories(
        self,
        level: AccessLevel,
        directories: Iterable[str],
    ) -> list[str] | None:
        if level == AccessLevel.ADMIN:
            directories = [self.server_root]

        validated: list[str] = []
        for directory in directories:
            if not is_within_root(self.server_root, directory):
                LOGGER.debug("Allowed directory %s is outside the server root", directory)
                return None
            canonical = str(canonicalize(directory))
            if canonical not in validated:
                validated.append(canonical)
        return validated

    def insert_user(self, caller: User | None, new_user: NewUser) -> Outcome:
        """Create a user, or replace the stored user with the same email.

        All allowed directories must exist under the server root. They are
        stored in canonical form; if any of them is invalid nothing is
        stored.

        :param caller: The authenticated user, None if not logged in
        :param new_user: The account to store
        :return: The outcome
        """
        try:
            user_count = self.store.count_users()
        except sqlite3.Error as e:
            LOGGER.error("Error counting users: %s", e)
            return Outcome.failed("User store is unavailable")

        if user_count > 0:
            if caller is None:
                return self._deny(caller, "insert_user", "Authentication required")
            if not caller.can_manage_users:
                return self._deny(caller, "insert_user", "User management permission required")
            if caller.email == new_user.email:
                return self._deny(
                    caller,
                    "insert_user",
                    "Cannot create account with same email as own",
                )
        else:
            LOGGER.info("No users stored yet, creating first user %s", new_user.email)

        level = AccessLevel.parse(new_user.access_level)
        directories = self._validated_directories(level, new_user.allowed_directories)
        if directories is None:
            return self._deny(
                caller,
                "insert_user",
                "Every allowed directory must exist inside the server root",
            )

        record = UserRecord(
            email=new_user.email,
            password_hash=self.security_manager.hash_password(new_user.password),
            access_level=int(level),
            allowed_directories=directories,
        )
        if not self.store.upsert(record):
            return Outcome.failed(f"Could not store user {new_user.email}")

        LOGGER.info("Stored user %s with access level %s", record.email, level.name)
        return Outcome.ok(self._user_from_record(record))

    def delete_user(self, caller: User | None, email: str) -> Outcome:
        """Delete another user's account.

        :param caller: The authenticated user
        :param email: The account to delete
        :return: The outcome
        """
        if caller is None:
            return self._deny(caller, "delete_user", "Authentication required")
        if not caller.can_manage_users:
            return self._deny(caller, "delete_user", "User management permission required")
        if caller.email == email:
            return self._deny(caller, "delete_user", "Cannot delete own account")

        if not self.store.remove(email):
            return Outcome.failed(f"User {email} could not be deleted")
        LOGGER.info("%s deleted user %s", caller.email, email)
        return Outcome.ok()

    def list_users(self, caller: User | None) -> Outcome:
        """List every user with their capabilities, for admins only.

        :param caller: The authenticated user
        :return: The outcome, with a list of UserSummary as value
        """
        if caller is None or not caller.can_manage_users:
            return self._deny(caller, "list_users", "User management permission required")

        try:
            records = self.store.list()
        except sqlite3.Error as e:
            LOGGER.error("Error listing users: %s", e)
            return Outcome.failed("User store is unavailable")
        return Outcome.ok(
            [UserSummary.from_user(self._user_from_record(record)) for record in records],
        )

    def change_password(self, caller: User | None, new_password: str) -> Outcome:
        """Change the caller's own password.

        :param caller: The authenticated user
        :param new_password: The new plaintext password
        :return: The outcome
        """
        if caller is None:
            return self._deny(caller, "change_password", "Authentication required")

        password_hash = self.security_manager.hash_password(new_password)
        if not self.store.update_password(caller.email, password_hash):
            return Outcome.failed("Password could not be changed")
        LOGGER.info("Password changed for %s", caller.email)
        return Outcome.ok()
