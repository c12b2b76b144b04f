"""All queries related to stored user records.

Using the UserQueries class as a repository for user records. Allowed
directories are kept as a JSON list in a text column.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import dataclass, field

from filegate.common import AccessLevel

from .db_connection import Database

LOGGER = logging.getLogger(__name__)
LOGGER.setLevel(logging.DEBUG)


@dataclass
class UserRecord:
    """A stored user, exactly as persisted.

    :param email: Unique key, case-sensitive
    :param password_hash: bcrypt hash of the password
    :param access_level: Raw access level value
    :param allowed_directories: Absolute paths the user is scoped to
    """

    email: str
    password_hash: str
    access_level: int
    allowed_directories: list[str] = field(default_factory=list)


class UserQueries:
    """Repository for user records."""

    CREATE_USERS_TABLE = """
        CREATE TABLE IF NOT EXISTS users (
            email TEXT PRIMARY KEY,
            password_hash TEXT NOT NULL,
            access_level INTEGER NOT NULL DEFAULT -1, -- -1: none ... 3: admin
            allowed_directories TEXT NOT NULL DEFAULT '[]',
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );
        """

    COUNT_USERS = """SELECT COUNT(*) FROM users;"""

    COUNT_ADMINS = """SELECT COUNT(*) FROM users WHERE access_level = ?;"""

    GET_USER = """
        SELECT email, password_hash, access_level, allowed_directories
        FROM users WHERE email = ?;
        """

    LIST_USERS = """
        SELECT email, password_hash, access_level, allowed_directories
        FROM users ORDER BY created_at, email;
        """

    UPSERT_USER = """
        INSERT INTO users (email, password_hash, access_level, allowed_directories)
        VALUES (?, ?, ?, ?)
        ON CONFLICT(email) DO UPDATE SET
            password_hash = excluded.password_hash,
            access_level = excluded.access_level,
            allowed_directories = excluded.allowed_directories;
        """

    UPDATE_PASSWORD = """
        UPDATE users SET password_hash = ? WHERE email = ?;
        """

    DELETE_USER = """
        DELETE FROM users WHERE email = ?;
        """

    def __init__(self, database: Database) -> None:
        """Create the repository.

        :param database: Open database holding the users table
        """
        self.database = database

    @staticmethod
    def _to_record(row: tuple) -> UserRecord:
        email, password_hash, access_level, allowed_directories = row
        try:
            directories = json.loads(allowed_directories)
        except (TypeError, ValueError):
            LOGGER.warning("Corrupt allowed directories for %s, ignoring them", email)
            directories = []
        if not isinstance(directories, list):
            directories = []
        return UserRecord(
            email=email,
            password_hash=password_hash,
            access_level=access_level,
            allowed_directories=[str(directory) for directory in directories],
        )

    def initialize_tables(self) -> None:
        """Create the users table if it does not exist."""
        db = self.database.connection
        db.execute(UserQueries.CREATE_USERS_TABLE)
        db.commit()

    def count_users(self) -> int:
        """Return the number of stored users.

        Errors propagate: guessing zero here would open up the bootstrap path.

        :return: Number of users
        """
        result = self.database.connection.execute(UserQueries.COUNT_USERS).fetchone()
        return result[0] if result else 0

    def admin_present(self) -> bool:
        """Return whether at least one admin is stored."""
        result = self.database.connection.execute(
            UserQueries.COUNT_ADMINS,
            (int(AccessLevel.ADMIN),),
        ).fetchone()
        return bool(result and result[0] > 0)

    def get(self, email: str) -> UserRecord | None:
        """Fetch a user record by email.

        :param email: The user key
        :return: The record, or None if no such user exists
        """
        row = self.database.connection.execute(UserQueries.GET_USER, (email,)).fetchone()
        if row is None:
            return None
        return self._to_record(row)

    def list(self) -> list[UserRecord]:
        """Return every stored user record."""
        rows = self.database.connection.execute(UserQueries.LIST_USERS).fetchall()
        return [self._to_record(row) for row in rows]

    def upsert(self, record: UserRecord) -> bool:
        """Insert a user record, replacing any record with the same email.

        :param record: The record to store
        :return: True if the record was written
        """
        db = self.database.connection
        try:
            db.execute(
                UserQueries.UPSERT_USER,
                (
                    record.email,
                    record.password_hash,
                    int(record.access_level),
                    json.dumps(list(record.allowed_directories)),
                ),
            )
            db.commit()
        except sqlite3.Error as e:
            db.rollback()
            LOGGER.error("Error storing user %s: %s", record.email, e)
            return False
        return True

    def update_password(self, email: str, password_hash: str) -> bool:
        """Replace the password hash of an existing user.

        :param email: The user key
        :param password_hash: New bcrypt hash
        :return: True if a record was updated
        """
        db = self.database.connection
        try:
            cursor = db.execute(UserQueries.UPDATE_PASSWORD, (password_hash, email))
            db.commit()
        except sqlite3.Error as e:
            db.rollback()
            LOGGER.error("Error updating password for %s: %s", email, e)
            return False
        return cursor.rowcount > 0

    def remove(self, email: str) -> bool:
        """Delete the user record with the given email.

        :param email: The user key
        :return: True if a record was deleted
        """
        db = self.database.connection
        try:
            cursor = db.execute(UserQueries.DELETE_USER, (email,))
            db.commit()
        except sqlite3.Error as e:
            db.rollback()
            LOGGER.error("Error deleting user %s: %s", email, e)
            return False
        return cursor.rowcount > 0
