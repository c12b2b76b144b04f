"""Tests for user management rules and the bootstrap path."""

import os
import sqlite3
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from filegate.auth import NewUser, SecurityManager, UserDirectory, UserQueries
from filegate.common import AccessLevel, User

from conftest import TEST_PASSWORD


def new_user(
    email: str,
    level: AccessLevel | int = AccessLevel.READ_ONLY,
    directories: list[str | Path] | None = None,
) -> NewUser:
    return NewUser(
        email=email,
        password=TEST_PASSWORD,
        access_level=level,
        allowed_directories=[str(directory) for directory in directories or []],
    )


@pytest.fixture
def admin(user_directory: UserDirectory) -> User:
    """Bootstrap the first admin."""
    outcome = user_directory.insert_user(None, new_user("admin@example.com", AccessLevel.ADMIN))
    assert outcome.is_ok
    return outcome.value


class TestBootstrap:
    def test_first_user_needs_no_caller(
        self,
        user_directory: UserDirectory,
        user_queries: UserQueries,
    ) -> None:
        assert not user_directory.users_present()

        outcome = user_directory.insert_user(None, new_user("first@example.com"))

        assert outcome.is_ok
        assert user_directory.users_present()
        assert user_queries.count_users() == 1

    def test_anonymous_insert_refused_afterwards(
        self,
        user_directory: UserDirectory,
        user_queries: UserQueries,
        admin: User,
    ) -> None:
        outcome = user_directory.insert_user(None, new_user("second@example.com"))

        assert outcome.is_denied
        assert user_queries.get("second@example.com") is None

    def test_unreadable_store_fails_instead_of_bootstrapping(
        self,
        security_manager: SecurityManager,
        server_root: Path,
    ) -> None:
        store = MagicMock(spec=UserQueries)
        store.count_users.side_effect = sqlite3.OperationalError("disk I/O error")
        directory = UserDirectory(store, security_manager, server_root)

        outcome = directory.insert_user(None, new_user("intruder@example.com", AccessLevel.ADMIN))

        assert outcome.is_failed
        store.upsert.assert_not_called()


class TestInsertUser:
    def test_admin_adds_user(
        self,
        user_directory: UserDirectory,
        server_root: Path,
        admin: User,
    ) -> None:
        alice_dir = server_root / "data" / "alice"

        outcome = user_directory.insert_user(
            admin,
            new_user("alice@example.com", AccessLevel.READ_WRITE, [alice_dir]),
        )

        assert outcome.is_ok
        alice = user_directory.get_user("alice@example.com")
        assert alice is not None
        assert alice.access_level is AccessLevel.READ_WRITE
        assert alice.allowed_directories == frozenset({str(alice_dir)})

    def test_password_is_hashed(
        self,
        user_directory: UserDirectory,
        user_queries: UserQueries,
        admin: User,
    ) -> None:
        user_directory.insert_user(admin, new_user("alice@example.com"))

        stored = user_queries.get("alice@example.com")
        assert stored is not None
        assert stored.password_hash != TEST_PASSWORD

    def test_non_admin_is_denied(
        self,
        user_directory: UserDirectory,
        user_queries: UserQueries,
        admin: User,
    ) -> None:
        user_directory.insert_user(
            admin,
            new_user("deleter@example.com", AccessLevel.READ_WRITE_DELETE),
        )
        deleter = user_directory.get_user("deleter@example.com")

        outcome = user_directory.insert_user(deleter, new_user("friend@example.com"))

        assert outcome.is_denied
        assert user_queries.get("friend@example.com") is None

    def test_admin_cannot_overwrite_self(
        self,
        user_directory: UserDirectory,
        admin: User,
    ) -> None:
        outcome = user_directory.insert_user(
            admin,
            new_user("admin@example.com", AccessLevel.READ_ONLY),
        )

        assert outcome.is_denied
        assert user_directory.get_user("admin@example.com").access_level is AccessLevel.ADMIN

    def test_one_invalid_directory_rejects_everything(
        self,
        user_directory: UserDirectory,
        user_queries: UserQueries,
        server_root: Path,
        outside_dir: Path,
        admin: User,
    ) -> None:
        outcome = user_directory.insert_user(
            admin,
            new_user(
                "mallory@example.com",
                AccessLevel.READ_WRITE,
                [server_root / "data" / "alice", outside_dir],
            ),
        )

        assert outcome.is_denied
        assert user_queries.get("mallory@example.com") is None
        assert user_queries.count_users() == 1

    def test_missing_directory_is_invalid(
        self,
        user_directory: UserDirectory,
        server_root: Path,
        admin: User,
    ) -> None:
        outcome = user_directory.insert_user(
            admin,
            new_user("bob@example.com", AccessLevel.READ_ONLY, [server_root / "nope"]),
        )
        assert outcome.is_denied

    def test_directories_are_stored_canonical(
        self,
        user_directory: UserDirectory,
        user_queries: UserQueries,
        server_root: Path,
        admin: User,
    ) -> None:
        bob_dir = server_root / "data" / "bob"
        user_directory.insert_user(
            admin,
            new_user(
                "bob@example.com",
                AccessLevel.READ_ONLY,
                [os.path.join(server_root, "data", "alice", "..", "bob"), bob_dir],
            ),
        )

        stored = user_queries.get("bob@example.com")
        assert stored is not None
        assert stored.allowed_directories == [str(bob_dir)]

    def test_admin_directories_become_server_root(
        self,
        user_directory: UserDirectory,
        user_queries: UserQueries,
        server_root: Path,
        outside_dir: Path,
        admin: User,
    ) -> None:
        """An admin's submitted directories are replaced, not validated."""
        outcome = user_directory.insert_user(
            admin,
            new_user("admin2@example.com", AccessLevel.ADMIN, [outside_dir]),
        )

        assert outcome.is_ok
        assert outcome.value.allowed_directories == frozenset({str(server_root)})
        assert user_queries.get("admin2@example.com").allowed_directories == [str(server_root)]

    def test_unknown_level_is_stored_as_no_access(
        self,
        user_directory: UserDirectory,
        admin: User,
    ) -> None:
        outcome = user_directory.insert_user(admin, new_user("odd@example.com", 17))

        assert outcome.is_ok
        assert user_directory.get_user("odd@example.com").access_level is AccessLevel.NO_ACCESS

    def test_existing_email_is_replaced(
        self,
        user_directory: UserDirectory,
        user_queries: UserQueries,
        server_root: Path,
        admin: User,
    ) -> None:
        user_directory.insert_user(admin, new_user("alice@example.com", AccessLevel.READ_ONLY))
        user_directory.insert_user(
            admin,
            new_user(
                "alice@example.com",
                AccessLevel.READ_WRITE,
                [server_root / "data" / "alice"],
            ),
        )

        assert user_queries.count_users() == 2
        assert user_directory.get_user("alice@example.com").access_level is AccessLevel.READ_WRITE


class TestDeleteUser:
    def test_admin_deletes_other_user(
        self,
        user_directory: UserDirectory,
        admin: User,
    ) -> None:
        user_directory.insert_user(admin, new_user("alice@example.com"))

        assert user_directory.delete_user(admin, "alice@example.com").is_ok
        assert user_directory.get_user("alice@example.com") is None

    def test_self_delete_is_denied(
        self,
        user_directory: UserDirectory,
        admin: User,
    ) -> None:
        assert user_directory.delete_user(admin, "admin@example.com").is_denied
        assert user_directory.get_user("admin@example.com") is not None

    def test_non_admin_is_denied(
        self,
        user_directory: UserDirectory,
        admin: User,
    ) -> None:
        user_directory.insert_user(admin, new_user("alice@example.com", AccessLevel.READ_WRITE))
        alice = user_directory.get_user("alice@example.com")

        assert user_directory.delete_user(alice, "admin@example.com").is_denied
        assert user_directory.get_user("admin@example.com") is not None

    def test_anonymous_is_denied(self, user_directory: UserDirectory, admin: User) -> None:
        assert user_directory.delete_user(None, "admin@example.com").is_denied

    def test_unknown_user_fails(self, user_directory: UserDirectory, admin: User) -> None:
        assert user_directory.delete_user(admin, "ghost@example.com").is_failed


class TestAccountQueries:
    def test_authenticate(self, user_directory: UserDirectory, admin: User) -> None:
        assert user_directory.authenticate("admin@example.com", TEST_PASSWORD) == admin
        assert user_directory.authenticate("admin@example.com", "wrong password") is None
        assert user_directory.authenticate("ghost@example.com", TEST_PASSWORD) is None

    def test_admin_present(self, user_directory: UserDirectory) -> None:
        user_directory.insert_user(None, new_user("reader@example.com"))
        assert not user_directory.admin_present()

    def test_list_users(self, user_directory: UserDirectory, admin: User) -> None:
        user_directory.insert_user(
            admin,
            new_user("deleter@example.com", AccessLevel.READ_WRITE_DELETE),
        )

        outcome = user_directory.list_users(admin)

        assert outcome.is_ok
        summaries = {summary.email: summary for summary in outcome.value}
        assert summaries["admin@example.com"].can_add_users
        deleter = summaries["deleter@example.com"]
        assert deleter.can_read_files
        assert deleter.can_write_files
        assert deleter.can_delete_files
        assert not deleter.can_add_users

    def test_list_users_requires_admin(
        self,
        user_directory: UserDirectory,
        admin: User,
    ) -> None:
        user_directory.insert_user(admin, new_user("alice@example.com"))
        alice = user_directory.get_user("alice@example.com")

        assert user_directory.list_users(alice).is_denied
        assert user_directory.list_users(None).is_denied

    def test_change_password(self, user_directory: UserDirectory, admin: User) -> None:
        assert user_directory.change_password(admin, "a brand new password").is_ok

        assert user_directory.authenticate("admin@example.com", TEST_PASSWORD) is None
        assert user_directory.authenticate("admin@example.com", "a brand new password")
