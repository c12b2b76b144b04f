"""Fundamental user data model for the file manager."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

LOGGER = logging.getLogger(__name__)


class AccessLevel(IntEnum):
    """Ordered capability tiers. Each tier includes everything below it."""

    NO_ACCESS = -1
    READ_ONLY = 0
    READ_WRITE = 1
    READ_WRITE_DELETE = 2
    ADMIN = 3

    @classmethod
    def parse(cls, value: Any) -> AccessLevel:
        """Convert a stored or submitted value into an access level.

        Anything that is not a known level is treated as ``NO_ACCESS``.

        :param value: Raw level, usually an int read from storage
        :return: The matching AccessLevel, or NO_ACCESS when unknown
        """
        if isinstance(value, bool):
            LOGGER.warning("Invalid access level %r, treating as no access", value)
            return cls.NO_ACCESS
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            LOGGER.warning("Invalid access level %r, treating as no access", value)
            return cls.NO_ACCESS


@dataclass(frozen=True)
class Capabilities:
    """What kind of operation a user may perform."""

    can_read: bool = False
    can_write: bool = False
    can_delete: bool = False
    can_manage_users: bool = False


NO_CAPABILITIES = Capabilities()


def capabilities_of(level: Any) -> Capabilities:
    """Derive capabilities from an access level.

    :param level: An AccessLevel, or any raw value; unknown values get no
        capabilities
    :return: The capabilities granted by the level
    """
    access_level = AccessLevel.parse(level)
    if access_level == AccessLevel.NO_ACCESS:
        return NO_CAPABILITIES
    return Capabilities(
        can_read=access_level >= AccessLevel.READ_ONLY,
        can_write=access_level >= AccessLevel.READ_WRITE,
        can_delete=access_level >= AccessLevel.READ_WRITE_DELETE,
        can_manage_users=access_level >= AccessLevel.ADMIN,
    )


@dataclass(frozen=True)
class User:
    """An authenticated identity, built fresh for every request.

    Use :meth:`create` rather than the constructor so that admins are always
    scoped to the server root.
    """

    email: str
    password_hash: str
    access_level: AccessLevel
    allowed_directories: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def create(
        cls,
        email: str,
        password_hash: str,
        access_level: Any,
        allowed_directories: Iterable[str],
        server_root: str,
    ) -> User:
        """Build a user, recomputing the allowed directories for admins.

        :param email: Unique user key
        :param password_hash: Opaque credential
        :param access_level: Raw or parsed access level
        :param allowed_directories: Stored allowed directories
        :param server_root: Configured server root
        :return: The user value
        """
        level = AccessLevel.parse(access_level)
        if level == AccessLevel.ADMIN:
            directories = frozenset({server_root})
        else:
            directories = frozenset(allowed_directories)
        return cls(
            email=email,
            password_hash=password_hash,
            access_level=level,
            allowed_directories=directories,
        )

    @property
    def capabilities(self) -> Capabilities:
        return capabilities_of(self.access_level)

    @property
    def can_read_files(self) -> bool:
        return self.capabilities.can_read

    @property
    def can_write_files(self) -> bool:
        return self.capabilities.can_write

    @property
    def can_delete_files(self) -> bool:
        return self.capabilities.can_delete

    @property
    def can_manage_users(self) -> bool:
        return self.capabilities.can_manage_users

    def __repr__(self) -> str:
        """Return a representation without the credential."""
        return f"User(email={self.email!r}, access_level={self.access_level.name})"
