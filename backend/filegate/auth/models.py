"""Models for auth-related requests and responses."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from filegate.common import User


class UserResponse(BaseModel):
    """Data structure representing a user.

    :param str email: The email of the user
    :param int access_level: The access level of the user
    :param list allowed_directories: Directories the user is scoped to
    """

    email: str
    access_level: int
    allowed_directories: list[str]

    @classmethod
    def from_user(cls, user: User) -> UserResponse:
        """Create UserResponse from User.

        :param user: User instance
        :return: UserResponse instance
        """
        return cls(
            email=user.email,
            access_level=int(user.access_level),
            allowed_directories=sorted(user.allowed_directories),
        )


class UserSummary(BaseModel):
    """A user as shown in the admin user list.

    :param email: The email of the user
    :param access_level: The access level of the user
    :param can_read_files: Whether the user can list directories
    :param can_write_files: Whether the user can create and rename items
    :param can_delete_files: Whether the user can delete items
    :param can_add_users: Whether the user can manage other users
    """

    email: str
    access_level: int
    can_read_files: bool
    can_write_files: bool
    can_delete_files: bool
    can_add_users: bool

    @classmethod
    def from_user(cls, user: User) -> UserSummary:
        capabilities = user.capabilities
        return cls(
            email=user.email,
            access_level=int(user.access_level),
            can_read_files=capabilities.can_read,
            can_write_files=capabilities.can_write,
            can_delete_files=capabilities.can_delete,
            can_add_users=capabilities.can_manage_users,
        )


class CreateUserRequest(BaseModel):
    """Request body for creating or updating a user.

    :param email: The user key
    :param password: Plaintext password
    :param access_level: Requested access level
    :param allowed_directories: Directories to scope a non-admin to
    """

    email: str = Field(min_length=1)
    password: str
    access_level: int
    allowed_directories: list[str] = Field(default_factory=list)


class LoginResponse(BaseModel):
    """Response model for login requests.

    :param access_token: The JWT access token
    :param user: The authenticated user information
    """

    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class SetupStatus(BaseModel):
    """Whether the first account still has to be created."""

    users_present: bool
    admin_present: bool


class MessageResponse(BaseModel):
    message: str
