"""Authentication and user management routes for the FastAPI application.

Provides endpoints for login, logout, account management and the admin
user list.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Form, HTTPException, status

from filegate.common import User
from filegate.responses import raise_for_outcome

from .models import (
    CreateUserRequest,
    LoginResponse,
    MessageResponse,
    SetupStatus,
    UserResponse,
    UserSummary,
)
from .user_directory import NewUser, UserDirectory
from .validation import Validate

LOG = logging.getLogger(__name__)
LOG.setLevel(logging.DEBUG)


def _login(
    user_directory: UserDirectory,
    validate: Validate,
    email: str,
    password: str,
) -> LoginResponse:
    user = user_directory.authenticate(email, password)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    access_token = validate.security_manager.create_access_token(user)
    LOG.info("User %s logged in", user.email)

    return LoginResponse(
        access_token=access_token,
        user=UserResponse.from_user(user),
    )


def _create_user(
    user_directory: UserDirectory,
    validate: Validate,
    request: CreateUserRequest,
    caller: User | None,
) -> UserResponse:
    """Create a user. Open to anyone while no user exists yet."""
    error = validate.security_manager.validate_password(request.password)
    if error:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error)

    outcome = user_directory.insert_user(
        caller,
        NewUser(
            email=request.email,
            password=request.password,
            access_level=request.access_level,
            allowed_directories=request.allowed_directories,
        ),
    )
    raise_for_outcome(outcome)
    return UserResponse.from_user(outcome.value)


def _change_password(
    user_directory: UserDirectory,
    validate: Validate,
    new_password: str,
    user: User,
) -> MessageResponse:
    error = validate.security_manager.validate_password(new_password)
    if error:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error)

    raise_for_outcome(user_directory.change_password(user, new_password))
    return MessageResponse(message="Password changed successfully")


def configure_auth_router(
    router: APIRouter,
    user_directory: UserDirectory,
    validate: Validate,
) -> APIRouter:
    """Configure the authentication router.

    :param router: The APIRouter to configure
    :param user_directory: The UserDirectory instance for user management
    :param validate: The Validate instance resolving the current user
    :return: The configured APIRouter
    """

    @router.post("/login", response_model=LoginResponse)
    def login(
        email: Annotated[str, Form()],
        password: Annotated[str, Form()],
    ) -> LoginResponse:
        return _login(user_directory, validate, email, password)

    @router.post("/logout", response_model=MessageResponse)
    def logout() -> MessageResponse:
        """With JWT, logout is handled client-side by discarding the token."""
        return MessageResponse(message="Logout successful")

    @router.get("/setup", response_model=SetupStatus)
    def setup_status() -> SetupStatus:
        return SetupStatus(
            users_present=user_directory.users_present(),
            admin_present=user_directory.admin_present(),
        )

    @router.get("/account", response_model=UserResponse)
    def get_account_info(
        user: Annotated[User, Depends(validate.jwt_token)],
    ) -> UserResponse:
        return UserResponse.from_user(user)

    @router.patch("/account/password", response_model=MessageResponse)
    def change_password_route(
        new_password: Annotated[str, Form()],
        user: Annotated[User, Depends(validate.jwt_token)],
    ) -> MessageResponse:
        return _change_password(user_directory, validate, new_password, user)

    @router.get("/users", response_model=list[UserSummary])
    def list_users(
        user: Annotated[User, Depends(validate.user_manager())],
    ) -> list[UserSummary]:
        outcome = user_directory.list_users(user)
        raise_for_outcome(outcome)
        return outcome.value

    @router.put("/users", response_model=UserResponse)
    def create_user_route(
        request: CreateUserRequest,
        caller: Annotated[User | None, Depends(validate.optional_user)],
    ) -> UserResponse:
        return _create_user(user_directory, validate, request, caller)

    @router.delete("/users", response_model=MessageResponse)
    def delete_user_route(
        email: Annotated[str, Form()],
        caller: Annotated[User, Depends(validate.jwt_token)],
    ) -> MessageResponse:
        outcome = user_directory.delete_user(caller, email)
        raise_for_outcome(outcome, failed_status=status.HTTP_404_NOT_FOUND)
        return MessageResponse(message=f"User {email} deleted")

    return router
