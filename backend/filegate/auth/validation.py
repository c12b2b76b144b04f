"""Request dependencies that turn a bearer token into the current User."""

import logging
from collections.abc import Callable

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from filegate.common import User

from .security_manager import SecurityManager
from .user_directory import UserDirectory

bearer_scheme = HTTPBearer(auto_error=True)
optional_bearer_scheme = HTTPBearer(auto_error=False)

LOGGER = logging.getLogger(__name__)
LOGGER.setLevel(logging.DEBUG)


class Validate:
    """FastAPI dependencies resolving and checking the current user."""

    def __init__(
        self,
        user_directory: UserDirectory,
        security_manager: SecurityManager,
    ) -> None:
        """Create the dependencies.

        :param user_directory: Source of stored users
        :param security_manager: JWT security manager
        """
        self.user_directory = user_directory
        self.security_manager = security_manager

    def _resolve(self, token: str) -> User | None:
        email = self.security_manager.verify_token(token)
        if email is None:
            return None
        # re-read on every request so access changes apply immediately
        return self.user_directory.get_user(email)

    def jwt_token(
        self,
        credentials: HTTPAuthorizationCredentials = Security(bearer_scheme),  # noqa: B008
    ) -> User:
        """Validate JWT access token and load the current user."""
        user = self._resolve(credentials.credentials)

        if not user:
            LOGGER.debug("JWT token validation failed")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Could not validate credentials",
                headers={"WWW-Authenticate": "Bearer"},
            )

        LOGGER.debug("JWT token validated for user: %s", user.email)
        return user

    def optional_user(
        self,
        credentials: HTTPAuthorizationCredentials | None = Security(  # noqa: B008
            optional_bearer_scheme,
        ),
    ) -> User | None:
        """Load the current user if valid credentials were sent, else None."""
        if credentials is None:
            return None
        return self._resolve(credentials.credentials)

    def user_manager(self) -> Callable[..., User]:
        """Return a dependency requiring the user management capability."""

        def validator(user: User = Depends(self.jwt_token)) -> User:  # noqa: B008
            if not user.can_manage_users:
                LOGGER.debug("User management check failed for user: %s", user.email)
                raise HTTPException(status_code=403, detail="Forbidden")
            return user

        return validator
