"""All authentication and user management modules and routes."""

from .auth_routes import configure_auth_router
from .db_connection import Database
from .queries import UserQueries, UserRecord
from .security_manager import SecurityManager
from .user_directory import NewUser, UserDirectory
from .validation import Validate

__all__ = [
    "Database",
    "NewUser",
    "SecurityManager",
    "UserDirectory",
    "UserQueries",
    "UserRecord",
    "Validate",
    "configure_auth_router",
]
