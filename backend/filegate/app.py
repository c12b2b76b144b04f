"""FastAPI application factory for the file manager."""

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from filegate.auth import (
    Database,
    UserDirectory,
    UserQueries,
    Validate,
    configure_auth_router,
)
from filegate.files import configure_file_router

from .config import AppConfig, configure_logging, load_config_from_env

LOGGER = logging.getLogger(__name__)

API_TITLE = "Filegate File Manager API"
API_VERSION = "0.1.0"


def _ensure_database_directory(database_path: str) -> None:
    directory = Path(database_path).parent
    if not directory.exists():
        directory.mkdir(parents=True, exist_ok=True)
        LOGGER.info("Created database directory %s", directory)


def _mount_routers(app: FastAPI, config: AppConfig, user_queries: UserQueries) -> None:
    """Wire the user store into the auth and file routers."""
    user_directory = UserDirectory(user_queries, config.security_manager, config.server_root)
    if not user_directory.users_present():
        LOGGER.warning("No users exist yet, the first account can be created without logging in")

    validate = Validate(user_directory, config.security_manager)
    app.include_router(
        configure_auth_router(APIRouter(), user_directory, validate),
        prefix="/auth",
        tags=["auth"],
    )
    app.include_router(
        configure_file_router(
            APIRouter(),
            validate,
            config.server_root,
            strict_write_checks=config.strict_write_checks,
        ),
        prefix="/files",
        tags=["files"],
    )


def configure_fastapi_app(config: AppConfig) -> FastAPI:
    """Build the application for an already loaded configuration.

    The user database is opened when the application starts and closed when
    it shuts down; the routers are mounted in between.

    :param config: Application configuration
    :return: The FastAPI application
    """
    _ensure_database_directory(config.database_path)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        LOGGER.info(
            "Serving %s (strict write checks %s)",
            config.server_root,
            "on" if config.strict_write_checks else "off",
        )
        with Database(config.database_path) as database:
            user_queries = UserQueries(database)
            user_queries.initialize_tables()
            _mount_routers(app, config, user_queries)
            yield
        LOGGER.info("User database closed, shutting down")

    app = FastAPI(
        title=API_TITLE,
        version=API_VERSION,
        lifespan=lifespan,
        root_path=config.root_path,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Authorization", "Content-Type"],
    )

    @app.get("/")
    def read_root() -> dict[str, str]:
        return {"name": API_TITLE, "version": API_VERSION}

    return app


def create_app(env_file: str | None = None) -> FastAPI:
    """Load the configuration, set up logging and build the application.

    Works as a uvicorn factory (``uvicorn --factory filegate:create_app``);
    the environment file then comes from ENV_FILE, defaulting to ``.env``.

    :param env_file: Optional path to the environment configuration file
    :return: The FastAPI application
    """
    config = load_config_from_env(env_file or os.environ.get("ENV_FILE", ".env"))
    configure_logging(config)
    return configure_fastapi_app(config)
