"""Configuration for the file manager, read from environment variables.

A ``.env`` file is loaded first when one is given; variables already set in
the process environment win over the file. See :func:`load_config_from_env`
for the variable names and their defaults.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, TypeVar

from dotenv import load_dotenv
from jwt.algorithms import get_default_algorithms

from filegate.auth import SecurityManager

if TYPE_CHECKING:
    from collections.abc import Callable

LOGGER = logging.getLogger(__name__)
LOGGER.setLevel(logging.DEBUG)

T = TypeVar("T")

_DEFAULT_DATABASE_PATH = "./filegate_sqlite.db"
_TOKEN_LIFETIME_MINUTES = 60 * 24
_BOOLEAN_WORDS = {
    "1": True,
    "true": True,
    "yes": True,
    "on": True,
    "0": False,
    "false": False,
    "no": False,
    "off": False,
}


def configure_logging(app_config: AppConfig) -> None:
    """Apply the configured logging level to the root logger.

    :param app_config: The application configuration instance
    """
    level_name = (app_config.logging_level or "INFO").upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        LOGGER.warning("Unknown logging level %s, falling back to INFO", app_config.logging_level)
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@dataclass
class AppConfig:
    """Settings for one running file manager.

    ``server_root`` is canonicalized on creation, every path check compares
    against the resolved form.
    """

    server_root: str
    database_path: str
    logging_level: str | None
    root_path: str

    secret_key: str
    algorithm: str
    access_token_expire_minutes: int
    passphrase_min_length: int

    strict_write_checks: bool = True

    security_manager: SecurityManager = field(init=False, repr=False)

    def __post_init__(self) -> None:
        """Resolve the server root and build the security manager.

        :raises ValueError: If the server root is not an existing absolute
            directory
        """
        root = Path(self.server_root)
        if not root.is_absolute() or not root.is_dir():
            msg = f"Server root {self.server_root} must be an existing absolute directory"
            raise ValueError(msg)
        self.server_root = str(root.resolve(strict=True))

        self.security_manager = SecurityManager(
            secret_key=self.secret_key,
            algorithm=self.algorithm,
            expire_minutes=self.access_token_expire_minutes,
            passphrase_min_length=self.passphrase_min_length,
        )


def _read_env(var_name: str) -> str | None:
    """Return the stripped value of a variable, None when unset or blank."""
    value = os.getenv(var_name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _checked(var_name: str, value: T, value_checker: Callable[[T], bool] | None) -> T:
    if value_checker is not None and not value_checker(value):
        msg = f"Environment variable {var_name} has invalid value: {value}"
        raise ValueError(msg)
    return value


def get_env_str(
    var_name: str,
    default: str | None,
    value_checker: Callable[[str], bool] | None = None,
) -> str:
    """Get an environment variable as a string.

    :param var_name: Name of the environment variable
    :param default: Value used when unset, None makes the variable required
    :param value_checker: Optional function to validate the value
    :return: The value
    :raises ValueError: If a required variable is missing or the value is
        rejected by the checker
    """
    value = _read_env(var_name)
    if value is None:
        if default is None:
            msg = f"Environment variable {var_name} is required"
            raise ValueError(msg)
        value = default
    return _checked(var_name, value, value_checker)


def get_env_int(
    var_name: str,
    default: int,
    value_checker: Callable[[int], bool] | None = None,
) -> int:
    """Get an environment variable as an integer.

    :param var_name: Name of the environment variable
    :param default: Value used when unset
    :param value_checker: Optional function to validate the value
    :return: The value as an integer
    :raises ValueError: If the value is not an integer or is rejected
    """
    value = _read_env(var_name)
    if value is None:
        return default
    try:
        number = int(value)
    except ValueError as e:
        msg = f"Environment variable {var_name} must be an integer, got: {value}"
        raise ValueError(msg) from e
    return _checked(var_name, number, value_checker)


def get_env_bool(var_name: str, default: bool) -> bool:
    """Get an environment variable as a boolean (1/0, true/false, yes/no, on/off).

    :raises ValueError: If the value is not one of the accepted words
    """
    value = _read_env(var_name)
    if value is None:
        return default
    flag = _BOOLEAN_WORDS.get(value.lower())
    if flag is None:
        msg = f"Environment variable {var_name} must be a boolean, got: {value}"
        raise ValueError(msg)
    return flag


def _is_hmac_algorithm(algorithm: str) -> bool:
    # tokens are signed with the shared secret key
    return algorithm.startswith("HS") and algorithm in get_default_algorithms()


def load_config_from_env(env_file: str | Path | None) -> AppConfig:
    """Build the configuration from the environment.

    ===========================  ======================  ==========================
    Variable                     Default                 Meaning
    ===========================  ======================  ==========================
    SERVER_ROOT                  required                directory being served
    DATABASE_PATH                ./filegate_sqlite.db    sqlite user store
    LOGGING_LEVEL                INFO                    root logging level
    ROOT_PATH                    (empty)                 reverse proxy prefix
    SECRET_KEY                   random per process      JWT signing key
    ALGORITHM                    HS512                   JWT HMAC algorithm
    ACCESS_TOKEN_EXPIRE_MINUTES  1440                    token lifetime
    PASSPHRASE_MIN_LENGTH        20                      minimum password length
    STRICT_WRITE_CHECKS          true                    create and upload need
                                                         write access
    ===========================  ======================  ==========================

    :param env_file: Optional .env file loaded before reading the environment
    :return: The configuration
    :raises ValueError: If a variable is missing or invalid
    """
    if env_file:
        LOGGER.debug("Loading environment file %s", env_file)
        load_dotenv(dotenv_path=env_file)

    return AppConfig(
        server_root=get_env_str("SERVER_ROOT", None),
        database_path=get_env_str("DATABASE_PATH", _DEFAULT_DATABASE_PATH),
        logging_level=get_env_str("LOGGING_LEVEL", "INFO"),
        root_path=get_env_str("ROOT_PATH", ""),
        secret_key=get_env_str("SECRET_KEY", os.urandom(32).hex()),
        algorithm=get_env_str(
            "ALGORITHM",
            SecurityManager.DEFAULT_JWT_ALGORITHM,
            _is_hmac_algorithm,
        ),
        access_token_expire_minutes=get_env_int(
            "ACCESS_TOKEN_EXPIRE_MINUTES",
            _TOKEN_LIFETIME_MINUTES,
            lambda minutes: minutes > 0,
        ),
        passphrase_min_length=get_env_int(
            "PASSPHRASE_MIN_LENGTH",
            SecurityManager.DEFAULT_PASSPHRASE_MIN_LENGTH,
            lambda length: length > 0,
        ),
        strict_write_checks=get_env_bool("STRICT_WRITE_CHECKS", True),
    )
