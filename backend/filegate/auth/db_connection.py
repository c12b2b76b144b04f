import logging
from pathlib import Path
from sqlite3 import Connection, connect

LOGGER = logging.getLogger(__name__)
LOGGER.setLevel(logging.DEBUG)


class Database:
    """Owns the sqlite connection for the user store."""

    def __init__(self, path: str | Path) -> None:
        self.path = str(path)
        self._connection: Connection | None = None

    def open(self) -> Connection:
        if self._connection is None:
            self._connection = connect(self.path, check_same_thread=False)
            LOGGER.debug("Database connection established to: %s", self.path)
        return self._connection

    @property
    def connection(self) -> Connection:
        if self._connection is None:
            raise RuntimeError("Database connection is not open.")
        return self._connection

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None
            LOGGER.debug("Database connection closed: %s", self.path)

    def __enter__(self) -> "Database":
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
