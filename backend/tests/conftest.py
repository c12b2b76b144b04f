"""Pytest configuration file for setting up test environment."""

import sys
from collections.abc import Callable, Iterator
from pathlib import Path

import bcrypt
import pytest

# Add the backend directory to Python path so tests can import from filegate
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

from filegate.auth import Database, SecurityManager, UserDirectory, UserQueries  # noqa: E402
from filegate.common import AccessLevel, User  # noqa: E402

TEST_PASSWORD = "correct-horse-battery"
TEST_SECRET_KEY = "test-secret-key-" * 4


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch: pytest.MonkeyPatch) -> None:
    """Use the cheapest bcrypt cost so hashing does not dominate test time."""
    monkeypatch.setattr(
        "filegate.auth.security_manager.gensalt",
        lambda: bcrypt.gensalt(rounds=4),
    )


@pytest.fixture
def server_root(tmp_path: Path) -> Path:
    """Create a served tree plus a sibling directory outside of it.

    srv/
        data/alice/notes.txt
        data/alice/docs/
        data/bob/secret.txt
        database/x/
    outside/loot.txt
    """
    root = tmp_path / "srv"
    for directory in ("data/alice/docs", "data/bob", "database/x"):
        (root / directory).mkdir(parents=True)
    (root / "data" / "alice" / "notes.txt").write_text("alice notes")
    (root / "data" / "bob" / "secret.txt").write_text("bob secret")

    outside = tmp_path / "outside"
    outside.mkdir()
    (outside / "loot.txt").write_text("not yours")
    return root.resolve()


@pytest.fixture
def outside_dir(server_root: Path) -> Path:
    return server_root.parent / "outside"


@pytest.fixture
def make_user(server_root: Path) -> Callable[..., User]:
    """Build users the same way the user directory does."""

    def factory(
        access_level: AccessLevel,
        allowed_directories: tuple[str | Path, ...] = (),
        email: str = "user@example.com",
    ) -> User:
        return User.create(
            email=email,
            password_hash="not-a-real-hash",
            access_level=access_level,
            allowed_directories=[str(directory) for directory in allowed_directories],
            server_root=str(server_root),
        )

    return factory


@pytest.fixture
def database(tmp_path: Path) -> Iterator[Database]:
    with Database(tmp_path / "users.db") as db:
        yield db


@pytest.fixture
def user_queries(database: Database) -> UserQueries:
    queries = UserQueries(database)
    queries.initialize_tables()
    return queries


@pytest.fixture
def security_manager() -> SecurityManager:
    return SecurityManager(
        secret_key=TEST_SECRET_KEY,
        expire_minutes=30,
        passphrase_min_length=8,
    )


@pytest.fixture
def user_directory(
    user_queries: UserQueries,
    security_manager: SecurityManager,
    server_root: Path,
) -> UserDirectory:
    return UserDirectory(user_queries, security_manager, server_root)
