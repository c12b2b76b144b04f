"""Tests for password hashing and access tokens."""

from datetime import UTC, datetime, timedelta

import jwt

from filegate.auth import SecurityManager
from filegate.common import AccessLevel, User

from conftest import TEST_SECRET_KEY


def user(email: str = "alice@example.com") -> User:
    return User.create(
        email=email,
        password_hash="hash",
        access_level=AccessLevel.READ_ONLY,
        allowed_directories=[],
        server_root="/srv",
    )


def test_hash_and_verify(security_manager: SecurityManager) -> None:
    password_hash = security_manager.hash_password("open sesame")

    assert password_hash != "open sesame"
    assert security_manager.verify_password("open sesame", password_hash)
    assert not security_manager.verify_password("open sesame!", password_hash)


def test_verify_against_garbage_hash(security_manager: SecurityManager) -> None:
    assert not security_manager.verify_password("anything", "not-a-bcrypt-hash")


def test_validate_password(security_manager: SecurityManager) -> None:
    assert security_manager.validate_password("long enough") is None
    assert security_manager.validate_password("short") is not None
    assert security_manager.validate_password("x" * 73) is not None


def test_short_secret_key_is_replaced() -> None:
    manager = SecurityManager(secret_key="too-short")

    assert manager.secret_key != "too-short"
    assert len(manager.secret_key) >= SecurityManager.MINIMUM_JWT_SECRET_KEY_LENGTH


def test_token_round_trip(security_manager: SecurityManager) -> None:
    token = security_manager.create_access_token(user())

    assert security_manager.verify_token(token) == "alice@example.com"


def test_token_from_other_key_is_rejected(security_manager: SecurityManager) -> None:
    other = SecurityManager(secret_key="another-secret-key-" * 4)

    assert security_manager.verify_token(other.create_access_token(user())) is None
    assert security_manager.verify_token("not.a.token") is None


def test_expired_token_is_rejected() -> None:
    manager = SecurityManager(secret_key=TEST_SECRET_KEY, expire_minutes=-1)

    assert manager.verify_token(manager.create_access_token(user())) is None


def test_token_of_wrong_type_is_rejected(security_manager: SecurityManager) -> None:
    now = datetime.now(UTC)
    token = jwt.encode(
        {"sub": "alice@example.com", "exp": now + timedelta(minutes=5), "type": "refresh"},
        TEST_SECRET_KEY,
        algorithm=security_manager.algorithm,
    )

    assert security_manager.verify_token(token) is None
