"""Credentials: password rules, bcrypt hashes and signed access tokens."""

import logging
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from bcrypt import checkpw, gensalt, hashpw

from filegate.common import User

LOGGER = logging.getLogger(__name__)
LOGGER.setLevel(logging.DEBUG)

# bcrypt only looks at the first 72 bytes and refuses longer input
BCRYPT_MAX_PASSWORD_BYTES = 72
ACCESS_TOKEN_TYPE = "access_token"


@dataclass
class SecurityManager:
    """Password hashing and JWT handling for one deployment.

    :param str secret_key: HMAC key for signing tokens; a random key is used
        when missing or too short, which invalidates tokens on restart
    :param str algorithm: JWT HMAC algorithm
    :param int expire_minutes: Token lifetime in minutes
    :param int passphrase_min_length: Minimum password length in characters
    """

    DEFAULT_JWT_ALGORITHM = "HS512"
    DEFAULT_TOKEN_EXPIRE_MINUTES = 60 * 24
    DEFAULT_PASSPHRASE_MIN_LENGTH = 20
    MINIMUM_JWT_SECRET_KEY_LENGTH = 32

    secret_key: str | None = None
    algorithm: str = DEFAULT_JWT_ALGORITHM
    expire_minutes: int = DEFAULT_TOKEN_EXPIRE_MINUTES
    passphrase_min_length: int = DEFAULT_PASSPHRASE_MIN_LENGTH

    def __post_init__(self) -> None:
        if not self.secret_key or len(self.secret_key) < self.MINIMUM_JWT_SECRET_KEY_LENGTH:
            LOGGER.warning("No usable secret key configured, tokens will not survive a restart")
            self.secret_key = secrets.token_hex(64)

    def validate_password(self, password: str) -> str | None:
        """Check a new password against the length rules.

        :param password: The candidate password
        :return: What is wrong with the password, or None if it is acceptable
        """
        if len(password) < self.passphrase_min_length:
            return f"Password must be at least {self.passphrase_min_length} characters long"
        if len(password.encode()) > BCRYPT_MAX_PASSWORD_BYTES:
            return f"Password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes long"
        return None

    def hash_password(self, password: str) -> str:
        return hashpw(password.encode(), gensalt()).decode()

    def verify_password(self, password: str, password_hash: str) -> bool:
        """Check a password against a stored hash; a malformed hash never matches."""
        try:
            return checkpw(password.encode(), password_hash.encode())
        except ValueError as e:
            LOGGER.debug("Stored password hash is unusable: %s", e)
            return False

    def create_access_token(self, user: User) -> str:
        """Sign a token naming the user.

        Only the email goes into the token. Access level and allowed
        directories are read from storage on every request, so changing or
        deleting a user takes effect before the token expires.

        :param user: The authenticated user
        :return: The encoded token
        """
        issued_at = datetime.now(UTC)
        claims = {
            "sub": user.email,
            "iat": issued_at,
            "exp": issued_at + timedelta(minutes=self.expire_minutes),
            "type": ACCESS_TOKEN_TYPE,
        }
        return jwt.encode(claims, self.secret_key, algorithm=self.algorithm)

    def _decode(self, token: str) -> dict[str, Any] | None:
        try:
            return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except jwt.InvalidTokenError as e:
            # ExpiredSignatureError is a subclass
            LOGGER.debug("Rejected token: %s", e)
            return None

    def verify_token(self, token: str) -> str | None:
        """Return the email a valid access token was issued for.

        :param token: The encoded token
        :return: The email, or None for an invalid, expired or foreign token
        """
        claims = self._decode(token)
        if claims is None or claims.get("type") != ACCESS_TOKEN_TYPE:
            return None
        email = claims.get("sub")
        if not isinstance(email, str) or not email:
            return None
        return email
