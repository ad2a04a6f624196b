"""Account credentials: bcrypt password hashes and the JWT that names the logged-in user."""

from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt

from app.core.config import settings

BCRYPT_ROUNDS = 12
# bcrypt ignores anything past this many bytes.
BCRYPT_MAX_BYTES = 72

# Column limits for users; schemas and the service validate against these.
USER_NAME_MAX_LEN = 64
REAL_NAME_MAX_LEN = 64
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128


def _password_bytes(plain_password: str) -> bytes:
    return plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(plain_password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash for users.password_hash. Tests pass a low rounds value to stay fast."""
    return bcrypt.hashpw(_password_bytes(plain_password), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    # A malformed stored hash counts as a mismatch.
    try:
        return bcrypt.checkpw(_password_bytes(plain_password), hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def create_access_token(record_id: str, user_name: str) -> str:
    """Token whose subject is the user's record_id; user_name rides along for display only."""
    now = datetime.now(UTC)
    payload: dict[str, Any] = {
        "sub": record_id,
        "name": user_name,
        "iat": now,
        "exp": now + timedelta(minutes=settings.JWT_EXPIRE_MINUTES),
    }
    return jwt.encode(payload, settings.JWT_SECRET.get_secret_value(), algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> str:
    """
    Verify a login token and return the record_id it was issued for.

    Raises jwt.PyJWTError when the signature, expiry or subject is invalid. The caller still
    has to check that the user is live and enabled.
    """
    payload = jwt.decode(
        token,
        settings.JWT_SECRET.get_secret_value(),
        algorithms=[settings.JWT_ALGORITHM],
        options={"require": ["sub", "exp"]},
    )
    record_id = payload["sub"]
    if not isinstance(record_id, str) or not record_id:
        raise jwt.InvalidTokenError("Token subject must be a user record_id")
    return record_id
