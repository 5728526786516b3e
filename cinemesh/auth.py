"""
Password hashing and JWT session tokens.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from .config import Config
from .models import User


class InvalidTokenError(Exception):
    """Raised when a session token cannot be trusted."""


@dataclass
class Claims:
    user_id: int
    email: str
    role: str


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check password against a bcrypt hash. Empty or malformed hashes never match."""
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def generate_token(user: User, config: Config) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "user_id": user.id,
        "email": user.email,
        "role": user.role,
        "sub": str(user.id),
        "iat": now,
        "exp": now + timedelta(hours=config.jwt_expires_hours),
    }
    return jwt.encode(payload, config.jwt_secret, algorithm=config.jwt_algorithm)


def parse_token(token: str, config: Config) -> Claims:
    """
    Verify a token's signature and expiry and return its claims.

    Raises:
        InvalidTokenError: If the token is malformed, expired, signed with
            another key or lacks the user claims.
    """
    if not token:
        raise InvalidTokenError("missing token")
    try:
        payload = jwt.decode(token, config.jwt_secret, algorithms=[config.jwt_algorithm])
    except jwt.PyJWTError as e:
        raise InvalidTokenError(str(e)) from e

    try:
        return Claims(
            user_id=int(payload["user_id"]),
            email=str(payload.get("email", "")),
            role=str(payload.get("role", "")),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidTokenError("malformed claims") from e
