"""Password hashing and session token utilities."""

from __future__ import annotations

from datetime import timedelta
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from audora.core.errors import AuthenticationError
from audora.core.settings import settings
from audora.db.time import utcnow

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def get_password_hash(password: str) -> str:
    """Return a salted bcrypt hash of `password`."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check `plain_password` against a stored bcrypt hash."""
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(
    user_id: int,
    *,
    email: str,
    username: str,
    expires_delta: timedelta | None = None,
) -> str:
    """Create the signed JWT stored in the session cookie."""
    expire = utcnow() + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode: dict[str, Any] = {
        "sub": str(user_id),
        "email": email,
        "username": username,
        "exp": expire,
    }
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


def decode_access_token(token: str) -> int:
    """Verify a session token and return the user id it was issued for.

    Raises:
        AuthenticationError: If the signature, expiry or subject is invalid.
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as err:
        raise AuthenticationError("Invalid or expired token") from err

    subject = payload.get("sub")
    if subject is None:
        raise AuthenticationError("Invalid token payload")
    try:
        return int(subject)
    except (TypeError, ValueError) as err:
        raise AuthenticationError("Invalid token payload") from err
