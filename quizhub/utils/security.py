"""
Password hashing and access tokens
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID
import logging

import jwt
from passlib.context import CryptContext

from quizhub.config import settings
from quizhub.exceptions import UnauthorizedError
from quizhub.models.enums import Role

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


@dataclass(frozen=True)
class Identity:
    """The authenticated caller, passed explicitly into every service call"""
    user_id: UUID
    role: Role


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    if not hashed:
        return False
    return pwd_context.verify(password, hashed)


def create_access_token(user_id: UUID, role: Role, expires_minutes: Optional[int] = None) -> str:
    """
    Issue a signed JWT for a user

    Args:
        user_id: Subject of the token
        role: Role claim copied into the token
        expires_minutes: Lifetime override (default from settings)

    Returns:
        Encoded token string
    """
    minutes = expires_minutes if expires_minutes is not None else settings.ACCESS_TOKEN_EXPIRE_MINUTES
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "role": Role(role).value,
        "iat": now,
        "exp": now + timedelta(minutes=minutes),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Identity:
    """
    Verify a token and turn its claims into an Identity

    Raises:
        UnauthorizedError: expired, tampered or malformed token
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Token has expired")
    except jwt.InvalidTokenError as e:
        logger.debug(f"Rejected token: {str(e)}")
        raise UnauthorizedError("Invalid authentication token")

    try:
        return Identity(user_id=UUID(payload["sub"]), role=Role(payload["role"]))
    except (KeyError, ValueError):
        raise UnauthorizedError("Invalid authentication token")
