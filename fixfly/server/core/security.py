"""
Password hashing and access tokens.

Passwords (vendors and admins) are hashed with passlib; access tokens for
all three roles are HS256 JWTs carrying the subject id and its role.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt
from passlib.context import CryptContext

from fixfly.core.models.domain.enums import Role

from .config import JWTConfig, settings

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_access_token(subject: str | int, role: Role, config: Optional[JWTConfig] = None) -> str:
    """
    Issue a signed access token.

    Args:
        subject: Primary key of the user, vendor or admin
        role: Which table ``subject`` refers to
        config: JWT settings, defaults to the application settings

    Returns:
        Encoded JWT string
    """
    config = config or settings.jwt
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(subject),
        "role": role.value,
        "iat": now,
        "exp": now + timedelta(days=config.expire_days),
    }
    return jwt.encode(payload, config.secret, algorithm=config.algorithm)


def decode_access_token(token: str, config: Optional[JWTConfig] = None) -> dict[str, Any]:
    """
    Decode and validate an access token.

    Raises:
        jwt.ExpiredSignatureError: The token is past its expiry
        jwt.InvalidTokenError: The token is malformed or the signature is wrong
    """
    config = config or settings.jwt
    return jwt.decode(token, config.secret, algorithms=[config.algorithm], options={"require": ["sub", "exp"]})
