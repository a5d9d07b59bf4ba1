"""Bearer token helpers.

Tokens are issued by the external identity provider and signed with a shared
HS256 secret. create_access_token mirrors what the provider issues and is
used by tooling and tests.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from flask import current_app

JWT_EXPIRATION_HOURS = 24


def _jwt_settings() -> tuple:
    config = current_app.config
    return config["JWT_SECRET_KEY"], config.get("JWT_ALGORITHM", "HS256")


def create_access_token(
    data: Dict[str, Any], expires_delta: Optional[timedelta] = None
) -> str:
    """Create a JWT access token.

    Args:
        data: Payload data to encode in the token
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    secret, algorithm = _jwt_settings()
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(hours=JWT_EXPIRATION_HOURS)

    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, secret, algorithm=algorithm)


def create_actor_token(
    actor_id: str, email: str, role: str = "staff", **kwargs: Any
) -> str:
    """Create a token for an actor in the shape the identity provider uses."""
    return create_access_token(
        {"sub": str(actor_id), "email": email, "role": role, "type": "access"},
        **kwargs,
    )


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Decode and validate a JWT access token.

    Returns:
        Decoded payload if valid, None if invalid or expired
    """
    secret, algorithm = _jwt_settings()
    try:
        return jwt.decode(token, secret, algorithms=[algorithm])
    except jwt.PyJWTError:
        return None
