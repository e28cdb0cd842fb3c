"""
Flashdeck - Security Module
JWT handling for identity-provider tokens
"""
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from flashdeck.core.config import settings


def create_access_token(
    subject: str | int,
    expires_delta: timedelta | None = None,
    additional_claims: dict[str, Any] | None = None
) -> str:
    """
    Create a JWT access token.

    Production tokens are minted by the identity provider; this is used for
    local development and tests, and produces the same claim layout.

    Args:
        subject: The token subject (the provider's opaque user ID)
        expires_delta: Optional custom expiration time
        additional_claims: Optional additional JWT claims, e.g. ``features``
            and ``plan``

    Returns:
        Encoded JWT token string
    """
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )

    to_encode = {
        "sub": str(subject),
        "exp": expire,
        "iat": datetime.now(timezone.utc),
        "type": "access"
    }

    if additional_claims:
        to_encode.update(additional_claims)

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> dict[str, Any] | None:
    """
    Decode and validate a JWT token.

    Args:
        token: The JWT token to decode

    Returns:
        Decoded token payload or None if invalid
    """
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )
        return payload
    except JWTError:
        return None


def verify_token(token: str, token_type: str = "access") -> dict[str, Any] | None:
    """
    Verify a token and return its claims if valid.

    Args:
        token: The JWT token to verify
        token_type: Expected token type

    Returns:
        Claims dict if the token is valid and carries a subject, None otherwise
    """
    payload = decode_token(token)
    if payload is None:
        return None

    if payload.get("type") != token_type:
        return None

    if not payload.get("sub"):
        return None

    return payload
