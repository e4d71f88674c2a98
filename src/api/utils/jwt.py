from datetime import UTC, datetime, timedelta
from typing import Optional, Tuple
from uuid import uuid4

from jose import JWTError, jwt

from config import ApplicationConfig


def generate_session_token(expires_delta: timedelta) -> Tuple[str, datetime]:
    """
    Generate a session JWT for a new caller session

    Args:
        expires_delta: Session lifetime

    Returns:
        Tuple of (JWT token string (HS256), naive UTC expiry)
    """
    now = datetime.now(UTC)
    expires_at = now + expires_delta
    payload = {
        "sid": str(uuid4()),
        "exp": expires_at,
        "iat": now,
    }
    token = jwt.encode(payload, ApplicationConfig.JWT_SECRET, algorithm="HS256")
    return token, expires_at.replace(tzinfo=None)


def verify_jwt(token: str) -> Optional[dict]:
    """
    Verify and decode JWT token

    Args:
        token: JWT token string

    Returns:
        Decoded payload dict or None if invalid or expired
    """
    try:
        payload = jwt.decode(
            token, ApplicationConfig.JWT_SECRET, algorithms=["HS256"]
        )
        return payload
    except JWTError:
        return None
