from datetime import UTC, datetime, timedelta
from typing import Optional
from uuid import UUID

from jose import JWTError, jwt

from config import ApplicationConfig


def generate_jwt(user_id: UUID, role: str = "customer", email: Optional[str] = None) -> str:
    """
    Generate JWT access token

    Args:
        user_id: User UUID (the customer id for membership operations)
        role: User role (customer, vendor, admin)
        email: Optional email, forwarded to the payment gateway receipt

    Returns:
        JWT token string (HS256, 15-minute expiry)
    """
    return create_access_token(str(user_id), role, timedelta(minutes=15), email)


def create_access_token(
    user_id: str, role: str, expires_delta: timedelta, email: Optional[str] = None
) -> str:
    """
    Create JWT access token with custom expiry

    Args:
        user_id: User UUID as string
        role: User role (customer, vendor, admin)
        expires_delta: Token expiration duration

    Returns:
        JWT token string (HS256)
    """
    now = datetime.now(UTC)
    payload = {
        "user_id": user_id,
        "role": role,
        "exp": now + expires_delta,
        "iat": now,
    }
    if email:
        payload["email"] = email
    return jwt.encode(payload, ApplicationConfig.JWT_SECRET, algorithm="HS256")


def verify_jwt(token: str) -> Optional[dict]:
    """
    Verify and decode JWT token

    Args:
        token: JWT token string

    Returns:
        Decoded payload dict or None if invalid
    """
    try:
        payload = jwt.decode(
            token, ApplicationConfig.JWT_SECRET, algorithms=["HS256"]
        )
        return payload
    except JWTError:
        return None
