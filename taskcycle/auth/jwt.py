"""JWT token generation and validation for taskcycle.

The identity provider is external; tokens only carry the opaque user id in
their `sub` claim.
"""

import os
import jwt
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict
from dotenv import load_dotenv

load_dotenv()

# JWT configuration
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me-in-production")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRATION_HOURS = int(os.getenv("JWT_EXPIRATION_HOURS", "24"))


def create_access_token(user_id: str) -> str:
    """Create a JWT access token for a user.

    Args:
        user_id: Opaque user ID to encode in token

    Returns:
        Encoded JWT token string
    """
    issued_at = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "exp": issued_at + timedelta(hours=JWT_EXPIRATION_HOURS),
        "iat": issued_at,
    }
    return jwt.encode(payload, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[Dict]:
    """Decode and validate a JWT access token.

    Returns:
        Decoded token payload, or None if invalid or expired
    """
    try:
        return jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


def get_user_id_from_token(token: str) -> Optional[str]:
    """Extract user ID from a JWT token, or None if the token is invalid."""
    payload = decode_access_token(token)
    if payload:
        return payload.get("sub")
    return None
