"""
Session token utilities.

Locally issued HS256 JWTs carrying the user id as ``sub`` plus email and name.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import ExpiredSignatureError, JWTError
from jose import jwt as jose_jwt

from .config import JWT_EXPIRATION_MINUTES, MIN_SECRET_KEY_LENGTH, SECRET_KEY
from .errors import AuthenticationError

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"

if len(SECRET_KEY) < MIN_SECRET_KEY_LENGTH:
    raise RuntimeError(
        f"SECRET_KEY must be at least {MIN_SECRET_KEY_LENGTH} characters for {ALGORITHM} signing"
    )


def create_jwt_token(data: dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT token

    Args:
        data: Data to encode in the token
        expires_delta: Token expiration time (default JWT_EXPIRATION_MINUTES)
    """
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=JWT_EXPIRATION_MINUTES))

    to_encode.update({"exp": expire, "iat": now})
    return jose_jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def issue_session_token(user_id: int, email: str, name: Optional[str] = None) -> str:
    """Issue the bearer token handed back after sign-in"""
    return create_jwt_token({"sub": str(user_id), "email": email, "name": name or email})


def validate_session_token(token: str) -> dict[str, Any]:
    """
    Decode a session token.

    Returns:
        {"user_id": int, "email": str}

    Raises:
        AuthenticationError: If the token is malformed, tampered with or expired
    """
    try:
        payload = jose_jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except ExpiredSignatureError as e:
        raise AuthenticationError(
            "Token has expired. Please sign in again.", headers={"X-Token-Expired": "true"}
        ) from e
    except JWTError as e:
        logger.warning(f"⚠️ JWT verification failed: {e}")
        raise AuthenticationError("Invalid authentication token") from e

    subject = payload.get("sub")
    try:
        user_id = int(subject)
    except (TypeError, ValueError) as e:
        raise AuthenticationError("Invalid token claims") from e
    return {"user_id": user_id, "email": payload.get("email")}
