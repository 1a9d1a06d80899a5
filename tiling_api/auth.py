import base64
import json
import logging
import time

import httpx
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.x509 import load_pem_x509_certificate
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .config import GOOGLE_CLIENT_ID
from .database import get_db
from .errors import AuthenticationError, InternalError, PermissionDeniedError
from .models import User
from .security_utils import validate_session_token

logger = logging.getLogger(__name__)

security = HTTPBearer()

GOOGLE_CERTS_URL = "https://www.googleapis.com/oauth2/v1/certs"
GOOGLE_ISSUERS = ("accounts.google.com", "https://accounts.google.com")

# Cache for Google's public keys
_cached_keys = None


async def get_google_public_keys():
    """Fetch Google's x509 certificates used to sign ID tokens"""
    global _cached_keys
    if _cached_keys:
        logger.debug("✅ Using cached Google public keys")
        return _cached_keys

    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.get(GOOGLE_CERTS_URL)
            if response.status_code == 200:
                _cached_keys = response.json()
                logger.info(f"✅ Fetched {len(_cached_keys)} Google public keys")
                return _cached_keys
            logger.error(f"❌ Failed to fetch Google public keys: HTTP {response.status_code}")
    except httpx.HTTPError as e:
        logger.error(f"❌ Error fetching Google public keys: {str(e)}")
    return None


def _b64decode(segment: str) -> bytes:
    return base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))


async def verify_google_id_token(token: str) -> dict:
    """
    Verify a Google Sign-In ID token with full signature verification.

    Returns:
        {"email", "name", "picture", "locale"} taken from the verified claims

    Raises:
        AuthenticationError: If the token is malformed, unsigned by Google,
            issued for another client or expired
    """
    if not GOOGLE_CLIENT_ID:
        logger.error("❌ GOOGLE_CLIENT_ID not configured")
        raise InternalError("Google sign-in is not configured")

    parts = token.split(".")
    if len(parts) != 3:
        logger.warning("⚠️ Invalid Google token format: wrong number of parts")
        raise AuthenticationError("Invalid Google ID token")

    header_b64, payload_b64, signature_b64 = parts
    try:
        header = json.loads(_b64decode(header_b64))
        payload = json.loads(_b64decode(payload_b64))
        signature = _b64decode(signature_b64)
    except ValueError as e:
        logger.warning(f"⚠️ Failed to decode Google token: {str(e)}")
        raise AuthenticationError("Invalid Google ID token") from e

    kid = header.get("kid")
    if header.get("alg") != "RS256" or not kid:
        logger.warning(f"⚠️ Unexpected Google token header: alg={header.get('alg')}")
        raise AuthenticationError("Invalid Google ID token")

    public_keys = await get_google_public_keys()
    if not public_keys or kid not in public_keys:
        logger.warning(f"⚠️ Key ID {kid} not found in public keys, invalidating cache and retrying")
        global _cached_keys
        _cached_keys = None
        public_keys = await get_google_public_keys()
        if not public_keys or kid not in public_keys:
            logger.error(f"❌ Key ID {kid} not found in public keys after retry")
            raise AuthenticationError("Unable to verify Google ID token")

    cert = load_pem_x509_certificate(public_keys[kid].encode())
    try:
        cert.public_key().verify(
            signature, f"{header_b64}.{payload_b64}".encode(), padding.PKCS1v15(), hashes.SHA256()
        )
    except Exception as e:
        logger.warning(f"⚠️ Google token signature verification failed: {type(e).__name__}")
        raise AuthenticationError("Invalid Google ID token") from e

    if payload.get("aud") != GOOGLE_CLIENT_ID:
        logger.warning("⚠️ Google token audience mismatch")
        raise AuthenticationError("Invalid Google ID token")
    if payload.get("iss") not in GOOGLE_ISSUERS:
        logger.warning("⚠️ Google token issuer mismatch")
        raise AuthenticationError("Invalid Google ID token")
    if payload.get("exp", 0) < time.time():
        raise AuthenticationError("Google ID token has expired")
    if not payload.get("email"):
        raise AuthenticationError("Unable to extract user information from Google token")

    logger.debug(f"✅ Google token verified for user: {payload.get('email')}")
    return {
        "email": payload["email"],
        "name": payload.get("name"),
        "picture": payload.get("picture"),
        "locale": payload.get("locale"),
    }


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the bearer session token to a stored user"""
    claims = validate_session_token(credentials.credentials)

    user = db.query(User).filter(User.id == claims["user_id"]).first()
    if not user:
        logger.warning(f"⚠️ Token references unknown user id {claims['user_id']}")
        raise AuthenticationError("User not found")
    return user


async def get_current_admin(user: User = Depends(get_current_user)) -> User:
    """Current user, required to hold the ADMIN role"""
    if user.role != "ADMIN":
        logger.warning(f"⚠️ User {user.email} attempted to access an admin route")
        raise PermissionDeniedError("Administrator access required")
    return user


def ensure_owner_or_admin(user: User, owner_id: int) -> None:
    if user.role != "ADMIN" and user.id != owner_id:
        raise PermissionDeniedError("You do not have access to this booking")
