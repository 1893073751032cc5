"""Authentication utilities (JWT bearer tokens for admins)"""
from jose import JWTError, jwt
from datetime import timedelta
from typing import Optional
import logging

from cravebites.config import settings
from cravebites.db.database import utcnow
from cravebites.errors import AuthenticationError

logger = logging.getLogger(__name__)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token"""
    to_encode = data.copy()

    if expires_delta:
        expire = utcnow() + expires_delta
    else:
        expire = utcnow() + timedelta(minutes=settings.access_token_expire_minutes)

    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict:
    """Decode and verify a token, returning its claims"""
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        logger.warning(f"Rejected access token: {e}")
        raise AuthenticationError("Could not validate credentials")

    if payload.get("sub") is None or payload.get("admin_id") is None:
        raise AuthenticationError("Could not validate credentials")
    return payload
