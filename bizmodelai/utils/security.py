"""Security utilities for password hashing, API keys and JWT auth tokens."""

import hashlib
import hmac
import logging
from datetime import timedelta
from typing import Optional

import bcrypt
import jwt

from bizmodelai.utils.clock import utcnow

logger = logging.getLogger(__name__)


def hash_key(key: Optional[str]) -> str:
    """Hash the key using SHA-256."""
    key = key or ""
    return hashlib.sha256(key.encode()).hexdigest()


def verify_api_key(api_key: Optional[str], hashed_api_key: str) -> bool:
    """
    Verify the API key hashes to the configured value.

    An empty configured hash never matches, so admin routes stay closed
    until HASHED_API_KEY is set.
    """
    if not hashed_api_key or not api_key:
        return False
    return hmac.compare_digest(hash_key(api_key), hashed_api_key)


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash a password with bcrypt (inputs are truncated to bcrypt's 72 bytes)."""
    password_bytes = password.encode("utf-8")[:72]
    return bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8")[:72], password_hash.encode("utf-8"))
    except ValueError:
        # stored value is not a bcrypt hash
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


def create_jwt_token(
    data: dict,
    secret_key: str,
    algorithm: str,
    expires_delta: timedelta = timedelta(hours=1),
) -> str:
    """
    Creates a JWT with the provided data and expiration time.

    The token includes the standard exp and iat claims.
    """
    to_encode = data.copy()
    now = utcnow()
    to_encode.update({
        "exp": now + expires_delta,
        "iat": now,
    })
    return jwt.encode(to_encode, secret_key, algorithm=algorithm)


def decode_jwt_token(token: str, secret_key: str, algorithm: str) -> dict:
    """Decodes and validates a JWT token.

    Raises:
        jwt.InvalidTokenError: If the token is invalid, expired, or improperly formatted.
    """
    return jwt.decode(token, secret_key, algorithms=[algorithm])
