"""
Core security utilities for password hashing, session tokens and reset secrets.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any, Callable, Tuple
from jose import jwt, JWTError
from passlib.context import CryptContext
from pydantic import ValidationError
import secrets
import hashlib
import logging

from ..config import settings
from ..auth.schemas import TokenClaims

# Set up logging
logger = logging.getLogger(__name__)

# Stored digests and the dummy digest share one cost factor; a digest at any
# other cost is rehashed on the next successful login
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
    bcrypt__min_rounds=settings.bcrypt_rounds,
    bcrypt__max_rounds=settings.bcrypt_rounds,
)

# Number of random bytes in a reset secret (256 bits)
RESET_TOKEN_BYTES = 32

def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password

    Returns:
        str: Hashed password
    """
    return pwd_context.hash(password)

def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """
    Verify a password against a hash.

    A malformed or missing digest is reported exactly like a mismatch.

    Args:
        plain_password: Plain text password
        hashed_password: Hashed password to compare against

    Returns:
        bool: True if password matches hash
    """
    valid, _ = verify_and_update_password(plain_password, hashed_password)
    return valid

def verify_and_update_password(
    plain_password: str, hashed_password: Optional[str]
) -> Tuple[bool, Optional[str]]:
    """
    Verify a password and rehash it when its digest uses another cost.

    Returns:
        Tuple of (matches, replacement digest or None)
    """
    if not hashed_password:
        return False, None
    try:
        return pwd_context.verify_and_update(plain_password, hashed_password)
    except (ValueError, TypeError):
        logger.warning("Password verification against an unreadable digest")
        return False, None

# Digest verified against when the account does not exist, so that both login
# failure paths pay for one bcrypt comparison at the same cost
_dummy_hash: Optional[str] = None

def dummy_password_hash() -> str:
    global _dummy_hash
    if _dummy_hash is None:
        _dummy_hash = hash_password(secrets.token_urlsafe(16))
    return _dummy_hash

def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed session token.

    Args:
        data: Claims with "sub", "email" and "role"
        expires_delta: Token lifetime, defaults to the configured TTL

    Returns:
        str: Encoded JWT token
    """
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))

    to_encode.update({"sub": str(data["sub"]), "iat": now, "exp": expire})

    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)

def verify_token(token: str) -> Optional[TokenClaims]:
    """
    Verify and decode a session token.

    Signature and expiry are checked; any failure, including a payload that
    does not carry the expected claims, yields None.

    Args:
        token: JWT token string

    Returns:
        TokenClaims if valid, None if invalid
    """
    if not token:
        return None
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
        return TokenClaims(**payload)
    except (JWTError, ValidationError, TypeError):
        return None

def generate_secure_reset_token(token_bytes: Callable[[int], bytes] = secrets.token_bytes) -> str:
    """
    Generate a secret for password reset.

    Args:
        token_bytes: Source of cryptographically secure random bytes

    Returns:
        str: Hex encoded random secret
    """
    return token_bytes(RESET_TOKEN_BYTES).hex()

def hash_token(token: str) -> str:
    """
    Hash a reset secret for storage.

    Args:
        token: Token to hash

    Returns:
        str: SHA-256 hex digest
    """
    return hashlib.sha256(token.encode()).hexdigest()

def get_token_expiry_time(now: datetime, minutes: int) -> datetime:
    """
    Get token expiration time.

    Args:
        now: Current time
        minutes: Minutes until expiration

    Returns:
        datetime: Expiration time
    """
    return now + timedelta(minutes=minutes)
