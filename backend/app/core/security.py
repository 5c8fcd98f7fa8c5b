"""
Security utilities for password hashing and session tokens.
"""
import hmac
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError
from passlib.context import CryptContext

from app.core.config import Settings


# Salted key derivation; salt, rounds and derived key share one encoded string
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

VOTER_ID_MASK = "***"


def hash_password(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """
    Verify a password against its hash.

    A missing, malformed or unrecognised stored hash fails verification
    instead of raising.
    """
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        return False


def dummy_verify() -> None:
    """Spend the same effort as a real verification for unknown users."""
    pwd_context.dummy_verify()


def is_password_hash(value: Optional[str]) -> bool:
    """Check whether a value is already a hash this context understands."""
    if not value:
        return False
    return pwd_context.identify(value, required=False) is not None


def generate_session_id() -> str:
    """Generate an opaque server-side session identifier."""
    return secrets.token_urlsafe(32)


def create_session_token(session_id: str, settings: Settings) -> str:
    """Sign a session id into the cookie value."""
    now = datetime.now(timezone.utc)
    payload = {
        "sid": session_id,
        "iat": now,
        "exp": now + timedelta(seconds=settings.SESSION_MAX_AGE_SECONDS),
        "type": "session",
    }
    return jwt.encode(
        payload,
        settings.SESSION_SECRET,
        algorithm=settings.SESSION_ALGORITHM,
    )


def decode_session_token(token: str, settings: Settings) -> Optional[str]:
    """Return the session id of a validly signed, unexpired cookie value."""
    try:
        payload = jwt.decode(
            token,
            settings.SESSION_SECRET,
            algorithms=[settings.SESSION_ALGORITHM],
        )
    except JWTError:
        return None

    if payload.get("type") != "session":
        return None
    session_id = payload.get("sid")
    if not isinstance(session_id, str) or not session_id:
        return None
    return session_id


def fingerprints_match(stored: str, supplied: str) -> bool:
    """Exact equality of fingerprint hashes, compared in constant time."""
    return hmac.compare_digest(stored.encode("utf-8"), supplied.encode("utf-8"))


def mask_voter_id(voter_id: str) -> str:
    """Keep the first three characters of a voter id."""
    return voter_id[:3] + VOTER_ID_MASK
