"""Password hashing and session token generation."""

import hashlib
import hmac
import re
import secrets
from functools import lru_cache

import bcrypt

# Bcrypt cost (rounds); 12 is a good default for security vs speed.
BCRYPT_ROUNDS = 12

# Min/max lengths for username and password validation.
USERNAME_MIN_LEN = 1
USERNAME_MAX_LEN = 255
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128

# Role allowed through require_admin.
ADMIN_ROLE = "admin"

# Unsalted SHA-256 hex digests written by the previous portal backend.
_LEGACY_SHA256_RE = re.compile(r"^[0-9a-fA-F]{64}$")

# 32 random bytes -> 43 url-safe characters.
SESSION_TOKEN_BYTES = 32


def hash_password(plain_password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def legacy_sha256_digest(plain_password: str) -> str:
    """Hex SHA-256 of the password, the format of pre-bcrypt user rows."""
    return hashlib.sha256(plain_password.encode("utf-8")).hexdigest()


def is_legacy_hash(hashed: str) -> bool:
    return bool(hashed) and _LEGACY_SHA256_RE.match(hashed) is not None


def verify_password(plain_password: str, hashed: str) -> bool:
    """
    Verify a plain password against a stored hash.

    Accepts bcrypt hashes and legacy SHA-256 hex digests; anything else never matches.
    """
    if not hashed:
        return False
    if is_legacy_hash(hashed):
        return hmac.compare_digest(legacy_sha256_digest(plain_password), hashed.lower())
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


@lru_cache(maxsize=1)
def dummy_password_hash() -> str:
    """A bcrypt hash checked when no user matches, so misses cost the same as mismatches."""
    return hash_password(secrets.token_urlsafe(16))


def new_session_token() -> str:
    """Opaque, unguessable session identifier for the session cookie."""
    return secrets.token_urlsafe(SESSION_TOKEN_BYTES)
