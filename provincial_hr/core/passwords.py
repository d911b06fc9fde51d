"""Password hashing with bcrypt."""
from __future__ import annotations
import logging
from functools import lru_cache

import bcrypt

logger = logging.getLogger(__name__)

DEFAULT_ROUNDS = 12
# bcrypt ignores input past 72 bytes
MAX_PASSWORD_BYTES = 72


def hash_password(password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Hash a password using bcrypt.

    Raises:
        ValueError: If password is empty or longer than bcrypt accepts
    """
    if not password:
        raise ValueError("Password cannot be empty")
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password exceeds maximum length of {MAX_PASSWORD_BYTES} bytes")
    return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    """Verify a password against its hash; malformed hashes never verify."""
    if not password or not hashed:
        return False
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(encoded, hashed.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


@lru_cache(maxsize=4)
def dummy_hash(rounds: int = DEFAULT_ROUNDS) -> str:
    """Hash compared against when the username is unknown, so both failure paths cost the same."""
    return hash_password("not-a-real-password", rounds=rounds)
