"""Credential verification and user provisioning."""
from __future__ import annotations
import logging
from typing import Any, Optional

from bson import ObjectId

from .errors import Conflict, InvalidCredentials, ValidationError
from .passwords import DEFAULT_ROUNDS, dummy_hash, hash_password, verify_password
from .rbac import Identity, Role, normalize_reference
from .store import DocumentStore, utcnow
from .validators import require_credentials

logger = logging.getLogger(__name__)


def login(store: DocumentStore, username: Any, password: Any, rounds: int = DEFAULT_ROUNDS) -> Identity:
    """Validate credentials against the stored user record.

    "User not found" and "wrong password" raise the same InvalidCredentials
    so callers cannot probe which usernames exist.

    Raises:
        ValidationError: Missing or blank fields
        InvalidCredentials: Unknown user, wrong password, or unusable record
    """
    username, password = require_credentials(username, password)

    user = store.users.find_one({"username": username})
    if user is None:
        verify_password(password, dummy_hash(rounds))
        logger.warning("Login failed for unknown username %r", username)
        raise InvalidCredentials()

    if not verify_password(password, user.get("passwordHash", "")):
        logger.warning("Login failed for %r: wrong password", username)
        raise InvalidCredentials()

    role = Role.parse(user.get("role"))
    if role is None:
        logger.error("User %r has unrecognized role %r", username, user.get("role"))
        raise InvalidCredentials()

    try:
        identity = Identity(
            id=str(user["_id"]),
            role=role,
            province_id=normalize_reference(user.get("provinceId")) if role is Role.PROVINCE_ADMIN else None,
        )
    except ValueError:
        logger.error("Province admin %r has no bound province", username)
        raise InvalidCredentials()

    logger.info("Login succeeded for %r (role=%s)", username, role.value)
    return identity


def create_user(
    store: DocumentStore,
    username: str,
    password: str,
    role: Role,
    province_id: Optional[ObjectId] = None,
    rounds: int = DEFAULT_ROUNDS,
) -> dict:
    """Create a credential record (password stored only as a bcrypt hash).

    Raises:
        ValidationError: Missing fields or province admin without province
        Conflict: Username already taken
    """
    username, password = require_credentials(username, password)
    if role is Role.PROVINCE_ADMIN and province_id is None:
        raise ValidationError("Province admin requires a province")
    if store.users.find_one({"username": username}) is not None:
        raise Conflict(f"User '{username}' already exists")

    try:
        password_hash = hash_password(password, rounds=rounds)
    except ValueError as exc:
        raise ValidationError(str(exc))

    user = {
        "username": username,
        "passwordHash": password_hash,
        "role": role.value,
        "createdAt": utcnow(),
    }
    if role is Role.PROVINCE_ADMIN:
        user["provinceId"] = province_id
    user["_id"] = store.users.insert_one(user).inserted_id
    return user


def public_user(user: dict) -> dict:
    """User fields safe to return to clients (never the password hash)."""
    data = {"_id": user["_id"], "username": user.get("username"), "role": user.get("role")}
    if user.get("provinceId") is not None:
        data["provinceId"] = user["provinceId"]
    return data
