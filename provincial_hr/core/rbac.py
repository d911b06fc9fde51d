"""Role-Based Access Control helpers.

Pure functions over an already-resolved Identity; nothing here reads Flask
globals. The session mapping is passed in explicitly by the caller.
"""
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, MutableMapping, Optional

from bson import ObjectId

from .errors import Forbidden, Unauthenticated

SESSION_USER_ID = "userId"
SESSION_ROLE = "role"
SESSION_PROVINCE_ID = "provinceId"


class Role(str, Enum):
    GLOBAL_ADMIN = "globalAdmin"
    PROVINCE_ADMIN = "provinceAdmin"

    @classmethod
    def parse(cls, value: Any) -> Optional["Role"]:
        """Return the Role for a stored value, or None when unrecognized."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


@dataclass(frozen=True)
class Identity:
    """Authenticated caller bound to the current request."""
    id: str
    role: Role
    province_id: Optional[str] = None

    def __post_init__(self):
        if self.role is Role.PROVINCE_ADMIN and not self.province_id:
            raise ValueError("Province admin identity requires a province id")

    def to_public_dict(self) -> dict:
        data = {"role": self.role.value}
        if self.role is Role.PROVINCE_ADMIN:
            data["provinceId"] = self.province_id
        return data


def normalize_reference(value: Any) -> Optional[str]:
    """Canonical string form of a province (or any record) reference.

    Accepts a bare id (str or ObjectId), or a reference object exposing an
    ``_id``/``id`` field (a mapping or an object with an ``id`` attribute).
    Returns None when no identifier can be found.
    """
    if value is None:
        return None
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, Mapping):
        for key in ("_id", "id"):
            if value.get(key) is not None:
                return normalize_reference(value[key])
        return None
    nested = getattr(value, "id", None)
    if nested is not None and nested is not value:
        return normalize_reference(nested)
    return str(value)


def can_access_province(identity: Identity, target_province_id: Any) -> bool:
    """Decide whether identity may act on the target province's resources."""
    if identity.role is Role.GLOBAL_ADMIN:
        return True
    if identity.role is Role.PROVINCE_ADMIN:
        own = normalize_reference(identity.province_id)
        target = normalize_reference(target_province_id)
        return own is not None and own == target
    raise ValueError(f"Unhandled role: {identity.role!r}")


def ensure_province_access(identity: Identity, target_province_id: Any) -> None:
    """Raise Forbidden instead of silently filtering out-of-scope provinces."""
    if not can_access_province(identity, target_province_id):
        raise Forbidden("Access denied to this province")


def require_any_role(identity: Optional[Identity]) -> Identity:
    if identity is None:
        raise Unauthenticated()
    return identity


def require_role(identity: Optional[Identity], required_role: Role) -> Identity:
    identity = require_any_role(identity)
    if identity.role is not required_role:
        raise Forbidden(f"Required role: {required_role.value}")
    return identity


# ─────────────────────────────────────────────────────────────────────────────
# Session binding
# ─────────────────────────────────────────────────────────────────────────────
def resolve_identity(session_data: Mapping[str, Any]) -> Optional[Identity]:
    """Build an Identity from session contents, or None when unauthenticated.

    Read-only: the session is never mutated here.
    """
    user_id = session_data.get(SESSION_USER_ID)
    role = Role.parse(session_data.get(SESSION_ROLE))
    if not user_id or role is None:
        return None
    try:
        return Identity(
            id=str(user_id),
            role=role,
            province_id=normalize_reference(session_data.get(SESSION_PROVINCE_ID)),
        )
    except ValueError:
        # Province admin session without a bound province
        return None


def bind_session(session_data: MutableMapping[str, Any], identity: Identity) -> None:
    """Store the identity in a fresh session."""
    session_data.clear()
    session_data[SESSION_USER_ID] = identity.id
    session_data[SESSION_ROLE] = identity.role.value
    if identity.province_id:
        session_data[SESSION_PROVINCE_ID] = identity.province_id


def clear_session(session_data: MutableMapping[str, Any]) -> None:
    session_data.clear()
