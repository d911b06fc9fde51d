"""Province lookups and administrative seeding."""
from __future__ import annotations
import logging
from typing import Any, Optional

from bson import ObjectId

from .errors import Conflict, NotFound, ValidationError
from .rbac import Identity, Role, require_role
from .store import DocumentStore, utcnow
from .validators import parse_object_id

logger = logging.getLogger(__name__)

ADMIN_FIELDS = {"_id": 1, "username": 1, "role": 1}


def _with_admin(store: DocumentStore, province: dict) -> dict:
    """Embed the admin's public fields in place of the bare adminId."""
    province = dict(province)
    admin_id = province.get("adminId")
    province["admin"] = store.users.find_one({"_id": admin_id}, ADMIN_FIELDS) if admin_id else None
    return province


def list_provinces(store: DocumentStore, identity: Identity) -> list[dict]:
    require_role(identity, Role.GLOBAL_ADMIN)
    provinces = store.provinces.find({}).sort("name", 1)
    return [_with_admin(store, province) for province in provinces]


def get_province(store: DocumentStore, identity: Identity, province_id: Any) -> dict:
    """Fetch one province by id (global admin only).

    Raises:
        InvalidIdentifier: Malformed id
        NotFound: No province with that id
    """
    require_role(identity, Role.GLOBAL_ADMIN)
    oid = parse_object_id(province_id, "province ID")
    province = store.provinces.find_one({"_id": oid})
    if province is None:
        raise NotFound("Province not found")
    return _with_admin(store, province)


def province_exists(store: DocumentStore, province_id: ObjectId) -> bool:
    return store.provinces.find_one({"_id": province_id}, {"_id": 1}) is not None


# ─────────────────────────────────────────────────────────────────────────────
# Seeding
# ─────────────────────────────────────────────────────────────────────────────
def find_or_create_province(store: DocumentStore, name: str) -> dict:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Province name is required")
    name = name.strip()
    province = store.provinces.find_one({"name": name})
    if province is not None:
        return province
    province = {"name": name, "adminId": None, "employeeIds": [], "createdAt": utcnow()}
    province["_id"] = store.provinces.insert_one(province).inserted_id
    logger.info("Created province %r", name)
    return province


def assign_admin(store: DocumentStore, province: dict, user_id: ObjectId) -> None:
    """Bind a province admin; a province keeps at most one admin.

    Raises:
        Conflict: The province already has a different admin
    """
    current: Optional[ObjectId] = province.get("adminId")
    if current is not None and current != user_id:
        raise Conflict(f"Province '{province['name']}' already has an admin")
    store.provinces.update_one({"_id": province["_id"]}, {"$set": {"adminId": user_id}})
    province["adminId"] = user_id
