"""Global settings: the single-row configuration record holding the performance lock.

The row is read fresh on every request; nothing is cached in process memory.
"""
from __future__ import annotations
import logging

from bson import ObjectId
from pymongo import ReturnDocument

from .rbac import Identity, Role, require_role
from .store import DocumentStore, utcnow

logger = logging.getLogger(__name__)

SETTINGS_KEY = "global"


def get_global_settings(store: DocumentStore) -> dict:
    """Return the settings row, creating it unlocked when absent."""
    return store.global_settings.find_one_and_update(
        {"key": SETTINGS_KEY},
        {"$setOnInsert": {"key": SETTINGS_KEY, "performanceLocked": False, "createdAt": utcnow()}},
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )


def is_performance_locked(store: DocumentStore) -> bool:
    row = store.global_settings.find_one({"key": SETTINGS_KEY})
    return bool(row and row.get("performanceLocked"))


def toggle_performance_lock(store: DocumentStore, identity: Identity) -> dict:
    """Flip the performance lock (global admin only) and stamp who did it."""
    require_role(identity, Role.GLOBAL_ADMIN)
    current = get_global_settings(store)
    locked = not current.get("performanceLocked", False)
    now = utcnow()
    updated = store.global_settings.find_one_and_update(
        {"_id": current["_id"]},
        {"$set": {
            "performanceLocked": locked,
            "lastLockedBy": ObjectId(identity.id) if ObjectId.is_valid(identity.id) else identity.id,
            "lockedAt": now,
            "updatedAt": now,
        }},
        return_document=ReturnDocument.AFTER,
    )
    logger.info("Performance lock %s by user %s", "enabled" if locked else "disabled", identity.id)
    return updated


def public_settings(row: dict) -> dict:
    data = {"performanceLocked": bool(row.get("performanceLocked", False))}
    for key in ("lastLockedBy", "lockedAt"):
        if row.get(key) is not None:
            data[key] = row[key]
    return data
