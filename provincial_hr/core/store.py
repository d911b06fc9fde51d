"""Document store access (MongoDB via pymongo).

The store is created once per application and handed explicitly to the
service functions; nothing here is a module-level singleton.
"""
from __future__ import annotations
import logging
from datetime import datetime, timezone
from typing import Any, Optional

import pymongo
from bson import ObjectId
from pymongo import MongoClient
from pymongo.database import Database

logger = logging.getLogger(__name__)

USERS = "users"
PROVINCES = "provinces"
EMPLOYEES = "employees"
GLOBAL_SETTINGS = "global_settings"

SERVER_SELECTION_TIMEOUT_MS = 5000


def utcnow() -> datetime:
    """Naive UTC timestamp (BSON dates carry no timezone)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class DocumentStore:
    """Thin wrapper exposing the collections used by the service layer.

    Usage:
        store = DocumentStore(MongoClient(uri), "provincial_hr")
        store.employees.find_one({"_id": employee_id})
    """

    def __init__(self, client: MongoClient, db_name: str):
        self.client = client
        self.db: Database = client[db_name]

    @property
    def users(self):
        return self.db[USERS]

    @property
    def provinces(self):
        return self.db[PROVINCES]

    @property
    def employees(self):
        return self.db[EMPLOYEES]

    @property
    def global_settings(self):
        return self.db[GLOBAL_SETTINGS]

    def ensure_indexes(self) -> None:
        """Create the unique and lookup indexes the services rely on."""
        self.users.create_index([("username", pymongo.ASCENDING)], unique=True)
        self.provinces.create_index([("name", pymongo.ASCENDING)], unique=True)
        self.employees.create_index([("basicInfo.nationalID", pymongo.ASCENDING)], unique=True)
        self.employees.create_index([("provinceId", pymongo.ASCENDING), ("createdAt", pymongo.DESCENDING)])

    def ping(self) -> bool:
        self.client.admin.command("ping")
        return True

    def close(self) -> None:
        self.client.close()


def connect(mongo_uri: str, db_name: str, client: Optional[MongoClient] = None) -> DocumentStore:
    """Open the store; pass ``client`` to reuse an existing (or fake) client."""
    if client is None:
        client = MongoClient(mongo_uri, serverSelectionTimeoutMS=SERVER_SELECTION_TIMEOUT_MS, tz_aware=False)
    store = DocumentStore(client, db_name)
    logger.info("Document store configured (db=%s)", db_name)
    return store


def serialize(value: Any) -> Any:
    """Convert BSON types to JSON-friendly values (ObjectId -> str, datetime -> ISO)."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: serialize(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [serialize(item) for item in value]
    return value
