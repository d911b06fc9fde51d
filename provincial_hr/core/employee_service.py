"""Province-scoped employee operations.

Every function takes the caller's Identity and runs the province access check
before any storage access. Queries and writes always carry the province
constraint, so a record from another province is never read or modified.
"""
from __future__ import annotations
import logging
from typing import Any, Mapping

from bson import ObjectId
from pymongo import ReturnDocument

from .errors import Locked, NotFound, ValidationError, WrongProvince
from .filters import build_employee_filter, build_employee_sort, scope_to_province
from .pagination import PageParams, parse_page_params
from .province_service import province_exists
from .rbac import Identity, Role, ensure_province_access, normalize_reference, require_any_role, require_role
from .settings_service import is_performance_locked
from .store import DocumentStore, utcnow
from .validators import parse_object_id, validate_employee_create, validate_employee_patch

logger = logging.getLogger(__name__)


def ensure_performance_unlocked(store: DocumentStore) -> None:
    """Raise Locked while the global performance lock is on.

    A failed lock lookup permits the operation (fail open) and is logged.
    """
    try:
        locked = is_performance_locked(store)
    except Exception as exc:
        logger.warning("Performance lock lookup failed, allowing operation: %s", exc, exc_info=True)
        return
    if locked:
        raise Locked()


def _scope(store: DocumentStore, identity: Identity, province_id: Any) -> ObjectId:
    """Validate the province id format, then access, then existence."""
    identity = require_any_role(identity)
    oid = parse_object_id(province_id, "province ID")
    ensure_province_access(identity, oid)
    if not province_exists(store, oid):
        raise NotFound("Province not found")
    return oid


def _load_member(store: DocumentStore, province_oid: ObjectId, employee_id: Any) -> dict:
    """Fetch an employee and verify it belongs to the path province."""
    employee_oid = parse_object_id(employee_id, "employee ID")
    employee = store.employees.find_one({"_id": employee_oid})
    if employee is None:
        raise NotFound("Employee not found")
    if normalize_reference(employee.get("provinceId")) != str(province_oid):
        raise WrongProvince()
    return employee


def list_employees(
    store: DocumentStore,
    identity: Identity,
    province_id: Any,
    query: Mapping[str, Any],
) -> tuple[list[dict], int, PageParams]:
    """List one province's employees with filtering, sorting and pagination.

    Returns:
        Tuple of (rows, total matching, page parameters used)

    Raises:
        InvalidIdentifier: Malformed province id
        Forbidden: Province outside the caller's scope
        ValidationError: Unrecognized filter or sort value
    """
    province_oid = _scope(store, identity, province_id)
    params = parse_page_params(query)
    clause = scope_to_province(build_employee_filter(query), province_oid)
    sort = build_employee_sort(query)

    total = store.employees.count_documents(clause)
    rows = list(store.employees.find(clause).sort(sort).skip(params.skip).limit(params.limit))
    return rows, total, params


def get_employee(store: DocumentStore, identity: Identity, province_id: Any, employee_id: Any) -> dict:
    province_oid = _scope(store, identity, province_id)
    return _load_member(store, province_oid, employee_id)


def create_employee(store: DocumentStore, identity: Identity, province_id: Any, payload: Any) -> dict:
    """Create an employee under the path province.

    Any provinceId in the payload is discarded; the stored record always
    carries the path province.
    """
    province_oid = _scope(store, identity, province_id)
    document = validate_employee_create(payload)

    now = utcnow()
    document["provinceId"] = province_oid
    document["createdAt"] = now
    document["updatedAt"] = now

    document["_id"] = store.employees.insert_one(document).inserted_id
    store.provinces.update_one({"_id": province_oid}, {"$addToSet": {"employeeIds": document["_id"]}})
    logger.info("Employee %s created in province %s by %s", document["_id"], province_oid, identity.id)
    return document


def update_employee(
    store: DocumentStore,
    identity: Identity,
    province_id: Any,
    employee_id: Any,
    payload: Any,
) -> dict:
    """Apply a partial update.

    Raises:
        ValidationError: Bad payload or attempted province change
        Locked: Patch touches performance while the lock is on
    """
    province_oid = _scope(store, identity, province_id)
    employee = _load_member(store, province_oid, employee_id)

    updates, province_ref = validate_employee_patch(payload)
    if province_ref is not None and normalize_reference(province_ref) != str(province_oid):
        raise ValidationError("provinceId cannot be changed")
    if not updates:
        raise ValidationError("No fields to update")

    if any(key == "performance" or key.startswith("performance.") for key in updates):
        ensure_performance_unlocked(store)

    updates["updatedAt"] = utcnow()
    updated = store.employees.find_one_and_update(
        {"_id": employee["_id"], "provinceId": province_oid},
        {"$set": updates},
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        raise NotFound("Employee not found")
    return updated


def delete_employee(store: DocumentStore, identity: Identity, province_id: Any, employee_id: Any) -> dict:
    province_oid = _scope(store, identity, province_id)
    employee = _load_member(store, province_oid, employee_id)

    result = store.employees.delete_one({"_id": employee["_id"], "provinceId": province_oid})
    if result.deleted_count == 0:
        raise NotFound("Employee not found")
    store.provinces.update_one({"_id": province_oid}, {"$pull": {"employeeIds": employee["_id"]}})
    logger.info("Employee %s deleted from province %s by %s", employee["_id"], province_oid, identity.id)
    return {"_id": employee["_id"]}


def reset_performance(store: DocumentStore, identity: Identity, province_id: Any, employee_id: Any) -> dict:
    """Remove one employee's performance sub-record."""
    province_oid = _scope(store, identity, province_id)
    employee = _load_member(store, province_oid, employee_id)
    ensure_performance_unlocked(store)

    updated = store.employees.find_one_and_update(
        {"_id": employee["_id"], "provinceId": province_oid},
        {"$unset": {"performance": ""}, "$set": {"updatedAt": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        raise NotFound("Employee not found")
    return updated


def clear_all_performances(store: DocumentStore, identity: Identity) -> int:
    """Remove the performance sub-record from every employee (global admin only)."""
    require_role(identity, Role.GLOBAL_ADMIN)
    ensure_performance_unlocked(store)
    result = store.employees.update_many(
        {"performance": {"$exists": True}},
        {"$unset": {"performance": ""}, "$set": {"updatedAt": utcnow()}},
    )
    logger.info("Cleared performance records of %d employees (by %s)", result.modified_count, identity.id)
    return result.modified_count
