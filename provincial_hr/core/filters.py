"""Translate employee list query parameters into document-store clauses.

Absent or empty parameters add no constraint; unrecognized values are
rejected rather than silently ignored.
"""
from __future__ import annotations
import re
from typing import Any, Mapping

import pymongo

from .errors import ValidationError

SEARCH_FIELDS = (
    "basicInfo.firstName",
    "basicInfo.lastName",
    "basicInfo.nationalID",
    "additionalSpecifications.contactNumber",
    "additionalSpecifications.educationalDegree",
    "workPlace.branch",
    "workPlace.rank",
    "workPlace.licensedWorkplace",
)

SORT_FIELDS = {
    "firstName": "basicInfo.firstName",
    "lastName": "basicInfo.lastName",
    "nationalID": "basicInfo.nationalID",
    "createdAt": "createdAt",
    "updatedAt": "updatedAt",
    "jobStartDate": "additionalSpecifications.jobStartDate",
    "dailyPerformance": "performance.dailyPerformance",
}

GENDER_VALUES = {"male": True, "female": False}
MARITAL_VALUES = {"married": True, "single": False}
STATUS_VALUES = ("active", "inactive", "on_leave")
BOOLEAN_VALUES = {"true": True, "false": False}
MAX_SEARCH_LENGTH = 100


def _param(query: Mapping[str, Any], name: str) -> str:
    value = query.get(name)
    if value is None:
        return ""
    return str(value).strip()


def _choice(query: Mapping[str, Any], name: str, choices: Mapping[str, Any]) -> Any:
    raw = _param(query, name).lower()
    if raw not in choices:
        raise ValidationError(f"{name} must be one of {', '.join(choices)}")
    return choices[raw]


def build_employee_filter(query: Mapping[str, Any]) -> dict:
    """Build the optional filter clause (without any province constraint)."""
    clauses: dict[str, Any] = {}

    search = _param(query, "search")
    if search:
        if len(search) > MAX_SEARCH_LENGTH:
            raise ValidationError(f"search must not exceed {MAX_SEARCH_LENGTH} characters")
        pattern = {"$regex": re.escape(search), "$options": "i"}
        clauses["$or"] = [{field: pattern} for field in SEARCH_FIELDS]

    if _param(query, "gender"):
        clauses["basicInfo.male"] = _choice(query, "gender", GENDER_VALUES)

    if _param(query, "maritalStatus"):
        clauses["basicInfo.married"] = _choice(query, "maritalStatus", MARITAL_VALUES)

    status = _param(query, "status")
    if status:
        if status not in STATUS_VALUES:
            raise ValidationError(f"status must be one of {', '.join(STATUS_VALUES)}")
        clauses["additionalSpecifications.status"] = status

    if _param(query, "truckDriver"):
        clauses["performance.truckDriver"] = _choice(query, "truckDriver", BOOLEAN_VALUES)

    return clauses


def build_employee_sort(query: Mapping[str, Any]) -> list[tuple[str, int]]:
    """Sort specification; newest first when nothing is requested."""
    sort_by = _param(query, "sortBy") or "createdAt"
    if sort_by not in SORT_FIELDS:
        raise ValidationError(f"sortBy must be one of {', '.join(SORT_FIELDS)}")

    order = _param(query, "sortOrder").lower() or "desc"
    if order not in {"asc", "desc"}:
        raise ValidationError("sortOrder must be one of asc, desc")

    direction = pymongo.ASCENDING if order == "asc" else pymongo.DESCENDING
    # Stable tie-break keeps pages disjoint
    return [(SORT_FIELDS[sort_by], direction), ("_id", direction)]


def scope_to_province(filter_clause: Mapping[str, Any], province_id: Any) -> dict:
    """Apply the mandatory province constraint last so it always wins."""
    scoped = dict(filter_clause)
    scoped["provinceId"] = province_id
    return scoped
