"""Input validation helpers for credentials, identifiers and employee payloads."""
from __future__ import annotations
import re
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional

from bson import ObjectId

from .errors import InvalidIdentifier, ValidationError

EMPLOYEE_SECTIONS = ("basicInfo", "workPlace", "additionalSpecifications", "performance")
REQUIRED_SECTIONS = ("basicInfo", "workPlace", "additionalSpecifications")
IGNORED_KEYS = {"_id", "id", "createdAt", "updatedAt", "__v"}

STATUS_VALUES = ("active", "inactive", "on_leave")
SHIFT_DURATIONS = (8, 16, 24)
CONTACT_NUMBER_PATTERN = re.compile(r"^\d{10,11}$")
MONTH_YEAR_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")
MAX_STRING_LENGTH = 256


def require_credentials(username: Any, password: Any) -> tuple[str, str]:
    """Both fields required and non-empty after trimming.

    Raises:
        ValidationError: If either field is missing or blank
    """
    if not isinstance(username, str) or not username.strip():
        raise ValidationError("Username and password are required")
    if not isinstance(password, str) or not password.strip():
        raise ValidationError("Username and password are required")
    return username.strip(), password


def parse_object_id(raw: Any, label: str = "ID") -> ObjectId:
    """Parse a 24-hex identifier; format validation precedes any authorization."""
    if isinstance(raw, ObjectId):
        return raw
    if not isinstance(raw, str) or not ObjectId.is_valid(raw):
        raise InvalidIdentifier(f"Invalid {label} format")
    return ObjectId(raw)


def check_safe_input(value: Any, path: str = "") -> None:
    """Reject NUL bytes and operator-looking keys anywhere in a payload."""
    if isinstance(value, str):
        if "\0" in value:
            raise ValidationError(f"{path or 'value'}: null bytes not allowed")
    elif isinstance(value, Mapping):
        for key, item in value.items():
            if not isinstance(key, str) or key.startswith("$") or "." in key:
                raise ValidationError(f"Invalid field name: {key!r}")
            check_safe_input(item, f"{path}.{key}" if path else key)
    elif isinstance(value, list):
        for index, item in enumerate(value):
            check_safe_input(item, f"{path}[{index}]")


# ─────────────────────────────────────────────────────────────────────────────
# Field coercers
# ─────────────────────────────────────────────────────────────────────────────
def _string(value: Any, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required")
    value = value.strip()
    if len(value) > MAX_STRING_LENGTH:
        raise ValidationError(f"{field} exceeds maximum length")
    return value


def _optional_string(value: Any, field: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    if len(value) > MAX_STRING_LENGTH * 4:
        raise ValidationError(f"{field} exceeds maximum length")
    return value.strip()


def _boolean(value: Any, field: str) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(f"{field} must be a boolean")
    return value


def _non_negative(value: Any, field: str) -> float | int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{field} must be a number")
    if value < 0:
        raise ValidationError(f"{field} must be >= 0")
    return value


def _non_negative_int(value: Any, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer")
    if value < 0:
        raise ValidationError(f"{field} must be >= 0")
    return value


def _date(value: Any, field: str) -> datetime:
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} must be an ISO date")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ValidationError(f"{field} must be an ISO date")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _optional_date(value: Any, field: str) -> Optional[datetime]:
    if value is None or value == "":
        return None
    return _date(value, field)


def _status(value: Any, field: str) -> str:
    if value not in STATUS_VALUES:
        raise ValidationError(f"{field} must be one of {', '.join(STATUS_VALUES)}")
    return value


def _contact_number(value: Any, field: str) -> str:
    value = _string(value, field)
    if not CONTACT_NUMBER_PATTERN.match(value):
        raise ValidationError(f"{field} must be 10-11 digits")
    return value


def _shift_duration(value: Any, field: str) -> int:
    if isinstance(value, bool) or value not in SHIFT_DURATIONS:
        raise ValidationError(f"{field} must be one of 8, 16, 24")
    return int(value)


def _travel_days(value: Any, field: str) -> float | int:
    value = _non_negative(value, field)
    if value > 31:
        raise ValidationError(f"{field} must be <= 31")
    return value


def _month_year(value: Any, field: str) -> str:
    if not isinstance(value, str) or not MONTH_YEAR_PATTERN.match(value):
        raise ValidationError(f"{field} must use the YYYY-MM format")
    return value


# (coercer, required, default)
Schema = dict[str, tuple[Callable[[Any, str], Any], bool, Any]]

SCHEMAS: dict[str, Schema] = {
    "basicInfo": {
        "firstName": (_string, True, None),
        "lastName": (_string, True, None),
        "nationalID": (_string, True, None),
        "male": (_boolean, True, None),
        "married": (_boolean, False, False),
        "childrenCount": (_non_negative_int, False, 0),
    },
    "workPlace": {
        "provinceName": (_optional_string, False, None),
        "branch": (_string, True, None),
        "rank": (_string, True, None),
        "licensedWorkplace": (_string, True, None),
        "travelAssignment": (_boolean, False, False),
    },
    "additionalSpecifications": {
        "educationalDegree": (_string, True, None),
        "dateOfBirth": (_date, True, None),
        "contactNumber": (_contact_number, True, None),
        "jobStartDate": (_date, True, None),
        "jobEndDate": (_optional_date, False, None),
        "status": (_status, False, "active"),
    },
    "performance": {
        "dailyPerformance": (_non_negative, True, None),
        "shiftCountPerLocation": (_non_negative, True, None),
        "shiftDuration": (_shift_duration, True, None),
        "overtime": (_non_negative, False, 0),
        "dailyLeave": (_non_negative, False, 0),
        "sickLeave": (_non_negative, False, 0),
        "absence": (_non_negative, False, 0),
        "volunteerShiftCount": (_non_negative, False, 0),
        "travelAssignment": (_travel_days, False, 0),
        "truckDriver": (_boolean, False, False),
        "status": (_status, False, "active"),
        "monthYear": (_month_year, False, None),
        "notes": (_optional_string, False, None),
    },
}


def validate_section(section: str, data: Any, partial: bool = False) -> dict:
    """Validate one employee sub-record.

    Args:
        section: Sub-record name (basicInfo, workPlace, ...)
        data: Raw client value
        partial: When True, only supplied fields are validated (updates)

    Returns:
        Cleaned dict ready for storage

    Raises:
        ValidationError: On any shape violation
    """
    if not isinstance(data, Mapping):
        raise ValidationError(f"{section} must be an object")

    schema = SCHEMAS[section]
    unknown = sorted(set(data) - set(schema))
    if unknown:
        raise ValidationError(f"{section}: unknown field(s) {', '.join(unknown)}")

    cleaned = {}
    for name, (coerce, required, default) in schema.items():
        label = f"{section}.{name}"
        if name in data and data[name] is not None:
            cleaned[name] = coerce(data[name], label)
        elif partial:
            continue
        elif required:
            raise ValidationError(f"{label} is required")
        elif default is not None:
            cleaned[name] = default
    return cleaned


def _split_payload(payload: Any) -> dict:
    if not isinstance(payload, Mapping):
        raise ValidationError("Request body must be a JSON object")
    check_safe_input(payload)
    body = {key: value for key, value in payload.items() if key not in IGNORED_KEYS}
    unknown = sorted(set(body) - set(EMPLOYEE_SECTIONS) - {"provinceId"})
    if unknown:
        raise ValidationError(f"Unknown field(s): {', '.join(unknown)}")
    return body


def validate_employee_create(payload: Any) -> dict:
    """Validate a full employee payload; provinceId is dropped here and stamped by the caller."""
    body = _split_payload(payload)
    body.pop("provinceId", None)

    document = {}
    for section in REQUIRED_SECTIONS:
        if section not in body:
            raise ValidationError(f"{section} is required")
        document[section] = validate_section(section, body[section])
    if body.get("performance") is not None:
        document["performance"] = validate_section("performance", body["performance"])
    return document


def validate_employee_patch(payload: Any) -> tuple[dict, Any]:
    """Validate a partial update.

    Returns:
        Tuple of (dotted-path $set document, raw provinceId or None). The
        caller decides whether the provinceId is an attempted move.
    """
    body = _split_payload(payload)
    province_ref = body.pop("provinceId", None)

    updates = {}
    for section, data in body.items():
        if data is None and section == "performance":
            raise ValidationError("Use the performance reset endpoint to remove performance")
        partial = section != "performance"
        cleaned = validate_section(section, data, partial=partial)
        if section == "performance":
            updates["performance"] = cleaned
            continue
        for name, value in cleaned.items():
            updates[f"{section}.{name}"] = value

    if not updates and province_ref is None:
        raise ValidationError("No fields to update")
    return updates, province_ref
