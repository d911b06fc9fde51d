"""Audit trail for mutating API requests (signed JSON lines)."""

from __future__ import annotations
import datetime
import hashlib
import hmac
import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

AUDIT_LOG_FILENAME = "mutations.jsonl"
AUDITED_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


def audit_log_file(log_dir: str | Path) -> Path:
    return Path(log_dir) / AUDIT_LOG_FILENAME


def _ensure_audit_dir(log_dir: Path) -> None:
    """Create audit directory with restricted permissions."""
    log_dir.mkdir(parents=True, exist_ok=True)
    log_dir.chmod(0o700)


def _sign_event(event: dict[str, Any], signing_key: str) -> str:
    """Generate HMAC-SHA256 signature for an audit event."""
    if not signing_key:
        return ""
    # Canonical JSON representation for signing
    canonical = json.dumps(event, sort_keys=True, separators=(",", ":"))
    return hmac.new(signing_key.encode("utf-8"), canonical.encode("utf-8"), hashlib.sha256).hexdigest()


def log_mutation(
    log_dir: str | Path,
    *,
    method: str,
    path: str,
    status_code: int,
    user_id: str | None = None,
    role: str | None = None,
    province_id: str | None = None,
    ip: str | None = None,
    resource_id: str | None = None,
    signing_key: str = "",
) -> dict[str, Any]:
    """Append one mutation event to the audit trail.

    Args:
        log_dir: Directory holding mutations.jsonl
        method: HTTP method of the request
        path: Request path
        status_code: Response status code
        user_id: Acting user (None for anonymous requests such as login)
        role: Acting user's role
        province_id: Acting user's bound province, if any
        ip: Client address
        resource_id: Identifier of the created/updated/deleted record, if known
        signing_key: HMAC key; events are unsigned when empty

    Returns:
        The event as written
    """
    directory = Path(log_dir)
    _ensure_audit_dir(directory)

    event = {
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "method": method,
        "path": path,
        "user_id": user_id,
        "role": role,
        "province_id": province_id,
        "ip": ip,
        "status_code": status_code,
        "success": 200 <= status_code < 400,
        "resource_id": resource_id,
    }

    signature = _sign_event(event, signing_key)
    if signature:
        event["signature"] = signature

    log_file = audit_log_file(directory)
    with log_file.open("a", encoding="utf-8") as f:
        f.write(json.dumps(event, ensure_ascii=False) + "\n")

    log_file.chmod(0o600)
    return event


def safe_log_mutation(log_dir: str | Path, **kwargs: Any) -> bool:
    """Log a mutation event; audit failures never break the request.

    Returns:
        True if the event was written, False if logging failed
    """
    try:
        log_mutation(log_dir, **kwargs)
        return True
    except (OSError, TypeError, ValueError) as exc:
        logger.warning("Failed to write audit event for %s %s: %s", kwargs.get("method"), kwargs.get("path"), exc)
        return False


def verify_audit_log(log_dir: str | Path, signing_key: str) -> tuple[int, int]:
    """Verify all signatures in the audit log.

    Returns:
        Tuple of (total_events, valid_signatures)
    """
    log_file = audit_log_file(log_dir)
    if not log_file.exists():
        return 0, 0

    total = 0
    valid = 0

    with log_file.open("r", encoding="utf-8") as f:
        for line in f:
            if not line.strip():
                continue
            total += 1
            try:
                event = json.loads(line)
            except json.JSONDecodeError:
                continue
            stored_sig = event.pop("signature", "")
            if not stored_sig:
                continue
            computed_sig = _sign_event(event, signing_key)
            if computed_sig and hmac.compare_digest(stored_sig, computed_sig):
                valid += 1

    return total, valid
