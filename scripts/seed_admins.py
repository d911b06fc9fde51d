"""Seed the global admin, provinces and province admins from a JSON file.

Usage:
    python -m scripts.seed_admins --config admins.json

admins.json:
    {
        "globalAdmin": {"username": "...", "password": "..."},
        "provinceAdmins": [{"username": "...", "password": "...", "provinceName": "..."}]
    }
"""
from __future__ import annotations
import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

SCRIPT_DIR = Path(__file__).parent
PROJECT_ROOT = SCRIPT_DIR.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from provincial_hr.config import load_settings
from provincial_hr.core import auth_service, province_service
from provincial_hr.core.errors import ApiError, ValidationError
from provincial_hr.core.rbac import Role
from provincial_hr.core.store import DocumentStore, connect
from provincial_hr.core.validators import require_credentials

logger = logging.getLogger(__name__)


def load_config(path: Path) -> dict[str, Any]:
    """Read and parse the admin configuration file.

    Raises:
        ValueError: Missing file, invalid JSON or not an object
    """
    if not path.exists():
        raise ValueError(f"{path} not found (create it from admins.example.json)")
    try:
        config = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"{path}: invalid JSON ({exc})")
    if not isinstance(config, dict):
        raise ValueError(f"{path}: top level must be an object")
    return config


def seed_admins(store: DocumentStore, config: dict[str, Any], rounds: int) -> dict[str, list[str]]:
    """Create the configured admins; existing usernames are skipped.

    Returns:
        {"created": [...], "skipped": [...], "errors": [...]}
    """
    summary: dict[str, list[str]] = {"created": [], "skipped": [], "errors": []}
    store.ensure_indexes()

    global_admin = config.get("globalAdmin")
    if global_admin and not isinstance(global_admin, dict):
        summary["errors"].append("globalAdmin: entry must be an object")
    elif global_admin:
        username = str(global_admin.get("username", "")).strip()
        if store.users.find_one({"username": username}):
            summary["skipped"].append(username)
        else:
            try:
                auth_service.create_user(
                    store, username, global_admin.get("password"), Role.GLOBAL_ADMIN, rounds=rounds
                )
                summary["created"].append(username)
            except ApiError as exc:
                summary["errors"].append(f"globalAdmin: {exc.message}")

    province_admins = config.get("provinceAdmins") or []
    if not isinstance(province_admins, list):
        summary["errors"].append("provinceAdmins: must be a list")
        province_admins = []

    for index, entry in enumerate(province_admins):
        context = f"provinceAdmins[{index}]"
        if not isinstance(entry, dict):
            summary["errors"].append(f"{context}: entry must be an object")
            continue
        username = str(entry.get("username", "")).strip()
        if username and store.users.find_one({"username": username}):
            summary["skipped"].append(username)
            continue
        try:
            # Province admins cannot exist unbound, so validate before creating the province
            require_credentials(username, entry.get("password"))
            if not str(entry.get("provinceName") or "").strip():
                raise ValidationError("provinceName is required")
            province = province_service.find_or_create_province(store, entry["provinceName"])
            if province.get("adminId") is not None:
                raise ApiError(f"province '{province['name']}' already has an admin")
            user = auth_service.create_user(
                store, username, entry.get("password"), Role.PROVINCE_ADMIN,
                province_id=province["_id"], rounds=rounds,
            )
            province_service.assign_admin(store, province, user["_id"])
            summary["created"].append(username)
        except ApiError as exc:
            summary["errors"].append(f"{context}: {exc.message}")

    return summary


def main() -> None:
    """Command-line entry point."""
    parser = argparse.ArgumentParser(description="Seed admin users and provinces")
    parser.add_argument("--config", default="admins.json", help="Path to admins.json")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    try:
        config = load_config(Path(args.config))
    except ValueError as exc:
        print(f"[seed] Error: {exc}", file=sys.stderr)
        sys.exit(1)

    cfg = load_settings()
    store = connect(cfg.mongo_uri, cfg.mongo_db_name)
    try:
        summary = seed_admins(store, config, rounds=cfg.bcrypt_rounds)
    finally:
        store.close()

    for username in summary["created"]:
        print(f"[seed] Created {username}")
    for username in summary["skipped"]:
        print(f"[seed] Skipped {username} (already exists)")
    for error in summary["errors"]:
        print(f"[seed] Error: {error}", file=sys.stderr)
    sys.exit(1 if summary["errors"] else 0)


if __name__ == "__main__":
    main()
