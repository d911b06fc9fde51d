"""Global settings routes (performance lock)."""
from __future__ import annotations

from flask import Blueprint, g

from provincial_hr.core import settings_service
from provincial_hr.core.rbac import Role

from .decorators import get_store, role_required
from .responses import success_response

bp = Blueprint("global_settings", __name__, url_prefix="/global-settings")


@bp.route("", methods=["GET"])
def get_settings():
    row = settings_service.get_global_settings(get_store())
    return success_response(settings_service.public_settings(row))


@bp.route("/toggle-performance-lock", methods=["POST"])
@role_required(Role.GLOBAL_ADMIN)
def toggle_performance_lock():
    row = settings_service.toggle_performance_lock(get_store(), g.identity)
    g.audit_resource_id = str(row["_id"])
    state = "locked" if row["performanceLocked"] else "unlocked"
    return success_response(settings_service.public_settings(row), message=f"Performance records {state}")
