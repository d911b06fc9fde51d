"""Cross-province employee maintenance (global admin only)."""
from __future__ import annotations

from flask import Blueprint, g

from provincial_hr.core import employee_service
from provincial_hr.core.rbac import Role

from .decorators import get_store, role_required
from .responses import success_response

bp = Blueprint("employees", __name__, url_prefix="/employees")


@bp.route("/clear-performances", methods=["POST"])
@role_required(Role.GLOBAL_ADMIN)
def clear_performances():
    modified = employee_service.clear_all_performances(get_store(), g.identity)
    return success_response({"modifiedCount": modified}, message="Performance records cleared")
