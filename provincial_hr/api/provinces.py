"""Province routes and the province-scoped employee resource."""
from __future__ import annotations

from flask import Blueprint, g, request

from provincial_hr.core import employee_service, province_service
from provincial_hr.core.rbac import Role

from .decorators import get_store, login_required, role_required
from .responses import paginated_response, success_response

bp = Blueprint("provinces", __name__, url_prefix="/provinces")


def _json_body():
    return request.get_json(silent=True)


@bp.route("", methods=["GET"])
@role_required(Role.GLOBAL_ADMIN)
def list_provinces():
    return success_response(province_service.list_provinces(get_store(), g.identity))


@bp.route("/<province_id>", methods=["GET"])
@role_required(Role.GLOBAL_ADMIN)
def get_province(province_id: str):
    return success_response(province_service.get_province(get_store(), g.identity, province_id))


# ─────────────────────────────────────────────────────────────────────────────
# Employees (any role, province access enforced in the service layer)
# ─────────────────────────────────────────────────────────────────────────────
@bp.route("/<province_id>/employees", methods=["GET"])
@login_required
def list_employees(province_id: str):
    rows, total, params = employee_service.list_employees(get_store(), g.identity, province_id, request.args)
    return paginated_response(rows, total, params)


@bp.route("/<province_id>/employees", methods=["POST"])
@login_required
def create_employee(province_id: str):
    employee = employee_service.create_employee(get_store(), g.identity, province_id, _json_body())
    g.audit_resource_id = str(employee["_id"])
    return success_response(employee, message="Employee created successfully", status=201)


@bp.route("/<province_id>/employees/<employee_id>", methods=["GET"])
@login_required
def get_employee(province_id: str, employee_id: str):
    return success_response(employee_service.get_employee(get_store(), g.identity, province_id, employee_id))


@bp.route("/<province_id>/employees/<employee_id>", methods=["PUT"])
@login_required
def update_employee(province_id: str, employee_id: str):
    g.audit_resource_id = employee_id
    employee = employee_service.update_employee(get_store(), g.identity, province_id, employee_id, _json_body())
    return success_response(employee, message="Employee updated successfully")


@bp.route("/<province_id>/employees/<employee_id>", methods=["DELETE"])
@login_required
def delete_employee(province_id: str, employee_id: str):
    g.audit_resource_id = employee_id
    confirmation = employee_service.delete_employee(get_store(), g.identity, province_id, employee_id)
    return success_response(confirmation, message="Employee deleted successfully")


@bp.route("/<province_id>/employees/<employee_id>/performance", methods=["DELETE"])
@login_required
def reset_performance(province_id: str, employee_id: str):
    g.audit_resource_id = employee_id
    employee = employee_service.reset_performance(get_store(), g.identity, province_id, employee_id)
    return success_response(employee, message="Performance record removed")
