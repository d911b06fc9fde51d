"""Uniform response envelope: {success, data?, error?, message?, pagination?, _links?}."""
from __future__ import annotations
from typing import Any, Optional

from flask import jsonify, request

from provincial_hr.core.pagination import PageParams, build_links, build_pagination
from provincial_hr.core.store import serialize


def success_response(data: Any = None, message: Optional[str] = None, status: int = 200):
    body: dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = serialize(data)
    if message:
        body["message"] = message
    return jsonify(body), status


def paginated_response(rows: list, total: int, params: PageParams):
    pagination = build_pagination(total, params)
    body = {
        "success": True,
        "data": serialize(rows),
        "pagination": pagination,
        "_links": build_links(request.base_url, request.args.to_dict(), params, pagination["pages"]),
    }
    return jsonify(body), 200


def error_response(message: str, status: int, code: Optional[str] = None):
    body: dict[str, Any] = {"success": False, "error": message}
    if code:
        body["code"] = code
    return jsonify(body), status
