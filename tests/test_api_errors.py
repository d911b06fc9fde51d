from types import SimpleNamespace

import pytest
from bson import ObjectId
from flask import Flask, abort
from pymongo.errors import DuplicateKeyError

from provincial_hr.api.errors import register_error_handlers
from provincial_hr.core.errors import Locked, NotFound, TooManyRequests


@pytest.fixture()
def flask_client():
    app = Flask(__name__)
    app.config["TESTING"] = True
    app.logger = SimpleNamespace(error=lambda *args, **kwargs: None, warning=lambda *args, **kwargs: None)

    register_error_handlers(app)

    @app.route("/typed/not-found")
    def typed_not_found():
        raise NotFound("Employee not found")

    @app.route("/typed/locked")
    def typed_locked():
        raise Locked()

    @app.route("/typed/throttled")
    def typed_throttled():
        raise TooManyRequests(retry_after=42)

    @app.route("/storage/duplicate")
    def duplicate():
        raise DuplicateKeyError("E11000 duplicate key error", 11000)

    @app.route("/storage/bad-id")
    def bad_id():
        ObjectId("nope")

    @app.route("/crash")
    def crash():
        raise RuntimeError("connection string mongodb://user:secret@db")

    @app.route("/described")
    def described():
        abort(403, description="CSRF validation failed")

    @app.route("/only-get", methods=["GET"])
    def only_get():
        return "ok"

    with app.test_client() as client:
        yield client


def test_typed_error_envelope(flask_client):
    response = flask_client.get("/typed/not-found")
    assert response.status_code == 404
    assert response.get_json() == {"success": False, "error": "Employee not found"}


def test_locked_carries_code(flask_client):
    response = flask_client.get("/typed/locked")
    assert response.status_code == 423
    assert response.get_json()["code"] == "PERFORMANCE_LOCKED"


def test_throttled_sets_retry_after(flask_client):
    response = flask_client.get("/typed/throttled")
    assert response.status_code == 429
    assert response.headers["Retry-After"] == "42"


def test_duplicate_key_is_conflict(flask_client):
    response = flask_client.get("/storage/duplicate")
    assert response.status_code == 409
    assert "E11000" not in response.get_data(as_text=True)


def test_invalid_object_id_is_bad_request(flask_client):
    response = flask_client.get("/storage/bad-id")
    assert response.status_code == 400
    assert response.get_json() == {"success": False, "error": "Invalid ID format"}


def test_unexpected_error_hides_details(flask_client):
    response = flask_client.get("/crash")
    assert response.status_code == 500
    assert response.get_json() == {"success": False, "error": "Internal server error"}
    assert "secret" not in response.get_data(as_text=True)


def test_abort_description_is_used(flask_client):
    response = flask_client.get("/described")
    assert response.status_code == 403
    assert response.get_json()["error"] == "CSRF validation failed"


def test_unknown_route_is_json_404(flask_client):
    response = flask_client.get("/missing")
    assert response.status_code == 404
    assert response.get_json() == {"success": False, "error": "Resource not found"}


def test_method_not_allowed(flask_client):
    response = flask_client.post("/only-get")
    assert response.status_code == 405
    assert response.get_json()["success"] is False
