"""Pytest shared fixtures: a mongomock-backed app with seeded admins and provinces."""
import itertools
import pathlib
import sys
from types import SimpleNamespace

import mongomock
import pytest

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from provincial_hr.config import AppConfig
from provincial_hr.core import auth_service, province_service
from provincial_hr.core.rbac import Identity, Role
from provincial_hr.core.store import DocumentStore, utcnow
from provincial_hr.core.validators import validate_employee_create
from provincial_hr.flask_app import create_app

PASSWORD = "Sup3r-Secret!"
TEST_BCRYPT_ROUNDS = 4

_national_ids = itertools.count(1000000000)


# ─────────────────────────────────────────────────────────────────────────────
# Application
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture()
def settings(tmp_path):
    return AppConfig(
        environment="test",
        secret_key="test-secret-key",
        session_cookie_secure=False,
        session_type="filesystem",
        session_file_dir=str(tmp_path / "sessions"),
        trusted_proxy_ips="127.0.0.1/32,::1/128",
        csrf_protection=False,
        mongo_uri="mongodb://mongomock",
        mongo_db_name="provincial_hr_test",
        bcrypt_rounds=TEST_BCRYPT_ROUNDS,
        login_rate_limit_window_seconds=900,
        login_rate_limit_max_attempts=3,
        audit_log_dir=str(tmp_path / "audit"),
        audit_log_signing_key="audit-test-key",
    )


@pytest.fixture()
def store():
    client = mongomock.MongoClient()
    store = DocumentStore(client, "provincial_hr_test")
    store.ensure_indexes()
    yield store
    client.close()


@pytest.fixture()
def seeded(store):
    """Global admin, provinces A and B, and a province admin bound to A."""
    global_admin = auth_service.create_user(
        store, "global", PASSWORD, Role.GLOBAL_ADMIN, rounds=TEST_BCRYPT_ROUNDS
    )
    province_a = province_service.find_or_create_province(store, "Tehran")
    province_b = province_service.find_or_create_province(store, "Isfahan")
    admin_a = auth_service.create_user(
        store, "tehran-admin", PASSWORD, Role.PROVINCE_ADMIN,
        province_id=province_a["_id"], rounds=TEST_BCRYPT_ROUNDS,
    )
    province_service.assign_admin(store, province_a, admin_a["_id"])

    return SimpleNamespace(
        global_admin=global_admin,
        province_admin=admin_a,
        province_a=province_a,
        province_b=province_b,
        global_identity=Identity(id=str(global_admin["_id"]), role=Role.GLOBAL_ADMIN),
        province_identity=Identity(
            id=str(admin_a["_id"]), role=Role.PROVINCE_ADMIN, province_id=str(province_a["_id"])
        ),
    )


@pytest.fixture()
def app(settings, store, seeded):
    return create_app(settings, store=store)


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def global_client(app):
    client = app.test_client()
    response = login(client, "global")
    assert response.status_code == 200
    return client


@pytest.fixture()
def province_client(app):
    client = app.test_client()
    response = login(client, "tehran-admin")
    assert response.status_code == 200
    return client


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────
def login(client, username: str, password: str = PASSWORD):
    return client.post("/auth/login", json={"username": username, "password": password})


def employee_payload(first_name: str = "Ali", **sections) -> dict:
    """A valid create payload; keyword arguments replace whole sections."""
    payload = {
        "basicInfo": {
            "firstName": first_name,
            "lastName": "Rezaei",
            "nationalID": str(next(_national_ids)),
            "male": True,
            "married": False,
            "childrenCount": 0,
        },
        "workPlace": {
            "provinceName": "Tehran",
            "branch": "Central",
            "rank": "Officer",
            "licensedWorkplace": "Depot 4",
        },
        "additionalSpecifications": {
            "educationalDegree": "Bachelor",
            "dateOfBirth": "1990-05-01T00:00:00Z",
            "contactNumber": "09121234567",
            "jobStartDate": "2015-09-01",
        },
    }
    payload.update(sections)
    return payload


def performance_payload(**overrides) -> dict:
    performance = {
        "dailyPerformance": 8,
        "shiftCountPerLocation": 2,
        "shiftDuration": 8,
    }
    performance.update(overrides)
    return performance


def insert_employee(store: DocumentStore, province_id, first_name: str = "Ali", **sections) -> dict:
    """Insert a validated employee directly into the store."""
    document = validate_employee_create(employee_payload(first_name, **sections))
    now = utcnow()
    document.update(provinceId=province_id, createdAt=now, updatedAt=now)
    document["_id"] = store.employees.insert_one(document).inserted_id
    store.provinces.update_one({"_id": province_id}, {"$addToSet": {"employeeIds": document["_id"]}})
    return document


# ─────────────────────────────────────────────────────────────────────────────
# Pytest Configuration
# ─────────────────────────────────────────────────────────────────────────────
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests that need a running MongoDB"
    )
