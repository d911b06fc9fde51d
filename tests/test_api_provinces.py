"""Tests for the global-admin province routes."""
from bson import ObjectId


def test_list_provinces_requires_session(client):
    assert client.get("/provinces").status_code == 401


def test_list_provinces_forbidden_for_province_admin(province_client):
    response = province_client.get("/provinces")
    assert response.status_code == 403
    assert response.get_json() == {"success": False, "error": "Required role: globalAdmin"}


def test_list_provinces_populates_admin(global_client, seeded):
    response = global_client.get("/provinces")
    assert response.status_code == 200
    provinces = {p["name"]: p for p in response.get_json()["data"]}
    assert set(provinces) == {"Tehran", "Isfahan"}
    assert provinces["Tehran"]["admin"] == {
        "_id": str(seeded.province_admin["_id"]),
        "username": "tehran-admin",
        "role": "provinceAdmin",
    }
    assert provinces["Isfahan"]["admin"] is None
    assert "passwordHash" not in response.get_data(as_text=True)


def test_get_province(global_client, seeded):
    response = global_client.get(f"/provinces/{seeded.province_b['_id']}")
    assert response.status_code == 200
    assert response.get_json()["data"]["name"] == "Isfahan"


def test_get_province_not_found(global_client):
    response = global_client.get(f"/provinces/{ObjectId()}")
    assert response.status_code == 404
    assert response.get_json()["error"] == "Province not found"


def test_get_province_bad_id(global_client):
    response = global_client.get("/provinces/not-an-id")
    assert response.status_code == 400
    assert response.get_json()["error"] == "Invalid province ID format"


def test_get_province_forbidden_for_province_admin(province_client, seeded):
    assert province_client.get(f"/provinces/{seeded.province_a['_id']}").status_code == 403
