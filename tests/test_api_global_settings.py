"""Tests for the global settings row and the performance lock toggle."""
from provincial_hr.core import settings_service


def test_get_creates_unlocked_row(client, store):
    assert store.global_settings.count_documents({}) == 0
    response = client.get("/global-settings")
    assert response.status_code == 200
    assert response.get_json()["data"] == {"performanceLocked": False}
    assert store.global_settings.count_documents({}) == 1


def test_get_is_idempotent(client, store):
    client.get("/global-settings")
    client.get("/global-settings")
    assert store.global_settings.count_documents({}) == 1


def test_toggle_stamps_actor(global_client, seeded):
    response = global_client.post("/global-settings/toggle-performance-lock")
    assert response.status_code == 200
    body = response.get_json()
    assert body["message"] == "Performance records locked"
    assert body["data"]["performanceLocked"] is True
    assert body["data"]["lastLockedBy"] == str(seeded.global_admin["_id"])
    assert "lockedAt" in body["data"]

    response = global_client.post("/global-settings/toggle-performance-lock")
    assert response.get_json()["data"]["performanceLocked"] is False


def test_toggle_forbidden_for_province_admin(province_client, store):
    response = province_client.post("/global-settings/toggle-performance-lock")
    assert response.status_code == 403
    assert settings_service.is_performance_locked(store) is False


def test_toggle_requires_session(client):
    assert client.post("/global-settings/toggle-performance-lock").status_code == 401


def test_lock_state_read_fresh(client, store, seeded):
    settings_service.toggle_performance_lock(store, seeded.global_identity)
    assert client.get("/global-settings").get_json()["data"]["performanceLocked"] is True
