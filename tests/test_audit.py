"""Unit tests for the mutation audit trail."""

import json

import pytest

from provincial_hr.core import audit

SIGNING_KEY = "test-signing-key-for-audit-trail"


@pytest.fixture
def audit_dir(tmp_path):
    return tmp_path / "audit"


def _log(audit_dir, **overrides):
    event = dict(
        method="PUT",
        path="/provinces/p/employees/e",
        status_code=200,
        user_id="u-1",
        role="provinceAdmin",
        province_id="p",
        ip="127.0.0.1",
        resource_id="e",
        signing_key=SIGNING_KEY,
    )
    event.update(overrides)
    return audit.log_mutation(audit_dir, **event)


def test_log_mutation_creates_restricted_file(audit_dir):
    _log(audit_dir)
    log_file = audit.audit_log_file(audit_dir)
    assert log_file.exists()
    assert log_file.stat().st_mode & 0o777 == 0o600


def test_log_mutation_writes_json_lines(audit_dir):
    _log(audit_dir)
    _log(audit_dir, method="DELETE", status_code=404)

    lines = audit.audit_log_file(audit_dir).read_text().splitlines()
    assert len(lines) == 2
    first, second = (json.loads(line) for line in lines)
    assert first["success"] is True
    assert second["success"] is False
    assert second["method"] == "DELETE"
    assert "signature" in first


def test_unsigned_when_no_key(audit_dir):
    event = _log(audit_dir, signing_key="")
    assert "signature" not in event
    assert audit.verify_audit_log(audit_dir, "") == (1, 0)


def test_verify_audit_log(audit_dir):
    _log(audit_dir)
    _log(audit_dir, user_id="u-2")
    assert audit.verify_audit_log(audit_dir, SIGNING_KEY) == (2, 2)


def test_verify_detects_tampering(audit_dir):
    _log(audit_dir)
    _log(audit_dir, user_id="u-2")
    log_file = audit.audit_log_file(audit_dir)
    lines = log_file.read_text().splitlines()
    tampered = json.loads(lines[0])
    tampered["status_code"] = 500
    lines[0] = json.dumps(tampered)
    log_file.write_text("\n".join(lines) + "\n")

    assert audit.verify_audit_log(audit_dir, SIGNING_KEY) == (2, 1)


def test_verify_with_wrong_key(audit_dir):
    _log(audit_dir)
    assert audit.verify_audit_log(audit_dir, "other-key") == (1, 0)


def test_verify_missing_file(audit_dir):
    assert audit.verify_audit_log(audit_dir, SIGNING_KEY) == (0, 0)


def test_safe_log_mutation_never_raises(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("file in the way")
    assert audit.safe_log_mutation(blocker, method="POST", path="/x", status_code=201) is False


class TestRequestAudit:
    def test_mutations_are_audited_with_actor(self, province_client, settings, seeded):
        province_client.post(f"/provinces/{seeded.province_a['_id']}/employees", json={})

        events = [
            json.loads(line)
            for line in audit.audit_log_file(settings.audit_log_dir).read_text().splitlines()
        ]
        assert events[0]["path"] == "/auth/login"
        assert events[0]["user_id"] == str(seeded.province_admin["_id"])
        create = events[-1]
        assert create["method"] == "POST"
        assert create["status_code"] == 400
        assert create["success"] is False
        assert create["province_id"] == str(seeded.province_a["_id"])

    def test_reads_are_not_audited(self, client, settings):
        client.get("/global-settings")
        assert not audit.audit_log_file(settings.audit_log_dir).exists()

    def test_created_resource_id_is_recorded(self, global_client, settings, seeded):
        from tests.conftest import employee_payload

        response = global_client.post(f"/provinces/{seeded.province_a['_id']}/employees", json=employee_payload())
        created_id = response.get_json()["data"]["_id"]
        last = audit.audit_log_file(settings.audit_log_dir).read_text().splitlines()[-1]
        assert json.loads(last)["resource_id"] == created_id
        assert audit.verify_audit_log(settings.audit_log_dir, settings.audit_log_signing_key) == (2, 2)
