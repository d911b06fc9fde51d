from types import SimpleNamespace

import pytest
from bson import ObjectId

from provincial_hr.core import rbac
from provincial_hr.core.errors import Forbidden, Unauthenticated
from provincial_hr.core.rbac import Identity, Role

PROVINCE_A = "64b7f0c2a1b2c3d4e5f60718"
PROVINCE_B = "64b7f0c2a1b2c3d4e5f60719"


@pytest.fixture()
def global_admin():
    return Identity(id="u-global", role=Role.GLOBAL_ADMIN)


@pytest.fixture()
def province_admin():
    return Identity(id="u-a", role=Role.PROVINCE_ADMIN, province_id=PROVINCE_A)


@pytest.mark.parametrize("target", [PROVINCE_A, PROVINCE_B, ObjectId(), {"_id": PROVINCE_B}, None])
def test_global_admin_can_access_any_province(global_admin, target):
    assert rbac.can_access_province(global_admin, target) is True


@pytest.mark.parametrize(
    "target",
    [
        PROVINCE_A,
        ObjectId(PROVINCE_A),
        {"_id": ObjectId(PROVINCE_A), "name": "Tehran"},
        {"id": PROVINCE_A},
        SimpleNamespace(id=PROVINCE_A),
        f"  {PROVINCE_A} ",
    ],
)
def test_province_admin_can_access_own_province_in_any_reference_form(province_admin, target):
    assert rbac.can_access_province(province_admin, target) is True


@pytest.mark.parametrize("target", [PROVINCE_B, ObjectId(PROVINCE_B), {"_id": PROVINCE_B}, None, "", {}])
def test_province_admin_cannot_access_other_province(province_admin, target):
    assert rbac.can_access_province(province_admin, target) is False


def test_province_admin_bound_via_embedded_reference():
    identity = Identity(id="u-a", role=Role.PROVINCE_ADMIN, province_id=rbac.normalize_reference({"_id": ObjectId(PROVINCE_A)}))
    assert rbac.can_access_province(identity, PROVINCE_A) is True


def test_province_admin_identity_requires_province():
    with pytest.raises(ValueError):
        Identity(id="u-x", role=Role.PROVINCE_ADMIN)


@pytest.mark.parametrize(
    "value,expected",
    [
        (None, None),
        ("", None),
        (PROVINCE_A, PROVINCE_A),
        (ObjectId(PROVINCE_A), PROVINCE_A),
        ({"_id": ObjectId(PROVINCE_A)}, PROVINCE_A),
        ({"name": "no id"}, None),
        (SimpleNamespace(id=ObjectId(PROVINCE_A)), PROVINCE_A),
    ],
)
def test_normalize_reference(value, expected):
    assert rbac.normalize_reference(value) == expected


def test_ensure_province_access_raises_forbidden(province_admin):
    with pytest.raises(Forbidden) as exc:
        rbac.ensure_province_access(province_admin, PROVINCE_B)
    assert exc.value.status == 403


def test_require_role_passes_identity_through(global_admin):
    assert rbac.require_role(global_admin, Role.GLOBAL_ADMIN) is global_admin


def test_require_role_wrong_role_is_forbidden(province_admin):
    with pytest.raises(Forbidden, match="Required role: globalAdmin"):
        rbac.require_role(province_admin, Role.GLOBAL_ADMIN)


@pytest.mark.parametrize("check", [rbac.require_any_role, lambda i: rbac.require_role(i, Role.PROVINCE_ADMIN)])
def test_missing_identity_is_unauthenticated(check):
    with pytest.raises(Unauthenticated):
        check(None)


def test_role_parse():
    assert Role.parse("globalAdmin") is Role.GLOBAL_ADMIN
    assert Role.parse(Role.PROVINCE_ADMIN) is Role.PROVINCE_ADMIN
    assert Role.parse("superuser") is None
    assert Role.parse(None) is None


class TestSessionBinding:
    def test_resolve_identity_from_session(self):
        identity = rbac.resolve_identity({"userId": "u-a", "role": "provinceAdmin", "provinceId": PROVINCE_A})
        assert identity == Identity(id="u-a", role=Role.PROVINCE_ADMIN, province_id=PROVINCE_A)

    @pytest.mark.parametrize(
        "session_data",
        [
            {},
            {"role": "globalAdmin"},
            {"userId": "u-1"},
            {"userId": "u-1", "role": "unknown"},
            {"userId": "u-1", "role": "provinceAdmin"},
        ],
    )
    def test_incomplete_session_resolves_to_none(self, session_data):
        assert rbac.resolve_identity(session_data) is None

    def test_resolve_does_not_mutate_session(self):
        session_data = {"userId": "u-1", "role": "globalAdmin"}
        rbac.resolve_identity(session_data)
        assert session_data == {"userId": "u-1", "role": "globalAdmin"}

    def test_bind_session_replaces_previous_contents(self):
        session_data = {"userId": "old", "role": "globalAdmin", "_csrf_token": "t"}
        rbac.bind_session(session_data, Identity(id="u-a", role=Role.PROVINCE_ADMIN, province_id=PROVINCE_A))
        assert session_data == {"userId": "u-a", "role": "provinceAdmin", "provinceId": PROVINCE_A}

    def test_global_admin_public_dict_omits_province(self, global_admin):
        assert global_admin.to_public_dict() == {"role": "globalAdmin"}
