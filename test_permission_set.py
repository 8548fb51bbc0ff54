import pytest
from pydantic import ValidationError

from resenix.models.user import PermissionSet, Resource, User, UserRole, UserStatus


def test_empty_set_allows_nothing():
    perms = PermissionSet()
    assert not any(perms.allows(r, a) for r in Resource for a in ("view", "edit", "delete", "admin"))


def test_legacy_string_grants_action_everywhere():
    perms = PermissionSet.parse_obj("view")
    assert all(perms.allows(r, "view") for r in Resource)
    assert not perms.allows("equipments", "edit")


@pytest.mark.parametrize("raw", [None, ""])
def test_missing_map_is_empty(raw):
    assert PermissionSet.parse_obj(raw) == PermissionSet()


def test_unknown_resource_is_rejected():
    with pytest.raises(ValidationError):
        PermissionSet(buildings={"view": True})


def test_unknown_action_is_rejected():
    with pytest.raises(ValidationError):
        PermissionSet(equipments={"fly": True})


def test_partial_map_fills_missing_actions_with_false():
    perms = PermissionSet(equipments={"view": True})
    assert perms.allows("equipments", "view")
    assert not perms.allows("equipments", "delete")
    assert not perms.allows("tasks", "view")


def test_grant_returns_new_set():
    base = PermissionSet()
    granted = base.grant("reports", "delete")
    assert granted.allows("reports", "delete")
    assert not base.allows("reports", "delete")


def test_role_defaults():
    assert PermissionSet.for_role("admin") == PermissionSet.full()
    assert PermissionSet.for_role(UserRole.VIEWER) == PermissionSet.view_only()
    assert PermissionSet.for_role("custom") == PermissionSet()


def test_user_reads_legacy_profile_fields():
    user = User(uid="abc", email="ops@resenixpro.com", role="custom", active=False, permissions="edit")
    assert user.id == "abc"
    assert user.status == UserStatus.INACTIVE
    assert user.permissions.allows("orders", "edit")
    assert not user.is_admin


def test_user_id_from_document_id():
    user = User(_doc_id="doc-1", email="admin@resenixpro.com", role="admin")
    assert user.id == "doc-1"
    assert user.is_admin
