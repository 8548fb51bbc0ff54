import pytest

from resenix.auth.access_gate import DenyReason, authorize, parse_permission
from resenix.core.exceptions import InvalidInputError
from resenix.models.user import Action, PermissionSet, Resource, User


def make_user(role="viewer", permissions=None, **extra):
    return User(
        id=f"{role}-uid",
        email=f"{role}@resenixpro.com",
        role=role,
        permissions=permissions if permissions is not None else PermissionSet.view_only(),
        **extra,
    )


def test_viewer_denied_admin_page():
    decision = authorize(make_user("viewer"), "admin", [])
    assert not decision
    assert decision.reason == DenyReason.INSUFFICIENT_ROLE
    assert decision.message == "Insufficient role"


def test_viewer_missing_edit_permission():
    decision = authorize(make_user("viewer"), "viewer", ["equipments:edit"])
    assert decision.allowed is False
    assert decision.reason == DenyReason.MISSING_PERMISSION
    assert decision.resource == Resource.EQUIPMENTS
    assert decision.action == Action.EDIT
    assert decision.message == "Missing permission: equipments:edit"


def test_no_user_is_unauthenticated():
    decision = authorize(None, None, ["equipments:view"])
    assert decision.reason == DenyReason.UNAUTHENTICATED


def test_no_requirements_allows_any_signed_in_user():
    assert authorize(make_user("custom", PermissionSet()))


def test_viewer_with_grant_is_allowed():
    assert authorize(make_user("viewer"), "viewer", ["equipments:view", "tasks:view"]).allowed


def test_every_permission_must_hold():
    perms = PermissionSet().grant("equipments", "view").grant("tasks", "view")
    user = make_user("custom", perms)
    assert authorize(user, None, ["equipments:view", "tasks:view"])

    decision = authorize(user, None, ["equipments:view", "reports:view"])
    assert decision.reason == DenyReason.MISSING_PERMISSION
    assert decision.resource == Resource.REPORTS


def test_first_failing_permission_is_reported():
    decision = authorize(make_user("custom", PermissionSet()), None, ["tasks:delete", "users:admin"])
    assert decision.resource == Resource.TASKS
    assert decision.action == Action.DELETE


def test_admin_with_empty_permissions_passes_everything():
    admin = make_user("admin", PermissionSet())
    assert authorize(admin, "viewer", ["users:admin", "equipments:delete", "orders:edit"]).allowed
    assert authorize(admin, "admin", []).allowed


def test_role_checked_before_permissions():
    decision = authorize(make_user("custom", PermissionSet()), "viewer", ["equipments:view"])
    assert decision.reason == DenyReason.INSUFFICIENT_ROLE


@pytest.mark.parametrize("requirement", ["equipments", "equipments:fly", "buildings:view", ""])
def test_malformed_requirement_raises(requirement):
    with pytest.raises(InvalidInputError):
        authorize(make_user("viewer"), None, [requirement])


def test_malformed_requirement_raises_even_without_user():
    with pytest.raises(InvalidInputError):
        authorize(None, None, ["nonsense"])


def test_unknown_required_role_raises():
    with pytest.raises(InvalidInputError) as exc:
        authorize(make_user("admin"), "superuser", [])
    assert exc.value.field == "requiredRole"


def test_parse_permission_strips_whitespace():
    assert parse_permission(" reports : delete ") == (Resource.REPORTS, Action.DELETE)


def test_repeated_checks_agree():
    user = make_user("viewer")
    for requirements in (["equipments:view"], ["equipments:edit"]):
        assert authorize(user, "viewer", requirements) == authorize(user, "viewer", requirements)
