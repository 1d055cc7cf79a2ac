import pytest

from volunteer_manager.access import AccessControl, AccessList
from volunteer_manager.access.permissions import PERMISSION_GROUPS, describe_permissions
from volunteer_manager.errors import NotFoundError

# ============================================================================
# ACCESS LIST
# ============================================================================


def test_access_list_global_grant():
    access = AccessList("test.boolean")

    assert access.query("test.boolean") == {"expanded": False, "global": True}
    assert access.query("test.crud") is None


def test_access_list_scoped_grant():
    access = AccessList({"permission": "test.boolean", "event": "2025", "team": "stewards"})

    assert access.query("test.boolean", {"event": "2025"}) == {
        "expanded": False,
        "global": False,
        "scope": {"event": "2025", "team": "stewards"},
    }
    assert access.query("test.boolean", {"event": "2024"}) is None
    assert access.query("test.boolean", {"event": "2025", "team": "hosts"}) is None
    assert access.query("test.boolean", {"event": "*", "team": "*"})["scope"]["event"] == "2025"


def test_access_list_global_grant_applies_to_every_scope():
    access = AccessList(["test.boolean", {"permission": "test.boolean", "event": "2025"}])

    assert access.query("test.boolean", {"event": "2024"}) == {"expanded": False, "global": True}


def test_access_list_expansions():
    access = AccessList("staff", expansions=PERMISSION_GROUPS)

    assert access.query("staff") == {"expanded": False, "global": True}
    assert access.query("event.visible") == {"expanded": True, "global": True}

    # Explicitly granting an expanded permission clears the flag
    access = AccessList("staff,event.visible", expansions=PERMISSION_GROUPS)
    assert access.query("event.visible")["expanded"] is False


# ============================================================================
# ACCESS CONTROL
# ============================================================================


def test_boolean_permission():
    access = AccessControl(grants="test.boolean")

    assert access.can("test.boolean")
    assert access.get_status("test.boolean") == "self-granted"
    assert not access.can("test.boolean.required.team", {"team": "stewards"})


def test_access_control_require():
    access = AccessControl(grants="test.boolean")

    access.require("test.boolean")
    with pytest.raises(NotFoundError):
        access.require("test.crud", "read")


def test_parent_grant_implies_children():
    access = AccessControl(grants="test")

    assert access.get_status("test.boolean") == "parent-granted"
    assert access.can("test.crud", "delete")


def test_crud_operations():
    access = AccessControl(grants="test.crud:read")

    assert access.get_status("test.crud", "read") == "crud-granted"
    assert not access.can("test.crud", "update")


def test_revokes_take_precedence():
    access = AccessControl(grants="test", revokes=["test.boolean", "test.crud:delete"])

    assert access.get_status("test.boolean") == "self-revoked"
    assert access.get_status("test.crud", "delete") == "crud-revoked"
    assert access.can("test.crud", "read")

    # Revoking a parent also revokes its children
    assert access.get_status("test.boolean.required.event", {"event": "2025"}) == "parent-revoked"


def test_scoped_grants():
    access = AccessControl(grants={"permission": "test.boolean.required.event", "event": "2025"})

    assert access.can("test.boolean.required.event", {"event": "2025"})
    assert not access.can("test.boolean.required.event", {"event": "2024"})
    assert access.can("test.boolean.required.event", {"event": "*"})


def test_global_event_and_team_scopes():
    access = AccessControl(grants="test.boolean.required.both", events="2025", teams="stewards")

    assert access.can("test.boolean.required.both", {"event": "2025", "team": "stewards"})
    assert not access.can("test.boolean.required.both", {"event": "2024", "team": "stewards"})
    assert not access.can("test.boolean.required.both", {"event": "2025", "team": "hosts"})

    wildcard = AccessControl(grants="test.boolean.required.both", events="*", teams="*")
    assert wildcard.can("test.boolean.required.both", {"event": "2019", "team": "hosts"})


def test_scoped_revokes():
    access = AccessControl(
        grants="test",
        revokes={"permission": "test.boolean.required.event", "event": "2024"},
        events="*",
    )

    assert access.can("test.boolean.required.event", {"event": "2025"})
    assert not access.can("test.boolean.required.event", {"event": "2024"})


def test_admin_group_expands_to_every_permission():
    access = AccessControl(grants="admin", events="*", teams="*")

    assert access.can("system.logs", "delete")
    assert access.can("volunteer.silent")
    assert access.can("event.applications", "update", {"event": "2025", "team": "stewards"})


def test_staff_group():
    access = AccessControl(grants="staff", events="2025", teams="stewards")

    assert access.can("event.applications", "read", {"event": "2025", "team": "stewards"})
    assert not access.can("event.applications", "create", {"event": "2025", "team": "stewards"})
    assert not access.can("volunteer.silent")


def test_invalid_checks_raise():
    access = AccessControl(grants="test")

    with pytest.raises(ValueError, match="Invalid syntax"):
        access.can("Not A Permission")
    with pytest.raises(ValueError, match="Unrecognised permission"):
        access.can("test.unknown")
    with pytest.raises(ValueError, match="Invalid operation"):
        access.can("test.crud", "destroy")
    with pytest.raises(ValueError, match="Event is required"):
        access.can("test.boolean.required.event")
    with pytest.raises(ValueError, match="Team is required"):
        access.can("test.boolean.required.team", {"event": "2025"})


def test_invalid_grants_are_ignored():
    access = AccessControl(grants="Invalid Grant,test.boolean")

    assert access.can("test.boolean")


def test_describe_permissions_hides_test_permissions():
    described = {entry["permission"]: entry for entry in describe_permissions()}

    assert "test.boolean" not in described
    assert described["event.applications"]["operations"] == ["create", "read", "update"]
    assert described["event.applications"]["requireTeam"] is True
    assert described["volunteer.silent"]["operations"] is None
