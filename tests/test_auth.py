import pytest

from volunteer_manager.access import Privilege
from volunteer_manager.auth import (
    and_,
    authenticate_user_from_session,
    build_authentication_context,
    create_session_token,
    decode_session_token,
    execute_access_check,
    get_guest_context,
    invalidate_sessions,
    or_,
)
from volunteer_manager.errors import NoAccessError, NotFoundError


def test_session_tokens(db, seed):
    token = create_session_token(seed["volunteer"])
    session = decode_session_token(token)

    assert session == {"id": seed["volunteer"].id, "token": 0}
    assert authenticate_user_from_session(db, session).email == "volunteer@example.com"


def test_invalid_session_tokens():
    assert decode_session_token("not-a-token") is None


def test_invalidated_sessions_no_longer_authenticate(db, seed):
    session = decode_session_token(create_session_token(seed["volunteer"]))
    invalidate_sessions(db, seed["volunteer"])

    assert authenticate_user_from_session(db, session) is None


def test_deactivated_users_cannot_authenticate(db, seed):
    session = decode_session_token(create_session_token(seed["volunteer"]))
    seed["volunteer"].activated = False
    db.commit()

    assert authenticate_user_from_session(db, session) is None


def test_context_for_event_leads(db, seed):
    context = build_authentication_context(db, seed["lead"])

    assert context.events == {"2025": {"admin": True, "event": "2025", "team": "stewards"}}
    assert not context.access.can("event.visible", {"event": "2025"})


def test_context_for_administrators(db, seed):
    context = build_authentication_context(db, seed["admin"])

    assert context.events == {}
    assert context.access.can("event.applications", "update", {"event": "2019", "team": "hosts"})


def test_context_includes_granted_permissions(db, seed):
    seed["lead"].permission_grants = "event.hotels"
    db.commit()

    context = build_authentication_context(db, seed["lead"])
    assert context.access.can("event.hotels", {"event": "2025"})
    assert not context.access.can("event.hotels", {"event": "2024"})


def test_access_checks_for_guests():
    with pytest.raises(NotFoundError):
        execute_access_check(get_guest_context(), check="admin")


def test_admin_checks(db, seed):
    volunteer = build_authentication_context(db, seed["volunteer"])
    lead = build_authentication_context(db, seed["lead"])

    with pytest.raises(NotFoundError):
        execute_access_check(volunteer, check="admin")

    execute_access_check(lead, check="admin")
    execute_access_check(lead, check="admin-event", event="2025")

    with pytest.raises(NotFoundError):
        execute_access_check(lead, check="admin-event", event="2024")


def test_event_checks(db, seed):
    lead = build_authentication_context(db, seed["lead"])
    execute_access_check(lead, check="event", event="2025")

    with pytest.raises(NotFoundError):
        execute_access_check(lead, check="event", event="2024")

    admin = build_authentication_context(db, seed["admin"])
    execute_access_check(admin, check="event", event="2024")


def test_privilege_checks(db, seed):
    seed["lead"].privileges = int(Privilege.EventHotelManagement)
    db.commit()
    lead = build_authentication_context(db, seed["lead"])

    execute_access_check(lead, privilege=Privilege.EventHotelManagement)
    execute_access_check(lead, privilege=or_(Privilege.EventHotelManagement, Privilege.Statistics))

    with pytest.raises(NotFoundError):
        execute_access_check(lead, privilege=and_(Privilege.EventHotelManagement, Privilege.Statistics))


def test_permission_checks_are_forbidden(db, seed):
    lead = build_authentication_context(db, seed["lead"])

    with pytest.raises(NoAccessError):
        execute_access_check(lead, check="admin", permission="volunteer.silent")

    with pytest.raises(NoAccessError):
        execute_access_check(
            lead,
            check="admin",
            permission={
                "permission": "event.applications",
                "operation": "update",
                "scope": {"event": "2025", "team": "stewards"},
            },
        )


def test_unknown_access_check(db, seed):
    with pytest.raises(ValueError):
        execute_access_check(build_authentication_context(db, seed["admin"]), check="superuser")
