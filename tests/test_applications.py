from volunteer_manager.constants import REGISTRATION_REGISTERED, REGISTRATION_REJECTED
from volunteer_manager.models import LogEntry, Registration


def register(db, seed, user, status=REGISTRATION_REGISTERED, **fields) -> Registration:
    registration = Registration(
        user_id=user.id,
        event_id=seed["event"].id,
        team_id=seed["team"].id,
        role_id=seed["volunteer_role"].id,
        registration_status=status,
        **fields,
    )
    db.add(registration)
    db.commit()
    return registration


def registration_of(db, user) -> Registration:
    db.expire_all()
    return db.query(Registration).filter(Registration.user_id == user.id).one()


def last_log(db) -> LogEntry:
    return db.query(LogEntry).order_by(LogEntry.id.desc()).first()


# ============================================================================
# UPDATE APPLICATION
# ============================================================================


def test_update_notes(client, db, seed, auth_headers):
    register(db, seed, seed["volunteer"])

    response = client.post(
        "/api/admin/update-application",
        json={"event": "2025", "team": "stewards", "userId": seed["volunteer"].id, "notes": "Prefers mornings"},
        headers=auth_headers(seed["lead"]),
    )

    assert response.json() == {"success": True}
    assert registration_of(db, seed["volunteer"]).registration_notes == "Prefers mornings"
    assert last_log(db).log_type == "event-volunteer-notes"


def test_update_requires_event_administration(client, db, seed, auth_headers):
    register(db, seed, seed["volunteer"])

    response = client.post(
        "/api/admin/update-application",
        json={"event": "2025", "team": "stewards", "userId": seed["volunteer"].id, "notes": "Hi"},
        headers=auth_headers(seed["volunteer"]),
    )

    assert response.status_code == 404


def test_update_data(client, db, seed, auth_headers):
    register(db, seed, seed["volunteer"], shirt_fit="Regular", shirt_size="M")

    response = client.post(
        "/api/admin/update-application",
        json={
            "event": "2025",
            "team": "stewards",
            "userId": seed["volunteer"].id,
            "data": {"credits": False, "socials": True, "tshirtFit": "Girly", "tshirtSize": "XL"},
        },
        headers=auth_headers(seed["admin"]),
    )

    assert response.json() == {"success": True}

    registration = registration_of(db, seed["volunteer"])
    assert (registration.shirt_fit, registration.shirt_size) == ("Girly", "XL")
    assert registration.include_credits is False
    assert last_log(db).log_type == "admin-update-team-volunteer"


def test_update_metadata_requires_permission(client, db, seed, auth_headers):
    register(db, seed, seed["volunteer"])

    response = client.post(
        "/api/admin/update-application",
        json={
            "event": "2025",
            "team": "stewards",
            "userId": seed["volunteer"].id,
            "metadata": {"hotelEligible": 1},
        },
        headers=auth_headers(seed["lead"]),
    )

    assert response.status_code == 403


def test_update_status_informs_the_volunteer(client, db, seed, auth_headers, scheduled_tasks):
    register(db, seed, seed["volunteer"])

    response = client.post(
        "/api/admin/update-application",
        json={
            "event": "2025",
            "team": "stewards",
            "userId": seed["volunteer"].id,
            "status": {"registrationStatus": "Accepted", "subject": "Welcome!", "message": "See you there"},
        },
        headers=auth_headers(seed["admin"]),
    )

    assert response.json() == {"success": True}
    assert registration_of(db, seed["volunteer"]).registration_status == "Accepted"

    [(task, params)] = scheduled_tasks
    assert task == "send_email_task"
    assert params["to"] == "volunteer@example.com"
    assert params["sender"] == "Ada Admin (AnimeCon)"

    log = last_log(db)
    assert log.log_type == "admin-update-team-volunteer-status"
    assert log.log_severity == "Warning"
    assert '"action": "Accepted"' in log.log_data


def test_update_status_silently(client, db, seed, auth_headers, scheduled_tasks):
    register(db, seed, seed["volunteer"])

    response = client.post(
        "/api/admin/update-application",
        json={
            "event": "2025",
            "team": "stewards",
            "userId": seed["volunteer"].id,
            "status": {"registrationStatus": "Rejected"},
        },
        headers=auth_headers(seed["admin"]),
    )

    assert response.json() == {"success": True}
    assert registration_of(db, seed["volunteer"]).registration_status == "Rejected"
    assert scheduled_tasks == []


def test_update_status_requires_permission(client, db, seed, auth_headers):
    register(db, seed, seed["volunteer"])

    response = client.post(
        "/api/admin/update-application",
        json={
            "event": "2025",
            "team": "stewards",
            "userId": seed["volunteer"].id,
            "status": {"registrationStatus": "Accepted", "subject": "Welcome!", "message": "Hi"},
        },
        headers=auth_headers(seed["lead"]),
    )

    assert response.status_code == 403


def test_silent_status_changes_require_permission(client, db, seed, auth_headers):
    register(db, seed, seed["volunteer"])
    seed["lead"].permission_grants = "event.applications"
    db.commit()

    response = client.post(
        "/api/admin/update-application",
        json={
            "event": "2025",
            "team": "stewards",
            "userId": seed["volunteer"].id,
            "status": {"registrationStatus": "Rejected"},
        },
        headers=auth_headers(seed["lead"]),
    )

    assert response.status_code == 403
    assert registration_of(db, seed["volunteer"]).registration_status == "Registered"


def test_reset_status_is_logged_as_reset(client, db, seed, auth_headers, scheduled_tasks):
    register(db, seed, seed["volunteer"], status=REGISTRATION_REJECTED)

    client.post(
        "/api/admin/update-application",
        json={
            "event": "2025",
            "team": "stewards",
            "userId": seed["volunteer"].id,
            "status": {"registrationStatus": "Registered"},
        },
        headers=auth_headers(seed["admin"]),
    )

    assert registration_of(db, seed["volunteer"]).registration_status == "Registered"
    assert '"action": "Reset"' in last_log(db).log_data
    assert scheduled_tasks == []


def test_status_change_without_application_sends_nothing(client, db, seed, auth_headers, scheduled_tasks):
    response = client.post(
        "/api/admin/update-application",
        json={
            "event": "2025",
            "team": "stewards",
            "userId": seed["volunteer"].id,
            "status": {"registrationStatus": "Accepted", "subject": "Welcome!", "message": "See you there"},
        },
        headers=auth_headers(seed["admin"]),
    )

    assert response.json() == {"success": False}
    assert scheduled_tasks == []
    assert db.query(LogEntry).filter(LogEntry.log_type == "admin-update-team-volunteer-status").count() == 0


# ============================================================================
# SERVER ACTIONS
# ============================================================================


def test_approve_application(client, db, seed, auth_headers, scheduled_tasks):
    user_id = seed["volunteer"].id
    register(db, seed, seed["volunteer"])

    response = client.post(
        f"/api/admin/applications/2025/stewards/{user_id}/approve",
        data={"subject": "Welcome!", "message": "See you at the event"},
        headers=auth_headers(seed["admin"]),
    )

    assert response.json() == {"success": True, "refresh": True}
    assert registration_of(db, seed["volunteer"]).registration_status == "Accepted"
    assert len(scheduled_tasks) == 1


def test_reject_missing_application(client, seed, auth_headers):
    response = client.post(
        f"/api/admin/applications/2025/stewards/{seed['volunteer'].id}/reject",
        data={"subject": "Sorry", "message": "Not this time"},
        headers=auth_headers(seed["admin"]),
    )

    assert response.json() == {"success": False, "error": "Unable to find the application…"}


def test_reconsider_application(client, db, seed, auth_headers, scheduled_tasks):
    register(db, seed, seed["volunteer"], status=REGISTRATION_REJECTED)

    response = client.post(
        f"/api/admin/applications/2025/stewards/{seed['volunteer'].id}/reconsider",
        headers=auth_headers(seed["admin"]),
    )

    assert response.json() == {"success": True, "refresh": True}
    assert registration_of(db, seed["volunteer"]).registration_status == "Registered"


def test_status_actions_require_permission(client, db, seed, auth_headers):
    register(db, seed, seed["volunteer"])

    response = client.post(
        f"/api/admin/applications/2025/stewards/{seed['volunteer'].id}/approve",
        data={"subject": "Welcome!", "message": "Hi"},
        headers=auth_headers(seed["lead"]),
    )

    assert response.status_code == 403
    assert response.json() == {"success": False}


def test_create_application(client, db, seed, auth_headers):
    form = {
        "userId": str(seed["volunteer"].id),
        "tshirtSize": "L",
        "tshirtFit": "Regular",
        "serviceHours": "12",
        "serviceTiming": "14-3",
    }

    response = client.post("/api/admin/applications/2025/hosts/create", data=form, headers=auth_headers(seed["admin"]))
    assert response.json() == {"success": True, "refresh": True}

    registration = registration_of(db, seed["volunteer"])
    assert registration.team_id == seed["other_team"].id
    assert (registration.preference_timing_start, registration.preference_timing_end) == (14, 3)
    assert last_log(db).log_type == "admin-event-application"

    response = client.post("/api/admin/applications/2025/stewards/create", data=form, headers=auth_headers(seed["admin"]))
    assert response.json() == {"success": False, "error": "This volunteer already has an active application…"}


def test_create_application_validation(client, seed, auth_headers):
    response = client.post(
        "/api/admin/applications/2025/stewards/create",
        data={"userId": str(seed["volunteer"].id)},
        headers=auth_headers(seed["admin"]),
    )

    assert response.json()["success"] is False
    assert response.json()["error"].startswith("Field ")


def test_move_application(client, db, seed, auth_headers):
    register(db, seed, seed["volunteer"])
    user_id = seed["volunteer"].id

    response = client.post(
        f"/api/admin/applications/2025/stewards/{user_id}/move",
        data={"team": "hosts"},
        headers=auth_headers(seed["admin"]),
    )

    assert response.json() == {"success": True, "refresh": True}
    assert registration_of(db, seed["volunteer"]).team_id == seed["other_team"].id
    assert '"action": "Moved"' in last_log(db).log_data


def test_move_application_to_the_same_team(client, db, seed, auth_headers):
    register(db, seed, seed["volunteer"])

    response = client.post(
        f"/api/admin/applications/2025/stewards/{seed['volunteer'].id}/move",
        data={"team": "stewards"},
        headers=auth_headers(seed["admin"]),
    )

    assert response.json() == {"success": False, "error": "The application already belongs to this team…"}


# ============================================================================
# SCHEDULE MARKERS
# ============================================================================


def test_schedule_markers(client, db, seed, auth_headers):
    register(
        db,
        seed,
        seed["volunteer"],
        availability_timeslots=str(seed["timeslot"].id),
        preference_timing_start=8,
        preference_timing_end=20,
    )

    response = client.get(
        f"/api/admin/availability/2025/{seed['volunteer'].id}", headers=auth_headers(seed["lead"])
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["avoid"] == [{"start": "2025-06-14T14:00:00Z", "end": "2025-06-14T15:30:00Z"}]
    assert body["unavailable"][0] == {"start": "2025-06-12T22:00:00Z", "end": "2025-06-13T06:00:00Z"}


def test_schedule_markers_for_unknown_volunteers(client, seed, auth_headers):
    response = client.get(
        f"/api/admin/availability/2025/{seed['volunteer'].id}", headers=auth_headers(seed["lead"])
    )

    assert response.status_code == 404
