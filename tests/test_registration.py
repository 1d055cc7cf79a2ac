import json
from datetime import date, datetime, timedelta

from volunteer_manager.constants import EVENT_AVAILABILITY_LOCKED, REGISTRATION_REGISTERED
from volunteer_manager.models import (
    EventTeam,
    Hotel,
    HotelPreference,
    LogEntry,
    ProgramTimeslot,
    Refund,
    Registration,
    Role,
    TrainingAssignment,
)
from volunteer_manager.shared.dates import utc_now

APPLICATION = {
    "event": "2025",
    "team": "stewards",
    "credits": True,
    "socials": False,
    "tshirtFit": "Regular",
    "tshirtSize": "M",
    "serviceHours": "16",
    "serviceTiming": "10-0",
    "availability": True,
}


def register(db, seed, user, **fields) -> Registration:
    registration = Registration(
        user_id=user.id,
        event_id=seed["event"].id,
        team_id=seed["team"].id,
        role_id=seed["volunteer_role"].id,
        registration_status=REGISTRATION_REGISTERED,
        **fields,
    )
    db.add(registration)
    db.commit()
    return registration


def log_types(db) -> list[str]:
    return [entry.log_type for entry in db.query(LogEntry).order_by(LogEntry.id)]


# ============================================================================
# ENVIRONMENT
# ============================================================================


def test_environment_for_guests(client, seed):
    response = client.get("/api/environment")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["environment"]["domain"] == "stewards.team"
    assert body["authType"] == "guest"
    assert body["user"] is None
    assert body["events"][0]["slug"] == "2025"


def test_environment_for_signed_in_volunteers(client, seed, auth_headers):
    response = client.get("/api/environment", headers=auth_headers(seed["lead"]))

    assert response.json()["user"]["name"] == "Lars Lead"
    assert response.json()["events"][0]["applications"][0]["status"] == "Accepted"


def test_environment_for_unknown_hosts(client, seed):
    response = client.get("/api/environment", headers={"host": "example.com"})

    assert response.status_code == 404


# ============================================================================
# APPLICATIONS
# ============================================================================


def test_application(client, db, seed, auth_headers, scheduled_tasks):
    volunteer = seed["volunteer"]
    response = client.post("/api/event/application", json=APPLICATION, headers=auth_headers(volunteer))

    assert response.status_code == 200
    assert response.json() == {"success": True}

    registration = db.query(Registration).filter(Registration.user_id == volunteer.id).one()
    assert registration.registration_status == "Registered"
    assert registration.role_id == seed["volunteer_role"].id
    assert registration.preference_hours == 16
    assert (registration.preference_timing_start, registration.preference_timing_end) == (10, 0)
    assert registration.include_socials is False

    assert log_types(db) == ["event-application"]

    (email_task, email), (notification_task, notification) = scheduled_tasks
    assert email_task == "send_email_task"
    assert email["to"] == "volunteer@example.com"
    assert email["subject"] == "Your application for AnimeCon"
    assert email["markdown"] == "Hi Vera, thanks for applying to the Steward Team!"
    assert email["sender"] == "AnimeCon Steward Team"

    assert notification_task == "publish_notification_task"
    assert notification["type"] == "application"
    assert notification["message"]["teamSlug"] == "stewards"


def test_application_requires_sign_in(client, seed):
    response = client.post("/api/event/application", json=APPLICATION)

    assert response.json() == {"success": False, "error": "Sorry, you need to log in to your account first."}


def test_application_for_unknown_event(client, seed, auth_headers):
    response = client.post(
        "/api/event/application", json={**APPLICATION, "event": "1999"}, headers=auth_headers(seed["volunteer"])
    )

    assert response.json()["error"] == "Sorry, something went wrong (unable to find the right event)..."


def test_application_validation(client, seed, auth_headers):
    response = client.post(
        "/api/event/application",
        json={**APPLICATION, "serviceTiming": "2-4"},
        headers=auth_headers(seed["volunteer"]),
    )

    assert response.status_code == 500
    assert "serviceTiming" in response.json()["error"]


def test_duplicate_application(client, seed, auth_headers, scheduled_tasks):
    response = client.post("/api/event/application", json=APPLICATION, headers=auth_headers(seed["lead"]))

    assert response.json() == {
        "success": False,
        "error": "You already have an active application…",
    }
    assert scheduled_tasks == []


def test_application_before_the_window_opens(client, db, seed, auth_headers):
    event_team = db.query(EventTeam).filter(EventTeam.team_id == seed["team"].id).one()
    event_team.enable_applications = False
    event_team.application_start = utc_now() + timedelta(days=7)
    db.commit()

    response = client.post("/api/event/application", json=APPLICATION, headers=auth_headers(seed["volunteer"]))

    assert response.json() == {"success": False, "error": "Sorry, applications are not being accepted yet…"}


def test_application_after_the_window_closed(client, db, seed, auth_headers):
    event_team = db.query(EventTeam).filter(EventTeam.team_id == seed["team"].id).one()
    event_team.enable_applications = False
    event_team.application_start = datetime(2024, 1, 1)
    event_team.application_end = datetime(2024, 3, 1)
    db.commit()

    response = client.post("/api/event/application", json=APPLICATION, headers=auth_headers(seed["volunteer"]))

    assert response.json() == {"success": False, "error": "Sorry, applications are no longer accepted…"}
    assert db.query(Registration).filter(Registration.user_id == seed["volunteer"].id).count() == 0


def test_application_within_the_window(client, db, seed, auth_headers, scheduled_tasks):
    event_team = db.query(EventTeam).filter(EventTeam.team_id == seed["team"].id).one()
    event_team.enable_applications = False
    event_team.application_start = utc_now() - timedelta(days=1)
    event_team.application_end = utc_now() + timedelta(days=1)
    db.commit()

    response = client.post("/api/event/application", json=APPLICATION, headers=auth_headers(seed["volunteer"]))

    assert response.json() == {"success": True}

def test_application_on_behalf_of_a_volunteer(client, db, seed, auth_headers, scheduled_tasks):
    payload = {**APPLICATION, "adminOverride": {"userId": seed["volunteer"].id}}
    response = client.post("/api/event/application", json=payload, headers=auth_headers(seed["admin"]))

    assert response.json() == {"success": True}
    assert db.query(Registration).filter(Registration.user_id == seed["volunteer"].id).count() == 1
    assert log_types(db) == ["admin-event-application"]
    assert scheduled_tasks == []


def test_application_on_behalf_requires_permission(client, seed, auth_headers):
    payload = {**APPLICATION, "adminOverride": {"userId": seed["volunteer"].id}}
    response = client.post("/api/event/application", json=payload, headers=auth_headers(seed["lead"]))

    assert response.status_code == 403


# ============================================================================
# PREFERENCES
# ============================================================================


def availability(**fields) -> dict:
    return {"event": "2025", "team": "stewards", "serviceHours": "16", "serviceTiming": "10-0", **fields}


def add_timeslots(db, seed, count: int) -> list[int]:
    activity_id = seed["timeslot"].activity_id
    timeslots = [
        ProgramTimeslot(
            activity_id=activity_id,
            start_time=datetime(2025, 6, 13, 12 + index, 0),
            end_time=datetime(2025, 6, 13, 13 + index, 0),
        )
        for index in range(count)
    ]
    db.add_all(timeslots)
    db.commit()
    return [timeslot.id for timeslot in timeslots]


def test_availability_preferences(client, db, seed, auth_headers):
    register(db, seed, seed["volunteer"])
    timeslot_id = seed["timeslot"].id

    response = client.post(
        "/api/event/availability-preferences",
        json=availability(
            exceptionEvents=[timeslot_id, None, 999],
            serviceHours="24",
            serviceTiming="14-3",
            preferences="Near the main stage",
            preferencesDietary="vegan",
        ),
        headers=auth_headers(seed["volunteer"]),
    )

    assert response.json() == {"success": True}

    db.expire_all()
    registration = db.query(Registration).filter(Registration.user_id == seed["volunteer"].id).one()
    assert registration.availability_timeslots == str(timeslot_id)
    assert registration.preference_hours == 24
    assert (registration.preference_timing_start, registration.preference_timing_end) == (14, 3)
    assert registration.preferences == "Near the main stage"
    assert registration.preferences_dietary == "vegan"
    assert registration.preferences_updated is not None
    assert registration.availability_exceptions is None
    assert log_types(db) == ["application-availability-preferences"]


def test_availability_preferences_are_limited(client, db, seed, auth_headers):
    register(db, seed, seed["volunteer"], availability_event_limit=0)

    response = client.post(
        "/api/event/availability-preferences",
        json=availability(exceptionEvents=[seed["timeslot"].id]),
        headers=auth_headers(seed["volunteer"]),
    )

    assert response.json() == {"success": True}

    db.expire_all()
    registration = db.query(Registration).filter(Registration.user_id == seed["volunteer"].id).one()
    assert registration.availability_timeslots == ""


def test_availability_preferences_fall_back_to_the_role_limit(client, db, seed, auth_headers):
    register(db, seed, seed["volunteer"])
    timeslot_ids = add_timeslots(db, seed, 3)

    response = client.post(
        "/api/event/availability-preferences",
        json=availability(exceptionEvents=timeslot_ids),
        headers=auth_headers(seed["volunteer"]),
    )

    assert response.json() == {"success": True}

    db.expire_all()
    registration = db.query(Registration).filter(Registration.user_id == seed["volunteer"].id).one()
    assert registration.availability_timeslots == ",".join(str(timeslot_id) for timeslot_id in timeslot_ids[:2])


def test_availability_preferences_without_any_limit(client, db, seed, auth_headers):
    role = Role(name="Runner", availability_event_limit=0)
    db.add(role)
    db.flush()
    db.add(
        Registration(
            user_id=seed["volunteer"].id,
            event_id=seed["event"].id,
            team_id=seed["team"].id,
            role_id=role.id,
            registration_status=REGISTRATION_REGISTERED,
        )
    )
    db.commit()

    response = client.post(
        "/api/event/availability-preferences",
        json=availability(exceptionEvents=[seed["timeslot"].id]),
        headers=auth_headers(seed["volunteer"]),
    )

    assert response.json() == {"success": True}

    db.expire_all()
    registration = db.query(Registration).filter(Registration.user_id == seed["volunteer"].id).one()
    assert registration.availability_timeslots == ""


def test_availability_preferences_when_locked(client, db, seed, auth_headers):
    register(db, seed, seed["volunteer"])
    seed["event"].availability_status = EVENT_AVAILABILITY_LOCKED
    db.commit()

    response = client.post(
        "/api/event/availability-preferences",
        json=availability(),
        headers=auth_headers(seed["volunteer"]),
    )

    assert response.json() == {"success": False, "error": "Preferences cannot be shared yet, sorry!"}


def test_availability_preferences_without_application(client, seed, auth_headers):
    response = client.post(
        "/api/event/availability-preferences",
        json=availability(),
        headers=auth_headers(seed["volunteer"]),
    )

    assert response.json()["error"] == "Something seems to be wrong with your application…"


def test_availability_exceptions_require_an_administrator(client, db, seed, auth_headers):
    register(db, seed, seed["volunteer"])

    response = client.post(
        "/api/event/availability-preferences",
        json=availability(exceptions="[]"),
        headers=auth_headers(seed["volunteer"]),
    )

    assert response.json()["success"] is False
    assert log_types(db) == []


def test_availability_preferences_on_behalf_of_a_volunteer(client, db, seed, auth_headers):
    register(db, seed, seed["volunteer"], availability_event_limit=0)
    seed["event"].availability_status = EVENT_AVAILABILITY_LOCKED
    db.commit()

    exceptions = [
        {"start": "2025-06-14T10:00:00Z", "end": "2025-06-14T14:00:00+02:00", "state": "unavailable"},
        {"start": "2025-06-15T08:00:00Z", "end": "2025-06-15T09:00:00Z", "state": "avoid"},
    ]

    response = client.post(
        "/api/event/availability-preferences",
        json=availability(
            exceptionEvents=[seed["timeslot"].id],
            exceptions=json.dumps(exceptions),
            adminOverrideUserId=seed["volunteer"].id,
        ),
        headers=auth_headers(seed["admin"]),
    )

    assert response.json() == {"success": True}

    db.expire_all()
    registration = db.query(Registration).filter(Registration.user_id == seed["volunteer"].id).one()
    assert registration.availability_timeslots == str(seed["timeslot"].id)
    assert json.loads(registration.availability_exceptions) == [
        {"start": "2025-06-14T10:00:00Z", "end": "2025-06-14T12:00:00Z", "state": "unavailable"},
        {"start": "2025-06-15T08:00:00Z", "end": "2025-06-15T09:00:00Z", "state": "avoid"},
    ]
    assert log_types(db) == ["admin-update-availability-preferences"]


def test_availability_exceptions_are_validated(client, db, seed, auth_headers):
    register(db, seed, seed["volunteer"], availability_exceptions="[]")

    response = client.post(
        "/api/event/availability-preferences",
        json=availability(
            exceptions=json.dumps([{"start": "2025-06-14T10:00:00Z", "state": "sleeping"}]),
            adminOverrideUserId=seed["volunteer"].id,
        ),
        headers=auth_headers(seed["admin"]),
    )

    assert response.json() == {"success": False, "error": "Unable to validate the availability exceptions…"}

    db.expire_all()
    registration = db.query(Registration).filter(Registration.user_id == seed["volunteer"].id).one()
    assert registration.availability_exceptions == "[]"
    assert registration.preferences_updated is None
    assert log_types(db) == []


def test_availability_exceptions_can_be_cleared(client, db, seed, auth_headers):
    register(db, seed, seed["volunteer"], availability_exceptions='[{"start": "2025-06-14T10:00:00Z"}]')

    response = client.post(
        "/api/event/availability-preferences",
        json=availability(exceptions="", adminOverrideUserId=seed["volunteer"].id),
        headers=auth_headers(seed["admin"]),
    )

    assert response.json() == {"success": True}

    db.expire_all()
    registration = db.query(Registration).filter(Registration.user_id == seed["volunteer"].id).one()
    assert registration.availability_exceptions == "[]"


def test_hotel_preferences_require_eligibility(client, db, seed, auth_headers):
    register(db, seed, seed["volunteer"])

    response = client.post(
        "/api/event/hotel-preferences",
        json={"event": "2025", "team": "stewards", "preferences": {"interested": False}},
        headers=auth_headers(seed["volunteer"]),
    )

    assert response.json() == {"success": False, "error": "You are not eligible to book a hotel room"}


def test_hotel_preferences_before_publication(client, seed, auth_headers):
    response = client.post(
        "/api/event/hotel-preferences",
        json={"event": "2025", "team": "stewards", "preferences": {"interested": False}},
        headers=auth_headers(seed["lead"]),
    )

    assert response.json() == {"success": False, "error": "Hotel rooms cannot be booked yet, sorry!"}


def test_hotel_preferences(client, db, seed, auth_headers):
    seed["event"].hotel_information_published = True
    hotel = Hotel(event_id=seed["event"].id, hotel_name="Hotel Zuid", room_name="Twin room", room_people=2)
    db.add(hotel)
    db.commit()

    headers = auth_headers(seed["lead"])
    preferences = {"interested": True, "hotelId": hotel.id, "checkIn": "2025-06-12"}

    response = client.post(
        "/api/event/hotel-preferences",
        json={"event": "2025", "team": "stewards", "preferences": preferences},
        headers=headers,
    )
    assert response.json() == {"success": False, "error": "You must select when you want to check in and out"}

    preferences.update({"checkOut": "2025-06-15", "sharingPeople": 2, "sharingPreferences": "Anyone"})
    response = client.post(
        "/api/event/hotel-preferences",
        json={"event": "2025", "team": "stewards", "preferences": preferences},
        headers=headers,
    )
    assert response.json() == {"success": True}

    stored = db.query(HotelPreference).filter(HotelPreference.user_id == seed["lead"].id).one()
    assert stored.hotel_id == hotel.id
    assert stored.hotel_date_check_out == date(2025, 6, 15)


def test_hotel_preferences_can_only_be_cleared_by_administrators(client, db, seed, auth_headers):
    seed["event"].hotel_information_published = True
    db.commit()

    response = client.post(
        "/api/event/hotel-preferences",
        json={"event": "2025", "team": "stewards", "preferences": False},
        headers=auth_headers(seed["lead"]),
    )
    assert response.json() == {"success": False, "error": "Your preferences can only be updated"}


def test_training_preferences(client, db, seed, auth_headers):
    seed["event"].training_information_published = True
    db.commit()

    response = client.post(
        "/api/event/training-preferences",
        json={"environment": "stewards.team", "event": "2025", "preferences": {"training": 0}},
        headers=auth_headers(seed["lead"]),
    )
    assert response.json() == {"success": True}

    assignment = db.query(TrainingAssignment).filter(TrainingAssignment.user_id == seed["lead"].id).one()
    assert assignment.preference_training_id is None
    assert assignment.preference_updated is not None
    assert log_types(db) == ["application-training-preferences"]


def test_training_preferences_outside_of_the_window(client, db, seed, auth_headers):
    seed["event"].training_information_published = True
    seed["event"].training_preferences_start = utc_now() + timedelta(days=7)
    db.commit()

    response = client.post(
        "/api/event/training-preferences",
        json={"environment": "stewards.team", "event": "2025", "preferences": {"training": 1}},
        headers=auth_headers(seed["lead"]),
    )
    assert response.json() == {"success": False, "error": "Trainings cannot be booked yet, sorry!"}


def test_training_preferences_on_behalf_require_permission(client, seed, auth_headers):
    response = client.post(
        "/api/event/training-preferences",
        json={
            "environment": "stewards.team",
            "event": "2025",
            "preferences": {"training": 1},
            "adminOverrideUserId": seed["volunteer"].id,
        },
        headers=auth_headers(seed["lead"]),
    )
    assert response.json() == {"success": False, "error": "You do not have permission to update this data"}


# ============================================================================
# REFUNDS
# ============================================================================


def test_refund_request_without_window(client, seed, auth_headers):
    response = client.post(
        "/api/event/refund-request",
        json={"event": "2025", "request": {"accountIban": "NL00BANK0123456789", "accountName": "Lars"}},
        headers=auth_headers(seed["lead"]),
    )

    assert response.json() == {"success": False, "error": "Sorry, refunds are not being accepted."}


def test_refund_request(client, db, seed, auth_headers):
    seed["event"].refunds_start_time = utc_now() - timedelta(days=2)
    seed["event"].refunds_end_time = utc_now() + timedelta(days=2)
    db.commit()

    response = client.post(
        "/api/event/refund-request",
        json={
            "event": "2025",
            "request": {"ticketNumber": "T-123", "accountIban": "NL00BANK0123456789", "accountName": "Lars"},
        },
        headers=auth_headers(seed["lead"]),
    )
    assert response.json() == {"success": True}

    refund = db.query(Refund).filter(Refund.user_id == seed["lead"].id).one()
    assert refund.refund_ticket_number == "T-123"
    assert refund.refund_requested is not None
    assert refund.refund_confirmed is None


def test_refund_request_after_window(client, db, seed, auth_headers):
    seed["event"].refunds_start_time = utc_now() - timedelta(days=9)
    seed["event"].refunds_end_time = utc_now() - timedelta(days=2)
    db.commit()

    response = client.post(
        "/api/event/refund-request",
        json={"event": "2025", "request": {"accountIban": "NL00BANK0123456789", "accountName": "Lars"}},
        headers=auth_headers(seed["lead"]),
    )
    assert response.json() == {"success": False, "error": "Sorry, refunds are not being accepted anymore."}


def test_refund_request_requires_account_details(client, seed, auth_headers):
    response = client.post(
        "/api/event/refund-request",
        json={"event": "2025", "request": {"accountIban": "", "accountName": "Lars"}},
        headers=auth_headers(seed["lead"]),
    )
    assert response.status_code == 500


# ============================================================================
# AVAILABILITY EXPECTATIONS
# ============================================================================


def test_availability_expectations(client, db, seed, auth_headers):
    register(db, seed, seed["volunteer"], availability_timeslots=str(seed["timeslot"].id))

    response = client.get(
        "/api/event/availability-expectations?environment=stewards.team&event=2025",
        headers=auth_headers(seed["volunteer"]),
    )

    assert response.status_code == 200
    days = {day["date"]: day["expectations"] for day in response.json()["days"]}
    assert list(days) == ["2025-06-13", "2025-06-14", "2025-06-15"]
    assert days["2025-06-13"][:12] == ["unavailable"] * 9 + ["avoid"] * 2 + ["available"]
    assert days["2025-06-14"][15:19] == ["available", "avoid", "avoid", "available"]


def test_availability_expectations_on_behalf_of_a_volunteer(client, db, seed, auth_headers):
    register(db, seed, seed["volunteer"], preference_timing_start=8, preference_timing_end=20)

    response = client.get(
        "/api/event/availability-expectations",
        params={"environment": "stewards.team", "event": "2025", "adminOverrideUserId": seed["volunteer"].id},
        headers=auth_headers(seed["lead"]),
    )

    days = {day["date"]: day["expectations"] for day in response.json()["days"]}
    assert days["2025-06-14"][:8] == ["unavailable"] * 7 + ["avoid"]


def test_availability_expectations_require_sign_in(client, seed):
    response = client.get("/api/event/availability-expectations?environment=stewards.team&event=2025")

    assert response.status_code == 404
