from datetime import datetime

from volunteer_manager.auth import build_authentication_context, get_guest_context
from volunteer_manager.environment import (
    determine_availability_status,
    determine_environment,
    determine_event_access,
    get_environment_context,
)
from volunteer_manager.models import EventTeam

NOW = datetime(2025, 3, 1, 12, 0)


def test_availability_status_without_window():
    assert determine_availability_status(NOW) == "future"
    assert determine_availability_status(NOW, override=True) == "override"


def test_availability_status_without_end():
    assert determine_availability_status(NOW, datetime(2025, 1, 1)) == "active"
    assert determine_availability_status(NOW, datetime(2025, 4, 1)) == "future"


def test_availability_status_with_window():
    start, end = datetime(2025, 2, 1), datetime(2025, 4, 1)

    assert determine_availability_status(datetime(2025, 1, 1), start, end) == "future"
    assert determine_availability_status(NOW, start, end) == "active"
    assert determine_availability_status(datetime(2025, 5, 1), start, end) == "past"


def test_availability_status_override_only_applies_when_inactive():
    start, end = datetime(2025, 2, 1), datetime(2025, 4, 1)

    assert determine_availability_status(NOW, start, end, override=True) == "active"
    assert determine_availability_status(datetime(2025, 5, 1), start, end, override=True) == "override"


def test_determine_environment(db, seed):
    assert determine_environment(db, "stewards.team")["domain"] == "stewards.team"
    assert determine_environment(db, "Stewards.Team:8080")["teams"] == ["stewards", "hosts"]
    assert determine_environment(db, "example.com") is None
    assert determine_environment(db, None) is None


def test_event_access_for_guests(db, seed):
    environment = determine_environment(db, "stewards.team")
    event_team = db.query(EventTeam).filter(EventTeam.team_id == seed["team"].id).one()
    event_team.application_start = datetime(2025, 1, 1)
    event_team.application_end = datetime(2025, 5, 1)
    db.commit()

    events = determine_event_access(db, environment, get_guest_context(), current_time=NOW)

    assert len(events) == 1
    assert events[0]["slug"] == "2025"
    assert events[0]["startTime"] == "2025-06-13T10:00:00Z"
    assert events[0]["applications"] == []

    teams = {team["slug"]: team for team in events[0]["teams"]}
    assert teams["stewards"]["applications"] == "active"
    assert teams["stewards"]["registration"] == "future"
    assert teams["hosts"]["applications"] == "future"


def test_event_access_hides_hidden_events(db, seed):
    seed["event"].hidden = True
    db.commit()

    environment = determine_environment(db, "stewards.team")
    assert determine_event_access(db, environment, get_guest_context()) == []


def test_event_access_overrides_for_administrators(db, seed):
    environment = determine_environment(db, "stewards.team")
    context = build_authentication_context(db, seed["admin"])

    events = determine_event_access(db, environment, context, current_time=NOW)
    teams = {team["slug"]: team for team in events[0]["teams"]}

    assert teams["hosts"]["applications"] == "override"
    assert teams["hosts"]["schedule"] == "override"


def test_environment_context_includes_applications(db, seed):
    environment = determine_environment(db, "stewards.team")
    context = build_authentication_context(db, seed["lead"])

    result = get_environment_context(db, environment, context)

    assert result["environment"]["title"] == "Stewards"
    assert result["user"]["name"] == "Lars Lead"
    assert result["authType"] == "session"
    assert result["events"][0]["applications"] == [
        {"teamName": "Stewards", "team": "stewards", "status": "Accepted"}
    ]
