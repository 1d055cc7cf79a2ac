import os

# Configure an in-memory database before the application modules are imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["TASK_QUEUE_ENABLED"] = "false"
os.environ.pop("APP_ENVIRONMENT_OVERRIDE", None)

from datetime import datetime  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from volunteer_manager.access import Privilege  # noqa: E402
from volunteer_manager.auth import create_session_token  # noqa: E402
from volunteer_manager.constants import EVENT_AVAILABILITY_AVAILABLE, REGISTRATION_ACCEPTED  # noqa: E402
from volunteer_manager.database import Base, SessionLocal, engine  # noqa: E402
from volunteer_manager.domain.applications import service as application_service  # noqa: E402
from volunteer_manager.domain.registration import service as registration_service  # noqa: E402
from volunteer_manager.environment import clear_environment_cache  # noqa: E402
from volunteer_manager.main import app  # noqa: E402
from volunteer_manager.models import (  # noqa: E402
    Content,
    Environment,
    Event,
    EventTeam,
    ProgramActivity,
    ProgramTimeslot,
    Registration,
    Role,
    Team,
    User,
)

ENVIRONMENT_DOMAIN = "stewards.team"


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    clear_environment_cache()

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        clear_environment_cache()


@pytest.fixture
def seed(db):
    """An environment with a single team participating in an upcoming event"""
    environment = Environment(domain=ENVIRONMENT_DOMAIN, title="Stewards", description="Steward team")
    volunteer_role = Role(name="Steward", availability_event_limit=2)
    lead_role = Role(name="Lead", admin_access=True, hotel_eligible=True, training_eligible=True)
    db.add_all([environment, volunteer_role, lead_role])
    db.flush()

    team = Team(
        slug="stewards",
        name="Stewards",
        title="Steward Team",
        environment=ENVIRONMENT_DOMAIN,
        default_role_id=volunteer_role.id,
    )
    other_team = Team(
        slug="hosts",
        name="Hosts",
        title="Host Team",
        environment=ENVIRONMENT_DOMAIN,
        default_role_id=volunteer_role.id,
    )

    # 12:00 until 18:00 two days later in Europe/Amsterdam
    event = Event(
        name="AnimeCon 2025",
        short_name="AnimeCon",
        slug="2025",
        hidden=False,
        start_time=datetime(2025, 6, 13, 10, 0),
        end_time=datetime(2025, 6, 15, 16, 0),
        timezone="Europe/Amsterdam",
        festival_id=625,
        availability_status=EVENT_AVAILABILITY_AVAILABLE,
    )
    db.add_all([team, other_team, event])
    db.flush()

    db.add_all(
        [
            EventTeam(event_id=event.id, team_id=team.id, enable_team=True, enable_applications=True),
            EventTeam(event_id=event.id, team_id=other_team.id, enable_team=True, enable_applications=True),
        ]
    )

    volunteer = User(email="volunteer@example.com", first_name="Vera", last_name="Volunteer", activated=True)
    lead = User(email="lead@example.com", first_name="Lars", last_name="Lead", activated=True)
    admin = User(
        email="admin@example.com",
        first_name="Ada",
        last_name="Admin",
        activated=True,
        privileges=int(Privilege.Administrator),
    )
    db.add_all([volunteer, lead, admin])
    db.flush()

    db.add(
        Registration(
            user_id=lead.id,
            event_id=event.id,
            team_id=team.id,
            role_id=lead_role.id,
            registration_status=REGISTRATION_ACCEPTED,
        )
    )

    activity = ProgramActivity(festival_id=625, title="Opening ceremony")
    db.add(activity)
    db.flush()

    timeslot = ProgramTimeslot(
        activity_id=activity.id,
        start_time=datetime(2025, 6, 14, 14, 0),
        end_time=datetime(2025, 6, 14, 15, 30),
    )
    db.add(timeslot)

    db.add(
        Content(
            path="message/application-confirmation",
            title="Your application for {event}",
            body="Hi {name}, thanks for applying to the {team}!",
        )
    )
    db.commit()

    return {
        "environment": environment,
        "event": event,
        "team": team,
        "other_team": other_team,
        "volunteer_role": volunteer_role,
        "lead_role": lead_role,
        "volunteer": volunteer,
        "lead": lead,
        "admin": admin,
        "timeslot": timeslot,
    }


@pytest.fixture
def scheduled_tasks(monkeypatch):
    """Captures tasks scheduled by the services instead of enqueueing them"""
    tasks = []

    async def fake_schedule_task(task_name, **params):
        tasks.append((task_name, params))
        return f"job-{len(tasks)}"

    monkeypatch.setattr(registration_service, "schedule_task", fake_schedule_task)
    monkeypatch.setattr(application_service, "schedule_task", fake_schedule_task)
    return tasks


@pytest.fixture
def client(db):
    return TestClient(app, base_url=f"http://{ENVIRONMENT_DOMAIN}")


@pytest.fixture
def auth_headers():
    """Builds the Authorization header for a signed in user"""

    def build(user: User) -> dict:
        return {"Authorization": f"Bearer {create_session_token(user)}"}

    return build
