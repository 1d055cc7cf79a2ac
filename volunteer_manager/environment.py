"""
Environments are the domains through which the Volunteer Manager is served. Each
environment hosts one or more teams, and scopes which events and registration flows
are visible to its visitors.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from .auth import AuthenticationContext
from .config import APP_ENVIRONMENT_OVERRIDE
from .constants import STATUS_ACTIVE, STATUS_FUTURE, STATUS_OVERRIDE, STATUS_PAST
from .models import Environment, Event, EventTeam, Registration, Team
from .shared.dates import as_utc, isoformat, utc_now

logger = logging.getLogger(__name__)

# Domain -> environment dict, loaded on first use
_environment_cache: Optional[dict[str, dict]] = None


def _load_environments(db: Session) -> dict[str, dict]:
    environments = {}
    for environment in db.query(Environment).all():
        teams = (
            db.query(Team.slug)
            .filter(Team.environment == environment.domain)
            .order_by(Team.id)
            .all()
        )
        environments[environment.domain] = {
            "id": environment.id,
            "domain": environment.domain,
            "title": environment.title,
            "description": environment.description,
            "colours": {
                "dark": environment.color_dark_mode,
                "light": environment.color_light_mode,
            },
            "teams": [team.slug for team in teams],
        }

    logger.info(f"✅ Loaded {len(environments)} environments")
    return environments


def get_environments(db: Session) -> dict[str, dict]:
    global _environment_cache
    if _environment_cache is None:
        _environment_cache = _load_environments(db)
    return _environment_cache


def clear_environment_cache() -> None:
    global _environment_cache
    _environment_cache = None


def determine_environment(db: Session, host: Optional[str]) -> Optional[dict]:
    """The environment serving `host`, which APP_ENVIRONMENT_OVERRIDE takes precedence over"""
    origin = APP_ENVIRONMENT_OVERRIDE or host
    if not origin:
        return None

    # Strip the port, if any
    origin = origin.split(":")[0].lower()

    for domain, environment in get_environments(db).items():
        if origin.endswith(domain):
            return environment
    return None


def determine_availability_status(
    current_time: datetime,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    override: bool = False,
) -> str:
    """
    Status of a time-limited feature for the given window. Without a start time the
    feature is considered to be upcoming. The override only applies to features that
    are not currently active.
    """
    current_time = as_utc(current_time)
    start = as_utc(start)
    end = as_utc(end)

    if start is None:
        status = STATUS_FUTURE
    elif end is None:
        status = STATUS_FUTURE if current_time < start else STATUS_ACTIVE
    elif current_time < start:
        status = STATUS_FUTURE
    else:
        status = STATUS_ACTIVE if current_time < end else STATUS_PAST

    if status != STATUS_ACTIVE and override:
        return STATUS_OVERRIDE
    return status


def determine_event_access(
    db: Session, environment: dict, context: AuthenticationContext, current_time: Optional[datetime] = None
) -> list[dict]:
    """Events visible within `environment`, newest first, with per-team feature status"""
    if not environment["teams"]:
        return []

    current_time = current_time or utc_now()

    rows = (
        db.query(Event, EventTeam, Team)
        .join(EventTeam, EventTeam.event_id == Event.id)
        .join(Team, Team.id == EventTeam.team_id)
        .filter(
            EventTeam.enable_team.is_(True),
            Team.slug.in_(environment["teams"]),
            Event.hidden.is_(False),
        )
        .order_by(Event.start_time.desc(), Team.id)
        .all()
    )

    applications_by_event: dict[int, list[dict]] = {}
    if context.user is not None:
        registrations = (
            db.query(Registration, Team)
            .join(Team, Team.id == Registration.team_id)
            .filter(Registration.user_id == context.user.id, Team.slug.in_(environment["teams"]))
            .all()
        )
        for registration, team in registrations:
            applications_by_event.setdefault(registration.event_id, []).append(
                {
                    "teamName": team.name,
                    "team": team.slug,
                    "status": registration.registration_status,
                }
            )

    events: list[dict] = []
    events_by_id: dict[int, dict] = {}

    for event, event_team, team in rows:
        visible = context.access.can("event.visible", {"event": event.slug, "team": team.slug})
        schedule_override = context.access.can("event.schedule.access", {"event": event.slug})

        team_access = {
            "id": team.id,
            "slug": team.slug,
            "applications": determine_availability_status(
                current_time, event_team.application_start, event_team.application_end, visible
            ),
            "registration": determine_availability_status(
                current_time, event_team.registration_start, event_team.registration_end, visible
            ),
            "schedule": determine_availability_status(
                current_time, event_team.schedule_start, event_team.schedule_end, schedule_override
            ),
        }

        entry = events_by_id.get(event.id)
        if entry is None:
            entry = {
                "id": event.id,
                "slug": event.slug,
                "name": event.name,
                "shortName": event.short_name,
                "startTime": isoformat(event.start_time),
                "endTime": isoformat(event.end_time),
                "applications": applications_by_event.get(event.id, []),
                "teams": [],
            }
            events_by_id[event.id] = entry
            events.append(entry)

        entry["teams"].append(team_access)

    return events


def get_environment_context(db: Session, environment: dict, context: AuthenticationContext) -> dict:
    """Everything the front-end needs to know about the visitor within `environment`"""
    return {
        "environment": {
            "domain": environment["domain"],
            "title": environment["title"],
            "description": environment["description"],
            "colours": environment["colours"],
            "teams": environment["teams"],
        },
        "user": (
            {
                "id": context.user.id,
                "name": context.user.name,
                "email": context.user.email,
            }
            if context.user is not None
            else None
        ),
        "authType": context.auth_type,
        "events": determine_event_access(db, environment, context),
    }
