"""Event repository - Database operations for events and their participating teams"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Event, EventTeam, Team


class EventRepository:
    """Repository for event database operations"""

    @staticmethod
    def get_event_by_slug(db: Session, slug: str) -> Optional[Event]:
        return db.query(Event).filter(Event.slug == slug).first()

    @staticmethod
    def get_team_by_slug(db: Session, slug: str) -> Optional[Team]:
        return db.query(Team).filter(Team.slug == slug).first()

    @staticmethod
    def get_team_by_id(db: Session, team_id: int) -> Optional[Team]:
        return db.query(Team).filter(Team.id == team_id).first()

    @staticmethod
    def get_event_team(db: Session, event_id: int, team_id: int) -> Optional[EventTeam]:
        """Settings of a team for a particular event"""
        return (
            db.query(EventTeam)
            .filter(EventTeam.event_id == event_id, EventTeam.team_id == team_id)
            .first()
        )

    @staticmethod
    def get_enabled_team(db: Session, event_id: int, team_slug: str) -> Optional[tuple[Team, EventTeam]]:
        """The team with `team_slug` when it participates in the event"""
        return (
            db.query(Team, EventTeam)
            .join(EventTeam, EventTeam.team_id == Team.id)
            .filter(
                Team.slug == team_slug,
                EventTeam.event_id == event_id,
                EventTeam.enable_team.is_(True),
            )
            .first()
        )

    @staticmethod
    def update_event(db: Session, event: Event, **updates) -> Event:
        """Update an event with the provided fields"""
        for key, value in updates.items():
            if hasattr(event, key):
                setattr(event, key, value)

        db.commit()
        db.refresh(event)
        return event

    @staticmethod
    def upsert_event_team(db: Session, event_id: int, team_id: int, **settings) -> EventTeam:
        """Create or update the settings of a team for an event"""
        event_team = EventRepository.get_event_team(db, event_id, team_id)
        if event_team is None:
            event_team = EventTeam(event_id=event_id, team_id=team_id)
            db.add(event_team)

        for key, value in settings.items():
            setattr(event_team, key, value)

        db.commit()
        db.refresh(event_team)
        return event_team
