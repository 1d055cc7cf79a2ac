"""Application repository - Database operations for administering applications"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Event, EventTeam, Registration, Team, User


class ApplicationRepository:
    """Repository for application database operations"""

    @staticmethod
    def get_request_context(
        db: Session, event_slug: str, team_slug: str, user_id: int
    ) -> Optional[tuple[Event, Team, User]]:
        """The event, participating team and user an administrative request applies to"""
        user = db.query(User).filter(User.id == user_id).first()
        if user is None:
            return None

        row = (
            db.query(Event, Team)
            .join(EventTeam, EventTeam.event_id == Event.id)
            .join(Team, Team.id == EventTeam.team_id)
            .filter(
                Event.slug == event_slug,
                Team.slug == team_slug,
                EventTeam.enable_team.is_(True),
            )
            .first()
        )
        if row is None:
            return None

        return row[0], row[1], user

    @staticmethod
    def get_registration(db: Session, event_id: int, team_id: int, user_id: int) -> Optional[Registration]:
        return (
            db.query(Registration)
            .filter(
                Registration.user_id == user_id,
                Registration.event_id == event_id,
                Registration.team_id == team_id,
            )
            .first()
        )

    @staticmethod
    def get_any_registration(db: Session, event_id: int, user_id: int) -> Optional[Registration]:
        return (
            db.query(Registration)
            .filter(Registration.user_id == user_id, Registration.event_id == event_id)
            .first()
        )

    @staticmethod
    def count_registrations(db: Session, event_id: int, user_id: int) -> int:
        return (
            db.query(Registration)
            .filter(Registration.user_id == user_id, Registration.event_id == event_id)
            .count()
        )

    @staticmethod
    def update_registration(db: Session, event_id: int, team_id: int, user_id: int, **updates) -> int:
        """Update the registration, returning the number of affected rows"""
        affected = (
            db.query(Registration)
            .filter(
                Registration.user_id == user_id,
                Registration.event_id == event_id,
                Registration.team_id == team_id,
            )
            .update(updates, synchronize_session=False)
        )
        db.commit()
        return affected

    @staticmethod
    def move_registration(db: Session, event_id: int, from_team_id: int, user_id: int, to_team_id: int) -> int:
        """Move the registration to another team, returning the number of affected rows"""
        affected = (
            db.query(Registration)
            .filter(
                Registration.user_id == user_id,
                Registration.event_id == event_id,
                Registration.team_id == from_team_id,
            )
            .update({"team_id": to_team_id}, synchronize_session=False)
        )
        db.commit()
        return affected
