"""Refund repository - Database operations for processing refund requests"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Query, Session

from ...models import Refund, Registration, Team, User


class RefundRepository:
    """Repository for refund database operations"""

    @staticmethod
    def query_refunds(db: Session, event_id: int) -> Query:
        """Refund requests for the event as (Refund, User, Team) rows"""
        return (
            db.query(Refund, User, Team)
            .join(
                Registration,
                (Registration.event_id == Refund.event_id) & (Registration.user_id == Refund.user_id),
            )
            .join(Team, Team.id == Registration.team_id)
            .join(User, User.id == Refund.user_id)
            .filter(Refund.event_id == event_id)
        )

    @staticmethod
    def set_confirmed(db: Session, event_id: int, user_id: int, confirmed: Optional[datetime]) -> int:
        affected = (
            db.query(Refund)
            .filter(Refund.event_id == event_id, Refund.user_id == user_id)
            .update({"refund_confirmed": confirmed}, synchronize_session=False)
        )
        db.commit()
        return affected
