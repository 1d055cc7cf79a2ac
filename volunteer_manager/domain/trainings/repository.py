"""Training repository - Database operations for trainings and their participants"""

from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session

from ...constants import REGISTRATION_ACCEPTED
from ...models import Registration, Role, Team, Training, TrainingAssignment, TrainingExtra, User


class TrainingRepository:
    """Repository for training database operations"""

    # ========================================================================
    # TRAININGS
    # ========================================================================

    @staticmethod
    def query_visible(db: Session, event_id: int) -> Query:
        return db.query(Training).filter(Training.event_id == event_id, Training.training_visible.is_(True))

    @staticmethod
    def create_training(db: Session, event_id: int, **training) -> Training:
        instance = Training(event_id=event_id, **training)
        db.add(instance)
        db.commit()
        db.refresh(instance)
        return instance

    @staticmethod
    def update_training(db: Session, event_id: int, training_id: int, **updates) -> int:
        affected = (
            db.query(Training)
            .filter(Training.id == training_id, Training.event_id == event_id)
            .update(updates, synchronize_session=False)
        )
        db.commit()
        return affected

    @staticmethod
    def delete_training(db: Session, event_id: int, training_id: int) -> int:
        affected = (
            db.query(Training)
            .filter(Training.id == training_id, Training.event_id == event_id)
            .delete(synchronize_session=False)
        )
        db.commit()
        return affected

    # ========================================================================
    # EXTRA PARTICIPANTS
    # ========================================================================

    @staticmethod
    def query_extras(db: Session, event_id: int) -> Query:
        """Visible extra participants, together with their assignment when one exists"""
        return (
            db.query(TrainingExtra, TrainingAssignment)
            .outerjoin(
                TrainingAssignment,
                (TrainingAssignment.event_id == TrainingExtra.event_id)
                & (TrainingAssignment.extra_id == TrainingExtra.id),
            )
            .filter(TrainingExtra.event_id == event_id, TrainingExtra.visible.is_(True))
        )

    @staticmethod
    def create_extra(db: Session, event_id: int) -> TrainingExtra:
        extra = TrainingExtra(event_id=event_id, name="", email="")
        db.add(extra)
        db.commit()
        db.refresh(extra)
        return extra

    @staticmethod
    def update_extra(db: Session, event_id: int, extra_id: int, **updates) -> int:
        affected = (
            db.query(TrainingExtra)
            .filter(TrainingExtra.id == extra_id, TrainingExtra.event_id == event_id)
            .update(updates, synchronize_session=False)
        )
        db.commit()
        return affected

    @staticmethod
    def delete_extra(db: Session, event_id: int, extra_id: int) -> int:
        affected = (
            db.query(TrainingExtra)
            .filter(TrainingExtra.id == extra_id, TrainingExtra.event_id == event_id)
            .delete(synchronize_session=False)
        )
        db.commit()
        return affected

    # ========================================================================
    # ASSIGNMENTS
    # ========================================================================

    @staticmethod
    def list_eligible_volunteers(db: Session, event_id: int) -> list[tuple]:
        """Accepted volunteers eligible for training, as (Registration, User, Team, assignment)"""
        return (
            db.query(Registration, User, Team, TrainingAssignment)
            .join(Role, Role.id == Registration.role_id)
            .join(Team, Team.id == Registration.team_id)
            .join(User, User.id == Registration.user_id)
            .outerjoin(
                TrainingAssignment,
                (TrainingAssignment.event_id == Registration.event_id)
                & (TrainingAssignment.user_id == Registration.user_id),
            )
            .filter(
                Registration.event_id == event_id,
                Registration.registration_status == REGISTRATION_ACCEPTED,
                or_(Registration.training_eligible == 1, Role.training_eligible.is_(True)),
            )
            .all()
        )

    @staticmethod
    def get_assignment(
        db: Session, event_id: int, user_id: Optional[int] = None, extra_id: Optional[int] = None
    ) -> Optional[TrainingAssignment]:
        return (
            db.query(TrainingAssignment)
            .filter(
                TrainingAssignment.event_id == event_id,
                TrainingAssignment.user_id == user_id if user_id else TrainingAssignment.user_id.is_(None),
                TrainingAssignment.extra_id == extra_id if extra_id else TrainingAssignment.extra_id.is_(None),
            )
            .first()
        )

    @staticmethod
    def upsert_assignment(
        db: Session, event_id: int, user_id: Optional[int] = None, extra_id: Optional[int] = None, **values
    ) -> TrainingAssignment:
        assignment = TrainingRepository.get_assignment(db, event_id, user_id, extra_id)
        if assignment is None:
            assignment = TrainingAssignment(event_id=event_id, user_id=user_id, extra_id=extra_id)
            db.add(assignment)

        for key, value in values.items():
            setattr(assignment, key, value)

        db.commit()
        db.refresh(assignment)
        return assignment
