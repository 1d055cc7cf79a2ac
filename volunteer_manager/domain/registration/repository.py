"""Registration repository - Database operations for applications and their preferences"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import (
    HotelPreference,
    ProgramActivity,
    ProgramTimeslot,
    Refund,
    Registration,
    Team,
    TrainingAssignment,
)
from ...shared.dates import utc_now


class RegistrationRepository:
    """Repository for registration database operations"""

    @staticmethod
    def get_registration(
        db: Session, environment: str, event_id: int, user_id: int
    ) -> Optional[Registration]:
        """The user's registration for the event with a team of the given environment"""
        return (
            db.query(Registration)
            .join(Team, Team.id == Registration.team_id)
            .options(joinedload(Registration.role), joinedload(Registration.team))
            .filter(
                Registration.user_id == user_id,
                Registration.event_id == event_id,
                Team.environment == environment,
            )
            .first()
        )

    @staticmethod
    def get_team_registration(db: Session, event_id: int, team_id: int, user_id: int) -> Optional[Registration]:
        return (
            db.query(Registration)
            .options(joinedload(Registration.role), joinedload(Registration.team))
            .filter(
                Registration.user_id == user_id,
                Registration.event_id == event_id,
                Registration.team_id == team_id,
            )
            .first()
        )

    @staticmethod
    def create_registration(db: Session, **registration_data) -> Registration:
        registration = Registration(**registration_data)
        db.add(registration)
        db.commit()
        db.refresh(registration)
        return registration

    @staticmethod
    def update_registration(db: Session, registration: Registration, **updates) -> Registration:
        for key, value in updates.items():
            setattr(registration, key, value)

        db.commit()
        db.refresh(registration)
        return registration

    @staticmethod
    def get_valid_timeslot_ids(db: Session, festival_id: int, timeslot_ids: list[int]) -> list[int]:
        """Filter `timeslot_ids` to those of non-deleted activities within the festival"""
        if not timeslot_ids:
            return []

        rows = (
            db.query(ProgramTimeslot.id)
            .join(ProgramActivity, ProgramActivity.id == ProgramTimeslot.activity_id)
            .filter(
                ProgramTimeslot.id.in_(timeslot_ids),
                ProgramTimeslot.deleted.is_(None),
                ProgramActivity.festival_id == festival_id,
                ProgramActivity.deleted.is_(None),
            )
            .all()
        )
        valid = {row.id for row in rows}

        # Keep the order in which the volunteer selected them
        return [timeslot_id for timeslot_id in timeslot_ids if timeslot_id in valid]

    @staticmethod
    def get_timeslots(db: Session, festival_id: int, timeslot_ids: list[int]) -> dict[int, tuple]:
        """Map of timeslot id to its (start, end) times"""
        if not timeslot_ids:
            return {}

        rows = (
            db.query(ProgramTimeslot)
            .join(ProgramActivity, ProgramActivity.id == ProgramTimeslot.activity_id)
            .filter(
                ProgramTimeslot.id.in_(timeslot_ids),
                ProgramTimeslot.deleted.is_(None),
                ProgramActivity.festival_id == festival_id,
                ProgramActivity.deleted.is_(None),
            )
            .all()
        )
        return {row.id: (row.start_time, row.end_time) for row in rows}

    @staticmethod
    def get_hotel_preference(
        db: Session, user_id: int, event_id: int, team_id: int
    ) -> Optional[HotelPreference]:
        return (
            db.query(HotelPreference)
            .filter(
                HotelPreference.user_id == user_id,
                HotelPreference.event_id == event_id,
                HotelPreference.team_id == team_id,
            )
            .first()
        )

    @staticmethod
    def upsert_hotel_preference(
        db: Session, user_id: int, event_id: int, team_id: int, **preferences
    ) -> HotelPreference:
        preference = RegistrationRepository.get_hotel_preference(db, user_id, event_id, team_id)
        if preference is None:
            preference = HotelPreference(user_id=user_id, event_id=event_id, team_id=team_id)
            db.add(preference)

        for key, value in preferences.items():
            setattr(preference, key, value)
        preference.hotel_preferences_updated = utc_now()

        db.commit()
        db.refresh(preference)
        return preference

    @staticmethod
    def delete_hotel_preference(db: Session, user_id: int, event_id: int, team_id: int) -> int:
        affected = (
            db.query(HotelPreference)
            .filter(
                HotelPreference.user_id == user_id,
                HotelPreference.event_id == event_id,
                HotelPreference.team_id == team_id,
            )
            .delete(synchronize_session=False)
        )
        db.commit()
        return affected

    @staticmethod
    def get_training_assignment(db: Session, event_id: int, user_id: int) -> Optional[TrainingAssignment]:
        return (
            db.query(TrainingAssignment)
            .filter(TrainingAssignment.event_id == event_id, TrainingAssignment.user_id == user_id)
            .first()
        )

    @staticmethod
    def upsert_training_preference(
        db: Session, event_id: int, user_id: int, training_id: Optional[int]
    ) -> TrainingAssignment:
        assignment = RegistrationRepository.get_training_assignment(db, event_id, user_id)
        if assignment is None:
            assignment = TrainingAssignment(event_id=event_id, user_id=user_id, extra_id=None)
            db.add(assignment)

        assignment.preference_training_id = training_id
        assignment.preference_updated = utc_now()

        db.commit()
        db.refresh(assignment)
        return assignment

    @staticmethod
    def get_refund(db: Session, user_id: int, event_id: int) -> Optional[Refund]:
        return db.query(Refund).filter(Refund.user_id == user_id, Refund.event_id == event_id).first()

    @staticmethod
    def upsert_refund(db: Session, user_id: int, event_id: int, **details) -> Refund:
        refund = RegistrationRepository.get_refund(db, user_id, event_id)
        if refund is None:
            refund = Refund(user_id=user_id, event_id=event_id)
            db.add(refund)

        for key, value in details.items():
            setattr(refund, key, value)
        refund.refund_requested = utc_now()

        db.commit()
        db.refresh(refund)
        return refund

    @staticmethod
    def delete_refund(db: Session, user_id: int, event_id: int) -> int:
        affected = (
            db.query(Refund)
            .filter(Refund.user_id == user_id, Refund.event_id == event_id)
            .delete(synchronize_session=False)
        )
        db.commit()
        return affected
