"""Hotel repository - Database operations for hotel rooms"""

from sqlalchemy.orm import Query, Session

from ...models import Hotel


class HotelRepository:
    """Repository for hotel room database operations"""

    @staticmethod
    def query_visible(db: Session, event_id: int) -> Query:
        return db.query(Hotel).filter(Hotel.event_id == event_id, Hotel.visible.is_(True))

    @staticmethod
    def create_room(db: Session, event_id: int, **room) -> Hotel:
        hotel = Hotel(event_id=event_id, **room)
        db.add(hotel)
        db.commit()
        db.refresh(hotel)
        return hotel

    @staticmethod
    def update_room(db: Session, event_id: int, hotel_id: int, **updates) -> int:
        affected = (
            HotelRepository.query_visible(db, event_id)
            .filter(Hotel.id == hotel_id)
            .update(updates, synchronize_session=False)
        )
        db.commit()
        return affected

    @staticmethod
    def delete_room(db: Session, event_id: int, hotel_id: int) -> int:
        affected = (
            HotelRepository.query_visible(db, event_id)
            .filter(Hotel.id == hotel_id)
            .delete(synchronize_session=False)
        )
        db.commit()
        return affected
