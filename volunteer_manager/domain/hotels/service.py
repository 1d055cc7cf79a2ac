"""Hotel service - Data table for the hotel rooms volunteers can express a preference for"""

import logging

from ...actions import ActionProps
from ...auth import execute_access_check
from ...data_table import DataTableApi, apply_sort_and_pagination
from ...errors import not_found
from ...logs import SEVERITY_INFO, LogType, write_log
from ...models import Event, Hotel
from ..events.repository import EventRepository
from .repository import HotelRepository
from .schemas import EventContext, HotelRow

logger = logging.getLogger(__name__)

DEFAULT_ROOM_PEOPLE = 1
DEFAULT_ROOM_PRICE = 10000

SORT_COLUMNS = {
    "id": Hotel.id,
    "hotelDescription": Hotel.hotel_description,
    "hotelName": Hotel.hotel_name,
    "roomName": Hotel.room_name,
    "roomPeople": Hotel.room_people,
    "roomPrice": Hotel.room_price,
}


def _to_row(hotel: Hotel) -> dict:
    return {
        "id": hotel.id,
        "hotelDescription": hotel.hotel_description or "",
        "hotelName": hotel.hotel_name or "",
        "roomName": hotel.room_name or "",
        "roomPeople": hotel.room_people,
        "roomPrice": hotel.room_price,
    }


class HotelsDataTable(DataTableApi):
    """
    Hotel rooms available for a particular event. Rooms that are no longer visible are
    retained for existing preferences, but cannot be listed or changed.
    """

    row_model = HotelRow
    context_model = EventContext

    def _get_event(self, props: ActionProps, slug: str) -> Event:
        event = EventRepository.get_event_by_slug(props.db, slug)
        if not event:
            not_found()
        return event

    def access_check(self, request, action: str, props: ActionProps) -> None:
        execute_access_check(
            props.authentication_context,
            check="admin-event",
            event=request.context.event,
            permission={"permission": "event.hotels", "scope": {"event": request.context.event}},
        )

    def create(self, request, props: ActionProps) -> dict:
        event = self._get_event(props, request.context.event)
        hotel = HotelRepository.create_room(
            props.db,
            event.id,
            hotel_name="",
            room_name="",
            room_people=DEFAULT_ROOM_PEOPLE,
            room_price=DEFAULT_ROOM_PRICE,
        )
        return {"success": True, "row": _to_row(hotel)}

    def delete(self, request, props: ActionProps) -> dict:
        event = self._get_event(props, request.context.event)
        affected = HotelRepository.delete_room(props.db, event.id, request.id)
        return {"success": bool(affected)}

    def list(self, request, props: ActionProps) -> dict:
        event = self._get_event(props, request.context.event)
        row_count, hotels = apply_sort_and_pagination(
            HotelRepository.query_visible(props.db, event.id),
            SORT_COLUMNS,
            sort=request.sort,
            pagination=request.pagination,
            default_sort="hotelName",
            tiebreakers=(Hotel.room_name.asc(),),
        )
        return {"success": True, "rowCount": row_count, "rows": [_to_row(hotel) for hotel in hotels]}

    def update(self, request, props: ActionProps) -> dict:
        event = self._get_event(props, request.context.event)
        affected = HotelRepository.update_room(
            props.db,
            event.id,
            request.id,
            hotel_name=request.row.hotelName or "",
            hotel_description=request.row.hotelDescription,
            room_name=request.row.roomName or "",
            room_people=request.row.roomPeople,
            room_price=request.row.roomPrice,
        )
        return {"success": bool(affected)}

    def write_log(self, request, mutation: str, props: ActionProps) -> None:
        event = EventRepository.get_event_by_slug(props.db, request.context.event)
        write_log(
            props.db,
            LogType.AdminEventHotelMutation,
            severity=SEVERITY_INFO,
            source=props.user,
            data={"event": event.short_name if event else None, "mutation": mutation},
        )
