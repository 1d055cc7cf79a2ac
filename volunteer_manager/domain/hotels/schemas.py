"""Hotel domain schemas - Pydantic models for the hotel room data table"""

from typing import Optional

from pydantic import BaseModel, Field


class HotelRow(BaseModel):
    id: int
    hotelDescription: Optional[str] = ""
    hotelName: Optional[str] = ""
    roomName: Optional[str] = ""
    roomPeople: int = Field(ge=1)
    roomPrice: int = Field(ge=0, description="Price of the room, in cents")


class EventContext(BaseModel):
    event: str
