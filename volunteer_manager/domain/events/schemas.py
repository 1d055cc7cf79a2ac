"""Event domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...constants import EVENT_AVAILABILITY_STATUSES
from ...shared.validators import validate_slug


class EventSettings(BaseModel):
    name: str
    shortName: str
    startTime: datetime
    endTime: datetime
    timezone: Optional[str] = None
    availabilityStatus: Optional[str] = None

    @field_validator("availabilityStatus")
    @classmethod
    def validate_availability_status(cls, v):
        if v is not None and v not in EVENT_AVAILABILITY_STATUSES:
            raise ValueError(f"Invalid availability status: {v}")
        return v


class EventTeamSettings(BaseModel):
    """Settings of a team for a particular event"""

    id: int
    enableTeam: bool
    enableContent: bool
    enableApplications: bool
    enableSchedule: bool
    targetSize: Optional[int] = None
    whatsappLink: Optional[str] = None

    applicationStart: Optional[datetime] = None
    applicationEnd: Optional[datetime] = None
    registrationStart: Optional[datetime] = None
    registrationEnd: Optional[datetime] = None
    scheduleStart: Optional[datetime] = None
    scheduleEnd: Optional[datetime] = None


class UpdateEventRequest(BaseModel):
    """Exactly one of the optional blocks is applied per request"""

    event: str
    eventHidden: Optional[bool] = None
    eventSettings: Optional[EventSettings] = None
    eventSlug: Optional[str] = None
    team: Optional[EventTeamSettings] = None

    @field_validator("eventSlug")
    @classmethod
    def validate_event_slug(cls, v):
        if v is not None:
            return validate_slug(v)
        return v


class UpdateEventResponse(BaseModel):
    success: bool
    slug: Optional[str] = None


class UpdatePublicationRequest(BaseModel):
    event: str

    publishHotels: Optional[bool] = None
    publishRefunds: Optional[bool] = None
    publishTrainings: Optional[bool] = None

    hotelPreferencesStart: Optional[datetime] = None
    hotelPreferencesEnd: Optional[datetime] = None
    refundsStart: Optional[datetime] = None
    refundsEnd: Optional[datetime] = None
    trainingPreferencesStart: Optional[datetime] = None
    trainingPreferencesEnd: Optional[datetime] = None


class UpdatePublicationResponse(BaseModel):
    success: bool
