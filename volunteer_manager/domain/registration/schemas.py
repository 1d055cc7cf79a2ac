"""Registration domain schemas - Pydantic models for the volunteer flows"""

from datetime import date, datetime
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field

ServiceHours = Literal["12", "16", "20", "24"]
ServiceTiming = Literal["8-20", "10-0", "14-3"]
ShirtFit = Literal["Regular", "Girly"]
ShirtSize = Literal["XS", "S", "M", "L", "XL", "XXL", "3XL", "4XL"]


class ActionResponse(BaseModel):
    """Response shared by the volunteer flows, `error` is presented to the user"""

    success: bool
    error: Optional[str] = None


class AdminOverride(BaseModel):
    userId: int


class ApplicationRequest(BaseModel):
    event: str
    team: str

    credits: bool
    socials: bool
    tshirtFit: ShirtFit
    tshirtSize: ShirtSize

    preferences: Optional[str] = None
    serviceHours: ServiceHours
    serviceTiming: ServiceTiming
    availability: bool

    adminOverride: Optional[AdminOverride] = None


class AvailabilityException(BaseModel):
    start: datetime
    end: datetime
    state: Literal["available", "avoid", "unavailable"]


class AvailabilityPreferencesRequest(BaseModel):
    event: str
    team: str

    # Program timeslots the volunteer would like to attend, null entries are skipped
    exceptionEvents: list[Optional[int]] = Field(default_factory=list)
    # JSON list of AvailabilityException, only administrators may set these
    exceptions: Optional[str] = None

    serviceHours: ServiceHours
    serviceTiming: ServiceTiming
    preferences: Optional[str] = None
    preferencesDietary: Optional[str] = None

    adminOverrideUserId: Optional[int] = None


class HotelPreferences(BaseModel):
    interested: bool
    hotelId: Optional[int] = None
    sharingPeople: Optional[int] = None
    sharingPreferences: Optional[str] = None
    checkIn: Optional[date] = None
    checkOut: Optional[date] = None


class HotelPreferencesRequest(BaseModel):
    event: str
    team: str
    # False clears the preferences, which only administrators can do
    preferences: Union[Literal[False], HotelPreferences]
    adminOverrideUserId: Optional[int] = None


class TrainingPreferences(BaseModel):
    training: int


class TrainingPreferencesRequest(BaseModel):
    environment: str
    event: str
    preferences: TrainingPreferences
    adminOverrideUserId: Optional[int] = None


class RefundDetails(BaseModel):
    ticketNumber: Optional[str] = None
    accountIban: str = Field(min_length=1)
    accountName: str = Field(min_length=1)


class RefundRequestRequest(BaseModel):
    event: str
    # False clears the request, which only administrators can do
    request: Union[Literal[False], RefundDetails]
    adminOverrideUserId: Optional[int] = None


class AvailabilityExpectationsRequest(BaseModel):
    environment: str
    event: str
    adminOverrideUserId: Optional[int] = None


class AvailabilityDay(BaseModel):
    date: str
    expectations: list[Literal["available", "avoid", "unavailable"]]


class AvailabilityExpectationsResponse(BaseModel):
    success: bool
    error: Optional[str] = None
    days: Optional[list[AvailabilityDay]] = None


class EnvironmentRequest(BaseModel):
    pass


class EnvironmentResponse(BaseModel):
    success: bool
    environment: dict
    user: Optional[dict] = None
    authType: str
    events: list[dict]
