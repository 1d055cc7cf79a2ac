"""Application domain schemas - Pydantic models for administering applications"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from ..registration.schemas import ServiceHours, ServiceTiming, ShirtFit, ShirtSize

RegistrationStatus = Literal["Registered", "Cancelled", "Accepted", "Rejected"]


class ApplicationData(BaseModel):
    credits: bool
    socials: bool
    tshirtFit: ShirtFit
    tshirtSize: ShirtSize


class ApplicationMetadata(BaseModel):
    registrationDate: Optional[datetime] = None
    availabilityEventLimit: Optional[int] = Field(default=None, ge=0, le=100)
    hotelEligible: Optional[int] = None
    trainingEligible: Optional[int] = None


class ApplicationStatus(BaseModel):
    registrationStatus: RegistrationStatus
    subject: Optional[str] = None
    message: Optional[str] = None


class UpdateApplicationRequest(BaseModel):
    event: str
    team: str
    userId: int

    data: Optional[ApplicationData] = None
    metadata: Optional[ApplicationMetadata] = None
    notes: Optional[str] = None
    status: Optional[ApplicationStatus] = None


class UpdateApplicationResponse(BaseModel):
    success: bool


class CreateApplicationForm(BaseModel):
    userId: int
    tshirtSize: ShirtSize
    tshirtFit: ShirtFit
    serviceHours: ServiceHours
    serviceTiming: ServiceTiming
    preferences: Optional[str] = None


class StatusChangeForm(BaseModel):
    """Optional message to inform the volunteer about the decision"""

    subject: Optional[str] = None
    message: Optional[str] = None


class MoveApplicationForm(BaseModel):
    team: str


class ScheduleMarkersRequest(BaseModel):
    event: str
    user: int


class ScheduleMarker(BaseModel):
    start: str
    end: str


class ScheduleMarkersResponse(BaseModel):
    success: bool
    avoid: list[ScheduleMarker] = Field(default_factory=list)
    unavailable: list[ScheduleMarker] = Field(default_factory=list)
