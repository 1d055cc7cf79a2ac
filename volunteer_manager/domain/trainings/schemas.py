"""Training domain schemas - Pydantic models for the training data tables"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field


class EventContext(BaseModel):
    event: str


class TrainingRow(BaseModel):
    id: int
    address: Optional[str] = None
    capacity: int = Field(ge=0)
    start: datetime
    end: datetime


class TrainingExtraRow(BaseModel):
    """Participant in a training who is not a volunteer, e.g. a security guard"""

    id: int
    trainingExtraName: Optional[str] = None
    trainingExtraEmail: Optional[str] = None
    trainingExtraBirthdate: Optional[date] = None
    preferenceTrainingId: Optional[int] = None
    preferenceUpdated: Optional[str] = None


class TrainingAssignmentRow(BaseModel):
    # "user/<id>" for volunteers, "extra/<id>" for extra participants
    id: str
    name: str

    userId: Optional[int] = None
    team: Optional[str] = None

    # Omitted when the participant has not expressed a preference yet
    preferredTrainingId: Optional[int] = None

    # Omitted when unassigned, 0 when the participant should skip the training. Updates
    # accept -1 to reset the assignment.
    assignedTrainingId: Optional[int] = None

    confirmed: bool = False
