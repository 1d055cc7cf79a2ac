"""Refund domain schemas - Pydantic models for the refund request data table"""

from typing import Optional

from pydantic import BaseModel


class RefundRow(BaseModel):
    # Id of the volunteer who requested the refund
    id: int
    name: Optional[str] = None
    team: Optional[str] = None
    ticketNumber: Optional[str] = None
    accountIban: Optional[str] = None
    accountName: Optional[str] = None
    requested: Optional[str] = None
    confirmed: bool


class EventContext(BaseModel):
    event: str
