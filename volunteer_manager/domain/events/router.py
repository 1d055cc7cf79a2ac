"""Event router - FastAPI endpoints for administering events"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ...actions import execute_action
from ...auth import AuthenticationContext, get_authentication_context
from ...database import get_db
from .schemas import (
    UpdateEventRequest,
    UpdateEventResponse,
    UpdatePublicationRequest,
    UpdatePublicationResponse,
)
from .service import EventService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Events"])


def get_event_service(db: Session = Depends(get_db)) -> EventService:
    """Dependency injection for EventService"""
    return EventService(db)


@router.post("/update-event")
async def update_event(
    request: Request,
    context: AuthenticationContext = Depends(get_authentication_context),
    service: EventService = Depends(get_event_service),
):
    """Update the visibility, settings, slug or team settings of an event"""
    return await execute_action(
        request, UpdateEventRequest, UpdateEventResponse, service.update_event, context, service.db
    )


@router.post("/update-publication")
async def update_publication(
    request: Request,
    context: AuthenticationContext = Depends(get_authentication_context),
    service: EventService = Depends(get_event_service),
):
    """Publish hotel, refund and training information for an event"""
    return await execute_action(
        request,
        UpdatePublicationRequest,
        UpdatePublicationResponse,
        service.update_publication,
        context,
        service.db,
    )
