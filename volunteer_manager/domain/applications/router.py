"""Application router - FastAPI endpoints for administering applications"""

import logging
from functools import partial

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ...actions import execute_action, execute_server_action
from ...auth import AuthenticationContext, get_authentication_context
from ...database import get_db
from .schemas import (
    CreateApplicationForm,
    MoveApplicationForm,
    ScheduleMarkersRequest,
    ScheduleMarkersResponse,
    StatusChangeForm,
    UpdateApplicationRequest,
    UpdateApplicationResponse,
)
from .service import ApplicationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Applications"])


def get_application_service(db: Session = Depends(get_db)) -> ApplicationService:
    """Dependency injection for ApplicationService"""
    return ApplicationService(db)


@router.post("/update-application")
async def update_application(
    request: Request,
    context: AuthenticationContext = Depends(get_authentication_context),
    service: ApplicationService = Depends(get_application_service),
):
    """Update an application's data, metadata, notes or status"""
    return await execute_action(
        request,
        UpdateApplicationRequest,
        UpdateApplicationResponse,
        service.update_application,
        context,
        service.db,
    )


@router.get("/availability/{event}/{user}")
async def schedule_markers(
    request: Request,
    event: str,
    user: int,
    context: AuthenticationContext = Depends(get_authentication_context),
    service: ApplicationService = Depends(get_application_service),
):
    """Periods to avoid when scheduling the volunteer"""
    return await execute_action(
        request,
        ScheduleMarkersRequest,
        ScheduleMarkersResponse,
        service.schedule_markers,
        context,
        service.db,
        route_params={"event": event, "user": user},
    )


# ============================================================================
# SERVER ACTIONS
# ============================================================================


@router.post("/applications/{event}/{team}/create")
async def create_application(
    request: Request,
    event: str,
    team: str,
    context: AuthenticationContext = Depends(get_authentication_context),
    service: ApplicationService = Depends(get_application_service),
):
    return await execute_server_action(
        request,
        CreateApplicationForm,
        partial(service.create_application, event, team),
        context,
        service.db,
    )


@router.post("/applications/{event}/{team}/{user_id}/approve")
async def approve_application(
    request: Request,
    event: str,
    team: str,
    user_id: int,
    context: AuthenticationContext = Depends(get_authentication_context),
    service: ApplicationService = Depends(get_application_service),
):
    return await execute_server_action(
        request,
        StatusChangeForm,
        partial(service.approve_application, event, team, user_id),
        context,
        service.db,
    )


@router.post("/applications/{event}/{team}/{user_id}/reject")
async def reject_application(
    request: Request,
    event: str,
    team: str,
    user_id: int,
    context: AuthenticationContext = Depends(get_authentication_context),
    service: ApplicationService = Depends(get_application_service),
):
    return await execute_server_action(
        request,
        StatusChangeForm,
        partial(service.reject_application, event, team, user_id),
        context,
        service.db,
    )


@router.post("/applications/{event}/{team}/{user_id}/reconsider")
async def reconsider_application(
    request: Request,
    event: str,
    team: str,
    user_id: int,
    context: AuthenticationContext = Depends(get_authentication_context),
    service: ApplicationService = Depends(get_application_service),
):
    return await execute_server_action(
        request,
        StatusChangeForm,
        partial(service.reconsider_application, event, team, user_id),
        context,
        service.db,
    )


@router.post("/applications/{event}/{team}/{user_id}/move")
async def move_application(
    request: Request,
    event: str,
    team: str,
    user_id: int,
    context: AuthenticationContext = Depends(get_authentication_context),
    service: ApplicationService = Depends(get_application_service),
):
    return await execute_server_action(
        request,
        MoveApplicationForm,
        partial(service.move_application, event, team, user_id),
        context,
        service.db,
    )
