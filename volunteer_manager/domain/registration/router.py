"""Registration router - FastAPI endpoints for the volunteer flows"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ...actions import execute_action
from ...auth import AuthenticationContext, get_authentication_context
from ...database import get_db
from .schemas import (
    ActionResponse,
    ApplicationRequest,
    AvailabilityExpectationsRequest,
    AvailabilityExpectationsResponse,
    AvailabilityPreferencesRequest,
    EnvironmentRequest,
    EnvironmentResponse,
    HotelPreferencesRequest,
    RefundRequestRequest,
    TrainingPreferencesRequest,
)
from .service import RegistrationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Registration"])


def get_registration_service(db: Session = Depends(get_db)) -> RegistrationService:
    """Dependency injection for RegistrationService"""
    return RegistrationService(db)


@router.get("/environment")
async def environment(
    request: Request,
    context: AuthenticationContext = Depends(get_authentication_context),
    service: RegistrationService = Depends(get_registration_service),
):
    """Environment, user and event access for the requesting host"""
    return await execute_action(
        request, EnvironmentRequest, EnvironmentResponse, service.environment, context, service.db
    )


@router.post("/event/application")
async def application(
    request: Request,
    context: AuthenticationContext = Depends(get_authentication_context),
    service: RegistrationService = Depends(get_registration_service),
):
    """Apply to participate in an event"""
    return await execute_action(
        request, ApplicationRequest, ActionResponse, service.application, context, service.db
    )


@router.post("/event/availability-preferences")
async def availability_preferences(
    request: Request,
    context: AuthenticationContext = Depends(get_authentication_context),
    service: RegistrationService = Depends(get_registration_service),
):
    return await execute_action(
        request,
        AvailabilityPreferencesRequest,
        ActionResponse,
        service.availability_preferences,
        context,
        service.db,
    )


@router.post("/event/hotel-preferences")
async def hotel_preferences(
    request: Request,
    context: AuthenticationContext = Depends(get_authentication_context),
    service: RegistrationService = Depends(get_registration_service),
):
    return await execute_action(
        request, HotelPreferencesRequest, ActionResponse, service.hotel_preferences, context, service.db
    )


@router.post("/event/training-preferences")
async def training_preferences(
    request: Request,
    context: AuthenticationContext = Depends(get_authentication_context),
    service: RegistrationService = Depends(get_registration_service),
):
    return await execute_action(
        request, TrainingPreferencesRequest, ActionResponse, service.training_preferences, context, service.db
    )


@router.post("/event/refund-request")
async def refund_request(
    request: Request,
    context: AuthenticationContext = Depends(get_authentication_context),
    service: RegistrationService = Depends(get_registration_service),
):
    return await execute_action(
        request, RefundRequestRequest, ActionResponse, service.refund_request, context, service.db
    )


@router.get("/event/availability-expectations")
async def availability_expectations(
    request: Request,
    context: AuthenticationContext = Depends(get_authentication_context),
    service: RegistrationService = Depends(get_registration_service),
):
    """Hourly availability expectations of the signed in volunteer"""
    return await execute_action(
        request,
        AvailabilityExpectationsRequest,
        AvailabilityExpectationsResponse,
        service.availability_expectations,
        context,
        service.db,
    )
