"""Permission router - FastAPI endpoints for managing account access"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ...actions import execute_action
from ...auth import AuthenticationContext, get_authentication_context
from ...database import get_db
from .schemas import (
    PermissionsRequest,
    PermissionsResponse,
    UpdatePermissionsRequest,
    UpdatePermissionsResponse,
)
from .service import PermissionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Permissions"])


def get_permission_service(db: Session = Depends(get_db)) -> PermissionService:
    """Dependency injection for PermissionService"""
    return PermissionService(db)


@router.get("/permissions")
async def permissions(
    request: Request,
    context: AuthenticationContext = Depends(get_authentication_context),
    service: PermissionService = Depends(get_permission_service),
):
    return await execute_action(
        request, PermissionsRequest, PermissionsResponse, service.permissions, context, service.db
    )


@router.post("/update-permissions")
async def update_permissions(
    request: Request,
    context: AuthenticationContext = Depends(get_authentication_context),
    service: PermissionService = Depends(get_permission_service),
):
    """Update the privileges and permissions of an account"""
    return await execute_action(
        request,
        UpdatePermissionsRequest,
        UpdatePermissionsResponse,
        service.update_permissions,
        context,
        service.db,
    )
