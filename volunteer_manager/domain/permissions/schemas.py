"""Permission domain schemas - Pydantic models for managing account access"""

from typing import Optional

from pydantic import BaseModel, Field


class PermissionsRequest(BaseModel):
    userId: int


class PrivilegeDescription(BaseModel):
    id: int
    name: str
    group: str
    warning: Optional[str] = None
    granted: bool
    expanded: bool


class PermissionDescription(BaseModel):
    permission: str
    name: str
    description: str
    type: str
    operations: Optional[list[str]] = None
    requireEvent: bool
    requireTeam: bool
    warning: bool


class PermissionsResponse(BaseModel):
    success: bool
    error: Optional[str] = None
    privileges: list[PrivilegeDescription] = Field(default_factory=list)
    permissions: list[PermissionDescription] = Field(default_factory=list)
    grants: list[str] = Field(default_factory=list)
    revokes: list[str] = Field(default_factory=list)


class UpdatePermissionsRequest(BaseModel):
    userId: int
    privileges: Optional[int] = Field(default=None, ge=0)
    grants: Optional[list[str]] = None
    revokes: Optional[list[str]] = None


class UpdatePermissionsResponse(BaseModel):
    success: bool
    error: Optional[str] = None
