"""Permission service - Business logic for managing privileges and permissions of accounts"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...access import ANY_EVENT, ANY_TEAM, AccessControl, Privilege, can, expand
from ...access.access_control import PERMISSION_PATTERN
from ...access.permissions import CRUD, PERMISSION_GROUPS, PERMISSIONS, describe_permissions
from ...access.privileges import describe_privileges
from ...actions import ActionProps
from ...auth import execute_access_check, invalidate_sessions
from ...errors import not_found
from ...logs import SEVERITY_WARNING, LogType, write_log
from .repository import PermissionRepository
from .schemas import PermissionsRequest, UpdatePermissionsRequest

logger = logging.getLogger(__name__)

# Assignments are verified against the signed in user's access regardless of scope
ANY_SCOPE = {"event": ANY_EVENT, "team": ANY_TEAM}


def _split(value: Optional[str]) -> list[str]:
    return [entry for entry in (value or "").split(",") if entry]


class PermissionService:
    """Service layer for account access"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = PermissionRepository()

    def _verify_assignable(self, access: AccessControl, entries: list[str]) -> Optional[str]:
        """Returns an error message when `access` is not allowed to assign one of the `entries`"""
        for entry in entries:
            if not PERMISSION_PATTERN.match(entry):
                return f'Invalid permission: "{entry}"'

            permission, _, operation = entry.partition(":")
            if permission in PERMISSION_GROUPS:
                if not access.can("admin"):
                    return f'You are not able to assign the "{entry}" permission'
                continue

            descriptor = PERMISSIONS.get(permission)
            if descriptor is None:
                return f'Unrecognised permission: "{entry}"'

            if descriptor["type"] == CRUD:
                operations = [operation] if operation else ["create", "read", "update", "delete"]
                if not all(access.can(permission, op, ANY_SCOPE) for op in operations):
                    return f'You are not able to assign the "{entry}" permission'
            elif operation:
                return f'Invalid permission: "{entry}"'
            elif not access.can(permission, ANY_SCOPE):
                return f'You are not able to assign the "{entry}" permission'

        return None

    def permissions(self, data: PermissionsRequest, props: ActionProps) -> dict:
        """Describe the privileges and permissions of an account"""
        execute_access_check(
            props.authentication_context,
            check="admin",
            permission={"permission": "volunteer.permissions", "operation": "read"},
        )

        user = self.repo.get_user(self.db, data.userId)
        if not user:
            not_found()

        return {
            "success": True,
            "privileges": describe_privileges(user.privileges),
            "permissions": describe_permissions(),
            "grants": _split(user.permission_grants),
            "revokes": _split(user.permission_revokes),
        }

    def update_permissions(self, data: UpdatePermissionsRequest, props: ActionProps) -> dict:
        """Update the privileges, permission grants and revokes of an account"""
        execute_access_check(
            props.authentication_context,
            check="admin",
            permission={"permission": "volunteer.permissions", "operation": "update"},
        )

        user = self.repo.get_user(self.db, data.userId)
        if not user:
            not_found()

        if can(user, Privilege.Administrator) and not can(props.user, Privilege.Administrator):
            return {"success": False, "error": "You are not allowed to update these permissions…"}

        updates = {}

        if data.privileges is not None:
            # Privileges can only be handed out by those who hold them
            added = Privilege(data.privileges) & ~Privilege(user.privileges or 0)
            if added & ~expand(props.user.privileges or 0):
                return {"success": False, "error": "You are not able to assign those privileges…"}
            updates["privileges"] = data.privileges

        for field, column in (("grants", "permission_grants"), ("revokes", "permission_revokes")):
            entries = getattr(data, field)
            if entries is None:
                continue

            entries = sorted({entry.strip() for entry in entries if entry.strip()})
            error = self._verify_assignable(props.access, entries)
            if error:
                return {"success": False, "error": error}

            updates[column] = ",".join(entries) or None

        if not updates:
            return {"success": True}

        removed_privileges = data.privileges is not None and bool(
            Privilege(user.privileges or 0) & ~Privilege(data.privileges)
        )

        self.repo.update_access(self.db, user, **updates)

        write_log(
            self.db,
            LogType.AdminUpdatePermission,
            severity=SEVERITY_WARNING,
            source=props.user,
            target=user,
            data={
                "ip": props.ip,
                "privileges": updates.get("privileges"),
                "grants": updates.get("permission_grants"),
                "revokes": updates.get("permission_revokes"),
            },
        )

        # Sign the volunteer out when privileges have been taken away from them
        if removed_privileges:
            invalidate_sessions(self.db, user)

        logger.info(f"✅ Updated permissions of user {user.id}")
        return {"success": True}
