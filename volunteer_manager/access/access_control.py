"""
Access control for the hierarchical, optionally scoped permission system.

Grants and revokes are resolved from the most specific permission up to the root, where
revokes take precedence over grants at the same level. CRUD permissions check explicit
"permission:operation" entries first.
"""

import logging
import re
from typing import Optional

from ..errors import not_found
from .access_list import ANY_EVENT, ANY_TEAM, AccessList, normalize_grants
from .permissions import CRUD, OPERATIONS, PERMISSION_GROUPS, PERMISSIONS

logger = logging.getLogger(__name__)

PERMISSION_PATTERN = re.compile(r"^[a-z][\w-]*(?:\.[\w-]+)*(?::(create|read|update|delete))*$")

GRANTED_STATUSES = ("crud-granted", "parent-granted", "self-granted")
REVOKED_STATUSES = ("crud-revoked", "parent-revoked", "self-revoked")


class AccessControl:
    def __init__(
        self,
        grants=None,
        revokes=None,
        events: Optional[str] = None,
        teams: Optional[str] = None,
    ):
        self._grants = AccessList(grants, expansions=PERMISSION_GROUPS)
        self._grant_map: dict[str, dict] = {}
        self._revoke_map: dict[str, dict] = {}

        for grant in normalize_grants(grants):
            self._populate(self._grant_map, grant)
        for revoke in normalize_grants(revokes):
            self._populate(self._revoke_map, revoke)

        self._events = set(events.split(",")) if events else None
        self._teams = set(teams.split(",")) if teams else None

    def can(self, permission: str, operation: Optional[str] = None, scope: Optional[dict] = None) -> bool:
        """Whether `permission` has been granted. `operation` is only given for CRUD permissions."""
        return self.get_status(permission, operation, scope) in GRANTED_STATUSES

    def require(self, permission: str, operation: Optional[str] = None, scope: Optional[dict] = None):
        if not self.can(permission, operation, scope):
            not_found()

    def query(self, permission: str, scope: Optional[dict] = None) -> Optional[dict]:
        """How `permission` was granted: expanded from a group, globally, or for a scope"""
        return self._grants.query(permission, scope)

    def get_status(
        self, permission: str, operation: Optional[str] = None, scope: Optional[dict] = None
    ) -> str:
        if not PERMISSION_PATTERN.match(permission):
            raise ValueError(f'Invalid syntax for the given permission: "{permission}"')

        descriptor = PERMISSIONS.get(permission)
        if descriptor is None:
            raise ValueError(f'Unrecognised permission: "{permission}"')

        # Boolean permissions take the scope as their second argument
        if descriptor["type"] != CRUD and isinstance(operation, dict):
            scope, operation = operation, None

        if descriptor.get("require_event") and not (scope or {}).get("event"):
            raise ValueError(f'Event is required when checking "{permission}" access')

        if descriptor.get("require_team") and not (scope or {}).get("team"):
            raise ValueError(f'Team is required when checking "{permission}" access')

        if descriptor["type"] == CRUD:
            if operation not in OPERATIONS:
                raise ValueError(f'Invalid operation given for a CRUD permission: "{operation}"')

            crud_permission = f"{permission}:{operation}"

            revoked = self._revoke_map.get(crud_permission)
            if revoked is not None and self._is_revoke_applicable(revoked, scope):
                return "crud-revoked"

            granted = self._grant_map.get(crud_permission)
            if granted is not None and self._is_grant_applicable(granted, scope):
                return "crud-granted"

        path = permission.split(".")
        while path:
            current = ".".join(path)
            is_parent = current != permission

            revoked = self._revoke_map.get(current)
            if revoked is not None and self._is_revoke_applicable(revoked, scope):
                return "parent-revoked" if is_parent else "self-revoked"

            granted = self._grant_map.get(current)
            if granted is not None and self._is_grant_applicable(granted, scope):
                return "parent-granted" if is_parent else "self-granted"

            path.pop()

        return "unset"

    @staticmethod
    def _populate(target: dict, grant: dict):
        event = grant.get("event")
        team = grant.get("team")

        expanded = []
        for permission in grant["permission"].split(","):
            expanded.extend(PERMISSION_GROUPS.get(permission, [permission]))

        for permission in expanded:
            if not PERMISSION_PATTERN.match(permission):
                logger.warning(f'⚠️ Invalid syntax for the given grant: "{permission}" (ignoring)')
                continue

            existing = target.get(permission)
            if existing is None:
                target[permission] = {
                    "events": {event} if event else None,
                    "teams": {team} if team else None,
                }
                continue

            if event:
                existing["events"] = (existing["events"] or set()) | {event}
            if team:
                existing["teams"] = (existing["teams"] or set()) | {team}

    def _is_grant_applicable(self, permission: dict, scope: Optional[dict]) -> bool:
        event = (scope or {}).get("event")
        team = (scope or {}).get("team")

        if event and event != ANY_EVENT:
            if not (self._events and ANY_EVENT in self._events):
                in_permission = permission["events"] and event in permission["events"]
                in_global = self._events and event in self._events
                if not in_permission and not in_global:
                    return False

        if team and team != ANY_TEAM:
            if not (self._teams and ANY_TEAM in self._teams):
                in_permission = permission["teams"] and team in permission["teams"]
                in_global = self._teams and team in self._teams
                if not in_permission and not in_global:
                    return False

        return True

    @staticmethod
    def _is_revoke_applicable(permission: dict, scope: Optional[dict]) -> bool:
        event = (scope or {}).get("event")
        team = (scope or {}).get("team")

        if permission["events"] and event and event not in permission["events"]:
            return False
        if permission["teams"] and team and team not in permission["teams"]:
            return False

        return True
