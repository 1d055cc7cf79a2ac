"""Privilege bitmask assigned to user accounts, and the rules for expanding it"""

from enum import IntFlag
from typing import Optional


class Privilege(IntFlag):
    Administrator = 1 << 0
    Statistics = 1 << 1
    EventContentOverride = 1 << 2
    EventRegistrationOverride = 1 << 3
    EventScheduleOverride = 1 << 4
    SystemLogsAccess = 1 << 5
    VolunteerAvatarManagement = 1 << 6
    EventAdministrator = 1 << 7
    SystemAdministrator = 1 << 8
    VolunteerAdministrator = 1 << 9
    EventApplicationManagement = 1 << 10
    EventVolunteerContactInfo = 1 << 11
    EventHotelManagement = 1 << 12
    EventTrainingManagement = 1 << 13
    EventVolunteerApplicationOverrides = 1 << 14
    VolunteerSilentMutations = 1 << 15


PRIVILEGE_EXPANSIONS = {
    Privilege.Administrator: (
        Privilege.EventAdministrator
        | Privilege.SystemAdministrator
        | Privilege.VolunteerAdministrator
        | Privilege.Statistics
    ),
    Privilege.EventAdministrator: (
        Privilege.EventApplicationManagement
        | Privilege.EventContentOverride
        | Privilege.EventHotelManagement
        | Privilege.EventRegistrationOverride
        | Privilege.EventScheduleOverride
        | Privilege.EventTrainingManagement
        | Privilege.EventVolunteerApplicationOverrides
        | Privilege.EventVolunteerContactInfo
    ),
    Privilege.SystemAdministrator: Privilege.SystemLogsAccess,
    Privilege.VolunteerAdministrator: (
        Privilege.VolunteerAvatarManagement | Privilege.VolunteerSilentMutations
    ),
}

# The expansion table is at most two levels deep
EXPANSION_ITERATIONS = 2

PRIVILEGE_GROUPS = {
    Privilege.Administrator: "Special access",
    Privilege.Statistics: "Special access",
    Privilege.EventAdministrator: "Special access",
    Privilege.EventApplicationManagement: "Event access",
    Privilege.EventContentOverride: "Event access",
    Privilege.EventHotelManagement: "Event access",
    Privilege.EventRegistrationOverride: "Event access",
    Privilege.EventScheduleOverride: "Event access",
    Privilege.EventTrainingManagement: "Event access",
    Privilege.EventVolunteerApplicationOverrides: "Event access",
    Privilege.EventVolunteerContactInfo: "Event access",
    Privilege.SystemAdministrator: "Special access",
    Privilege.SystemLogsAccess: "System access",
    Privilege.VolunteerAdministrator: "Special access",
    Privilege.VolunteerAvatarManagement: "Volunteer access",
    Privilege.VolunteerSilentMutations: "Volunteer access",
}

PRIVILEGE_NAMES = {
    Privilege.Administrator: "Administrator",
    Privilege.Statistics: "Statistics",
    Privilege.EventAdministrator: "Event administrator",
    Privilege.EventApplicationManagement: "Manage applications",
    Privilege.EventContentOverride: "Always allow access to event content",
    Privilege.EventHotelManagement: "Manage hotel rooms",
    Privilege.EventRegistrationOverride: "Always allow access to event registration",
    Privilege.EventScheduleOverride: "Always allow access to the volunteer portal",
    Privilege.EventTrainingManagement: "Manage trainings",
    Privilege.EventVolunteerApplicationOverrides: "Manage application overrides",
    Privilege.EventVolunteerContactInfo: "Always show volunteer contact info",
    Privilege.SystemAdministrator: "System administrator",
    Privilege.SystemLogsAccess: "Logs access",
    Privilege.VolunteerAdministrator: "Volunteer administrator",
    Privilege.VolunteerAvatarManagement: "Avatar management",
    Privilege.VolunteerSilentMutations: "Silent changes",
}

PRIVILEGE_WARNINGS = {
    Privilege.Administrator: "Grants all privileges",
    Privilege.EventAdministrator: "Grants all event-related privileges",
    Privilege.SystemAdministrator: "Grants all system-related privileges",
    Privilege.VolunteerAdministrator: "Grants all volunteer-related privileges",
    Privilege.VolunteerSilentMutations: "Make changes without informing the volunteer",
}


def expand(privileges: int) -> Privilege:
    """Expand the given privileges to include every privilege they imply"""
    expanded = Privilege(privileges)
    for _ in range(EXPANSION_ITERATIONS):
        for privilege, implied in PRIVILEGE_EXPANSIONS.items():
            if expanded & privilege:
                expanded |= implied
    return expanded


def can(user, privilege: Privilege) -> bool:
    """Whether the `user` holds `privilege`, directly or through expansion"""
    if user is None:
        return False
    return bool(expand(user.privileges or 0) & privilege)


def describe_privileges(privileges: Optional[int] = None) -> list[dict]:
    """List every privilege with its display metadata, for the permissions page"""
    expanded = expand(privileges or 0)
    return [
        {
            "id": int(privilege),
            "name": PRIVILEGE_NAMES[privilege],
            "group": PRIVILEGE_GROUPS[privilege],
            "warning": PRIVILEGE_WARNINGS.get(privilege),
            "granted": bool((privileges or 0) & privilege),
            "expanded": bool(expanded & privilege),
        }
        for privilege in Privilege
    ]
