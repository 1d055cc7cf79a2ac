"""
Permissions that can be granted to or revoked from volunteers.

Permissions are hierarchical: granting "event" implies every "event.*" permission, unless
a more specific permission has been revoked. CRUD permissions additionally carry an
operation, e.g. "event.applications:read".
"""

BOOLEAN = "boolean"
CRUD = "crud"

OPERATIONS = ("create", "read", "update", "delete")

PERMISSIONS = {
    "admin": {
        "name": "Administrator (role)",
        "description": (
            "The administrator role grants all permissions in the system without exception, "
            "including full access to all event and volunteer information."
        ),
        "type": BOOLEAN,
        "warning": True,
    },
    "event.applications": {
        "name": "Event volunteer applications",
        "description": (
            "Whether the volunteer is able to deal with incoming participation applications."
        ),
        "hide": ["delete"],  # applications must be responded to, even if done silently
        "require_event": True,
        "require_team": True,
        "type": CRUD,
    },
    "event.hotels": {
        "name": "Hotel room management",
        "description": "Whether the volunteer is able to manage hotel rooms and bookings.",
        "require_event": True,
        "type": BOOLEAN,
    },
    "event.refunds": {
        "name": "Ticket refund management",
        "description": "Whether the volunteer is able to see and process ticket refund requests.",
        "require_event": True,
        "type": BOOLEAN,
    },
    "event.requests": {
        "name": "Program request management",
        "description": "Whether the volunteer is able to manage incoming program requests.",
        "require_event": True,
        "type": BOOLEAN,
    },
    "event.retention": {
        "name": "Retention management",
        "description": (
            "Access to retention management for a particular event and team. This can reveal "
            "contact information of people who helped out in the past."
        ),
        "require_event": True,
        "require_team": True,
        "type": BOOLEAN,
    },
    "event.schedule.access": {
        "name": "Volunteer portal access",
        "description": "Whether the volunteer can access the portal before it has been published.",
        "require_event": True,
        "type": BOOLEAN,
    },
    "event.trainings": {
        "name": "Training management",
        "description": "Whether the volunteer is able to manage trainings and their assignments.",
        "require_event": True,
        "type": BOOLEAN,
    },
    "event.vendors": {
        "name": "Vendor team schedules",
        "description": (
            "Whether the volunteer is able to manage vendor information of the teams they have "
            "access to, for example the first aid and security teams."
        ),
        "hide": ["create", "delete"],  # schedules can only be read or updated
        "require_event": True,
        "require_team": True,
        "type": CRUD,
    },
    "event.visible": {
        "name": "Event visibility",
        "description": (
            "Whether the volunteer is able to see the existence of a particular event, for "
            "example in the admin area, before it has been published."
        ),
        "require_event": True,
        "type": BOOLEAN,
    },
    "event.volunteers.information": {
        "name": "Volunteer information",
        "description": "Whether the volunteer is able to read and update volunteer information.",
        "require_event": True,
        "require_team": True,
        "type": CRUD,
    },
    "event.volunteers.overrides": {
        "name": "Volunteer application overrides",
        "description": "Whether the volunteer is able to override eligibility and limits.",
        "require_event": True,
        "require_team": True,
        "type": BOOLEAN,
    },
    "event.volunteers.participation": {
        "name": "Volunteer participation",
        "description": "Whether the volunteer is able to move volunteers between teams.",
        "require_event": True,
        "require_team": True,
        "type": BOOLEAN,
    },
    "system.logs": {
        "name": "Volunteer Manager logs",
        "description": (
            "Whether the volunteer is able to access system logs, which contain all account "
            "activity, actions and changes made in the Volunteer Manager."
        ),
        "hide": ["create", "update"],  # logs are read-only, but can be deleted
        "type": CRUD,
        "warning": True,
    },
    "volunteer.avatars": {
        "name": "Avatar management",
        "description": "Whether the volunteer is able to manage avatars of other volunteers.",
        "type": BOOLEAN,
    },
    "volunteer.export": {
        "name": "Export volunteering information",
        "description": (
            "Whether the volunteer is able to export portions of volunteering information for "
            "sharing with a third party."
        ),
        "type": BOOLEAN,
        "warning": True,
    },
    "volunteer.permissions": {
        "name": "Volunteer account permissions",
        "description": (
            "Whether the volunteer is able to manage the permissions of other volunteers, "
            "including their own."
        ),
        "hide": ["create", "delete"],  # all mutations are considered updates
        "type": CRUD,
        "warning": True,
    },
    "volunteer.silent": {
        "name": "Silent mutations",
        "description": (
            "Whether the volunteer is able to make significant changes to someone's "
            "participation without having to send them a message."
        ),
        "type": BOOLEAN,
        "warning": True,
    },
    "test.boolean": {
        "name": "Test (boolean)",
        "description": "Boolean permission exclusively used for testing purposes",
        "hide": True,
        "type": BOOLEAN,
    },
    "test.boolean.required.both": {
        "name": "Test (boolean w/ event + team)",
        "description": "Boolean permission exclusively used for testing purposes w/ scoping",
        "hide": True,
        "require_event": True,
        "require_team": True,
        "type": BOOLEAN,
    },
    "test.boolean.required.event": {
        "name": "Test (boolean w/ event)",
        "description": "Boolean permission exclusively used for testing purposes w/ event",
        "hide": True,
        "require_event": True,
        "type": BOOLEAN,
    },
    "test.boolean.required.team": {
        "name": "Test (boolean w/ team)",
        "description": "Boolean permission exclusively used for testing purposes w/ team",
        "hide": True,
        "require_team": True,
        "type": BOOLEAN,
    },
    "test.crud": {
        "name": "Test (CRUD)",
        "description": "CRUD permission exclusively used for testing purposes",
        "hide": True,
        "type": CRUD,
    },
}

# Groups expand into the permissions they contain when granted or revoked
PERMISSION_GROUPS = {
    "admin": ["admin", "event", "system", "volunteer", "test"],
    "everyone": [],
    "staff": [
        "event.applications:read",
        "event.applications:update",
        "event.requests",
        "event.retention",
        "event.vendors",
        "event.visible",
        "volunteer.avatars",
    ],
    "senior": [
        "event.applications:read",
        "event.vendors:read",
        "event.visible",
        "volunteer.avatars",
    ],
}


def describe_permissions() -> list[dict]:
    """List the visible permissions with their metadata, for the permissions page"""
    described = []
    for permission, descriptor in PERMISSIONS.items():
        if descriptor.get("hide") is True:
            continue

        operations = None
        if descriptor["type"] == CRUD:
            hidden = descriptor.get("hide") or []
            operations = [operation for operation in OPERATIONS if operation not in hidden]

        described.append(
            {
                "permission": permission,
                "name": descriptor["name"],
                "description": descriptor["description"],
                "type": descriptor["type"],
                "operations": operations,
                "requireEvent": bool(descriptor.get("require_event")),
                "requireTeam": bool(descriptor.get("require_team")),
                "warning": bool(descriptor.get("warning")),
            }
        )
    return described
