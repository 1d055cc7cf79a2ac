"""
Audit log of mutations made through the Volunteer Manager.

Separate from application logging: entries are stored in the `logs` table and can be
browsed by volunteers holding the "system.logs" permission.
"""

import json
import logging
from typing import Optional, Union

from sqlalchemy.orm import Session

from .models import LogEntry, User

logger = logging.getLogger(__name__)

SEVERITY_DEBUG = "Debug"
SEVERITY_INFO = "Info"
SEVERITY_WARNING = "Warning"
SEVERITY_ERROR = "Error"
SEVERITIES = (SEVERITY_DEBUG, SEVERITY_INFO, SEVERITY_WARNING, SEVERITY_ERROR)


class LogType:
    AdminClearHotelPreferences = "admin-clear-hotel-preferences"
    AdminClearRefundRequest = "admin-clear-refund-request"
    AdminEventApplication = "admin-event-application"
    AdminEventHotelMutation = "admin-event-hotel"
    AdminEventPublishInfo = "admin-event-publish-info"
    AdminEventTrainingAssignment = "admin-event-training-assignment"
    AdminEventTrainingMutation = "admin-event-training"
    AdminEventTrainingExtraMutation = "admin-event-training-extra"
    AdminRefundMutation = "admin-refund-mutation"
    AdminUpdateAvailabilityPreferences = "admin-update-availability-preferences"
    AdminUpdateEvent = "admin-update-event"
    AdminUpdateHotelPreferences = "admin-update-hotel-preferences"
    AdminUpdatePermission = "admin-update-permission"
    AdminUpdateRefundRequest = "admin-update-refund-request"
    AdminUpdateTeamVolunteer = "admin-update-team-volunteer"
    AdminUpdateTeamVolunteerStatus = "admin-update-team-volunteer-status"
    AdminUpdateTrainingPreferences = "admin-update-training-preferences"
    ApplicationAvailabilityPreferences = "application-availability-preferences"
    ApplicationHotelPreferences = "application-hotel-preferences"
    ApplicationRefundRequest = "application-refund-request"
    ApplicationTrainingPreferences = "application-training-preferences"
    DatabaseError = "database-error"
    EventApplication = "event-application"
    EventVolunteerNotes = "event-volunteer-notes"


# Human readable descriptions, "{source}", "{target}" and data keys are substituted
LOG_MESSAGES = {
    LogType.AdminClearHotelPreferences: "Cleared hotel preferences of {target} for {event}",
    LogType.AdminClearRefundRequest: "Cleared the refund request of {target} for {event}",
    LogType.AdminEventApplication: "Created an application for {target} to {event}",
    LogType.AdminEventHotelMutation: "{mutation} a hotel room for {event}",
    LogType.AdminEventPublishInfo: "Changed publication of {type} information for {event}",
    LogType.AdminEventTrainingAssignment: "Updated a training assignment for {event}",
    LogType.AdminEventTrainingMutation: "{mutation} a training for {event}",
    LogType.AdminEventTrainingExtraMutation: "{mutation} an extra training participant for {event}",
    LogType.AdminRefundMutation: "{mutation} the refund request of {target} for {event}",
    LogType.AdminUpdateAvailabilityPreferences: "Updated availability preferences of {target} for {event}",
    LogType.AdminUpdateEvent: "Updated {action} of {event}",
    LogType.AdminUpdateHotelPreferences: "Updated hotel preferences of {target} for {event}",
    LogType.AdminUpdatePermission: "Updated the permissions of {target}",
    LogType.AdminUpdateRefundRequest: "Updated the refund request of {target} for {event}",
    LogType.AdminUpdateTeamVolunteer: "Updated the application of {target} for {event}",
    LogType.AdminUpdateTeamVolunteerStatus: "{action} the application of {target} for {event}",
    LogType.AdminUpdateTrainingPreferences: "Updated training preferences of {target} for {event}",
    LogType.ApplicationAvailabilityPreferences: "Updated their availability preferences for {event}",
    LogType.ApplicationHotelPreferences: "Updated their hotel preferences for {event}",
    LogType.ApplicationRefundRequest: "Requested a ticket refund for {event}",
    LogType.ApplicationTrainingPreferences: "Updated their training preferences for {event}",
    LogType.DatabaseError: "Database error: {message}",
    LogType.EventApplication: "Applied to participate in {event}",
    LogType.EventVolunteerNotes: "Updated the notes of {target} for {event}",
}


def _user_id(user: Optional[Union[User, int]]) -> Optional[int]:
    if user is None:
        return None
    return user if isinstance(user, int) else user.id


def write_log(
    db: Session,
    type: str,
    severity: str = SEVERITY_INFO,
    source: Optional[Union[User, int]] = None,
    target: Optional[Union[User, int]] = None,
    data: Optional[dict] = None,
) -> LogEntry:
    """Record an entry in the audit log. Users may be given as model or as id."""
    entry = LogEntry(
        log_type=type,
        log_severity=severity,
        log_source_user_id=_user_id(source),
        log_target_user_id=_user_id(target),
        log_data=json.dumps(data, default=str) if data else None,
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)

    logger.debug(f"📝 Logged {type} ({severity}) source={entry.log_source_user_id}")
    return entry


def format_log_message(entry: LogEntry, source_name: Optional[str], target_name: Optional[str]) -> str:
    """Render the human readable description of a log entry"""
    data = json.loads(entry.log_data) if entry.log_data else {}
    template = LOG_MESSAGES.get(entry.log_type)
    if template is None:
        return f"Unknown log entry ({entry.log_type})"

    values = {key: value for key, value in data.items() if isinstance(value, (str, int, float))}
    values.setdefault("event", "an event")
    values.setdefault("mutation", "Updated")
    values.setdefault("action", "Updated")
    values.setdefault("message", "")
    values.setdefault("type", "event")
    values["source"] = source_name or "someone"
    values["target"] = target_name or "someone"

    try:
        return template.format(**values)
    except (KeyError, IndexError):
        return template
