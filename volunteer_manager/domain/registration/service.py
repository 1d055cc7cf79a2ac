"""Registration service - Business logic for the flows volunteers go through"""

import json
import logging
from datetime import datetime
from typing import Optional

from pydantic import TypeAdapter, ValidationError
from sqlalchemy.orm import Session

from ...access import Privilege, can
from ...actions import ActionProps
from ...auth import execute_access_check
from ...availability import determine_expectations, parse_timeslot_ids
from ...constants import (
    EVENT_AVAILABILITY_AVAILABLE,
    REGISTRATION_REGISTERED,
    STATUS_ACTIVE,
    STATUS_FUTURE,
    STATUS_PAST,
)
from ...content import get_static_content
from ...environment import determine_availability_status, determine_environment, get_environment_context
from ...errors import not_found
from ...logs import SEVERITY_INFO, SEVERITY_WARNING, LogType, write_log
from ...models import Event, Registration
from ...shared.dates import as_utc, isoformat, to_zone, utc_now
from ...shared.validators import parse_service_timing
from ...worker import schedule_task
from ..events.repository import EventRepository
from .repository import RegistrationRepository
from .schemas import (
    ApplicationRequest,
    AvailabilityException,
    AvailabilityExpectationsRequest,
    AvailabilityPreferencesRequest,
    EnvironmentRequest,
    HotelPreferencesRequest,
    RefundRequestRequest,
    TrainingPreferencesRequest,
)

logger = logging.getLogger(__name__)

NOTIFICATION_APPLICATION = "application"

_exceptions_adapter = TypeAdapter(list[AvailabilityException])


def _failure(error: str) -> dict:
    return {"success": False, "error": error}


def serialize_availability_exceptions(exceptions: str) -> str:
    """Validate JSON encoded availability exceptions, returning their normalised form"""
    if not exceptions.strip():
        return "[]"
    entries = _exceptions_adapter.validate_json(exceptions)
    return json.dumps(
        [{"start": isoformat(entry.start), "end": isoformat(entry.end), "state": entry.state} for entry in entries]
    )


def _effective(override: Optional[int], default) -> bool:
    """Registration level overrides take precedence over the role's setting"""
    if override is not None:
        return bool(override)
    return bool(default)


def _is_window_open(current_time: datetime, published: bool, start: Optional[datetime], end: Optional[datetime]) -> bool:
    """Published information with an open (or absent) preference window"""
    if not published:
        return False
    if start is None:
        return True
    return determine_availability_status(current_time, start, end) == STATUS_ACTIVE


class RegistrationService:
    """Service layer for volunteer registration flows"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = RegistrationRepository()
        self.events = EventRepository()

    # ========================================================================
    # APPLICATIONS
    # ========================================================================

    async def application(self, data: ApplicationRequest, props: ActionProps) -> dict:
        """Apply to participate in an event, optionally on behalf of another volunteer"""
        if not props.user:
            return _failure("Sorry, you need to log in to your account first.")

        event = self.events.get_event_by_slug(self.db, data.event)
        if not event:
            return _failure("Sorry, something went wrong (unable to find the right event)...")

        team = self.events.get_team_by_slug(self.db, data.team)
        if not team:
            return _failure("Sorry, something went wrong (unable to find the right team)...")

        user_id = props.user.id
        if data.adminOverride:
            execute_access_check(
                props.authentication_context,
                check="admin-event",
                event=data.event,
                permission={
                    "permission": "event.applications",
                    "operation": "create",
                    "scope": {"event": event.slug, "team": team.slug},
                },
            )
            user_id = data.adminOverride.userId
        else:
            event_team = self.events.get_event_team(self.db, event.id, team.id)
            if not event_team or not event_team.enable_team:
                return _failure("Sorry, something went wrong (unable to find the environment)...")

            override = props.access.can("event.visible", {"event": event.slug, "team": team.slug})
            status = determine_availability_status(
                utc_now(), event_team.application_start, event_team.application_end, override
            )
            if not event_team.enable_applications:
                if status == STATUS_FUTURE:
                    return _failure("Sorry, applications are not being accepted yet…")
                if status == STATUS_PAST:
                    return _failure("Sorry, applications are no longer accepted…")

        if self.repo.get_registration(self.db, team.environment, event.id, user_id):
            return _failure("You already have an active application…")

        if not team.default_role_id:
            return _failure("Sorry, something went wrong (unable to find the right role)...")

        timing_start, timing_end = parse_service_timing(data.serviceTiming)
        self.repo.create_registration(
            self.db,
            user_id=user_id,
            event_id=event.id,
            team_id=team.id,
            role_id=team.default_role_id,
            registration_date=utc_now(),
            registration_status=REGISTRATION_REGISTERED,
            shirt_fit=data.tshirtFit,
            shirt_size=data.tshirtSize,
            include_credits=data.credits,
            include_socials=data.socials,
            fully_available=data.availability,
            preferences=data.preferences,
            preference_hours=int(data.serviceHours),
            preference_timing_start=timing_start,
            preference_timing_end=timing_end,
        )

        if data.adminOverride:
            write_log(
                self.db,
                LogType.AdminEventApplication,
                severity=SEVERITY_WARNING,
                source=props.user,
                target=data.adminOverride.userId,
                data={"event": event.short_name},
            )
            return {"success": True}

        write_log(
            self.db,
            LogType.EventApplication,
            source=props.user,
            data={"event": event.short_name, "ip": props.ip},
        )
        logger.info(f"✅ User {user_id} applied to {event.slug} ({team.slug})")

        confirmation = get_static_content(
            self.db,
            ["message", "application-confirmation"],
            {
                "environment": team.environment,
                "event": event.short_name,
                "eventSlug": event.slug,
                "hostname": props.origin,
                "name": props.user.first_name,
                "team": team.title,
                "teamSlug": team.slug,
            },
        )
        if confirmation:
            await schedule_task(
                "send_email_task",
                to=props.user.email,
                subject=confirmation["title"],
                markdown=confirmation["markdown"],
                sender=f"AnimeCon {team.title}",
                source_user_id=user_id,
                target_user_id=user_id,
            )

        await schedule_task(
            "publish_notification_task",
            type=NOTIFICATION_APPLICATION,
            type_id=team.id,
            source_user_id=props.user.id,
            message={
                "userId": props.user.id,
                "name": props.user.name,
                "event": event.short_name,
                "eventSlug": event.slug,
                "teamEnvironment": team.environment,
                "teamName": team.name,
                "teamSlug": team.slug,
                "teamTitle": team.title,
            },
        )

        return {"success": True}

    # ========================================================================
    # PREFERENCES
    # ========================================================================

    def availability_preferences(self, data: AvailabilityPreferencesRequest, props: ActionProps) -> dict:
        """Update a volunteer's availability: timeslots to attend, service preferences and exceptions"""
        if not props.user:
            return _failure("You must be signed in to share your preferences")

        subject_user_id = props.user.id
        if data.adminOverrideUserId:
            execute_access_check(
                props.authentication_context,
                check="admin-event",
                event=data.event,
                permission={
                    "permission": "event.volunteers.information",
                    "operation": "update",
                    "scope": {"event": data.event, "team": data.team},
                },
            )
            subject_user_id = data.adminOverrideUserId
        elif data.exceptions is not None:
            return _failure("Only administrators are able to update availability exceptions")

        event = self.events.get_event_by_slug(self.db, data.event)
        if not event:
            return _failure("The event does not support preferences…")

        enabled = self.events.get_enabled_team(self.db, event.id, data.team)
        if not enabled:
            return _failure("This team does not participate in this event…")
        team, _ = enabled

        registration = self.repo.get_team_registration(self.db, event.id, team.id, subject_user_id)
        if not registration:
            return _failure("Something seems to be wrong with your application…")

        if not data.adminOverrideUserId and event.availability_status != EVENT_AVAILABILITY_AVAILABLE:
            override = can(props.user, Privilege.EventAdministrator) or props.access.can(
                "event.visible", {"event": event.slug, "team": team.slug}
            )
            if not override:
                return _failure("Preferences cannot be shared yet, sorry!")

        requested = [timeslot_id for timeslot_id in data.exceptionEvents if timeslot_id is not None]
        timeslots = []
        if event.festival_id and requested:
            timeslots = self.repo.get_valid_timeslot_ids(self.db, event.festival_id, requested)

        if not data.adminOverrideUserId:
            limit = registration.availability_event_limit
            if limit is None:
                limit = registration.role.availability_event_limit or 0
            timeslots = timeslots[:limit]

        timing_start, timing_end = parse_service_timing(data.serviceTiming)
        updates = {
            "availability_timeslots": ",".join(str(timeslot) for timeslot in timeslots),
            "preferences": data.preferences,
            "preferences_dietary": data.preferencesDietary,
            "preference_hours": int(data.serviceHours),
            "preference_timing_start": timing_start,
            "preference_timing_end": timing_end,
            "preferences_updated": utc_now(),
        }

        if data.exceptions is not None:
            try:
                updates["availability_exceptions"] = serialize_availability_exceptions(data.exceptions)
            except ValidationError as e:
                logger.warning(f"⚠️ Invalid availability exceptions for user {subject_user_id}: {e}")
                return _failure("Unable to validate the availability exceptions…")

        self.repo.update_registration(self.db, registration, **updates)

        if data.adminOverrideUserId:
            write_log(
                self.db,
                LogType.AdminUpdateAvailabilityPreferences,
                severity=SEVERITY_WARNING,
                source=props.user,
                target=data.adminOverrideUserId,
                data={"event": event.short_name, "timeslots": timeslots},
            )
        else:
            write_log(
                self.db,
                LogType.ApplicationAvailabilityPreferences,
                severity=SEVERITY_INFO,
                source=props.user,
                data={"event": event.short_name, "timeslots": timeslots},
            )

        return {"success": True}

    def hotel_preferences(self, data: HotelPreferencesRequest, props: ActionProps) -> dict:
        """Share, update or (administrators only) clear hotel room preferences"""
        if not props.user:
            return _failure("You must be signed in to share your preferences")

        subject_user_id = props.user.id
        if data.adminOverrideUserId:
            execute_access_check(
                props.authentication_context,
                check="admin-event",
                event=data.event,
                permission={"permission": "event.hotels", "scope": {"event": data.event}},
            )
            subject_user_id = data.adminOverrideUserId

        event = self.events.get_event_by_slug(self.db, data.event)
        if not event:
            return _failure("The event no longer exists")

        enabled = self.events.get_enabled_team(self.db, event.id, data.team)
        if not enabled:
            return _failure("This team does not participate in this event")
        team, _ = enabled

        registration = self.repo.get_registration(self.db, team.environment, event.id, subject_user_id)
        if not registration:
            return _failure("Something seems to be wrong with your application")

        existing = self.repo.get_hotel_preference(self.db, subject_user_id, event.id, registration.team_id)
        eligible = _effective(registration.hotel_eligible, registration.role and registration.role.hotel_eligible)
        if not eligible and not existing:
            return _failure("You are not eligible to book a hotel room")

        available = _is_window_open(
            utc_now(), event.hotel_information_published, event.hotel_preferences_start, event.hotel_preferences_end
        )
        if not available and not props.access.can("event.hotels", {"event": event.slug}):
            return _failure("Hotel rooms cannot be booked yet, sorry!")

        # Case (0): the preferences should be cleared rather than amended
        if data.preferences is False:
            if not data.adminOverrideUserId:
                return _failure("Your preferences can only be updated")

            affected = self.repo.delete_hotel_preference(self.db, subject_user_id, event.id, registration.team_id)
            if affected:
                write_log(
                    self.db,
                    LogType.AdminClearHotelPreferences,
                    severity=SEVERITY_WARNING,
                    source=props.user,
                    target=data.adminOverrideUserId,
                    data={"event": event.short_name},
                )
            return {"success": bool(affected)}

        preferences = data.preferences

        # Case (1): the volunteer is not interested in a hotel room
        if not preferences.interested:
            update = {
                "hotel_id": None,
                "hotel_date_check_in": None,
                "hotel_date_check_out": None,
                "hotel_sharing_people": None,
                "hotel_sharing_preferences": None,
            }

        # Case (2): the volunteer would like to book a hotel room
        else:
            if not preferences.hotelId:
                return _failure("You must select a hotel room")
            if not preferences.checkIn or not preferences.checkOut:
                return _failure("You must select when you want to check in and out")
            if not preferences.sharingPeople or not preferences.sharingPreferences:
                return _failure("You must select who you want to share with")

            update = {
                "hotel_id": preferences.hotelId,
                "hotel_date_check_in": preferences.checkIn,
                "hotel_date_check_out": preferences.checkOut,
                "hotel_sharing_people": preferences.sharingPeople,
                "hotel_sharing_preferences": preferences.sharingPreferences,
            }

        self.repo.upsert_hotel_preference(self.db, subject_user_id, event.id, registration.team_id, **update)

        log_data = {"event": event.short_name, "interested": preferences.interested, "hotelId": preferences.hotelId}
        if data.adminOverrideUserId:
            write_log(
                self.db,
                LogType.AdminUpdateHotelPreferences,
                severity=SEVERITY_WARNING,
                source=props.user,
                target=data.adminOverrideUserId,
                data=log_data,
            )
        else:
            write_log(self.db, LogType.ApplicationHotelPreferences, source=props.user, data=log_data)

        return {"success": True}

    def training_preferences(self, data: TrainingPreferencesRequest, props: ActionProps) -> dict:
        """Share the training session a volunteer would like to attend"""
        if not props.user:
            return _failure("You must be signed in to share your preferences")

        may_manage = can(props.user, Privilege.EventTrainingManagement) or props.access.can(
            "event.trainings", {"event": data.event}
        )

        subject_user_id = props.user.id
        if data.adminOverrideUserId:
            if not may_manage:
                return _failure("You do not have permission to update this data")
            subject_user_id = data.adminOverrideUserId

        event = self.events.get_event_by_slug(self.db, data.event)
        if not event:
            return _failure("The event no longer exists")

        registration = self.repo.get_registration(self.db, data.environment, event.id, subject_user_id)
        if not registration:
            return _failure("Something seems to be wrong with your application")

        existing = self.repo.get_training_assignment(self.db, event.id, subject_user_id)
        eligible = _effective(
            registration.training_eligible, registration.role and registration.role.training_eligible
        )
        if not eligible and not existing:
            return _failure("You are not eligible to participate in the training")

        available = _is_window_open(
            utc_now(),
            event.training_information_published,
            event.training_preferences_start,
            event.training_preferences_end,
        )
        if not available and not may_manage:
            return _failure("Trainings cannot be booked yet, sorry!")

        # Zero and negative values indicate that the volunteer will skip the training
        training_id = data.preferences.training if data.preferences.training >= 1 else None
        self.repo.upsert_training_preference(self.db, event.id, subject_user_id, training_id)

        log_data = {"event": event.short_name, "training": data.preferences.training}
        if data.adminOverrideUserId:
            write_log(
                self.db,
                LogType.AdminUpdateTrainingPreferences,
                severity=SEVERITY_WARNING,
                source=props.user,
                target=data.adminOverrideUserId,
                data=log_data,
            )
        else:
            write_log(self.db, LogType.ApplicationTrainingPreferences, source=props.user, data=log_data)

        return {"success": True}

    def refund_request(self, data: RefundRequestRequest, props: ActionProps) -> dict:
        """Request a refund of the volunteer's ticket, or (administrators only) clear it"""
        if not props.user:
            return _failure("You must be signed in to request a refund")

        subject_user_id = props.user.id
        if data.adminOverrideUserId:
            execute_access_check(
                props.authentication_context,
                check="admin-event",
                event=data.event,
                permission={"permission": "event.refunds", "scope": {"event": data.event}},
            )
            subject_user_id = data.adminOverrideUserId

        event = self.events.get_event_by_slug(self.db, data.event)
        if not event:
            return _failure("The event no longer exists")

        if not props.access.can("event.refunds", {"event": event.slug}):
            error = self._check_refund_window(event)
            if error:
                return _failure(error)

        # Case (0): administrators are able to clear refund requests
        if data.request is False:
            if not data.adminOverrideUserId:
                return _failure("Your request can only be updated")

            affected = self.repo.delete_refund(self.db, subject_user_id, event.id)
            if affected:
                write_log(
                    self.db,
                    LogType.AdminClearRefundRequest,
                    severity=SEVERITY_WARNING,
                    source=props.user,
                    target=data.adminOverrideUserId,
                    data={"event": event.short_name},
                )
            return {"success": bool(affected)}

        self.repo.upsert_refund(
            self.db,
            subject_user_id,
            event.id,
            refund_ticket_number=data.request.ticketNumber,
            refund_account_iban=data.request.accountIban,
            refund_account_name=data.request.accountName,
        )

        if data.adminOverrideUserId:
            write_log(
                self.db,
                LogType.AdminUpdateRefundRequest,
                severity=SEVERITY_WARNING,
                source=props.user,
                target=data.adminOverrideUserId,
                data={"event": event.short_name},
            )
        else:
            write_log(self.db, LogType.ApplicationRefundRequest, source=props.user, data={"event": event.short_name})

        return {"success": True}

    @staticmethod
    def _check_refund_window(event: Event, current_time: Optional[datetime] = None) -> Optional[str]:
        """Refunds are accepted between the start and end days, in the event's timezone"""
        if not event.refunds_start_time or not event.refunds_end_time:
            return "Sorry, refunds are not being accepted."

        current_time = as_utc(current_time or utc_now())
        today = to_zone(current_time, event.timezone).date()

        if today < to_zone(event.refunds_start_time, event.timezone).date():
            return "Sorry, refunds are not being accepted yet."
        if today > to_zone(event.refunds_end_time, event.timezone).date():
            return "Sorry, refunds are not being accepted anymore."
        return None

    # ========================================================================
    # AVAILABILITY & ENVIRONMENT
    # ========================================================================

    def availability_expectations(self, data: AvailabilityExpectationsRequest, props: ActionProps) -> dict:
        """Hourly availability expectations of the volunteer throughout the event"""
        if not props.user:
            not_found()

        subject_user_id = props.user.id
        if data.adminOverrideUserId:
            execute_access_check(props.authentication_context, check="admin-event", event=data.event)
            subject_user_id = data.adminOverrideUserId

        event = self.events.get_event_by_slug(self.db, data.event)
        if not event:
            not_found()

        registration = self.repo.get_registration(self.db, data.environment, event.id, subject_user_id)
        if not registration:
            return _failure("Something seems to be wrong with your application…")

        return {"success": True, "days": self.compute_expectations(event, registration)}

    def compute_expectations(self, event: Event, registration: Registration) -> list[dict]:
        selected = []
        if event.festival_id:
            timeslots = self.repo.get_timeslots(
                self.db, event.festival_id, parse_timeslot_ids(registration.availability_timeslots)
            )
            selected = list(timeslots.values())

        return determine_expectations(
            event.start_time,
            event.end_time,
            event.timezone,
            timing_start=registration.preference_timing_start,
            timing_end=registration.preference_timing_end,
            exceptions=registration.availability_exceptions,
            selected_timeslots=selected,
        )

    def environment(self, data: EnvironmentRequest, props: ActionProps) -> dict:
        """Context of the environment serving the request's host"""
        environment = determine_environment(self.db, props.request_headers.get("host"))
        if environment is None:
            not_found()

        return {"success": True, **get_environment_context(self.db, environment, props.authentication_context)}
