"""Application service - Business logic for administering volunteer applications"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...actions import ActionProps
from ...auth import execute_access_check
from ...availability import determine_availability, parse_timeslot_ids
from ...constants import (
    REGISTRATION_ACCEPTED,
    REGISTRATION_REGISTERED,
    REGISTRATION_REJECTED,
)
from ...errors import forbidden, not_found
from ...logs import SEVERITY_INFO, SEVERITY_WARNING, LogType, write_log
from ...models import Event, Team, User
from ...shared.dates import to_storage, utc_now
from ...shared.validators import parse_service_timing
from ...worker import schedule_task
from ..events.repository import EventRepository
from ..registration.repository import RegistrationRepository
from .repository import ApplicationRepository
from .schemas import (
    CreateApplicationForm,
    MoveApplicationForm,
    ScheduleMarkersRequest,
    StatusChangeForm,
    UpdateApplicationRequest,
)

logger = logging.getLogger(__name__)


class ApplicationService:
    """Service layer for administering applications"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ApplicationRepository()
        self.events = EventRepository()

    def _require_context(self, event: str, team: str, user_id: int) -> tuple[Event, Team, User]:
        request_context = self.repo.get_request_context(self.db, event, team, user_id)
        if not request_context:
            not_found()
        return request_context

    async def _change_status(
        self,
        props: ActionProps,
        event: Event,
        team: Team,
        user: User,
        status: str,
        subject: Optional[str],
        message: Optional[str],
    ) -> int:
        """
        Change the status of an application. Volunteers are informed of every decision other
        than a reset, unless the administrator is allowed to make silent changes.
        """
        notify = status != REGISTRATION_REGISTERED and bool(subject and message)
        if status != REGISTRATION_REGISTERED and not notify:
            if not props.access.can("volunteer.silent"):
                forbidden()

        affected = self.repo.update_registration(
            self.db, event.id, team.id, user.id, registration_status=status
        )
        if not affected:
            return 0

        if notify:
            await schedule_task(
                "send_email_task",
                to=user.email,
                subject=subject,
                markdown=message,
                sender=f"{props.user.first_name} {props.user.last_name} (AnimeCon)",
                source_user_id=props.user.id,
                target_user_id=user.id,
            )

        write_log(
            self.db,
            LogType.AdminUpdateTeamVolunteerStatus,
            severity=SEVERITY_WARNING,
            source=props.user,
            target=user.id,
            data={
                "action": status.replace("Registered", "Reset"),
                "event": event.short_name,
                "eventId": event.id,
                "teamId": team.id,
            },
        )
        return affected

    async def update_application(self, data: UpdateApplicationRequest, props: ActionProps) -> dict:
        """Update the data, metadata, notes or status of an application"""
        if not props.user:
            forbidden()

        event, team, user = self._require_context(data.event, data.team, data.userId)
        scope = {"event": data.event, "team": data.team}

        affected = 0
        skip_log = False

        if data.data:
            execute_access_check(
                props.authentication_context,
                check="admin-event",
                event=data.event,
                permission={
                    "permission": "event.volunteers.information",
                    "operation": "update",
                    "scope": scope,
                },
            )
            affected = self.repo.update_registration(
                self.db,
                event.id,
                team.id,
                user.id,
                shirt_fit=data.data.tshirtFit,
                shirt_size=data.data.tshirtSize,
                include_credits=data.data.credits,
                include_socials=data.data.socials,
            )

        if data.metadata:
            execute_access_check(
                props.authentication_context,
                check="admin-event",
                event=data.event,
                permission={"permission": "event.volunteers.overrides", "scope": scope},
            )

            updates = {
                "availability_event_limit": data.metadata.availabilityEventLimit,
                "hotel_eligible": data.metadata.hotelEligible,
                "training_eligible": data.metadata.trainingEligible,
            }
            if data.metadata.registrationDate is not None:
                updates["registration_date"] = to_storage(data.metadata.registrationDate)

            affected = self.repo.update_registration(self.db, event.id, team.id, user.id, **updates)

        if data.notes is not None:
            execute_access_check(props.authentication_context, check="admin-event", event=data.event)

            affected = self.repo.update_registration(
                self.db, event.id, team.id, user.id, registration_notes=data.notes or None
            )
            skip_log = True

            write_log(
                self.db,
                LogType.EventVolunteerNotes,
                severity=SEVERITY_INFO,
                source=props.user,
                target=user.id,
                data={"event": event.short_name, "notes": data.notes},
            )

        if data.status:
            status = data.status.registrationStatus
            execute_access_check(
                props.authentication_context,
                check="admin-event",
                event=data.event,
                permission={
                    "permission": "event.applications",
                    # Resetting reconsiders a previous decision, which is akin to creating one
                    "operation": "create" if status == REGISTRATION_REGISTERED else "update",
                    "scope": scope,
                },
            )

            affected = await self._change_status(
                props, event, team, user, status, data.status.subject, data.status.message
            )
            return {"success": bool(affected)}

        if affected and not skip_log:
            write_log(
                self.db,
                LogType.AdminUpdateTeamVolunteer,
                severity=SEVERITY_INFO,
                source=props.user,
                target=user.id,
                data={"event": event.short_name, "eventId": event.id, "teamId": team.id},
            )

        return {"success": bool(affected)}

    # ========================================================================
    # SERVER ACTIONS
    # ========================================================================

    def _require_application_access(self, props: ActionProps, event: str, team: str, operation: str):
        execute_access_check(
            props.authentication_context,
            check="admin",
            permission={
                "permission": "event.applications",
                "operation": operation,
                "scope": {"event": event, "team": team},
            },
        )

    def _require_participation_access(self, props: ActionProps, event: str, team: str):
        execute_access_check(
            props.authentication_context,
            check="admin",
            permission={"permission": "event.volunteers.participation", "scope": {"event": event, "team": team}},
        )

    def create_application(self, event: str, team: str, data: CreateApplicationForm, props: ActionProps) -> dict:
        """Create an application on behalf of a volunteer"""
        self._require_application_access(props, event, team, "create")

        event_model = self.events.get_event_by_slug(self.db, event)
        if not event_model:
            return {"success": False, "error": "Unable to identify the appropriate event…"}

        team_model = self.events.get_team_by_slug(self.db, team)
        if not team_model or not team_model.default_role_id:
            return {"success": False, "error": "Unable to identify the appropriate team…"}

        if self.repo.count_registrations(self.db, event_model.id, data.userId) > 0:
            return {"success": False, "error": "This volunteer already has an active application…"}

        timing_start, timing_end = parse_service_timing(data.serviceTiming)
        RegistrationRepository.create_registration(
            self.db,
            user_id=data.userId,
            event_id=event_model.id,
            team_id=team_model.id,
            role_id=team_model.default_role_id,
            registration_date=utc_now(),
            registration_status=REGISTRATION_REGISTERED,
            shirt_fit=data.tshirtFit,
            shirt_size=data.tshirtSize,
            preference_hours=int(data.serviceHours),
            preference_timing_start=timing_start,
            preference_timing_end=timing_end,
            preferences=data.preferences,
            preferences_updated=utc_now(),
            fully_available=True,
            include_credits=True,
            include_socials=True,
        )

        write_log(
            self.db,
            LogType.AdminEventApplication,
            severity=SEVERITY_WARNING,
            source=props.user,
            target=data.userId,
            data={"event": event, "team": team},
        )
        return {"refresh": True}

    async def approve_application(
        self, event: str, team: str, user_id: int, data: StatusChangeForm, props: ActionProps
    ) -> dict:
        self._require_application_access(props, event, team, "update")
        return await self._decide(props, event, team, user_id, REGISTRATION_ACCEPTED, data)

    async def reject_application(
        self, event: str, team: str, user_id: int, data: StatusChangeForm, props: ActionProps
    ) -> dict:
        self._require_application_access(props, event, team, "update")
        return await self._decide(props, event, team, user_id, REGISTRATION_REJECTED, data)

    async def reconsider_application(
        self, event: str, team: str, user_id: int, data: StatusChangeForm, props: ActionProps
    ) -> dict:
        """Previously rejected applications return to the pending state"""
        self._require_application_access(props, event, team, "create")
        return await self._decide(props, event, team, user_id, REGISTRATION_REGISTERED, data)

    async def _decide(
        self, props: ActionProps, event: str, team: str, user_id: int, status: str, data: StatusChangeForm
    ) -> dict:
        event_model, team_model, user = self._require_context(event, team, user_id)
        if not self.repo.get_registration(self.db, event_model.id, team_model.id, user.id):
            return {"success": False, "error": "Unable to find the application…"}

        affected = await self._change_status(
            props, event_model, team_model, user, status, data.subject, data.message
        )
        if not affected:
            return {"success": False, "error": "Unable to update the application in the database…"}
        return {"refresh": True}

    def move_application(
        self, event: str, team: str, user_id: int, data: MoveApplicationForm, props: ActionProps
    ) -> dict:
        """Move an application to another team participating in the same event"""
        self._require_participation_access(props, event, team)
        self._require_participation_access(props, event, data.team)

        event_model, team_model, user = self._require_context(event, team, user_id)
        if data.team == team:
            return {"success": False, "error": "The application already belongs to this team…"}

        enabled = self.events.get_enabled_team(self.db, event_model.id, data.team)
        if not enabled:
            return {"success": False, "error": "That team does not participate in this event…"}
        target_team, _ = enabled

        affected = self.repo.move_registration(self.db, event_model.id, team_model.id, user.id, target_team.id)
        if not affected:
            return {"success": False, "error": "Unable to find the application…"}

        write_log(
            self.db,
            LogType.AdminUpdateTeamVolunteerStatus,
            severity=SEVERITY_WARNING,
            source=props.user,
            target=user.id,
            data={
                "action": "Moved",
                "event": event_model.short_name,
                "eventId": event_model.id,
                "teamId": target_team.id,
            },
        )
        return {"refresh": True}

    # ========================================================================
    # SCHEDULE
    # ========================================================================

    def schedule_markers(self, data: ScheduleMarkersRequest, props: ActionProps) -> dict:
        """Periods during which the volunteer should preferably not, or cannot, be scheduled"""
        execute_access_check(props.authentication_context, check="admin-event", event=data.event)

        event = self.events.get_event_by_slug(self.db, data.event)
        if not event:
            not_found()

        registration = self.repo.get_any_registration(self.db, event.id, data.user)
        if not registration:
            not_found()

        timeslots = {}
        if event.festival_id:
            timeslots = RegistrationRepository.get_timeslots(
                self.db, event.festival_id, parse_timeslot_ids(registration.availability_timeslots)
            )

        markers = determine_availability(
            event.start_time,
            event.end_time,
            event.timezone,
            registration.preference_timing_start,
            registration.preference_timing_end,
            registration.availability_exceptions,
            registration.availability_timeslots,
            timeslots,
        )
        return {"success": True, **markers}
