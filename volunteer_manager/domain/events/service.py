"""Event service - Business logic for administering events"""

import logging

from sqlalchemy.orm import Session

from ...access import Privilege, can
from ...actions import ActionProps
from ...auth import execute_access_check
from ...errors import forbidden, not_found
from ...logs import SEVERITY_WARNING, LogType, write_log
from ...shared.dates import to_storage
from .repository import EventRepository
from .schemas import UpdateEventRequest, UpdatePublicationRequest

logger = logging.getLogger(__name__)

# Publication flag -> (privilege, event column, window fields, log type name)
PUBLICATIONS = {
    "publishHotels": (
        Privilege.EventHotelManagement,
        "hotel_information_published",
        {"hotelPreferencesStart": "hotel_preferences_start", "hotelPreferencesEnd": "hotel_preferences_end"},
        "hotel",
    ),
    "publishRefunds": (
        Privilege.EventAdministrator,
        "refund_information_published",
        {"refundsStart": "refunds_start_time", "refundsEnd": "refunds_end_time"},
        "refund",
    ),
    "publishTrainings": (
        Privilege.EventTrainingManagement,
        "training_information_published",
        {
            "trainingPreferencesStart": "training_preferences_start",
            "trainingPreferencesEnd": "training_preferences_end",
        },
        "training",
    ),
}


class EventService:
    """Service layer for event business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = EventRepository()

    def _log_update(self, props: ActionProps, action: str, event_name: str, **data):
        write_log(
            self.db,
            LogType.AdminUpdateEvent,
            severity=SEVERITY_WARNING,
            source=props.user,
            data={"action": action, "event": event_name, **data},
        )

    def update_event(self, data: UpdateEventRequest, props: ActionProps) -> dict:
        """Update one aspect of an event: visibility, settings, slug or a team's settings"""
        execute_access_check(
            props.authentication_context,
            check="admin-event",
            event=data.event,
            privilege=Privilege.EventAdministrator,
        )

        event = self.repo.get_event_by_slug(self.db, data.event)
        if not event:
            not_found()

        if data.eventHidden is not None:
            self.repo.update_event(self.db, event, hidden=data.eventHidden)
            self._log_update(props, "the publication status", event.short_name)
            return {"success": True}

        if data.eventSettings is not None:
            settings = data.eventSettings
            if settings.endTime <= settings.startTime:
                return {"success": False}

            updates = {
                "name": settings.name,
                "short_name": settings.shortName,
                "start_time": to_storage(settings.startTime),
                "end_time": to_storage(settings.endTime),
            }
            if settings.timezone is not None:
                updates["timezone"] = settings.timezone
            if settings.availabilityStatus is not None:
                updates["availability_status"] = settings.availabilityStatus

            self.repo.update_event(self.db, event, **updates)
            self._log_update(props, "event settings", event.short_name)
            return {"success": True}

        if data.eventSlug is not None:
            if self.repo.get_event_by_slug(self.db, data.eventSlug):
                logger.warning(f"⚠️ Slug {data.eventSlug} is already in use")
                return {"success": False}

            self.repo.update_event(self.db, event, slug=data.eventSlug)
            self._log_update(props, "the URL slug", event.short_name)
            return {"success": True, "slug": data.eventSlug}

        if data.team is not None:
            team = self.repo.get_team_by_id(self.db, data.team.id)
            if not team:
                not_found()

            self.repo.upsert_event_team(
                self.db,
                event.id,
                team.id,
                enable_team=data.team.enableTeam,
                enable_content=data.team.enableContent,
                enable_applications=data.team.enableApplications,
                enable_schedule=data.team.enableSchedule,
                target_size=data.team.targetSize,
                whatsapp_link=data.team.whatsappLink,
                application_start=to_storage(data.team.applicationStart),
                application_end=to_storage(data.team.applicationEnd),
                registration_start=to_storage(data.team.registrationStart),
                registration_end=to_storage(data.team.registrationEnd),
                schedule_start=to_storage(data.team.scheduleStart),
                schedule_end=to_storage(data.team.scheduleEnd),
            )
            self._log_update(props, "team settings", event.short_name, team=team.id)
            return {"success": True}

        return {"success": False}

    def update_publication(self, data: UpdatePublicationRequest, props: ActionProps) -> dict:
        """Publish or unpublish hotel, refund and training information, and their windows"""
        execute_access_check(props.authentication_context, check="admin-event", event=data.event)

        event = self.repo.get_event_by_slug(self.db, data.event)
        if not event:
            not_found()

        updates = {}
        changes = []
        for flag, (privilege, column, windows, kind) in PUBLICATIONS.items():
            provided_windows = [field for field in windows if field in data.model_fields_set]
            published = getattr(data, flag)
            if published is None and not provided_windows:
                continue

            if not can(props.user, privilege):
                forbidden()

            if published is not None:
                updates[column] = published
            for field in provided_windows:
                updates[windows[field]] = to_storage(getattr(data, field))
            changes.append((kind, published))

        if not updates:
            return {"success": False}

        self.repo.update_event(self.db, event, **updates)

        for kind, published in changes:
            write_log(
                self.db,
                LogType.AdminEventPublishInfo,
                severity=SEVERITY_WARNING,
                source=props.user,
                data={"event": event.short_name, "published": published, "type": kind},
            )
        return {"success": True}
