"""Training service - Data tables for trainings, extra participants and assignments"""

import logging
from typing import Optional

from ...access import Privilege
from ...actions import ActionProps
from ...auth import execute_access_check
from ...data_table import DataTableApi, apply_sort_and_pagination
from ...errors import not_found
from ...logs import SEVERITY_INFO, SEVERITY_WARNING, LogType, write_log
from ...models import Event, Training, TrainingAssignment, TrainingExtra
from ...shared.dates import as_utc, isoformat, to_storage, utc_now
from ..events.repository import EventRepository
from .repository import TrainingRepository
from .schemas import EventContext, TrainingAssignmentRow, TrainingExtraRow, TrainingRow

logger = logging.getLogger(__name__)

DEFAULT_TRAINING_CAPACITY = 15

ASSIGNMENT_RESET = -1
ASSIGNMENT_SKIP = 0


def _get_event(props: ActionProps, slug: str) -> Event:
    event = EventRepository.get_event_by_slug(props.db, slug)
    if not event:
        not_found()
    return event


def _log_mutation(props: ActionProps, slug: str, log_type: str, severity: str, mutation: str) -> None:
    event = EventRepository.get_event_by_slug(props.db, slug)
    if not event:
        return

    write_log(
        props.db,
        log_type,
        severity=severity,
        source=props.user,
        data={"event": event.short_name, "mutation": mutation},
    )


def _check_training_permission(request, props: ActionProps) -> None:
    execute_access_check(
        props.authentication_context,
        check="admin-event",
        event=request.context.event,
        permission={"permission": "event.trainings", "scope": {"event": request.context.event}},
    )


# ============================================================================
# TRAININGS
# ============================================================================

TRAINING_SORT_COLUMNS = {
    "id": Training.id,
    "address": Training.training_address,
    "capacity": Training.training_capacity,
    "start": Training.training_start,
    "end": Training.training_end,
}


def _training_row(training: Training) -> dict:
    return {
        "id": training.id,
        "address": training.training_address,
        "capacity": training.training_capacity,
        "start": as_utc(training.training_start),
        "end": as_utc(training.training_end),
    }


class TrainingsDataTable(DataTableApi):
    """Training sessions offered to volunteers of an event"""

    row_model = TrainingRow
    context_model = EventContext

    def access_check(self, request, action: str, props: ActionProps) -> None:
        _check_training_permission(request, props)

    def create(self, request, props: ActionProps) -> dict:
        event = _get_event(props, request.context.event)
        training = TrainingRepository.create_training(
            props.db,
            event.id,
            training_start=event.start_time,
            training_end=event.end_time,
            training_capacity=DEFAULT_TRAINING_CAPACITY,
        )
        return {"success": True, "row": _training_row(training)}

    def delete(self, request, props: ActionProps) -> dict:
        event = _get_event(props, request.context.event)
        affected = TrainingRepository.delete_training(props.db, event.id, request.id)
        return {"success": bool(affected)}

    def list(self, request, props: ActionProps) -> dict:
        event = _get_event(props, request.context.event)
        row_count, trainings = apply_sort_and_pagination(
            TrainingRepository.query_visible(props.db, event.id),
            TRAINING_SORT_COLUMNS,
            sort=request.sort,
            pagination=request.pagination,
            default_sort="start",
        )
        return {"success": True, "rowCount": row_count, "rows": [_training_row(t) for t in trainings]}

    def update(self, request, props: ActionProps) -> dict:
        event = _get_event(props, request.context.event)
        affected = TrainingRepository.update_training(
            props.db,
            event.id,
            request.id,
            training_address=request.row.address,
            training_capacity=request.row.capacity,
            training_start=to_storage(request.row.start),
            training_end=to_storage(request.row.end),
        )
        return {"success": bool(affected)}

    def write_log(self, request, mutation: str, props: ActionProps) -> None:
        _log_mutation(props, request.context.event, LogType.AdminEventTrainingMutation, SEVERITY_INFO, mutation)


# ============================================================================
# EXTRA PARTICIPANTS
# ============================================================================

EXTRA_SORT_COLUMNS = {
    "id": TrainingExtra.id,
    "trainingExtraName": TrainingExtra.name,
    "trainingExtraEmail": TrainingExtra.email,
    "trainingExtraBirthdate": TrainingExtra.birthdate,
    "preferenceTrainingId": TrainingAssignment.preference_training_id,
    "preferenceUpdated": TrainingAssignment.preference_updated,
}


def _extra_row(extra: TrainingExtra, assignment: Optional[TrainingAssignment]) -> dict:
    return {
        "id": extra.id,
        "trainingExtraName": extra.name,
        "trainingExtraEmail": extra.email,
        "trainingExtraBirthdate": extra.birthdate,
        "preferenceTrainingId": assignment.preference_training_id if assignment else None,
        "preferenceUpdated": isoformat(assignment.preference_updated) if assignment else None,
    }


class TrainingExtrasDataTable(DataTableApi):
    """Participants in the trainings who do not volunteer themselves"""

    row_model = TrainingExtraRow
    context_model = EventContext

    def access_check(self, request, action: str, props: ActionProps) -> None:
        _check_training_permission(request, props)

    def create(self, request, props: ActionProps) -> dict:
        event = _get_event(props, request.context.event)
        extra = TrainingRepository.create_extra(props.db, event.id)
        return {"success": True, "row": {"id": extra.id}}

    def delete(self, request, props: ActionProps) -> dict:
        event = _get_event(props, request.context.event)
        affected = TrainingRepository.delete_extra(props.db, event.id, request.id)
        return {"success": bool(affected)}

    def list(self, request, props: ActionProps) -> dict:
        event = _get_event(props, request.context.event)
        row_count, results = apply_sort_and_pagination(
            TrainingRepository.query_extras(props.db, event.id),
            EXTRA_SORT_COLUMNS,
            sort=request.sort,
            pagination=request.pagination,
            default_sort="trainingExtraName",
        )
        return {
            "success": True,
            "rowCount": row_count,
            "rows": [_extra_row(extra, assignment) for extra, assignment in results],
        }

    def update(self, request, props: ActionProps) -> dict:
        event = _get_event(props, request.context.event)
        row = request.row

        affected = TrainingRepository.update_extra(
            props.db,
            event.id,
            request.id,
            name=row.trainingExtraName or "",
            email=row.trainingExtraEmail or "",
            birthdate=row.trainingExtraBirthdate,
        )

        if affected and "preferenceTrainingId" in row.model_fields_set:
            TrainingRepository.upsert_assignment(
                props.db,
                event.id,
                extra_id=request.id,
                preference_training_id=row.preferenceTrainingId or None,
                preference_updated=utc_now(),
            )

        return {"success": bool(affected)}

    def write_log(self, request, mutation: str, props: ActionProps) -> None:
        _log_mutation(
            props, request.context.event, LogType.AdminEventTrainingExtraMutation, SEVERITY_WARNING, mutation
        )


# ============================================================================
# ASSIGNMENTS
# ============================================================================


def _assignment_row(identifier: str, name: str, assignment: Optional[TrainingAssignment], **extra) -> dict:
    row = {"id": identifier, "name": name, "confirmed": False, **extra}
    if assignment is None:
        return row

    if assignment.preference_updated:
        row["preferredTrainingId"] = assignment.preference_training_id
    if assignment.assignment_updated:
        row["assignedTrainingId"] = assignment.assignment_training_id or ASSIGNMENT_SKIP

    row["confirmed"] = bool(assignment.assignment_confirmed)
    return row


def parse_assignment_id(identifier: str) -> tuple[Optional[int], Optional[int]]:
    """Split "user/N" or "extra/N" into a (user_id, extra_id) tuple"""
    kind, _, value = identifier.partition("/")
    if not value.isdigit():
        return None, None
    if kind == "user":
        return int(value), None
    if kind == "extra":
        return None, int(value)
    return None, None


class TrainingAssignmentsDataTable(DataTableApi):
    """
    Assignment of volunteers and extra participants to the trainings. Rows can only be
    listed and updated, participation is derived from registrations and extras.
    """

    row_model = TrainingAssignmentRow
    context_model = EventContext

    def access_check(self, request, action: str, props: ActionProps) -> None:
        execute_access_check(
            props.authentication_context,
            check="admin-event",
            event=request.context.event,
            privilege=Privilege.EventTrainingManagement,
        )

    def list(self, request, props: ActionProps) -> dict:
        event = _get_event(props, request.context.event)

        rows = []
        for registration, user, team, assignment in TrainingRepository.list_eligible_volunteers(
            props.db, event.id
        ):
            rows.append(
                _assignment_row(
                    f"user/{user.id}", user.name, assignment, userId=user.id, team=team.name
                )
            )

        for extra, assignment in TrainingRepository.query_extras(props.db, event.id).all():
            rows.append(_assignment_row(f"extra/{extra.id}", extra.name, assignment))

        rows.sort(key=lambda row: row["name"].lower())
        return {"success": True, "rowCount": len(rows), "rows": rows}

    def update(self, request, props: ActionProps) -> dict:
        event = _get_event(props, request.context.event)

        user_id, extra_id = parse_assignment_id(request.id)
        if not user_id and not extra_id:
            return {"success": False, "error": "Invalid participant identifier"}

        assigned = request.row.assignedTrainingId
        if assigned is None or assigned == ASSIGNMENT_RESET:
            training_id, updated = None, None
        elif assigned == ASSIGNMENT_SKIP:
            training_id, updated = None, utc_now()
        else:
            training_id, updated = assigned, utc_now()

        TrainingRepository.upsert_assignment(
            props.db,
            event.id,
            user_id=user_id,
            extra_id=extra_id,
            assignment_training_id=training_id,
            assignment_updated=updated,
            assignment_confirmed=request.row.confirmed,
        )
        return {"success": True}

    def write_log(self, request, mutation: str, props: ActionProps) -> None:
        _log_mutation(
            props, request.context.event, LogType.AdminEventTrainingAssignment, SEVERITY_WARNING, mutation
        )
