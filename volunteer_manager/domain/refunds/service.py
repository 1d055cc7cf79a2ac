"""Refund service - Data table through which refund requests are processed"""

import logging

from ...actions import ActionProps
from ...auth import execute_access_check
from ...data_table import DataTableApi, apply_sort_and_pagination
from ...errors import not_found
from ...logs import SEVERITY_WARNING, LogType, write_log
from ...models import Refund, User
from ...shared.dates import isoformat, utc_now
from ..events.repository import EventRepository
from .repository import RefundRepository
from .schemas import EventContext, RefundRow

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "id": Refund.user_id,
    "name": User.first_name,
    "ticketNumber": Refund.refund_ticket_number,
    "accountIban": Refund.refund_account_iban,
    "accountName": Refund.refund_account_name,
    "requested": Refund.refund_requested,
    "confirmed": Refund.refund_confirmed.isnot(None),
}


class RefundsDataTable(DataTableApi):
    """Lists refund requests for an event, unconfirmed requests first, and confirms them"""

    row_model = RefundRow
    context_model = EventContext

    def access_check(self, request, action: str, props: ActionProps) -> None:
        execute_access_check(
            props.authentication_context,
            check="admin-event",
            event=request.context.event,
            permission={"permission": "event.refunds", "scope": {"event": request.context.event}},
        )

    def list(self, request, props: ActionProps) -> dict:
        event = EventRepository.get_event_by_slug(props.db, request.context.event)
        if not event:
            not_found()

        row_count, refunds = apply_sort_and_pagination(
            RefundRepository.query_refunds(props.db, event.id),
            SORT_COLUMNS,
            sort=request.sort,
            pagination=request.pagination,
            default_sort="confirmed",
            tiebreakers=(User.first_name.asc(), User.last_name.asc()),
        )

        rows = [
            {
                "id": refund.user_id,
                "name": user.name,
                "team": team.name,
                "ticketNumber": refund.refund_ticket_number,
                "accountIban": refund.refund_account_iban,
                "accountName": refund.refund_account_name,
                "requested": isoformat(refund.refund_requested),
                "confirmed": refund.refund_confirmed is not None,
            }
            for refund, user, team in refunds
        ]
        return {"success": True, "rowCount": row_count, "rows": rows}

    def update(self, request, props: ActionProps) -> dict:
        event = EventRepository.get_event_by_slug(props.db, request.context.event)
        if not event:
            not_found()

        affected = RefundRepository.set_confirmed(
            props.db, event.id, request.id, utc_now() if request.row.confirmed else None
        )
        return {"success": bool(affected)}

    def write_log(self, request, mutation: str, props: ActionProps) -> None:
        event = EventRepository.get_event_by_slug(props.db, request.context.event)
        write_log(
            props.db,
            LogType.AdminRefundMutation,
            severity=SEVERITY_WARNING,
            source=props.user,
            target=request.id,
            data={"event": event.short_name if event else None, "mutation": mutation},
        )
