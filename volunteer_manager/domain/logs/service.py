"""Log service - Data table through which the audit log can be browsed"""

import json
import logging
from typing import Optional

from ...actions import ActionProps
from ...auth import execute_access_check
from ...data_table import DataTableApi, apply_sort_and_pagination
from ...logs import format_log_message
from ...models import LogEntry
from ...shared.dates import isoformat
from .repository import LogRepository, SourceUser, TargetUser
from .schemas import LogRow, LogsContext

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "id": LogEntry.id,
    "date": LogEntry.log_date,
    "type": LogEntry.log_type,
    "severity": LogEntry.log_severity,
    "source": SourceUser.first_name,
    "target": TargetUser.first_name,
}


def _log_user(user) -> Optional[dict]:
    if user is None:
        return None
    return {"userId": user.id, "name": user.name}


class LogsDataTable(DataTableApi):
    """Audit log entries, newest first. Deleting an entry hides it from the log."""

    row_model = LogRow
    context_model = LogsContext

    def access_check(self, request, action: str, props: ActionProps) -> None:
        if action not in ("list", "delete"):
            raise ValueError(f'Unexpected action on the logs endpoint: "{action}"')

        execute_access_check(
            props.authentication_context,
            check="admin",
            permission={"permission": "system.logs", "operation": "read" if action == "list" else "delete"},
        )

    def delete(self, request, props: ActionProps) -> dict:
        affected = LogRepository.mark_deleted(props.db, request.id)
        return {"success": bool(affected)}

    def list(self, request, props: ActionProps) -> dict:
        context = request.context
        severities = context.severity.split(",") if context.severity else None

        row_count, entries = apply_sort_and_pagination(
            LogRepository.query_logs(props.db, context.userId, severities),
            SORT_COLUMNS,
            sort=request.sort,
            pagination=request.pagination,
            default_sort="date",
            default_direction="desc",
            tiebreakers=(LogEntry.id.desc(),),
        )

        rows = []
        for entry, source, target in entries:
            rows.append(
                {
                    "id": entry.id,
                    "data": json.loads(entry.log_data) if entry.log_data else None,
                    "date": isoformat(entry.log_date),
                    "type": entry.log_type,
                    "message": format_log_message(
                        entry, source.name if source else None, target.name if target else None
                    ),
                    "severity": entry.log_severity,
                    "source": _log_user(source),
                    "target": _log_user(target),
                }
            )

        return {"success": True, "rowCount": row_count, "rows": rows}
