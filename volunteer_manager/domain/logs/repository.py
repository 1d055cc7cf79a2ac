"""Log repository - Database operations for the audit log"""

from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session, aliased

from ...models import LogEntry, User
from ...shared.dates import utc_now

SourceUser = aliased(User)
TargetUser = aliased(User)


class LogRepository:
    """Repository for audit log database operations"""

    @staticmethod
    def query_logs(
        db: Session, source_or_target_user_id: Optional[int] = None, severities: Optional[list[str]] = None
    ) -> Query:
        """Entries that have not been deleted, as (LogEntry, source User, target User) rows"""
        query = (
            db.query(LogEntry, SourceUser, TargetUser)
            .outerjoin(SourceUser, SourceUser.id == LogEntry.log_source_user_id)
            .outerjoin(TargetUser, TargetUser.id == LogEntry.log_target_user_id)
            .filter(LogEntry.log_deleted.is_(None))
        )

        if source_or_target_user_id is not None:
            query = query.filter(
                or_(
                    LogEntry.log_source_user_id == source_or_target_user_id,
                    LogEntry.log_target_user_id == source_or_target_user_id,
                )
            )

        if severities:
            query = query.filter(LogEntry.log_severity.in_(severities))

        return query

    @staticmethod
    def mark_deleted(db: Session, log_id: int) -> int:
        affected = (
            db.query(LogEntry)
            .filter(LogEntry.id == log_id, LogEntry.log_deleted.is_(None))
            .update({"log_deleted": utc_now()}, synchronize_session=False)
        )
        db.commit()
        return affected
