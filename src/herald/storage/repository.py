"""Delivery-log data access with a constructor-injected session."""

import datetime
from collections.abc import Mapping
from typing import Any, Protocol
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from herald.storage.models import NotificationLog


class DeliveryLogStore(Protocol):
    def log_notification(self, record: NotificationLog | Mapping[str, Any]) -> NotificationLog: ...

    def query_logs(self, **filters: Any) -> tuple[list[NotificationLog], int]: ...


class DeliveryLogRepository:
    """Data access for the notification_logs table."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def log_notification(
        self, record: NotificationLog | Mapping[str, Any]
    ) -> NotificationLog:
        """Add a log row and flush so generated columns are populated."""
        if not isinstance(record, NotificationLog):
            record = NotificationLog(**record)
        self._session.add(record)
        self._session.flush()
        return record

    def get_by_id(self, log_id: UUID) -> NotificationLog | None:
        return self._session.get(NotificationLog, log_id)

    def query_logs(
        self,
        *,
        channel: str | None = None,
        status: str | None = None,
        reference: str | None = None,
        since: datetime.datetime | None = None,
        until: datetime.datetime | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[NotificationLog], int]:
        """Filtered page of logs, newest first, plus the unpaged total."""
        conditions = []
        if channel is not None:
            conditions.append(NotificationLog.channel == channel.lower())
        if status is not None:
            conditions.append(NotificationLog.status == status)
        if reference is not None:
            conditions.append(NotificationLog.reference == reference)
        if since is not None:
            conditions.append(NotificationLog.created_at >= since)
        if until is not None:
            conditions.append(NotificationLog.created_at <= until)

        total = self._session.scalar(
            select(func.count()).select_from(NotificationLog).where(*conditions)
        )
        stmt = (
            select(NotificationLog)
            .where(*conditions)
            .order_by(NotificationLog.created_at.desc(), NotificationLog.id)
            .limit(limit)
            .offset(offset)
        )
        return list(self._session.scalars(stmt).all()), total or 0

    def get_stats(self, channel: str | None = None) -> dict[str, Any]:
        """Counts by status and by channel."""
        stmt = select(
            NotificationLog.channel, NotificationLog.status, func.count()
        ).group_by(NotificationLog.channel, NotificationLog.status)
        if channel is not None:
            stmt = stmt.where(NotificationLog.channel == channel.lower())

        by_status: dict[str, int] = {}
        by_channel: dict[str, int] = {}
        for row_channel, row_status, count in self._session.execute(stmt):
            by_status[row_status] = by_status.get(row_status, 0) + count
            by_channel[row_channel] = by_channel.get(row_channel, 0) + count
        return {
            "total": sum(by_status.values()),
            "by_status": by_status,
            "by_channel": by_channel,
        }

    def cleanup(self, older_than: datetime.datetime) -> int:
        """Delete logs created before *older_than*; returns the row count."""
        result = self._session.execute(
            delete(NotificationLog)
            .where(NotificationLog.created_at < older_than)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
