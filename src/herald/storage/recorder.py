"""Event listener that writes delivery outcomes to the log table."""

import logging
from typing import Self

from sqlalchemy.orm import Session, sessionmaker

from herald.enums import NotificationStatus
from herald.events import EventDispatcher, NotificationEvent, NotificationFailed, NotificationSent
from herald.storage.models import NotificationLog
from herald.storage.repository import DeliveryLogRepository

logger = logging.getLogger(__name__)


class DeliveryLogRecorder:
    """Persist one NotificationLog row per channel on Sent/Failed.

    Storage errors are logged, never raised.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def attach(self, dispatcher: EventDispatcher) -> Self:
        dispatcher.on(NotificationSent, self.record)
        dispatcher.on(NotificationFailed, self.record)
        return self

    def record(self, event: NotificationEvent) -> None:
        rows = self._rows_for(event)
        try:
            with self._session_factory() as session:
                repo = DeliveryLogRepository(session)
                for row in rows:
                    repo.log_notification(row)
                session.commit()
        except Exception:
            logger.exception(
                "Failed to record delivery log",
                extra={
                    "event": event.event_name,
                    "reference": event.notification.reference,
                },
            )

    @staticmethod
    def _rows_for(event: NotificationEvent) -> list[NotificationLog]:
        notification = event.notification
        responses = getattr(event, "responses", {})
        rows = []
        for channel in event.channels:
            row = NotificationLog(
                notification=type(notification).__name__,
                reference=notification.reference,
                channel=channel,
                priority=str(notification.priority),
                extra=dict(notification.metadata),
            )
            response = responses.get(channel)
            if response is None:
                row.status = NotificationStatus.FAILED
                if isinstance(event, NotificationFailed) and event.error is not None:
                    row.error_message = str(event.error)
            else:
                row.status = str(response.status)
                row.channel_name = response.channel_name
                row.message_id = response.message_id
                row.sent_at = response.sent_at
                if response.error is not None:
                    row.error_code = response.error.code
                    row.error_message = response.error.message
            rows.append(row)
        return rows
