"""Celery task for queued notification delivery."""

import logging
from typing import Any

from celery import Task

from herald.exceptions import ChannelError, SendError
from herald.manager import NotificationManager, summarize
from herald.notification import Notification
from herald.queue import SEND_NOTIFICATION_TASK
from herald.worker.celery import app

logger = logging.getLogger(__name__)

_MAX_RETRIES = 3


@app.task(
    name=SEND_NOTIFICATION_TASK,
    bind=True,
    max_retries=_MAX_RETRIES,
    serializer="pickle",
)
def send_notification(
    self: Task,
    notification: Notification,
    routing: dict[str, Any] | None = None,
    strategy: str | None = None,
) -> dict[str, Any]:
    """Send a queued notification with the worker's manager.

    An all-or-nothing failure caused by a channel or provider error is
    retried with backoff; once retries are exhausted the SendError
    propagates. Validation and configuration failures are never retried.
    """
    manager: NotificationManager = app.conf._manager
    backoff: list[int] = app.conf._retry_backoff

    log_ctx = {
        "task_id": self.request.id,
        "notification": type(notification).__name__,
        "reference": notification.reference,
        "attempt": self.request.retries + 1,
    }

    try:
        report = manager.send_sync(notification, routing, strategy=strategy)
    except SendError as exc:
        if not _is_transient(exc):
            logger.error(
                "Queued delivery rejected",
                extra={
                    **log_ctx,
                    "failed_channel": exc.failed_channel,
                    "error_codes": {ch: err.code for ch, err in exc.failures.items()},
                },
            )
            raise
        countdown = _get_backoff(self.request.retries + 1, backoff)
        logger.warning(
            "Queued delivery failed",
            extra={**log_ctx, "failed_channel": exc.failed_channel, "backoff_seconds": countdown},
        )
        raise self.retry(exc=exc, countdown=countdown)

    result = summarize(report)
    logger.info("Queued delivery finished", extra={**log_ctx, "status": report.status})
    return result


def _is_transient(exc: SendError) -> bool:
    """True when any failed channel raised a channel or provider error."""
    return any(isinstance(err, ChannelError) for err in exc.failures.values())


def _get_backoff(attempt: int, schedule: list[int]) -> int:
    """Return backoff seconds for the given attempt number (1-based).

    Falls back to the last value in *schedule* when attempt exceeds the
    length of the list.
    """
    if not schedule:
        return 0
    idx = min(attempt - 1, len(schedule) - 1)
    return schedule[idx]
