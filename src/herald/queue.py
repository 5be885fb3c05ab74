"""Deferred sending through Celery."""

import logging
import threading
from collections import OrderedDict
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

from celery import Celery

from herald.enums import DeliveryStrategy, NotificationPriority
from herald.exceptions import ValidationError
from herald.notification import Notification

logger = logging.getLogger(__name__)

SEND_NOTIFICATION_TASK = "herald.worker.tasks.send_notification"

PRIORITY_QUEUES: dict[NotificationPriority, str] = {
    NotificationPriority.URGENT: "critical",
    NotificationPriority.HIGH: "high",
    NotificationPriority.NORMAL: "normal",
    NotificationPriority.LOW: "low",
}


@dataclass(frozen=True, slots=True)
class QueueOptions:
    eta: datetime | None = None
    countdown: float | None = None
    queue: str | None = None
    strategy: DeliveryStrategy | None = None


class NotificationQueue(Protocol):
    def enqueue(
        self,
        notification: Notification,
        routing: Mapping[str, Any] | None = None,
        options: QueueOptions | None = None,
    ) -> str: ...

    def get_stats(self) -> dict[str, Any]: ...

    def retry_job(self, job_id: str) -> str: ...


@dataclass(frozen=True, slots=True)
class _Submission:
    task_kwargs: dict[str, Any]
    queue: str


class CeleryNotificationQueue:
    """Submits notifications to the herald worker.

    Notifications travel pickled, so subclasses must be importable by the
    worker. Each job lands on the queue matching the notification's
    priority unless ``QueueOptions.queue`` overrides it. The last
    ``max_tracked`` submissions are remembered for :meth:`retry_job`.
    """

    def __init__(self, celery_app: Celery, *, max_tracked: int = 1000) -> None:
        self._celery = celery_app
        self._max_tracked = max_tracked
        self._jobs: OrderedDict[str, _Submission] = OrderedDict()
        self._lock = threading.Lock()

    def enqueue(
        self,
        notification: Notification,
        routing: Mapping[str, Any] | None = None,
        options: QueueOptions | None = None,
    ) -> str:
        options = options or QueueOptions()
        queue = options.queue or PRIORITY_QUEUES[NotificationPriority(notification.priority)]
        task_kwargs: dict[str, Any] = {
            "notification": notification,
            "routing": dict(routing or {}),
            "strategy": str(options.strategy) if options.strategy else None,
        }

        celery_kwargs: dict[str, Any] = {}
        if options.eta is not None:
            celery_kwargs["eta"] = options.eta
        elif options.countdown is not None:
            celery_kwargs["countdown"] = options.countdown

        job_id = self._submit(_Submission(task_kwargs, queue), **celery_kwargs)
        logger.info(
            "Notification enqueued",
            extra={
                "job_id": job_id,
                "queue": queue,
                "notification": type(notification).__name__,
                "reference": notification.reference,
                "eta": str(options.eta) if options.eta else None,
            },
        )
        return job_id

    def retry_job(self, job_id: str, countdown: float | None = None) -> str:
        """Re-submit a job this queue enqueued; returns the new job id."""
        with self._lock:
            submission = self._jobs.get(job_id)
        if submission is None:
            raise ValidationError(
                f"Unknown job '{job_id}'",
                details={"job_id": job_id},
            )

        celery_kwargs: dict[str, Any] = {}
        if countdown is not None:
            celery_kwargs["countdown"] = countdown
        new_id = self._submit(submission, **celery_kwargs)
        logger.info(
            "Notification job resubmitted",
            extra={"job_id": job_id, "new_job_id": new_id, "queue": submission.queue},
        )
        return new_id

    def get_job_state(self, job_id: str) -> str:
        return self._celery.AsyncResult(job_id).state

    def get_stats(self) -> dict[str, Any]:
        """Worker-side counts from Celery inspect plus locally tracked jobs."""
        inspector = self._celery.control.inspect(timeout=1.0)
        active = inspector.active() or {}
        reserved = inspector.reserved() or {}
        scheduled = inspector.scheduled() or {}
        with self._lock:
            tracked = len(self._jobs)
        return {
            "workers": sorted(set(active) | set(reserved) | set(scheduled)),
            "active": sum(len(tasks) for tasks in active.values()),
            "reserved": sum(len(tasks) for tasks in reserved.values()),
            "scheduled": sum(len(tasks) for tasks in scheduled.values()),
            "tracked_jobs": tracked,
        }

    def _submit(self, submission: _Submission, **celery_kwargs: Any) -> str:
        result = self._celery.send_task(
            SEND_NOTIFICATION_TASK,
            kwargs=submission.task_kwargs,
            queue=submission.queue,
            serializer="pickle",
            **celery_kwargs,
        )
        with self._lock:
            self._jobs[result.id] = submission
            while len(self._jobs) > self._max_tracked:
                self._jobs.popitem(last=False)
        return result.id
