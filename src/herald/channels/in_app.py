"""In-app channel backed by a pluggable notification store."""

import logging
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol

from pydantic import ValidationError as PydanticValidationError

from herald.channels.base import ConfiguredChannel
from herald.enums import Channel, NotificationStatus
from herald.exceptions import ConfigurationError, InvalidRecipientError, ValidationError
from herald.models import (
    ChannelConfig,
    ChannelResponse,
    InAppRecipient,
    InAppRequest,
    NotificationRequest,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class InAppNotification:
    user_id: str
    title: str | None
    message: str | None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    type: str | None = None
    action_url: str | None = None
    icon: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    status: NotificationStatus = NotificationStatus.SENT
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    read_at: datetime | None = None


class InAppStore(Protocol):
    def save(self, notification: InAppNotification) -> InAppNotification: ...

    def get_for_user(
        self, user_id: str, limit: int = 20, offset: int = 0
    ) -> list[InAppNotification]: ...

    def mark_as_read(self, notification_id: str) -> None: ...


class InMemoryInAppStore:
    """Bounded in-memory store for development and tests.

    When full, the oldest notification is evicted.
    """

    def __init__(self, max_size: int = 1000) -> None:
        self._max_size = max_size
        self._items: OrderedDict[str, InAppNotification] = OrderedDict()

    def save(self, notification: InAppNotification) -> InAppNotification:
        if len(self._items) >= self._max_size:
            self._items.popitem(last=False)
        self._items[notification.id] = notification
        return notification

    def get(self, notification_id: str) -> InAppNotification | None:
        return self._items.get(notification_id)

    def get_for_user(
        self, user_id: str, limit: int = 20, offset: int = 0
    ) -> list[InAppNotification]:
        """Newest first."""
        items = sorted(
            (n for n in self._items.values() if n.user_id == user_id),
            key=lambda n: n.created_at,
            reverse=True,
        )
        return items[offset:offset + limit]

    def unread_count(self, user_id: str) -> int:
        return sum(
            1
            for n in self._items.values()
            if n.user_id == user_id and n.read_at is None
        )

    def mark_as_read(self, notification_id: str) -> None:
        notification = self._items.get(notification_id)
        if notification is not None:
            notification.status = NotificationStatus.READ
            notification.read_at = datetime.now(timezone.utc)

    def delete(self, notification_id: str) -> None:
        self._items.pop(notification_id, None)

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)


class InAppChannel(ConfiguredChannel):
    """Stores notifications for display inside the application."""

    def __init__(
        self,
        config: ChannelConfig | None = None,
        store: InAppStore | None = None,
        channel_name: str = "in_app",
    ) -> None:
        self.store = store
        super().__init__(config, channel_name, Channel.IN_APP)

    def validate_config(self) -> None:
        if self.store is None:
            raise ConfigurationError(
                "Storage adapter is required for in-app notifications",
                details={"channel_name": self.get_channel_name()},
            )

    def is_ready(self) -> bool:
        return self.store is not None

    async def send(self, request: NotificationRequest) -> ChannelResponse:
        if not isinstance(request, InAppRequest):
            try:
                request = InAppRequest.model_validate(request.model_dump(by_alias=True))
            except PydanticValidationError as exc:
                raise ValidationError(
                    "Invalid in-app notification request",
                    details=exc.errors(include_url=False),
                ) from exc
        return await self.send_in_app(request)

    async def send_in_app(self, request: InAppRequest) -> ChannelResponse:
        recipients = [
            self._user_id(r)
            for r in (request.to if isinstance(request.to, list) else [request.to])
        ]
        if not recipients:
            raise InvalidRecipientError("No recipients provided for in-app notification")

        saved = [
            self.store.save(
                InAppNotification(
                    user_id=user_id,
                    title=request.title,
                    message=request.message,
                    type=request.type,
                    action_url=request.action_url,
                    icon=request.icon,
                    metadata=dict(request.metadata),
                )
            )
            for user_id in recipients
        ]
        logger.debug(
            "In-app notification stored",
            extra={"recipients": len(saved), "reference": request.reference},
        )
        return ChannelResponse.sent(
            saved[0].id,
            reference=request.reference,
            channel_name=self.get_channel_name(),
            raw={"notification_ids": [n.id for n in saved]},
        )

    @staticmethod
    def _user_id(recipient: Any) -> str:
        if isinstance(recipient, InAppRecipient):
            return recipient.user_id
        if isinstance(recipient, dict) and recipient.get("user_id"):
            return str(recipient["user_id"])
        if isinstance(recipient, str | int) and str(recipient):
            return str(recipient)
        raise InvalidRecipientError(
            "In-app recipient must be a user id",
            details={"recipient": repr(recipient)},
        )
