"""Logging channel (dev stub)."""

import logging
import uuid

from herald.channels.base import ConfiguredChannel
from herald.models import ChannelConfig, ChannelResponse, NotificationRequest

logger = logging.getLogger(__name__)


class LogChannel(ConfiguredChannel):
    """Stub channel that logs instead of sending.

    Serves any channel type, which makes it handy for local development
    and for wiring a manager before real provider credentials exist.
    """

    def __init__(
        self,
        config: ChannelConfig | None = None,
        channel_name: str = "log",
        channel_type: str = "log",
    ) -> None:
        super().__init__(config, channel_name, channel_type)

    def validate_config(self) -> None:
        pass

    def is_ready(self) -> bool:
        return True

    async def send(self, request: NotificationRequest) -> ChannelResponse:
        body = request.message or getattr(request, "text", None) or request.title or ""
        preview = body[:50] if body else "(empty)"
        message_id = f"log-{uuid.uuid4().hex}"
        logger.info(
            "Notification sent (stub)",
            extra={
                "channel": self.get_channel_name(),
                "channel_type": self.get_channel_type(),
                "message_id": message_id,
                "reference": request.reference,
                "to": str(request.to),
                "body_preview": preview,
            },
        )
        return ChannelResponse.sent(
            message_id,
            reference=request.reference,
            channel_name=self.get_channel_name(),
        )
