"""Test doubles shared across the unit tests."""

import asyncio
from typing import Any

from herald.enums import Channel
from herald.models import ChannelResponse, NotificationRequest
from herald.notification import Notification, builds


class FakeChannel:
    """In-memory channel with a scripted outcome.

    Records every request it receives. ``error`` is raised from send,
    ``response`` is returned verbatim, otherwise a success is produced.
    """

    def __init__(
        self,
        name: str = "fake",
        channel_type: str = Channel.EMAIL,
        *,
        ready: bool = True,
        error: Exception | None = None,
        response: ChannelResponse | None = None,
        delay: float = 0.0,
    ) -> None:
        self.name = name
        self.channel_type = channel_type
        self.ready = ready
        self.error = error
        self.response = response
        self.delay = delay
        self.cancelled = False
        self.requests: list[NotificationRequest] = []

    async def send(self, request: NotificationRequest) -> ChannelResponse:
        self.requests.append(request)
        if self.delay:
            try:
                await asyncio.sleep(self.delay)
            except asyncio.CancelledError:
                self.cancelled = True
                raise
        if self.error is not None:
            raise self.error
        if self.response is not None:
            return self.response
        return ChannelResponse.sent(
            f"{self.name}-{len(self.requests)}",
            reference=request.reference,
            channel_name=self.name,
        )

    def get_channel_name(self) -> str:
        return self.name

    def get_channel_type(self) -> str:
        return self.channel_type

    def is_ready(self) -> bool:
        return self.ready


class WelcomeNotification(Notification):
    """Notification with builders for the common channel types."""

    def __init__(self, channels: list[str] | tuple[str, ...] = (Channel.EMAIL,), **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.channels = list(channels)

    def via(self, notifiable: Any) -> list[str]:
        return self.channels

    @builds(Channel.EMAIL)
    def to_email(self, notifiable: Any) -> dict[str, Any]:
        return {"subject": "Welcome", "text": "Hello there"}

    @builds(Channel.SMS)
    def to_sms(self, notifiable: Any) -> dict[str, Any]:
        return {"text": "Hello there"}

    @builds(Channel.PUSH)
    def to_push(self, notifiable: Any) -> dict[str, Any]:
        return {"title": "Welcome", "body": "Hello there"}

    @builds(Channel.IN_APP)
    def to_in_app(self, notifiable: Any) -> dict[str, Any]:
        return {"title": "Welcome", "message": "Hello there"}


class User:
    """Notifiable entity with a fixed set of addresses."""

    def __init__(self, **routes: Any) -> None:
        self.routes = routes

    def route_notification_for(self, channel_type: str) -> Any:
        return self.routes.get(channel_type)
