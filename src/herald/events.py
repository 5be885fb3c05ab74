"""Lifecycle events and the dispatcher that delivers them to listeners."""

import inspect
import logging
import threading
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar, Self

from herald.exceptions import ValidationError

if TYPE_CHECKING:
    from herald.models import ChannelResponse
    from herald.notification import Notification

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class NotificationEvent:
    event_name: ClassVar[str] = "notification"

    notification: "Notification"
    channels: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class NotificationSending(NotificationEvent):
    event_name: ClassVar[str] = "notification.sending"


@dataclass(frozen=True, slots=True)
class NotificationSent(NotificationEvent):
    event_name: ClassVar[str] = "notification.sent"

    responses: Mapping[str, "ChannelResponse"] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class NotificationFailed(NotificationEvent):
    event_name: ClassVar[str] = "notification.failed"

    error: Exception | None = None
    failed_channel: str | None = None
    responses: Mapping[str, "ChannelResponse"] = field(default_factory=dict)


EVENT_TYPES: dict[str, type[NotificationEvent]] = {
    cls.event_name: cls
    for cls in (NotificationSending, NotificationSent, NotificationFailed)
}

Listener = Callable[[NotificationEvent], Awaitable[None] | None]


class EventDispatcher:
    """Fan lifecycle events out to registered listeners.

    Listeners run in registration order. A failing listener is logged and
    never affects the other listeners or the send that raised the event.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._listeners: dict[str, list[Listener]] = {}

    @staticmethod
    def _event_name(event_type: type[NotificationEvent] | str) -> str:
        if isinstance(event_type, str):
            if event_type not in EVENT_TYPES:
                raise ValidationError(
                    f"Unknown event type: {event_type!r}",
                    details={"event_type": event_type, "known": sorted(EVENT_TYPES)},
                )
            return event_type
        return event_type.event_name

    def on(self, event_type: type[NotificationEvent] | str, listener: Listener) -> Self:
        name = self._event_name(event_type)
        with self._lock:
            self._listeners.setdefault(name, []).append(listener)
        return self

    def remove_listeners(self, event_type: type[NotificationEvent] | str) -> Self:
        name = self._event_name(event_type)
        with self._lock:
            self._listeners.pop(name, None)
        return self

    def clear(self) -> Self:
        with self._lock:
            self._listeners.clear()
        return self

    def listener_count(self, event_type: type[NotificationEvent] | str) -> int:
        name = self._event_name(event_type)
        with self._lock:
            return len(self._listeners.get(name, []))

    async def dispatch(self, event: NotificationEvent) -> None:
        with self._lock:
            listeners = list(self._listeners.get(event.event_name, []))

        for listener in listeners:
            try:
                result = listener(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(
                    "Event listener failed",
                    extra={
                        "event": event.event_name,
                        "listener": getattr(listener, "__qualname__", repr(listener)),
                    },
                )


_default_dispatcher: EventDispatcher | None = None
_default_lock = threading.Lock()


def get_event_dispatcher() -> EventDispatcher:
    """Process-wide dispatcher used by :func:`herald.factory.create_manager`."""
    global _default_dispatcher
    with _default_lock:
        if _default_dispatcher is None:
            _default_dispatcher = EventDispatcher()
        return _default_dispatcher


def set_event_dispatcher(dispatcher: EventDispatcher | None) -> None:
    """Replace (or with None, reset) the process-wide dispatcher."""
    global _default_dispatcher
    with _default_lock:
        _default_dispatcher = dispatcher
