"""Notification base class and request building.

A notification declares the channel types it uses through :meth:`via` and
one content builder per channel type. Builders are registered explicitly,
either with the :func:`builds` decorator on a method or at runtime with
:meth:`Notification.register_builder`; nothing is discovered by probing
method names.

Example::

    class OrderShipped(Notification):
        def __init__(self, order_id: str) -> None:
            super().__init__()
            self.order_id = order_id

        def via(self, notifiable):
            return [Channel.EMAIL, Channel.SMS]

        @builds(Channel.EMAIL)
        def to_email(self, notifiable):
            return {"subject": "Shipped", "text": f"Order {self.order_id}"}

        @builds(Channel.SMS)
        def to_sms(self, notifiable):
            return {"text": f"Order {self.order_id} shipped"}
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from functools import partial
from types import MappingProxyType
from typing import Any, ClassVar, Self

from pydantic import ValidationError as PydanticValidationError

from herald.enums import Channel, NotificationPriority
from herald.exceptions import MissingBuilderError, ValidationError
from herald.models import (
    EmailRequest,
    InAppRequest,
    NotificationRequest,
    PushRequest,
    SlackRequest,
    SmsRequest,
)
from herald.rendering import render_fields
from herald.routing import Notifiable

ContentBuilder = Callable[[Notifiable | None], NotificationRequest | Mapping[str, Any]]

REQUEST_TYPES: dict[str, type[NotificationRequest]] = {
    Channel.EMAIL: EmailRequest,
    Channel.SMS: SmsRequest,
    Channel.PUSH: PushRequest,
    Channel.IN_APP: InAppRequest,
    Channel.SLACK: SlackRequest,
}

_BUILDS_ATTR = "_herald_builds"


def builds(*channel_types: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Mark a method as the content builder for one or more channel types."""

    def decorator(method: Callable[..., Any]) -> Callable[..., Any]:
        setattr(method, _BUILDS_ATTR, tuple(ch.lower() for ch in channel_types))
        return method

    return decorator


class Notification(ABC):
    """A message that can be delivered over several channels."""

    _builder_methods: ClassVar[dict[str, str]] = {}

    priority: NotificationPriority = NotificationPriority.NORMAL
    reference: str | None = None
    metadata: Mapping[str, Any] = MappingProxyType({})

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        methods = dict(cls._builder_methods)
        for attr, value in vars(cls).items():
            for channel_type in getattr(value, _BUILDS_ATTR, ()):
                methods[channel_type] = attr
        cls._builder_methods = methods

    def __init__(
        self,
        *,
        priority: NotificationPriority = NotificationPriority.NORMAL,
        reference: str | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> None:
        self.priority = NotificationPriority(priority)
        self.reference = reference
        self.metadata = dict(metadata or {})

    @abstractmethod
    def via(self, notifiable: Notifiable | None) -> list[str]:
        """Channel types this notification is delivered through."""

    # Fluent setters, used before dispatch.

    def with_priority(self, priority: NotificationPriority | str) -> Self:
        self.priority = NotificationPriority(priority)
        return self

    def with_reference(self, reference: str) -> Self:
        self.reference = reference
        return self

    def with_metadata(self, metadata: Mapping[str, Any] | None = None, **values: Any) -> Self:
        self.metadata = {**self.metadata, **(metadata or {}), **values}
        return self

    def register_builder(self, channel_type: str, builder: ContentBuilder) -> Self:
        """Attach a builder to this instance; it wins over class builders."""
        builders = self.__dict__.setdefault("_instance_builders", {})
        builders[channel_type.lower()] = builder
        return self

    def has_builder(self, channel_type: str) -> bool:
        key = channel_type.lower()
        return key in self.__dict__.get("_instance_builders", {}) or key in self._builder_methods

    def get_builder(self, channel_type: str) -> ContentBuilder:
        key = channel_type.lower()
        instance_builders: dict[str, ContentBuilder] = self.__dict__.get("_instance_builders", {})
        if key in instance_builders:
            return instance_builders[key]
        method_name = self._builder_methods.get(key)
        if method_name is None:
            raise MissingBuilderError(
                f"{type(self).__name__} routes to '{channel_type}' but has no builder for it",
                details={"notification": type(self).__name__, "channel_type": channel_type},
            )
        return getattr(self, method_name)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(priority={self.priority.value!r}, "
            f"reference={self.reference!r})"
        )


def build_request(
    notification: Notification,
    channel_type: str,
    to: Any,
    notifiable: Notifiable | None = None,
) -> NotificationRequest:
    """Run the notification's builder for *channel_type* and address it.

    The result carries the routing address plus the notification's
    reference, metadata and priority. Raises MissingBuilderError when no
    builder exists and ValidationError when the content is malformed.
    """
    content = notification.get_builder(channel_type)(notifiable)

    if isinstance(content, NotificationRequest):
        return content.model_copy(
            update={
                "to": to,
                "reference": notification.reference or content.reference,
                "metadata": {**content.metadata, **notification.metadata},
                "priority": notification.priority,
            }
        )

    if not isinstance(content, Mapping):
        raise ValidationError(
            f"Builder for '{channel_type}' must return a mapping or a request, "
            f"got {type(content).__name__}",
            details={"channel_type": channel_type},
        )

    data = dict(content)
    data["to"] = to
    data["reference"] = notification.reference or data.get("reference")
    data["metadata"] = {**data.get("metadata", {}), **notification.metadata}
    data["priority"] = notification.priority

    request_cls = REQUEST_TYPES.get(channel_type.lower(), NotificationRequest)
    try:
        return request_cls.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(
            f"Invalid content for channel '{channel_type}'",
            details=exc.errors(include_url=False),
        ) from exc


class TemplatedNotification(Notification):
    """Notification whose per-channel content comes from Jinja2 templates.

    ``templates`` maps a channel type to field templates, e.g.::

        {"email": {"subject": "Hi {{ name }}", "text": "Welcome, {{ name }}"},
         "sms": {"text": "Welcome {{ name }}"}}
    """

    def __init__(
        self,
        templates: Mapping[str, Mapping[str, str]],
        context: Mapping[str, Any] | None = None,
        *,
        channels: list[str] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.templates = {ch.lower(): dict(fields) for ch, fields in templates.items()}
        self.context = dict(context or {})
        self._channels = channels or list(self.templates)
        for channel_type in self.templates:
            self.register_builder(channel_type, partial(self._render, channel_type))

    def via(self, notifiable: Notifiable | None) -> list[str]:
        return list(self._channels)

    def _render(self, channel_type: str, notifiable: Notifiable | None) -> dict[str, str]:
        return render_fields(self.templates[channel_type], self.context)
