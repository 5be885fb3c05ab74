"""Channel contract and capability interfaces."""

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from herald.exceptions import ConfigurationError
from herald.models import (
    ChannelConfig,
    ChannelResponse,
    EmailRequest,
    InAppRequest,
    NotificationRequest,
    PushRequest,
    SmsRequest,
)


@runtime_checkable
class Channel(Protocol):
    """What the dispatcher needs from any channel implementation."""

    async def send(self, request: NotificationRequest) -> ChannelResponse: ...

    def get_channel_name(self) -> str: ...

    def get_channel_type(self) -> str: ...

    def is_ready(self) -> bool: ...


@runtime_checkable
class EmailSender(Channel, Protocol):
    async def send_email(self, request: EmailRequest) -> ChannelResponse: ...


@runtime_checkable
class SmsSender(Channel, Protocol):
    async def send_sms(self, request: SmsRequest) -> ChannelResponse: ...


@runtime_checkable
class PushSender(Channel, Protocol):
    async def send_push(self, request: PushRequest) -> ChannelResponse: ...


@runtime_checkable
class InAppSender(Channel, Protocol):
    async def send_in_app(self, request: InAppRequest) -> ChannelResponse: ...


ChannelFactory = Callable[[ChannelConfig], Channel]


class ConfiguredChannel(ABC):
    """Convenience base for channels backed by a :class:`ChannelConfig`.

    Validates configuration in the constructor so a misconfigured channel
    fails fast with :class:`ConfigurationError`. Subclasses that do not
    need credentials override :meth:`validate_config` and :meth:`is_ready`.
    """

    def __init__(
        self,
        config: ChannelConfig | dict[str, Any] | None,
        channel_name: str,
        channel_type: str,
    ) -> None:
        if config is None:
            config = ChannelConfig()
        elif isinstance(config, dict):
            config = ChannelConfig.model_validate(config)
        self.config = config
        self._channel_name = channel_name
        self._channel_type = channel_type
        self.validate_config()

    def validate_config(self) -> None:
        if not self.config.has_credentials:
            raise ConfigurationError(
                f"{self._channel_name}: API key or secret key is required",
                details={"channel_name": self._channel_name},
            )

    def get_channel_name(self) -> str:
        return self._channel_name

    def get_channel_type(self) -> str:
        return self._channel_type

    def is_ready(self) -> bool:
        return self.config.has_credentials

    @abstractmethod
    async def send(self, request: NotificationRequest) -> ChannelResponse:
        """Deliver *request* and return a uniform response.

        Vendor failures must be raised as a ``ChannelError`` subclass.
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self._channel_name!r})"
