"""Delivery coordination: one notification, many channels."""

import asyncio
import logging
from collections.abc import Mapping
from typing import Any, Self

from herald.channels.base import Channel, ChannelFactory
from herald.enums import DeliveryStrategy, ErrorCode
from herald.events import (
    EventDispatcher,
    Listener,
    NotificationEvent,
    NotificationFailed,
    NotificationSending,
    NotificationSent,
)
from herald.exceptions import (
    ChannelError,
    ChannelNotFoundError,
    ChannelNotReadyError,
    InvalidResponseError,
    NotificationError,
    SendError,
    ValidationError,
)
from herald.models import ChannelConfig, ChannelResponse, DeliveryReport, ManagerConfig
from herald.notification import Notification, build_request
from herald.registry import ChannelRegistry
from herald.routing import Notifiable, RoutingMap, RoutingResolver

_logger = logging.getLogger(__name__)

_Outcome = tuple[ChannelResponse, NotificationError | None]


def _wrap_unexpected(exc: Exception) -> ChannelError:
    return ChannelError(
        str(exc) or type(exc).__name__,
        code=ErrorCode.UNKNOWN_ERROR,
        details={"exception": type(exc).__name__},
    )


class NotificationManager:
    """Sends notifications through the registered channels.

    Every channel named by ``notification.via()`` is attempted concurrently.
    The delivery strategy is applied once all of them have settled:

    * ``all-or-nothing`` raises :class:`SendError` if any channel failed;
    * ``best-effort`` returns a :class:`DeliveryReport` holding both the
      successful and the failed entries.
    """

    def __init__(
        self,
        config: ManagerConfig | None = None,
        *,
        registry: ChannelRegistry | None = None,
        dispatcher: EventDispatcher | None = None,
        resolver: RoutingResolver | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        config = config or ManagerConfig()
        self.registry = registry or ChannelRegistry(config)
        self.events = dispatcher or EventDispatcher()
        self.resolver = resolver or RoutingResolver()
        self._strategy = config.strategy
        self._logger = logger or _logger

    # ------------------------------------------------------------------
    # Strategy
    # ------------------------------------------------------------------

    @property
    def strategy(self) -> DeliveryStrategy:
        return self._strategy

    def set_strategy(self, strategy: DeliveryStrategy | str) -> Self:
        self._strategy = DeliveryStrategy(strategy)
        return self

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    async def send(
        self,
        notification: Notification,
        routing: RoutingMap | None = None,
        *,
        notifiable: Notifiable | None = None,
        strategy: DeliveryStrategy | str | None = None,
    ) -> DeliveryReport:
        """Deliver *notification* and return the per-channel report.

        Raises ValidationError when the notification names no channels and
        SendError when the all-or-nothing strategy sees any failure.
        """
        strategy = DeliveryStrategy(strategy) if strategy else self._strategy
        channels = self._channels_for(notification, notifiable)
        log_ctx = {
            "notification": type(notification).__name__,
            "reference": notification.reference,
            "channels": channels,
            "strategy": str(strategy),
        }

        await self.events.dispatch(NotificationSending(notification, tuple(channels)))

        outcomes = await asyncio.gather(
            *(
                self._deliver(channel_type, notification, routing, notifiable)
                for channel_type in channels
            )
        )

        responses: dict[str, ChannelResponse] = {}
        failures: dict[str, NotificationError] = {}
        for channel_type, (response, error) in zip(channels, outcomes):
            responses[channel_type] = response
            if error is not None:
                failures[channel_type] = error

        if failures and strategy == DeliveryStrategy.ALL_OR_NOTHING:
            failed_channel = next(iter(failures))
            error = SendError(
                f"Failed to send notification via: {', '.join(failures)}",
                failures=failures,
                failed_channel=failed_channel,
            )
            self._logger.error(
                "Notification delivery failed",
                extra={**log_ctx, "failed_channels": list(failures)},
            )
            await self.events.dispatch(
                NotificationFailed(
                    notification,
                    tuple(channels),
                    error=error,
                    failed_channel=failed_channel,
                    responses=responses,
                )
            )
            raise error

        report = DeliveryReport(responses, strategy, notification.reference)
        if failures:
            self._logger.warning(
                "Notification partially delivered",
                extra={**log_ctx, "failed_channels": list(failures)},
            )
        else:
            self._logger.info("Notification sent", extra=log_ctx)

        await self.events.dispatch(
            NotificationSent(notification, tuple(channels), responses=responses)
        )
        return report

    async def notify(
        self,
        notifiable: Notifiable,
        notification: Notification,
        *,
        strategy: DeliveryStrategy | str | None = None,
    ) -> DeliveryReport:
        """Send to a notifiable, resolving every address from the entity."""
        channels = self._channels_for(notification, notifiable)
        routing = self.resolver.build_routing_map(notifiable, channels)
        return await self.send(
            notification, routing, notifiable=notifiable, strategy=strategy
        )

    def send_sync(
        self,
        notification: Notification,
        routing: RoutingMap | None = None,
        **kwargs: Any,
    ) -> DeliveryReport:
        """Blocking wrapper around :meth:`send` for code without a running loop."""
        return asyncio.run(self.send(notification, routing, **kwargs))

    def _channels_for(
        self, notification: Notification, notifiable: Notifiable | None
    ) -> list[str]:
        channels = list(
            dict.fromkeys(str(ch).strip().lower() for ch in notification.via(notifiable) or [])
        )
        if not channels:
            raise ValidationError(
                f"{type(notification).__name__} does not declare any channels",
                details={"notification": type(notification).__name__},
            )
        return channels

    async def _deliver(
        self,
        channel_type: str,
        notification: Notification,
        routing: RoutingMap | None,
        notifiable: Notifiable | None,
    ) -> _Outcome:
        log_ctx = {"channel_type": channel_type, "reference": notification.reference}
        try:
            candidates = self._candidates(channel_type)
            to = self.resolver.resolve(channel_type, routing, notifiable)
            request = build_request(notification, channel_type, to, notifiable)
        except NotificationError as exc:
            self._logger.warning(
                "Channel could not be prepared",
                extra={**log_ctx, "error_code": exc.code, "reason": exc.message},
            )
            return self._failure(notification, exc), exc
        except Exception as exc:
            self._logger.exception("Channel could not be prepared", extra=log_ctx)
            error = _wrap_unexpected(exc)
            return self._failure(notification, error), error

        fallback = self.registry.fallback_enabled
        error = ChannelError(f"No channel attempted for '{channel_type}'")
        failed_response: ChannelResponse | None = None
        attempted: str | None = None
        for name, channel in candidates:
            attempted = name
            failed_response = None
            try:
                response = await channel.send(request)
                if not isinstance(response, ChannelResponse):
                    raise InvalidResponseError(
                        f"Channel '{name}' returned {type(response).__name__}, "
                        "expected ChannelResponse",
                        details={"channel_name": name, "returned": type(response).__name__},
                    )
            except NotificationError as exc:
                error = exc
            except Exception as exc:
                error = _wrap_unexpected(exc)
            else:
                if response.channel_name is None:
                    response = response.model_copy(update={"channel_name": name})
                if response.success:
                    return response, None
                failed_response = response
                error = ChannelError(
                    response.error.message if response.error else "Channel reported failure",
                    code=response.error.code if response.error else None,
                    details=response.error.details if response.error else None,
                )

            self._logger.warning(
                "Channel send failed",
                extra={**log_ctx, "channel": name, "error_code": error.code, "reason": error.message},
            )
            if not (fallback and isinstance(error, ChannelError)):
                break

        if failed_response is not None:
            return failed_response, error
        return self._failure(notification, error, attempted), error

    def _candidates(self, channel_type: str) -> list[tuple[str, Channel]]:
        """Channels to try for *channel_type*, most preferred first."""
        candidates = self.registry.get_channels_for_type(channel_type)
        if not candidates:
            raise ChannelNotFoundError(
                f"No channel registered for '{channel_type}'",
                details={
                    "channel_type": channel_type,
                    "available_channels": self.registry.get_available_channels(),
                },
            )
        if not self.registry.fallback_enabled:
            name, channel = candidates[0]
            if not channel.is_ready():
                raise ChannelNotReadyError(
                    f"Notification channel '{name}' is not ready. Please check configuration.",
                    details={"channel_name": name, "channel_type": channel_type},
                )
            return [(name, channel)]

        ready = [(name, channel) for name, channel in candidates if channel.is_ready()]
        if not ready:
            raise ChannelNotReadyError(
                f"No ready channel for '{channel_type}'",
                details={
                    "channel_type": channel_type,
                    "channels": [name for name, _ in candidates],
                },
            )
        return ready

    @staticmethod
    def _failure(
        notification: Notification,
        error: NotificationError,
        channel_name: str | None = None,
    ) -> ChannelResponse:
        return ChannelResponse.failure(
            error.to_error_info(),
            reference=notification.reference,
            channel_name=channel_name,
        )

    # ------------------------------------------------------------------
    # Registry and events passthroughs
    # ------------------------------------------------------------------

    def register_factory(self, name: str, factory: ChannelFactory) -> Self:
        self.registry.register_factory(name, factory)
        return self

    def register_channel(
        self, name: str, channel: Channel, *, priority: int | None = None
    ) -> Self:
        self.registry.register_channel(name, channel, priority=priority)
        return self

    def make_channel(self, name: str, config: ChannelConfig | None = None) -> Channel:
        return self.registry.make_channel(name, config)

    def remove_channel(self, name: str) -> Self:
        self.registry.remove_channel(name)
        return self

    def set_default_channel(self, name: str) -> Self:
        self.registry.set_default_channel(name)
        return self

    def set_fallback_enabled(self, enabled: bool) -> Self:
        self.registry.set_fallback_enabled(enabled)
        return self

    def get_channel(self, name: str) -> Channel:
        return self.registry.get_channel(name)

    def get_default_channel(self) -> Channel:
        return self.registry.get_default_channel()

    def get_channel_with_fallback(self, preferred: str | None = None) -> Channel | None:
        return self.registry.get_channel_with_fallback(preferred)

    def get_available_channels(self) -> list[str]:
        return self.registry.get_available_channels()

    def get_ready_channels(self) -> list[str]:
        return self.registry.get_ready_channels()

    def has_channel(self, name: str) -> bool:
        return self.registry.has_channel(name)

    def is_channel_ready(self, name: str) -> bool:
        return self.registry.is_channel_ready(name)

    def on(self, event_type: type[NotificationEvent] | str, listener: Listener) -> Self:
        self.events.on(event_type, listener)
        return self

    def __repr__(self) -> str:
        return (
            f"NotificationManager(strategy={self._strategy.value!r}, "
            f"channels={self.registry.get_available_channels()!r})"
        )


def summarize(report: Mapping[str, ChannelResponse]) -> dict[str, Any]:
    """Compact, loggable view of a report."""
    return {
        channel: {
            "success": response.success,
            "status": str(response.status),
            "message_id": response.message_id,
            "error": response.error.code if response.error else None,
        }
        for channel, response in report.items()
    }
