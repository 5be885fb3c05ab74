"""Recipient routing: turn a logical recipient into per-channel addresses."""

from collections.abc import Iterable, Mapping
from typing import Any, Protocol, runtime_checkable

from herald.exceptions import InvalidRecipientError

RoutingMap = Mapping[str, Any]


@runtime_checkable
class Notifiable(Protocol):
    """An entity that knows its own address for a channel type.

    Returns a single address, a list of addresses, or None when it cannot
    be reached on that channel.
    """

    def route_notification_for(self, channel_type: str) -> Any: ...


def _is_empty(address: Any) -> bool:
    if address is None:
        return True
    if isinstance(address, str | list | tuple | dict):
        return len(address) == 0
    return False


class RoutingResolver:
    """Resolves the address for one channel of a notification."""

    def resolve(
        self,
        channel_type: str,
        routing: RoutingMap | None = None,
        notifiable: Notifiable | None = None,
    ) -> Any:
        """Return the address(es) for *channel_type*.

        An explicit routing entry wins over the notifiable's route. Raises
        InvalidRecipientError when neither yields an address.
        """
        if routing:
            address = self._lookup(routing, channel_type)
            if not _is_empty(address):
                return address

        if notifiable is not None:
            address = notifiable.route_notification_for(channel_type)
            if not _is_empty(address):
                return address

        raise InvalidRecipientError(
            f"No recipient address for channel '{channel_type}'",
            details={
                "channel_type": channel_type,
                "routing_channels": sorted(routing) if routing else [],
                "has_notifiable": notifiable is not None,
            },
        )

    def build_routing_map(
        self, notifiable: Notifiable, channels: Iterable[str]
    ) -> dict[str, Any]:
        """Collect the notifiable's routes, skipping channels it cannot use."""
        routing: dict[str, Any] = {}
        for channel_type in channels:
            address = notifiable.route_notification_for(channel_type)
            if not _is_empty(address):
                routing[channel_type] = address
        return routing

    @staticmethod
    def _lookup(routing: RoutingMap, channel_type: str) -> Any:
        if channel_type in routing:
            return routing[channel_type]
        wanted = channel_type.lower()
        for key, value in routing.items():
            if str(key).lower() == wanted:
                return value
        return None
