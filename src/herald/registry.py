"""Channel registry: named channels, factories, priorities and defaults."""

import logging
import threading
from typing import Self

from herald.channels.base import Channel, ChannelFactory
from herald.exceptions import (
    ChannelNotFoundError,
    ChannelNotReadyError,
    ConfigurationError,
    NoDefaultChannelError,
    NotificationError,
)
from herald.models import ChannelConfig, ChannelSettings, ManagerConfig

logger = logging.getLogger(__name__)


def _key(name: str) -> str:
    return name.strip().lower()


class ChannelRegistry:
    """Single source of truth for which channels exist.

    Names are case-insensitive. Registration order is remembered and breaks
    priority ties during fallback. All mutation happens under a re-entrant
    lock; read methods return copies so a send in progress never observes
    a half-applied change.
    """

    def __init__(self, config: ManagerConfig | None = None) -> None:
        config = config or ManagerConfig()
        self._lock = threading.RLock()
        self._channels: dict[str, Channel] = {}
        self._factories: dict[str, ChannelFactory] = {}
        self._configs: dict[str, ChannelSettings] = {
            entry.name: entry for entry in config.channels
        }
        self._priorities: dict[str, int] = {}
        self._default: str | None = config.default_channel
        self._fallback_enabled = config.enable_fallback

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_factory(self, name: str, factory: ChannelFactory) -> Self:
        """Store *factory* and build the channel if it is configured.

        Construction errors are logged, not raised, so one misconfigured
        channel does not stop the rest from starting.
        """
        key = _key(name)
        with self._lock:
            self._factories[key] = factory
            entry = self._configs.get(key)

        if entry is None or not entry.enabled:
            return self

        try:
            channel = factory(entry.config)
        except Exception:
            logger.exception(
                "Failed to initialize channel",
                extra={"channel": key},
            )
            return self

        self.register_channel(key, channel)
        return self

    def register_channel(
        self, name: str, channel: Channel, *, priority: int | None = None
    ) -> Self:
        """Register an instance directly, replacing any channel of that name."""
        key = _key(name)
        with self._lock:
            if priority is None:
                entry = self._configs.get(key)
                priority = entry.priority if entry is not None else 0
            self._channels[key] = channel
            self._priorities[key] = priority
        logger.debug(
            "Channel registered",
            extra={"channel": key, "priority": priority},
        )
        return self

    def make_channel(self, name: str, config: ChannelConfig | None = None) -> Channel:
        """Build and register a channel from its factory.

        Unlike configuration-driven registration this raises on failure.
        """
        key = _key(name)
        with self._lock:
            factory = self._factories.get(key)
            entry = self._configs.get(key)
            known = sorted(self._factories)
        if factory is None:
            raise ConfigurationError(
                f"No factory registered for channel '{name}'",
                details={"channel_name": name, "factories": known},
            )
        if config is None:
            config = entry.config if entry is not None else ChannelConfig()
        channel = factory(config)
        self.register_channel(key, channel)
        return channel

    def remove_channel(self, name: str) -> Self:
        key = _key(name)
        with self._lock:
            self._channels.pop(key, None)
            self._factories.pop(key, None)
            self._configs.pop(key, None)
            self._priorities.pop(key, None)
            if self._default == key:
                self._default = None
        return self

    def clear(self) -> Self:
        with self._lock:
            self._channels.clear()
            self._factories.clear()
            self._configs.clear()
            self._priorities.clear()
            self._default = None
        return self

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_channel(self, name: str) -> Channel:
        """Return a ready channel.

        Raises ChannelNotFoundError if unregistered and ChannelNotReadyError
        if registered but not ready.
        """
        key = _key(name)
        with self._lock:
            channel = self._channels.get(key)
            available = list(self._channels)

        if channel is None:
            raise ChannelNotFoundError(
                f"Notification channel '{name}' is not registered or enabled",
                details={"channel_name": name, "available_channels": available},
            )
        if not channel.is_ready():
            raise ChannelNotReadyError(
                f"Notification channel '{name}' is not ready. Please check configuration.",
                details={"channel_name": name},
            )
        return channel

    def get_default_channel(self) -> Channel:
        with self._lock:
            default = self._default
            first = next(iter(self._channels.values()), None)
            available = list(self._channels)

        if default is not None:
            return self.get_channel(default)
        if first is not None:
            return first
        raise NoDefaultChannelError(
            "No default channel configured and no channels available",
            details={"available_channels": available},
        )

    def get_channel_with_fallback(self, preferred: str | None = None) -> Channel | None:
        """Resolve a channel: preferred, then default, then by priority.

        With fallback disabled, a failure on the preferred or default
        channel is re-raised. Returns None when nothing usable is found.
        """
        preferred_key = _key(preferred) if preferred else None
        with self._lock:
            default = self._default
            fallback = self._fallback_enabled

        if preferred_key is not None:
            try:
                return self.get_channel(preferred_key)
            except NotificationError:
                if not fallback:
                    raise
                logger.warning(
                    "Preferred channel not available, trying fallback",
                    extra={"channel": preferred_key},
                )

        if default is not None and default != preferred_key:
            try:
                return self.get_channel(default)
            except NotificationError:
                if not fallback:
                    raise
                logger.warning(
                    "Default channel not available, trying fallback",
                    extra={"channel": default},
                )

        if fallback:
            for name, channel in self.get_sorted_channels():
                if name in (preferred_key, default):
                    continue
                if channel.is_ready():
                    logger.warning("Using fallback channel", extra={"channel": name})
                    return channel

        return None

    def get_sorted_channels(self) -> list[tuple[str, Channel]]:
        """Channels by priority descending; ties keep registration order."""
        with self._lock:
            items = list(self._channels.items())
            priorities = dict(self._priorities)
        return sorted(items, key=lambda item: -priorities.get(item[0], 0))

    def get_channels_for_type(self, channel_type: str) -> list[tuple[str, Channel]]:
        """Every channel able to serve *channel_type*, in fallback order.

        The channel registered under the type's own name comes first, then
        other channels reporting that type by priority.
        """
        wanted = _key(channel_type)
        candidates = [
            (name, channel)
            for name, channel in self.get_sorted_channels()
            if name == wanted or _key(channel.get_channel_type()) == wanted
        ]
        candidates.sort(key=lambda item: item[0] != wanted)
        return candidates

    def get_priority(self, name: str) -> int:
        with self._lock:
            return self._priorities.get(_key(name), 0)

    # ------------------------------------------------------------------
    # Defaults and flags
    # ------------------------------------------------------------------

    def set_default_channel(self, name: str) -> Self:
        key = _key(name)
        with self._lock:
            if key not in self._channels:
                raise ChannelNotFoundError(
                    f"Cannot set '{name}' as default channel. Channel not registered.",
                    details={
                        "channel_name": name,
                        "available_channels": list(self._channels),
                    },
                )
            self._default = key
        return self

    @property
    def default_channel_name(self) -> str | None:
        return self._default

    def set_fallback_enabled(self, enabled: bool) -> Self:
        with self._lock:
            self._fallback_enabled = enabled
        return self

    @property
    def fallback_enabled(self) -> bool:
        return self._fallback_enabled

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def get_available_channels(self) -> list[str]:
        with self._lock:
            return list(self._channels)

    def get_ready_channels(self) -> list[str]:
        with self._lock:
            items = list(self._channels.items())
        return [name for name, channel in items if channel.is_ready()]

    def has_channel(self, name: str) -> bool:
        with self._lock:
            return _key(name) in self._channels

    def is_channel_ready(self, name: str) -> bool:
        with self._lock:
            channel = self._channels.get(_key(name))
        return channel is not None and channel.is_ready()

    def __len__(self) -> int:
        with self._lock:
            return len(self._channels)
