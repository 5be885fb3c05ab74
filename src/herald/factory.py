"""Composition root: a ready-to-use manager from settings."""

from collections.abc import Mapping

from herald.channels import InAppChannel, InMemoryInAppStore, LogChannel, SlackChannel
from herald.channels.base import ChannelFactory
from herald.channels.in_app import InAppStore
from herald.config import HeraldSettings
from herald.events import EventDispatcher, get_event_dispatcher
from herald.manager import NotificationManager
from herald.models import ChannelConfig


def default_factories(in_app_store: InAppStore | None = None) -> dict[str, ChannelFactory]:
    """Factories for the channels herald ships with.

    ``log`` serves the type named by its ``channel_type`` config key, so a
    config entry such as ``{"name": "log", "config": {"channel_type":
    "email"}}`` stands in for a real email provider.
    """
    store = in_app_store or InMemoryInAppStore()

    def make_log(config: ChannelConfig) -> LogChannel:
        return LogChannel(config, channel_type=config.get("channel_type", "log"))

    def make_in_app(config: ChannelConfig) -> InAppChannel:
        return InAppChannel(config, store=store)

    return {
        "log": make_log,
        "in_app": make_in_app,
        "slack": SlackChannel,
    }


def create_manager(
    settings: HeraldSettings | None = None,
    *,
    dispatcher: EventDispatcher | None = None,
    factories: Mapping[str, ChannelFactory] | None = None,
    in_app_store: InAppStore | None = None,
) -> NotificationManager:
    """Build a manager and register every known factory.

    Configured channels are instantiated as their factories register;
    extra ``factories`` override the built-in ones of the same name.
    """
    settings = settings or HeraldSettings()
    manager = NotificationManager(
        settings.to_manager_config(),
        dispatcher=dispatcher or get_event_dispatcher(),
    )
    all_factories = {**default_factories(in_app_store), **(factories or {})}
    for name, factory in all_factories.items():
        manager.register_factory(name, factory)
    return manager
