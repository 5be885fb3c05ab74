"""Channel contract and the built-in reference channels."""

from herald.channels.base import (
    Channel,
    ChannelFactory,
    ConfiguredChannel,
    EmailSender,
    InAppSender,
    PushSender,
    SmsSender,
)
from herald.channels.in_app import InAppChannel, InAppNotification, InMemoryInAppStore
from herald.channels.log import LogChannel
from herald.channels.slack import SlackChannel

__all__ = [
    "Channel",
    "ChannelFactory",
    "ConfiguredChannel",
    "EmailSender",
    "SmsSender",
    "PushSender",
    "InAppSender",
    "LogChannel",
    "InAppChannel",
    "InAppNotification",
    "InMemoryInAppStore",
    "SlackChannel",
]
