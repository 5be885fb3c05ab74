from enum import StrEnum
from typing import NewType

# Channel types are plain strings so custom channels need no registration.
ChannelType = NewType("ChannelType", str)


class Channel:
    """Well-known channel type names."""

    EMAIL = ChannelType("email")
    SMS = ChannelType("sms")
    PUSH = ChannelType("push")
    IN_APP = ChannelType("in_app")
    SLACK = ChannelType("slack")
    WHATSAPP = ChannelType("whatsapp")
    DATABASE = ChannelType("database")


KNOWN_CHANNEL_TYPES: frozenset[str] = frozenset({
    Channel.EMAIL,
    Channel.SMS,
    Channel.PUSH,
    Channel.IN_APP,
    Channel.SLACK,
    Channel.WHATSAPP,
    Channel.DATABASE,
})


class NotificationPriority(StrEnum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class NotificationStatus(StrEnum):
    PENDING = "pending"
    SENT = "sent"
    DELIVERED = "delivered"
    FAILED = "failed"
    READ = "read"


class DeliveryStrategy(StrEnum):
    ALL_OR_NOTHING = "all-or-nothing"
    BEST_EFFORT = "best-effort"


class ErrorCode(StrEnum):
    CONFIGURATION_ERROR = "NOTIFICATION_CONFIGURATION_ERROR"
    CHANNEL_NOT_FOUND = "NOTIFICATION_CHANNEL_NOT_FOUND"
    CHANNEL_NOT_READY = "NOTIFICATION_CHANNEL_NOT_READY"
    CHANNEL_ERROR = "NOTIFICATION_CHANNEL_ERROR"
    INVALID_REQUEST = "NOTIFICATION_INVALID_REQUEST"
    INVALID_RECIPIENT = "NOTIFICATION_INVALID_RECIPIENT"
    PROVIDER_ERROR = "NOTIFICATION_PROVIDER_ERROR"
    INVALID_RESPONSE = "NOTIFICATION_INVALID_RESPONSE"
    SEND_FAILED = "NOTIFICATION_SEND_FAILED"
    UNKNOWN_ERROR = "NOTIFICATION_UNKNOWN_ERROR"
