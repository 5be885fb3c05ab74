"""herald: multi-channel notification dispatch."""

from herald.channels import (
    Channel as NotificationChannel,
    ConfiguredChannel,
    InAppChannel,
    InMemoryInAppStore,
    LogChannel,
    SlackChannel,
)
from herald.enums import (
    Channel,
    ChannelType,
    DeliveryStrategy,
    ErrorCode,
    NotificationPriority,
    NotificationStatus,
)
from herald.events import (
    EventDispatcher,
    NotificationFailed,
    NotificationSending,
    NotificationSent,
    get_event_dispatcher,
    set_event_dispatcher,
)
from herald.exceptions import (
    ChannelError,
    ChannelNotFoundError,
    ChannelNotReadyError,
    ConfigurationError,
    InvalidRecipientError,
    InvalidResponseError,
    MissingBuilderError,
    NoDefaultChannelError,
    NotificationError,
    ProviderError,
    SendError,
    ValidationError,
)
from herald.factory import create_manager
from herald.manager import NotificationManager
from herald.models import (
    ChannelConfig,
    ChannelResponse,
    ChannelSettings,
    DeliveryReport,
    ManagerConfig,
    NotificationRequest,
)
from herald.notification import Notification, TemplatedNotification, builds
from herald.registry import ChannelRegistry
from herald.routing import Notifiable, RoutingResolver

__all__ = [
    "Channel",
    "ChannelType",
    "DeliveryStrategy",
    "ErrorCode",
    "NotificationPriority",
    "NotificationStatus",
    "NotificationChannel",
    "ConfiguredChannel",
    "LogChannel",
    "InAppChannel",
    "InMemoryInAppStore",
    "SlackChannel",
    "EventDispatcher",
    "NotificationSending",
    "NotificationSent",
    "NotificationFailed",
    "get_event_dispatcher",
    "set_event_dispatcher",
    "NotificationError",
    "ConfigurationError",
    "ChannelNotFoundError",
    "ChannelNotReadyError",
    "NoDefaultChannelError",
    "MissingBuilderError",
    "ValidationError",
    "InvalidRecipientError",
    "ChannelError",
    "ProviderError",
    "InvalidResponseError",
    "SendError",
    "NotificationManager",
    "ChannelRegistry",
    "RoutingResolver",
    "Notifiable",
    "Notification",
    "TemplatedNotification",
    "builds",
    "ChannelConfig",
    "ChannelSettings",
    "ManagerConfig",
    "NotificationRequest",
    "ChannelResponse",
    "DeliveryReport",
    "create_manager",
]
