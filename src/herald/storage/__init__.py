from herald.storage.base import Base, create_db_engine, create_session_factory
from herald.storage.models import NotificationLog
from herald.storage.recorder import DeliveryLogRecorder
from herald.storage.repository import DeliveryLogRepository, DeliveryLogStore

__all__ = [
    "Base",
    "create_db_engine",
    "create_session_factory",
    "NotificationLog",
    "DeliveryLogRecorder",
    "DeliveryLogRepository",
    "DeliveryLogStore",
]
