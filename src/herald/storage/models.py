"""ORM model for per-channel delivery records."""

import datetime
import uuid
from typing import Any

import sqlalchemy as sa
from sqlalchemy import DateTime, Integer, String, Text, Uuid, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from herald.enums import NotificationPriority, NotificationStatus
from herald.storage.base import Base

# JSONB on PostgreSQL, plain JSON on SQLite and the rest.
JSONDocument = sa.JSON().with_variant(JSONB(), "postgresql")


class NotificationLog(Base):
    """One row per channel attempt of a ``send()``."""

    __tablename__ = "notification_logs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    notification: Mapped[str] = mapped_column(String(128), nullable=False)
    reference: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    channel: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    channel_name: Mapped[str | None] = mapped_column(String(64), nullable=True)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=NotificationStatus.PENDING, index=True
    )
    priority: Mapped[str] = mapped_column(
        String(16), nullable=False, default=NotificationPriority.NORMAL
    )
    message_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    error_code: Mapped[str | None] = mapped_column(String(64), nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    # `metadata` is reserved on declarative classes.
    extra: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSONDocument, nullable=False, default=dict
    )
    sent_at: Mapped[datetime.datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), index=True
    )

    def __repr__(self) -> str:
        return (
            f"NotificationLog(channel={self.channel!r}, status={self.status!r}, "
            f"reference={self.reference!r})"
        )
