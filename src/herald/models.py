"""Request, response and configuration records."""

from collections.abc import Iterator, Mapping
from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from herald.enums import DeliveryStrategy, NotificationPriority, NotificationStatus


class ErrorInfo(BaseModel):
    code: str
    message: str
    details: Any = None


# ---------------------------------------------------------------------------
# Recipients
# ---------------------------------------------------------------------------


class EmailAddress(BaseModel):
    email: EmailStr
    name: str | None = None


class SmsRecipient(BaseModel):
    phone: str
    name: str | None = None


class PushRecipient(BaseModel):
    device_token: str
    user_id: str | None = None
    platform: Literal["ios", "android", "web"] | None = None


class InAppRecipient(BaseModel):
    user_id: str
    email: str | None = None


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class NotificationRequest(BaseModel):
    """Fields every channel request carries.

    ``to`` holds whatever the routing map (or the notifiable) resolved for
    the channel; channels interpret it. Unknown fields are kept so custom
    channels can receive arbitrary builder output.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    to: Any = None
    title: str | None = None
    message: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    priority: NotificationPriority = NotificationPriority.NORMAL
    reference: str | None = None


class EmailRequest(NotificationRequest):
    subject: str
    from_: EmailAddress | None = Field(default=None, alias="from")
    text: str | None = None
    html: str | None = None
    cc: list[EmailAddress] = Field(default_factory=list)
    bcc: list[EmailAddress] = Field(default_factory=list)
    reply_to: EmailAddress | None = None


class SmsRequest(NotificationRequest):
    text: str
    sender: str | None = None


class PushRequest(NotificationRequest):
    title: str
    body: str
    data: dict[str, Any] = Field(default_factory=dict)
    image_url: str | None = None
    sound: str | None = None
    badge: int | None = None


class InAppRequest(NotificationRequest):
    title: str
    message: str
    type: str | None = None
    action_url: str | None = None
    icon: str | None = None


class SlackRequest(NotificationRequest):
    text: str
    blocks: list[dict[str, Any]] | None = None
    channel: str | None = None
    username: str | None = None
    icon_emoji: str | None = None


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class ChannelResponse(BaseModel):
    """Uniform per-channel outcome, whatever provider produced it."""

    success: bool
    status: NotificationStatus
    message_id: str | None = None
    reference: str | None = None
    sent_at: datetime | None = None
    channel_name: str | None = None
    error: ErrorInfo | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    raw: Any = None

    @classmethod
    def sent(
        cls,
        message_id: str,
        *,
        reference: str | None = None,
        channel_name: str | None = None,
        status: NotificationStatus = NotificationStatus.SENT,
        **extra: Any,
    ) -> "ChannelResponse":
        return cls(
            success=True,
            status=status,
            message_id=message_id,
            reference=reference,
            channel_name=channel_name,
            sent_at=datetime.now(timezone.utc),
            **extra,
        )

    @classmethod
    def failure(
        cls,
        error: ErrorInfo,
        *,
        reference: str | None = None,
        channel_name: str | None = None,
    ) -> "ChannelResponse":
        return cls(
            success=False,
            status=NotificationStatus.FAILED,
            reference=reference,
            channel_name=channel_name,
            error=error,
        )


class DeliveryReport(Mapping[str, ChannelResponse]):
    """Per-channel responses of one ``send()`` call, keyed by channel type."""

    def __init__(
        self,
        responses: Mapping[str, ChannelResponse],
        strategy: DeliveryStrategy,
        reference: str | None = None,
    ) -> None:
        self._responses = dict(responses)
        self.strategy = strategy
        self.reference = reference

    def __getitem__(self, channel: str) -> ChannelResponse:
        return self._responses[channel]

    def __iter__(self) -> Iterator[str]:
        return iter(self._responses)

    def __len__(self) -> int:
        return len(self._responses)

    @property
    def succeeded(self) -> list[str]:
        return [ch for ch, resp in self._responses.items() if resp.success]

    @property
    def failed(self) -> list[str]:
        return [ch for ch, resp in self._responses.items() if not resp.success]

    @property
    def errors(self) -> dict[str, ErrorInfo]:
        return {
            ch: resp.error
            for ch, resp in self._responses.items()
            if resp.error is not None
        }

    @property
    def status(self) -> Literal["success", "partial", "failed"]:
        if not self.failed:
            return "success"
        if not self.succeeded:
            return "failed"
        return "partial"

    def __repr__(self) -> str:
        return (
            f"DeliveryReport(status={self.status!r}, "
            f"succeeded={self.succeeded!r}, failed={self.failed!r})"
        )


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ChannelConfig(BaseModel):
    """Provider settings. Extra keys are provider-specific and kept as-is."""

    model_config = ConfigDict(extra="allow")

    api_key: str | None = None
    secret_key: str | None = None
    base_url: str | None = None
    timeout: float | None = None
    debug: bool = False

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key or self.secret_key)

    def get(self, key: str, default: Any = None) -> Any:
        """Read a declared or provider-specific field."""
        if key in type(self).model_fields:
            return getattr(self, key)
        return (self.model_extra or {}).get(key, default)


class ChannelSettings(BaseModel):
    name: str
    enabled: bool = True
    priority: int = 0
    config: ChannelConfig = Field(default_factory=ChannelConfig)

    @field_validator("name")
    @classmethod
    def _normalize_name(cls, value: str) -> str:
        value = value.strip().lower()
        if not value:
            raise ValueError("Channel name must not be empty")
        return value


class ManagerConfig(BaseModel):
    default_channel: str | None = None
    enable_fallback: bool = False
    strategy: DeliveryStrategy = DeliveryStrategy.ALL_OR_NOTHING
    channels: list[ChannelSettings] = Field(default_factory=list)

    @field_validator("default_channel")
    @classmethod
    def _normalize_default(cls, value: str | None) -> str | None:
        return value.strip().lower() if value else None
