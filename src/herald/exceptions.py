"""Exception hierarchy shared by the dispatcher and every channel.

Each exception carries a stable ``code`` from :class:`ErrorCode` and an
optional ``details`` payload. Channels translate vendor failures into
:class:`ProviderError` / :class:`InvalidResponseError` instead of letting
SDK or HTTP client exceptions escape.
"""

from typing import TYPE_CHECKING, Any

from herald.enums import ErrorCode

if TYPE_CHECKING:
    from herald.models import ErrorInfo


class NotificationError(Exception):
    """Base class for all notification errors."""

    default_code: ErrorCode = ErrorCode.UNKNOWN_ERROR

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details

    def to_error_info(self) -> "ErrorInfo":
        from herald.models import ErrorInfo

        return ErrorInfo(code=self.code, message=self.message, details=self.details)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class ConfigurationError(NotificationError):
    """Missing or invalid channel / manager configuration."""

    default_code = ErrorCode.CONFIGURATION_ERROR


class ChannelNotFoundError(ConfigurationError):
    default_code = ErrorCode.CHANNEL_NOT_FOUND


class ChannelNotReadyError(ConfigurationError):
    default_code = ErrorCode.CHANNEL_NOT_READY


class NoDefaultChannelError(ConfigurationError):
    """No default configured and the registry is empty."""


class MissingBuilderError(ConfigurationError):
    """A notification routes to a channel it has no content builder for."""


class ValidationError(NotificationError):
    """Malformed request or notification."""

    default_code = ErrorCode.INVALID_REQUEST


class InvalidRecipientError(ValidationError):
    default_code = ErrorCode.INVALID_RECIPIENT


class ChannelError(NotificationError):
    """Generic per-channel failure."""

    default_code = ErrorCode.CHANNEL_ERROR


class ProviderError(ChannelError):
    """Upstream vendor rejected or failed the request."""

    default_code = ErrorCode.PROVIDER_ERROR


class InvalidResponseError(ProviderError):
    """Vendor replied with a payload that could not be interpreted."""

    default_code = ErrorCode.INVALID_RESPONSE

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(message, details=details)
        self.status_code = status_code


class SendError(NotificationError):
    """Aggregate failure raised by the all-or-nothing strategy.

    ``failures`` maps each failed channel type to its error, in the order
    the notification declared its channels.
    """

    default_code = ErrorCode.SEND_FAILED

    def __init__(
        self,
        message: str,
        failures: dict[str, NotificationError] | None = None,
        failed_channel: str | None = None,
    ) -> None:
        self.failures = dict(failures or {})
        self.failed_channel = failed_channel
        super().__init__(
            message,
            details={
                "failed_channel": failed_channel,
                "errors": {
                    channel: {"code": err.code, "message": err.message}
                    for channel, err in self.failures.items()
                },
            },
        )
