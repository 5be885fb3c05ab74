"""Slack channel using incoming webhooks."""

import logging
import uuid
from typing import Any

import httpx

from herald.channels.base import ConfiguredChannel
from herald.enums import Channel
from herald.exceptions import (
    ConfigurationError,
    InvalidResponseError,
    ProviderError,
    ValidationError,
)
from herald.models import ChannelConfig, ChannelResponse, NotificationRequest, SlackRequest

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT_SECONDS = 10.0


class SlackChannel(ConfiguredChannel):
    """Posts messages to a Slack incoming webhook.

    The webhook comes from ``config.webhook_url``; a routing entry that is
    itself a ``https://hooks.slack.com/...`` URL overrides it per message.
    """

    def __init__(
        self,
        config: ChannelConfig | dict[str, Any] | None,
        channel_name: str = "slack",
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(config, channel_name, Channel.SLACK)
        self._client = client

    def validate_config(self) -> None:
        if not self.config.get("webhook_url"):
            raise ConfigurationError(
                f"{self.get_channel_name()}: webhook_url is required",
                details={"channel_name": self.get_channel_name()},
            )

    def is_ready(self) -> bool:
        return bool(self.config.get("webhook_url"))

    async def send(self, request: NotificationRequest) -> ChannelResponse:
        return await self.send_slack(self._to_slack_request(request))

    async def send_slack(self, request: SlackRequest) -> ChannelResponse:
        url = self._webhook_for(request.to)
        payload: dict[str, Any] = {"text": request.text}
        if request.blocks:
            payload["blocks"] = request.blocks
        if request.channel:
            payload["channel"] = request.channel
        if request.username:
            payload["username"] = request.username
        if request.icon_emoji:
            payload["icon_emoji"] = request.icon_emoji

        try:
            response = await self._post(url, payload)
        except httpx.TimeoutException as exc:
            raise ProviderError(
                "Slack webhook timed out",
                details={"channel_name": self.get_channel_name()},
            ) from exc
        except httpx.HTTPError as exc:
            raise ProviderError(
                f"Slack webhook request failed: {exc}",
                details={"channel_name": self.get_channel_name()},
            ) from exc

        if response.status_code >= 400:
            raise ProviderError(
                f"Slack webhook returned HTTP {response.status_code}",
                details={"status_code": response.status_code, "body": response.text},
            )
        if response.text.strip() != "ok":
            raise InvalidResponseError(
                "Unexpected Slack webhook response",
                status_code=response.status_code,
                details={"body": response.text},
            )

        return ChannelResponse.sent(
            f"slack-{uuid.uuid4().hex}",
            reference=request.reference,
            channel_name=self.get_channel_name(),
            raw={"status_code": response.status_code},
        )

    async def _post(self, url: str, payload: dict[str, Any]) -> httpx.Response:
        timeout = self.config.timeout or _DEFAULT_TIMEOUT_SECONDS
        if self._client is not None:
            return await self._client.post(url, json=payload, timeout=timeout)
        async with httpx.AsyncClient(timeout=timeout) as client:
            return await client.post(url, json=payload)

    def _webhook_for(self, to: Any) -> str:
        if isinstance(to, str) and to.startswith("https://hooks.slack.com/"):
            return to
        return str(self.config.get("webhook_url"))

    @staticmethod
    def _to_slack_request(request: NotificationRequest) -> SlackRequest:
        if isinstance(request, SlackRequest):
            return request
        data = request.model_dump(by_alias=True)
        text = data.get("text") or data.get("message") or data.get("body")
        if not text:
            raise ValidationError("Slack notification requires text")
        data["text"] = text
        return SlackRequest.model_validate(data)
