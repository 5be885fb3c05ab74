import json
import logging

import httpx
import pytest

from herald.channels import (
    Channel,
    ConfiguredChannel,
    InAppChannel,
    InAppSender,
    InMemoryInAppStore,
    LogChannel,
    SlackChannel,
)
from herald.channels.in_app import InAppNotification
from herald.enums import NotificationStatus
from herald.exceptions import (
    ConfigurationError,
    InvalidRecipientError,
    InvalidResponseError,
    ProviderError,
    ValidationError,
)
from herald.models import (
    ChannelResponse,
    InAppRecipient,
    InAppRequest,
    NotificationRequest,
    SlackRequest,
)

WEBHOOK = "https://hooks.slack.com/services/T000/B000/XXXX"


class _ApiChannel(ConfiguredChannel):
    async def send(self, request: NotificationRequest) -> ChannelResponse:
        return ChannelResponse.sent("x")


class TestConfiguredChannel:
    def test_missing_credentials_rejected(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            _ApiChannel(None, "termii", "sms")
        assert "termii" in exc_info.value.message

    def test_dict_config_is_validated(self) -> None:
        channel = _ApiChannel({"api_key": "k", "sender_id": "ACME"}, "termii", "sms")

        assert channel.is_ready()
        assert channel.config.get("sender_id") == "ACME"
        assert channel.get_channel_name() == "termii"
        assert channel.get_channel_type() == "sms"

    def test_satisfies_channel_protocol(self) -> None:
        assert isinstance(_ApiChannel({"api_key": "k"}, "x", "sms"), Channel)


class TestLogChannel:
    @pytest.mark.asyncio
    async def test_logs_and_succeeds(self, caplog: pytest.LogCaptureFixture) -> None:
        channel = LogChannel(channel_type="email")

        with caplog.at_level(logging.INFO, logger="herald.channels.log"):
            response = await channel.send(
                NotificationRequest(to="a@example.com", message="hi", reference="r-1")
            )

        assert response.success is True
        assert response.message_id is not None
        assert response.message_id.startswith("log-")
        assert response.reference == "r-1"
        assert "Notification sent (stub)" in caplog.text

    def test_always_ready(self) -> None:
        channel = LogChannel()
        assert channel.is_ready()
        assert channel.get_channel_type() == "log"


class TestInMemoryInAppStore:
    def test_get_for_user_newest_first(self) -> None:
        store = InMemoryInAppStore()
        first = store.save(InAppNotification(user_id="u1", title="1", message="a"))
        second = store.save(InAppNotification(user_id="u1", title="2", message="b"))
        store.save(InAppNotification(user_id="u2", title="3", message="c"))
        second.created_at = first.created_at.replace(year=first.created_at.year + 1)

        assert [n.id for n in store.get_for_user("u1")] == [second.id, first.id]
        assert [n.id for n in store.get_for_user("u1", limit=1, offset=1)] == [first.id]

    def test_mark_as_read(self) -> None:
        store = InMemoryInAppStore()
        saved = store.save(InAppNotification(user_id="u1", title="t", message="m"))
        assert store.unread_count("u1") == 1

        store.mark_as_read(saved.id)

        assert store.unread_count("u1") == 0
        assert saved.status == NotificationStatus.READ
        assert saved.read_at is not None

    def test_evicts_oldest_when_full(self) -> None:
        store = InMemoryInAppStore(max_size=2)
        oldest = store.save(InAppNotification(user_id="u1", title="1", message="a"))
        store.save(InAppNotification(user_id="u1", title="2", message="b"))
        store.save(InAppNotification(user_id="u1", title="3", message="c"))

        assert len(store) == 2
        assert store.get(oldest.id) is None

    def test_delete_and_clear(self) -> None:
        store = InMemoryInAppStore()
        saved = store.save(InAppNotification(user_id="u1", title="t", message="m"))
        store.delete(saved.id)
        assert store.get(saved.id) is None

        store.save(InAppNotification(user_id="u1", title="t", message="m"))
        store.clear()
        assert len(store) == 0


class TestInAppChannel:
    def test_requires_store(self) -> None:
        with pytest.raises(ConfigurationError):
            InAppChannel()

    def test_is_in_app_sender(self) -> None:
        assert isinstance(InAppChannel(store=InMemoryInAppStore()), InAppSender)

    @pytest.mark.asyncio
    async def test_stores_one_notification_per_recipient(self) -> None:
        store = InMemoryInAppStore()
        channel = InAppChannel(store=store)

        response = await channel.send(
            InAppRequest(
                to=["u1", InAppRecipient(user_id="u2"), {"user_id": "u3"}],
                title="Welcome",
                message="Hello",
            )
        )

        assert response.success is True
        assert len(response.raw["notification_ids"]) == 3
        assert store.unread_count("u2") == 1
        assert store.get(response.message_id).user_id == "u1"

    @pytest.mark.asyncio
    async def test_generic_request_is_converted(self) -> None:
        store = InMemoryInAppStore()
        channel = InAppChannel(store=store)

        await channel.send(NotificationRequest(to="u1", title="T", message="M"))

        assert store.get_for_user("u1")[0].title == "T"

    @pytest.mark.asyncio
    async def test_generic_request_missing_fields(self) -> None:
        channel = InAppChannel(store=InMemoryInAppStore())
        with pytest.raises(ValidationError):
            await channel.send(NotificationRequest(to="u1"))

    @pytest.mark.asyncio
    async def test_invalid_recipient(self) -> None:
        channel = InAppChannel(store=InMemoryInAppStore())
        with pytest.raises(InvalidRecipientError):
            await channel.send(InAppRequest(to=[{"name": "no id"}], title="T", message="M"))

    @pytest.mark.asyncio
    async def test_empty_recipients(self) -> None:
        channel = InAppChannel(store=InMemoryInAppStore())
        with pytest.raises(InvalidRecipientError):
            await channel.send(InAppRequest(to=[], title="T", message="M"))


def _slack(handler, **config: object) -> SlackChannel:  # type: ignore[no-untyped-def]
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SlackChannel({"webhook_url": WEBHOOK, **config}, client=client)


class TestSlackChannel:
    def test_requires_webhook(self) -> None:
        with pytest.raises(ConfigurationError):
            SlackChannel({})

    @pytest.mark.asyncio
    async def test_posts_payload(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text="ok")

        channel = _slack(handler)
        response = await channel.send(
            SlackRequest(text="Deploy finished", channel="#ops", reference="r-2")
        )

        assert response.success is True
        assert response.reference == "r-2"
        assert response.channel_name == "slack"
        assert str(seen[0].url) == WEBHOOK
        assert json.loads(seen[0].content) == {"text": "Deploy finished", "channel": "#ops"}

    @pytest.mark.asyncio
    async def test_routing_url_overrides_config(self) -> None:
        other = "https://hooks.slack.com/services/T111/B111/YYYY"
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text="ok")

        await _slack(handler).send(SlackRequest(to=other, text="hi"))

        assert str(seen[0].url) == other

    @pytest.mark.asyncio
    async def test_message_used_as_text(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text="ok")

        await _slack(handler).send(NotificationRequest(message="from message"))

        assert json.loads(seen[0].content)["text"] == "from message"

    @pytest.mark.asyncio
    async def test_missing_text(self) -> None:
        channel = _slack(lambda request: httpx.Response(200, text="ok"))
        with pytest.raises(ValidationError):
            await channel.send(NotificationRequest(title="only a title"))

    @pytest.mark.asyncio
    async def test_http_error_status(self) -> None:
        channel = _slack(lambda request: httpx.Response(404, text="no_service"))
        with pytest.raises(ProviderError) as exc_info:
            await channel.send(SlackRequest(text="hi"))
        assert exc_info.value.details["status_code"] == 404

    @pytest.mark.asyncio
    async def test_unexpected_body(self) -> None:
        channel = _slack(lambda request: httpx.Response(200, text="maybe"))
        with pytest.raises(InvalidResponseError) as exc_info:
            await channel.send(SlackRequest(text="hi"))
        assert exc_info.value.status_code == 200

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        with pytest.raises(ProviderError, match="timed out"):
            await _slack(handler).send(SlackRequest(text="hi"))

    @pytest.mark.asyncio
    async def test_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(ProviderError):
            await _slack(handler).send(SlackRequest(text="hi"))
