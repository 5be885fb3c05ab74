"""Forward delivery outcomes to Kafka."""

import json
import logging
from typing import Any, Self

from confluent_kafka import KafkaError, KafkaException, Message, Producer

from herald.config import KafkaConfig
from herald.events import (
    EventDispatcher,
    NotificationEvent,
    NotificationFailed,
    NotificationSent,
)

logger = logging.getLogger(__name__)


class KafkaEventPublisher:
    """Publishes one status message per channel to the delivery topic.

    Attach it to a dispatcher; messages are keyed by the notification
    reference (or notification class when there is none) so every channel
    of one send lands on the same partition.
    """

    def __init__(self, config: KafkaConfig, producer: Producer | None = None) -> None:
        self._topic = config.delivery_events_topic
        self._producer = producer or Producer({
            "bootstrap.servers": config.bootstrap_servers,
            "client.id": config.client_id,
            "acks": "all",
            "enable.idempotence": True,
            "linger.ms": 5,
        })

    def attach(self, dispatcher: EventDispatcher) -> Self:
        dispatcher.on(NotificationSent, self.publish_event)
        dispatcher.on(NotificationFailed, self.publish_event)
        return self

    def publish_event(self, event: NotificationEvent) -> None:
        notification = event.notification
        key = (notification.reference or type(notification).__name__).encode("utf-8")
        for message in self._messages(event):
            try:
                self._producer.produce(
                    topic=self._topic,
                    key=key,
                    value=json.dumps(message, default=str).encode("utf-8"),
                    on_delivery=self._on_delivery,
                )
            except (BufferError, KafkaException):
                logger.exception(
                    "Failed to enqueue status message",
                    extra={"channel": message["channel"], "reference": notification.reference},
                )
        self._producer.poll(0)

    @staticmethod
    def _messages(event: NotificationEvent) -> list[dict[str, Any]]:
        notification = event.notification
        responses = getattr(event, "responses", {})
        messages = []
        for channel in event.channels:
            response = responses.get(channel)
            message: dict[str, Any] = {
                "event": event.event_name,
                "notification": type(notification).__name__,
                "reference": notification.reference,
                "priority": str(notification.priority),
                "channel": channel,
                "status": str(response.status) if response else "failed",
                "message_id": response.message_id if response else None,
                "error_code": response.error.code if response and response.error else None,
            }
            if isinstance(event, NotificationFailed):
                message["failed_channel"] = event.failed_channel
            messages.append(message)
        return messages

    def flush(self, timeout: float = 10.0) -> int:
        """Flush remaining messages. Returns number of unflushed messages."""
        return self._producer.flush(timeout=timeout)

    def close(self) -> None:
        remaining = self.flush()
        if remaining > 0:
            logger.warning(
                "Publisher closed with unflushed messages",
                extra={"remaining": remaining},
            )

    @staticmethod
    def _on_delivery(err: KafkaError | None, msg: Message) -> None:
        if err is not None:
            logger.error("Kafka delivery failed: %s", err)
