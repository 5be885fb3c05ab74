from pydantic_settings import BaseSettings, SettingsConfigDict

from herald.enums import DeliveryStrategy
from herald.models import ChannelSettings, ManagerConfig


class HeraldSettings(BaseSettings):
    """Manager settings read from ``HERALD_*`` variables.

    ``HERALD_CHANNELS`` is a JSON list, e.g.
    ``[{"name": "slack", "priority": 5, "config": {"webhook_url": "..."}}]``.
    """

    model_config = SettingsConfigDict(env_prefix="HERALD_")

    log_level: str = "INFO"
    default_channel: str | None = None
    enable_fallback: bool = False
    strategy: DeliveryStrategy = DeliveryStrategy.ALL_OR_NOTHING
    channels: list[ChannelSettings] = []

    # Worker-side collaborators.
    record_deliveries: bool = False
    publish_events: bool = False
    retry_backoff_seconds: list[int] = [60, 300, 900]

    def to_manager_config(self) -> ManagerConfig:
        return ManagerConfig(
            default_channel=self.default_channel,
            enable_fallback=self.enable_fallback,
            strategy=self.strategy,
            channels=self.channels,
        )


class DatabaseConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="HERALD_DB_")

    dsn: str = "sqlite:///herald.db"
    echo: bool = False


class CeleryConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="CELERY_")

    broker_url: str = "redis://localhost:6379/0"
    result_backend: str | None = None
    default_queue: str = "normal"


class KafkaConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="KAFKA_")

    bootstrap_servers: str = "localhost:9092"
    delivery_events_topic: str = "notification.delivery"
    client_id: str = "herald"
