"""Tests for environment-driven settings."""

import os
from unittest.mock import patch

from herald.config import CeleryConfig, DatabaseConfig, HeraldSettings, KafkaConfig
from herald.enums import DeliveryStrategy


class TestHeraldSettings:
    def test_defaults(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            settings = HeraldSettings()

        assert settings.strategy == DeliveryStrategy.ALL_OR_NOTHING
        assert settings.enable_fallback is False
        assert settings.channels == []
        assert settings.retry_backoff_seconds == [60, 300, 900]

    def test_reads_prefixed_env(self) -> None:
        env = {
            "HERALD_STRATEGY": "best-effort",
            "HERALD_ENABLE_FALLBACK": "true",
            "HERALD_DEFAULT_CHANNEL": " Email ",
            "HERALD_CHANNELS": (
                '[{"name": "Slack", "priority": 5,'
                ' "config": {"webhook_url": "https://hooks.example.com/x"}}]'
            ),
        }
        with patch.dict(os.environ, env, clear=True):
            settings = HeraldSettings()

        assert settings.strategy == DeliveryStrategy.BEST_EFFORT
        assert settings.enable_fallback is True
        assert settings.channels[0].name == "slack"
        assert settings.channels[0].priority == 5
        assert settings.channels[0].config.get("webhook_url") == "https://hooks.example.com/x"

        config = settings.to_manager_config()
        assert config.default_channel == "email"
        assert config.strategy == DeliveryStrategy.BEST_EFFORT
        assert config.channels == settings.channels


class TestServiceConfigs:
    def test_database(self) -> None:
        with patch.dict(os.environ, {"HERALD_DB_DSN": "postgresql://db/herald"}, clear=True):
            assert DatabaseConfig().dsn == "postgresql://db/herald"

    def test_celery_defaults(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            config = CeleryConfig()
        assert config.broker_url == "redis://localhost:6379/0"
        assert config.default_queue == "normal"

    def test_kafka(self) -> None:
        with patch.dict(os.environ, {"KAFKA_BOOTSTRAP_SERVERS": "kafka:9092"}, clear=True):
            config = KafkaConfig()
        assert config.bootstrap_servers == "kafka:9092"
        assert config.delivery_events_topic == "notification.delivery"
