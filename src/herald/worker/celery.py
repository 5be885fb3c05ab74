"""Celery application for the herald worker."""

import logging

from celery import Celery, signals
from kombu import Queue

from herald.config import CeleryConfig, DatabaseConfig, HeraldSettings, KafkaConfig
from herald.events import get_event_dispatcher
from herald.factory import create_manager
from herald.log import setup_logging
from herald.publishing import KafkaEventPublisher
from herald.queue import PRIORITY_QUEUES
from herald.storage import DeliveryLogRecorder, create_db_engine, create_session_factory

logger = logging.getLogger(__name__)

celery_config = CeleryConfig()

app = Celery(
    "herald",
    broker=celery_config.broker_url,
    backend=celery_config.result_backend,
)

app.conf.update(
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_queues=[Queue(name) for name in PRIORITY_QUEUES.values()],
    task_default_queue=celery_config.default_queue,
    # Notifications are enqueued as pickled objects.
    task_serializer="pickle",
    accept_content=["pickle", "json"],
)

app.autodiscover_tasks(["herald.worker"])


@signals.worker_init.connect
def _init_worker(**_kwargs: object) -> None:
    """Build the manager and its listeners once per worker process."""
    settings = HeraldSettings()
    setup_logging(settings.log_level, static_fields={"service": "herald-worker"})

    dispatcher = get_event_dispatcher()
    manager = create_manager(settings, dispatcher=dispatcher)

    if settings.record_deliveries:
        db_config = DatabaseConfig()
        engine = create_db_engine(
            db_config.dsn, create_tables=True, echo=db_config.echo, pool_pre_ping=True
        )
        DeliveryLogRecorder(create_session_factory(engine)).attach(dispatcher)

    publisher: KafkaEventPublisher | None = None
    if settings.publish_events:
        publisher = KafkaEventPublisher(KafkaConfig()).attach(dispatcher)

    app.conf.update(
        _manager=manager,
        _publisher=publisher,
        _retry_backoff=settings.retry_backoff_seconds,
    )
    logger.info(
        "Worker initialized",
        extra={"channels": manager.get_available_channels()},
    )


@signals.worker_shutdown.connect
def _shutdown_worker(**_kwargs: object) -> None:
    """Flush pending Kafka messages on shutdown."""
    publisher: KafkaEventPublisher | None = getattr(app.conf, "_publisher", None)
    if publisher is not None:
        publisher.close()
    logger.info("Worker shut down")
