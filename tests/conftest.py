"""Shared fixtures for herald unit tests."""

from collections.abc import Generator
from unittest.mock import MagicMock

import pytest
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from herald.events import EventDispatcher, set_event_dispatcher
from herald.manager import NotificationManager
from herald.models import ManagerConfig
from herald.storage.base import Base
from tests.helpers import FakeChannel


@pytest.fixture()
def dispatcher() -> EventDispatcher:
    return EventDispatcher()


@pytest.fixture(autouse=True)
def _reset_default_dispatcher() -> Generator[None, None, None]:
    """Keep the process-wide dispatcher from leaking between tests."""
    yield
    set_event_dispatcher(None)


@pytest.fixture()
def email_channel() -> FakeChannel:
    return FakeChannel("email", "email")


@pytest.fixture()
def sms_channel() -> FakeChannel:
    return FakeChannel("sms", "sms")


@pytest.fixture()
def manager(
    dispatcher: EventDispatcher,
    email_channel: FakeChannel,
    sms_channel: FakeChannel,
) -> NotificationManager:
    """Manager with ready email and sms fakes, all-or-nothing strategy."""
    mgr = NotificationManager(ManagerConfig(), dispatcher=dispatcher)
    mgr.register_channel("email", email_channel)
    mgr.register_channel("sms", sms_channel)
    return mgr


@pytest.fixture(scope="session")
def db_engine() -> Engine:
    """Create a single in-memory SQLite engine for the test session."""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture()
def db_session(db_engine: Engine) -> Generator[Session, None, None]:
    """Transactional session that rolls back after each test."""
    connection = db_engine.connect()
    transaction = connection.begin()
    session = Session(bind=connection)

    yield session

    session.close()
    if transaction.is_active:
        transaction.rollback()
    connection.close()


@pytest.fixture()
def session_factory(db_session: Session) -> MagicMock:
    """Session factory that always returns the test session.

    ``with session_factory() as session:`` yields the transactional test
    session, so rows written by listeners are visible to assertions.
    """
    factory = MagicMock(spec=sessionmaker)
    ctx = MagicMock()
    ctx.__enter__ = MagicMock(return_value=db_session)
    ctx.__exit__ = MagicMock(return_value=False)
    factory.return_value = ctx
    return factory
