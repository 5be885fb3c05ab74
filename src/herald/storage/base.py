"""Declarative base plus engine and session factories for the delivery log."""

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker


class Base(DeclarativeBase):
    """Base class for herald's ORM models."""


def create_db_engine(dsn: str, *, create_tables: bool = False, **kwargs: object) -> Engine:
    """Create an engine; optionally create the delivery-log tables.

    Pass ``pool_pre_ping=True`` for long-lived worker processes.
    """
    engine = create_engine(dsn, **kwargs)
    if create_tables:
        Base.metadata.create_all(engine)
    return engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Sessions that keep loaded rows usable after commit.

    Listeners open and close a session per event, so rows returned to
    callers must not expire on commit.
    """
    return sessionmaker(bind=engine, expire_on_commit=False)
