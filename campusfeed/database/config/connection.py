"""
SQLAlchemy engine and session wiring.

The relational store is the only durable shared state; conflicting writes
are serialized by the database itself (unique constraints, per-statement
transactions), so no application-level locking lives here.
"""

from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool


class Base(DeclarativeBase):
    """Declarative base shared by all ORM entities."""


def build_engine(database_url: str) -> Engine:
    """Create an engine for ``database_url``.

    SQLite connections get ``PRAGMA foreign_keys=ON`` so that the
    ``ON DELETE CASCADE`` from posts/sessions to accounts is enforced.
    An in-memory SQLite URL shares one connection across threads.
    """
    kwargs = {}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False, "timeout": 30}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool

    engine = create_engine(database_url, **kwargs)

    if engine.dialect.name == "sqlite":
        @event.listens_for(engine, "connect")
        def _enable_sqlite_fks(dbapi_connection, _):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Create all tables that do not exist yet."""
    # Entities must be imported so they are registered on Base.metadata.
    from campusfeed.database import entities  # noqa: F401

    Base.metadata.create_all(bind=engine)


def session_scope(factory: sessionmaker) -> Iterator[Session]:
    """Yield a session and always close it afterwards."""
    db = factory()
    try:
        yield db
    finally:
        db.close()
