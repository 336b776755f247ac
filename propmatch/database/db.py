"""Database connection and session management."""

from __future__ import annotations

import logging
from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from propmatch.core.config import get_config

logger = logging.getLogger(__name__)

config = get_config()
DATABASE_URL = config.DATABASE_URL


def _enable_sqlite_savepoints(engine: Engine) -> None:
    """Let SQLAlchemy own BEGIN so SAVEPOINT works on pysqlite."""

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def build_engine(database_url: str) -> Engine:
    if database_url.startswith("sqlite"):
        sqlite_engine = create_engine(
            database_url,
            echo=config.DEBUG and config.LOG_LEVEL == "DEBUG",
            connect_args={"check_same_thread": False},
        )
        _enable_sqlite_savepoints(sqlite_engine)
        return sqlite_engine
    return create_engine(
        database_url,
        echo=config.DEBUG and config.LOG_LEVEL == "DEBUG",
        pool_pre_ping=True,
        pool_recycle=3600,
        pool_size=10,
        max_overflow=20,
    )


def _configure_engine(database_url: str) -> None:
    global DATABASE_URL, engine, SessionLocal
    DATABASE_URL = database_url
    engine = build_engine(database_url)
    SessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
    )


_configure_engine(DATABASE_URL)


def get_engine() -> Engine:
    """Return the active SQLAlchemy engine."""
    return engine


def get_session_factory() -> sessionmaker[Session]:
    """Return the active session factory."""
    return SessionLocal


def reset_engine(database_url: str | None = None) -> None:
    """Rebind engine/sessionmaker to the given URL (or current active URL)."""
    _configure_engine(database_url or DATABASE_URL)


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """Context-manager wrapper for safe DB session lifecycle."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_schema() -> None:
    """Create all tables on the active engine."""
    from propmatch.models import Base

    Base.metadata.create_all(bind=engine)


def verify_database_connection() -> bool:
    """Verify DB connectivity during startup."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception:  # pragma: no cover - exercised in deployment.
        logger.exception("database.connection_failed", extra={"event": "database.connection_failed"})
        return False
