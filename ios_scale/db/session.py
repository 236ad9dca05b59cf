"""Database session management and connection configuration."""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ios_scale import config
from ios_scale.db.models import Base


def get_database_url() -> str:
    """Get database URL from the environment (IOS_SCALE_DATABASE_URL).

    Returns:
        Database URL string, defaulting to a local SQLite file
    """
    config.load_env_file()
    return config.get_database_url()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_engine(url: str | None = None, echo: bool = False) -> Engine:
    """Create and return SQLAlchemy engine.

    Args:
        url: Database URL. If None, read from the environment.
        echo: If True, log all SQL statements

    Returns:
        SQLAlchemy engine instance
    """
    url = url or get_database_url()
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection so every session sees the same database
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, echo=echo, **kwargs)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine
    return create_engine(url, echo=echo, pool_pre_ping=True)


def init_db(engine: Engine | None = None) -> None:
    """Initialize database by creating all tables.

    Args:
        engine: SQLAlchemy engine. If None, creates new engine.
    """
    if engine is None:
        engine = get_engine()
    Base.metadata.create_all(engine)


@contextmanager
def get_session(engine: Engine | None = None) -> Generator[Session, None, None]:
    """Context manager for database sessions.

    Commits on success and rolls back on any exception.

    Args:
        engine: SQLAlchemy engine. If None, creates new engine.

    Yields:
        Database session

    Example:
        >>> with get_session(engine) as session:
        ...     record = session.get(SessionRecord, session_id)
    """
    if engine is None:
        engine = get_engine()

    SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
