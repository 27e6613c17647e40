"""Database configuration and session management."""

from contextlib import contextmanager

from sqlalchemy import create_engine, delete, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel

from task_runner.core.config import settings

_engine = None
_session_maker = None


def get_engine():
    """Get or create the engine."""
    global _engine, _session_maker

    if _engine is None:
        database_url = settings.database_url

        engine_kwargs = {}
        if settings.env == "test":
            engine_kwargs["poolclass"] = NullPool
        if database_url.startswith("sqlite"):
            # Sync routes run in a threadpool
            engine_kwargs["connect_args"] = {"check_same_thread": False}

        _engine = create_engine(
            database_url,
            echo=False,
            pool_pre_ping=True,
            **engine_kwargs,
        )

        if database_url.startswith("sqlite"):
            event.listen(_engine, "connect", _register_sqlite_functions)

        _session_maker = sessionmaker(
            bind=_engine,
            class_=Session,
            expire_on_commit=False,
            autocommit=False,
            autoflush=False,
        )

    return _engine


def _register_sqlite_functions(dbapi_connection, connection_record) -> None:
    # SQLite's built-in lower() only folds ASCII
    dbapi_connection.create_function(
        "lower", 1, _unicode_lower, deterministic=True
    )


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


@contextmanager
def get_session():
    """Get database session."""
    get_engine()  # Ensure engine is initialized

    with _session_maker() as session:
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


def create_tables() -> None:
    """Create all database tables."""
    # Register table metadata before create_all
    import task_runner.models.records  # noqa: F401

    engine = get_engine()
    SQLModel.metadata.create_all(engine)


def clean_database() -> None:
    """Delete all rows, children first."""
    with get_session() as session:
        for table in reversed(SQLModel.metadata.sorted_tables):
            session.execute(delete(table))


def close_db() -> None:
    """Close database connections."""
    global _engine, _session_maker

    if _engine:
        _engine.dispose()
        _engine = None
        _session_maker = None
