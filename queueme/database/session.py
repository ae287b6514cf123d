"""
Database Session Management
============================

Handles database connections and session lifecycle.
"""

import os
from contextlib import contextmanager
from typing import Generator, Optional
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from queueme.config import settings


def create_db_engine(database_url: Optional[str] = None) -> Engine:
    """
    Create and configure the database engine.

    Args:
        database_url: SQLAlchemy URL. Defaults to ``settings.database_url``.
    """
    database_url = database_url or settings.database_url

    # SQLite-specific configuration
    if database_url.startswith("sqlite"):
        in_memory = True
        if ":///" in database_url:
            db_path = database_url.split(":///")[1]
            if db_path and not db_path.startswith(":memory:"):
                in_memory = False
                db_dir = os.path.dirname(db_path)
                if db_dir and not os.path.exists(db_dir):
                    os.makedirs(db_dir, exist_ok=True)

        # In-memory databases live on a single shared connection
        engine_kwargs = {"poolclass": StaticPool} if in_memory else {}
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            echo=settings.app_debug,
            **engine_kwargs
        )

        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            if not in_memory:
                cursor.execute("PRAGMA journal_mode=WAL")
            cursor.close()

    else:
        engine = create_engine(database_url, echo=settings.app_debug, pool_pre_ping=True)

    return engine


def create_session_factory(engine_instance: Engine) -> sessionmaker:
    """
    Build a session factory bound to ``engine_instance``.

    Objects stay readable after commit so services can return the entries
    they just wrote.
    """
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine_instance
    )


# Create global engine and session factory
engine = create_db_engine()
SessionLocal = create_session_factory(engine)


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """
    Context manager for database sessions.

    Usage:
        with get_db_context() as db:
            engine = AdmissionEngine(db)
            engine.join(business_id, "Alice")
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_db() -> Generator[Session, None, None]:
    """
    Per-request session dependency for a routing layer.

    Usage:
        def handler(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_all_tables(engine_instance: Optional[Engine] = None) -> None:
    """Create all tables in the database."""
    from queueme.models.base import create_all_tables as _create

    _create(engine_instance if engine_instance is not None else engine)


def drop_all_tables(engine_instance: Optional[Engine] = None) -> None:
    """Drop all tables in the database."""
    from queueme.models.base import drop_all_tables as _drop

    _drop(engine_instance if engine_instance is not None else engine)
