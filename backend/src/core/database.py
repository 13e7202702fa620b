# pyright: reportMissingTypeStubs=false
"""
Database engine, sessions and the declarative base.

Production runs on PostgreSQL. SQLite URLs are accepted too (tests and local
experiments); for those, foreign keys are switched on per connection so
cascades and references behave like they do on PostgreSQL.
"""

import logging
from contextlib import contextmanager
from typing import Any, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from core.config import DATABASE_URL
from core.constants import DB_POOL_RECYCLE_SECONDS
from core.exceptions import CareTeamError

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):  # type: ignore
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_database_engine(url: str, **engine_options: Any) -> Engine:
    """
    Build an engine for the given URL.

    Args:
        url: SQLAlchemy database URL
        **engine_options: Passed to create_engine, overriding the defaults

    Returns:
        Engine; SQLite engines enforce foreign keys
    """
    if url.startswith("sqlite"):
        options: dict = {"connect_args": {"check_same_thread": False}}
    else:
        options = {"pool_pre_ping": True, "pool_recycle": DB_POOL_RECYCLE_SECONDS}
    options.update(engine_options)

    engine = create_engine(url, echo=False, **options)
    if engine.dialect.name == "sqlite":
        _enable_sqlite_foreign_keys(engine)
    return engine


def create_session_factory(bind: Engine) -> sessionmaker:
    """Sessions that keep loaded attributes after commit, so services can return committed rows."""
    return sessionmaker(bind=bind, autocommit=False, autoflush=False, expire_on_commit=False)


engine = create_database_engine(DATABASE_URL)
SessionLocal = create_session_factory(engine)


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


# Fill created_at/updated_at in UTC when the caller did not set them
@event.listens_for(Base, "before_insert", propagate=True)  # type: ignore
def receive_before_insert(mapper, connection, target):  # type: ignore
    # Import here to avoid circular import
    from utils.datetime_utils import utc_now
    now = utc_now()
    for column_name in ("created_at", "updated_at"):
        if column_name in mapper.columns and getattr(target, column_name, None) is None:  # type: ignore
            setattr(target, column_name, now)  # type: ignore


@event.listens_for(Base, "before_update", propagate=True)  # type: ignore
def receive_before_update(mapper, connection, target):  # type: ignore
    from utils.datetime_utils import utc_now
    if "updated_at" in mapper.columns:  # type: ignore
        setattr(target, "updated_at", utc_now())  # type: ignore


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency yielding one session per request.

    Services commit their own units of work; anything left uncommitted when
    the request fails is rolled back here. Care-team errors are expected
    outcomes and are not logged as failures.
    """
    db = SessionLocal()
    try:
        yield db
    except CareTeamError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        logger.exception(f"Database error: {e}")
        db.rollback()
        raise
    except Exception as e:
        logger.exception(f"Unexpected error in database session: {e}")
        db.rollback()
        raise
    finally:
        db.close()


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """Session for scripts: commits on success, rolls back on error."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except CareTeamError:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.exception(f"Database transaction failed: {e}")
        raise
    finally:
        db.close()


def create_tables(bind: Engine = engine) -> None:
    """
    Create every care-team table that does not exist yet.

    Alembic owns the production schema; this is for tests and local setup.
    """
    # Register all models on Base.metadata
    import models  # noqa: F401
    try:
        Base.metadata.create_all(bind=bind)
        logger.info("Database tables created successfully")
    except SQLAlchemyError as e:
        logger.exception(f"Failed to create database tables: {e}")
        raise
