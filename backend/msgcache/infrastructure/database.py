"""SQLite Engine — connection setup with real transactions and error mapping.

Invariants:
    - Every transaction is opened with an explicit BEGIN, so DDL and DML in one
      `engine.begin()` block commit or roll back together
    - Every connection gets PRAGMA busy_timeout (single effective writer)
    - All SQLAlchemy exceptions leaving a store operation are mapped to
      core/errors.py types, with the driver error chained

Design Decisions:
    - pysqlite's implicit transaction handling is disabled (isolation_level=None)
      and SQLAlchemy emits BEGIN on the "begin" event: the driver would
      otherwise run ALTER TABLE outside the migration transaction
    - StaticPool for ":memory:": one shared connection, or every checkout
      would see a different empty database. That connection admits one
      transaction at a time, so callers sharing it must serialize (see
      is_memory_engine)
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import Engine, create_engine, event, make_url, text
from sqlalchemy.exc import ArgumentError, DBAPIError, OperationalError, SQLAlchemyError
from sqlalchemy.pool import StaticPool

from msgcache.core.errors import StoreReadError, StoreSetupError, StoreWriteError

logger = logging.getLogger(__name__)

MEMORY_LOCATION = ":memory:"


def build_url(location: str) -> str:
    """Turn a file path, ":memory:" or a sqlite URL into a SQLAlchemy URL."""
    if "://" in location:
        return location
    if location == MEMORY_LOCATION:
        return "sqlite://"
    return f"sqlite:///{location}"


def _is_memory_database(database: str | None) -> bool:
    return database in (None, "", MEMORY_LOCATION)


def is_memory_engine(engine: Engine) -> bool:
    """True when every session of `engine` shares one in-memory connection."""
    return _is_memory_database(engine.url.database)


def create_sqlite_engine(location: str, busy_timeout_ms: int = 5000) -> Engine:
    """Create and verify an engine for `location`; StoreSetupError if unusable."""
    url = build_url(location)
    try:
        backend = make_url(url).get_backend_name()
    except ArgumentError as e:
        raise StoreSetupError(location, str(e)) from e
    if backend != "sqlite":
        raise StoreSetupError(location, f"unsupported backend '{backend}'")

    kwargs: dict = {}
    if _is_memory_database(make_url(url).database):
        kwargs = {
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        }
    try:
        engine = create_engine(url, **kwargs)
    except SQLAlchemyError as e:
        raise StoreSetupError(location, str(e)) from e

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute(f"PRAGMA busy_timeout = {int(busy_timeout_ms)}")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        engine.dispose()
        logger.error(f"Cannot open message store at {location}: {e}")
        raise StoreSetupError(location, str(getattr(e, "orig", None) or e)) from e
    return engine


@contextmanager
def translate_errors(operation: str, *, write: bool = False) -> Iterator[None]:
    """Map SQLAlchemy failures inside the block to StoreReadError/StoreWriteError."""
    error_type = StoreWriteError if write else StoreReadError
    try:
        yield
    except OperationalError as e:
        err = error_type(operation, "connection or operational error")
        logger.error(f"DB operational error in {operation}: {e}", extra=err.log_extra())
        raise err from e
    except DBAPIError as e:
        err = error_type(operation, "database driver error")
        logger.error(f"DB driver error in {operation}: {e}", extra=err.log_extra())
        raise err from e
    except SQLAlchemyError as e:
        err = error_type(operation, "database operation failed")
        logger.error(f"SQLAlchemy error in {operation}: {e}", extra=err.log_extra())
        raise err from e
