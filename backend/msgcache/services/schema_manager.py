"""Schema Manager — brings any supported on-disk layout to CURRENT_SCHEMA_VERSION.

Invariants:
    - No `messages` table: fresh store, created at the current version in one
      transaction, no migration step runs
    - `messages` without a `schemaVersion` table: version 0 (pre-tracking store)
    - `schemaVersion` without its row, or with a non-integer version: CorruptStoreError
    - Persisted version > current: UnsupportedSchemaVersionError, nothing touched
    - Each step and its version bump commit together; a failing step raises
      MigrationError and leaves the store at the last committed version
    - Versions only move up, one registered step per increment

Design Decisions:
    - Progress reported through an injected observer, not a module logger:
      open_store() wires log_migration_step in
    - The manager does not lock; callers run it before handing out the store
"""

import logging
from typing import Callable

from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy import Connection, Engine, inspect, insert, select, update
from sqlalchemy.exc import SQLAlchemyError

from msgcache.core.errors import (
    CorruptStoreError,
    ErrorContext,
    MigrationError,
    StoreSetupError,
    UnsupportedSchemaVersionError,
)
from msgcache.db.base import Base
from msgcache.migrations import CURRENT_SCHEMA_VERSION, MIGRATIONS, Migration
from msgcache.models import MessageRow, SchemaVersionRow
from msgcache.models.schema_version import SCHEMA_VERSION_ROW_ID

logger = logging.getLogger(__name__)

MigrationObserver = Callable[[int, int], None]


def log_migration_step(from_version: int, to_version: int) -> None:
    """Observer that reports each step through the module logger."""
    logger.info(
        f"Migrating cache database schema: from {from_version} to {to_version}",
        extra={"from_version": from_version, "to_version": to_version},
    )


class SchemaManager:
    """Detects the persisted schema version and upgrades it step by step."""

    def __init__(
        self,
        engine: Engine,
        migrations: dict[int, Migration] | None = None,
        current_version: int = CURRENT_SCHEMA_VERSION,
        observer: MigrationObserver | None = None,
    ):
        self.engine = engine
        self.migrations = MIGRATIONS if migrations is None else migrations
        self.current_version = current_version
        self.observer = observer

    def ensure_current_schema(self) -> int:
        """Create or migrate the store; returns the version reached. Idempotent."""
        if not self._has_messages_table():
            self._create_fresh()
            return self.current_version

        version = self.read_version()
        if version == self.current_version:
            return version
        if version > self.current_version:
            raise UnsupportedSchemaVersionError(version, self.current_version)

        while version < self.current_version:
            migration = self.migrations.get(version)
            if migration is None or migration.to_version != version + 1:
                raise MigrationError(
                    version, version + 1, "no migration step defined",
                )
            self._apply(migration)
            version = migration.to_version
        return version

    def read_version(self) -> int:
        """Persisted schema version; 0 when the store predates version tracking."""
        try:
            with self.engine.connect() as conn:
                if not inspect(conn).has_table(SchemaVersionRow.__tablename__):
                    return 0
                version = conn.execute(
                    select(SchemaVersionRow.version)
                    .where(SchemaVersionRow.id == SCHEMA_VERSION_ROW_ID)
                ).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise CorruptStoreError("version record is unreadable") from e
        if version is None:
            raise CorruptStoreError("version record is missing")
        if not isinstance(version, int):
            raise CorruptStoreError(
                f"version record holds {version!r}",
                ErrorContext(debug_info={"version": version}),
            )
        return version

    # ─── Internals ───────────────────────────────────────────────

    def _has_messages_table(self) -> bool:
        try:
            with self.engine.connect() as conn:
                return inspect(conn).has_table(MessageRow.__tablename__)
        except SQLAlchemyError as e:
            raise StoreSetupError(str(self.engine.url), str(e)) from e

    def _create_fresh(self) -> None:
        try:
            with self.engine.begin() as conn:
                Base.metadata.create_all(conn)
                _write_version(conn, self.current_version)
        except SQLAlchemyError as e:
            err = StoreSetupError(str(self.engine.url), str(e))
            logger.error(f"Cannot initialize message store schema: {e}", extra=err.log_extra())
            raise err from e
        logger.info(
            f"Created message store schema at version {self.current_version}",
            extra={"schema_version": self.current_version},
        )

    def _apply(self, migration: Migration) -> None:
        if self.observer is not None:
            self.observer(migration.from_version, migration.to_version)
        try:
            with self.engine.begin() as conn:
                op = Operations(MigrationContext.configure(conn))
                migration.upgrade(op)
                _write_version(conn, migration.to_version)
        except Exception as e:
            err = MigrationError(migration.from_version, migration.to_version, str(e))
            logger.error(
                f"Migration {migration.from_version} -> {migration.to_version} failed: {e}",
                extra={
                    **err.log_extra(),
                    "from_version": migration.from_version,
                    "to_version": migration.to_version,
                },
            )
            raise err from e


def _write_version(conn: Connection, version: int) -> None:
    result = conn.execute(
        update(SchemaVersionRow)
        .where(SchemaVersionRow.id == SCHEMA_VERSION_ROW_ID)
        .values(version=version)
    )
    if result.rowcount == 0:
        conn.execute(
            insert(SchemaVersionRow).values(id=SCHEMA_VERSION_ROW_ID, version=version),
        )
