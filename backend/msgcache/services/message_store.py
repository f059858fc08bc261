"""Message Store — SQLite-backed implementation of the MessageCache contract.

Invariants:
    - A MessageStore is only constructed over a schema at CURRENT_SCHEMA_VERSION
      (open_store runs the SchemaManager first)
    - published = (time <= now) at insertion; afterwards only mark_published changes it
    - messages_since results are ordered by time ascending
    - prune never removes a row with published = false, whatever its age
    - attachments_size and attachments_expired filter on the same columns, so a
      row counted against a quota is also a reclamation candidate once expired
    - Every operation is one bounded read or write; no retries
    - Operations are safe to call from several threads; an in-memory store
      serializes them on one lock

Design Decisions:
    - ORM sessions per call, no long-lived session: the engine is the shared handle
    - The clock is injected: tests pin "now" without patching time.time
    - Composite sweeps (messages_due then mark_published) are not transactional;
      a row marked by someone else in between is not an error
"""

import logging
import threading
import time
from contextlib import contextmanager, nullcontext
from typing import Callable, Iterator

from sqlalchemy import Engine, delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from msgcache.config import Settings
from msgcache.core.domain_types import EventType, MessageId, SinceMarker, UnixTime
from msgcache.core.errors import (
    DuplicateMessageError,
    ErrorContext,
    StoreReadError,
    UnexpectedMessageTypeError,
)
from msgcache.core.row_codec import decode_message, encode_message
from msgcache.db.session import create_session_factory
from msgcache.infrastructure.database import (
    create_sqlite_engine,
    is_memory_engine,
    translate_errors,
)
from msgcache.models import MessageRow
from msgcache.schemas.message import Message, StoredMessage, Topic
from msgcache.services.schema_manager import (
    MigrationObserver,
    SchemaManager,
    log_migration_step,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], UnixTime]


def unix_now() -> UnixTime:
    return UnixTime(int(time.time()))


class MessageStore:
    """Durable message cache over an already-migrated SQLite engine."""

    def __init__(self, engine: Engine, clock: Clock = unix_now):
        self.engine = engine
        self.clock = clock
        self._session_factory = create_session_factory(engine)
        # One shared connection: concurrent BEGINs on it would collide
        self._lock = threading.RLock() if is_memory_engine(engine) else nullcontext()

    # ─── Lifecycle ───────────────────────────────────────────────

    def close(self) -> None:
        """Release all pooled connections. The store is unusable afterwards."""
        self.engine.dispose()

    def __enter__(self) -> "MessageStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @contextmanager
    def _session(self, *, write: bool = False) -> Iterator[Session]:
        with self._lock:
            if write:
                with self._session_factory.begin() as session:
                    yield session
            else:
                with self._session_factory() as session:
                    yield session

    # ─── Writes ──────────────────────────────────────────────────

    def add_message(self, message: Message) -> None:
        """Insert a message; published is derived from its time and the clock."""
        if message.event != EventType.MESSAGE:
            raise UnexpectedMessageTypeError(
                message.event.value,
                ErrorContext(message_id=message.id, topic=message.topic),
            )
        published = message.time <= self.clock()
        row = MessageRow(**encode_message(message, published))
        with translate_errors("add_message", write=True):
            try:
                with self._session(write=True) as session:
                    session.add(row)
            except IntegrityError as e:
                err = DuplicateMessageError(message.id, ErrorContext(topic=message.topic))
                logger.warning(
                    f"Rejected duplicate message id {message.id}",
                    extra=err.log_extra(),
                )
                raise err from e

    def mark_published(self, message_id: MessageId) -> None:
        """Flip published to true. Already-published or unknown ids are a no-op."""
        with translate_errors("mark_published", write=True):
            with self._session(write=True) as session:
                updated = session.execute(
                    update(MessageRow)
                    .where(MessageRow.id == message_id)
                    .values(published=True)
                    .execution_options(synchronize_session=False)
                ).rowcount
        if updated == 0:
            logger.debug(
                f"mark_published: message {message_id} not found",
                extra={"message_id": message_id},
            )

    def prune(self, older_than: UnixTime) -> int:
        """Delete published messages with time < older_than; returns rows removed."""
        with translate_errors("prune", write=True):
            with self._session(write=True) as session:
                removed = session.execute(
                    delete(MessageRow)
                    .where(MessageRow.time < older_than)
                    .where(MessageRow.published.is_(True))
                    .execution_options(synchronize_session=False)
                ).rowcount
        if removed:
            logger.info(
                f"Pruned {removed} published messages older than {older_than}",
                extra={"count": removed},
            )
        return removed

    # ─── Reads ───────────────────────────────────────────────────

    def messages_since(
        self, topic: str, since: SinceMarker, include_scheduled: bool,
    ) -> list[StoredMessage]:
        """Messages for topic with time >= since, oldest first."""
        if since.is_none():
            return []
        query = (
            select(MessageRow)
            .where(MessageRow.topic == topic)
            .where(MessageRow.time >= since.time)
        )
        if not include_scheduled:
            query = query.where(MessageRow.published.is_(True))
        query = query.order_by(MessageRow.time.asc(), MessageRow.id.asc())
        return self._read_messages("messages_since", query)

    def messages_due(self, now: UnixTime | None = None) -> list[StoredMessage]:
        """Scheduled messages whose delivery time has come."""
        now = self.clock() if now is None else now
        query = (
            select(MessageRow)
            .where(MessageRow.time <= now)
            .where(MessageRow.published.is_(False))
            .order_by(MessageRow.time.asc(), MessageRow.id.asc())
        )
        return self._read_messages("messages_due", query)

    def message_count(self, topic: str) -> int:
        with translate_errors("message_count"):
            with self._session() as session:
                count = session.execute(
                    select(func.count()).select_from(MessageRow)
                    .where(MessageRow.topic == topic)
                ).scalar_one_or_none()
        if count is None:
            raise StoreReadError("message_count", "no rows found")
        return count

    def topics(self) -> dict[str, Topic]:
        with translate_errors("topics"):
            with self._session() as session:
                ids = session.execute(
                    select(MessageRow.topic).group_by(MessageRow.topic)
                ).scalars().all()
        return {topic_id: Topic(id=topic_id) for topic_id in ids}

    def attachments_size(self, owner: str, now: UnixTime | None = None) -> int:
        """Total bytes of unexpired attachments owned by owner (0 if none).

        Rows without an attachment carry size 0, so no presence filter is
        needed; migrated rows with an empty name still count.
        """
        now = self.clock() if now is None else now
        with translate_errors("attachments_size"):
            with self._session() as session:
                size = session.execute(
                    select(func.coalesce(func.sum(MessageRow.attachment_size), 0))
                    .where(MessageRow.attachment_owner == owner)
                    .where(or_(
                        MessageRow.attachment_expires == 0,
                        MessageRow.attachment_expires >= now,
                    ))
                ).scalar_one()
        return int(size)

    def attachments_expired(self, now: UnixTime | None = None) -> list[MessageId]:
        """Ids of messages whose attachment expired before now."""
        now = self.clock() if now is None else now
        with translate_errors("attachments_expired"):
            with self._session() as session:
                ids = session.execute(
                    select(MessageRow.id)
                    .where(MessageRow.attachment_expires > 0)
                    .where(MessageRow.attachment_expires < now)
                    .order_by(MessageRow.attachment_expires.asc())
                ).scalars().all()
        return [MessageId(i) for i in ids]

    def _read_messages(self, operation: str, query) -> list[StoredMessage]:
        with translate_errors(operation):
            with self._session() as session:
                rows = session.execute(query).scalars().all()
                columns = [row.as_columns() for row in rows]
        return [decode_message(c) for c in columns]


def open_store(
    location: str,
    *,
    clock: Clock = unix_now,
    busy_timeout_ms: int = 5000,
    observer: MigrationObserver | None = log_migration_step,
) -> MessageStore:
    """Open (creating or migrating as needed) the store at location.

    Raises StoreSetupError, CorruptStoreError, UnsupportedSchemaVersionError
    or MigrationError; the engine is disposed before any of them propagates.
    """
    engine = create_sqlite_engine(location, busy_timeout_ms)
    try:
        version = SchemaManager(engine, observer=observer).ensure_current_schema()
    except Exception:
        engine.dispose()
        raise
    logger.info(
        f"Message store ready at {location}",
        extra={"schema_version": version},
    )
    return MessageStore(engine, clock=clock)


def open_store_from_settings(settings: Settings, **kwargs) -> MessageStore:
    return open_store(
        settings.cache_file,
        busy_timeout_ms=settings.cache_busy_timeout_ms,
        **kwargs,
    )
