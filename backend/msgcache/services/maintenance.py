"""Maintenance Sweeps — periodic jobs the server manager loop runs against the store.

Invariants:
    - publish_due_messages marks a message published only after deliver() returned
    - A failed delivery leaves the message scheduled; the next sweep retries it
    - prune_messages only ever removes published messages (delegates to prune)
    - reclaim_expired_attachments never touches message rows

Design Decisions:
    - Callbacks (deliver, remove) are injected: fan-out and file storage live
      outside this package
    - Per-item failures are logged and skipped so one bad message cannot stall
      the sweep; store errors still propagate
"""

import logging
from typing import Callable

from msgcache.config import Settings
from msgcache.core.domain_types import MessageId, UnixTime
from msgcache.core.errors import MessageCacheError
from msgcache.core.repository_protocols import MessageCache
from msgcache.schemas.message import StoredMessage

logger = logging.getLogger(__name__)


def publish_due_messages(
    cache: MessageCache,
    deliver: Callable[[StoredMessage], None],
    now: UnixTime | None = None,
) -> int:
    """Deliver and mark every due scheduled message; returns how many were published."""
    published = 0
    for message in cache.messages_due(now):
        try:
            deliver(message)
        except Exception as e:
            logger.warning(
                f"Delivery of scheduled message {message.id} failed: {e}",
                extra={"message_id": message.id, "topic": message.topic},
            )
            continue
        cache.mark_published(message.id)
        published += 1
    if published:
        logger.info(f"Published {published} scheduled messages", extra={"count": published})
    return published


def prune_messages(cache: MessageCache, cache_duration: int, now: UnixTime) -> int:
    """Drop published messages older than now - cache_duration."""
    return cache.prune(UnixTime(now - cache_duration))


def reclaim_expired_attachments(
    cache: MessageCache,
    remove: Callable[[MessageId], None],
    now: UnixTime | None = None,
) -> list[MessageId]:
    """Call remove(message_id) for each expired attachment; returns ids removed."""
    removed = []
    for message_id in cache.attachments_expired(now):
        try:
            remove(message_id)
        except (OSError, MessageCacheError) as e:
            logger.warning(
                f"Cannot remove attachment of message {message_id}: {e}",
                extra={"message_id": message_id},
            )
            continue
        removed.append(message_id)
    return removed


def run_sweeps(
    cache: MessageCache,
    settings: Settings,
    deliver: Callable[[StoredMessage], None],
    remove: Callable[[MessageId], None],
    now: UnixTime,
) -> dict[str, int]:
    """One manager tick: publish due messages, prune, reclaim attachments."""
    return {
        "published": publish_due_messages(cache, deliver, now),
        "pruned": prune_messages(cache, settings.cache_duration_seconds, now),
        "attachments_reclaimed": len(reclaim_expired_attachments(cache, remove, now)),
    }
