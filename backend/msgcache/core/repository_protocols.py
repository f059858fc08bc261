"""Boundary Protocols — the storage contract consumed by the broadcaster/API layer.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - Callers depend on MessageCache, not on the SQLite implementation

Design Decisions:
    - Protocol over ABC: structural subtyping, a non-persistent cache can
      satisfy it without inheriting anything
"""

from typing import Protocol

from msgcache.core.domain_types import MessageId, SinceMarker, UnixTime
from msgcache.schemas.message import Message, StoredMessage, Topic


class MessageCache(Protocol):
    """Contract for message persistence — implemented by services/message_store.py."""
    def add_message(self, message: Message) -> None: ...
    def messages_since(
        self, topic: str, since: SinceMarker, include_scheduled: bool,
    ) -> list[StoredMessage]: ...
    def messages_due(self, now: UnixTime | None = None) -> list[StoredMessage]: ...
    def mark_published(self, message_id: MessageId) -> None: ...
    def message_count(self, topic: str) -> int: ...
    def topics(self) -> dict[str, Topic]: ...
    def prune(self, older_than: UnixTime) -> int: ...
    def attachments_size(self, owner: str, now: UnixTime | None = None) -> int: ...
    def attachments_expired(self, now: UnixTime | None = None) -> list[MessageId]: ...
