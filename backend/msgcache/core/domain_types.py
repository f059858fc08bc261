"""Domain Types — identity types, event kinds and the `since` marker.

Invariants:
    - Only EventType.MESSAGE events are ever persisted
    - SinceMarker.none() means "no messages requested", distinct from since=0
    - TAG_SEPARATOR is the single delimiter used in the persisted tag column

Design Decisions:
    - NewType over wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from dataclasses import dataclass
from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

MessageId = NewType("MessageId", str)
UnixTime = NewType("UnixTime", int)


# ─── Constants ───────────────────────────────────────────────────

TAG_SEPARATOR = ","
MESSAGE_ID_LENGTH = 12
MAX_PRIORITY = 5

# SQLite INTEGER is a signed 64-bit value
SQLITE_INT_MIN = -(2**63)
SQLITE_INT_MAX = 2**63 - 1


# ─── Enums ───────────────────────────────────────────────────────

class EventType(str, Enum):
    """Kinds of events flowing through the service; only MESSAGE is stored."""
    MESSAGE = "message"
    KEEPALIVE = "keepalive"
    OPEN = "open"
    POLL_REQUEST = "poll_request"


# ─── Since Marker ────────────────────────────────────────────────

@dataclass(frozen=True)
class SinceMarker:
    """Lower bound for messages_since.

    time=None is the "no messages" marker: subscribers that ask for nothing
    historical get an empty result without touching the database.
    """
    time: int | None

    @classmethod
    def none(cls) -> "SinceMarker":
        return cls(None)

    @classmethod
    def all(cls) -> "SinceMarker":
        return cls(0)

    @classmethod
    def at(cls, timestamp: int) -> "SinceMarker":
        return cls(timestamp)

    def is_none(self) -> bool:
        return self.time is None
