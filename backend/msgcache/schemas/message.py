"""Message Schemas — entity model for messages, attachments and topics.

Invariants:
    - Message.id is non-empty; Message.priority is 0..5 (0 = unset)
    - Attachment.size and Attachment.expires are non-negative; expires=0 means never
    - Every integer field fits a signed 64-bit SQLite INTEGER
    - attachment=None is the only way to say "no attachment"
    - published is never caller-supplied: it only appears on StoredMessage (reads)

Design Decisions:
    - Attachment | None over multi-field emptiness: an attachment with an
      empty name or url is still an attachment
    - StoredMessage subclass for reads: insert payloads cannot carry a
      published flag
"""

import secrets
import string
import time as _time

from pydantic import BaseModel, Field

from msgcache.core.domain_types import (
    EventType,
    MAX_PRIORITY,
    MESSAGE_ID_LENGTH,
    SQLITE_INT_MAX,
    SQLITE_INT_MIN,
)

_ID_ALPHABET = string.ascii_letters + string.digits


class Attachment(BaseModel):
    """File attachment owned by exactly one message."""
    name: str
    mime_type: str = ""
    size: int = Field(0, ge=0, le=SQLITE_INT_MAX)
    expires: int = Field(0, ge=0, le=SQLITE_INT_MAX)
    url: str
    owner: str = ""


class Message(BaseModel):
    """A message addressed to a topic; time doubles as delivery time."""
    id: str = Field(min_length=1)
    time: int = Field(ge=SQLITE_INT_MIN, le=SQLITE_INT_MAX)
    event: EventType = EventType.MESSAGE
    topic: str
    body: str = ""
    title: str = ""
    priority: int = Field(0, ge=0, le=MAX_PRIORITY)
    tags: list[str] = Field(default_factory=list)
    click: str = ""
    attachment: Attachment | None = None
    encoding: str = ""


class StoredMessage(Message):
    """A message as read back from the store, with its publication state."""
    published: bool


class Topic(BaseModel):
    """Grouping key derived from distinct stored topic values."""
    id: str


def generate_message_id() -> str:
    """Random alphanumeric id, MESSAGE_ID_LENGTH characters."""
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(MESSAGE_ID_LENGTH))


def new_message(topic: str, body: str = "", *, time: int | None = None, **fields) -> Message:
    """Build a message event with a fresh id, timestamped now unless given."""
    return Message(
        id=fields.pop("id", None) or generate_message_id(),
        time=int(_time.time()) if time is None else time,
        topic=topic,
        body=body,
        **fields,
    )
