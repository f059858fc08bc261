"""Row Codec — converts between Message entities and flat `messages` rows.

Invariants:
    - encode_tags/decode_tags are inverse on every list encode_tags accepts
    - A tag that is empty or contains TAG_SEPARATOR is refused, never mangled
    - attachment=None flattens to empty strings / zeros with attachment_present=False
    - Decoding trusts attachment_present, not the emptiness of name/url
    - Rows are plain dicts keyed by ORM attribute name (models/message.py)

Design Decisions:
    - Pure functions over the ORM object: codec is testable without a database
    - Refusing separator-bearing tags is the chosen answer to the delimiter
      ambiguity; changing the tag encoding would need a schema migration
"""

from typing import Any, Mapping

from pydantic import ValidationError

from msgcache.core.domain_types import EventType, TAG_SEPARATOR
from msgcache.core.errors import RowDecodeError, TagEncodingError
from msgcache.schemas.message import Attachment, Message, StoredMessage

EMPTY_ATTACHMENT_COLUMNS: dict[str, Any] = {
    "attachment_name": "",
    "attachment_type": "",
    "attachment_size": 0,
    "attachment_expires": 0,
    "attachment_url": "",
    "attachment_owner": "",
    "attachment_present": False,
}


# ─── Tags ────────────────────────────────────────────────────────

def encode_tags(tags: list[str]) -> str:
    """Join tags with TAG_SEPARATOR; raise TagEncodingError if not reversible."""
    for tag in tags:
        if tag == "":
            raise TagEncodingError(tag, "empty tags are indistinguishable from no tags")
        if TAG_SEPARATOR in tag:
            raise TagEncodingError(tag, f"tags must not contain {TAG_SEPARATOR!r}")
    return TAG_SEPARATOR.join(tags)


def decode_tags(value: str) -> list[str]:
    if not value:
        return []
    return value.split(TAG_SEPARATOR)


# ─── Attachments ─────────────────────────────────────────────────

def flatten_attachment(attachment: Attachment | None) -> dict[str, Any]:
    """Attachment columns for a row; absent attachment yields the empty set."""
    if attachment is None:
        return dict(EMPTY_ATTACHMENT_COLUMNS)
    return {
        "attachment_name": attachment.name,
        "attachment_type": attachment.mime_type,
        "attachment_size": attachment.size,
        "attachment_expires": attachment.expires,
        "attachment_url": attachment.url,
        "attachment_owner": attachment.owner,
        "attachment_present": True,
    }


def unflatten_attachment(row: Mapping[str, Any]) -> Attachment | None:
    if not row["attachment_present"]:
        return None
    return Attachment(
        name=row["attachment_name"],
        mime_type=row["attachment_type"],
        size=row["attachment_size"],
        expires=row["attachment_expires"],
        url=row["attachment_url"],
        owner=row["attachment_owner"],
    )


# ─── Messages ────────────────────────────────────────────────────

def encode_message(message: Message, published: bool) -> dict[str, Any]:
    """Flatten a message into row columns. published is decided by the caller."""
    return {
        "id": message.id,
        "time": message.time,
        "topic": message.topic,
        "body": message.body,
        "title": message.title,
        "priority": message.priority,
        "tags": encode_tags(message.tags),
        "click": message.click,
        "encoding": message.encoding,
        "published": published,
        **flatten_attachment(message.attachment),
    }


def decode_message(row: Mapping[str, Any]) -> StoredMessage:
    """Rebuild a StoredMessage from row columns; RowDecodeError on bad data."""
    message_id = row.get("id")
    try:
        return StoredMessage(
            id=message_id,
            time=row["time"],
            event=EventType.MESSAGE,
            topic=row["topic"],
            body=row["body"],
            title=row["title"],
            priority=row["priority"],
            tags=decode_tags(row["tags"]),
            click=row["click"],
            attachment=unflatten_attachment(row),
            encoding=row["encoding"],
            published=bool(row["published"]),
        )
    except KeyError as e:
        raise RowDecodeError(message_id, f"missing column {e}") from e
    except (ValidationError, TypeError, AttributeError) as e:
        raise RowDecodeError(message_id, str(e)) from e
