"""Message ORM — the flat `messages` row, one per stored message.

Invariants:
    - id is the primary key; duplicate inserts raise IntegrityError
    - body maps to the legacy `message` column
    - published is 0/1 on disk and only ever goes 0 -> 1
    - attachment_* columns are empty strings / zeros when attachment_present is false

Design Decisions:
    - Flat columns, no attachments table: an attachment has no lifecycle of its own
    - idx_topic: every read except the sweeps filters by topic
"""

from typing import Any

from sqlalchemy import Boolean, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from msgcache.db.base import Base


class MessageRow(Base):
    """Persisted message — decoded via core/row_codec.py."""
    __tablename__ = "messages"
    __table_args__ = (Index("idx_topic", "topic"),)

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    time: Mapped[int] = mapped_column(Integer, nullable=False)
    topic: Mapped[str] = mapped_column(Text, nullable=False)
    body: Mapped[str] = mapped_column("message", Text, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False, default="")
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    tags: Mapped[str] = mapped_column(Text, nullable=False, default="")
    click: Mapped[str] = mapped_column(Text, nullable=False, default="")
    attachment_name: Mapped[str] = mapped_column(Text, nullable=False, default="")
    attachment_type: Mapped[str] = mapped_column(Text, nullable=False, default="")
    attachment_size: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    attachment_expires: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    attachment_url: Mapped[str] = mapped_column(Text, nullable=False, default="")
    attachment_owner: Mapped[str] = mapped_column(Text, nullable=False, default="")
    encoding: Mapped[str] = mapped_column(Text, nullable=False, default="")
    published: Mapped[bool] = mapped_column(Boolean, nullable=False)
    attachment_present: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )

    def as_columns(self) -> dict[str, Any]:
        """Attribute-keyed column values, the shape row_codec decodes."""
        return {
            attr.key: getattr(self, attr.key)
            for attr in self.__mapper__.column_attrs
        }
