"""SchemaVersion ORM — the one-row record holding the on-disk schema version.

Invariants:
    - Exactly one row, id = SCHEMA_VERSION_ROW_ID, once the store is past version 0
    - version only increases
"""

from sqlalchemy import Integer
from sqlalchemy.orm import Mapped, mapped_column

from msgcache.db.base import Base

SCHEMA_VERSION_ROW_ID = 1


class SchemaVersionRow(Base):
    __tablename__ = "schemaVersion"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
