"""ORM Models — SQLAlchemy declarative models for the current schema.

Invariants:
    - All models inherit from Base (db/base.py)
    - Table and column names are the on-disk format shared with older releases

Design Decisions:
    - One file per table for locality
    - All models imported here so Base.metadata is complete before create_all
"""

from msgcache.models.message import MessageRow  # noqa: F401
from msgcache.models.schema_version import SchemaVersionRow  # noqa: F401
