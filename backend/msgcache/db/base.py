"""SQLAlchemy Declarative Base — shared base class for all ORM models.

Invariants:
    - All models inherit from Base
    - Base.metadata describes the CURRENT schema version only; historical
      layouts exist solely as migration steps (migrations/)
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all msgcache ORM models."""
    pass
