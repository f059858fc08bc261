"""Session Factory — sync ORM sessions bound to an explicitly passed engine.

Invariants:
    - One factory per engine; the engine is never a module global

Design Decisions:
    - expire_on_commit=False: rows stay readable after commit for decoding
"""

from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create a session factory for the given engine."""
    return sessionmaker(engine, class_=Session, expire_on_commit=False)
