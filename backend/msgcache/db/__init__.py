"""Database Infrastructure — sync session factory and SQLAlchemy Base.

Invariants:
    - The engine is created by infrastructure/database.py and passed in explicitly
    - All sessions are sync (sqlalchemy.orm.Session)
"""
