"""Infrastructure Layer — SQLite engine setup, error mapping and logging.

Invariants:
    - Infrastructure never imports from services/
    - Driver exceptions are mapped to core/errors.py types at this boundary
"""
