"""Pydantic Schemas — the entity model exchanged with the broadcaster/API layer.

Invariants:
    - Schemas validate at the system boundary (insert payloads, decoded rows)
    - Domain types from core/ used for enum fields

Design Decisions:
    - Separate from models: schemas are the entity contract, models are persistence
"""
