"""Core Layer — pure domain logic, no IO, no DB.

Invariants:
    - No module in core/ imports from services/, infrastructure/, db/ or models/
    - core/ may import schemas/ (pure pydantic data, no IO)
    - All functions are pure and deterministic
"""
