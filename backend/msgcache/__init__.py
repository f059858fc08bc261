"""msgcache: durable, versioned message store for topic-based notifications.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)

Design Decisions:
    - Empty __init__.py: callers import from the defining module
      (msgcache.services.message_store.open_store, msgcache.schemas.message.Message)
"""
