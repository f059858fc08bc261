"""Services Layer — schema management, the message store and maintenance sweeps.

Invariants:
    - Services own all IO; core/ stays pure
    - Schema manager runs to completion before a MessageStore is handed out
"""
