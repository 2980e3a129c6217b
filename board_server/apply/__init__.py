"""
Apply module for Board Server.

Persistence-facing side of moves:
- BoardStore: in-memory lists and cards with CAS position writes
- MoveService: atomic read-neighbors-then-write for move mutations

Invariants:
    - One atomic unit per moved entity
    - Conflicts are surfaced as retryable errors, never swallowed
"""

from .mover import MoveService
from .store import BoardStore, EntityKind, StoredEntity

__all__ = [
    "BoardStore",
    "EntityKind",
    "StoredEntity",
    "MoveService",
]
