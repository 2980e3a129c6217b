"""
Ordering module for Board Server.

Assigns a total order to sibling entities (lists in a board, cards in a
list) with sparse numeric positions, so a move rewrites one position instead
of renumbering the container.

Invariants:
    - Every function here is pure and safe to call concurrently
    - The caller supplies a fresh, consistent sibling snapshot
    - Persisting positions is the store's job, never the engine's
"""

from .engine import (
    FIRST_POSITION,
    Placement,
    compute_insert_position,
    detach,
    insert_position,
    neighbors,
    plan_move,
    position_between,
)
from .renormalize import min_gap, needs_renormalization, renormalize
from .types import MoveRequest, PositionedEntity, order_siblings

__all__ = [
    # Types
    "PositionedEntity",
    "MoveRequest",
    "order_siblings",
    # Engine
    "FIRST_POSITION",
    "Placement",
    "compute_insert_position",
    "plan_move",
    "detach",
    "insert_position",
    "neighbors",
    "position_between",
    # Renormalization
    "min_gap",
    "needs_renormalization",
    "renormalize",
]
