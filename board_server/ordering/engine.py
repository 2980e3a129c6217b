"""
Ordering engine: sparse fractional positions for sibling entities.

Pure functions with no I/O - fully testable. The same formula runs on the
client (optimistic reorder) and on the server (authoritative write), so a
move only ever rewrites the moved entity's position.

Position formula for the slot at to_index in the view without the moved
entity:
    no neighbors     -> 1
    tail (no next)   -> ceil(prev.position) + 1
    head (no prev)   -> floor(next.position) - 1
    between          -> (prev.position + next.position) / 2

Invariants:
    - The engine never stores or mutates entities
    - A missing to_index is the only rejected request shape
    - Out-of-range indices clamp to head/tail
    - A no-op move (from_index == to_index) returns the current position
    - Inserting into an empty container yields 1, never 0

How to change safely:
    - Any formula change must ship to clients and server together
    - Precision decay from repeated midpoints is handled by
      ordering.renormalize, never by changing this formula
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

from ..errors import InvalidMoveError
from .types import MoveRequest, PositionedEntity

FIRST_POSITION = 1.0


@dataclass(frozen=True)
class Placement:
    """Result of planning a move.

    Attributes:
        position: New position for the moved entity
        prev: Sibling right before the slot (None at the head)
        next: Sibling right after the slot (None at the tail)
        ordered: Destination view after the move, moved entity included
        noop: Whether the move left the entity where it was
    """

    position: float
    prev: PositionedEntity | None
    next: PositionedEntity | None
    ordered: tuple[PositionedEntity, ...]
    noop: bool = False


def clamp_index(index: int, length: int) -> int:
    """Clamp an insert index into [0, length]."""
    return max(0, min(index, length))


def detach(
    siblings: Sequence[PositionedEntity],
    entity_id: str,
) -> tuple[PositionedEntity, ...]:
    """Remove an entity from an ordered view.

    Removing an entity that is not in the view is a no-op, which is what a
    cross-container arrival needs.
    """
    return tuple(s for s in siblings if s.id != entity_id)


def neighbors(
    remaining: Sequence[PositionedEntity],
    to_index: int,
) -> tuple[PositionedEntity | None, PositionedEntity | None]:
    """Find the siblings around an insert slot.

    Args:
        remaining: Ordered view without the moved entity
        to_index: Insert slot (clamped)

    Returns:
        (prev, next) where either may be None at the extremities
    """
    slot = clamp_index(to_index, len(remaining))
    prev = remaining[slot - 1] if slot > 0 else None
    nxt = remaining[slot] if slot < len(remaining) else None
    return prev, nxt


def position_between(
    prev: PositionedEntity | None,
    nxt: PositionedEntity | None,
) -> float:
    """Compute a position strictly between two optional neighbors."""
    if prev is None and nxt is None:
        return FIRST_POSITION
    if nxt is None:
        return float(math.ceil(prev.position) + 1)
    if prev is None:
        return float(math.floor(nxt.position) - 1)
    return (prev.position + nxt.position) / 2


def insert_position(remaining: Sequence[PositionedEntity], to_index: int) -> float:
    """Position for inserting into a view that does not hold the entity."""
    prev, nxt = neighbors(remaining, to_index)
    return position_between(prev, nxt)


def _current(siblings: Sequence[PositionedEntity], request: MoveRequest) -> PositionedEntity | None:
    """Find the moved entity in the view, preferring the from_index slot."""
    idx = request.from_index
    if idx is not None and 0 <= idx < len(siblings) and siblings[idx].id == request.entity_id:
        return siblings[idx]
    for s in siblings:
        if s.id == request.entity_id:
            return s
    return None


def _validate(request: MoveRequest) -> int:
    if request.to_index is None:
        raise InvalidMoveError(
            f"Move of '{request.entity_id}' has no target index",
            entity_id=request.entity_id,
        )
    return request.to_index


def plan_move(
    siblings: Sequence[PositionedEntity],
    request: MoveRequest,
    entity: PositionedEntity | None = None,
) -> Placement:
    """Plan a move: new position plus the resulting destination view.

    Args:
        siblings: Ordered destination view (fresh snapshot)
        request: Move request
        entity: Moved entity snapshot; required for arrivals from another
            container, looked up in siblings otherwise

    Returns:
        Placement describing the move

    Raises:
        InvalidMoveError: If request.to_index is None
    """
    to_index = _validate(request)
    current = _current(siblings, request)
    moved = entity or current

    if (
        request.from_index is not None
        and request.from_index == to_index
        and current is not None
    ):
        remaining = detach(siblings, request.entity_id)
        prev, nxt = neighbors(remaining, to_index)
        return Placement(
            position=current.position,
            prev=prev,
            next=nxt,
            ordered=tuple(siblings),
            noop=True,
        )

    remaining = detach(siblings, request.entity_id)
    slot = clamp_index(to_index, len(remaining))
    prev, nxt = neighbors(remaining, slot)
    position = position_between(prev, nxt)

    ordered = list(remaining)
    if moved is not None:
        ordered.insert(
            slot,
            PositionedEntity(
                id=moved.id,
                position=position,
                container_id=request.target_container_id,
                seq=moved.seq,
            ),
        )
    return Placement(position=position, prev=prev, next=nxt, ordered=tuple(ordered))


def compute_insert_position(
    ordered_siblings: Sequence[PositionedEntity],
    request: MoveRequest,
) -> float:
    """Compute the new position of a moved entity.

    Args:
        ordered_siblings: Destination container's ordered view
        request: Move request

    Returns:
        New position for the moved entity

    Raises:
        InvalidMoveError: If request.to_index is None

    Example:
        >>> siblings = [
        ...     PositionedEntity("A", 1, "l1"),
        ...     PositionedEntity("B", 2, "l1"),
        ...     PositionedEntity("C", 3, "l1"),
        ... ]
        >>> compute_insert_position(siblings, MoveRequest("C", 2, 1, "l1"))
        1.5
    """
    return plan_move(ordered_siblings, request).position
