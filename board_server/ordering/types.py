"""
Value types for the ordering engine.

- PositionedEntity: snapshot of one orderable item (list or card)
- MoveRequest: a drag-and-drop move expressed against the destination view

Invariants:
    - Only the relative order of positions matters, not their magnitude
    - Sibling order is ascending by position, ties broken by creation
      sequence, then id, so iteration is deterministic
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class PositionedEntity:
    """Snapshot of an orderable entity.

    Attributes:
        id: Unique within its container
        position: Sparse sort key
        container_id: Board id for lists, list id for cards
        seq: Creation sequence, the secondary sort key
    """

    id: str
    position: float
    container_id: str
    seq: int = 0

    @property
    def sort_key(self) -> tuple[float, int, str]:
        return (self.position, self.seq, self.id)


@dataclass(frozen=True)
class MoveRequest:
    """A move of one entity into a slot of the destination container.

    Attributes:
        entity_id: Entity being moved
        from_index: Index in the destination's ordered view, or None when
            the entity arrives from another container
        to_index: Target index in the destination's ordered view; None is
            rejected by the engine
        target_container_id: Destination container
    """

    entity_id: str
    from_index: int | None
    to_index: int | None
    target_container_id: str

    @property
    def is_arrival(self) -> bool:
        """Whether the entity comes from another container."""
        return self.from_index is None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MoveRequest:
        """Create from the camelCase wire representation."""
        return cls(
            entity_id=data["entityId"],
            from_index=data.get("fromIndex"),
            to_index=data.get("toIndex"),
            target_container_id=data["targetContainerId"],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "entityId": self.entity_id,
            "fromIndex": self.from_index,
            "toIndex": self.to_index,
            "targetContainerId": self.target_container_id,
        }


def order_siblings(entities: Iterable[PositionedEntity]) -> tuple[PositionedEntity, ...]:
    """Sort entities into their canonical sibling order."""
    return tuple(sorted(entities, key=lambda e: e.sort_key))
