"""
Renormalization of sibling positions.

Repeated midpoint inserts between the same two neighbors halve the gap each
time, so after enough moves two adjacent positions become equal in floating
point. The move service checks the destination view after every insert and,
when any adjacent gap falls below the configured threshold, rewrites the
whole container to 1..N in its current order within the same atomic write.
"""

from __future__ import annotations

from collections.abc import Sequence

from .types import PositionedEntity

DEFAULT_THRESHOLD = 1e-6


def min_gap(ordered_siblings: Sequence[PositionedEntity]) -> float | None:
    """Smallest difference between adjacent positions (None below two items)."""
    if len(ordered_siblings) < 2:
        return None
    return min(
        b.position - a.position
        for a, b in zip(ordered_siblings, ordered_siblings[1:])
    )


def needs_renormalization(
    ordered_siblings: Sequence[PositionedEntity],
    threshold: float = DEFAULT_THRESHOLD,
) -> bool:
    """Whether any adjacent gap is below threshold."""
    gap = min_gap(ordered_siblings)
    return gap is not None and gap < threshold


def renormalize(ordered_siblings: Sequence[PositionedEntity]) -> dict[str, float]:
    """Assign integer positions 1..N in the given order.

    Returns:
        Mapping of entity id to new position, only for entities whose
        position actually changes.
    """
    updates: dict[str, float] = {}
    for idx, entity in enumerate(ordered_siblings, start=1):
        if entity.position != idx:
            updates[entity.id] = float(idx)
    return updates
