"""
Move service: the "move list" and "move card" mutations.

Each move runs as one atomic unit per moved entity:
    lock container(s) -> re-read the entity -> read fresh siblings +
    versions -> plan with the ordering engine -> (renormalize if gaps
    collapsed) -> CAS write

Invariants:
    - The engine always sees a snapshot taken under the container lock
    - The locked source container is the one the entity sits in; if a
      concurrent move relocated it first, the attempt is retried
    - A normal move writes exactly one position
    - Renormalization rewrites the destination container in the same CAS,
      always including the moved entity
    - ConflictError is retried up to max_retries, then surfaced (retryable)
    - Lists never leave their board; cards may change list

How to change safely:
    - Keep lock acquisition in BoardStore.lock_containers() (sorted order)
    - Never write positions outside write_positions(); it owns the CAS
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from ..errors import ConflictError, EntityNotFoundError, InvalidMoveError
from ..ordering import (
    MoveRequest,
    needs_renormalization,
    plan_move,
    renormalize,
)
from ..ordering.renormalize import DEFAULT_THRESHOLD
from .store import BoardStore, EntityKind, StoredEntity

logger = logging.getLogger(__name__)


class MoveService:
    """Applies move requests against a BoardStore.

    Attributes:
        store: Persistence collaborator
        renormalize_threshold: Minimum adjacent gap before a container is
            rewritten to 1..N
        max_retries: CAS retries before a conflict is surfaced

    Example:
        >>> service = MoveService(store)
        >>> card = await service.move_card(
        ...     MoveRequest("card-3", from_index=2, to_index=0, target_container_id="list-1")
        ... )
        >>> card.position
        0.0
    """

    def __init__(
        self,
        store: BoardStore,
        renormalize_threshold: float = DEFAULT_THRESHOLD,
        max_retries: int = 3,
    ) -> None:
        self.store = store
        self.renormalize_threshold = renormalize_threshold
        self.max_retries = max_retries

    async def move_list(self, request: MoveRequest) -> StoredEntity:
        """Move a list within its board."""
        return await self._move(EntityKind.LIST, request)

    async def move_card(self, request: MoveRequest) -> StoredEntity:
        """Move a card within its list or into another list."""
        return await self._move(EntityKind.CARD, request)

    def _not_found(self, kind: EntityKind, entity_id: str) -> EntityNotFoundError:
        return EntityNotFoundError(
            f"{kind.value.capitalize()} '{entity_id}' not found",
            kind=kind.value,
            entity_id=entity_id,
        )

    async def _load(self, kind: EntityKind, request: MoveRequest) -> StoredEntity:
        entity = await self.store.get(kind, request.entity_id)
        if entity is None:
            raise self._not_found(kind, request.entity_id)
        if kind is EntityKind.LIST and entity.container_id != request.target_container_id:
            raise InvalidMoveError(
                f"List '{entity.id}' cannot move from board '{entity.container_id}' "
                f"to board '{request.target_container_id}'",
                entity_id=entity.id,
            )
        return entity

    async def _move(self, kind: EntityKind, request: MoveRequest) -> StoredEntity:
        if request.to_index is None:
            raise InvalidMoveError(
                f"Move of '{request.entity_id}' has no target index",
                entity_id=request.entity_id,
            )

        attempts = self.max_retries + 1
        last_conflict: Optional[ConflictError] = None
        for attempt in range(1, attempts + 1):
            source = (await self._load(kind, request)).container_id
            target = request.target_container_id

            async with self.store.lock_containers(kind, (source, target)):
                try:
                    return await self._apply(kind, request, source)
                except ConflictError as e:
                    last_conflict = e
                    logger.warning(
                        f"Move of {request.entity_id} conflicted (attempt {attempt}/"
                        f"{attempts}): {e.message}"
                    )

        raise ConflictError(
            f"Move of '{request.entity_id}' still conflicting after {attempts} attempts",
            container_id=request.target_container_id,
        ) from last_conflict

    async def _apply(self, kind: EntityKind, request: MoveRequest, source: str) -> StoredEntity:
        """One move attempt; the caller holds the source and target locks.

        Raises:
            ConflictError: If the entity left source before the locks were
                taken, or a container changed before the write
        """
        entity = await self._load(kind, request)
        if entity.container_id != source:
            raise ConflictError(
                f"{kind.value.capitalize()} '{entity.id}' moved from '{source}' "
                f"to '{entity.container_id}' before the locks were taken",
                container_id=source,
            )

        target = request.target_container_id
        cross = source != target
        # Indices from another container's view mean nothing here
        plan_request = replace(request, from_index=None) if cross else request

        version, siblings = await self.store.snapshot(kind, target)
        expected = {target: version}
        if cross:
            expected[source] = await self.store.container_version(kind, source)

        placement = plan_move(siblings, plan_request, entity.snapshot())
        logger.debug(
            f"Move {entity.id} to {placement.position}. Between "
            f"{placement.next.position if placement.next else None} <-> "
            f"{placement.prev.position if placement.prev else None}"
        )
        if placement.noop and not cross:
            return entity

        updates = {entity.id: placement.position}
        if needs_renormalization(placement.ordered, self.renormalize_threshold):
            # Diffed against stored positions; the moved entity is always written
            stored_view = tuple(
                entity.snapshot() if e.id == entity.id else e
                for e in placement.ordered
            )
            updates = renormalize(stored_view)
            logger.info(
                f"Renormalizing {kind.value}s of '{target}': "
                f"{len(updates)} positions rewritten"
            )
        changes = {entity.id: target} if cross else {}

        await self.store.write_positions(kind, expected, updates, changes)

        moved = await self.store.get(kind, entity.id)
        if moved is None:
            raise self._not_found(kind, entity.id)
        return moved
