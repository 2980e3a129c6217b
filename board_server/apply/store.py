"""
In-memory board store for Board Server.

This module is the persistence collaborator the move service talks to. It
holds lists and cards with their sparse positions and provides:
- get / list / upsert / delete by id
- Per-container versions, bumped on every write touching the container
- Compare-and-swap position writes keyed on those versions
- Per-container async locks (the serialization point for moves)

Invariants:
    - Entity ids are unique per kind
    - list_container() always returns siblings in canonical order
    - write_positions() is all-or-nothing: either every expected version
      matches and all updates apply, or ConflictError is raised and nothing
      changes
    - Returned entities are copies; callers never mutate store state

How to change safely:
    - A durable backend must keep the CAS semantics of write_positions()
    - Acquire several container locks only through lock_containers(), which
      orders them to avoid deadlocks
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import AsyncIterator, Iterable
from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from ..errors import ConflictError
from ..ordering import PositionedEntity, insert_position, order_siblings

logger = logging.getLogger(__name__)


class EntityKind(Enum):
    """Orderable entity kinds and the container each one lives in."""

    LIST = "list"  # container: board
    CARD = "card"  # container: list


@dataclass
class StoredEntity:
    """A list or card as persisted.

    Attributes:
        id: Entity identifier, unique per kind
        kind: List or card
        container_id: Board id for lists, list id for cards
        position: Sparse sort key within the container
        seq: Creation sequence, tie-breaker for equal positions
        payload: Remaining entity fields (title, description, ...)
    """

    id: str
    kind: EntityKind
    container_id: str
    position: float
    seq: int = 0
    payload: Dict[str, Any] = field(default_factory=dict)

    def snapshot(self) -> PositionedEntity:
        """View of this entity for the ordering engine."""
        return PositionedEntity(
            id=self.id,
            position=self.position,
            container_id=self.container_id,
            seq=self.seq,
        )

    def copy(self) -> StoredEntity:
        return replace(self, payload=dict(self.payload))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the API representation."""
        return {
            "id": self.id,
            "kind": self.kind.value,
            "containerId": self.container_id,
            "position": self.position,
            "payload": dict(self.payload),
        }


ContainerKey = Tuple[EntityKind, str]


class BoardStore:
    """In-memory store for lists and cards.

    Thread safety:
        Uses asyncio locks. Safe to use from multiple coroutines on one
        event loop.

    Example:
        >>> store = BoardStore()
        >>> todo = await store.create(EntityKind.LIST, "board-1", {"title": "Todo"})
        >>> card = await store.create(EntityKind.CARD, todo.id, {"title": "Write docs"})
        >>> [c.id for c in await store.list_container(EntityKind.CARD, todo.id)]
        ['card-2']
    """

    def __init__(self) -> None:
        """Initialize an empty store."""
        self._entities: Dict[EntityKind, Dict[str, StoredEntity]] = {
            kind: {} for kind in EntityKind
        }
        self._versions: Dict[ContainerKey, int] = defaultdict(int)
        self._container_locks: Dict[ContainerKey, asyncio.Lock] = {}
        self._lock = asyncio.Lock()
        self._seq = 0

    def _next_id(self, kind: EntityKind) -> Tuple[str, int]:
        self._seq += 1
        return f"{kind.value}-{self._seq}", self._seq

    def _bump(self, kind: EntityKind, container_id: str) -> None:
        self._versions[(kind, container_id)] += 1

    def _ordered(self, kind: EntityKind, container_id: str) -> list[StoredEntity]:
        members = [e for e in self._entities[kind].values() if e.container_id == container_id]
        return sorted(members, key=lambda e: (e.position, e.seq, e.id))

    async def create(
        self,
        kind: EntityKind,
        container_id: str,
        payload: Optional[Dict[str, Any]] = None,
        position: Optional[float] = None,
        entity_id: Optional[str] = None,
    ) -> StoredEntity:
        """Create an entity, appended at the container's tail by default.

        Args:
            kind: List or card
            container_id: Owning container
            payload: Entity fields
            position: Explicit position (tail position if omitted)
            entity_id: Explicit id (generated if omitted)

        Returns:
            Copy of the created entity
        """
        async with self._lock:
            generated_id, seq = self._next_id(kind)
            if position is None:
                siblings = order_siblings(
                    e.snapshot() for e in self._ordered(kind, container_id)
                )
                position = insert_position(siblings, len(siblings))
            entity = StoredEntity(
                id=entity_id or generated_id,
                kind=kind,
                container_id=container_id,
                position=position,
                seq=seq,
                payload=dict(payload or {}),
            )
            self._entities[kind][entity.id] = entity
            self._bump(kind, container_id)
            logger.debug(
                f"Created {kind.value} {entity.id} in {container_id} at {position}"
            )
            return entity.copy()

    async def get(self, kind: EntityKind, entity_id: str) -> Optional[StoredEntity]:
        """Get an entity by id."""
        entity = self._entities[kind].get(entity_id)
        return entity.copy() if entity else None

    async def list_container(
        self,
        kind: EntityKind,
        container_id: str,
    ) -> Tuple[StoredEntity, ...]:
        """List a container's entities in canonical sibling order."""
        async with self._lock:
            return tuple(e.copy() for e in self._ordered(kind, container_id))

    async def snapshot(
        self,
        kind: EntityKind,
        container_id: str,
    ) -> Tuple[int, Tuple[PositionedEntity, ...]]:
        """Read a container's version and ordered positions atomically."""
        async with self._lock:
            version = self._versions[(kind, container_id)]
            siblings = tuple(e.snapshot() for e in self._ordered(kind, container_id))
            return version, siblings

    async def upsert(self, entity: StoredEntity) -> StoredEntity:
        """Insert or replace an entity by id."""
        async with self._lock:
            previous = self._entities[entity.kind].get(entity.id)
            stored = entity.copy()
            if previous is None and not stored.seq:
                _, stored.seq = self._next_id(entity.kind)
            self._entities[entity.kind][entity.id] = stored
            self._bump(entity.kind, entity.container_id)
            if previous is not None and previous.container_id != entity.container_id:
                self._bump(entity.kind, previous.container_id)
            return stored.copy()

    async def delete(self, kind: EntityKind, entity_id: str) -> bool:
        """Delete an entity. Returns False if it did not exist."""
        async with self._lock:
            entity = self._entities[kind].pop(entity_id, None)
            if entity is None:
                return False
            self._bump(kind, entity.container_id)
            return True

    async def container_version(self, kind: EntityKind, container_id: str) -> int:
        """Current version of a container."""
        async with self._lock:
            return self._versions[(kind, container_id)]

    async def write_positions(
        self,
        kind: EntityKind,
        expected_versions: Dict[str, int],
        updates: Dict[str, float],
        container_changes: Optional[Dict[str, str]] = None,
    ) -> Dict[str, int]:
        """Compare-and-swap write of positions (and container moves).

        Args:
            kind: Entity kind of every updated entity
            expected_versions: container_id -> version the caller read
            updates: entity_id -> new position
            container_changes: entity_id -> new container_id

        Returns:
            New versions of the touched containers

        Raises:
            ConflictError: If any container version moved on since the read
            KeyError: If an updated entity does not exist
        """
        container_changes = container_changes or {}
        async with self._lock:
            for container_id, expected in expected_versions.items():
                actual = self._versions[(kind, container_id)]
                if actual != expected:
                    raise ConflictError(
                        f"Container '{container_id}' changed during move "
                        f"(expected version {expected}, found {actual})",
                        container_id=container_id,
                        expected_version=expected,
                        actual_version=actual,
                    )

            entities = self._entities[kind]
            for entity_id in (*updates, *container_changes):
                if entity_id not in entities:
                    raise KeyError(entity_id)

            for entity_id, position in updates.items():
                entities[entity_id].position = position
            for entity_id, container_id in container_changes.items():
                entities[entity_id].container_id = container_id

            for container_id in expected_versions:
                self._bump(kind, container_id)
            return {
                container_id: self._versions[(kind, container_id)]
                for container_id in expected_versions
            }

    def container_lock(self, kind: EntityKind, container_id: str) -> asyncio.Lock:
        """Per-container serialization point for read-then-write moves."""
        key = (kind, container_id)
        lock = self._container_locks.get(key)
        if lock is None:
            lock = self._container_locks[key] = asyncio.Lock()
        return lock

    @asynccontextmanager
    async def lock_containers(
        self,
        kind: EntityKind,
        container_ids: Iterable[str],
    ) -> AsyncIterator[None]:
        """Hold the locks of several containers, acquired in sorted order."""
        async with AsyncExitStack() as stack:
            for container_id in sorted(set(container_ids)):
                await stack.enter_async_context(self.container_lock(kind, container_id))
            yield
