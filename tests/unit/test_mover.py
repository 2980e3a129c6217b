"""
Unit tests for the move service.

Tests cover:
- Moves within a container
- Cards moving between lists
- Lists pinned to their board
- Rejected and unknown moves
- No-op moves
- Renormalization
- Conflict retries
- Concurrent moves of one entity
"""

import asyncio

import pytest

from board_server.apply import BoardStore, EntityKind, MoveService
from board_server.errors import ConflictError, EntityNotFoundError, InvalidMoveError
from board_server.ordering import MoveRequest


class ConflictingStore(BoardStore):
    """Store whose CAS writes lose the race a fixed number of times."""

    def __init__(self, failures):
        super().__init__()
        self.failures = failures
        self.attempts = 0

    async def write_positions(self, kind, expected_versions, updates, container_changes=None):
        self.attempts += 1
        if self.attempts <= self.failures:
            container_id = next(iter(expected_versions))
            raise ConflictError(
                f"Container '{container_id}' changed during move",
                container_id=container_id,
            )
        return await super().write_positions(kind, expected_versions, updates, container_changes)


async def _cards(store, list_id, *ids):
    for card_id in ids:
        await store.create(EntityKind.CARD, list_id, {"title": card_id}, entity_id=card_id)


async def _order(store, kind, container_id):
    return [(e.id, e.position) for e in await store.list_container(kind, container_id)]


class TestMoveWithinContainer:
    """Tests for moves inside one container."""

    @pytest.fixture
    def store(self):
        return BoardStore()

    @pytest.mark.asyncio
    async def test_move_card_up(self, store):
        await _cards(store, "list-1", "A", "B", "C")
        service = MoveService(store)

        card = await service.move_card(MoveRequest("C", from_index=2, to_index=1, target_container_id="list-1"))

        assert card.position == 1.5
        assert await _order(store, EntityKind.CARD, "list-1") == [("A", 1), ("C", 1.5), ("B", 2)]

    @pytest.mark.asyncio
    async def test_move_only_writes_moved_entity(self, store):
        await _cards(store, "list-1", "A", "B", "C")
        service = MoveService(store)

        await service.move_card(MoveRequest("A", from_index=0, to_index=2, target_container_id="list-1"))

        assert await _order(store, EntityKind.CARD, "list-1") == [("B", 2), ("C", 3), ("A", 4)]

    @pytest.mark.asyncio
    async def test_move_list(self, store):
        for name in ("todo", "doing", "done"):
            await store.create(EntityKind.LIST, "board-1", {"title": name}, entity_id=name)
        service = MoveService(store)

        moved = await service.move_list(
            MoveRequest("done", from_index=2, to_index=0, target_container_id="board-1")
        )

        assert moved.position == 0
        lists = await store.list_container(EntityKind.LIST, "board-1")
        assert [e.id for e in lists] == ["done", "todo", "doing"]

    @pytest.mark.asyncio
    async def test_noop_move_changes_nothing(self, store):
        await _cards(store, "list-1", "A", "B", "C")
        service = MoveService(store)
        version = await store.container_version(EntityKind.CARD, "list-1")

        card = await service.move_card(MoveRequest("B", from_index=1, to_index=1, target_container_id="list-1"))

        assert card.position == 2
        assert await store.container_version(EntityKind.CARD, "list-1") == version


class TestMoveAcrossContainers:
    """Tests for cards changing list and lists pinned to boards."""

    @pytest.fixture
    def store(self):
        return BoardStore()

    @pytest.mark.asyncio
    async def test_card_moves_to_other_list(self, store):
        await _cards(store, "list-1", "A", "B")
        await _cards(store, "list-2", "X")
        service = MoveService(store)

        card = await service.move_card(MoveRequest("A", from_index=None, to_index=0, target_container_id="list-2"))

        assert card.container_id == "list-2"
        assert card.position == 0
        assert await _order(store, EntityKind.CARD, "list-1") == [("B", 2)]
        assert await _order(store, EntityKind.CARD, "list-2") == [("A", 0), ("X", 1)]

    @pytest.mark.asyncio
    async def test_source_index_ignored_for_other_list(self, store):
        """A fromIndex from the source list does not address the target view."""
        await _cards(store, "list-1", "A")
        await _cards(store, "list-2", "X", "Y")
        service = MoveService(store)

        card = await service.move_card(MoveRequest("A", from_index=0, to_index=2, target_container_id="list-2"))

        assert card.position == 3
        assert [e for e, _ in await _order(store, EntityKind.CARD, "list-2")] == ["X", "Y", "A"]

    @pytest.mark.asyncio
    async def test_list_cannot_change_board(self, store):
        await store.create(EntityKind.LIST, "board-1", entity_id="todo")
        service = MoveService(store)

        with pytest.raises(InvalidMoveError, match="cannot move from board 'board-1'"):
            await service.move_list(MoveRequest("todo", from_index=None, to_index=0, target_container_id="board-2"))

        assert (await store.get(EntityKind.LIST, "todo")).container_id == "board-1"


class TestRejectedMoves:
    """Tests for moves that are refused."""

    @pytest.mark.asyncio
    async def test_missing_to_index(self):
        store = BoardStore()
        await _cards(store, "list-1", "A")

        with pytest.raises(InvalidMoveError):
            await MoveService(store).move_card(
                MoveRequest("A", from_index=0, to_index=None, target_container_id="list-1")
            )

    @pytest.mark.asyncio
    async def test_unknown_card(self):
        with pytest.raises(EntityNotFoundError) as exc_info:
            await MoveService(BoardStore()).move_card(
                MoveRequest("ghost", from_index=None, to_index=0, target_container_id="list-1")
            )

        assert exc_info.value.kind == "card"
        assert exc_info.value.entity_id == "ghost"


class TestRenormalization:
    """Tests for renormalization after precision decay."""

    @pytest.mark.asyncio
    async def test_collapsed_gap_rewrites_container(self):
        store = BoardStore()
        await store.create(EntityKind.CARD, "list-1", position=1, entity_id="A")
        await store.create(EntityKind.CARD, "list-1", position=1 + 1e-7, entity_id="B")
        await store.create(EntityKind.CARD, "list-1", position=3, entity_id="C")
        service = MoveService(store)

        card = await service.move_card(MoveRequest("C", from_index=2, to_index=1, target_container_id="list-1"))

        assert card.position == 2
        assert await _order(store, EntityKind.CARD, "list-1") == [("A", 1), ("C", 2), ("B", 3)]

    @pytest.mark.asyncio
    async def test_threshold_is_configurable(self):
        store = BoardStore()
        await _cards(store, "list-1", "A", "B", "C")
        service = MoveService(store, renormalize_threshold=0.75)

        await service.move_card(MoveRequest("C", from_index=2, to_index=1, target_container_id="list-1"))

        assert await _order(store, EntityKind.CARD, "list-1") == [("A", 1), ("C", 2), ("B", 3)]

    @pytest.mark.asyncio
    async def test_moved_entity_written_when_slot_matches_planned_position(self):
        """The moved card lands at the head even if 1 is also its new index."""
        store = BoardStore()
        await store.create(EntityKind.CARD, "list-1", position=2, entity_id="A")
        await store.create(EntityKind.CARD, "list-1", position=2 + 1e-10, entity_id="B")
        await store.create(EntityKind.CARD, "list-1", position=9, entity_id="C")
        service = MoveService(store)

        card = await service.move_card(MoveRequest("C", from_index=2, to_index=0, target_container_id="list-1"))

        assert card.position == 1
        assert await _order(store, EntityKind.CARD, "list-1") == [("C", 1), ("A", 2), ("B", 3)]


class TestConflictRetries:
    """Tests for CAS conflict handling."""

    @pytest.mark.asyncio
    async def test_conflict_retried(self):
        store = ConflictingStore(failures=1)
        await _cards(store, "list-1", "A", "B")

        card = await MoveService(store).move_card(
            MoveRequest("B", from_index=1, to_index=0, target_container_id="list-1")
        )

        assert card.position == 0
        assert store.attempts == 2

    @pytest.mark.asyncio
    async def test_conflict_surfaces_after_retries(self):
        store = ConflictingStore(failures=100)
        await _cards(store, "list-1", "A", "B")

        with pytest.raises(ConflictError) as exc_info:
            await MoveService(store, max_retries=2).move_card(
                MoveRequest("B", from_index=1, to_index=0, target_container_id="list-1")
            )

        assert exc_info.value.retryable
        assert isinstance(exc_info.value.__cause__, ConflictError)
        assert store.attempts == 3
        assert await _order(store, EntityKind.CARD, "list-1") == [("A", 1), ("B", 2)]


class TestConcurrentMoves:
    """Tests for moves racing on the same entity."""

    @pytest.mark.asyncio
    async def test_entity_relocated_before_locks_taken(self):
        """A move that loaded a stale container re-reads it under the lock."""
        store = BoardStore()
        await store.create(EntityKind.CARD, "list-1", position=1, entity_id="X")
        await store.create(EntityKind.CARD, "list-1", position=2, entity_id="Y")
        await store.create(EntityKind.CARD, "list-2", position=1, entity_id="Z")
        service = MoveService(store)

        held = store.container_lock(EntityKind.CARD, "list-2")
        await held.acquire()
        to_other_list = asyncio.create_task(
            service.move_card(MoveRequest("X", from_index=None, to_index=0, target_container_id="list-2"))
        )
        for _ in range(5):
            await asyncio.sleep(0)
        within_list = asyncio.create_task(
            service.move_card(MoveRequest("X", from_index=0, to_index=1, target_container_id="list-1"))
        )
        for _ in range(5):
            await asyncio.sleep(0)
        held.release()

        first, second = await asyncio.gather(to_other_list, within_list)

        assert (first.container_id, first.position) == ("list-2", 0)
        # The second move applies after the first: X comes back behind Y
        assert (second.container_id, second.position) == ("list-1", 3)
        assert await _order(store, EntityKind.CARD, "list-1") == [("Y", 2), ("X", 3)]
        assert await _order(store, EntityKind.CARD, "list-2") == [("Z", 1)]

    @pytest.mark.asyncio
    async def test_concurrent_moves_keep_positions_distinct(self):
        """Moves into one list are serialized; no two cards share a slot."""
        store = BoardStore()
        await _cards(store, "list-1", "A", "B", "C", "D", "E")
        service = MoveService(store)

        await asyncio.gather(*(
            service.move_card(MoveRequest(card_id, from_index=None, to_index=1, target_container_id="list-1"))
            for card_id in ("C", "D", "E")
        ))

        positions = [p for _, p in await _order(store, EntityKind.CARD, "list-1")]
        assert len(set(positions)) == 5
        assert positions == sorted(positions)
