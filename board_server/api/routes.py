"""
Board Server API routes.

Provides the schema document and the list/card operations the board view
needs: create, list in order, and move (drag and drop).

Authentication and permission checks run before these handlers; every
request reaching them is allowed.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field

from ..apply import BoardStore, EntityKind, MoveService, StoredEntity
from ..errors import BoardError, ConflictError, EntityNotFoundError, InvalidMoveError
from ..ordering import MoveRequest
from ..schema import SchemaAssembler

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Boards"])


# =============================================================================
# Request/Response Models
# =============================================================================


class MoveBody(BaseModel):
    """Move an entity to a slot of the target container."""

    model_config = ConfigDict(populate_by_name=True)

    from_index: Optional[int] = Field(
        None,
        alias="fromIndex",
        description="Index in the target container's view; null when arriving from another container",
    )
    to_index: int = Field(..., alias="toIndex", description="Target index in the container's view")
    target_container_id: str = Field(
        ...,
        alias="targetContainerId",
        description="Board id for lists, list id for cards",
    )


class CreateBody(BaseModel):
    """Create a list or card at the tail of its container."""

    title: str = Field(..., min_length=1)
    description: Optional[str] = None


class EntityResponse(BaseModel):
    """A list or card with its ordering fields."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    kind: str
    container_id: str = Field(..., alias="containerId")
    position: float
    payload: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_entity(cls, entity: StoredEntity) -> "EntityResponse":
        return cls(**entity.to_dict())


class SchemaResponse(BaseModel):
    fingerprint: str
    entities: list[str]
    schema_text: str = Field(..., alias="schema")

    model_config = ConfigDict(populate_by_name=True)


# =============================================================================
# Dependencies
# =============================================================================


def get_store(request: Request) -> BoardStore:
    """Get the board store from app state."""
    return request.app.state.store


def get_mover(request: Request) -> MoveService:
    """Get the move service from app state."""
    return request.app.state.mover


def get_assembler(request: Request) -> SchemaAssembler:
    """Get the schema assembler from app state."""
    return request.app.state.assembler


def _http_error(error: BoardError) -> HTTPException:
    if isinstance(error, EntityNotFoundError):
        status = 404
    elif isinstance(error, ConflictError):
        status = 409
    elif isinstance(error, InvalidMoveError):
        status = 400
    else:
        status = 500
    return HTTPException(status_code=status, detail=error.to_dict())


async def _move(mover: MoveService, kind: EntityKind, entity_id: str, body: MoveBody) -> EntityResponse:
    request = MoveRequest(
        entity_id=entity_id,
        from_index=body.from_index,
        to_index=body.to_index,
        target_container_id=body.target_container_id,
    )
    try:
        if kind is EntityKind.LIST:
            entity = await mover.move_list(request)
        else:
            entity = await mover.move_card(request)
    except BoardError as e:
        logger.info(f"Rejected {kind.value} move of {entity_id}: {e.code} {e.message}")
        raise _http_error(e) from e
    return EntityResponse.from_entity(entity)


# =============================================================================
# Schema
# =============================================================================


@router.get("/schema", response_model=SchemaResponse, response_model_by_alias=True)
async def get_schema(assembler: SchemaAssembler = Depends(get_assembler)):
    """Current schema document and its fingerprint."""
    document = assembler.document or assembler.build()
    return SchemaResponse(
        fingerprint=document.fingerprint,
        entities=list(document.entities),
        schema_text=document.text,
    )


# =============================================================================
# Lists
# =============================================================================


@router.get("/boards/{board_id}/lists", response_model=list[EntityResponse], response_model_by_alias=True)
async def get_lists(board_id: str, store: BoardStore = Depends(get_store)):
    """Lists of a board in position order."""
    lists = await store.list_container(EntityKind.LIST, board_id)
    return [EntityResponse.from_entity(e) for e in lists]


@router.post("/boards/{board_id}/lists", response_model=EntityResponse, response_model_by_alias=True)
async def create_list(board_id: str, body: CreateBody, store: BoardStore = Depends(get_store)):
    """Create a list at the end of a board."""
    entity = await store.create(EntityKind.LIST, board_id, body.model_dump(exclude_none=True))
    return EntityResponse.from_entity(entity)


@router.post("/lists/{list_id}/move", response_model=EntityResponse, response_model_by_alias=True)
async def move_list(list_id: str, body: MoveBody, mover: MoveService = Depends(get_mover)):
    """Move a list to another slot of its board."""
    return await _move(mover, EntityKind.LIST, list_id, body)


# =============================================================================
# Cards
# =============================================================================


@router.get("/lists/{list_id}/cards", response_model=list[EntityResponse], response_model_by_alias=True)
async def get_cards(list_id: str, store: BoardStore = Depends(get_store)):
    """Cards of a list in position order."""
    cards = await store.list_container(EntityKind.CARD, list_id)
    return [EntityResponse.from_entity(e) for e in cards]


@router.post("/lists/{list_id}/cards", response_model=EntityResponse, response_model_by_alias=True)
async def create_card(list_id: str, body: CreateBody, store: BoardStore = Depends(get_store)):
    """Create a card at the end of a list."""
    if await store.get(EntityKind.LIST, list_id) is None:
        error = EntityNotFoundError(f"List '{list_id}' not found", kind="list", entity_id=list_id)
        raise _http_error(error)
    entity = await store.create(EntityKind.CARD, list_id, body.model_dump(exclude_none=True))
    return EntityResponse.from_entity(entity)


@router.post("/cards/{card_id}/move", response_model=EntityResponse, response_model_by_alias=True)
async def move_card(card_id: str, body: MoveBody, mover: MoveService = Depends(get_mover)):
    """Move a card within its list or into another list."""
    return await _move(mover, EntityKind.CARD, card_id, body)
