"""
Board Server - FastAPI application factory.

On startup the lifespan hook:
- Registers the declared entities with a schema assembler
- Subscribes the schema file sink (when configured)
- Builds the schema document once; it stays cached until a reload
- Wires the board store and move service into app state

Usage:
    uvicorn board_server.app:app --port 4000
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import router
from .apply import BoardStore, MoveService
from .config import Settings
from .entities import ALL_ENTITIES
from .schema import FileSchemaSink, SchemaAssembler


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[BoardStore] = None,
) -> FastAPI:
    """Create the Board Server FastAPI app.

    Args:
        settings: Configuration (loaded from environment if omitted)
        store: Board store (a fresh in-memory store if omitted)
    """
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Build the schema and wire services."""
        assembler = SchemaAssembler()
        for entity in ALL_ENTITIES:
            assembler.register_entity(entity)
        if settings.schema_output_path:
            assembler.add_sink(FileSchemaSink(settings.schema_output_path))
        assembler.build()

        board_store = store or BoardStore()
        app.state.settings = settings
        app.state.assembler = assembler
        app.state.store = board_store
        app.state.mover = MoveService(
            board_store,
            renormalize_threshold=settings.renormalize_threshold,
            max_retries=settings.move_max_retries,
        )

        yield

    app = FastAPI(
        title="Board Server",
        description=(
            "Boards, lists and cards with drag-and-drop ordering. "
            "The query schema is compiled from entity declarations at startup."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router, prefix="/api/v1")

    @app.get("/health")
    async def health():
        return {"status": "healthy", "service": "board-server"}

    return app


app = create_app()
