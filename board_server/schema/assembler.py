"""
Schema assembler for Board Server.

The SchemaAssembler owns the application's schema document. It provides:
- Registration of entity definitions
- Compilation of every entity into one textual schema document
- Fingerprinting of the document for change detection
- A "schema updated" event delivered to sinks whenever the text changes

Invariants:
    - Entity names are unique within an assembler
    - Document text is deterministic for a given registration order
    - Sinks are only notified when the fingerprint changes
    - A failing sink never fails the build

How to change safely:
    - Register all entities before the first build()
    - Use reload() to swap metadata at runtime; never mutate EntityDefs
    - Keep the document layout stable; consumers merge it textually

Example:
    >>> assembler = SchemaAssembler()
    >>> assembler.register_entity(Board)
    >>> assembler.add_sink(FileSchemaSink("schema.gql"))
    >>> document = assembler.build()
    >>> document.fingerprint
    'sha256:abc123...'
"""

from __future__ import annotations

import hashlib
import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from pathlib import Path
from typing import Optional

from ..errors import DuplicateEntityError
from .compiler import INDENT, CompiledEntity, compile_entity
from .types import EntityDef

logger = logging.getLogger(__name__)

PREAMBLE = "scalar Date"

SchemaSink = Callable[["SchemaDocument"], None]


@dataclass(frozen=True)
class SchemaDocument:
    """Assembled schema text for all registered entities.

    Attributes:
        text: Full schema document
        fingerprint: SHA-256 of the text in format 'sha256:<hash>'
        entities: Entity names in registration order
    """

    text: str
    fingerprint: str
    entities: tuple[str, ...] = dataclass_field(default_factory=tuple)


def _operation_block(name: str, signatures: list[str]) -> str:
    last_idx = len(signatures) - 1
    lines = [f"type {name} {{"]
    for idx, signature in enumerate(signatures):
        lines.append(f"{INDENT}{signature.strip()}{'' if idx == last_idx else ','}")
    lines.append("}")
    return "\n".join(lines)


def render_document(compiled: Iterable[CompiledEntity]) -> str:
    """Render compiled entities into a single schema document.

    Layout: the scalar preamble, every entity type in order, then the Query
    and Mutation blocks (left out when empty), separated by blank lines.
    """
    blocks = [PREAMBLE]
    queries: list[str] = []
    mutations: list[str] = []
    for entity in compiled:
        blocks.append(entity.type_definition.render())
        queries.extend(entity.queries)
        mutations.extend(entity.mutations)

    if queries:
        blocks.append(_operation_block("Query", queries))
    if mutations:
        blocks.append(_operation_block("Mutation", mutations))

    return "\n\n".join(blocks) + "\n"


def compute_fingerprint(text: str) -> str:
    """Compute the 'sha256:<hash>' fingerprint of a schema document."""
    return f"sha256:{hashlib.sha256(text.encode('utf-8')).hexdigest()}"


class SchemaAssembler:
    """Central registry and builder for the schema document.

    Thread-safety:
        - Registration, build and reload are serialized by an internal lock
        - Sinks run outside the lock

    Attributes:
        document: Last built document (None before the first build)
    """

    def __init__(self) -> None:
        """Initialize an empty assembler."""
        self._entities: dict[str, EntityDef] = {}
        self._sinks: list[SchemaSink] = []
        self._document: Optional[SchemaDocument] = None
        self._lock = threading.Lock()

    @property
    def document(self) -> Optional[SchemaDocument]:
        """Last built schema document."""
        return self._document

    def entities(self) -> list[EntityDef]:
        """Registered entities in registration order."""
        return list(self._entities.values())

    def get_entity(self, name: str) -> Optional[EntityDef]:
        return self._entities.get(name)

    def add_sink(self, sink: SchemaSink) -> None:
        """Subscribe a callable to "schema updated" events."""
        self._sinks.append(sink)

    def register_entity(self, entity: EntityDef) -> None:
        """Register an entity definition.

        Raises:
            DuplicateEntityError: If the entity name is already registered
        """
        with self._lock:
            if entity.name in self._entities:
                raise DuplicateEntityError(entity.name)
            self._entities[entity.name] = entity
            logger.debug(f"Registered entity: {entity.name} ({len(entity.fields)} fields)")

    def build(self) -> SchemaDocument:
        """Compile all entities and refresh the cached document.

        Sinks are notified when the fingerprint differs from the cached one.

        Returns:
            The current schema document
        """
        with self._lock:
            document, changed = self._build_locked()
        if changed:
            self._notify(document)
        return document

    def reload(self, entities: Iterable[EntityDef]) -> SchemaDocument:
        """Replace every registration and rebuild.

        Raises:
            DuplicateEntityError: If the new set contains a name twice
        """
        replacement: dict[str, EntityDef] = {}
        for entity in entities:
            if entity.name in replacement:
                raise DuplicateEntityError(entity.name)
            replacement[entity.name] = entity

        with self._lock:
            self._entities = replacement
            document, changed = self._build_locked()
        logger.info(f"Schema metadata reloaded with {len(replacement)} entities")
        if changed:
            self._notify(document)
        return document

    def _build_locked(self) -> tuple[SchemaDocument, bool]:
        compiled = []
        for entity in self._entities.values():
            result = compile_entity(entity)
            for omitted in result.type_definition.omitted:
                logger.warning(
                    f"Field '{omitted.name}' omitted from type '{entity.name}': "
                    f"{omitted.reason.value}"
                )
            compiled.append(result)

        text = render_document(compiled)
        document = SchemaDocument(
            text=text,
            fingerprint=compute_fingerprint(text),
            entities=tuple(self._entities.keys()),
        )
        previous = self._document
        self._document = document
        changed = previous is None or previous.fingerprint != document.fingerprint
        if changed:
            logger.info(
                f"Schema built with {len(compiled)} entities, "
                f"fingerprint={document.fingerprint}"
            )
        return document, changed

    def _notify(self, document: SchemaDocument) -> None:
        for sink in list(self._sinks):
            try:
                sink(document)
            except Exception as e:
                logger.error(f"Schema sink {sink!r} failed: {e}", exc_info=True)


class FileSchemaSink:
    """Persists the schema document to a file and logs it.

    Example:
        >>> assembler.add_sink(FileSchemaSink("./schema.gql"))
    """

    def __init__(self, path: str | Path = "schema.gql") -> None:
        self.path = Path(path)

    def __call__(self, document: SchemaDocument) -> None:
        logger.info("Generated schema:\n\n" + document.text)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(document.text, encoding="utf-8")

    def __repr__(self) -> str:
        return f"FileSchemaSink({str(self.path)!r})"
