"""
Unit tests for the schema assembler.

Tests cover:
- Entity registration and duplicates
- Document layout
- Fingerprints and change events
- Sink failure isolation
- File sink
"""

import logging

import pytest

from board_server.entities import ALL_ENTITIES
from board_server.errors import DuplicateEntityError
from board_server.schema.assembler import (
    FileSchemaSink,
    SchemaAssembler,
)
from board_server.schema.types import EntityDef, FieldMap


def _board(**fields):
    return EntityDef(
        name="Board",
        fields=FieldMap.from_dict(fields or {"title": {"type": "string", "required": True}}),
        queries=("boards: [Board]",),
        mutations=("boardCreate(title: String!): Board",),
    )


class TestSchemaAssembler:
    """Tests for SchemaAssembler."""

    def test_register_and_lookup(self):
        assembler = SchemaAssembler()
        board = _board()
        assembler.register_entity(board)

        assert assembler.get_entity("Board") == board
        assert assembler.entities() == [board]

    def test_duplicate_entity_raises(self):
        assembler = SchemaAssembler()
        assembler.register_entity(_board())

        with pytest.raises(DuplicateEntityError, match="'Board' is already registered"):
            assembler.register_entity(_board())

    def test_document_layout(self):
        """Preamble, types, then Query and Mutation blocks."""
        assembler = SchemaAssembler()
        assembler.register_entity(_board())
        assembler.register_entity(
            EntityDef(
                name="Card",
                fields=FieldMap.from_dict({"title": "string", "position": "number"}),
                queries=("cards(list: String!): [Card]",),
            )
        )

        document = assembler.build()

        assert document.text == (
            "scalar Date\n"
            "\n"
            "type Board {\n"
            "  title: String!\n"
            "}\n"
            "\n"
            "type Card {\n"
            "  title: String,\n"
            "  position: Int\n"
            "}\n"
            "\n"
            "type Query {\n"
            "  boards: [Board],\n"
            "  cards(list: String!): [Card]\n"
            "}\n"
            "\n"
            "type Mutation {\n"
            "  boardCreate(title: String!): Board\n"
            "}\n"
        )
        assert document.entities == ("Board", "Card")

    def test_empty_operation_blocks_left_out(self):
        assembler = SchemaAssembler()
        assembler.register_entity(EntityDef(name="Tag", fields=FieldMap.from_dict({"name": "string"})))

        text = assembler.build().text

        assert "type Query" not in text
        assert "type Mutation" not in text

    def test_fingerprint_deterministic(self):
        """Same registrations produce the same fingerprint."""
        a1, a2 = SchemaAssembler(), SchemaAssembler()
        for entity in ALL_ENTITIES:
            a1.register_entity(entity)
            a2.register_entity(entity)

        d1, d2 = a1.build(), a2.build()

        assert d1.fingerprint == d2.fingerprint
        assert d1.fingerprint.startswith("sha256:")
        assert d1.text == d2.text

    def test_sinks_notified_only_on_change(self):
        """Rebuilding unchanged metadata does not emit an event."""
        assembler = SchemaAssembler()
        assembler.register_entity(_board())
        events = []
        assembler.add_sink(events.append)

        first = assembler.build()
        assembler.build()

        assert events == [first]

    def test_reload_emits_new_document(self):
        """reload() swaps metadata and emits when the text changes."""
        assembler = SchemaAssembler()
        assembler.register_entity(_board())
        events = []
        assembler.add_sink(events.append)
        assembler.build()

        document = assembler.reload([_board(title="string", stars="number")])

        assert len(events) == 2
        assert events[-1] == document
        assert "  stars: Int" in document.text
        assert assembler.document == document

    def test_reload_duplicate_raises(self):
        assembler = SchemaAssembler()
        with pytest.raises(DuplicateEntityError):
            assembler.reload([_board(), _board()])

    def test_failing_sink_does_not_fail_build(self, caplog):
        """Sink errors are logged and the remaining sinks still run."""
        assembler = SchemaAssembler()
        assembler.register_entity(_board())
        received = []

        def broken(document):
            raise OSError("disk full")

        assembler.add_sink(broken)
        assembler.add_sink(received.append)

        with caplog.at_level(logging.ERROR):
            document = assembler.build()

        assert received == [document]
        assert "disk full" in caplog.text

    def test_omitted_fields_logged(self, caplog):
        """Omissions are visible in the logs."""
        assembler = SchemaAssembler()
        assembler.register_entity(_board(title="string", labels={"type": "array"}))

        with caplog.at_level(logging.WARNING):
            assembler.build()

        assert "Field 'labels' omitted from type 'Board'" in caplog.text


class TestFileSchemaSink:
    """Tests for FileSchemaSink."""

    def test_writes_document(self, tmp_path):
        path = tmp_path / "out" / "schema.gql"
        assembler = SchemaAssembler()
        assembler.register_entity(_board())
        assembler.add_sink(FileSchemaSink(path))

        document = assembler.build()

        assert path.read_text(encoding="utf-8") == document.text
