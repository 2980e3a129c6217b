"""
Board Server entity definitions.

Declarative field maps and API operation signatures for boards, lists and
cards. The schema assembler compiles these at startup; permissions and
persistence live elsewhere.

Notes:
    - labels, members and options are declared without nested shapes and
      are therefore left out of the compiled types until they are specified
    - List and card positions are fractional, so they override the
      number -> Int inference with Float
"""

from __future__ import annotations

from .schema.types import EntityDef, FieldMap, field


def _fields(*descriptors):
    return FieldMap(fields=tuple(descriptors))


Board = EntityDef(
    name="Board",
    description="A board holding ordered lists",
    fields=_fields(
        field("id", "string", readonly=True),
        field("owner", required=True),
        field("title", "string", required=True),
        field("slug", "string", readonly=True),
        field("description", "string"),
        field("position", "number", hidden=True, default=0),
        field("archived", "boolean", default=False),
        field("stars", "number", default=0),
        field("labels", "array"),
        field("members", "array"),
        field("options", "object"),
        field("createdAt", "date", type_override="Date", readonly=True),
        field("updatedAt", "date", type_override="Date", readonly=True),
        field("archivedAt", "date", type_override="Date"),
        field("deletedAt", "date", type_override="Date"),
    ),
    queries=(
        "boards(limit: Int, offset: Int, sort: String): [Board]",
        "boardById(id: String!): Board",
    ),
    mutations=(
        "boardCreate(title: String!, description: String): Board",
        "boardUpdate(id: String!, title: String, description: String, archived: Boolean): Board",
        "boardRemove(id: String!): String",
    ),
)

List = EntityDef(
    name="List",
    description="An ordered column of cards inside a board",
    fields=_fields(
        field("id", "string", readonly=True),
        field("board", "string", required=True),
        field("title", "string", required=True),
        field("description", "string"),
        field("color", "string"),
        field("position", "number", type_override="Float"),
        field("createdAt", "date", type_override="Date", readonly=True),
        field("updatedAt", "date", type_override="Date", readonly=True),
    ),
    queries=(
        "lists(board: String!, sort: String): [List]",
        "listById(id: String!): List",
    ),
    mutations=(
        "listCreate(board: String!, title: String!, description: String): List",
        "listUpdate(id: String!, title: String, description: String, color: String): List",
        "listRemove(id: String!): String",
        "listMove(id: String!, fromIndex: Int, toIndex: Int!, board: String!): List",
    ),
)

Card = EntityDef(
    name="Card",
    description="An ordered item inside a list",
    fields=_fields(
        field("id", "string", readonly=True),
        field("list", "string", required=True),
        field("title", "string", required=True),
        field("description", "string"),
        field("position", "number", type_override="Float"),
        field("labels", "array", items="string"),
        field("createdAt", "date", type_override="Date", readonly=True),
        field("updatedAt", "date", type_override="Date", readonly=True),
    ),
    queries=(
        "cards(list: String!, sort: String): [Card]",
        "cardById(id: String!): Card",
    ),
    mutations=(
        "cardCreate(list: String!, title: String!, description: String): Card",
        "cardUpdate(id: String!, title: String, description: String): Card",
        "cardRemove(id: String!): String",
        "cardMove(id: String!, fromIndex: Int, toIndex: Int!, list: String!): Card",
    ),
)

ALL_ENTITIES = [Board, List, Card]
