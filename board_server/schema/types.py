"""
Core type definitions for the Board Server schema system.

This module defines the declarative metadata that entity services publish:
- FieldDescriptor: One attribute of an entity (kind, optionality, nesting)
- FieldMap: Ordered collection of descriptors (order is output order)
- EntityDef: An entity with its field map and API operation signatures

Invariants:
    - Field names are unique within a FieldMap
    - FieldMap order is declaration order, never sorted
    - An array without items or an object without properties is unresolved;
      unresolved fields are legal metadata (they are skipped at compile time)
    - Descriptors are immutable once built

How to change safely:
    - Add new descriptor attributes with defaults
    - Keep from_value() tolerant; partial metadata is expected while
      entities are being authored
    - Never make kind inference stricter here; use schema.lint for that

Example:
    >>> from board_server.schema.types import EntityDef, FieldMap, field
    >>> Board = EntityDef(
    ...     name="Board",
    ...     fields=FieldMap.from_pairs([
    ...         ("title", field("title", "string", required=True)),
    ...         ("position", field("position", "number")),
    ...     ]),
    ... )
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, replace
from dataclasses import field as dataclass_field
from enum import Enum
from typing import Any


class FieldKind(Enum):
    """Field kinds understood by entity declarations.

    Kinds outside this enum are still accepted on descriptors; the
    compiler passes their token through verbatim.
    """

    STRING = "string"
    BOOLEAN = "boolean"
    NUMBER = "number"
    DATE = "date"
    ARRAY = "array"
    OBJECT = "object"

    @classmethod
    def is_known(cls, value: str) -> bool:
        """Whether value names one of the declared kinds."""
        return any(kind.value == value for kind in cls)


@dataclass(frozen=True)
class FieldDescriptor:
    """Declarative metadata for a single entity field.

    Attributes:
        name: Field name, unique within its FieldMap
        kind: Kind token ("string", "number", ..., or any other token)
        required: Whether the field is non-nullable in the API
        items: Element descriptor when kind is "array"
        properties: Nested fields when kind is "object"
        type_override: Explicit API type name; wins over kind inference
        readonly: Field is set by the server only
        hidden: Field is not returned to clients by default
        default: Default value applied on create
        description: Human-readable description

    Example:
        >>> labels = FieldDescriptor(
        ...     name="labels",
        ...     kind="array",
        ...     items=FieldDescriptor(name="labels", kind="string"),
        ... )
    """

    name: str
    kind: str = FieldKind.STRING.value
    required: bool = False
    items: FieldDescriptor | None = None
    properties: FieldMap | None = None
    type_override: str | None = None
    readonly: bool = False
    hidden: bool = False
    default: Any = None
    description: str = ""

    @property
    def is_array(self) -> bool:
        return self.kind == FieldKind.ARRAY.value

    @property
    def is_object(self) -> bool:
        return self.kind == FieldKind.OBJECT.value

    @property
    def is_unresolved(self) -> bool:
        """Whether the descriptor lacks the nested shape its kind needs.

        An explicit type_override always resolves the field.
        """
        if self.type_override:
            return False
        if self.is_array and self.items is None:
            return True
        if self.is_object and self.properties is None:
            return True
        return False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation for serialization."""
        result: dict[str, Any] = {"type": self.kind}
        if self.required:
            result["required"] = True
        if self.items is not None:
            result["items"] = self.items.to_dict()
        if self.properties is not None:
            result["properties"] = self.properties.to_dict()
        if self.type_override:
            result["graphqlType"] = self.type_override
        if self.readonly:
            result["readonly"] = True
        if self.hidden:
            result["hidden"] = True
        if self.default is not None:
            result["default"] = self.default
        if self.description:
            result["description"] = self.description
        return result

    @classmethod
    def from_value(cls, name: str, value: Any) -> FieldDescriptor:
        """Build a descriptor from a declaration value.

        Accepts the full dict form, the string shorthand (``"string"``
        means ``{"type": "string"}``) and anything else, which degrades to
        a plain string field. Never raises for odd shapes.

        Args:
            name: Field name
            value: Declaration value (dict, kind string, or other)

        Returns:
            FieldDescriptor instance
        """
        if isinstance(value, str):
            return cls(name=name, kind=value or FieldKind.STRING.value)
        if not isinstance(value, Mapping):
            return cls(name=name)

        kind = value.get("type", value.get("kind"))
        if not isinstance(kind, str) or not kind:
            kind = FieldKind.STRING.value

        items_value = value.get("items")
        items = None
        if isinstance(items_value, (str, Mapping)):
            items = cls.from_value(name, items_value)

        properties_value = value.get("properties")
        properties = None
        if isinstance(properties_value, Mapping):
            properties = FieldMap.from_dict(properties_value)

        override = value.get("graphqlType", value.get("type_override"))
        if not isinstance(override, str) or not override:
            override = None

        description = value.get("description", "")
        return cls(
            name=name,
            kind=kind,
            required=bool(value.get("required", False)),
            items=items,
            properties=properties,
            type_override=override,
            readonly=bool(value.get("readonly", False)),
            hidden=bool(value.get("hidden", False)),
            default=value.get("default"),
            description=description if isinstance(description, str) else "",
        )


def field(
    name: str,
    kind: str | FieldKind = FieldKind.STRING,
    *,
    required: bool = False,
    items: FieldDescriptor | str | FieldKind | None = None,
    properties: FieldMap | None = None,
    type_override: str | None = None,
    readonly: bool = False,
    hidden: bool = False,
    default: Any = None,
    description: str = "",
) -> FieldDescriptor:
    """Convenience function to create a FieldDescriptor.

    This is the preferred way to declare fields in entity definitions.

    Args:
        name: Field name
        kind: Field kind (string or FieldKind enum)
        required: Whether field is required
        items: Element descriptor or element kind (for array kind)
        properties: Nested field map (for object kind)
        type_override: Explicit API type name
        readonly: Whether field is server-managed
        hidden: Whether field is hidden from clients
        default: Default value
        description: Human-readable description

    Returns:
        FieldDescriptor instance

    Example:
        >>> title = field("title", "string", required=True)
        >>> labels = field("labels", "array", items="string")
    """
    if isinstance(kind, FieldKind):
        kind = kind.value
    if isinstance(items, FieldKind):
        items = items.value
    if isinstance(items, str):
        items = FieldDescriptor(name=name, kind=items)
    return FieldDescriptor(
        name=name,
        kind=kind,
        required=required,
        items=items,
        properties=properties,
        type_override=type_override,
        readonly=readonly,
        hidden=hidden,
        default=default,
        description=description,
    )


@dataclass(frozen=True)
class FieldMap:
    """Ordered, name-unique collection of field descriptors.

    Order is carried explicitly as a tuple so that output order never
    depends on mapping iteration details.

    Attributes:
        fields: Descriptors in declaration order
    """

    fields: tuple[FieldDescriptor, ...] = dataclass_field(default_factory=tuple)

    def __post_init__(self) -> None:
        """Validate field map."""
        names = [f.name for f in self.fields]
        if len(names) != len(set(names)):
            duplicates = sorted({n for n in names if names.count(n) > 1})
            raise ValueError(f"Duplicate field name(s): {duplicates}")

    def __iter__(self) -> Iterator[FieldDescriptor]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def names(self) -> list[str]:
        """Get field names in declaration order."""
        return [f.name for f in self.fields]

    def get(self, name: str) -> FieldDescriptor | None:
        """Get a descriptor by name."""
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to an insertion-ordered dictionary."""
        return {f.name: f.to_dict() for f in self.fields}

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[str, Any]]) -> FieldMap:
        """Create from (name, declaration) pairs.

        A declaration may be a FieldDescriptor (renamed to the pair's name
        if needed) or any value accepted by FieldDescriptor.from_value().
        """
        fields = []
        for name, value in pairs:
            if isinstance(value, FieldDescriptor):
                if value.name != name:
                    value = replace(value, name=name)
                fields.append(value)
            else:
                fields.append(FieldDescriptor.from_value(name, value))
        return cls(fields=tuple(fields))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FieldMap:
        """Create from a name -> declaration mapping, keeping its order."""
        return cls.from_pairs(data.items())


@dataclass(frozen=True)
class EntityDef:
    """Declarative definition of an API entity.

    Attributes:
        name: Type name exposed by the API (e.g. "Board")
        fields: Ordered field map
        queries: Query signatures, e.g. ``board(id: String!): Board``
        mutations: Mutation signatures, e.g. ``boardCreate(title: String!): Board``
        description: Human-readable description

    Invariants:
        - name is non-empty
        - Signature order is declaration order
    """

    name: str
    fields: FieldMap = dataclass_field(default_factory=FieldMap)
    queries: tuple[str, ...] = dataclass_field(default_factory=tuple)
    mutations: tuple[str, ...] = dataclass_field(default_factory=tuple)
    description: str = ""

    def __post_init__(self) -> None:
        """Validate entity definition."""
        if not self.name:
            raise ValueError("Entity name cannot be empty")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        result: dict[str, Any] = {
            "name": self.name,
            "fields": self.fields.to_dict(),
        }
        if self.queries:
            result["queries"] = list(self.queries)
        if self.mutations:
            result["mutations"] = list(self.mutations)
        if self.description:
            result["description"] = self.description
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EntityDef:
        """Create from dictionary representation.

        ``fields`` may be a mapping (name -> declaration) or a list of
        declarations that each carry a ``name`` key.
        """
        raw_fields = data.get("fields") or {}
        if isinstance(raw_fields, Mapping):
            fields = FieldMap.from_dict(raw_fields)
        else:
            fields = FieldMap.from_pairs(
                (f["name"], f) for f in raw_fields if isinstance(f, Mapping) and f.get("name")
            )
        return cls(
            name=data["name"],
            fields=fields,
            queries=tuple(data.get("queries") or ()),
            mutations=tuple(data.get("mutations") or ()),
            description=data.get("description", ""),
        )
