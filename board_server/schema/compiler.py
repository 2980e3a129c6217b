"""
Schema compiler: entity field maps -> query type definition text.

Pure functions with no I/O - fully testable. The compiler is run once per
entity at service registration time and again on every metadata reload.

Type resolution:
    string  -> String
    boolean -> Boolean
    number  -> Int
    array   -> [Inner]  (Inner resolved from the items descriptor)
    other   -> the kind token itself (date, object, custom names)

    An explicit type_override always wins over the kind-derived name; on an
    array field it supplies the element type.

Invariants:
    - Never raises for any descriptor shape; unresolved fields are omitted
    - The one precondition is a non-empty type name: compile_type() raises
      ValueError for an empty one, which EntityDef already rules out
    - Output is byte-identical for identical input
    - Emitted lines are indented by two spaces and comma-terminated except
      the last emitted line
    - The required suffix (!) applies after array wrapping only

How to change safely:
    - Downstream schema merging is textual; any change to spacing or
      separators is a breaking change for merged documents
    - Use schema.lint for strict validation instead of raising here

Example:
    >>> from board_server.schema.types import FieldMap
    >>> fields = FieldMap.from_dict({
    ...     "title": {"type": "string", "required": True},
    ...     "position": {"type": "number"},
    ... })
    >>> print(compile_type("Board", fields).render())
    type Board {
      title: String!,
      position: Int
    }
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field as dataclass_field
from enum import Enum
from typing import Union

from .types import EntityDef, FieldDescriptor, FieldKind, FieldMap

INDENT = "  "

_BASE_TYPES = {
    FieldKind.STRING.value: "String",
    FieldKind.BOOLEAN.value: "Boolean",
    FieldKind.NUMBER.value: "Int",
}


class OmitReason(Enum):
    """Why a field was left out of the compiled type."""

    ARRAY_WITHOUT_ITEMS = "array field has no items descriptor"
    OBJECT_WITHOUT_PROPERTIES = "object field has no properties descriptor"


@dataclass(frozen=True)
class EmittedField:
    """A field that appears in the compiled type.

    Attributes:
        name: Field name
        type_name: Resolved type, array wrapping included, no required suffix
        required: Whether the line carries the ``!`` suffix
    """

    name: str
    type_name: str
    required: bool = False

    def render(self, last: bool = True) -> str:
        """Render as one indented schema line."""
        suffix = "!" if self.required else ""
        separator = "" if last else ","
        return f"{INDENT}{self.name}: {self.type_name}{suffix}{separator}"


@dataclass(frozen=True)
class OmittedField:
    """A field that was skipped because its declaration is incomplete."""

    name: str
    reason: OmitReason


FieldOutcome = Union[EmittedField, OmittedField]


@dataclass(frozen=True)
class TypeDefinition:
    """Compiled type for one entity.

    Built fresh on every compile call and never mutated afterwards.

    Attributes:
        name: Entity type name
        fields: Emitted fields in declaration order
        omitted: Fields skipped by the compiler, in declaration order
    """

    name: str
    fields: tuple[EmittedField, ...] = dataclass_field(default_factory=tuple)
    omitted: tuple[OmittedField, ...] = dataclass_field(default_factory=tuple)

    @property
    def lines(self) -> list[str]:
        """Emitted field lines with separators applied."""
        last_idx = len(self.fields) - 1
        return [f.render(last=idx == last_idx) for idx, f in enumerate(self.fields)]

    def render(self) -> str:
        """Render the full ``type X { ... }`` block."""
        return "\n".join([f"type {self.name} {{", *self.lines, "}"])


@dataclass(frozen=True)
class CompiledEntity:
    """Type definition plus the entity's API operation signatures."""

    type_definition: TypeDefinition
    queries: tuple[str, ...] = dataclass_field(default_factory=tuple)
    mutations: tuple[str, ...] = dataclass_field(default_factory=tuple)

    @property
    def name(self) -> str:
        return self.type_definition.name


def _omit_reason(descriptor: FieldDescriptor) -> OmitReason:
    if descriptor.is_array:
        return OmitReason.ARRAY_WITHOUT_ITEMS
    return OmitReason.OBJECT_WITHOUT_PROPERTIES


def _unresolved(descriptor: FieldDescriptor) -> FieldDescriptor | None:
    """Find the descriptor (outer or nested array element) that is unresolved."""
    current: FieldDescriptor | None = descriptor
    while current is not None:
        if current.is_unresolved:
            return current
        if current.type_override or not current.is_array:
            return None
        current = current.items
    return None


def resolve_type(descriptor: FieldDescriptor) -> str | None:
    """Resolve the API type name of a descriptor.

    Args:
        descriptor: Field descriptor

    Returns:
        Type name with array wrapping, without required suffix, or None if
        the descriptor (or a nested array element) is unresolved.
    """
    if descriptor.type_override:
        if descriptor.is_array:
            return f"[{descriptor.type_override}]"
        return descriptor.type_override

    if descriptor.is_unresolved:
        return None

    if descriptor.is_array:
        inner = resolve_type(descriptor.items)
        if inner is None:
            return None
        return f"[{inner}]"

    return _BASE_TYPES.get(descriptor.kind, descriptor.kind)


def compile_field(descriptor: FieldDescriptor) -> FieldOutcome:
    """Compile one descriptor into an explicit emitted/omitted outcome."""
    type_name = resolve_type(descriptor)
    if type_name is None:
        culprit = _unresolved(descriptor) or descriptor
        return OmittedField(name=descriptor.name, reason=_omit_reason(culprit))
    return EmittedField(
        name=descriptor.name,
        type_name=type_name,
        required=descriptor.required,
    )


def compile_type(entity_name: str, field_map: FieldMap) -> TypeDefinition:
    """Compile an entity field map into a type definition.

    Args:
        entity_name: Type name, must be non-empty
        field_map: Ordered field descriptors (may be empty)

    Returns:
        TypeDefinition with emitted and omitted fields

    Raises:
        ValueError: If entity_name is empty
    """
    if not entity_name:
        raise ValueError("Entity name cannot be empty")

    emitted: list[EmittedField] = []
    omitted: list[OmittedField] = []
    for descriptor in field_map:
        outcome = compile_field(descriptor)
        if isinstance(outcome, EmittedField):
            emitted.append(outcome)
        else:
            omitted.append(outcome)

    return TypeDefinition(name=entity_name, fields=tuple(emitted), omitted=tuple(omitted))


def compile_entity(entity: EntityDef) -> CompiledEntity:
    """Compile an entity definition with its query and mutation signatures."""
    return CompiledEntity(
        type_definition=compile_type(entity.name, entity.fields),
        queries=tuple(entity.queries),
        mutations=tuple(entity.mutations),
    )
