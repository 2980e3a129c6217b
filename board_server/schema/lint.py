"""
Strict validation pass for entity declarations.

The compiler degrades incomplete declarations to omitted fields. Callers that
want a build to fail on such declarations run these checks first (the schema
CLI does this in its ``lint`` command).

Pure functions with no I/O. Nothing here raises; problems come back as a
list of messages, empty when the declaration is clean.
"""

from __future__ import annotations

import re

from .types import EntityDef, FieldDescriptor, FieldKind, FieldMap

# name(args): Type  or  name: Type
SIGNATURE_RE = re.compile(r"^\s*[_A-Za-z][_0-9A-Za-z]*\s*(\([^()]*\))?\s*:\s*\[?[_A-Za-z][_0-9A-Za-z]*!?\]?!?\s*$")


def _lint_descriptor(path: str, descriptor: FieldDescriptor) -> list[str]:
    errors = []
    if not descriptor.name:
        errors.append(f"{path}: field name is empty")
    if descriptor.type_override:
        return errors
    if not FieldKind.is_known(descriptor.kind):
        errors.append(
            f"{path}: unknown kind '{descriptor.kind}' passes through verbatim; "
            f"set graphqlType to make this explicit"
        )
    if descriptor.is_array:
        if descriptor.items is None:
            errors.append(f"{path}: array field has no items descriptor and will be omitted")
        else:
            errors.extend(_lint_descriptor(f"{path}[]", descriptor.items))
    if descriptor.is_object:
        if descriptor.properties is None:
            errors.append(f"{path}: object field has no properties descriptor and will be omitted")
        else:
            errors.extend(lint_field_map(path, descriptor.properties))
    return errors


def lint_field_map(entity_name: str, field_map: FieldMap) -> list[str]:
    """Check every descriptor of a field map.

    Args:
        entity_name: Prefix for messages (entity or parent field path)
        field_map: Field map to check

    Returns:
        List of problems (empty if clean)
    """
    errors: list[str] = []
    for descriptor in field_map:
        errors.extend(_lint_descriptor(f"{entity_name}.{descriptor.name}", descriptor))
    return errors


def lint_signature(signature: str) -> str | None:
    """Return a problem message if signature is not ``name(args): Type``."""
    if SIGNATURE_RE.match(signature):
        return None
    return f"malformed operation signature '{signature}'"


def lint_entity(entity: EntityDef) -> list[str]:
    """Check an entity's fields and operation signatures."""
    errors = lint_field_map(entity.name, entity.fields)
    for signature in (*entity.queries, *entity.mutations):
        problem = lint_signature(signature)
        if problem:
            errors.append(f"{entity.name}: {problem}")
    return errors
