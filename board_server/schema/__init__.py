"""
Schema module for Board Server.

This module turns declarative entity metadata into the query API schema:
- Type definitions (FieldDescriptor, FieldMap, EntityDef)
- Compiler from field maps to type definition text
- Strict lint pass for callers that want failures instead of omissions
- Assembler that owns the application's schema document

Invariants:
    - Compilation never fails on incomplete field metadata
    - The assembled document is deterministic for a given registration order
    - Sinks receive the document only when its fingerprint changes

How to change safely:
    - Add new kinds to FieldKind and the compiler table together
    - Keep document layout stable; consumers merge it as text
    - Run the lint command in CI before deploying metadata changes
"""

from .assembler import (
    FileSchemaSink,
    SchemaAssembler,
    SchemaDocument,
)
from .compiler import (
    CompiledEntity,
    EmittedField,
    OmitReason,
    OmittedField,
    TypeDefinition,
    compile_entity,
    compile_field,
    compile_type,
    resolve_type,
)
from .lint import lint_entity, lint_field_map
from .types import EntityDef, FieldDescriptor, FieldKind, FieldMap, field

__all__ = [
    # Types
    "FieldDescriptor",
    "FieldKind",
    "FieldMap",
    "EntityDef",
    "field",
    # Compiler
    "TypeDefinition",
    "EmittedField",
    "OmittedField",
    "OmitReason",
    "CompiledEntity",
    "compile_type",
    "compile_field",
    "compile_entity",
    "resolve_type",
    # Lint
    "lint_entity",
    "lint_field_map",
    # Assembler
    "SchemaAssembler",
    "SchemaDocument",
    "FileSchemaSink",
]
