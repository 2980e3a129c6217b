"""
Schema CLI tool for Board Server.

This tool works on entity declaration files (YAML or JSON):
- compile: Print the assembled schema document
- lint: Report incomplete or suspicious declarations (strict pre-pass)

Usage:
    board-schema compile entities.yaml > schema.gql
    board-schema lint entities.yaml
    board-schema compile --builtin

Declaration format:
    entities:
      - name: Board
        fields:
          title: {type: string, required: true}
          description: string
        queries: ["board(id: String!): Board"]

Invariants:
    - compile never fails on incomplete fields (they are omitted)
    - lint exits non-zero when it finds any problem
    - Field order in the file is field order in the output

How to change safely:
    - Keep output format stable for CI parsing
    - Add new commands, don't modify existing ones
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Sequence

import yaml

from ..entities import ALL_ENTITIES
from ..schema import EntityDef, SchemaAssembler, lint_entity


def parse_entities(data: Any) -> list[EntityDef]:
    """Build entity definitions from a parsed declaration document.

    Accepts ``{"entities": [...]}``, a bare list of entities, or a mapping
    of entity name -> {fields, queries, mutations}.
    """
    if isinstance(data, dict) and "entities" in data:
        data = data["entities"]
    if isinstance(data, dict):
        data = [{"name": name, **(body or {})} for name, body in data.items()]
    return [EntityDef.from_dict(item) for item in data or []]


def load_entities(path: str | Path) -> list[EntityDef]:
    """Load entity definitions from a .yaml/.yml or .json file."""
    path = Path(path)
    content = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        data = json.loads(content)
    else:
        data = yaml.safe_load(content)
    return parse_entities(data)


class SchemaCLI:
    """CLI tool for entity schema management.

    Example:
        >>> cli = SchemaCLI()
        >>> print(cli.compile(ALL_ENTITIES))
        >>> cli.lint(ALL_ENTITIES)
        ['Board.labels: array field has no items descriptor and will be omitted', ...]
    """

    def compile(self, entities: Sequence[EntityDef]) -> str:
        """Assemble the schema document for the given entities."""
        assembler = SchemaAssembler()
        for entity in entities:
            assembler.register_entity(entity)
        return assembler.build().text

    def lint(self, entities: Sequence[EntityDef]) -> list[str]:
        """Strict checks over every entity."""
        problems: list[str] = []
        for entity in entities:
            problems.extend(lint_entity(entity))
        return problems


def _entities_from_args(args: argparse.Namespace) -> list[EntityDef]:
    if args.builtin:
        return list(ALL_ENTITIES)
    if not args.file:
        raise SystemExit("error: a declaration file or --builtin is required")
    return load_entities(args.file)


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point for the schema tool."""
    parser = argparse.ArgumentParser(description="Board Server schema tool")
    subparsers = parser.add_subparsers(dest="command", required=True)

    compile_parser = subparsers.add_parser("compile", help="Print the assembled schema")
    compile_parser.add_argument("file", nargs="?", help="YAML/JSON entity declarations")
    compile_parser.add_argument("--builtin", action="store_true", help="Use the built-in entities")
    compile_parser.add_argument("--output", "-o", help="Output file (default: stdout)")

    lint_parser = subparsers.add_parser("lint", help="Check declarations strictly")
    lint_parser.add_argument("file", nargs="?", help="YAML/JSON entity declarations")
    lint_parser.add_argument("--builtin", action="store_true", help="Use the built-in entities")

    args = parser.parse_args(argv)
    cli = SchemaCLI()
    entities = _entities_from_args(args)

    if args.command == "compile":
        output = cli.compile(entities)
        if args.output:
            Path(args.output).write_text(output, encoding="utf-8")
            print(f"Schema written to {args.output}", file=sys.stderr)
        else:
            print(output, end="")
        return 0

    problems = cli.lint(entities)
    if not problems:
        print("Entity declarations are clean")
        return 0
    print(f"Lint found {len(problems)} problem(s):")
    for problem in problems:
        print(f"  - {problem}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
